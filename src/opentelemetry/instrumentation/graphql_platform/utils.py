from collections import namedtuple
from typing import Any

import graphql

from opentelemetry.instrumentation.graphql_platform.names import (
    ContextKey,
    NAMESPACE,
)

ProcessedArgs = namedtuple(
    "ProcessedArgs",
    (
        "schema",
        "document",
        "root_value",
        "context_value",
        "variable_values",
        "operation_name",
        "field_resolver",
        "type_resolver",
        "args",
        "kwargs",
    ),
)

Config = namedtuple(
    "Config",
    ("set_transaction_name", "trace_scalars"),
    defaults=(False, False),
)

Query = namedtuple(
    "Query",
    ("document", "operation_name", "context", "variable_values"),
    defaults=(None, None, None),
)


def _getattr(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _setattr(obj: Any, name: str, value: Any) -> None:
    if isinstance(obj, dict):
        obj[name] = value
    else:
        setattr(obj, name, value)


def transaction_name(query: Query) -> str:
    """
    Builds `GraphQL/<operation type>.<operation name>` for the operation
    selected by `query`. Anonymous operations fall back to the name stored in
    the context under `ContextKey.FALLBACK_TRANSACTION_NAME`, then to
    "anonymous". Without a selectable operation it is `GraphQL/query.anonymous`
    """
    operation = None
    if query.document:
        operation = graphql.get_operation_ast(query.document, query.operation_name)
    if not operation:
        return f"{NAMESPACE}/query.anonymous"

    op_name = (
        (operation.name and operation.name.value)
        or _getattr(query.context, ContextKey.FALLBACK_TRANSACTION_NAME)
        or "anonymous"
    )
    return f"{NAMESPACE}/{operation.operation.value}.{op_name}"
