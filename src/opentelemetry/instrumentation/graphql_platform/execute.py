from functools import partial
from typing import Any, Callable, Dict, Optional

import graphql
import wrapt
from graphql.pyutils import is_awaitable

from opentelemetry.instrumentation.graphql_platform.context import (
    get_active_trace,
    OTEL_GRAPHQL_TRACE_ATTR,
    OTEL_PATCHED_ATTR,
    OTEL_WRAPPER_ATTR,
)
from opentelemetry.instrumentation.graphql_platform.utils import (
    _setattr,
    ProcessedArgs,
    Query,
)


def _wrap_execute(trace, enabled=None):
    def wrapper(wrapped, _, args, kwargs):
        processed_args = _wrap_execute_args(trace, enabled, *args, **kwargs)
        query = Query(
            document=processed_args.document,
            operation_name=processed_args.operation_name,
            context=processed_args.context_value,
            variable_values=processed_args.variable_values,
        )
        call = partial(
            wrapped,
            *processed_args[:-2],
            *processed_args.args,
            **processed_args.kwargs,
        )

        res = trace.execute_query(query, call)
        if is_awaitable(res):
            return trace.execute_query_lazy(query, lambda: res)
        return res

    return wrapper


def _wrap_execute_args(
    trace,
    enabled,
    schema: graphql.GraphQLSchema,
    document: graphql.DocumentNode,
    root_value: Any = None,
    context_value: Any = None,
    variable_values: Optional[Dict[str, Any]] = None,
    operation_name: Optional[str] = None,
    field_resolver=None,
    type_resolver=None,
    *args,
    **kwargs,
) -> ProcessedArgs:
    """
    Stores `trace` in the context and wraps the default resolvers and the
    schema's own resolvers, returning a ProcessedArgs namedtuple with the args
    wrapped.

    Beside `trace` and `enabled`, it takes the same args that graphql.execute.
    The wrapped resolvers call straight through while `enabled()` is false
    """
    if context_value is None:
        context_value = {}

    _setattr(context_value, OTEL_GRAPHQL_TRACE_ATTR, trace)

    field_resolver = wrap_field_resolver(
        field_resolver or graphql.default_field_resolver, enabled
    )
    type_resolver = wrap_type_resolver(
        type_resolver or graphql.default_type_resolver, enabled
    )
    if schema:
        wrap_schema(schema, enabled)

    return ProcessedArgs(
        schema,
        document,
        root_value,
        context_value,
        variable_values,
        operation_name,
        field_resolver,
        type_resolver,
        args,
        kwargs,
    )


def wrap_schema(schema: graphql.GraphQLSchema, enabled=None) -> None:
    """
    Wraps the field resolvers of every object type and the `resolve_type` of
    every abstract type in `schema`. Introspection types are skipped
    """
    for typ in schema.type_map.values():
        if not graphql.is_composite_type(typ) or graphql.is_introspection_type(typ):
            continue
        if getattr(typ, OTEL_PATCHED_ATTR, False):
            continue

        setattr(typ, OTEL_PATCHED_ATTR, True)
        if isinstance(typ, graphql.GraphQLObjectType):
            for field in typ.fields.values():
                if field.resolve:
                    field.resolve = wrap_field_resolver(field.resolve, enabled)
        elif typ.resolve_type:
            typ.resolve_type = wrap_type_resolver(typ.resolve_type, enabled)


def _is_wrapped(resolver: Callable) -> bool:
    return getattr(resolver, OTEL_WRAPPER_ATTR, False)


def _mark_wrapped(resolver: wrapt.FunctionWrapper) -> wrapt.FunctionWrapper:
    # `_self_` attrs are kept on the wrapper instead of the wrapped function
    setattr(resolver, OTEL_WRAPPER_ATTR, True)
    return resolver


def wrap_field_resolver(resolver: Callable, enabled=None):
    if _is_wrapped(resolver):
        return resolver

    @wrapt.decorator(enabled=enabled)
    def _wrap_field_resolver(wrapped, _, args, kwargs):
        def _resolver(root: Any, info: graphql.GraphQLResolveInfo, **args_):
            trace = get_active_trace(info.context)
            if trace is None or graphql.is_introspection_type(info.parent_type):
                return wrapped(root, info, **args_)

            field = info.parent_type.fields.get(info.field_name)
            if field is None:
                return wrapped(root, info, **args_)

            result = trace.execute_field(
                field, info, partial(wrapped, root, info, **args_)
            )
            if is_awaitable(result):
                return trace.execute_field_lazy(field, info, lambda: result)
            return result

        return _resolver(*args, **kwargs)

    return _mark_wrapped(_wrap_field_resolver(resolver))


def wrap_type_resolver(resolver: Callable, enabled=None):
    if _is_wrapped(resolver):
        return resolver

    @wrapt.decorator(enabled=enabled)
    def _wrap_type_resolver(wrapped, _, args, kwargs):
        def _resolve_type(value: Any, info: graphql.GraphQLResolveInfo, abstract_type):
            trace = get_active_trace(info.context)
            if trace is None:
                return wrapped(value, info, abstract_type)

            result = trace.resolve_type(
                abstract_type,
                info.context,
                partial(wrapped, value, info, abstract_type),
            )
            if is_awaitable(result):
                return trace.resolve_type_lazy(
                    abstract_type, info.context, lambda: result
                )
            return result

        return _resolve_type(*args, **kwargs)

    return _mark_wrapped(_wrap_type_resolver(resolver))
