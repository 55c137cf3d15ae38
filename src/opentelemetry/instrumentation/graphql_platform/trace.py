from functools import partial
from typing import Any, Awaitable, Callable, Hashable, Optional

from graphql import GraphQLField, GraphQLNamedType, get_named_type, is_leaf_type

from opentelemetry.instrumentation.graphql_platform.agent import MonitoringAgent
from opentelemetry.instrumentation.graphql_platform.context import get_label_cache
from opentelemetry.instrumentation.graphql_platform.names import (
    ContextKey,
    LabelKind,
    LAZY_PHASES,
    NAMESPACE,
    PHASE_LABELS,
    Phase,
)
from opentelemetry.instrumentation.graphql_platform.utils import (
    _getattr,
    Config,
    Query,
    transaction_name,
)


class Trace:
    """Passthrough link of a trace chain.

    Every hook receives `call`, the work of the phase, and returns what it
    returns. Each hook is forwarded to `next_trace`, and the last link of the
    chain runs `call`, so the order in which traces are linked is the order
    in which they wrap the work.

    The `*_lazy` hooks run when a deferred value resolves: their `call`
    returns an awaitable and the hook returns an awaitable too.
    """

    def __init__(self, next_trace: Optional["Trace"] = None):
        self.next_trace = next_trace

    def trace_phase(self, phase: str, call: Callable[[], Any], **keys) -> Any:
        if self.next_trace is None:
            return call()
        return self.next_trace.trace_phase(phase, call, **keys)

    def execute_query(self, query: Query, call: Callable[[], Any]) -> Any:
        if self.next_trace is None:
            return call()
        return self.next_trace.execute_query(query, call)

    def execute_query_lazy(
        self, query: Query, call: Callable[[], Awaitable[Any]]
    ) -> Awaitable[Any]:
        return self.trace_phase(Phase.EXECUTE_QUERY_LAZY, call, query=query)

    def execute_field(self, field: GraphQLField, info, call: Callable[[], Any]) -> Any:
        if self.next_trace is None:
            return call()
        return self.next_trace.execute_field(field, info, call)

    def execute_field_lazy(
        self, field: GraphQLField, info, call: Callable[[], Awaitable[Any]]
    ) -> Awaitable[Any]:
        if self.next_trace is None:
            return call()
        return self.next_trace.execute_field_lazy(field, info, call)

    def authorized(self, type_: GraphQLNamedType, context: Any, call: Callable[[], Any]) -> Any:
        if self.next_trace is None:
            return call()
        return self.next_trace.authorized(type_, context, call)

    def authorized_lazy(
        self, type_: GraphQLNamedType, context: Any, call: Callable[[], Awaitable[Any]]
    ) -> Awaitable[Any]:
        if self.next_trace is None:
            return call()
        return self.next_trace.authorized_lazy(type_, context, call)

    def resolve_type(self, type_: GraphQLNamedType, context: Any, call: Callable[[], Any]) -> Any:
        if self.next_trace is None:
            return call()
        return self.next_trace.resolve_type(type_, context, call)

    def resolve_type_lazy(
        self, type_: GraphQLNamedType, context: Any, call: Callable[[], Awaitable[Any]]
    ) -> Awaitable[Any]:
        if self.next_trace is None:
            return call()
        return self.next_trace.resolve_type_lazy(type_, context, call)


class PlatformTrace(Trace):
    """Reports each phase as a span named after it to a MonitoringAgent.

    Field, authorization and type resolution labels are built once per
    request and kept in the request context.
    """

    def __init__(
        self,
        agent: MonitoringAgent,
        config: Optional[Config] = None,
        next_trace: Optional[Trace] = None,
    ):
        super().__init__(next_trace)
        self.agent = agent
        self.config = config or Config()

    def trace_phase(self, phase, call, **keys):
        forward = partial(super().trace_phase, phase, call, **keys)
        label = PHASE_LABELS.get(phase)
        if label is None:
            return forward()
        return self._trace(label, forward, lazy=phase in LAZY_PHASES)

    def execute_query(self, query, call):
        set_this_txn_name = _getattr(query.context, ContextKey.SET_TRANSACTION_NAME)
        if set_this_txn_name is True or (
            set_this_txn_name is None and self.config.set_transaction_name
        ):
            self.agent.set_transaction_name(transaction_name(query))

        return self.agent.trace_execution_scoped(
            PHASE_LABELS[Phase.EXECUTE_QUERY],
            partial(super().execute_query, query, call),
        )

    def execute_field(self, field, info, call):
        forward = partial(super().execute_field, field, info, call)
        return self._execute_field(field, info, forward, lazy=False)

    def execute_field_lazy(self, field, info, call):
        forward = partial(super().execute_field_lazy, field, info, call)
        return self._execute_field(field, info, forward, lazy=True)

    def authorized(self, type_, context, call):
        forward = partial(super().authorized, type_, context, call)
        return self._trace(self._authorized_label(type_, context), forward, lazy=False)

    def authorized_lazy(self, type_, context, call):
        forward = partial(super().authorized_lazy, type_, context, call)
        return self._trace(self._authorized_label(type_, context), forward, lazy=True)

    def resolve_type(self, type_, context, call):
        forward = partial(super().resolve_type, type_, context, call)
        return self._trace(self._resolve_type_label(type_, context), forward, lazy=False)

    def resolve_type_lazy(self, type_, context, call):
        forward = partial(super().resolve_type_lazy, type_, context, call)
        return self._trace(self._resolve_type_label(type_, context), forward, lazy=True)

    def should_trace_field(self, field: GraphQLField) -> bool:
        """
        Scalar and enum fields are traced if their `trace` extension says so,
        or, when it is unset, if `trace_scalars` is enabled. Any other field
        is always traced
        """
        if is_leaf_type(get_named_type(field.type)):
            trace_field = (field.extensions or {}).get("trace")
            return bool(
                (trace_field is None and self.config.trace_scalars) or trace_field
            )
        return True

    def field_label(self, owner: GraphQLNamedType, field_name: str) -> str:
        return f"{NAMESPACE}/{owner.name}/{field_name}"

    def authorized_label(self, type_: GraphQLNamedType) -> str:
        return f"{NAMESPACE}/Authorize/{type_.name}"

    def resolve_type_label(self, type_: GraphQLNamedType) -> str:
        return f"{NAMESPACE}/ResolveType/{type_.name}"

    def _execute_field(self, field, info, forward, lazy):
        if not self.should_trace_field(field):
            return forward()

        owner = info.parent_type
        label = self._cached_label(
            info.context,
            LabelKind.FIELD,
            (owner.name, info.field_name),
            partial(self.field_label, owner, info.field_name),
        )
        return self._trace(label, forward, lazy)

    def _authorized_label(self, type_, context):
        return self._cached_label(
            context, LabelKind.AUTHORIZED, type_.name,
            partial(self.authorized_label, type_),
        )

    def _resolve_type_label(self, type_, context):
        return self._cached_label(
            context, LabelKind.RESOLVE_TYPE, type_.name,
            partial(self.resolve_type_label, type_),
        )

    def _trace(self, label: str, forward: Callable[[], Any], lazy: bool) -> Any:
        if lazy:
            return self.agent.trace_execution_scoped_async(label, forward)
        return self.agent.trace_execution_scoped(label, forward)

    @staticmethod
    def _cached_label(
        context: Any, kind: str, key: Hashable, build: Callable[[], str]
    ) -> str:
        cache = get_label_cache(context)
        if cache is None:
            return build()
        return cache.fetch(kind, key, build)
