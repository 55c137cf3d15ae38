from logging import getLogger
from typing import Any, Callable, Collection

import graphql
from graphql.pyutils import is_awaitable
from opentelemetry.instrumentation.instrumentor import BaseInstrumentor
from opentelemetry.instrumentation.utils import unwrap
from opentelemetry.trace import get_tracer
from wrapt import wrap_object, FunctionWrapper

from opentelemetry.instrumentation.graphql_platform.agent import MonitoringAgent
from opentelemetry.instrumentation.graphql_platform.context import get_active_trace
from opentelemetry.instrumentation.graphql_platform.execute import _wrap_execute
from opentelemetry.instrumentation.graphql_platform.package import _instruments
from opentelemetry.instrumentation.graphql_platform.parse import _wrap_parse
from opentelemetry.instrumentation.graphql_platform.trace import PlatformTrace, Trace
from opentelemetry.instrumentation.graphql_platform.utils import Config
from opentelemetry.instrumentation.graphql_platform.validate import _wrap_validate
from opentelemetry.instrumentation.graphql_platform.version import __version__

__all__ = [
    "Config",
    "GraphQLPlatformInstrumentor",
    "MonitoringAgent",
    "PlatformTrace",
    "Trace",
    "authorize",
]

logger = getLogger(__name__)


class GraphQLPlatformInstrumentor(BaseInstrumentor):
    """An instrumentor for graphql-core that names spans after the GraphQL
    phases, fields and types they time
    See `BaseInstrumentor`
    """

    _enabled = True

    @classmethod
    def enabled(cls):
        return cls._enabled

    def instrumentation_dependencies(self) -> Collection[str]:
        return _instruments

    def _instrument(
        self,
        set_transaction_name: bool = False,
        trace_scalars: bool = False,
        **kwargs
    ):
        """
        Instruments graphql module

        `set_transaction_name` uses the operation name as the name of the
        span that is current when a query starts. It can also be chosen per
        query with `context["set_otel_transaction_name"]`. `trace_scalars`
        adds spans for fields returning scalars and enums. A `next_trace` is
        run inside the spans of this instrumentation
        """
        config = Config(set_transaction_name, trace_scalars)
        tracer_provider = kwargs.get("tracer_provider")
        tracer = get_tracer(__name__, __version__, tracer_provider)
        trace = PlatformTrace(
            MonitoringAgent(tracer), config, next_trace=kwargs.get("next_trace")
        )
        logger.debug("Instrumenting graphql with %s", config)

        GraphQLPlatformInstrumentor._enabled = True
        wrap_object(
            graphql,
            "execute",
            FunctionWrapper,
            args=(_wrap_execute(trace, self.enabled),),
            kwargs={"enabled": self.enabled}
        )
        wrap_object(
            graphql,
            "execute_sync",
            FunctionWrapper,
            args=(_wrap_execute(trace, self.enabled),),
            kwargs={"enabled": self.enabled}
        )
        wrap_object(
            graphql,
            "parse",
            FunctionWrapper,
            args=(_wrap_parse(trace),),
            kwargs={"enabled": self.enabled}
        )
        wrap_object(
            graphql,
            "validate",
            FunctionWrapper,
            args=(_wrap_validate(trace),),
            kwargs={"enabled": self.enabled}
        )

    def _uninstrument(self, **kwargs):
        GraphQLPlatformInstrumentor._enabled = False
        unwrap(graphql, "parse")
        unwrap(graphql, "execute")
        unwrap(graphql, "execute_sync")
        unwrap(graphql, "validate")


def authorize(
    type_: graphql.GraphQLNamedType,
    info: graphql.GraphQLResolveInfo,
    check: Callable[[], Any],
) -> Any:
    """
    Runs the authorization `check` for `type_` through the trace executing
    the current request. Outside an instrumented request, or once graphql is
    uninstrumented, `check` is just called
    """
    trace = get_active_trace(info.context)
    if trace is None or not GraphQLPlatformInstrumentor.enabled():
        return check()

    result = trace.authorized(type_, info.context, check)
    if is_awaitable(result):
        return trace.authorized_lazy(type_, info.context, lambda: result)
    return result
