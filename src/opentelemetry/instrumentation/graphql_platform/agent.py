from logging import getLogger
from typing import Any, Awaitable, Callable

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Tracer

from opentelemetry.instrumentation.graphql_platform.names import AttributeName

logger = getLogger(__name__)


class MonitoringAgent:
    """Reports spans and transaction names through an OpenTelemetry tracer"""

    def __init__(self, tracer: Tracer):
        self.tracer = tracer

    def set_transaction_name(self, name: str) -> None:
        """
        Names the transaction the GraphQL request runs in, i.e. the span that
        is current before any GraphQL span is opened
        """
        span = trace.get_current_span()
        if not span.is_recording():
            logger.debug("No recording span to set transaction name %r", name)
            return

        span.update_name(name)
        span.set_attribute(AttributeName.TRANSACTION_NAME, name)

    def trace_execution_scoped(self, label: str, block: Callable[[], Any]) -> Any:
        with self.tracer.start_as_current_span(label, kind=SpanKind.INTERNAL):
            return block()

    async def trace_execution_scoped_async(
        self, label: str, block: Callable[[], Awaitable[Any]]
    ) -> Any:
        with self.tracer.start_as_current_span(label, kind=SpanKind.INTERNAL):
            return await block()
