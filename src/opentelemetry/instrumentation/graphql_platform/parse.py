from functools import partial

from opentelemetry.instrumentation.graphql_platform.names import Phase


def _wrap_parse(trace):
    def wrapper(wrapped, _, args, kwargs):
        return trace.trace_phase(Phase.PARSE, partial(wrapped, *args, **kwargs))

    return wrapper
