from functools import partial

from opentelemetry.instrumentation.graphql_platform.names import Phase


def _wrap_validate(trace):
    def wrapper(wrapped, _, args, kwargs):
        if len(args) >= 2:
            document_ast = args[1]
        else:
            document_ast = kwargs.get("document_ast")

        return trace.trace_phase(
            Phase.VALIDATE,
            partial(wrapped, *args, **kwargs),
            document=document_ast,
        )

    return wrapper
