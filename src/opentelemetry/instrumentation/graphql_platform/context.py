from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from opentelemetry.instrumentation.graphql_platform.utils import (
    _getattr,
    _setattr,
)

OTEL_PATCHED_ATTR = "otel_patched"
OTEL_WRAPPER_ATTR = "_self_otel_patched"
OTEL_GRAPHQL_TRACE_ATTR = "otel_graphql_trace"
OTEL_LABEL_CACHE_ATTR = "otel_graphql_label_cache"


class LabelCache:
    """Labels computed during one request, keyed by `(kind, key)`.

    An instance lives in the GraphQL execution context, in the attr
    `OTEL_LABEL_CACHE_ATTR`, and goes away with it. Entries are never
    replaced, so repeated lookups return the same string object.
    """
    labels: Dict[Tuple[str, Hashable], str]

    def __init__(self):
        self.labels = {}

    def __len__(self):
        return len(self.labels)

    def __contains__(self, item):
        return item in self.labels

    def fetch(self, kind: str, key: Hashable, build: Callable[[], str]) -> str:
        cache_key = (kind, key)
        label = self.labels.get(cache_key)
        if label is None:
            label = self.labels[cache_key] = build()
        return label


def get_label_cache(context: Any) -> Optional[LabelCache]:
    """
    Returns the LabelCache stored in `context`, creating it on first use.
    Without a context there is nowhere to keep it and None is returned
    """
    if context is None:
        return None

    cache = _getattr(context, OTEL_LABEL_CACHE_ATTR)
    if cache is None:
        cache = LabelCache()
        _setattr(context, OTEL_LABEL_CACHE_ATTR, cache)
    return cache


def get_active_trace(context: Any):
    """Returns the trace chain that is executing the request in `context`"""
    if context is None:
        return None
    return _getattr(context, OTEL_GRAPHQL_TRACE_ATTR)
