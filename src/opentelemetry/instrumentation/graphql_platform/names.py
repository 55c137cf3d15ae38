from types import MappingProxyType

NAMESPACE = "GraphQL"


class AttributeName:
    TRANSACTION_NAME = "graphql.transaction.name"


class ContextKey:
    SET_TRANSACTION_NAME = "set_otel_transaction_name"
    FALLBACK_TRANSACTION_NAME = "tracing_fallback_transaction_name"


class Phase:
    LEX = "lex"
    PARSE = "parse"
    VALIDATE = "validate"
    ANALYZE_QUERY = "analyze_query"
    ANALYZE_MULTIPLEX = "analyze_multiplex"
    EXECUTE_MULTIPLEX = "execute_multiplex"
    EXECUTE_QUERY = "execute_query"
    EXECUTE_QUERY_LAZY = "execute_query_lazy"


class SpanName:
    LEX = f"{NAMESPACE}/lex"
    PARSE = f"{NAMESPACE}/parse"
    VALIDATE = f"{NAMESPACE}/validate"
    ANALYZE = f"{NAMESPACE}/analyze"
    EXECUTE = f"{NAMESPACE}/execute"


class LabelKind:
    FIELD = "field"
    AUTHORIZED = "authorized"
    RESOLVE_TYPE = "resolve_type"


PHASE_LABELS = MappingProxyType({
    Phase.LEX: SpanName.LEX,
    Phase.PARSE: SpanName.PARSE,
    Phase.VALIDATE: SpanName.VALIDATE,
    Phase.ANALYZE_QUERY: SpanName.ANALYZE,
    Phase.ANALYZE_MULTIPLEX: SpanName.ANALYZE,
    Phase.EXECUTE_MULTIPLEX: SpanName.EXECUTE,
    Phase.EXECUTE_QUERY: SpanName.EXECUTE,
    Phase.EXECUTE_QUERY_LAZY: SpanName.EXECUTE,
})

# Phases whose delegate returns an awaitable
LAZY_PHASES = frozenset({Phase.EXECUTE_QUERY_LAZY})
