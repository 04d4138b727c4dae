from .logging import (
    ContextLoggerAdapter,
    CorrelationContext,
    JSONFormatter,
    get_correlation_id,
    get_logger,
)

__all__ = [
    "ContextLoggerAdapter",
    "CorrelationContext",
    "JSONFormatter",
    "get_correlation_id",
    "get_logger",
]
