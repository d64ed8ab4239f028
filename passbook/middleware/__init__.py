"""
Middleware module initialization.
"""
from passbook.middleware.logging import (
    CorrelationIdMiddleware,
    RequestLoggingMiddleware,
    add_correlation_id_processor,
    configure_logging,
    get_correlation_id,
    redact_sensitive_data,
    redact_sensitive_processor,
)

__all__ = [
    "CorrelationIdMiddleware",
    "RequestLoggingMiddleware",
    "add_correlation_id_processor",
    "configure_logging",
    "get_correlation_id",
    "redact_sensitive_data",
    "redact_sensitive_processor",
]
