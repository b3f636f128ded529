"""Observability infrastructure: structured logging with structlog.

Usage:
    from time_guard.infrastructure.observability import configure_structlog

    configure_structlog(environment="production")
"""

from time_guard.infrastructure.observability.logging import (
    configure_structlog,
    service_name_processor,
)

__all__: list[str] = [
    "configure_structlog",
    "service_name_processor",
]
