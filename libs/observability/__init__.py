"""Utilities shared across services to standardise observability."""

from .logging import RequestContextMiddleware, configure_logging, token_hint
from .metrics import record_token_event, setup_metrics

__all__ = [
    "RequestContextMiddleware",
    "configure_logging",
    "record_token_event",
    "setup_metrics",
    "token_hint",
]
