"""Waitlist service package exports commonly used helpers for convenience."""

from .config import Settings, get_settings
from .logging_config import configure_logging
from .rate_limit import Decision, RequestThrottle

__all__ = ["Settings", "get_settings", "configure_logging", "Decision", "RequestThrottle"]
