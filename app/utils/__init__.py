"""Utility helpers."""
from .email import email_domain, is_valid_email, sanitize_email  # noqa: F401
from .time import epoch_millis, seconds_to_millis  # noqa: F401
