"""Email sanitization and validation helpers."""
from __future__ import annotations

import re
from typing import Any

MAX_EMAIL_LENGTH = 254
MAX_LOCAL_PART_LENGTH = 64
MAX_DOMAIN_LENGTH = 253

DISPOSABLE_DOMAINS = (
    "tempmail.com",
    "throwaway.email",
    "10minutemail.com",
    "guerrillamail.com",
)

_STRIP_CHARS = re.compile(r"[<>(){}\[\]\\/]")
_EMAIL_RE = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
)


def sanitize_email(value: Any) -> str | None:
    """Normalise raw form input into a lowercase address candidate.

    Brackets, parentheses and slashes are dropped outright and the result is
    capped at ``MAX_EMAIL_LENGTH`` characters. Returns ``None`` when nothing
    usable is left.
    """

    if not value:
        return None
    cleaned = _STRIP_CHARS.sub("", str(value).strip().lower())
    return cleaned[:MAX_EMAIL_LENGTH] or None


def is_valid_email(email: str | None) -> bool:
    """Return ``True`` when ``email`` looks deliverable and is not disposable."""

    if not email or not _EMAIL_RE.fullmatch(email):
        return False

    parts = email.split("@")
    if len(parts) != 2:
        return False
    local_part, domain = parts

    if not local_part or len(local_part) > MAX_LOCAL_PART_LENGTH:
        return False
    if local_part.startswith(".") or local_part.endswith(".") or ".." in local_part:
        return False

    if not domain or len(domain) > MAX_DOMAIN_LENGTH:
        return False
    if domain.startswith("-") or domain.endswith("-") or "." not in domain:
        return False

    return not any(disposable in domain for disposable in DISPOSABLE_DOMAINS)


def email_domain(email: str | None) -> str | None:
    """Return the domain part of an address for logging."""

    if not email or "@" not in email:
        return None
    return email.rsplit("@", 1)[1]
