"""Brevo (contacts + transactional email) REST API client."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from requests import Response

from app.config import Settings

LOGGER = logging.getLogger(__name__)

DUPLICATE_CODE = "duplicate_parameter"
DUPLICATE_MESSAGES = ("contact already exist", "already exists")


class BrevoError(RuntimeError):
    """Raised when the Brevo API cannot complete a request."""

    def __init__(self, message: str, *, status: Optional[int] = None, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.code = code


class BrevoAuthError(BrevoError):
    """Raised when Brevo rejects the configured API key."""


class DuplicateContactError(BrevoError):
    """Raised when the contact is already present in Brevo."""


class BrevoClient:
    """Small HTTP client for creating contacts and sending transactional mail."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "api-key": settings.brevo_api_key,
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )
        if not settings.brevo_api_key:
            LOGGER.warning("BREVO_API_KEY is not set; upstream calls will be rejected")

    def create_contact(self, email: str) -> Dict[str, Any]:
        """Add ``email`` to the waitlist contact list, rejecting duplicates."""

        payload = {
            "email": email,
            "listIds": [self._settings.brevo_list_id],
            "updateEnabled": False,
        }
        return self._post("/contacts", payload)

    def send_transactional_email(self, *, to: str, subject: str, html_content: str) -> Dict[str, Any]:
        """Send a single HTML email from the configured sender."""

        payload = {
            "sender": {
                "name": self._settings.sender_name,
                "email": self._settings.sender_email,
            },
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html_content,
        }
        return self._post("/smtp/email", payload)

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self._settings.brevo_base_url}{path}"
        try:
            response = self._session.post(
                url, json=payload, timeout=self._settings.request_timeout_seconds
            )
        except requests.RequestException as exc:
            LOGGER.error("brevo request failed", extra={"error_code": type(exc).__name__})
            raise BrevoError(f"Unable to reach Brevo: {type(exc).__name__}") from exc
        self._raise_for_status(response)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    def _raise_for_status(self, response: Response) -> None:
        """Raise descriptive errors for Brevo responses."""

        if response.ok:
            return
        status = response.status_code
        body = _error_body(response)
        code = body.get("code")
        message = str(body.get("message") or "")

        if code == DUPLICATE_CODE or any(m in message.lower() for m in DUPLICATE_MESSAGES):
            raise DuplicateContactError("Contact already exists.", status=status, code=code)

        LOGGER.error(
            "brevo request failed",
            extra={"status": status, "error_code": code},
        )
        if status == 401:
            raise BrevoAuthError("Unauthorized: verify BREVO_API_KEY.", status=status, code=code)
        raise BrevoError(f"Brevo error ({status}).", status=status, code=code)


def _error_body(response: Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
