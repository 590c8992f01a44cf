"""Confirmation email rendering."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from fastapi.templating import Jinja2Templates

WELCOME_SUBJECT = "Welcome to Deepfold Waitlist!"
WELCOME_TEMPLATE = "welcome_email.html"

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render_welcome_email(email: str, *, brand: str = "Deepfold") -> str:
    """Render the HTML body of the waitlist confirmation email."""

    template = templates.get_template(WELCOME_TEMPLATE)
    return template.render(
        email=email,
        brand=brand,
        year=datetime.now(timezone.utc).year,
    )
