"""FastAPI application that collects waitlist signups."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.clients.brevo import BrevoAuthError, BrevoClient, BrevoError, DuplicateContactError
from app.config import Settings, get_settings
from app.emails import WELCOME_SUBJECT, render_welcome_email
from app.logging_config import configure_logging
from app.rate_limit import RequestThrottle, resolve_client_id
from app.utils import email_domain, is_valid_email, sanitize_email

configure_logging()
LOGGER = logging.getLogger(__name__)

MSG_SUCCESS = "Successfully added to waitlist!"
MSG_REQUIRED = "Email address is required"
MSG_INVALID = "Please enter a valid email address"
MSG_DUPLICATE = "This email is already on the waitlist!"
MSG_BAD_BODY = "Invalid request body"
MSG_RATE_LIMITED = "Too many requests. Please try again in a minute."
MSG_CONFIGURATION = "Configuration error. Please try again later."
MSG_GENERIC = "Something went wrong. Please try again."


router = APIRouter()


class WaitlistRequest(BaseModel):
    email: Optional[Any] = None


def create_app(settings: Settings) -> FastAPI:
    """Build the application with its throttle and upstream client."""

    application = FastAPI(title="Waitlist Signup Service")
    application.state.settings = settings
    application.state.throttle = RequestThrottle(
        settings.rate_limit_requests,
        settings.rate_limit_window_ms,
        settings.rate_limit_sweep_probability,
    )
    application.state.client = BrevoClient(settings)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.include_router(router)

    if Path(settings.static_dir).is_dir():
        application.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    return application


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "message": MSG_BAD_BODY})


def get_throttle(request: Request) -> RequestThrottle:
    """Provide the throttle owned by the running application."""

    return request.app.state.throttle


def get_client(request: Request) -> BrevoClient:
    """Provide a configured Brevo client."""

    return request.app.state.client


def enforce_rate_limit(request: Request, throttle: RequestThrottle = Depends(get_throttle)) -> str:
    """Reject the request with 429 when its client is over quota."""

    client_ip = resolve_client_id(request)
    if not throttle.admit(client_ip):
        LOGGER.warning("waitlist submission throttled", extra={"client_ip": client_ip})
        raise HTTPException(status_code=429, detail=MSG_RATE_LIMITED)
    return client_ip


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.post("/api/waitlist")
def join_waitlist(
    body: Optional[WaitlistRequest] = None,
    client_ip: str = Depends(enforce_rate_limit),
    brevo: BrevoClient = Depends(get_client),
) -> dict:
    """Register an address with Brevo and send the confirmation email."""

    email = sanitize_email(body.email if body else None)
    if not email:
        raise HTTPException(status_code=400, detail=MSG_REQUIRED)
    if not is_valid_email(email):
        LOGGER.info("rejected invalid email", extra={"client_ip": client_ip})
        raise HTTPException(status_code=400, detail=MSG_INVALID)

    log_extra = {"client_ip": client_ip, "email_domain": email_domain(email)}
    try:
        brevo.create_contact(email)
        brevo.send_transactional_email(
            to=email,
            subject=WELCOME_SUBJECT,
            html_content=render_welcome_email(email),
        )
    except DuplicateContactError as exc:
        LOGGER.info("duplicate waitlist signup", extra=log_extra)
        raise HTTPException(status_code=400, detail=MSG_DUPLICATE) from exc
    except BrevoAuthError as exc:
        LOGGER.error("brevo rejected credentials", extra={**log_extra, "status": exc.status})
        raise HTTPException(status_code=500, detail=MSG_CONFIGURATION) from exc
    except BrevoError as exc:
        LOGGER.warning("brevo error", extra={**log_extra, "status": exc.status, "error_code": exc.code})
        raise HTTPException(status_code=500, detail=MSG_GENERIC) from exc
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Failed to register waitlist signup", extra=log_extra)
        raise HTTPException(status_code=500, detail=MSG_GENERIC) from exc

    LOGGER.info("waitlist signup registered", extra=log_extra)
    return {"success": True, "message": MSG_SUCCESS}


settings = get_settings()
app = create_app(settings)


def run() -> None:
    """Serve the application with uvicorn."""

    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
