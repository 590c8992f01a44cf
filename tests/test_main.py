from __future__ import annotations

from fastapi.testclient import TestClient
import pytest

from app.clients.brevo import BrevoAuthError, BrevoError, DuplicateContactError
from app.rate_limit import RequestThrottle
from main import app, get_client, get_throttle


class FakeClock:
    def __init__(self, start: int = 0) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now


class FakeBrevoClient:
    def __init__(self) -> None:
        self.contacts = []
        self.emails = []
        self.create_error: Exception | None = None
        self.send_error: Exception | None = None

    def create_contact(self, email):  # noqa: D401
        """Record the contact or raise the preset error."""

        if self.create_error:
            raise self.create_error
        self.contacts.append(email)
        return {"id": len(self.contacts)}

    def send_transactional_email(self, *, to, subject, html_content):  # noqa: D401
        """Record the outgoing email or raise the preset error."""

        if self.send_error:
            raise self.send_error
        self.emails.append({"to": to, "subject": subject, "html": html_content})
        return {"messageId": "<fake>"}


@pytest.fixture()
def api_client():
    fake = FakeBrevoClient()
    clock = FakeClock()
    throttle = RequestThrottle(3, 60_000, 0.0, clock=clock)
    app.dependency_overrides[get_client] = lambda: fake
    app.dependency_overrides[get_throttle] = lambda: throttle
    client = TestClient(app)
    try:
        yield client, fake, clock
    finally:
        app.dependency_overrides.pop(get_client, None)
        app.dependency_overrides.pop(get_throttle, None)


def test_valid_signup_creates_contact_and_sends_email(api_client):
    client, fake, _ = api_client

    response = client.post("/api/waitlist", json={"email": "  Jane.Doe@Example.COM "})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Successfully added to waitlist!"}
    assert fake.contacts == ["jane.doe@example.com"]
    assert fake.emails[0]["to"] == "jane.doe@example.com"
    assert fake.emails[0]["subject"] == "Welcome to Deepfold Waitlist!"
    assert "jane.doe@example.com" in fake.emails[0]["html"]


def test_missing_email_is_rejected(api_client):
    client, fake, _ = api_client

    response = client.post("/api/waitlist", json={})

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Email address is required"}
    assert fake.contacts == []


def test_missing_body_is_treated_as_missing_email(api_client):
    client, _, _ = api_client

    response = client.post("/api/waitlist")

    assert response.status_code == 400
    assert response.json()["message"] == "Email address is required"


def test_malformed_email_never_reaches_upstream(api_client):
    client, fake, _ = api_client

    response = client.post("/api/waitlist", json={"email": "not-an-email"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Please enter a valid email address"}
    assert fake.contacts == []
    assert fake.emails == []


def test_disposable_domain_is_rejected(api_client):
    client, fake, _ = api_client

    response = client.post("/api/waitlist", json={"email": "someone@tempmail.com"})

    assert response.status_code == 400
    assert fake.contacts == []


def test_non_object_body_returns_json_envelope(api_client):
    client, _, _ = api_client

    response = client.post("/api/waitlist", json=["a@example.com"])

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid request body"}


def test_fourth_request_in_window_is_throttled(api_client):
    client, fake, clock = api_client
    for offset in (0, 10_000, 20_000):
        clock.now = offset
        assert client.post("/api/waitlist", json={"email": f"u{offset}@example.com"}).status_code == 200

    clock.now = 30_000
    response = client.post("/api/waitlist", json={"email": "late@example.com"})

    assert response.status_code == 429
    assert response.json() == {
        "success": False,
        "message": "Too many requests. Please try again in a minute.",
    }
    assert "late@example.com" not in fake.contacts


def test_invalid_submissions_consume_quota(api_client):
    client, fake, _ = api_client
    for _ in range(3):
        assert client.post("/api/waitlist", json={"email": "not-an-email"}).status_code == 400

    response = client.post("/api/waitlist", json={"email": "valid@example.com"})

    assert response.status_code == 429
    assert fake.contacts == []


def test_trailing_newline_address_is_rejected(api_client):
    client, fake, _ = api_client

    response = client.post("/api/waitlist", json={"email": "a@example.com\n/"})

    assert response.status_code == 400
    assert response.json()["message"] == "Please enter a valid email address"
    assert fake.contacts == []


@pytest.mark.parametrize("value", [0, False])
def test_falsy_email_values_are_treated_as_missing(api_client, value):
    client, fake, _ = api_client

    response = client.post("/api/waitlist", json={"email": value})

    assert response.status_code == 400
    assert response.json()["message"] == "Email address is required"
    assert fake.contacts == []


def test_non_object_bodies_consume_quota(api_client):
    client, fake, _ = api_client
    for _ in range(3):
        assert client.post("/api/waitlist", json=["a@example.com"]).status_code == 400

    response = client.post("/api/waitlist", json={"email": "valid@example.com"})

    assert response.status_code == 429
    assert fake.contacts == []



def test_malformed_email_is_400_even_when_throttle_has_room(api_client):
    client, _, clock = api_client
    clock.now = 120_000

    response = client.post("/api/waitlist", json={"email": "still not valid"})

    assert response.status_code == 400


def test_duplicate_contact_returns_400(api_client):
    client, fake, _ = api_client
    fake.create_error = DuplicateContactError("Contact already exists.", status=400)

    response = client.post("/api/waitlist", json={"email": "dup@example.com"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "This email is already on the waitlist!"}
    assert fake.emails == []


def test_upstream_auth_failure_hides_details(api_client):
    client, fake, _ = api_client
    fake.create_error = BrevoAuthError("Unauthorized: verify BREVO_API_KEY.", status=401)

    response = client.post("/api/waitlist", json={"email": "a@example.com"})

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "Configuration error. Please try again later.",
    }


def test_email_send_failure_returns_generic_error(api_client):
    client, fake, _ = api_client
    fake.send_error = BrevoError("Brevo error (502).", status=502)

    response = client.post("/api/waitlist", json={"email": "a@example.com"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Something went wrong. Please try again."}


def test_unexpected_error_returns_generic_error(api_client):
    client, fake, _ = api_client
    fake.create_error = ValueError("boom")

    response = client.post("/api/waitlist", json={"email": "a@example.com"})

    assert response.status_code == 500
    assert "boom" not in response.text


def test_health_is_not_throttled(api_client):
    client, _, _ = api_client

    for _ in range(5):
        assert client.get("/health").json() == {"status": "ok"}


def test_unknown_route_uses_json_envelope(api_client):
    client, _, _ = api_client

    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json()["success"] is False
