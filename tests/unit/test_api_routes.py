"""
Unit tests for API v1 routes.

Tests endpoint responses with mocked or in-memory dependencies.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.repository.memory import InMemoryTokenStore
from src.api.dependencies import get_notification_sender, get_verification_service
from src.api.main import app as main_app
from src.api.v1.routes import router
from src.config.settings import Settings, get_settings
from src.domain.exceptions import InvalidEmail, SendFailure, StoreUnavailable
from src.domain.ports import Outcome
from src.domain.verification import VerificationService


def make_settings(**overrides) -> Settings:
    values = {"verification_window_seconds": 300}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    """Create test FastAPI application."""
    test_app = FastAPI()
    test_app.include_router(router, prefix="/v1")
    test_app.state.pool = MagicMock()
    test_app.dependency_overrides[get_settings] = lambda: settings
    return test_app


@pytest.fixture
def mock_service(app: FastAPI) -> MagicMock:
    """Replace the verification service with a mock."""
    service = MagicMock(spec=VerificationService)
    service.submit = AsyncMock(return_value="token-123")
    service.verify = AsyncMock()
    app.dependency_overrides[get_verification_service] = lambda: service
    return service


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def live_sender() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def live_client(app: FastAPI, live_sender: AsyncMock) -> TestClient:
    """Client backed by a real service over the in-memory store."""
    service = VerificationService(
        store=InMemoryTokenStore(),
        sender=live_sender,
        window=timedelta(seconds=300),
    )
    app.dependency_overrides[get_verification_service] = lambda: service
    return TestClient(app)


class TestSubmitEndpoint:
    """Tests for POST /v1/verification/submit."""

    def test_submit_returns_202(self, client: TestClient, mock_service: MagicMock) -> None:
        response = client.post("/v1/verification/submit", json={"email": "user@example.com"})

        assert response.status_code == 202
        assert response.json() == {
            "message": "Verification email sent successfully. Please check your inbox.",
            "email": "user@example.com",
            "expires_in_seconds": 300,
        }
        mock_service.submit.assert_awaited_once_with("user@example.com", "http://testserver")

    def test_submit_does_not_return_token(
        self, client: TestClient, mock_service: MagicMock
    ) -> None:
        response = client.post("/v1/verification/submit", json={"email": "user@example.com"})
        assert "token-123" not in response.text

    @pytest.mark.parametrize("body", [{"email": "invalid-email"}, {}, {"email": ""}])
    def test_submit_validates_email(
        self, client: TestClient, mock_service: MagicMock, body: dict
    ) -> None:
        response = client.post("/v1/verification/submit", json=body)

        assert response.status_code == 422
        mock_service.submit.assert_not_called()

    def test_domain_rejection_returns_400(
        self, client: TestClient, mock_service: MagicMock
    ) -> None:
        mock_service.submit.side_effect = InvalidEmail("user@example.com", "bad domain")

        response = client.post("/v1/verification/submit", json={"email": "user@example.com"})

        assert response.status_code == 400
        assert response.json() == {"detail": "bad domain"}

    def test_store_unavailable_returns_503(
        self, client: TestClient, mock_service: MagicMock
    ) -> None:
        mock_service.submit.side_effect = StoreUnavailable("put", "token-123")

        response = client.post("/v1/verification/submit", json={"email": "user@example.com"})

        assert response.status_code == 503
        assert response.json() == {"detail": "Service temporarily unavailable"}

    def test_send_failure_returns_502(self, client: TestClient, mock_service: MagicMock) -> None:
        """Provider details stay out of the response body."""
        mock_service.submit.side_effect = SendFailure(
            "user@example.com", "SMTPSenderRefused", retryable=False
        )

        response = client.post("/v1/verification/submit", json={"email": "user@example.com"})

        assert response.status_code == 502
        assert response.json() == {"detail": "Verification email could not be sent"}
        assert "SMTPSenderRefused" not in response.text


class TestVerifyEndpoint:
    """Tests for GET /v1/verification/verify/{token}."""

    @pytest.mark.parametrize(
        ("outcome", "status"),
        [
            (Outcome.success("user@example.com"), "success"),
            (Outcome.already_verified("user@example.com"), "already-verified"),
            (Outcome.expired("user@example.com"), "expired"),
        ],
    )
    def test_outcomes_with_email(
        self, client: TestClient, mock_service: MagicMock, outcome: Outcome, status: str
    ) -> None:
        """Every outcome is a 200, never a server error."""
        mock_service.verify.return_value = outcome

        response = client.get("/v1/verification/verify/abc")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == status
        assert body["email"] == "user@example.com"
        assert body["message"]
        mock_service.verify.assert_awaited_once_with("abc")

    def test_invalid_token(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.verify.return_value = Outcome.invalid_token()

        response = client.get("/v1/verification/verify/does-not-exist")

        assert response.status_code == 200
        assert response.json() == {
            "status": "invalid",
            "message": "Invalid verification token. The token may have expired or does not exist.",
            "email": None,
        }

    def test_store_unavailable_returns_503(
        self, client: TestClient, mock_service: MagicMock
    ) -> None:
        mock_service.verify.side_effect = StoreUnavailable("get", "abc")

        response = client.get("/v1/verification/verify/abc")

        assert response.status_code == 503

    def test_redirects_when_result_page_configured(
        self, app: FastAPI, mock_service: MagicMock
    ) -> None:
        settings = make_settings(result_page_url="https://site.example.com/verification-result.html")
        app.dependency_overrides[get_settings] = lambda: settings
        mock_service.verify.return_value = Outcome.expired("user@example.com")
        client = TestClient(app)

        response = client.get("/v1/verification/verify/abc", follow_redirects=False)

        assert response.status_code == 303
        location = urlsplit(response.headers["location"])
        assert location.netloc == "site.example.com"
        assert location.path == "/verification-result.html"
        query = parse_qs(location.query)
        assert query["status"] == ["expired"]
        assert query["email"] == ["user@example.com"]
        assert query["token"] == ["abc"]
        assert "expired" in query["message"][0]

    def test_redirect_omits_email_for_invalid_token(
        self, app: FastAPI, mock_service: MagicMock
    ) -> None:
        settings = make_settings(result_page_url="https://site.example.com/result")
        app.dependency_overrides[get_settings] = lambda: settings
        mock_service.verify.return_value = Outcome.invalid_token()
        client = TestClient(app)

        response = client.get("/v1/verification/verify/nope", follow_redirects=False)

        query = parse_qs(urlsplit(response.headers["location"]).query)
        assert query["status"] == ["invalid"]
        assert "email" not in query


class TestSubmitVerifyFlow:
    """End-to-end over HTTP with the in-memory store."""

    def test_submit_then_verify_twice(
        self, live_client: TestClient, live_sender: AsyncMock
    ) -> None:
        response = live_client.post(
            "/v1/verification/submit", json={"email": "user@example.com"}
        )
        assert response.status_code == 202

        email, link = live_sender.send.call_args[0]
        assert email == "user@example.com"
        assert link.startswith("http://testserver/v1/verification/verify/")
        path = urlsplit(link).path

        first = live_client.get(path)
        second = live_client.get(path)

        assert first.json()["status"] == "success"
        assert first.json()["email"] == "user@example.com"
        assert second.json()["status"] == "already-verified"


class TestNotificationSenderSelection:
    """Tests for get_notification_sender."""

    def test_console_by_default(self) -> None:
        from src.adapters.smtp.console import ConsoleNotificationSender

        sender = get_notification_sender(make_settings())
        assert isinstance(sender, ConsoleNotificationSender)

    def test_smtp_when_configured(self) -> None:
        from src.adapters.smtp.smtp import SmtpNotificationSender

        sender = get_notification_sender(make_settings(email_backend="smtp"))
        assert isinstance(sender, SmtpNotificationSender)


class TestHealthEndpoint:
    """Tests for GET /health on the main application."""

    def test_healthy(self) -> None:
        service = MagicMock(spec=VerificationService)
        service.health_check = AsyncMock(return_value=True)
        main_app.dependency_overrides[get_verification_service] = lambda: service
        try:
            response = TestClient(main_app).get("/health")
            assert response.status_code == 200
            assert response.json() == {"status": "healthy"}
        finally:
            main_app.dependency_overrides.clear()

    def test_store_down_returns_503(self) -> None:
        service = MagicMock(spec=VerificationService)
        service.health_check = AsyncMock(side_effect=StoreUnavailable("ping"))
        main_app.dependency_overrides[get_verification_service] = lambda: service
        try:
            response = TestClient(main_app).get("/health")
            assert response.status_code == 503
        finally:
            main_app.dependency_overrides.clear()

    def test_unhealthy_result_returns_503(self) -> None:
        service = MagicMock(spec=VerificationService)
        service.health_check = AsyncMock(return_value=False)
        main_app.dependency_overrides[get_verification_service] = lambda: service
        try:
            response = TestClient(main_app).get("/health")
            assert response.status_code == 503
            assert response.json() == {"detail": "Database unavailable"}
        finally:
            main_app.dependency_overrides.clear()
