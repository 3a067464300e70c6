"""
Tests for Email Service.

Tests MockEmailService and the Brevo integration with httpx mocked out.
"""

import pytest
import httpx
from unittest.mock import patch, MagicMock, AsyncMock

from quotedesk.services.email_service import EmailService, MockEmailService


class TestMockEmailService:
    """Tests for MockEmailService."""

    @pytest.mark.asyncio
    async def test_mock_service_is_configured(self):
        service = MockEmailService()
        assert service.is_configured is True

    @pytest.mark.asyncio
    async def test_send_email_success(self):
        service = MockEmailService()

        result = await service.send_email(
            to="recipient@example.com",
            subject="Test Subject",
            body="Test body content",
        )

        assert result["success"] is True
        assert result["status_code"] == 201
        assert result["message_id"].startswith("mock-")

    @pytest.mark.asyncio
    async def test_send_email_with_html_and_attachment(self):
        service = MockEmailService()

        await service.send_email(
            to="recipient@example.com",
            subject="Factuur",
            body="Plain text",
            html_body="<h1>HTML Content</h1>",
            attachments=[{"name": "factuur.pdf", "content": "JVBERi0="}],
        )

        assert service.sent_emails[0]["html_body"] == "<h1>HTML Content</h1>"
        assert service.sent_emails[0]["attachments"][0]["name"] == "factuur.pdf"

    @pytest.mark.asyncio
    async def test_failure_for_listed_address(self):
        """Addresses in fail_for return a failed result and are not recorded."""
        service = MockEmailService(fail_for=["Broken@Example.com"])

        result = await service.send_email(to="broken@example.com", subject="x", body="y")

        assert result["success"] is False
        assert service.sent_emails == []

    @pytest.mark.asyncio
    async def test_send_with_copy_sends_two_mails(self):
        service = MockEmailService()

        result = await service.send_email_with_copy(
            to="client@example.com",
            copy_to="info@acme.test",
            subject="Uw offerte",
            body="Body",
        )

        assert result["success"] is True
        assert [mail["to"] for mail in service.sent_emails] == ["client@example.com", "info@acme.test"]
        assert service.sent_emails[0]["reply_to"] == "info@acme.test"
        assert service.sent_emails[1]["subject"] == "[Kopie] Uw offerte"

    @pytest.mark.asyncio
    async def test_copy_skipped_when_same_address(self):
        service = MockEmailService()

        await service.send_email_with_copy(
            to="info@acme.test", copy_to="INFO@acme.test", subject="s", body="b"
        )

        assert len(service.sent_emails) == 1

    @pytest.mark.asyncio
    async def test_failed_copy_does_not_fail_client_mail(self):
        service = MockEmailService(fail_for=["info@acme.test"])

        result = await service.send_email_with_copy(
            to="client@example.com", copy_to="info@acme.test", subject="s", body="b"
        )

        assert result["success"] is True
        assert len(service.sent_emails) == 1


class TestEmailServiceNotConfigured:
    """Tests for EmailService when Brevo is not configured."""

    @pytest.mark.asyncio
    async def test_not_configured(self):
        with patch("quotedesk.services.email_service.settings") as mock_settings:
            mock_settings.BREVO_API_KEY = None
            mock_settings.EMAIL_FROM_ADDRESS = "test@example.com"
            mock_settings.EMAIL_FROM_NAME = "Test"

            service = EmailService()
            assert service.is_configured is False

    @pytest.mark.asyncio
    async def test_send_email_not_configured(self):
        with patch("quotedesk.services.email_service.settings") as mock_settings:
            mock_settings.BREVO_API_KEY = None
            mock_settings.EMAIL_FROM_ADDRESS = "test@example.com"
            mock_settings.EMAIL_FROM_NAME = "Test"

            service = EmailService()
            result = await service.send_email(to="test@example.com", subject="Test", body="Test")

            assert result["success"] is False
            assert "not configured" in result["error"].lower()


def _brevo_service():
    with patch("quotedesk.services.email_service.settings") as mock_settings:
        mock_settings.BREVO_API_KEY = "test-api-key"
        mock_settings.EMAIL_FROM_ADDRESS = "sender@example.com"
        mock_settings.EMAIL_FROM_NAME = "Test Sender"
        return EmailService()


def _patched_client(post):
    client_class = MagicMock()
    http_client = MagicMock()
    http_client.post = post
    client_class.return_value.__aenter__.return_value = http_client
    return patch("quotedesk.services.email_service.httpx.AsyncClient", client_class), http_client


class TestEmailServiceIntegration:
    """EmailService against a mocked Brevo endpoint."""

    @pytest.mark.asyncio
    async def test_send_email_via_brevo(self):
        service = _brevo_service()
        response = MagicMock()
        response.status_code = 201
        response.json.return_value = {"messageId": "<brevo-123@smtp>"}
        client_patch, http_client = _patched_client(AsyncMock(return_value=response))

        with client_patch:
            result = await service.send_email(
                to="recipient@example.com",
                subject="Test Subject",
                body="Line one\nLine two",
                reply_to="info@acme.test",
                sender_name="Acme",
            )

        assert result == {"success": True, "status_code": 201, "message_id": "<brevo-123@smtp>"}
        payload = http_client.post.call_args.kwargs["json"]
        assert payload["to"] == [{"email": "recipient@example.com"}]
        assert payload["sender"]["name"] == "Acme"
        assert payload["replyTo"] == {"email": "info@acme.test"}
        assert "<br>" in payload["htmlContent"]
        assert http_client.post.call_args.kwargs["headers"]["api-key"] == "test-api-key"

    @pytest.mark.asyncio
    async def test_brevo_error_status(self):
        service = _brevo_service()
        response = MagicMock()
        response.status_code = 400
        response.text = "invalid sender"
        client_patch, _ = _patched_client(AsyncMock(return_value=response))

        with client_patch:
            result = await service.send_email(to="r@example.com", subject="s", body="b")

        assert result["success"] is False
        assert result["status_code"] == 400
        assert "invalid sender" in result["error"]

    @pytest.mark.asyncio
    async def test_transport_error_is_returned_not_raised(self):
        service = _brevo_service()
        client_patch, _ = _patched_client(AsyncMock(side_effect=httpx.ConnectError("connection refused")))

        with client_patch:
            result = await service.send_email(to="r@example.com", subject="s", body="b")

        assert result["success"] is False
        assert "connection refused" in result["error"]

    @pytest.mark.asyncio
    async def test_timeout(self):
        service = _brevo_service()
        client_patch, _ = _patched_client(AsyncMock(side_effect=httpx.ReadTimeout("too slow")))

        with client_patch:
            result = await service.send_email(to="r@example.com", subject="s", body="b")

        assert result["success"] is False
        assert "timed out" in result["error"]
