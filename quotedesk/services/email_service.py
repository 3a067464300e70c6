"""Email Service - Brevo transactional email integration.

Sends HTML + plain text mails (optionally with attachments) through the Brevo
REST API using httpx. Sending never raises: the result dict carries
``success`` and callers log failures without rolling back their own work.
"""

import logging
import uuid
from functools import lru_cache
from typing import Any, Dict, List, Optional

import httpx

from quotedesk.config import settings

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"


def _failure(error: str, status_code: Optional[int] = None) -> Dict[str, Any]:
    return {"success": False, "error": error, "status_code": status_code, "message_id": None}


class EmailService:
    """Service for sending emails via Brevo API."""

    def __init__(self):
        self.api_key = settings.BREVO_API_KEY
        self.from_address = settings.EMAIL_FROM_ADDRESS
        self.from_name = settings.EMAIL_FROM_NAME

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) and bool(self.from_address)

    async def send_email(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
        reply_to: Optional[str] = None,
        attachments: Optional[List[Dict[str, str]]] = None,
        sender_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send an email via Brevo API.

        Args:
            to: Recipient email address
            subject: Email subject line
            body: Plain text body
            html_body: Optional HTML body (plain text is wrapped when omitted)
            reply_to: Optional reply-to address
            attachments: Optional list of dicts with 'content' (base64) and 'name' (filename)
            sender_name: Display name, defaults to EMAIL_FROM_NAME

        Returns:
            Dict with success, status_code and message_id (or error)
        """
        if not self.api_key:
            logger.error("Brevo API key not configured")
            return _failure("Brevo API key not configured")

        payload = {
            "sender": {"name": sender_name or self.from_name, "email": self.from_address},
            "to": [{"email": to}],
            "subject": subject,
            "textContent": body,
            "htmlContent": html_body or f"<html><body><p>{body.replace(chr(10), '<br>')}</p></body></html>",
        }
        if reply_to:
            payload["replyTo"] = {"email": reply_to}
        if attachments:
            payload["attachment"] = attachments

        headers = {
            "accept": "application/json",
            "api-key": self.api_key,
            "content-type": "application/json",
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(BREVO_API_URL, json=payload, headers=headers, timeout=30.0)
        except httpx.TimeoutException:
            logger.error("Brevo API request timed out", extra={"subject": subject[:50]})
            return _failure("Brevo API request timed out")
        except httpx.HTTPError as e:
            logger.error("Failed to send email via Brevo", extra={"error": str(e)})
            return _failure(str(e))

        if response.status_code in (200, 201):
            message_id = response.json().get("messageId")
            logger.info(
                "Email sent via Brevo",
                extra={"subject": subject[:50], "status_code": response.status_code, "message_id": message_id},
            )
            return {"success": True, "status_code": response.status_code, "message_id": message_id}

        logger.error("Brevo API error", extra={"status_code": response.status_code, "error": response.text})
        return _failure(f"Brevo API error: {response.text}", response.status_code)

    async def send_email_with_copy(
        self,
        to: str,
        copy_to: Optional[str],
        subject: str,
        body: str,
        html_body: Optional[str] = None,
        attachments: Optional[List[Dict[str, str]]] = None,
        sender_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Send to the client, then an internal copy to ``copy_to``. Returns the client result."""
        result = await self.send_email(
            to, subject, body, html_body=html_body, reply_to=copy_to,
            attachments=attachments, sender_name=sender_name,
        )
        if copy_to and copy_to.lower() != to.lower():
            copy_result = await self.send_email(
                copy_to, f"[Kopie] {subject}", body, html_body=html_body,
                attachments=attachments, sender_name=sender_name,
            )
            if not copy_result.get("success"):
                logger.warning("Internal copy not delivered", extra={"error": copy_result.get("error")})
        return result


class MockEmailService(EmailService):
    """Records mails instead of sending them. Used in tests and local development.

    Addresses listed in ``fail_for`` get a failed result, to exercise the
    soft-failure paths.
    """

    def __init__(self, fail_for: Optional[List[str]] = None):
        self.api_key = "mock-key"
        self.from_address = "test@example.com"
        self.from_name = "Test Sender"
        self.fail_for = {address.lower() for address in (fail_for or [])}
        self._sent_emails: List[Dict[str, Any]] = []

    @property
    def is_configured(self) -> bool:
        return True

    @property
    def sent_emails(self) -> List[Dict[str, Any]]:
        return self._sent_emails

    async def send_email(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
        reply_to: Optional[str] = None,
        attachments: Optional[List[Dict[str, str]]] = None,
        sender_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        if to.lower() in self.fail_for:
            logger.info(f"Mock email to {to} failed on purpose")
            return _failure("Mock delivery failure", 500)

        mock_message_id = f"mock-{uuid.uuid4().hex[:16]}"
        self._sent_emails.append(
            {
                "to": to,
                "subject": subject,
                "body": body,
                "html_body": html_body,
                "reply_to": reply_to,
                "attachments": attachments or [],
                "message_id": mock_message_id,
            }
        )
        logger.info(f"Mock email sent to {to}: {subject}")
        return {"success": True, "status_code": 201, "message_id": mock_message_id}


@lru_cache()
def _default_email_service() -> EmailService:
    if settings.BREVO_API_KEY:
        return EmailService()
    logger.warning("BREVO_API_KEY not set, emails are recorded by MockEmailService only")
    return MockEmailService()


def get_email_service() -> EmailService:
    """FastAPI dependency; tests override it with a MockEmailService."""
    return _default_email_service()
