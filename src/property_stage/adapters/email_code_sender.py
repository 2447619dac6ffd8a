"""Verification code delivery."""

import logging
from dataclasses import dataclass

import httpx

from property_stage.services.verification import CodeSender

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


@dataclass
class LoggingCodeSender(CodeSender):
    """Simulated email: writes codes to the application log."""

    async def send_code(self, email: str, code: str) -> None:
        logger.info("[SECURITY] 2FA code for %s: %s", email, code)

    async def send_password_reset(self, email: str) -> None:
        logger.info("Password reset link requested for %s", email)


@dataclass
class ResendCodeSender(CodeSender):
    """Sends codes through the Resend email API with httpx."""

    api_key: str
    from_email: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str, from_email: str) -> "ResendCodeSender":
        """Create a sender with a managed httpx session."""
        return cls(api_key=api_key, from_email=from_email, http_client=httpx.AsyncClient())

    async def send_code(self, email: str, code: str) -> None:
        """Email a verification code."""
        await self._send(
            email,
            subject=f"Your Property Stage verification code: {code}",
            html=(
                "<p>Your 6-digit security code is:</p>"
                f"<p style=\"font-size:28px;letter-spacing:6px\"><b>{code}</b></p>"
                "<p>Do not share this code with anyone.</p>"
            ),
        )

    async def send_password_reset(self, email: str) -> None:
        """Email password reset instructions."""
        await self._send(
            email,
            subject="Reset your Property Stage password",
            html="<p>Follow the instructions in the app to choose a new password.</p>",
        )

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    async def _send(self, email: str, subject: str, html: str) -> None:
        payload = {"from": self.from_email, "to": [email], "subject": subject, "html": html}
        response = await self.http_client.post(
            RESEND_API_URL,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=10,
        )
        response.raise_for_status()
