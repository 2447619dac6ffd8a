"""Authentication flow with emailed two-factor codes."""

import logging
import math
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Protocol

from property_stage.domain.accounts import AccountView
from property_stage.domain.errors import (
    CodeMismatch,
    InvalidInput,
    InvalidAuthStep,
    ResendCooldownActive,
)
from property_stage.domain.verification import (
    CODE_LENGTH,
    AuthMode,
    AuthStep,
    VerificationAttempt,
)
from property_stage.services.accounts import AccountService
from property_stage.services.clock import Clock, SystemClock
from property_stage.services.sessions import SessionManager

logger = logging.getLogger(__name__)


class CodeSender(Protocol):
    """Delivers verification codes and reset notices."""

    async def send_code(self, email: str, code: str) -> None:
        """Deliver a verification code to an email address."""

    async def send_password_reset(self, email: str) -> None:
        """Deliver password reset instructions to an email address."""


def generate_code() -> str:
    """Return a random 6-digit numeric code."""
    return f"{secrets.randbelow(900000) + 100000}"


@dataclass
class AuthFlow:
    """State machine: FORM -> VERIFY_2FA -> SESSION_ESTABLISHED.

    Only the most recently issued code is valid. There is no lockout; a
    wrong code clears the entered digits and keeps the flow waiting.
    """

    accounts: AccountService
    sessions: SessionManager
    code_sender: CodeSender
    resend_cooldown_seconds: int = 30
    clock: Clock = field(default_factory=SystemClock)
    code_factory: Callable[[], str] = generate_code
    step: AuthStep = field(default=AuthStep.FORM, init=False)
    mode: AuthMode = field(default=AuthMode.LOGIN, init=False)
    attempt: VerificationAttempt | None = field(default=None, init=False)
    reset_sent: bool = field(default=False, init=False)

    @property
    def resend_remaining_seconds(self) -> int:
        if self.attempt is None:
            return 0
        remaining = (self.attempt.cooldown_until - self.clock.now()).total_seconds()
        return max(0, math.ceil(remaining))

    @property
    def pending_email(self) -> str | None:
        return self.attempt.pending_account.email if self.attempt else None

    async def submit(
        self,
        email: str,
        secret: str,
        *,
        mode: AuthMode = AuthMode.LOGIN,
        name: str | None = None,
    ) -> AuthStep:
        """Check credentials and send a verification code."""
        self._require(AuthStep.FORM)
        self.mode = mode
        if mode is AuthMode.SIGNUP:
            account = self.accounts.signup(email, name, secret)
        else:
            account = self.accounts.login(email, secret)
        await self._issue_code(account)
        self.step = AuthStep.VERIFY_2FA
        return self.step

    def enter_digit(self, index: int, value: str) -> bool:
        """Fill one code slot. A complete code is verified immediately.

        Returns True once the session is established, False while the code
        is incomplete. Non-digit input is ignored.
        """
        attempt = self._require_attempt()
        if not 0 <= index < CODE_LENGTH:
            raise InvalidInput(f"Digit index must be in [0, {CODE_LENGTH}).")
        if value and not (value.isascii() and value.isdigit()):
            return False
        attempt.entered_digits[index] = value[-1:]
        code = attempt.entered_code
        if len(code) == CODE_LENGTH:
            return self.verify(code)
        return False

    def verify(self, code: str | None = None) -> bool:
        """Compare a code with the latest issued one."""
        attempt = self._require_attempt()
        candidate = attempt.entered_code if code is None else code.strip()
        if not (
            candidate.isascii()
            and secrets.compare_digest(candidate, attempt.issued_code)
        ):
            attempt.clear_digits()
            raise CodeMismatch()
        self.sessions.establish(attempt.pending_account)
        self.attempt = None
        self.step = AuthStep.SESSION_ESTABLISHED
        return True

    async def resend(self) -> None:
        """Issue a fresh code once the cooldown has run out."""
        attempt = self._require_attempt()
        remaining = self.resend_remaining_seconds
        if remaining > 0:
            raise ResendCooldownActive(remaining)
        await self._issue_code(attempt.pending_account)

    def back(self) -> AuthStep:
        """Return to the form, dropping any pending verification."""
        if self.step not in {AuthStep.VERIFY_2FA, AuthStep.FORGOT_PASSWORD}:
            raise InvalidAuthStep()
        self.attempt = None
        self.reset_sent = False
        self.step = AuthStep.FORM
        return self.step

    def forgot_password(self) -> AuthStep:
        self._require(AuthStep.FORM)
        self.reset_sent = False
        self.step = AuthStep.FORGOT_PASSWORD
        return self.step

    async def request_password_reset(self, email: str) -> None:
        """Send reset instructions. Unknown addresses are not revealed."""
        self._require(AuthStep.FORGOT_PASSWORD)
        if self.accounts.get_by_email(email) is not None:
            await self.code_sender.send_password_reset(email.strip().lower())
        else:
            logger.info("Password reset requested for an unknown address")
        self.reset_sent = True

    def reset(self) -> None:
        """Close the flow and start over at the form."""
        self.attempt = None
        self.reset_sent = False
        self.mode = AuthMode.LOGIN
        self.step = AuthStep.FORM

    async def _issue_code(self, account: AccountView) -> None:
        code = self.code_factory()
        await self.code_sender.send_code(account.email, code)
        self.attempt = VerificationAttempt(
            pending_account=account,
            issued_code=code,
            cooldown_until=self.clock.now() + timedelta(seconds=self.resend_cooldown_seconds),
        )

    def _require(self, step: AuthStep) -> None:
        if self.step is not step:
            raise InvalidAuthStep()

    def _require_attempt(self) -> VerificationAttempt:
        if self.step is not AuthStep.VERIFY_2FA or self.attempt is None:
            raise InvalidAuthStep()
        return self.attempt
