"""Domain models for the two-factor verification flow."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from property_stage.domain.accounts import AccountView

CODE_LENGTH = 6


class AuthStep(StrEnum):
    """States of the authentication flow."""

    FORM = "FORM"
    VERIFY_2FA = "VERIFY_2FA"
    FORGOT_PASSWORD = "FORGOT_PASSWORD"
    SESSION_ESTABLISHED = "SESSION_ESTABLISHED"


class AuthMode(StrEnum):
    """Which form the user submitted."""

    LOGIN = "LOGIN"
    SIGNUP = "SIGNUP"


def _empty_digits() -> list[str]:
    return [""] * CODE_LENGTH


@dataclass
class VerificationAttempt:
    """Transient state while a code is outstanding. Never persisted."""

    pending_account: AccountView
    issued_code: str
    cooldown_until: datetime
    entered_digits: list[str] = field(default_factory=_empty_digits)

    @property
    def entered_code(self) -> str:
        return "".join(self.entered_digits)

    def clear_digits(self) -> None:
        self.entered_digits = _empty_digits()
