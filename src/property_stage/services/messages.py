"""Turns errors into user-readable messages, depending on who is looking."""

from dataclasses import dataclass
from enum import StrEnum

from property_stage.domain.accounts import AccountView
from property_stage.domain.errors import NoImageReturned, StagingError, TransientFailure

GENERIC_RETRY_MESSAGE = "Something went wrong while staging your photo. Please try again."

_TECHNICAL_ERRORS = (NoImageReturned, TransientFailure)


class ViewerRole(StrEnum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class UserMessage:
    """A message safe to show to the viewer."""

    code: str
    message: str


def role_for(viewer: AccountView | None) -> ViewerRole:
    return ViewerRole.ADMIN if viewer is not None and viewer.is_admin else ViewerRole.USER


def sanitize(error: BaseException, viewer_role: ViewerRole) -> UserMessage:
    """Return the message for ``error`` that ``viewer_role`` may see.

    Administrators get the raw detail appended. Everyone else gets a generic
    retry prompt for technical failures and unexpected exceptions.
    """
    is_admin = viewer_role is ViewerRole.ADMIN
    if not isinstance(error, StagingError):
        if is_admin:
            raw = f"{type(error).__name__}: {error}"
            return UserMessage("UnexpectedError", f"{GENERIC_RETRY_MESSAGE} ({raw})")
        return UserMessage("UnexpectedError", GENERIC_RETRY_MESSAGE)

    code = type(error).__name__
    if isinstance(error, _TECHNICAL_ERRORS) and not is_admin:
        return UserMessage(code, GENERIC_RETRY_MESSAGE)
    if is_admin and error.detail:
        return UserMessage(code, f"{error.message} ({error.detail})")
    return UserMessage(code, error.message)
