"""Error taxonomy for the staging app.

Every error carries a short user-facing ``message``. ``detail`` holds the raw
underlying error text, which only administrators get to see.
"""


class StagingError(Exception):
    """Base class for expected, recoverable errors."""

    message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)


class AuthError(StagingError):
    message = "Authentication failed."


class AccountNotFound(AuthError):
    message = "Account not found. Please sign up."


class WrongSecret(AuthError):
    message = "Incorrect password. Please try again."


class DuplicateEmail(AuthError):
    message = "Email already registered. Try logging in."


class NotSignedIn(AuthError):
    message = "Please log in to continue."


class VerificationError(StagingError):
    message = "Verification failed."


class CodeMismatch(VerificationError):
    message = "Invalid verification code. Please try again."


class ResendCooldownActive(VerificationError):
    message = "Please wait before requesting a new code."

    def __init__(self, remaining_seconds: int) -> None:
        super().__init__(f"You can request a new code in {remaining_seconds}s.")
        self.remaining_seconds = remaining_seconds


class InvalidAuthStep(VerificationError):
    message = "That action is not available right now."


class CreditExhausted(StagingError):
    message = "You've run out of credits. Please upgrade to continue staging."


class GenerationError(StagingError):
    message = "Transformation failed. Please try again."


class NoImageReturned(GenerationError):
    message = "The AI model returned text instead of an image. Please try a different style."


class ServiceRefused(GenerationError):
    message = (
        "The image service declined this request. "
        "Please try a different photo or style."
    )


class TransientFailure(GenerationError):
    message = "The image service is temporarily unavailable. Please try again."


class MissingOrInvalidCredential(GenerationError):
    message = (
        "Your API key is missing or invalid. "
        "Please select a valid key and try again."
    )


class GenerationInProgress(GenerationError):
    message = "A generation is already running. Please wait for it to finish."


class NoSourceImage(GenerationError):
    message = "Upload a property photo first."


class InvalidInput(StagingError, ValueError):
    """A request value was checked and rejected; the message names the value."""

    message = "That request is not valid."
