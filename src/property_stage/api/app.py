"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from property_stage.api.admin import router as admin_router
from property_stage.api.models import (
    CodeBody,
    CredentialsBody,
    DigitBody,
    EmailBody,
    OptionsBody,
    PlanBody,
    ProfileImageBody,
    RefineBody,
    SourceBody,
)
from property_stage.app_logging import configure_logging
from property_stage.containers import AppContainer
from property_stage.domain.errors import (
    AuthError,
    CreditExhausted,
    DuplicateEmail,
    GenerationError,
    GenerationInProgress,
    InvalidAuthStep,
    InvalidInput,
    NoSourceImage,
    NotSignedIn,
    ResendCooldownActive,
    StagingError,
    VerificationError,
)
from property_stage.domain.generation import (
    AUTO_ASPECT_RATIO,
    SUPPORTED_ASPECT_RATIOS,
    GenerationResult,
    Resolution,
)
from property_stage.domain.verification import AuthMode
from property_stage.services.generation import QUICK_FEEDBACK, ROOM_TYPES, STYLES
from property_stage.services.messages import role_for, sanitize

_ERROR_STATUS: tuple[tuple[type[StagingError], int], ...] = (
    (InvalidInput, 422),
    (DuplicateEmail, status.HTTP_409_CONFLICT),
    (GenerationInProgress, status.HTTP_409_CONFLICT),
    (InvalidAuthStep, status.HTTP_409_CONFLICT),
    (ResendCooldownActive, status.HTTP_429_TOO_MANY_REQUESTS),
    (NotSignedIn, status.HTTP_401_UNAUTHORIZED),
    (AuthError, status.HTTP_401_UNAUTHORIZED),
    (VerificationError, status.HTTP_400_BAD_REQUEST),
    (CreditExhausted, status.HTTP_402_PAYMENT_REQUIRED),
    (NoSourceImage, status.HTTP_400_BAD_REQUEST),
    (GenerationError, status.HTTP_502_BAD_GATEWAY),
)


def status_for(error: StagingError) -> int:
    """Return the HTTP status code for an error; the first match wins."""
    for error_type, code in _ERROR_STATUS:
        if isinstance(error, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(StagingError)
    async def staging_error_handler(request: Request, exc: StagingError) -> JSONResponse:
        state_container: AppContainer = request.app.state.container
        message = sanitize(exc, role_for(state_container.session_manager.current))
        return JSONResponse(
            status_code=status_for(exc),
            content={"error": message.message, "code": message.code},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        state_container: AppContainer = request.app.state.container
        message = sanitize(exc, role_for(state_container.session_manager.current))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": message.message, "code": message.code},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    # Authentication

    @app.post("/auth/login")
    async def login(body: CredentialsBody, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        await state_container.auth_flow.submit(body.email, body.password)
        return _auth_state(state_container)

    @app.post("/auth/signup")
    async def signup(body: CredentialsBody, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        await state_container.auth_flow.submit(
            body.email, body.password, mode=AuthMode.SIGNUP, name=body.name
        )
        return _auth_state(state_container)

    @app.post("/auth/verify/digit")
    async def verify_digit(body: DigitBody, request: Request) -> dict[str, object]:
        """Fill one code slot; a complete code is checked right away."""
        state_container: AppContainer = request.app.state.container
        verified = state_container.auth_flow.enter_digit(body.index, body.value)
        return {"verified": verified, **_auth_state(state_container)}

    @app.post("/auth/verify")
    async def verify(body: CodeBody, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        verified = state_container.auth_flow.verify(body.code)
        return {"verified": verified, **_auth_state(state_container)}

    @app.post("/auth/resend")
    async def resend(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        await state_container.auth_flow.resend()
        return _auth_state(state_container)

    @app.post("/auth/back")
    async def back(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.auth_flow.back()
        return _auth_state(state_container)

    @app.post("/auth/forgot")
    async def forgot(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.auth_flow.forgot_password()
        return _auth_state(state_container)

    @app.post("/auth/reset")
    async def request_reset(body: EmailBody, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        await state_container.auth_flow.request_password_reset(body.email)
        return _auth_state(state_container)

    @app.get("/auth/state")
    async def auth_state(request: Request) -> dict[str, object]:
        return _auth_state(request.app.state.container)

    @app.post("/auth/logout")
    async def logout(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.session_manager.logout()
        state_container.auth_flow.reset()
        state_container.workspace.clear()
        return _auth_state(state_container)

    # Account

    @app.get("/account")
    async def account(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        return state_container.session_manager.require_current().to_dict()

    @app.post("/account/profile-image")
    async def profile_image(body: ProfileImageBody, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        return state_container.session_manager.update_profile_image(body.image).to_dict()

    @app.post("/account/plan")
    async def change_plan(body: PlanBody, request: Request) -> dict[str, object]:
        """Apply a completed checkout to the signed-in account."""
        state_container: AppContainer = request.app.state.container
        current = state_container.session_manager.require_current()
        credits = body.credits
        if credits is None:
            credits = state_container.plan_credits[body.plan]
        view = state_container.credit_ledger.set_balance(current.id, body.plan, credits)
        return view.to_dict()

    # Studio

    @app.post("/studio/source")
    async def select_source(body: SourceBody, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.session_manager.require_current()
        state_container.workspace.select_source(body.image)
        return _studio_state(state_container)

    @app.post("/studio/generate")
    async def generate(body: OptionsBody, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        await state_container.workspace.generate(body.to_options())
        return _studio_state(state_container)

    @app.post("/studio/refine")
    async def refine(body: RefineBody, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        await state_container.workspace.refine(body.instruction, body.to_options())
        return _studio_state(state_container)

    @app.post("/studio/undo")
    async def undo(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.workspace.undo()
        return _studio_state(state_container)

    @app.post("/studio/redo")
    async def redo(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.workspace.redo()
        return _studio_state(state_container)

    @app.post("/studio/discard")
    async def discard(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        state_container.workspace.discard()
        return _studio_state(state_container)

    @app.get("/studio")
    async def studio(request: Request) -> dict[str, object]:
        return _studio_state(request.app.state.container)

    @app.get("/studio/history")
    async def history(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        current = state_container.session_manager.require_current()
        entries = state_container.history_service.list_entries(current.id)
        return {"entries": [entry.to_dict() for entry in entries]}

    @app.post("/studio/history/{entry_id}/open")
    async def open_history_entry(entry_id: str, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        if state_container.workspace.reopen(entry_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _studio_state(state_container)

    @app.get("/studio/options")
    async def options() -> dict[str, object]:
        """Return the choices offered by the studio pickers."""
        return {
            "styles": [
                {"id": style.id, "label": style.label, "description": style.description}
                for style in STYLES
            ],
            "room_types": list(ROOM_TYPES),
            "aspect_ratios": [AUTO_ASPECT_RATIO]
            + [label for label, _ in SUPPORTED_ASPECT_RATIOS],
            "resolutions": [resolution.value for resolution in Resolution],
            "quick_feedback": list(QUICK_FEEDBACK),
        }

    return app


def _auth_state(container: AppContainer) -> dict[str, object]:
    flow = container.auth_flow
    current = container.session_manager.current
    return {
        "step": flow.step.value,
        "mode": flow.mode.value,
        "pending_email": flow.pending_email,
        "resend_remaining_seconds": flow.resend_remaining_seconds,
        "reset_sent": flow.reset_sent,
        "account": current.to_dict() if current else None,
    }


def _studio_state(container: AppContainer) -> dict[str, object]:
    workspace = container.workspace
    progress = container.orchestrator.progress
    return {
        "source_image": workspace.source_image,
        "current": _result_payload(workspace.current),
        "can_undo": workspace.edits.can_undo,
        "can_redo": workspace.edits.can_redo,
        "busy": workspace.is_busy,
        "caption": progress.caption,
    }


def _result_payload(result: GenerationResult | None) -> dict[str, object] | None:
    return result.to_dict() if result else None
