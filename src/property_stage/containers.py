"""Dependency container wiring for the application."""

import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from property_stage.adapters.email_code_sender import LoggingCodeSender, ResendCodeSender
from property_stage.adapters.gemini_image_client import (
    GeminiImageClient,
    LoggingCredentialSelector,
)
from property_stage.adapters.local_account_repository import LocalAccountRepository
from property_stage.adapters.local_history_repository import LocalHistoryRepository
from property_stage.adapters.local_session_store import LocalSessionStore
from property_stage.adapters.local_storage import JsonFileStorage
from property_stage.adapters.supabase_account_repository import SupabaseAccountRepository
from property_stage.adapters.supabase_history_repository import SupabaseHistoryRepository
from property_stage.config import Settings, parse_plan_credits
from property_stage.domain.accounts import PlanTier
from property_stage.services.accounts import AccountRepository, AccountService
from property_stage.services.admin import AdminService
from property_stage.services.clock import Clock, SystemClock
from property_stage.services.credits import CreditLedger
from property_stage.services.generation import (
    CredentialSelector,
    GenerationOrchestrator,
    ImageTransformClient,
)
from property_stage.services.history import HistoryRepository, HistoryService
from property_stage.services.sessions import SessionManager, SessionStore
from property_stage.services.verification import AuthFlow, CodeSender
from property_stage.services.workspace import StagingWorkspace


@dataclass
class AppContainer:
    """Holds application-wide dependencies for one client instance."""

    settings: Settings
    plan_credits: dict[PlanTier, int]
    account_service: AccountService
    session_manager: SessionManager
    auth_flow: AuthFlow
    credit_ledger: CreditLedger
    history_service: HistoryService
    orchestrator: GenerationOrchestrator
    workspace: StagingWorkspace
    admin_service: AdminService
    close_resources: Callable[[], Awaitable[None]]


def wire_container(  # noqa: PLR0913
    *,
    settings: Settings,
    account_repository: AccountRepository,
    session_store: SessionStore,
    history_repository: HistoryRepository,
    transform_client: ImageTransformClient,
    credential_selector: CredentialSelector,
    code_sender: CodeSender,
    clock: Clock,
    close_resources: Callable[[], Awaitable[None]],
) -> AppContainer:
    """Assemble services around already-built adapters."""
    account_service = AccountService(
        repository=account_repository,
        default_credits=settings.default_credits,
        admin_email=settings.admin_email,
        admin_password=settings.admin_password,
        hash_rounds=settings.password_hash_rounds,
        clock=clock,
    )
    account_service.ensure_admin()
    session_manager = SessionManager(store=session_store, accounts=account_service)
    session_manager.restore_session()
    auth_flow = AuthFlow(
        accounts=account_service,
        sessions=session_manager,
        code_sender=code_sender,
        resend_cooldown_seconds=settings.resend_cooldown_seconds,
        clock=clock,
    )
    credit_ledger = CreditLedger(accounts=account_service, sessions=session_manager)
    history_service = HistoryService(history_repository, limit=settings.history_limit)
    orchestrator = GenerationOrchestrator(
        client=transform_client,
        credential_selector=credential_selector,
        ledger=credit_ledger,
        sessions=session_manager,
        history=history_service,
        model=settings.gemini_model,
        clock=clock,
        caption_interval_seconds=settings.caption_interval_seconds,
    )
    workspace = StagingWorkspace(
        orchestrator=orchestrator,
        history=history_service,
        sessions=session_manager,
    )
    admin_service = AdminService(accounts=account_service, history=history_service)
    return AppContainer(
        settings=settings,
        plan_credits=parse_plan_credits(settings.plan_credits),
        account_service=account_service,
        session_manager=session_manager,
        auth_flow=auth_flow,
        credit_ledger=credit_ledger,
        history_service=history_service,
        orchestrator=orchestrator,
        workspace=workspace,
        admin_service=admin_service,
        close_resources=close_resources,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    storage = JsonFileStorage(Path(resolved_settings.local_storage_dir))
    account_repository: AccountRepository
    history_repository: HistoryRepository
    if resolved_settings.storage_backend == "supabase":
        if not resolved_settings.supabase_url or not resolved_settings.supabase_service_key:
            raise ValueError("Supabase storage requires SUPABASE_URL and SUPABASE_SERVICE_KEY")
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        account_repository = SupabaseAccountRepository(supabase_client)
        history_repository = SupabaseHistoryRepository(supabase_client)
    elif resolved_settings.storage_backend == "local":
        account_repository = LocalAccountRepository(storage)
        history_repository = LocalHistoryRepository(storage)
    else:
        raise ValueError(f"Unknown storage backend: {resolved_settings.storage_backend}")

    code_sender: CodeSender
    resend_sender: ResendCodeSender | None = None
    if resolved_settings.resend_api_key:
        resend_sender = ResendCodeSender.create(
            resolved_settings.resend_api_key, resolved_settings.email_from
        )
        code_sender = resend_sender
    else:
        code_sender = LoggingCodeSender()

    def current_api_key() -> str | None:
        return os.getenv("GEMINI_API_KEY") or resolved_settings.gemini_api_key

    transform_client = GeminiImageClient(
        api_key_provider=current_api_key,
        timeout_seconds=resolved_settings.generation_timeout_seconds,
    )

    async def close_resources() -> None:
        if resend_sender is not None:
            await resend_sender.close()

    return wire_container(
        settings=resolved_settings,
        account_repository=account_repository,
        session_store=LocalSessionStore(storage),
        history_repository=history_repository,
        transform_client=transform_client,
        credential_selector=LoggingCredentialSelector(),
        code_sender=code_sender,
        clock=SystemClock(),
        close_resources=close_resources,
    )
