"""Shared test fixtures."""

import base64
import io
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from PIL import Image

from property_stage.config import Settings
from property_stage.containers import AppContainer, wire_container
from property_stage.domain.accounts import Account, AccountView, normalize_email
from property_stage.domain.generation import (
    GenerationResult,
    TransformRequest,
    TransformResponse,
)
from property_stage.services.accounts import AccountRepository, AccountService
from property_stage.services.clock import Clock
from property_stage.services.generation import CredentialSelector, ImageTransformClient
from property_stage.services.history import HistoryRepository
from property_stage.services.sessions import SessionStore
from property_stage.services.verification import CodeSender

RESULT_PIXELS = base64.b64encode(b"staged-image-bytes").decode("ascii")


def make_image_data_url(width: int = 40, height: int = 30, fmt: str = "PNG") -> str:
    """Return a real image encoded as a data URL."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 180, 150)).save(buffer, format=fmt)
    mime = "image/png" if fmt == "PNG" else "image/jpeg"
    return f"data:{mime};base64,{base64.b64encode(buffer.getvalue()).decode('ascii')}"


def make_result(index: int, timestamp: datetime | None = None) -> GenerationResult:
    return GenerationResult(
        id=f"gen-{index}",
        original_image="data:image/png;base64,b3JpZ2luYWw=",
        transformed_image=f"data:image/png;base64,{RESULT_PIXELS}",
        style_label="Modern",
        timestamp=timestamp or datetime(2024, 1, 1, tzinfo=UTC) + timedelta(minutes=index),
    )


@dataclass
class InMemoryAccountRepository(AccountRepository):
    """In-memory account repository for tests."""

    accounts: dict[str, Account] = field(default_factory=dict)

    def get_by_email(self, email: str) -> Account | None:
        return self.accounts.get(normalize_email(email))

    def get_by_id(self, account_id: str) -> Account | None:
        for account in self.accounts.values():
            if account.id == account_id:
                return account
        return None

    def save_account(self, account: Account) -> None:
        self.accounts[account.email] = account

    def list_accounts(self) -> list[Account]:
        return list(self.accounts.values())


@dataclass
class InMemorySessionStore(SessionStore):
    """In-memory session store for tests."""

    payload: dict[str, object] | None = None

    def load(self) -> dict[str, object] | None:
        return self.payload

    def save(self, payload: dict[str, object]) -> None:
        self.payload = payload

    def clear(self) -> None:
        self.payload = None


@dataclass
class InMemoryHistoryRepository(HistoryRepository):
    """In-memory history repository for tests, newest entry first."""

    entries: dict[str, list[GenerationResult]] = field(default_factory=dict)

    def add_entry(self, account_id: str, entry: GenerationResult) -> None:
        self.entries.setdefault(account_id, []).insert(0, entry)

    def list_entries(self, account_id: str, limit: int) -> list[GenerationResult]:
        return self.entries.get(account_id, [])[:limit]

    def trim(self, account_id: str, keep: int) -> None:
        if account_id in self.entries:
            self.entries[account_id] = self.entries[account_id][:keep]


@dataclass
class ManualClock(Clock):
    """Clock that only moves when a test advances it."""

    current: datetime = field(default_factory=lambda: datetime(2024, 5, 1, 9, 0, tzinfo=UTC))

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@dataclass
class RecordingCodeSender(CodeSender):
    """Code sender that records what would have been emailed."""

    codes: list[tuple[str, str]] = field(default_factory=list)
    resets: list[str] = field(default_factory=list)

    async def send_code(self, email: str, code: str) -> None:
        self.codes.append((email, code))

    async def send_password_reset(self, email: str) -> None:
        self.resets.append(email)

    @property
    def last_code(self) -> str:
        return self.codes[-1][1]


@dataclass
class FakeImageClient(ImageTransformClient):
    """Fake transform client returning a fixed response or raising."""

    response: TransformResponse = field(
        default_factory=lambda: TransformResponse(
            image_base64=RESULT_PIXELS, mime_type="image/png"
        )
    )
    error: Exception | None = None
    during: Callable[[], Awaitable[None]] | None = None
    requests: list[TransformRequest] = field(default_factory=list)

    async def transform(self, request: TransformRequest) -> TransformResponse:
        self.requests.append(request)
        if self.during is not None:
            await self.during()
        if self.error is not None:
            raise self.error
        return self.response


@dataclass
class RecordingCredentialSelector(CredentialSelector):
    """Counts how often credential selection was opened."""

    opened: int = 0

    async def open_selection(self) -> None:
        self.opened += 1


def sign_in(
    container: AppContainer,
    email: str = "agent@example.com",
    password: str = "secret-pass",
    name: str | None = "Agent",
) -> AccountView:
    """Register an account and make it the current session."""
    view = container.account_service.signup(email, name, password)
    container.session_manager.establish(view)
    return view


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        gemini_api_key="gemini-key",
        local_storage_dir=str(tmp_path / "storage"),
        admin_email="admin@propertystage.hk",
        admin_password="admin",
        password_hash_rounds=4,
    )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def code_sender() -> RecordingCodeSender:
    return RecordingCodeSender()


@pytest.fixture
def image_client() -> FakeImageClient:
    return FakeImageClient()


@pytest.fixture
def credential_selector() -> RecordingCredentialSelector:
    return RecordingCredentialSelector()


@pytest.fixture
def source_image() -> str:
    return make_image_data_url()


@pytest.fixture
def container(
    settings: Settings,
    clock: ManualClock,
    code_sender: RecordingCodeSender,
    image_client: FakeImageClient,
    credential_selector: RecordingCredentialSelector,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return wire_container(
        settings=settings,
        account_repository=InMemoryAccountRepository(),
        session_store=InMemorySessionStore(),
        history_repository=InMemoryHistoryRepository(),
        transform_client=image_client,
        credential_selector=credential_selector,
        code_sender=code_sender,
        clock=clock,
        close_resources=close_resources,
    )
