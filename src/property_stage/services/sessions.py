"""Session manager for the currently authenticated account."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from property_stage.domain.accounts import AccountView, PlanTier
from property_stage.domain.errors import NotSignedIn
from property_stage.services.accounts import AccountService

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Persistence interface for the client-local session record."""

    def load(self) -> dict[str, object] | None:
        """Return the stored session payload, if any."""

    def save(self, payload: dict[str, object]) -> None:
        """Replace the stored session payload."""

    def clear(self) -> None:
        """Remove the stored session payload."""


@dataclass
class SessionManager:
    """Holds the redacted projection of the signed-in account.

    The account store stays authoritative: restoring and refreshing always
    re-read the account rather than trusting the cached payload.
    """

    store: SessionStore
    accounts: AccountService
    _current: AccountView | None = field(default=None, init=False)

    @property
    def current(self) -> AccountView | None:
        return self._current

    def require_current(self) -> AccountView:
        if self._current is None:
            raise NotSignedIn()
        return self._current

    def is_current(self, account_id: str) -> bool:
        return self._current is not None and self._current.id == account_id

    def restore_session(self) -> AccountView | None:
        """Re-establish the last session from the account store."""
        payload = self.store.load()
        if payload is None:
            return None
        email = payload.get("email") if isinstance(payload, dict) else None
        if not isinstance(email, str) or not email:
            logger.warning("Discarding malformed session record")
            self.store.clear()
            return None
        account = self.accounts.get_by_email(email)
        if account is None:
            logger.info("Stored session points at a missing account; clearing it")
            self.store.clear()
            return None
        self._set(account.to_view())
        return self._current

    def establish(self, view: AccountView) -> None:
        """Start a session for an account that passed verification."""
        self._set(view)
        logger.info("Session established for %s", view.id)

    def refresh(self, account_id: str) -> AccountView | None:
        """Re-read the account if it backs the current session."""
        if not self.is_current(account_id):
            return self._current
        account = self.accounts.get_account(account_id)
        if account is None:
            self.logout()
            return None
        self._set(account.to_view())
        return self._current

    def logout(self) -> None:
        """End the session. The account store is untouched."""
        self._current = None
        self.store.clear()

    def update_profile_image(self, image: str) -> AccountView:
        current = self.require_current()
        self.accounts.update_profile_image(current.id, image)
        return self._refreshed(current.id)

    def upgrade_plan(self, plan: PlanTier, credits: int) -> AccountView:
        current = self.require_current()
        self.accounts.upgrade_plan(current.id, plan, credits)
        return self._refreshed(current.id)

    def _refreshed(self, account_id: str) -> AccountView:
        view = self.refresh(account_id)
        if view is None:
            raise NotSignedIn()
        return view

    def _set(self, view: AccountView) -> None:
        self._current = view
        self.store.save(view.to_dict())
