"""Domain models for accounts and sessions."""

from dataclasses import dataclass
from enum import StrEnum

UNLIMITED_CREDITS = -1


class PlanTier(StrEnum):
    """Named entitlement levels."""

    FREE = "FREE"
    PRO = "PRO"
    POWER = "POWER"
    MANAGED = "MANAGED"
    ENTERPRISE = "ENTERPRISE"


PAID_PLANS = frozenset({PlanTier.PRO, PlanTier.POWER, PlanTier.MANAGED, PlanTier.ENTERPRISE})

DEFAULT_PLAN_CREDITS: dict[PlanTier, int] = {
    PlanTier.FREE: 3,
    PlanTier.PRO: 50,
    PlanTier.POWER: 250,
    PlanTier.MANAGED: UNLIMITED_CREDITS,
    PlanTier.ENTERPRISE: UNLIMITED_CREDITS,
}


def normalize_email(email: str) -> str:
    """Return the storage key for an email address."""
    return email.strip().lower()


@dataclass(frozen=True)
class AccountView:
    """Redacted projection of an account, safe to hold in a session."""

    id: str
    name: str
    email: str
    plan: PlanTier
    credits: int
    joined_date: str
    profile_image: str | None = None
    is_admin: bool = False

    @property
    def has_unlimited_credits(self) -> bool:
        return self.credits == UNLIMITED_CREDITS

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "plan": self.plan.value,
            "credits": self.credits,
            "joined_date": self.joined_date,
            "profile_image": self.profile_image,
            "is_admin": self.is_admin,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "AccountView":
        profile_image = data.get("profile_image")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            email=str(data["email"]),
            plan=PlanTier(str(data["plan"])),
            credits=int(data["credits"]),  # type: ignore[arg-type]
            joined_date=str(data["joined_date"]),
            profile_image=str(profile_image) if profile_image else None,
            is_admin=bool(data.get("is_admin", False)),
        )


@dataclass(frozen=True)
class Account:
    """Represents a registered account, including its password hash."""

    id: str
    name: str
    email: str
    password_hash: str
    plan: PlanTier
    credits: int
    joined_date: str
    profile_image: str | None = None
    is_admin: bool = False

    def __post_init__(self) -> None:
        if self.credits < UNLIMITED_CREDITS:
            raise ValueError(f"credits must be >= {UNLIMITED_CREDITS}, got {self.credits}")
        if self.email != normalize_email(self.email):
            raise ValueError("account email must be normalized")

    @property
    def has_unlimited_credits(self) -> bool:
        return self.credits == UNLIMITED_CREDITS

    def to_view(self) -> AccountView:
        """Drop the secret and return the session-safe projection."""
        return AccountView(
            id=self.id,
            name=self.name,
            email=self.email,
            plan=self.plan,
            credits=self.credits,
            joined_date=self.joined_date,
            profile_image=self.profile_image,
            is_admin=self.is_admin,
        )

    def to_dict(self) -> dict[str, object]:
        return {**self.to_view().to_dict(), "password_hash": self.password_hash}

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Account":
        view = AccountView.from_dict(data)
        return cls(
            id=view.id,
            name=view.name,
            email=view.email,
            password_hash=str(data["password_hash"]),
            plan=view.plan,
            credits=view.credits,
            joined_date=view.joined_date,
            profile_image=view.profile_image,
            is_admin=view.is_admin,
        )
