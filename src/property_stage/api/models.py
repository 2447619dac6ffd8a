"""Pydantic request bodies for the HTTP shell."""

from pydantic import BaseModel, Field

from property_stage.domain.accounts import PlanTier
from property_stage.domain.generation import (
    AUTO_ASPECT_RATIO,
    GenerationOptions,
    Resolution,
)


class CredentialsBody(BaseModel):
    """Login or signup form."""

    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    name: str | None = None


class DigitBody(BaseModel):
    """One slot of the verification code."""

    index: int = Field(ge=0, le=5)
    value: str = Field(max_length=8)


class CodeBody(BaseModel):
    """A full verification code."""

    code: str


class EmailBody(BaseModel):
    email: str = Field(min_length=3)


class ProfileImageBody(BaseModel):
    image: str = Field(min_length=1)


class PlanBody(BaseModel):
    """Checkout result: a plan plus an optional explicit balance."""

    plan: PlanTier
    credits: int | None = Field(default=None, ge=-1)


class SourceBody(BaseModel):
    image: str = Field(min_length=1)


class OptionsBody(BaseModel):
    """Generation options chosen in the studio."""

    style_id: str = "modern"
    room_type: str = "Living Room"
    aspect_ratio: str = AUTO_ASPECT_RATIO
    resolution: Resolution = Resolution.ONE_K

    def to_options(self) -> GenerationOptions:
        return GenerationOptions(
            style_id=self.style_id,
            room_type=self.room_type,
            aspect_ratio=self.aspect_ratio,
            resolution=self.resolution,
        )


class RefineBody(OptionsBody):
    instruction: str = Field(min_length=1)
