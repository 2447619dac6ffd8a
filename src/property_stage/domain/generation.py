"""Models for generation requests and results."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class Resolution(StrEnum):
    """Output sizes supported by the image model."""

    ONE_K = "1K"
    TWO_K = "2K"
    FOUR_K = "4K"


AUTO_ASPECT_RATIO = "Auto"
SUPPORTED_ASPECT_RATIOS: tuple[tuple[str, float], ...] = (
    ("1:1", 1.0),
    ("3:4", 0.75),
    ("4:3", 4 / 3),
    ("9:16", 9 / 16),
    ("16:9", 16 / 9),
)


@dataclass(frozen=True)
class StyleOption:
    """A staging style shown in the style picker."""

    id: str
    label: str
    description: str
    prompt: str


@dataclass(frozen=True)
class GenerationOptions:
    """User-selected parameters for one generation."""

    style_id: str = "modern"
    room_type: str = "Living Room"
    aspect_ratio: str = AUTO_ASPECT_RATIO
    resolution: Resolution = Resolution.ONE_K


@dataclass(frozen=True)
class GenerationResult:
    """One successful generation, as stored in persistent history."""

    id: str
    original_image: str
    transformed_image: str
    style_label: str
    timestamp: datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "original_image": self.original_image,
            "transformed_image": self.transformed_image,
            "style_label": self.style_label,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "GenerationResult":
        return cls(
            id=str(data["id"]),
            original_image=str(data["original_image"]),
            transformed_image=str(data["transformed_image"]),
            style_label=str(data["style_label"]),
            timestamp=datetime.fromisoformat(str(data["timestamp"])),
        )


class TransformRequest(BaseModel):
    """Payload sent to the external image-transform API."""

    image_base64: str = Field(min_length=1)
    mime_type: str = "image/jpeg"
    instruction: str = Field(min_length=1)
    aspect_ratio: str
    room_context: str
    model: str
    resolution: Resolution


class TransformResponse(BaseModel):
    """Normalized response from the image-transform API."""

    image_base64: str | None = None
    mime_type: str = "image/jpeg"
    text: str | None = None
    block_reason: str | None = None
