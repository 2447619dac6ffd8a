"""Generation orchestrator around the external image-transform API."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol
from uuid import uuid4

from property_stage.domain.errors import (
    CreditExhausted,
    GenerationError,
    GenerationInProgress,
    InvalidInput,
    MissingOrInvalidCredential,
    NoImageReturned,
    NoSourceImage,
    ServiceRefused,
    TransientFailure,
)
from property_stage.domain.generation import (
    AUTO_ASPECT_RATIO,
    SUPPORTED_ASPECT_RATIOS,
    GenerationOptions,
    GenerationResult,
    StyleOption,
    TransformRequest,
    TransformResponse,
)
from property_stage.services.clock import Clock, SystemClock
from property_stage.services.credits import CreditLedger
from property_stage.services.history import HistoryService
from property_stage.services.images import detect_aspect_ratio, split_data_url
from property_stage.services.sessions import SessionManager

logger = logging.getLogger(__name__)

STYLES: tuple[StyleOption, ...] = (
    StyleOption(
        id="modern",
        label="Modern",
        description="Clean lines, neutral palette",
        prompt=(
            "Stage with sleek modern furniture, minimal decor, and a neutral "
            "color scheme. High-end aesthetic."
        ),
    ),
    StyleOption(
        id="scandi",
        label="Scandinavian",
        description="Light wood, cozy, functional",
        prompt=(
            'Stage with Scandinavian style: light oak woods, "hygge" cozy '
            "textures, and functional minimalist furniture."
        ),
    ),
    StyleOption(
        id="industrial",
        label="Industrial",
        description="Raw metal, brick, leather",
        prompt=(
            "Stage with industrial loft style: dark metal accents, leather "
            "seating, and reclaimed wood elements."
        ),
    ),
    StyleOption(
        id="luxury",
        label="Luxury Gold",
        description="Marble, gold, velvet",
        prompt=(
            "Stage with premium luxury elements: gold accents, marble surfaces, "
            "and velvet fabrics for an upscale look."
        ),
    ),
    StyleOption(
        id="declutter",
        label="Clean Up",
        description="Remove mess & clutter",
        prompt=(
            "Digitally remove all trash, clutter, and personal items. Clean the "
            "space while keeping existing fixed furniture."
        ),
    ),
)

ROOM_TYPES: tuple[str, ...] = (
    "Living Room",
    "Bedroom",
    "Dining Room",
    "Kitchen",
    "Office",
    "Bathroom",
    "Exterior",
)

QUICK_FEEDBACK: tuple[str, ...] = (
    "Make it brighter",
    "Add more plants",
    "More minimalist",
    "Change the rug",
    "Warm lighting",
    "Blue accents",
)

PROGRESS_CAPTIONS: tuple[str, ...] = (
    "Analyzing room architecture...",
    "Identifying light sources...",
    "Generating design concept...",
    "Applying material textures...",
    "Rendering final scene...",
    "Upscaling to high-definition...",
)

STAGING_PROMPT_TEMPLATE = """Role: Expert AI Real Estate Stager & Interior Designer.
Context: This is a {room_type}.
Task: {task}

CRITICAL EXECUTION RULES:
1. SPATIAL ACCURACY: Do not move walls, windows, doors, or architectural features. The room layout must remain 100% identical to the input.
2. FURNITURE SCALE: Ensure furniture is realistically scaled for a {room_type}.
3. LIGHTING: Synthesize shadows and highlights that match the existing light sources (windows/lamps) in the original photo.
4. QUALITY: Deliver a photorealistic, high-end real estate marketing photo.

Output: One single transformed image."""

REFINEMENT_TASK_TEMPLATE = (
    "Refine this design with the following request: {instruction}. "
    "Keep the existing style and architecture consistent."
)

_CREDENTIAL_MARKERS = (
    "api key not valid",
    "api_key_invalid",
    "requested entity was not found",
    "api key is missing",
)
_REFUSAL_MARKERS = ("safety", "blocked", "prohibited_content")


class ImageTransformClient(Protocol):
    """Interface for the external image-transform API."""

    async def transform(self, request: TransformRequest) -> TransformResponse:
        """Send one transform request and return the normalized response."""


class CredentialSelector(Protocol):
    """Starts the external flow for picking a valid API credential."""

    async def open_selection(self) -> None:
        """Ask the operator to select a credential."""


def find_style(style_id: str) -> StyleOption:
    for style in STYLES:
        if style.id == style_id:
            return style
    raise InvalidInput(f"Unknown style: {style_id}")


def build_staging_prompt(task: str, room_type: str) -> str:
    """Wrap a style or refinement task in the staging instructions."""
    return STAGING_PROMPT_TEMPLATE.format(task=task, room_type=room_type)


def build_refinement_task(instruction: str) -> str:
    return REFINEMENT_TASK_TEMPLATE.format(instruction=instruction)


def classify_failure(exc: Exception) -> GenerationError:
    """Map an exception from the transform client onto the error taxonomy."""
    if isinstance(exc, GenerationError):
        return exc
    text = str(exc)
    lowered = text.lower()
    detail = f"{type(exc).__name__}: {text[:300]}"
    status = getattr(exc, "code", None) or getattr(exc, "status_code", None)
    if status in {401, 403} or any(marker in lowered for marker in _CREDENTIAL_MARKERS):
        return MissingOrInvalidCredential(detail=detail)
    if any(marker in lowered for marker in _REFUSAL_MARKERS):
        return ServiceRefused(detail=detail)
    return TransientFailure(detail=detail)


@dataclass
class ProgressCaptions:
    """Cosmetic progress captions that advance only while a request runs."""

    clock: Clock
    interval_seconds: float = 1.5
    captions: tuple[str, ...] = PROGRESS_CAPTIONS
    _started_at: datetime | None = field(default=None, init=False)

    @property
    def active(self) -> bool:
        return self._started_at is not None

    @property
    def step(self) -> int | None:
        if self._started_at is None:
            return None
        elapsed = (self.clock.now() - self._started_at).total_seconds()
        return int(max(elapsed, 0) // self.interval_seconds) % len(self.captions)

    @property
    def caption(self) -> str | None:
        step = self.step
        return None if step is None else self.captions[step]

    def start(self) -> None:
        self._started_at = self.clock.now()

    def stop(self) -> None:
        self._started_at = None


@dataclass
class GenerationOrchestrator:
    """Runs paid generations: credit gate, one request, then bookkeeping.

    Only one request may be in flight at a time. Credits are deducted and
    history is written only after a successful response.
    """

    client: ImageTransformClient
    credential_selector: CredentialSelector
    ledger: CreditLedger
    sessions: SessionManager
    history: HistoryService
    model: str
    clock: Clock = field(default_factory=SystemClock)
    caption_interval_seconds: float = 1.5
    progress: ProgressCaptions = field(init=False)
    _in_flight: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.progress = ProgressCaptions(
            clock=self.clock, interval_seconds=self.caption_interval_seconds
        )

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def generate(
        self, source_image: str | None, options: GenerationOptions
    ) -> GenerationResult:
        """Stage the original photo in the selected style."""
        style = find_style(options.style_id)
        instruction = build_staging_prompt(style.prompt, options.room_type)
        return await self._run(
            original_image=source_image,
            input_image=source_image,
            instruction=instruction,
            options=options,
            style_label=style.label,
        )

    async def refine(
        self,
        source_image: str | None,
        prior_image: str | None,
        instruction: str,
        options: GenerationOptions,
    ) -> GenerationResult:
        """Modify an existing result while holding its structure fixed."""
        cleaned = instruction.strip()
        if not cleaned:
            raise InvalidInput("A refinement instruction is required.")
        if not prior_image:
            raise NoSourceImage("Generate a design before refining it.")
        task = build_refinement_task(cleaned)
        return await self._run(
            original_image=source_image,
            input_image=prior_image,
            instruction=build_staging_prompt(task, options.room_type),
            options=options,
            style_label=f"Refined: {cleaned}",
        )

    async def _run(  # noqa: PLR0913
        self,
        *,
        original_image: str | None,
        input_image: str | None,
        instruction: str,
        options: GenerationOptions,
        style_label: str,
    ) -> GenerationResult:
        if not original_image or not input_image:
            raise NoSourceImage()
        account = self.sessions.require_current()
        if self._in_flight:
            raise GenerationInProgress()
        if not self.ledger.has_credit(account.id):
            raise CreditExhausted()

        request = self._build_request(original_image, input_image, instruction, options)
        self._in_flight = True
        self.progress.start()
        try:
            response = await self.client.transform(request)
        except Exception as exc:  # noqa: BLE001
            error = classify_failure(exc)
            await self._handle_failure(error)
            if error is exc:
                raise
            raise error from exc
        finally:
            self._in_flight = False
            self.progress.stop()

        if response.block_reason:
            refused = ServiceRefused(detail=response.block_reason)
            await self._handle_failure(refused)
            raise refused
        if not response.image_base64:
            missing = NoImageReturned(detail=(response.text or "")[:300] or None)
            await self._handle_failure(missing)
            raise missing

        result = GenerationResult(
            id=uuid4().hex,
            original_image=original_image,
            transformed_image=f"data:{response.mime_type};base64,{response.image_base64}",
            style_label=style_label,
            timestamp=self.clock.now(),
        )
        if not self.ledger.check_and_deduct(account.id):
            logger.warning(
                "Balance for %s was exhausted while a generation was running", account.id
            )
        self.history.record(account.id, result)
        logger.info("Generation %s completed for %s", result.id, account.id)
        return result

    def _build_request(
        self,
        original_image: str,
        input_image: str,
        instruction: str,
        options: GenerationOptions,
    ) -> TransformRequest:
        payload, mime_type = split_data_url(input_image)
        if not payload:
            raise NoSourceImage()
        return TransformRequest(
            image_base64=payload,
            mime_type=mime_type,
            instruction=instruction,
            aspect_ratio=self._resolve_aspect_ratio(original_image, options.aspect_ratio),
            room_context=options.room_type,
            model=self.model,
            resolution=options.resolution,
        )

    def _resolve_aspect_ratio(self, image: str, requested: str) -> str:
        if requested == AUTO_ASPECT_RATIO:
            return detect_aspect_ratio(image)
        if requested not in {label for label, _ in SUPPORTED_ASPECT_RATIOS}:
            raise InvalidInput(f"Unsupported aspect ratio: {requested}")
        return requested

    async def _handle_failure(self, error: GenerationError) -> None:
        logger.warning("Generation failed: %s (%s)", type(error).__name__, error.detail)
        if isinstance(error, MissingOrInvalidCredential):
            try:
                await self.credential_selector.open_selection()
            except Exception:
                logger.exception("Failed to open credential selection")
