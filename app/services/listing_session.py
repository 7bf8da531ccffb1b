"""
Listing session — the state machine behind one open SellSmart page.

  UPLOAD ──capture + analyze ok──▶ READY (details | edit | generate)
     ▲                                 │
     └──────────────reset──────────────┘

Only the named transitions below write to SessionState. Every Gemini call
runs inside ``_loading()`` so the loading flag is cleared on success,
failure and crash alike, and a second call is refused while one is out.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional, Union

from ..core.errors import GatewayError
from ..models.listing import ImagePayload, ImageResolution
from ..models.session import ActiveView, LoadingState, Phase, SessionState
from ..models.style import LocationChoice, ModelChoice, QuickEdit, StyleChoice, StyleSelection
from .gemini import GeminiGateway
from .prompts import compose_edit_instruction, compose_generation_prompt

logger = logging.getLogger(__name__)

ANALYZE_FAILED = "Failed to analyze. Please try another photo or check your connection."
EDIT_FAILED = "Failed to edit image. Please try again."
GENERATE_FAILED = "Failed to generate image. Please try again."

DRAFT_FIELDS = {"title", "description", "price_range", "hashtags", "suggested_marketplaces"}
STYLE_FIELDS = {"model", "location", "style", "custom_details", "resolution"}


class SessionBusy(RuntimeError):
    """A Gemini call is already in flight for this session."""


class InvalidTransition(RuntimeError):
    """The action is not available in the current phase."""


@dataclass
class ActionResult:
    ok: bool
    notice: Optional[str] = None


class ListingSession:
    def __init__(self, gateway: GeminiGateway, session_id: str = ""):
        self.gateway = gateway
        self.session_id = session_id
        self.state = SessionState()

    # ── Guards ───────────────────────────────────────────────────────

    @property
    def busy(self) -> bool:
        return self.state.loading.active

    def _require_idle(self) -> None:
        if self.busy:
            raise SessionBusy("Please wait for the current request to finish.")

    def _require_ready(self) -> None:
        if self.state.phase != Phase.READY or self.state.image is None or self.state.draft is None:
            raise InvalidTransition("Upload a photo first.")

    @asynccontextmanager
    async def _loading(self, message: str):
        self._require_idle()
        self.state.loading = LoadingState(active=True, message=message)
        try:
            yield
        finally:
            self.state.loading = LoadingState()

    def _fail(self, notice: str, error: GatewayError) -> ActionResult:
        logger.warning("Session %s: %s (%s: %s)", self.session_id, notice, type(error).__name__, error)
        self.state.notice = notice
        return ActionResult(ok=False, notice=notice)

    # ── Transitions ──────────────────────────────────────────────────

    async def capture(self, image: ImagePayload) -> ActionResult:
        """Take a new photo and analyze it. The photo is dropped if analysis fails."""
        if self.state.phase != Phase.UPLOAD:
            raise InvalidTransition("A listing is already open. Start over to upload a new photo.")
        self._require_idle()

        self.state.image = image
        self.state.notice = None
        async with self._loading("Analyzing image with Gemini 2.5 Flash..."):
            try:
                draft = await self.gateway.analyze(image)
            except GatewayError as e:
                self.state.image = None
                return self._fail(ANALYZE_FAILED, e)
            except Exception:
                self.state.image = None
                raise

        self.state.draft = draft
        self.state.phase = Phase.READY
        self.state.active_view = ActiveView.DETAILS
        logger.info("Session %s ready: %s", self.session_id, draft.title)
        return ActionResult(ok=True)

    def select_view(self, view: ActiveView) -> None:
        self._require_ready()
        self.state.active_view = view

    def update_draft(self, **fields) -> None:
        """Local edits only; the draft is never sent back to Gemini."""
        self._require_ready()
        unknown = set(fields) - DRAFT_FIELDS
        if unknown:
            raise ValueError(f"Unknown listing fields: {', '.join(sorted(unknown))}")
        for name, value in fields.items():
            setattr(self.state.draft, name, value)

    def update_style(self, **fields) -> StyleSelection:
        unknown = set(fields) - STYLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown style fields: {', '.join(sorted(unknown))}")
        style = self.state.style
        if "model" in fields:
            style.model = ModelChoice(fields["model"])
        if "location" in fields:
            style.location = LocationChoice(fields["location"])
        if "style" in fields:
            style.style = StyleChoice(fields["style"])
        if "resolution" in fields:
            style.resolution = ImageResolution(fields["resolution"])
        if "custom_details" in fields:
            style.custom_details = fields["custom_details"] or ""
        return style

    async def apply_edit(self, instruction: Union[QuickEdit, str]) -> ActionResult:
        """Send the photo and an instruction to the editing model. Blank text is a no-op."""
        self._require_ready()
        prompt = compose_edit_instruction(instruction)
        if not prompt.strip():
            return ActionResult(ok=False)

        self.state.notice = None
        async with self._loading(f'Applying: "{prompt}" with Gemini 2.5 Flash...'):
            try:
                edited = await self.gateway.edit(self.state.image, prompt)
            except GatewayError as e:
                return self._fail(EDIT_FAILED, e)

        self.state.image = edited
        return ActionResult(ok=True)

    async def generate_pro(self) -> ActionResult:
        """Restyle the photo from the current Pro Style selection."""
        self._require_ready()
        selection = self.state.style
        prompt = compose_generation_prompt(selection)

        self.state.notice = None
        async with self._loading(f"Generating {selection.resolution.value} image with Nano Banana Pro..."):
            try:
                generated = await self.gateway.generate(self.state.image, prompt, selection.resolution)
            except GatewayError as e:
                return self._fail(GENERATE_FAILED, e)

        self.state.image = generated
        return ActionResult(ok=True)

    def reset(self) -> None:
        """Back to the upload screen with nothing kept."""
        self._require_idle()
        self.state = SessionState()
        logger.info("Session %s reset", self.session_id)
