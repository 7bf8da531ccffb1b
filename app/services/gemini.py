"""
Gemini gateway — the only code that talks to the generative AI service.

Three round trips:
  - analyze:  photo → ListingDraft      (gemini-2.5-flash, JSON schema output)
  - edit:     photo + instruction → photo (gemini-2.5-flash-image)
  - generate: photo + Pro Style prompt + resolution → photo
              (simulated by default, gemini-3-pro-image-preview when
               FF_MOCK_PRO_GENERATION=false)

The google-genai SDK is synchronous; calls run in a worker thread.
Failures always surface as a GatewayError subclass. No retries.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError

from ..core.config import get_settings
from ..core.errors import (
    AnalysisFailed,
    AuthError,
    EditFailed,
    GatewayError,
    GenerateFailed,
    TransportError,
)
from ..core.flags import get_flags
from ..models.listing import ImagePayload, ImageResolution, ListingDraft
from .image_capture import ImageSource, to_payload
from .prompts import ANALYSIS_PROMPT, LISTING_SCHEMA

logger = logging.getLogger(__name__)


_gemini_client: Optional[genai.Client] = None
_gemini_client_key: str = ""


def _get_gemini_client() -> genai.Client:
    """Return a cached google-genai client, rebuilt if GEMINI_API_KEY changed."""
    global _gemini_client, _gemini_client_key
    api_key = get_settings().gemini_api_key
    if not api_key:
        raise AuthError("GEMINI_API_KEY is required to reach Gemini")
    if _gemini_client is None or _gemini_client_key != api_key:
        _gemini_client = genai.Client(api_key=api_key)
        _gemini_client_key = api_key
    return _gemini_client


# ── Helpers ──────────────────────────────────────────────────────────

def _image_part(image: ImagePayload) -> types.Part:
    return types.Part.from_bytes(data=image.data, mime_type=image.mime_type)


def extract_image(response: Any) -> Optional[ImagePayload]:
    """First inline image of the first candidate, or None."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return ImagePayload(data=inline.data, mime_type=inline.mime_type or "image/png")
    return None


def parse_listing(text: Optional[str]) -> ListingDraft:
    """Validate the analysis JSON against the listing schema."""
    if not text:
        raise AnalysisFailed("Analysis model returned no text")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AnalysisFailed(f"Analysis model returned malformed JSON: {e}") from e
    if not isinstance(data, dict):
        raise AnalysisFailed("Analysis model returned JSON that is not an object")
    try:
        return ListingDraft.model_validate(data)
    except ValidationError as e:
        raise AnalysisFailed(f"Analysis JSON does not match the listing schema: {e}") from e


def _is_bad_key(exc: genai_errors.APIError) -> bool:
    if exc.code in (401, 403):
        return True
    message = (exc.message or "").lower()
    return exc.code == 400 and "api key" in message


def translate_error(exc: Exception) -> Optional[GatewayError]:
    """Map SDK / transport exceptions onto the gateway taxonomy. None if unrecognised."""
    if isinstance(exc, GatewayError):
        return exc
    if isinstance(exc, genai_errors.APIError):
        if _is_bad_key(exc):
            return AuthError(f"Gemini rejected the API key ({exc.code}): {exc.message}")
        return TransportError(f"Gemini error {exc.code}: {exc.message}")
    if isinstance(exc, (httpx.HTTPError, ConnectionError, TimeoutError)):
        return TransportError(f"Could not reach Gemini: {exc}")
    return None


async def _run(label: str, fn, *args) -> Any:
    """Run a blocking SDK call in a thread, logging latency and translating errors."""
    start = time.monotonic()
    try:
        result = await asyncio.to_thread(fn, *args)
    except Exception as e:
        elapsed = time.monotonic() - start
        error = translate_error(e)
        if error is None:
            logger.exception("Gemini %s crashed after %.1fs", label, elapsed)
            raise
        logger.error("Gemini %s failed after %.1fs: %s", label, elapsed, error)
        raise error from e
    logger.info("Gemini %s: %dms", label, int((time.monotonic() - start) * 1000))
    return result


# ── Pro generation backends ──────────────────────────────────────────

class ProImageBackend(ABC):
    @abstractmethod
    async def generate(
        self, image: ImagePayload, prompt: str, resolution: ImageResolution
    ) -> ImagePayload:
        """Return a new styled photo of the product in ``image``."""
        ...


class SimulatedProImageBackend(ProImageBackend):
    """Waits, then hands back the input photo. No model is called."""

    def __init__(self, delay: float = 2.0):
        self.delay = delay

    async def generate(
        self, image: ImagePayload, prompt: str, resolution: ImageResolution
    ) -> ImagePayload:
        logger.info("Pro generation is simulated (resolution=%s)", resolution.value)
        logger.debug("Pro generation prompt: %s", prompt)
        await asyncio.sleep(self.delay)
        return image


class GeminiProImageBackend(ProImageBackend):
    """gemini-3-pro-image-preview with a resolution and portrait aspect ratio."""

    def __init__(self, client_factory=_get_gemini_client, model: str = "", aspect_ratio: str = ""):
        settings = get_settings()
        self._client_factory = client_factory
        self.model = model or settings.pro_image_model
        self.aspect_ratio = aspect_ratio or settings.pro_aspect_ratio

    def _sync_generate(self, image: ImagePayload, prompt: str, resolution: ImageResolution):
        client = self._client_factory()
        return client.models.generate_content(
            model=self.model,
            contents=[_image_part(image), prompt],
            config=types.GenerateContentConfig(
                response_modalities=["TEXT", "IMAGE"],
                image_config=types.ImageConfig(
                    image_size=resolution.value,
                    aspect_ratio=self.aspect_ratio,
                ),
            ),
        )

    async def generate(
        self, image: ImagePayload, prompt: str, resolution: ImageResolution
    ) -> ImagePayload:
        response = await _run(
            f"generate[{self.model} {resolution.value}]",
            self._sync_generate, image, prompt, resolution,
        )
        result = extract_image(response)
        if result is None:
            raise GenerateFailed("No image returned from pro generation model")
        return result


# ── Gateway ──────────────────────────────────────────────────────────

def _as_payload(source: ImageSource, failure: type[GatewayError]) -> ImagePayload:
    try:
        return to_payload(source)
    except ValueError as e:
        raise failure(f"Unreadable image: {e}") from e


class GeminiGateway:
    """Analyze, edit and generate against Gemini. Holds no session state."""

    def __init__(
        self,
        pro_backend: ProImageBackend,
        client_factory=_get_gemini_client,
        analysis_model: str = "",
        edit_model: str = "",
    ):
        settings = get_settings()
        self.pro_backend = pro_backend
        self._client_factory = client_factory
        self.analysis_model = analysis_model or settings.analysis_model
        self.edit_model = edit_model or settings.edit_model

    def _sync_analyze(self, image: ImagePayload):
        client = self._client_factory()
        return client.models.generate_content(
            model=self.analysis_model,
            contents=[_image_part(image), ANALYSIS_PROMPT],
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=LISTING_SCHEMA,
            ),
        )

    def _sync_edit(self, image: ImagePayload, instruction: str):
        client = self._client_factory()
        return client.models.generate_content(
            model=self.edit_model,
            contents=[_image_part(image), instruction],
        )

    async def analyze(self, image: ImageSource) -> ListingDraft:
        image = _as_payload(image, AnalysisFailed)
        response = await _run(f"analyze[{self.analysis_model}]", self._sync_analyze, image)
        draft = parse_listing(getattr(response, "text", None))
        logger.info("Analysis: category=%s title=%r", draft.category.value, draft.title)
        return draft

    async def edit(self, image: ImageSource, instruction: str) -> ImagePayload:
        image = _as_payload(image, EditFailed)
        response = await _run(f"edit[{self.edit_model}]", self._sync_edit, image, instruction)
        result = extract_image(response)
        if result is None:
            raise EditFailed("No image returned from editing model")
        return result

    async def generate(
        self, image: ImageSource, prompt: str, resolution: ImageResolution
    ) -> ImagePayload:
        return await self.pro_backend.generate(_as_payload(image, GenerateFailed), prompt, resolution)


def get_pro_backend() -> ProImageBackend:
    """Return the active pro generation backend based on feature flags."""
    if get_flags().mock_pro_generation:
        return SimulatedProImageBackend(delay=get_settings().pro_generation_delay)
    return GeminiProImageBackend()


def get_gateway() -> GeminiGateway:
    return GeminiGateway(pro_backend=get_pro_backend())
