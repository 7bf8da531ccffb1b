"""Shared fixtures: test settings, tiny images and a scripted gateway."""

import asyncio
from io import BytesIO
from typing import Optional

import pytest
from PIL import Image

from app.core.config import get_settings
from app.core.errors import GatewayError
from app.core.flags import get_flags
from app.models.listing import ImagePayload, ImageResolution, ListingDraft
from app.services import session_store


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setenv("FF_MOCK_PRO_GENERATION", "true")
    monkeypatch.setenv("PRO_GENERATION_DELAY", "0")
    get_settings.cache_clear()
    get_flags.cache_clear()
    session_store.clear_sessions()
    yield
    get_settings.cache_clear()
    get_flags.cache_clear()
    session_store.clear_sessions()


def make_image_bytes(fmt: str = "JPEG", color: str = "red") -> bytes:
    buf = BytesIO()
    Image.new("RGB", (8, 8), color).save(buf, fmt)
    return buf.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG", "blue")


@pytest.fixture
def photo(jpeg_bytes) -> ImagePayload:
    return ImagePayload(data=jpeg_bytes, mime_type="image/jpeg")


@pytest.fixture
def draft() -> ListingDraft:
    return ListingDraft(
        category="CLOTHING",
        title="Vintage Levi's denim jacket",
        description="Classic trucker jacket in great condition.",
        priceRange="25€ - 40€",
        hashtags=["vintage", "#denim", "levis"],
        suggestedMarketplaces=["Vinted", "Depop"],
    )


class FakeGateway:
    """
    Stands in for GeminiGateway. Each operation returns the scripted result
    or raises the scripted error, and records whether the session showed
    the loading indicator while the call was in flight.
    """

    def __init__(self, draft: Optional[ListingDraft] = None):
        self.draft = draft
        self.edited = ImagePayload(data=b"edited-png", mime_type="image/png")
        self.generated: Optional[ImagePayload] = None
        self.analyze_error: Optional[GatewayError] = None
        self.edit_error: Optional[GatewayError] = None
        self.generate_error: Optional[GatewayError] = None
        self.gate: Optional[asyncio.Event] = None
        self.session = None
        self.calls: list[tuple] = []
        self.loading_seen: list[bool] = []

    def _observe(self):
        if self.session is not None:
            self.loading_seen.append(self.session.state.loading.active)

    async def analyze(self, image: ImagePayload) -> ListingDraft:
        self.calls.append(("analyze", image))
        self._observe()
        if self.analyze_error:
            raise self.analyze_error
        return self.draft

    async def edit(self, image: ImagePayload, instruction: str) -> ImagePayload:
        self.calls.append(("edit", image, instruction))
        self._observe()
        if self.gate is not None:
            await self.gate.wait()
        if self.edit_error:
            raise self.edit_error
        return self.edited

    async def generate(self, image: ImagePayload, prompt: str, resolution: ImageResolution) -> ImagePayload:
        self.calls.append(("generate", image, prompt, resolution))
        self._observe()
        if self.generate_error:
            raise self.generate_error
        return self.generated or image


@pytest.fixture
def gateway(draft) -> FakeGateway:
    return FakeGateway(draft)
