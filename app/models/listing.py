"""
Listing models — the photographed item and the AI-written resale post.
"""

import base64
import binascii
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ItemCategory(str, Enum):
    OBJECT = "OBJECT"        # furniture, electronics, decor
    CLOTHING = "CLOTHING"    # apparel, shoes, accessories
    UNKNOWN = "UNKNOWN"


class ImageResolution(str, Enum):
    ONE_K = "1K"
    TWO_K = "2K"
    FOUR_K = "4K"


_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>image/[\w.+-]+)(?:;[\w.+-]+=[^;,]*)*;base64,(?P<data>.*)$",
    re.DOTALL,
)


def decode_base64(text: str) -> bytes:
    """Decode base64 that may be line-wrapped or missing its '=' padding."""
    cleaned = re.sub(r"\s+", "", text).rstrip("=")
    cleaned += "=" * (-len(cleaned) % 4)
    return base64.b64decode(cleaned, validate=True)


@dataclass(frozen=True)
class ImagePayload:
    """An encoded image. Replaced wholesale, never edited in place."""

    data: bytes
    mime_type: str = "image/jpeg"
    source_uri: Optional[str] = field(default=None, compare=False, repr=False)  # data URI it was parsed from

    @property
    def b64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_uri(self) -> str:
        if self.source_uri is not None:
            return self.source_uri
        return f"data:{self.mime_type};base64,{self.b64}"

    @property
    def extension(self) -> str:
        return ".png" if self.mime_type == "image/png" else ".jpg"

    @classmethod
    def from_data_uri(cls, uri: str) -> "ImagePayload":
        """Parse ``data:image/...[;param=value];base64,...``. Raises ValueError on anything else."""
        match = _DATA_URI_RE.match(uri.strip())
        if not match:
            raise ValueError("Not an image data URI")
        try:
            data = decode_base64(match.group("data"))
        except (binascii.Error, ValueError) as e:
            raise ValueError("Invalid base64 in data URI") from e
        return cls(data=data, mime_type=match.group("mime"), source_uri=uri)


class ListingDraft(BaseModel):
    """
    The resale post produced by one analysis call.

    Field aliases match the JSON the analysis model is asked for, so the raw
    model output validates directly. Local edits never go back to Gemini.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    category: ItemCategory
    title: str
    description: str
    price_range: str = Field(alias="priceRange")
    hashtags: list[str] = Field(default_factory=list)
    suggested_marketplaces: list[str] = Field(default_factory=list, alias="suggestedMarketplaces")

    @field_validator("hashtags", "suggested_marketplaces", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return [] if v is None else v

    def display_hashtags(self) -> list[str]:
        """Hashtags as shown on the listing, always with a leading '#'."""
        return [tag if tag.startswith("#") else f"#{tag}" for tag in self.hashtags]

    def price_digits(self) -> str:
        """Bare numeric range for the price input ("15€ - 25€" → "15-25")."""
        return re.sub(r"[^0-9-]", "", self.price_range)
