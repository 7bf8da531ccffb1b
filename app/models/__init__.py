"""
Session and listing models. Re-exported here for the API and services.
"""

from .listing import ImagePayload, ImageResolution, ItemCategory, ListingDraft
from .style import LocationChoice, ModelChoice, QuickEdit, StyleChoice, StyleSelection
from .session import ActiveView, LoadingState, Phase, SessionState

__all__ = [
    "ImagePayload", "ImageResolution", "ItemCategory", "ListingDraft",
    "LocationChoice", "ModelChoice", "QuickEdit", "StyleChoice", "StyleSelection",
    "ActiveView", "LoadingState", "Phase", "SessionState",
]
