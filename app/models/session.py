"""
Session state — one per open browser page.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .listing import ImagePayload, ListingDraft
from .style import StyleSelection


class Phase(str, Enum):
    UPLOAD = "upload"    # no image, no draft
    READY = "ready"      # image + draft present


class ActiveView(str, Enum):
    DETAILS = "details"
    EDIT = "edit"
    GENERATE = "generate"


@dataclass
class LoadingState:
    active: bool = False
    message: str = ""


@dataclass
class SessionState:
    phase: Phase = Phase.UPLOAD
    active_view: ActiveView = ActiveView.DETAILS
    image: Optional[ImagePayload] = None
    draft: Optional[ListingDraft] = None
    loading: LoadingState = field(default_factory=LoadingState)
    style: StyleSelection = field(default_factory=StyleSelection)
    notice: Optional[str] = None                 # last user-facing failure message
