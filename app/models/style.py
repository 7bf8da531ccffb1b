"""
Closed choice lists offered by the Edit and Pro Style views.
"""

from dataclasses import dataclass
from enum import Enum

from .listing import ImageResolution


class ModelChoice(str, Enum):
    NO_MODEL = "No Model (Product Only)"
    FEMALE = "Female Model"
    MALE = "Male Model"
    HAND = "Hand Model (Close up)"


class LocationChoice(str, Enum):
    STUDIO = "Professional Studio"
    LIVING_ROOM = "Cozy Living Room"
    URBAN = "Urban Street / City"
    NATURE = "Nature / Park"
    CONCRETE = "Minimalist Concrete"
    LUXURY = "Luxury Interior"


class StyleChoice(str, Enum):
    NEUTRAL = "Neutral & Clean"
    STREETWEAR = "Streetwear / Trendy"
    VINTAGE = "Vintage / Retro"
    FORMAL = "Professional / Formal"
    BOHO = "Boho / Artistic"


class QuickEdit(str, Enum):
    REMOVE_BACKGROUND = "Remove the background"
    WARM_FILTER = "Add a cozy warm filter"
    WHITE_WALL = "Make the background a white studio wall"
    ENHANCE_LIGHTING = "Enhance lighting and contrast"


@dataclass
class StyleSelection:
    """Pro Style inputs. Lives only as long as the session; reset restores the defaults."""

    model: ModelChoice = ModelChoice.NO_MODEL
    location: LocationChoice = LocationChoice.STUDIO
    style: StyleChoice = StyleChoice.NEUTRAL
    custom_details: str = ""
    resolution: ImageResolution = ImageResolution.ONE_K
