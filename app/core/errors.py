"""
Error taxonomy for calls that leave the process.

Every failure of the Gemini gateway surfaces as one of these. The session
controller catches them and turns them into a single user-facing notice.
"""


class GatewayError(Exception):
    """Base class for failed round trips to the generative AI service."""


class AnalysisFailed(GatewayError):
    """The analysis model returned no text, or JSON that does not fit the listing schema."""


class EditFailed(GatewayError):
    """The image editing model answered without an inline image."""


class GenerateFailed(GatewayError):
    """The pro image model answered without an inline image."""


class AuthError(GatewayError):
    """GEMINI_API_KEY is missing or was rejected."""


class TransportError(GatewayError):
    """Network or service-side failure reaching Gemini."""
