"""
FastAPI dependencies. Injected into route handlers.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Path, status

from ..services.gemini import GeminiGateway, get_gateway
from ..services.session_store import find_session, get_session
from ..services.listing_session import ListingSession


def get_gateway_dep() -> GeminiGateway:
    """Returns the Gemini gateway with the flag-selected pro backend."""
    return get_gateway()


def _session_id(session_id: str = Path(min_length=1, max_length=128)) -> str:
    if not session_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="session_id must not be blank",
        )
    return session_id


def get_listing_session(
    session_id: str = Depends(_session_id),
    gateway: GeminiGateway = Depends(get_gateway_dep),
) -> ListingSession:
    """Resolve the caller's listing session (created on first request)."""
    return get_session(session_id, gateway)


def find_listing_session(session_id: str = Depends(_session_id)) -> Optional[ListingSession]:
    """Look up the caller's listing session for read-only routes. None if never used."""
    return find_session(session_id)
