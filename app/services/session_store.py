"""
In-memory registry of listing sessions, keyed by the browser's session id.

Nothing is persisted: sessions live as long as the process does.
"""

import logging
from typing import Optional

from .gemini import GeminiGateway, get_gateway
from .listing_session import ListingSession

logger = logging.getLogger(__name__)

_sessions: dict[str, ListingSession] = {}


def get_session(session_id: str, gateway: Optional[GeminiGateway] = None) -> ListingSession:
    """Return the session for ``session_id``, creating it on first use."""
    session = _sessions.get(session_id)
    if session is None:
        session = ListingSession(gateway or get_gateway(), session_id=session_id)
        _sessions[session_id] = session
        logger.debug("Created listing session: %s (%d active)", session_id, len(_sessions))
    return session


def find_session(session_id: str) -> Optional[ListingSession]:
    """Return the session for ``session_id`` if one exists. Never creates."""
    return _sessions.get(session_id)


def remove_session(session_id: str) -> None:
    _sessions.pop(session_id, None)


def clear_sessions() -> None:
    _sessions.clear()
