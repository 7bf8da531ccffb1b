"""
Main API router. Mounts all sub-routers.
"""

from fastapi import APIRouter

from .listing import listing_router

router = APIRouter()


# ── Health ───────────────────────────────────────────────────────────

@router.get("/health")
async def health():
    from ..core.flags import get_flags

    return {
        "status": "ok",
        "service": "sellsmart",
        "pro_generation": "simulated" if get_flags().mock_pro_generation else "gemini",
    }


# ── V1 routes ────────────────────────────────────────────────────────

router.include_router(listing_router, prefix="/v1")
