"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check which ride store is active and whether Supabase answers."""
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "store": "memory",
            "message": "Supabase not configured. Set RIDESEARCH_SUPABASE_URL and RIDESEARCH_SUPABASE_KEY environment variables.",
        }

    try:
        supabase.table(settings.rides_table).select("ride_id", count="exact").limit(1).execute()
    except Exception as exc:
        return {
            "configured": True,
            "store": "supabase",
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
    return {
        "configured": True,
        "store": "supabase",
        "connected": True,
        "message": f"Database connected. Rides table '{settings.rides_table}' is reachable.",
    }
