"""
Health endpoints for deployment readiness probes.

/health answers without touching storage; /health/db pings the configured
store (Firestore or the in-memory backend).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from sanitrack.core.settings import settings
from sanitrack.storage import Store, get_store
from sanitrack.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Liveness: 200 whenever the process is serving requests."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "store": "memory" if settings.USE_MOCK_DB else "firestore",
        "timestamp": utcnow().isoformat()
    }


@router.get("/db")
def database_health(store: Store = Depends(get_store)):
    """Readiness: 503 when the store cannot be reached."""
    try:
        info = store.ping()
    except Exception as e:
        logger.error(f"Store ping failed: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail=f"Store unreachable: {e}")

    return {"status": "healthy", "connected": True, **info, "timestamp": utcnow().isoformat()}
