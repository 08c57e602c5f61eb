from fastapi import APIRouter

from armory.core.database import check_db_connection

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check():
    """Liveness plus a database ping"""
    db_ok = check_db_connection()
    return {
        "status": "ok" if db_ok else "degraded",
        "db": "connected" if db_ok else "disconnected",
    }
