"""Admin dashboards: user statistics, error metrics, detailed and webhook health"""
import platform
import threading
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from armory.core.config import settings
from armory.core.database import check_db_connection, get_db
from armory.core.metrics import RANGES, error_metrics
from armory.core.templates import TemplateRenderer, get_renderer
from armory.core.webhook_monitor import webhook_monitor
from armory.models.user import User
from armory.routers.deps import require_admin, wants_json
from armory.schemas.user import AdminUserInfo
from armory.services import admin_service

router = APIRouter(prefix="/admin", tags=["admin-dashboard"])

APP_VERSION = "1.0.0"
STARTED_AT = time.monotonic()


def _iso(dt):
    return dt.isoformat() if dt else None


@router.get("/dashboard")
def dashboard(
    request: Request,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    stats = admin_service.dashboard_stats(db)
    if wants_json(request):
        return stats
    return renderer.render(request, "admin/dashboard.html", {"user": user, "stats": stats})


@router.get("/users")
def users(
    request: Request,
    page: int = 1,
    perPage: int = admin_service.DEFAULT_PER_PAGE,
    sortBy: str = admin_service.DEFAULT_SORT,
    sortOrder: str = "desc",
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    result = admin_service.list_users(db, page=page, per_page=perPage, sort_by=sortBy, sort_order=sortOrder)
    if wants_json(request):
        return {
            "users": [AdminUserInfo.model_validate(u).model_dump(mode="json") for u in result.users],
            "page": result.page,
            "perPage": result.per_page,
            "total": result.total,
            "totalPages": result.total_pages,
            "sortBy": result.sort_by,
            "sortOrder": result.sort_order,
        }
    return renderer.render(request, "admin/users.html", {
        "user": user,
        "result": result,
        "per_page_choices": admin_service.PER_PAGE_CHOICES,
    })


@router.get("/error-metrics")
def error_metrics_view(window: str = Query("24h", alias="range"), user: User = Depends(require_admin)):
    if window not in RANGES:
        return JSONResponse(status_code=400, content={"detail": f"range must be one of {', '.join(RANGES)}"})
    error_metrics.cleanup()
    recent = [{**row, "last_occurred": _iso(row["last_occurred"])} for row in error_metrics.recent_errors()]
    return {
        "range": window,
        "stats": error_metrics.stats(),
        "recent_errors": recent,
        "error_rates": error_metrics.error_rates(RANGES[window]),
        "latency_percentiles": error_metrics.latency_percentiles(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/detailed-health")
def detailed_health(user: User = Depends(require_admin)):
    started = time.perf_counter()
    db_ok = check_db_connection()
    db_latency_ms = round((time.perf_counter() - started) * 1000, 2)

    return {
        "status": "healthy" if db_ok else "unhealthy",
        "database": {"status": "connected" if db_ok else "disconnected", "latency_ms": db_latency_ms},
        "system": {
            "uptime_seconds": round(time.monotonic() - STARTED_AT, 1),
            "threads": threading.active_count(),
            "python_version": platform.python_version(),
        },
        "services": {
            "stripe": "configured" if settings.processor_enabled else "test mode",
            "email": "configured" if settings.mail_enabled else "console",
        },
        "version": APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/webhook-health")
def webhook_health(user: User = Depends(require_admin)):
    return webhook_monitor.health()
