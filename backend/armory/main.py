from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from slowapi.errors import RateLimitExceeded

from armory.core.config import settings
from armory.core.database import Base, SessionLocal, engine
from armory.core.errors import ArmoryError, Forbidden, RateLimited, Unauthorized
from armory.core.flash import redirect_with_flash
from armory.core.logging import get_logger, setup_logging
from armory.core.metrics import ErrorMetricsMiddleware
from armory.core.rate_limit import limiter, rate_limit_exceeded_handler, too_many_requests
from armory.core.security_headers import SecurityHeadersMiddleware
from armory.core.templates import renderer
from armory.routers import account, admin_catalogs, admin_dashboard, auth, health, owner, pages, payments
from armory.routers import webhooks_stripe
from armory.services.catalog_seed import seed_catalogs
import armory.models  # noqa: F401

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(debug=settings.DEBUG, service=settings.SITE_NAME)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_catalogs(db)
    finally:
        db.close()
    logger.info(f"Application started: env={settings.APP_ENV}, processor_enabled={settings.processor_enabled}")
    yield
    logger.info("Application stopped")


app = FastAPI(
    title=settings.SITE_NAME,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def slowapi_rate_limit_handler(request: Request, exc: RateLimitExceeded):
    request.state.error_kind = RateLimited.kind
    return await rate_limit_exceeded_handler(request, exc)


@app.exception_handler(ArmoryError)
async def armory_error_handler(request: Request, exc: ArmoryError):
    request.state.error_kind = exc.kind
    if isinstance(exc, Unauthorized):
        return redirect_with_flash("/login", exc.message, "error")
    if isinstance(exc, Forbidden):
        return redirect_with_flash("/owner", exc.message, "error")
    if isinstance(exc, RateLimited):
        return too_many_requests()
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "kind": exc.kind})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    request.state.error_kind = "validation_failed"
    messages = [f"{e['loc'][-1]}: {e['msg']}" if e.get("loc") else e["msg"] for e in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": "; ".join(messages)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    try:
        return renderer.render(request, "error.html", {"error": "Something went wrong. Please try again."}, 500)
    except Exception:
        logger.exception("Error page rendering failed")
        return HTMLResponse("Internal Server Error", status_code=500)


# Registered last runs first
app.add_middleware(ErrorMetricsMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

app.include_router(health.router)
app.include_router(pages.router)
app.include_router(auth.router)
app.include_router(account.router)
app.include_router(payments.router)
app.include_router(webhooks_stripe.router)
app.include_router(owner.router)
app.include_router(admin_dashboard.router)
app.include_router(admin_catalogs.router)
