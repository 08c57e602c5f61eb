"""Rate limiting (slowapi for form endpoints, limits for webhook intake)"""
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse

from armory.core.logging import get_logger

logger = get_logger(__name__)

LOGIN_RATE_LIMIT = "5/minute"
PASSWORD_RESET_RATE_LIMIT = "3/hour"
WEBHOOK_RATE_LIMIT = "10/minute"

PROCESSOR_USER_AGENT_PREFIX = "Stripe/"


def get_client_ip(request: Request) -> str:
    """
    Client IP address.
    Behind a proxy the first X-Forwarded-For hop is used.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


# Shared by the login and password recovery routes, keyed by client IP
limiter = Limiter(key_func=get_client_ip, storage_uri="memory://")


class SourceRateLimiter:
    """Fixed-window limiter keyed by an arbitrary source identifier.

    Storage is the in-memory backend of ``limits``, which is safe for
    concurrent hits from the worker thread pool.
    """

    def __init__(self, rate: str, namespace: str):
        self.rate = parse(rate)
        self.namespace = namespace
        self._storage = MemoryStorage()
        self._strategy = FixedWindowRateLimiter(self._storage)

    def hit(self, key: str) -> bool:
        """Consume one slot. False when the source is over the limit."""
        return self._strategy.hit(self.rate, self.namespace, key)

    def reset(self):
        self._storage.reset()


webhook_limiter = SourceRateLimiter(WEBHOOK_RATE_LIMIT, "webhook")


def is_processor_request(request: Request) -> bool:
    return request.headers.get("User-Agent", "").startswith(PROCESSOR_USER_AGENT_PREFIX)


def check_webhook_rate_limit(request: Request) -> bool:
    """Processor traffic is never limited"""
    if is_processor_request(request):
        return True
    ip = get_client_ip(request)
    allowed = webhook_limiter.hit(ip)
    if not allowed:
        logger.warning(f"Webhook rate limit exceeded: ip={ip}")
    return allowed


def too_many_requests() -> JSONResponse:
    return JSONResponse(status_code=429, content={"detail": "Too many requests"})


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit exceeded: path={request.url.path} ip={get_client_ip(request)}")
    return too_many_requests()
