"""Security header middleware"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from armory.core.config import settings

# Checkout redirects leave the site for the hosted Stripe page
STRIPE_CHECKOUT_ORIGIN = "https://checkout.stripe.com"

CONTENT_SECURITY_POLICY = (
    "default-src 'self'; "
    "script-src 'self' https://js.stripe.com; "
    "style-src 'self' 'unsafe-inline'; "
    "img-src 'self' data:; "
    "frame-ancestors 'none'; "
    f"form-action 'self' {STRIPE_CHECKOUT_ORIGIN}"
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        headers = response.headers
        headers["X-Frame-Options"] = "DENY"
        headers["X-Content-Type-Options"] = "nosniff"
        headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
        headers["Permissions-Policy"] = "geolocation=(), camera=(), microphone=(), payment=()"
        # Only over TLS
        if settings.APP_BASE_URL.startswith("https://"):
            headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response
