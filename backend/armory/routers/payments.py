"""Pricing, checkout, the success/cancel returns, payment history and cancellation"""
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from armory.core.database import get_db
from armory.core.errors import AlreadyExists, ArmoryError, NotAnUpgrade, Transient, ValidationFailed
from armory.core.flash import redirect_with_flash, set_flash
from armory.core.logging import get_logger
from armory.core.templates import TemplateRenderer, get_renderer
from armory.models.payment import Payment
from armory.models.user import User
from armory.routers.deps import get_current_user, require_login
from armory.services import checkout_service, quota_service, subscription_service, tier_policy
from armory.services.subscription_service import ApplyOutcome

logger = get_logger(__name__)

router = APIRouter(tags=["payments"])

PAYMENT_SUCCESS_MESSAGE = "Your payment was successful! Thank you for your subscription."
PAYMENT_APOLOGY_MESSAGE = (
    "We received your payment but couldn't update your subscription yet. "
    "It will be applied shortly; please contact support if it doesn't appear."
)
PAYMENT_CANCELLED_MESSAGE = "Your payment was cancelled. If you have any questions, please contact support."


def _format_date(moment) -> str:
    return f"{moment:%B} {moment.day}, {moment.year}"


@router.get("/pricing")
def pricing(
    request: Request,
    user: Optional[User] = Depends(get_current_user),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    plans = [
        {"tier": tier, "label": tier_policy.label(tier), "price": tier_policy.price_for(tier) / 100}
        for tier in tier_policy.PAID_TIERS
    ]
    return renderer.render(request, "payments/pricing.html", {
        "user": user,
        "plans": plans,
        "current_tier": user.subscription_tier if user else tier_policy.FREE,
        "has_active_subscription": bool(user) and quota_service.has_active_subscription(user),
    })


# =========================================================
# Checkout
# =========================================================

def _start_checkout(request: Request, user: User, tier: str, renderer: TemplateRenderer):
    try:
        url = checkout_service.begin_checkout(user, tier)
    except (ValidationFailed, NotAnUpgrade) as e:
        return redirect_with_flash("/pricing", e.message, "error")
    except Transient as e:
        response = renderer.render(request, "error.html", {"error": e.message}, status_code=502)
        set_flash(response, e.message, "error")
        return response
    return RedirectResponse(url=url, status_code=303)


@router.get("/checkout")
def checkout_page(
    request: Request,
    tier: str = "",
    user: User = Depends(require_login),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    return _start_checkout(request, user, tier, renderer)


@router.post("/checkout")
def checkout(
    request: Request,
    tier: str = Form(""),
    user: User = Depends(require_login),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    return _start_checkout(request, user, tier, renderer)


@router.get("/payment/success")
def payment_success(
    session_id: str = "",
    user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Always redirects to /owner; only the flash differs"""
    if user is None:
        return redirect_with_flash("/owner", "Please log in to view your subscription.", "error")
    if not session_id:
        return redirect_with_flash("/owner", "Missing checkout session. Please contact support.", "error")

    try:
        result = checkout_service.finalize_success(db, user, session_id)
    except Transient:
        logger.error(f"Payment success finalisation failed transiently: user_id={user.id}, session={session_id}")
        return redirect_with_flash("/owner", PAYMENT_APOLOGY_MESSAGE, "warning")
    except ArmoryError as e:
        logger.warning(f"Payment success rejected: user_id={user.id}, session={session_id} - {e.message}")
        return redirect_with_flash("/owner", e.message, "error")

    if result.outcome is ApplyOutcome.REJECTED:
        return redirect_with_flash("/owner", result.reason, "error")
    return redirect_with_flash("/owner", PAYMENT_SUCCESS_MESSAGE, "success")


@router.get("/payment/cancel")
def payment_cancel():
    return redirect_with_flash("/pricing", PAYMENT_CANCELLED_MESSAGE, "info")


@router.get("/owner/payment-history")
def payment_history(
    request: Request,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    payments = (
        db.query(Payment)
        .filter(Payment.user_id == user.id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )
    return renderer.render(request, "payments/history.html", {
        "user": user,
        "payments": payments,
        "tier_label": tier_policy.label(user.subscription_tier),
        "is_lifetime": tier_policy.is_lifetime(user.subscription_tier),
    })


# =========================================================
# Cancellation
# =========================================================

@router.get("/subscription/cancel/confirm")
def cancel_confirm(
    request: Request,
    user: User = Depends(require_login),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    try:
        subscription_service.ensure_cancellable(user)
    except ValidationFailed as e:
        return redirect_with_flash("/owner/payment-history", e.message, "error")
    except AlreadyExists as e:
        return redirect_with_flash("/owner/payment-history", e.message, "info")
    return renderer.render(request, "payments/cancel_confirm.html", {
        "user": user,
        "tier_label": tier_policy.label(user.subscription_tier),
    })


@router.post("/subscription/cancel")
def cancel_subscription(
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    try:
        user = subscription_service.cancel(db, user.id)
    except ValidationFailed as e:
        return redirect_with_flash("/owner/payment-history", e.message, "error")
    except AlreadyExists as e:
        return redirect_with_flash("/owner/payment-history", e.message, "info")
    except Transient:
        return redirect_with_flash(
            "/pricing", "We couldn't reach the payment processor to cancel your subscription. Please try again.",
            "error",
        )

    message = "Your subscription has been canceled."
    if user.subscription_expires_at:
        message += f" You will continue to have access until {_format_date(user.subscription_expires_at)}."
    return redirect_with_flash("/owner/payment-history", message, "success")
