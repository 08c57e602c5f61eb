"""Stripe API calls"""
from typing import Optional

import stripe

from armory.core.config import settings
from armory.core.logging import get_logger

logger = get_logger(__name__)

_http_client = None


def _init_stripe():
    global _http_client
    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.max_network_retries = 0
    if _http_client is None:
        _http_client = stripe.RequestsClient(timeout=settings.PROCESSOR_TIMEOUT_SECONDS)
    stripe.default_http_client = _http_client


def create_checkout_session(
    tier: str,
    amount: int,
    label: str,
    recurring_interval: Optional[str],
    client_reference_id: str,
    success_url: str,
    cancel_url: str,
    customer_id: Optional[str] = None,
    customer_email: Optional[str] = None,
    metadata: Optional[dict] = None,
):
    """Create a Checkout Session and return it (``session.url`` is the hosted page)"""
    _init_stripe()
    price_id = settings.price_id_for(tier)
    if price_id:
        line_item = {"price": price_id, "quantity": 1}
    else:
        price_data = {
            "currency": "usd",
            "unit_amount": amount,
            "product_data": {"name": f"{label} Subscription"},
        }
        if recurring_interval:
            price_data["recurring"] = {"interval": recurring_interval}
        line_item = {"price_data": price_data, "quantity": 1}

    params = {
        "mode": "subscription" if recurring_interval else "payment",
        "line_items": [line_item],
        "client_reference_id": client_reference_id,
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": metadata or {},
    }
    if recurring_interval:
        params["subscription_data"] = {"metadata": metadata or {}}

    if customer_id:
        params["customer"] = customer_id
    elif customer_email:
        params["customer_email"] = customer_email

    session = stripe.checkout.Session.create(**params)
    logger.info(f"Stripe Checkout Session created: id={session.id}, tier={tier}, client={client_reference_id}")
    return session


def retrieve_checkout_session(session_id: str):
    _init_stripe()
    return stripe.checkout.Session.retrieve(session_id)


def cancel_subscription(subscription_id: str, at_period_end: bool = True):
    """Stop renewal. With at_period_end the customer keeps access until the period ends."""
    _init_stripe()
    if at_period_end:
        stripe.Subscription.modify(subscription_id, cancel_at_period_end=True)
    else:
        stripe.Subscription.cancel(subscription_id)


def find_active_subscription_id(customer_id: str) -> Optional[str]:
    """First active subscription of a customer, for users stored without a subscription id"""
    _init_stripe()
    subscriptions = stripe.Subscription.list(customer=customer_id, status="active", limit=1)
    for subscription in subscriptions.data:
        return subscription.id
    return None


def construct_webhook_event(payload: bytes, sig_header: str, secret: str):
    """Build and verify a webhook event"""
    return stripe.Webhook.construct_event(payload, sig_header, secret)
