"""
Stripe Checkout integration for listing add-ons.
"""

import json
import logging

import stripe
from django.conf import settings

from . import pricing

logger = logging.getLogger(__name__)


class PaymentError(Exception):
    """Raised when the payment provider rejects or fails a request."""


class WebhookSignatureError(Exception):
    """Raised when a webhook payload cannot be authenticated."""


def build_line_items(addon_types):
    """
    Build Checkout line items for the requested add-ons.

    Unknown add-on types are skipped. A configured Stripe price id is used
    when present, otherwise the price is sent inline from the catalog.
    """
    line_items = []
    for addon_type in addon_types:
        info = pricing.addon_info(addon_type)
        if info is None:
            continue

        price_id = pricing.stripe_price_id(addon_type)
        if price_id:
            line_items.append({'price': price_id, 'quantity': 1})
        else:
            line_items.append({
                'price_data': {
                    'currency': 'usd',
                    'product_data': {
                        'name': pricing.display_name(addon_type),
                        'description': info['description'],
                    },
                    'unit_amount': info['price'],
                },
                'quantity': 1,
            })
    return line_items


def create_listing_addons_session(listing, user, addon_types, success_url, cancel_url):
    """
    Create a Checkout Session for ``addon_types`` on ``listing``.

    Returns:
        The Stripe session object (exposes ``id`` and ``url``)

    Raises:
        PaymentError: If Stripe rejects the request
    """
    line_items = build_line_items(addon_types)
    try:
        return stripe.checkout.Session.create(
            api_key=settings.STRIPE_SECRET_KEY,
            mode='payment',
            payment_method_types=['card'],
            line_items=line_items,
            success_url=success_url,
            cancel_url=cancel_url,
            customer_email=user.email,
            metadata={
                'type': 'listing_addons',
                'listingId': str(listing.id),
                'userId': str(user.id),
                'addons': json.dumps(list(addon_types)),
            },
        )
    except stripe.StripeError as e:
        logger.error(
            f"Stripe checkout session failed. Listing: {listing.id}, "
            f"User: {user.id}, Error: {str(e)}"
        )
        raise PaymentError(str(e)) from e


def construct_webhook_event(payload, signature):
    """
    Verify and decode a Stripe webhook payload.

    Raises:
        WebhookSignatureError: If the signature or payload is invalid
    """
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise WebhookSignatureError('Webhook secret is not configured')
    try:
        return stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        raise WebhookSignatureError(str(e)) from e
