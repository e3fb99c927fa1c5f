"""
Stripe helpers shared by checkout, campaign payments and refunds.

The API key is read on each call through get_config_value so tests and
multi-tenant deployments can swap keys in app.config.

Objects read back from Stripe (retrieved intents, webhook events) are
returned as plain nested dicts so callers can use .get() on them.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

import stripe

from swagco.core import get_config_value

logger = logging.getLogger(__name__)


class PaymentsNotConfigured(Exception):
    """Raised when STRIPE_SECRET_KEY is missing"""


def configure_stripe():
    secret_key = get_config_value('STRIPE_SECRET_KEY')
    if not secret_key:
        raise PaymentsNotConfigured('Stripe is not configured')
    stripe.api_key = secret_key
    return stripe


def to_cents(amount):
    return int(Decimal(str(amount)).scaleb(2).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def as_dict(value):
    """Recursive plain-dict copy of a StripeObject"""
    if isinstance(value, stripe.StripeObject):
        value = value.to_dict()
    if isinstance(value, dict):
        return {k: as_dict(v) for k, v in value.items()}
    if isinstance(value, list):
        return [as_dict(v) for v in value]
    return value


def create_payment_intent(amount_cents, metadata, receipt_email=None, description=None):
    configure_stripe()
    params = {
        'amount': amount_cents,
        'currency': get_config_value('STRIPE_CURRENCY', 'usd'),
        'metadata': metadata,
        'automatic_payment_methods': {'enabled': True},
    }
    if receipt_email:
        params['receipt_email'] = receipt_email
    if description:
        params['description'] = description

    intent = stripe.PaymentIntent.create(**params)
    logger.info(f"Created PaymentIntent {intent['id']} for {amount_cents} cents")
    return intent


def retrieve_payment_intent(payment_intent_id):
    configure_stripe()
    return as_dict(stripe.PaymentIntent.retrieve(payment_intent_id))


def refund_payment_intent(payment_intent_id):
    configure_stripe()
    refund = stripe.Refund.create(payment_intent=payment_intent_id)
    logger.info(f"Refunded PaymentIntent {payment_intent_id}")
    return refund


def construct_webhook_event(payload, sig_header):
    """Verify and parse a webhook payload into a plain dict.

    Raises ValueError for a malformed payload and
    stripe.SignatureVerificationError for a bad signature.
    """
    secret = get_config_value('STRIPE_WEBHOOK_SECRET')
    return as_dict(stripe.Webhook.construct_event(payload, sig_header, secret))
