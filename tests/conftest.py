"""
Shared fixtures for the SwagCo test suite.

Every test gets a fresh SQLite directory. Stripe API, email and storage calls
are patched in the individual tests that reach them; webhooks are posted with
real signatures and go through stripe.Webhook.construct_event.
"""

import hashlib
import hmac
import json
import os
import shutil
import tempfile
import time

import pytest
import stripe

from swagco import create_app


PRINT_CONFIG = {'locations': {'front': {'enabled': True, 'num_colors': 2}}}

SHIPPING_ADDRESS = {
    'line1': '12 Main St',
    'city': 'Austin',
    'state': 'TX',
    'postal_code': '78701',
    'country': 'US',
}

WEBHOOK_SECRET = 'whsec_test_fake'


# ---------------------------------------------------------------------------
# App and clients
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="swagco-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def app(tmp_db_dir):
    """Fully initialised Flask app with all SwagCo modules registered."""
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "DB_DIR": tmp_db_dir,
        "SHOP_DB": os.path.join(tmp_db_dir, "shop.db"),
        "ANALYTICS_DB": os.path.join(tmp_db_dir, "analytics.db"),
        "EMAIL_PROVIDER": "resend",
        "RESEND_API_KEY": "",
        "EMAIL_ADMIN_EMAIL": "",
        "STORAGE_TYPE": "local",
        "STRIPE_SECRET_KEY": "sk_test_fake",
        "STRIPE_PUBLISHABLE_KEY": "pk_test_fake",
        "STRIPE_WEBHOOK_SECRET": WEBHOOK_SECRET,
        "VECTORIZER_API_ID": "vk_test_id",
        "VECTORIZER_API_SECRET": "vk_test_secret",
    })
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def customer_client(app):
    """Test client signed in as a freshly registered customer."""
    c = app.test_client()
    response = c.post('/api/customers/register', json={
        'email': 'organizer@example.com',
        'password': 'correct-horse',
        'name': 'Olive Organizer',
    })
    assert response.status_code == 201
    return c


@pytest.fixture
def admin_client(app):
    """Test client signed in as an admin."""
    from swagco.modules.auth.database import AccountDatabase

    with app.app_context():
        AccountDatabase.create_admin('admin@example.com', 'admin-password')

    c = app.test_client()
    response = c.post('/api/admin/login', json={
        'email': 'admin@example.com',
        'password': 'admin-password',
    })
    assert response.status_code == 200
    return c


# ---------------------------------------------------------------------------
# Catalog and orders
# ---------------------------------------------------------------------------

@pytest.fixture
def garment(app):
    """A garment with a round base cost so prices are easy to check."""
    from swagco.modules.garments.models import create_garment

    with app.app_context():
        return create_garment({
            'name': 'Test Tee',
            'brand': 'Acme',
            'description': 'Plain tee',
            'category': 't-shirts',
            'base_cost': 10.0,
            'available_colors': ['Black', 'White'],
            'size_range': ['S', 'M', 'L', 'XL'],
        })


@pytest.fixture
def second_garment(app):
    from swagco.modules.garments.models import create_garment

    with app.app_context():
        return create_garment({
            'name': 'Test Hoodie',
            'brand': 'Acme',
            'description': 'Heavy hoodie',
            'category': 'hoodies',
            'base_cost': 20.0,
            'available_colors': ['Navy', 'Grey'],
            'size_range': ['S', 'M', 'L'],
        })


def order_payload(garment_id, /, **overrides):
    payload = {
        'customer_name': 'Casey Customer',
        'email': 'casey@example.com',
        'phone': '5125550100',
        'shipping_address': dict(SHIPPING_ADDRESS),
        'garment_id': garment_id,
        'garment_color': 'Black',
        'size_quantities': {'M': 24, 'L': 24},
        'print_config': PRINT_CONFIG,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def order(client, garment):
    """A 48-piece single-garment order placed through the API."""
    response = client.post('/api/orders', json=order_payload(garment['id']))
    assert response.status_code == 201
    return response.get_json()


@pytest.fixture
def tiered_garment(app):
    """Same base cost as `garment` but assigned to the 48-71 tier (45% markup)."""
    from swagco.modules.garments.models import create_garment
    from swagco.modules.pricing.models import get_all_tiers

    with app.app_context():
        tier = next(t for t in get_all_tiers() if t['min_qty'] == 48)
        return create_garment({
            'name': 'Tiered Tee',
            'brand': 'Acme',
            'description': 'Plain tee on the 48-71 tier',
            'category': 't-shirts',
            'base_cost': 10.0,
            'available_colors': ['Black'],
            'size_range': ['M', 'L'],
            'pricing_tier_id': tier['id'],
        })


# ---------------------------------------------------------------------------
# Stripe
# ---------------------------------------------------------------------------

def payment_intent(**values):
    """A real stripe.PaymentIntent, as returned by PaymentIntent.retrieve."""
    return stripe.PaymentIntent.construct_from({'object': 'payment_intent', **values}, 'sk_test_fake')


def stripe_event(intent, event_type='payment_intent.succeeded'):
    return {
        'id': 'evt_test',
        'object': 'event',
        'type': event_type,
        'data': {'object': {'object': 'payment_intent', **intent}},
    }


def post_webhook(client, event, secret=WEBHOOK_SECRET):
    """POST an event to the webhook with a valid Stripe-Signature header."""
    payload = json.dumps(event)
    timestamp = int(time.time())
    signature = hmac.new(
        secret.encode('utf-8'), f'{timestamp}.{payload}'.encode('utf-8'), hashlib.sha256
    ).hexdigest()
    return client.post(
        '/api/payments/webhook',
        data=payload,
        headers={'Stripe-Signature': f't={timestamp},v1={signature}'},
        content_type='application/json',
    )
