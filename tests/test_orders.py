"""
Order checkout, lookup and admin workflow tests.
Run with: pytest tests/test_orders.py -v
"""

from datetime import date
from unittest.mock import patch

import pytest

from conftest import order_payload


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------

def test_place_order_prices_server_side(order):
    assert order['status'] == 'pending_art_review'
    assert order['total_quantity'] == 48
    assert order['total_cost'] == pytest.approx(890.0)
    assert order['deposit_amount'] == pytest.approx(445.0)
    assert order['balance_due'] == pytest.approx(445.0)
    assert order['deposit_paid'] is False
    assert order['pricing_breakdown']['setup_fees'] == pytest.approx(50)


def test_place_order_ignores_client_totals(client, garment):
    response = client.post('/api/orders', json=order_payload(garment['id'], total_cost=1.0))
    assert response.status_code == 201
    assert response.get_json()['total_cost'] == pytest.approx(890.0)


def test_place_order_validation_errors(client, garment):
    response = client.post('/api/orders', json=order_payload(garment['id'], email='not-an-email', phone='123'))
    assert response.status_code == 400
    data = response.get_json()
    assert data['error'] == 'Invalid order data'
    assert 'Valid email is required' in data['details']
    assert 'Phone number is required' in data['details']


def test_place_order_below_minimum(client, garment):
    response = client.post('/api/orders', json=order_payload(garment['id'], size_quantities={'M': 10}))
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Minimum order quantity is 24 pieces'


def test_place_multi_color_order(client, garment):
    payload = order_payload(garment['id'], color_size_quantities={
        'Black': {'M': 12, 'L': 12},
        'White': {'S': 24},
    })
    del payload['garment_color']
    del payload['size_quantities']
    response = client.post('/api/orders', json=payload)
    assert response.status_code == 201
    order = response.get_json()
    assert order['total_quantity'] == 48
    assert order['garment_color'] == 'Black'


def test_place_multi_garment_order(client, garment, second_garment):
    payload = order_payload(garment['id'], garment_id=None, color_size_quantities={
        'Black': {'M': 30}, 'Navy': {'L': 24},
    }, selected_garments={
        garment['id']: {'colorSizeQuantities': {'Black': {'M': 30}}},
        second_garment['id']: {'colorSizeQuantities': {'Navy': {'L': 24}}},
    })
    del payload['garment_color']
    del payload['size_quantities']
    response = client.post('/api/orders', json=payload)
    assert response.status_code == 201
    order = response.get_json()
    assert order['total_quantity'] == 54
    assert order['total_cost'] == pytest.approx(15.0 * 30 + 30.0 * 24 + 2.5 * 54 + 50)
    assert len(order['pricing_breakdown']['garment_breakdown']) == 2


def test_place_order_rejects_non_object_garment_selection(client, garment):
    payload = order_payload(garment['id'], selected_garments={garment['id']: 'oops'})
    response = client.post('/api/orders', json=payload)
    assert response.status_code == 400
    assert f"selected_garments.{garment['id']} must be an object" in response.get_json()['details']


def test_place_order_with_discount_code(admin_client, client, garment):
    admin_client.post('/api/discount-codes', json={
        'code': 'save10', 'discount_type': 'percentage', 'discount_value': 10,
    })
    response = client.post('/api/orders', json=order_payload(garment['id'], discount_code='SAVE10'))
    assert response.status_code == 201
    order = response.get_json()
    assert order['discount_amount'] == pytest.approx(89.0)
    assert order['total_cost'] == pytest.approx(801.0)

    codes = admin_client.get('/api/discount-codes').get_json()['discount_codes']
    assert codes[0]['usage_count'] == 1


def test_place_order_with_unknown_discount_code(client, garment):
    response = client.post('/api/orders', json=order_payload(garment['id'], discount_code='NOPE'))
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Invalid discount code'


def test_place_order_sends_emails(client, garment):
    with patch('swagco.modules.orders.routes.email_service') as mock_email:
        response = client.post('/api/orders', json=order_payload(garment['id']))
    assert response.status_code == 201
    mock_email.send_order_confirmation.assert_called_once()
    mock_email.send_admin_order_notification.assert_called_once()


def test_email_failure_does_not_fail_checkout(client, garment):
    from swagco.modules.email.email_service import email_service

    def smtp_down(order):
        raise RuntimeError('smtp down')

    with patch.object(email_service, 'send_order_confirmation', smtp_down):
        response = client.post('/api/orders', json=order_payload(garment['id']))
    assert response.status_code == 201


def test_signed_in_checkout_updates_profile(customer_client, garment):
    response = customer_client.post('/api/orders', json=order_payload(
        garment['id'], email='organizer@example.com', organization_name='Robotics Club',
    ))
    assert response.status_code == 201

    customer = customer_client.get('/api/customers/profile').get_json()['customer']
    assert customer['organization_name'] == 'Robotics Club'
    assert customer['default_shipping_address']['city'] == 'Austin'

    orders = customer_client.get('/api/orders/customer').get_json()['orders']
    assert len(orders) == 1


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

def test_order_detail_includes_activity(client, order):
    response = client.get(f"/api/orders/{order['id']}")
    assert response.status_code == 200
    data = response.get_json()
    assert data['garment']['name'] == 'Test Tee'
    assert data['artwork_files'] == []
    assert data['activity'][0]['activity_type'] == 'status_change'


def test_order_detail_missing(client):
    assert client.get('/api/orders/missing').status_code == 404


def test_customer_orders_requires_login(client):
    assert client.get('/api/orders/customer').status_code == 401


def test_admin_lists_orders_by_status(admin_client, order):
    response = admin_client.get('/api/orders?status=pending_art_review')
    assert response.status_code == 200
    orders = response.get_json()['orders']
    assert [o['id'] for o in orders] == [order['id']]
    assert orders[0]['garment']['brand'] == 'Acme'

    assert admin_client.get('/api/orders?status=completed').get_json()['orders'] == []


# ---------------------------------------------------------------------------
# Admin updates
# ---------------------------------------------------------------------------

def test_admin_status_change_is_logged(admin_client, order):
    response = admin_client.patch(f"/api/orders/{order['id']}", json={'status': 'art_approved'})
    assert response.status_code == 200
    assert response.get_json()['status'] == 'art_approved'

    activity = admin_client.get(f"/api/orders/{order['id']}").get_json()['activity']
    assert activity[0]['description'] == 'Status changed to art_approved'
    assert activity[0]['performed_by'] == 'admin'


def test_admin_rejects_unknown_status(admin_client, order):
    response = admin_client.patch(f"/api/orders/{order['id']}", json={'status': 'lost'})
    assert response.status_code == 400


def test_admin_adds_note(admin_client, order):
    response = admin_client.post(f"/api/orders/{order['id']}/notes", json={'note': 'Customer called'})
    assert response.status_code == 201
    assert response.get_json()['activity'][0]['activity_type'] == 'note_added'


def test_send_email_requires_revision_notes(admin_client, order):
    response = admin_client.post(f"/api/orders/{order['id']}/send-email", json={'email_type': 'art_revision_needed'})
    assert response.status_code == 400


def test_send_art_approved_email(admin_client, order):
    with patch('swagco.modules.orders.routes.email_service') as mock_email:
        mock_email.send_art_approved.return_value = True
        response = admin_client.post(f"/api/orders/{order['id']}/send-email", json={'email_type': 'art_approved'})
    assert response.status_code == 200
    assert response.get_json()['sent'] is True

    activity = admin_client.get(f"/api/orders/{order['id']}").get_json()['activity']
    assert activity[0]['activity_type'] == 'email_sent'


def test_send_email_rejects_unknown_type(admin_client, order):
    response = admin_client.post(f"/api/orders/{order['id']}/send-email", json={'email_type': 'spam'})
    assert response.status_code == 400


def test_add_business_days_skips_weekends():
    from swagco.modules.orders.routes import add_business_days

    # Friday + 1 business day -> Monday
    assert add_business_days(date(2024, 3, 1), 1) == date(2024, 3, 4)
    assert add_business_days(date(2024, 3, 4), 14) == date(2024, 3, 22)
