"""
Discount code tests.
Run with: pytest tests/test_discounts.py -v
"""

from datetime import datetime, timedelta, timezone

import pytest


def _create(admin_client, **overrides):
    payload = {'code': 'spring20', 'discount_type': 'percentage', 'discount_value': 20}
    payload.update(overrides)
    return admin_client.post('/api/discount-codes', json=payload)


def test_create_normalises_code(admin_client):
    response = _create(admin_client)
    assert response.status_code == 201
    code = response.get_json()['discount_code']
    assert code['code'] == 'SPRING20'
    assert code['active'] is True
    assert code['usage_count'] == 0


def test_create_rejects_duplicate(admin_client):
    _create(admin_client)
    response = _create(admin_client, code='Spring20')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'A discount code with this code already exists'


@pytest.mark.parametrize('overrides', [
    {'discount_type': 'bogo'},
    {'discount_value': 0},
    {'discount_value': 120},
])
def test_create_rejects_bad_terms(admin_client, overrides):
    assert _create(admin_client, **overrides).status_code == 400


@pytest.mark.parametrize('expires_at', [1767225600, {'date': '2030-01-01'}, 'next tuesday'])
def test_create_rejects_bad_expiry(admin_client, expires_at):
    response = _create(admin_client, expires_at=expires_at)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'expires_at must be an ISO 8601 timestamp'


def test_patch_rejects_bad_expiry_and_code_stays_usable(admin_client, client):
    discount_id = _create(admin_client).get_json()['discount_code']['id']

    response = admin_client.patch(f'/api/discount-codes/{discount_id}', json={'expires_at': 1767225600})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'expires_at must be an ISO 8601 timestamp'

    response = client.post('/api/discount-codes/validate', json={'code': 'SPRING20', 'subtotal': 100})
    assert response.status_code == 200
    assert response.get_json()['valid'] is True


def test_validate_percentage_code(admin_client, client):
    _create(admin_client)
    response = client.post('/api/discount-codes/validate', json={'code': ' spring20 ', 'subtotal': 250})
    assert response.status_code == 200
    data = response.get_json()
    assert data['valid'] is True
    assert data['discount']['discount_amount'] == pytest.approx(50.0)
    assert data['message'] == 'Discount applied: -$50.00'


def test_fixed_code_never_exceeds_subtotal(admin_client, client):
    _create(admin_client, code='BIGFIXED', discount_type='fixed', discount_value=500)
    response = client.post('/api/discount-codes/validate', json={'code': 'BIGFIXED', 'subtotal': 120})
    assert response.get_json()['discount']['discount_amount'] == pytest.approx(120)


def test_validate_inactive_and_expired_codes(admin_client, client):
    inactive = _create(admin_client, code='OFF', active=False).get_json()['discount_code']
    assert inactive['active'] is False
    yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    _create(admin_client, code='OLD', expires_at=yesterday)

    response = client.post('/api/discount-codes/validate', json={'code': 'OFF', 'subtotal': 100})
    assert response.status_code == 400
    assert response.get_json() == {'valid': False, 'error': 'This discount code is no longer active'}

    response = client.post('/api/discount-codes/validate', json={'code': 'OLD', 'subtotal': 100})
    assert response.get_json()['error'] == 'This discount code has expired'


def test_validate_requires_code_and_subtotal(client):
    response = client.post('/api/discount-codes/validate', json={'subtotal': 100})
    assert response.get_json()['error'] == 'Discount code is required'

    response = client.post('/api/discount-codes/validate', json={'code': 'X', 'subtotal': 0})
    assert response.get_json()['error'] == 'Valid subtotal is required'


def test_validate_unknown_code(client):
    response = client.post('/api/discount-codes/validate', json={'code': 'GHOST', 'subtotal': 100})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Invalid discount code'


def test_update_and_delete(admin_client):
    code = _create(admin_client).get_json()['discount_code']

    response = admin_client.patch(f"/api/discount-codes/{code['id']}", json={'active': False})
    assert response.status_code == 200
    assert response.get_json()['discount_code']['active'] is False

    assert admin_client.delete(f"/api/discount-codes/{code['id']}").status_code == 200
    assert admin_client.delete(f"/api/discount-codes/{code['id']}").status_code == 404


def test_admin_endpoints_require_admin(client):
    assert client.get('/api/discount-codes').status_code == 401
