"""
Garment catalog tests.
Run with: pytest tests/test_garments.py -v
"""

import pytest


NEW_GARMENT = {
    'name': 'Bella Canvas 3001',
    'brand': 'Bella+Canvas',
    'description': 'Retail fit jersey tee',
    'category': 't-shirts',
    'base_cost': 4.5,
    'available_colors': ['White', 'Black'],
    'size_range': ['S', 'M', 'L'],
}


def _first_tier_id(client):
    return client.get('/api/pricing-tiers').get_json()['tiers'][0]['id']


def test_list_includes_customer_price(client, garment):
    response = client.get('/api/garments')
    assert response.status_code == 200
    garments = {g['id']: g for g in response.get_json()['garments']}
    assert garment['id'] in garments
    # no pricing tier on the fixture garment -> default 50% markup
    assert garments[garment['id']]['markup_percentage'] == 50
    assert garments[garment['id']]['customer_price'] == pytest.approx(15.0)


def test_garment_detail_and_missing(client, garment):
    response = client.get(f"/api/garments/{garment['id']}")
    assert response.status_code == 200
    assert response.get_json()['garment']['name'] == 'Test Tee'

    assert client.get('/api/garments/does-not-exist').status_code == 404


def test_create_requires_admin(client):
    response = client.post('/api/garments', json=NEW_GARMENT)
    assert response.status_code == 401


def test_create_requires_all_fields(admin_client):
    response = admin_client.post('/api/garments', json={'name': 'Half a garment'})
    assert response.status_code == 400
    assert response.get_json()['error'].startswith('Missing required fields:')


def test_create_and_update_garment(admin_client):
    payload = dict(NEW_GARMENT, pricing_tier_id=_first_tier_id(admin_client))
    response = admin_client.post('/api/garments', json=payload)
    assert response.status_code == 201
    garment = response.get_json()['garment']
    assert garment['available_colors'] == ['White', 'Black']
    assert garment['active'] is True

    response = admin_client.patch(f"/api/garments/{garment['id']}", json={'base_cost': 5.0})
    assert response.status_code == 200
    assert response.get_json()['garment']['base_cost'] == 5.0


def test_update_rejects_bad_base_cost(admin_client, garment):
    response = admin_client.patch(f"/api/garments/{garment['id']}", json={'base_cost': -1})
    assert response.status_code == 400


def test_soft_delete_hides_from_public_list(admin_client, client, garment):
    response = admin_client.delete(f"/api/garments/{garment['id']}")
    assert response.status_code == 200
    assert response.get_json()['garment']['active'] is False

    public_ids = [g['id'] for g in client.get('/api/garments').get_json()['garments']]
    assert garment['id'] not in public_ids

    admin_ids = [g['id'] for g in admin_client.get('/api/garments?admin=true').get_json()['garments']]
    assert garment['id'] in admin_ids


def test_permanent_delete(admin_client, client, garment):
    response = admin_client.delete(f"/api/garments/{garment['id']}?permanent=true")
    assert response.status_code == 200
    assert client.get(f"/api/garments/{garment['id']}").status_code == 404
