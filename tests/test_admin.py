"""
Admin campaign oversight tests.
Run with: pytest tests/test_admin.py -v
"""

import pytest

from conftest import PRINT_CONFIG


@pytest.fixture
def campaign(customer_client, garment):
    response = customer_client.post('/api/campaigns', json={
        'name': 'Staff Picnic', 'deadline': '2030-06-01', 'print_config': PRINT_CONFIG,
        'garment_id': garment['id'], 'selected_colors': ['Black'], 'payment_style': 'everyone_pays',
    })
    assert response.status_code == 201
    return response.get_json()


def _place(client, slug, quantity=1):
    return client.post(f'/api/campaigns/{slug}/orders', json={
        'participant_name': 'Pat', 'participant_email': 'pat@example.com',
        'size': 'M', 'color': 'Black', 'quantity': quantity,
    }).get_json()


# ---------------------------------------------------------------------------
# Access
# ---------------------------------------------------------------------------

def test_admin_endpoints_require_admin(client, customer_client, campaign):
    for c in (client, customer_client):
        response = c.get('/api/admin/campaigns')
        assert response.status_code == 401
        assert response.get_json() == {'error': 'Authentication required'}


# ---------------------------------------------------------------------------
# Listing and detail
# ---------------------------------------------------------------------------

def test_list_campaigns_with_stats(admin_client, client, campaign):
    _place(client, campaign['slug'], quantity=3)

    campaigns = admin_client.get('/api/admin/campaigns?status=all').get_json()['campaigns']
    assert len(campaigns) == 1
    listed = campaigns[0]
    assert listed['id'] == campaign['id']
    assert listed['order_count'] == 0
    assert listed['pending_count'] == 1
    assert listed['total_revenue'] == 0

    assert admin_client.get('/api/admin/campaigns?status=closed').get_json()['campaigns'] == []


def test_campaign_detail(admin_client, client, campaign, garment):
    order = _place(client, campaign['slug'], quantity=2)
    client.patch(f"/api/campaigns/{campaign['slug']}/orders/{order['id']}/pay")

    data = admin_client.get(f"/api/admin/campaigns/{campaign['id']}").get_json()['campaign']
    assert [g['id'] for g in data['garments']] == [garment['id']]
    assert [o['id'] for o in data['orders']] == [order['id']]
    assert data['order_count'] == 1
    assert data['total_quantity'] == 2
    assert data['total_revenue'] == pytest.approx(36.0)
    assert data['pending_count'] == 0

    assert admin_client.get('/api/admin/campaigns/missing').status_code == 404


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------

def test_update_price_syncs_garment_config(admin_client, campaign, garment):
    response = admin_client.patch(f"/api/admin/campaigns/{campaign['id']}", json={
        'price_per_shirt': 21.5, 'selected_colors': ['Black', 'White'],
    })
    assert response.status_code == 200
    updated = response.get_json()['campaign']
    assert updated['price_per_shirt'] == 21.5
    assert updated['garment_configs'][garment['id']] == {'price': 21.5, 'colors': ['Black', 'White']}


def test_update_garment_configs_sets_primary_garment(admin_client, campaign, second_garment):
    response = admin_client.patch(f"/api/admin/campaigns/{campaign['id']}", json={
        'garment_configs': {second_garment['id']: {'price': 30, 'colors': ['Navy']}},
    })
    updated = response.get_json()['campaign']
    assert updated['garment_id'] == second_garment['id']
    assert updated['garment_configs'] == {second_garment['id']: {'price': 30, 'colors': ['Navy']}}


def test_admin_can_set_any_status(admin_client, campaign):
    response = admin_client.patch(f"/api/admin/campaigns/{campaign['id']}", json={'status': 'completed'})
    assert response.get_json()['campaign']['status'] == 'completed'


@pytest.mark.parametrize('payload', [
    {'status': 'archived'},
    {'payment_style': 'nobody_pays'},
    {'price_per_shirt': -1},
    {'garment_configs': {}},
    {'selected_colors': 'Black'},
])
def test_invalid_updates(admin_client, campaign, payload):
    response = admin_client.patch(f"/api/admin/campaigns/{campaign['id']}", json=payload)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Invalid campaign update'
    assert len(response.get_json()['details']) == 1


def test_update_without_fields(admin_client, campaign):
    response = admin_client.patch(f"/api/admin/campaigns/{campaign['id']}", json={'slug': 'new-slug'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'No valid fields to update'
