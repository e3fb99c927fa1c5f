"""
Group-order campaign tests: creation, participant orders, payments,
refunds and conversion into a production order. Stripe is always mocked.
Run with: pytest tests/test_campaigns.py -v
"""

import re
from unittest.mock import patch

import pytest
import stripe

from conftest import PRINT_CONFIG, SHIPPING_ADDRESS, payment_intent


def _create_campaign(customer_client, garment, **overrides):
    payload = {
        'name': 'Robotics Club Tees',
        'deadline': '2030-01-01',
        'print_config': PRINT_CONFIG,
        'garment_id': garment['id'],
        'selected_colors': ['Black', 'White'],
        'payment_style': 'everyone_pays',
    }
    payload.update(overrides)
    response = customer_client.post('/api/campaigns', json=payload)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def _join(client, slug, **overrides):
    payload = {
        'participant_name': 'Pat Participant',
        'participant_email': 'pat@example.com',
        'size': 'M',
        'color': 'Black',
        'quantity': 2,
    }
    payload.update(overrides)
    return client.post(f'/api/campaigns/{slug}/orders', json=payload)


def _other_customer(app):
    c = app.test_client()
    c.post('/api/customers/register', json={'email': 'stranger@example.com', 'password': 'stranger-pass'})
    return c


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------

def test_generate_slug_format():
    from swagco.modules.campaigns.models import generate_slug

    slug = generate_slug('  Robotics Club!! Spring Tees  ')
    assert re.fullmatch(r'robotics-club-spring-tees-[a-z0-9]{6}', slug)
    assert len(generate_slug('x' * 80)) == 50 + 7


def test_create_single_garment_campaign_calculates_price(customer_client, garment):
    campaign = _create_campaign(customer_client, garment)
    assert campaign['status'] == 'active'
    assert campaign['price_per_shirt'] == pytest.approx(18.0)
    assert campaign['garment_configs'] == {garment['id']: {'price': 18.0, 'colors': ['Black', 'White']}}
    assert campaign['organizer_name'] == 'Olive Organizer'
    assert campaign['organizer_email'] == 'organizer@example.com'


def test_create_requires_login(client, garment):
    response = client.post('/api/campaigns', json={'name': 'x'})
    assert response.status_code == 401


def test_create_requires_core_fields(customer_client):
    response = customer_client.post('/api/campaigns', json={'name': 'No deadline'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Missing required fields: name, deadline, print_config'

    response = customer_client.post('/api/campaigns', json={
        'name': 'No garment', 'deadline': '2030-01-01', 'print_config': PRINT_CONFIG,
    })
    assert response.get_json()['error'] == 'Either garment_id or garment_configs must be provided'


def test_create_rejects_unknown_payment_style(customer_client, garment):
    response = customer_client.post('/api/campaigns', json={
        'name': 'Bad style', 'deadline': '2030-01-01', 'print_config': PRINT_CONFIG,
        'garment_id': garment['id'], 'payment_style': 'someone_pays',
    })
    assert response.status_code == 400


def test_multi_garment_campaign_recalculates_zero_prices(customer_client, garment, second_garment):
    campaign = _create_campaign(customer_client, garment, garment_id=None, selected_colors=None, garment_configs={
        garment['id']: {'price': 0, 'colors': ['Black']},
        second_garment['id']: {'price': 0, 'colors': ['Navy', 'Black']},
    })
    configs = campaign['garment_configs']
    assert configs[garment['id']]['price'] == pytest.approx(18.0)
    assert configs[second_garment['id']]['price'] == pytest.approx(33.0)
    assert campaign['garment_id'] in configs
    assert campaign['price_per_shirt'] == configs[campaign['garment_id']]['price']
    assert sorted(campaign['selected_colors']) == ['Black', 'Navy']


def test_multi_garment_campaign_keeps_distinct_prices(customer_client, garment, second_garment):
    campaign = _create_campaign(customer_client, garment, garment_id=None, garment_configs={
        garment['id']: {'price': 25, 'colors': ['Black']},
        second_garment['id']: {'price': 40, 'colors': ['Navy']},
    })
    assert campaign['garment_configs'][garment['id']]['price'] == 25
    assert campaign['garment_configs'][second_garment['id']]['price'] == 40


def test_multi_garment_campaign_recalculates_copied_price(customer_client, garment, second_garment):
    campaign = _create_campaign(customer_client, garment, garment_id=None, garment_configs={
        garment['id']: {'price': 20, 'colors': ['Black']},
        second_garment['id']: {'price': 20, 'colors': ['Navy']},
    })
    assert campaign['garment_configs'][garment['id']]['price'] == pytest.approx(18.0)
    assert campaign['garment_configs'][second_garment['id']]['price'] == pytest.approx(33.0)


def test_multi_garment_campaign_fills_in_missing_price(customer_client, garment, second_garment):
    campaign = _create_campaign(customer_client, garment, garment_id=None, garment_configs={
        garment['id']: {'colors': ['Black']},
        second_garment['id']: {'price': 30, 'colors': ['Navy']},
    })
    configs = campaign['garment_configs']
    assert configs[garment['id']]['price'] == pytest.approx(18.0)
    assert configs[second_garment['id']]['price'] == 30
    assert campaign['price_per_shirt'] == configs[campaign['garment_id']]['price']


@pytest.mark.parametrize('configs, message', [
    ({'missing-garment': {'price': 25, 'colors': ['Black']}}, 'Garment not found: missing-garment'),
    ({'missing-garment': 'cheap'}, 'Each garment config must be an object'),
])
def test_multi_garment_campaign_rejects_bad_configs(customer_client, garment, configs, message):
    response = customer_client.post('/api/campaigns', json={
        'name': 'Bad configs', 'deadline': '2030-01-01', 'print_config': PRINT_CONFIG,
        'garment_configs': dict(configs, **{garment['id']: {'price': 25, 'colors': ['Black']}}),
    })
    assert response.status_code == 400
    assert response.get_json()['error'] == message


def test_slug_collision_retries_with_new_suffix(app, customer_client, garment):
    first = _create_campaign(customer_client, garment)
    taken = first['slug']
    fresh = taken[:-6] + 'zzzzzz'

    with patch('swagco.modules.campaigns.models.generate_slug', side_effect=[taken, fresh]) as slugs:
        second = _create_campaign(customer_client, garment)

    assert slugs.call_count == 2
    assert second['slug'] == fresh
    assert second['id'] != first['id']


# ---------------------------------------------------------------------------
# Reading and editing
# ---------------------------------------------------------------------------

def test_public_campaign_page(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    _join(client, campaign['slug'])

    response = client.get(f"/api/campaigns/{campaign['slug']}")
    assert response.status_code == 200
    data = response.get_json()
    assert data['is_owner'] is False
    assert data['garment']['id'] == garment['id']
    # everyone_pays only counts paid orders
    assert data['order_count'] == 0

    assert customer_client.get(f"/api/campaigns/{campaign['slug']}").get_json()['is_owner'] is True


def test_draft_campaign_hidden_from_public(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    response = customer_client.patch(f"/api/campaigns/{campaign['slug']}", json={'status': 'draft'})
    assert response.status_code == 200

    assert client.get(f"/api/campaigns/{campaign['slug']}").status_code == 404
    assert customer_client.get(f"/api/campaigns/{campaign['slug']}").status_code == 200


def test_only_owner_can_edit(app, customer_client, garment):
    campaign = _create_campaign(customer_client, garment)
    stranger = _other_customer(app)
    response = stranger.patch(f"/api/campaigns/{campaign['slug']}", json={'name': 'Hijacked'})
    assert response.status_code == 403


def test_edit_requires_known_fields(customer_client, garment):
    campaign = _create_campaign(customer_client, garment)
    response = customer_client.patch(f"/api/campaigns/{campaign['slug']}", json={'price_per_shirt': 1})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'No valid fields to update'


def test_list_my_campaigns(customer_client, garment):
    campaign = _create_campaign(customer_client, garment, payment_style='organizer_pays')
    _join(customer_client, campaign['slug'])

    campaigns = customer_client.get('/api/campaigns').get_json()['campaigns']
    assert [c['id'] for c in campaigns] == [campaign['id']]
    assert campaigns[0]['order_count'] == 1
    assert campaigns[0]['paid_order_count'] == 0
    assert campaigns[0]['garments'][0]['id'] == garment['id']

    assert customer_client.get('/api/campaigns?status=closed').get_json()['campaigns'] == []


# ---------------------------------------------------------------------------
# Participant orders
# ---------------------------------------------------------------------------

def test_join_everyone_pays_campaign(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    response = _join(client, campaign['slug'])
    assert response.status_code == 201
    data = response.get_json()
    assert data['status'] == 'pending'
    assert data['requires_payment'] is True
    assert data['amount_due'] == pytest.approx(36.0)


def test_join_organizer_pays_campaign(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment, payment_style='organizer_pays')
    data = _join(client, campaign['slug']).get_json()
    assert data['status'] == 'confirmed'
    assert data['requires_payment'] is False
    assert 'amount_due' not in data


def test_join_with_several_items(customer_client, client, garment, second_garment):
    campaign = _create_campaign(customer_client, garment, garment_id=None, garment_configs={
        garment['id']: {'price': 20, 'colors': ['Black']},
        second_garment['id']: {'price': 35, 'colors': ['Navy']},
    })
    response = client.post(f"/api/campaigns/{campaign['slug']}/orders", json={
        'participant_name': 'Pat', 'participant_email': 'pat@example.com',
        'items': [
            {'garment_id': garment['id'], 'size': 'M', 'color': 'Black'},
            {'garment_id': second_garment['id'], 'size': 'L', 'color': 'Navy', 'quantity': 2},
        ],
    })
    assert response.status_code == 201
    data = response.get_json()
    assert len(data['orders']) == 2
    assert data['amount_due'] == pytest.approx(90.0)
    assert data['primary_order_id'] == data['orders'][0]['id']


@pytest.mark.parametrize('overrides, message', [
    ({'color': 'Purple'}, 'Invalid color selection'),
    ({'size': None}, 'Size and color are required'),
    ({'garment_id': 'not-configured'}, 'Invalid garment selection'),
    ({'quantity': 0}, 'Quantity must be at least 1'),
])
def test_join_rejects_bad_items(customer_client, client, garment, overrides, message):
    campaign = _create_campaign(customer_client, garment)
    response = _join(client, campaign['slug'], **overrides)
    assert response.status_code == 400
    assert response.get_json()['error'] == message


def test_bad_item_creates_no_orders(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    response = client.post(f"/api/campaigns/{campaign['slug']}/orders", json={
        'participant_name': 'Pat', 'participant_email': 'pat@example.com',
        'items': [{'size': 'M', 'color': 'Black'}, {'size': 'M', 'color': 'Purple'}],
    })
    assert response.status_code == 400
    assert customer_client.get(f"/api/campaigns/{campaign['slug']}/orders").get_json()['orders'] == []


def test_join_requires_valid_participant(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    assert _join(client, campaign['slug'], participant_email='nope').status_code == 400
    assert _join(client, campaign['slug'], participant_name='').status_code == 400
    assert _join(client, 'no-such-campaign').status_code == 404


def test_closed_campaign_rejects_orders(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    customer_client.patch(f"/api/campaigns/{campaign['slug']}", json={'status': 'closed'})
    response = _join(client, campaign['slug'])
    assert response.status_code == 400
    assert response.get_json()['error'] == 'This campaign is no longer accepting orders'


def test_orders_view_for_owner_and_public(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    _join(client, campaign['slug'])
    _join(client, campaign['slug'], size='L', color='White', quantity=1)

    public = client.get(f"/api/campaigns/{campaign['slug']}/orders").get_json()
    assert public['total_orders'] == 2
    assert public['total_quantity'] == 3
    assert public['size_breakdown'] == {'M': 2, 'L': 1}
    assert public['color_breakdown'] == {'Black': 2, 'White': 1}
    assert 'orders' not in public

    owner = customer_client.get(f"/api/campaigns/{campaign['slug']}/orders").get_json()
    assert len(owner['orders']) == 2
    assert owner['orders'][0]['garment']['id'] == garment['id']


# ---------------------------------------------------------------------------
# Participant payments
# ---------------------------------------------------------------------------

def test_participant_pay_creates_intent(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    order = _join(client, campaign['slug']).get_json()

    with patch('stripe.PaymentIntent.create', return_value={'id': 'pi_part', 'client_secret': 'cs_part'}) as create:
        response = client.post(f"/api/campaigns/{campaign['slug']}/orders/{order['id']}/pay")

    assert response.status_code == 200
    assert response.get_json() == {'clientSecret': 'cs_part', 'amount': 36.0}
    kwargs = create.call_args.kwargs
    assert kwargs['amount'] == 3600
    assert kwargs['receipt_email'] == 'pat@example.com'
    assert kwargs['metadata']['campaign_order_id'] == order['id']


def test_participant_pay_rejected_for_organizer_pays(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment, payment_style='organizer_pays')
    order = _join(client, campaign['slug']).get_json()
    response = client.post(f"/api/campaigns/{campaign['slug']}/orders/{order['id']}/pay")
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Payment not required for this campaign'


def test_participant_pay_confirmation(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    order = _join(client, campaign['slug']).get_json()
    url = f"/api/campaigns/{campaign['slug']}/orders/{order['id']}/pay"

    with patch('stripe.PaymentIntent.create', return_value={'id': 'pi_part', 'client_secret': 'cs_part'}):
        client.post(url)

    with patch('stripe.PaymentIntent.retrieve', return_value=payment_intent(id='pi_part', status='requires_payment_method')):
        response = client.patch(url)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Payment not completed'

    with patch('stripe.PaymentIntent.retrieve', return_value=payment_intent(id='pi_part', status='succeeded')):
        response = client.patch(url)
    assert response.get_json() == {'success': True, 'already_paid': False}

    response = client.patch(url)
    assert response.get_json() == {'success': True, 'already_paid': True}

    response = client.post(url)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Order is already paid'

    stats = customer_client.get(f"/api/campaigns/{campaign['slug']}/stats").get_json()
    assert stats['order_count'] == 1
    assert stats['total_quantity'] == 2
    assert stats['total_revenue'] == pytest.approx(36.0)


def test_participant_pay_order_from_other_campaign(customer_client, client, garment):
    first = _create_campaign(customer_client, garment)
    second = _create_campaign(customer_client, garment, name='Other campaign')
    order = _join(client, first['slug']).get_json()
    response = client.post(f"/api/campaigns/{second['slug']}/orders/{order['id']}/pay")
    assert response.status_code == 404


# ---------------------------------------------------------------------------
# Organizer payment
# ---------------------------------------------------------------------------

def test_organizer_pay(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment, payment_style='organizer_pays')
    _join(client, campaign['slug'])
    _join(client, campaign['slug'], quantity=1, color='White')

    with patch('stripe.PaymentIntent.create', return_value={'id': 'pi_org', 'client_secret': 'cs_org'}) as create:
        response = customer_client.post(f"/api/campaigns/{campaign['slug']}/pay")

    assert response.status_code == 200
    assert response.get_json() == {'clientSecret': 'cs_org', 'amount': 5400, 'totalQuantity': 3, 'orderCount': 2}
    metadata = create.call_args.kwargs['metadata']
    assert metadata['type'] == 'campaign_organizer_payment'
    assert metadata['campaign_id'] == campaign['id']
    assert create.call_args.kwargs['receipt_email'] == 'organizer@example.com'


def test_organizer_pay_guards(app, customer_client, garment):
    everyone = _create_campaign(customer_client, garment)
    response = customer_client.post(f"/api/campaigns/{everyone['slug']}/pay")
    assert response.get_json()['error'] == 'This campaign does not require organizer payment'

    organizer = _create_campaign(customer_client, garment, payment_style='organizer_pays')
    response = customer_client.post(f"/api/campaigns/{organizer['slug']}/pay")
    assert response.get_json()['error'] == 'No orders to pay for'

    assert _other_customer(app).post(f"/api/campaigns/{organizer['slug']}/pay").status_code == 403


def test_organizer_pay_confirmation_closes_campaign(customer_client, garment):
    campaign = _create_campaign(customer_client, garment, payment_style='organizer_pays')
    url = f"/api/campaigns/{campaign['slug']}/pay"

    assert customer_client.patch(url, json={}).get_json()['error'] == 'Payment intent ID required'

    wrong = payment_intent(id='pi_org', status='succeeded', metadata={'campaign_id': 'someone-else'})
    with patch('stripe.PaymentIntent.retrieve', return_value=wrong):
        response = customer_client.patch(url, json={'paymentIntentId': 'pi_org'})
    assert response.get_json()['error'] == 'Payment does not match campaign'

    paid = payment_intent(id='pi_org', status='succeeded', metadata={'campaign_id': campaign['id']})
    with patch('stripe.PaymentIntent.retrieve', return_value=paid):
        response = customer_client.patch(url, json={'paymentIntentId': 'pi_org'})
    assert response.status_code == 200
    assert response.get_json()['campaign']['status'] == 'closed'


def test_stripe_error_is_reported(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    order = _join(client, campaign['slug']).get_json()
    error = stripe.InvalidRequestError('Amount too small', 'amount')
    with patch('stripe.PaymentIntent.create', side_effect=error):
        response = client.post(f"/api/campaigns/{campaign['slug']}/orders/{order['id']}/pay")
    assert response.status_code == 500


# ---------------------------------------------------------------------------
# Delete, refund and restore
# ---------------------------------------------------------------------------

def _paid_order(client, slug):
    order = _join(client, slug).get_json()
    url = f"/api/campaigns/{slug}/orders/{order['id']}/pay"
    with patch('stripe.PaymentIntent.create', return_value={'id': 'pi_paid', 'client_secret': 'cs'}):
        client.post(url)
    with patch('stripe.PaymentIntent.retrieve', return_value=payment_intent(id='pi_paid', status='succeeded')):
        client.patch(url)
    return order


def test_delete_with_refunds(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    order = _paid_order(client, campaign['slug'])

    with patch('stripe.Refund.create', return_value={'id': 're_1'}) as refund:
        response = customer_client.delete(f"/api/campaigns/{campaign['slug']}?refund_orders=true")

    assert response.status_code == 200
    data = response.get_json()
    assert data['success'] is True
    assert data['refunds_processed'] is True
    assert data['refund_results'] == [{'orderId': order['id'], 'success': True}]
    refund.assert_called_once_with(payment_intent='pi_paid')

    owner_orders = customer_client.get(f"/api/campaigns/{campaign['slug']}/orders").get_json()['orders']
    assert owner_orders[0]['status'] == 'cancelled'
    assert customer_client.get('/api/campaigns').get_json()['campaigns'] == []


def test_refund_failure_does_not_abort_delete(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    order = _paid_order(client, campaign['slug'])

    with patch('stripe.Refund.create', side_effect=stripe.InvalidRequestError('Already refunded', None)):
        response = customer_client.delete(f"/api/campaigns/{campaign['slug']}?refund_orders=true")

    data = response.get_json()
    assert data['success'] is True
    assert data['refund_results'][0]['orderId'] == order['id']
    assert data['refund_results'][0]['success'] is False


def test_delete_twice_and_restore(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    url = f"/api/campaigns/{campaign['slug']}"

    response = customer_client.patch(url, json={'action': 'restore'})
    assert response.status_code == 400

    data = customer_client.delete(url).get_json()
    assert data['refunds_processed'] is False

    response = customer_client.delete(url)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Campaign is already deleted'

    assert client.get(url).status_code == 404

    response = customer_client.patch(url, json={'action': 'restore'})
    assert response.status_code == 200
    assert response.get_json()['status'] == 'closed'
    assert response.get_json()['deleted_at'] is None


# ---------------------------------------------------------------------------
# Production order
# ---------------------------------------------------------------------------

def test_create_production_order(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment, artwork_urls={
        'front': 'https://cdn.example.com/art/logo.png',
        'back': 'https://cdn.example.com/art/back.svg',
    })
    _paid_order(client, campaign['slug'])

    response = customer_client.post(f"/api/campaigns/{campaign['slug']}/create-order",
                                    json={'shipping_address': SHIPPING_ADDRESS})
    assert response.status_code == 200
    data = response.get_json()
    assert data['success'] is True

    order = client.get(f"/api/orders/{data['order_id']}").get_json()
    assert order['total_quantity'] == 2
    assert order['total_cost'] == pytest.approx(36.0)
    assert order['deposit_amount'] == pytest.approx(18.0)
    assert order['balance_due'] == 0
    assert order['deposit_paid'] is True
    assert order['status'] == 'pending_art_review'
    assert order['pricing_breakdown']['is_campaign_pricing'] is True
    assert order['pricing_breakdown']['setup_fees'] == 0
    assert order['color_size_quantities'] == {'Black': {'M': 2}}
    assert order['internal_notes'] == f"Created from campaign: Robotics Club Tees ({campaign['slug']})"

    statuses = {a['location']: a['vectorization_status'] for a in order['artwork_files']}
    assert statuses == {'front': 'pending', 'back': 'not_needed'}

    detail = customer_client.get(f"/api/campaigns/{campaign['slug']}").get_json()
    assert detail['status'] == 'completed'
    assert detail['final_order_id'] == data['order_id']

    response = customer_client.post(f"/api/campaigns/{campaign['slug']}/create-order",
                                    json={'shipping_address': SHIPPING_ADDRESS})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Production order already exists for this campaign'


def test_create_production_order_needs_paid_orders(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment)
    _join(client, campaign['slug'])
    response = customer_client.post(f"/api/campaigns/{campaign['slug']}/create-order",
                                    json={'shipping_address': SHIPPING_ADDRESS})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'No paid orders found for this campaign'


def test_create_production_order_validates_address(customer_client, garment):
    campaign = _create_campaign(customer_client, garment)
    response = customer_client.post(f"/api/campaigns/{campaign['slug']}/create-order",
                                    json={'shipping_address': {'line1': '1 Main St'}})
    assert response.status_code == 400


def test_organizer_pays_production_order_carries_balance(customer_client, client, garment):
    campaign = _create_campaign(customer_client, garment, payment_style='organizer_pays')
    _join(client, campaign['slug'], quantity=3)

    response = customer_client.post(f"/api/campaigns/{campaign['slug']}/create-order",
                                    json={'shipping_address': SHIPPING_ADDRESS})
    order = client.get(f"/api/orders/{response.get_json()['order_id']}").get_json()
    assert order['total_cost'] == pytest.approx(54.0)
    assert order['balance_due'] == pytest.approx(27.0)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def test_aggregate_single_garment():
    from swagco.modules.campaigns.fulfillment import aggregate_campaign_orders

    result = aggregate_campaign_orders([
        {'garment_id': 'g1', 'color': 'Black', 'size': 'M', 'quantity': 2},
        {'garment_id': 'g1', 'color': 'Black', 'size': 'L', 'quantity': 1},
        {'garment_id': 'g1', 'color': 'White', 'size': 'M', 'quantity': 3},
    ])
    assert result['is_multi_garment'] is False
    assert result['garment_id'] == 'g1'
    assert result['garment_color'] == 'Black'
    assert result['color_size_quantities'] == {'Black': {'M': 2, 'L': 1}, 'White': {'M': 3}}
    assert result['selected_garments'] == {}
    assert result['total_quantity'] == 6


def test_aggregate_multi_garment():
    from swagco.modules.campaigns.fulfillment import aggregate_campaign_orders

    result = aggregate_campaign_orders([
        {'garment_id': 'g1', 'color': 'Black', 'size': 'M', 'quantity': 2},
        {'garment_id': 'g2', 'color': 'Navy', 'size': 'S', 'quantity': 4},
    ])
    assert result['is_multi_garment'] is True
    assert result['garment_id'] == ''
    assert result['selected_garments'] == {
        'g1': {'selectedColors': ['Black'], 'colorSizeQuantities': {'Black': {'M': 2}}},
        'g2': {'selectedColors': ['Navy'], 'colorSizeQuantities': {'Navy': {'S': 4}}},
    }
    assert result['total_quantity'] == 6


def test_aggregate_orders_without_garment():
    from swagco.modules.campaigns.fulfillment import aggregate_campaign_orders

    result = aggregate_campaign_orders([{'garment_id': None, 'color': 'Red', 'size': 'XL', 'quantity': 1}])
    assert result['garment_id'] == ''
    assert result['color_size_quantities'] == {'Red': {'XL': 1}}
