import json

import pytest

import square_utils as sq
from conftest import FakeSquareClient, error, load_handler, ok


@pytest.fixture(autouse=True)
def environment(monkeypatch):
    monkeypatch.setenv('SQUARE_ACCESS_TOKEN', 'test-token')
    monkeypatch.setenv('SQUARE_LOCATION_ID', 'LOC123')
    monkeypatch.delenv('RESEND_API_KEY', raising=False)
    monkeypatch.delenv('IDEMPOTENCY_TABLE', raising=False)


@pytest.fixture
def platform(monkeypatch):
    client = FakeSquareClient()
    monkeypatch.setattr(sq, 'get_square_client', lambda config: client)
    return client


def _event(method, body=None, query=None):
    return {
        'httpMethod': method,
        'body': json.dumps(body) if isinstance(body, dict) else body,
        'queryStringParameters': query
    }


def _body(response):
    return json.loads(response['body'])


@pytest.mark.parametrize('name, allowed', [
    ('api-create-invoice', 'POST'),
    ('api-list-orders', 'GET'),
    ('api-list-invoices', 'GET'),
    ('api-list-locations', 'GET'),
    ('api-list-customers', 'GET'),
    ('api-publish-invoice', 'POST'),
    ('api-update-order', 'PUT'),
    ('api-verify-order', 'GET'),
])
def test_preflight_and_method_guard(name, allowed):
    handler = load_handler(name)

    preflight = handler.lambda_handler(_event('OPTIONS'), None)
    rejected = handler.lambda_handler(_event('DELETE'), None)

    assert preflight['statusCode'] == 200
    assert preflight['body'] == ''
    assert preflight['headers']['Access-Control-Allow-Origin'] == '*'
    assert rejected['statusCode'] == 405
    assert allowed in _body(rejected)['error']


def test_create_invoice_rejects_malformed_json(platform):
    handler = load_handler('api-create-invoice')

    response = handler.lambda_handler(_event('POST', '{not json'), None)

    assert response['statusCode'] == 400
    assert _body(response)['error'] == 'Request body must be valid JSON'
    assert platform.orders.calls == []


def test_create_invoice_rejects_small_events(platform, catering_payload):
    handler = load_handler('api-create-invoice')
    catering_payload['guestCount'] = 5

    response = handler.lambda_handler(_event('POST', catering_payload), None)

    assert response['statusCode'] == 400
    assert _body(response)['field'] == 'guestCount'


def test_create_invoice_end_to_end(platform, catering_payload):
    handler = load_handler('api-create-invoice')
    platform.customers.queue('list_customers', ok({'customers': []}))
    platform.customers.queue('create_customer', ok({'customer': {'id': 'CUST-1'}}))
    platform.orders.queue('create_order', lambda body: ok({'order': dict(body['order'], id='ORDER-1')}))
    platform.invoices.queue('create_invoice', lambda body: ok({'invoice': dict(body['invoice'], id='INV-1')}))

    response = handler.lambda_handler(_event('POST', catering_payload), None)

    body = _body(response)
    assert response['statusCode'] == 200
    assert body['success'] is True
    assert body['orderId'] == 'ORDER-1'
    assert body['invoiceId'] == 'INV-1'
    # No RESEND_API_KEY in the environment
    assert body['emailNotification']['skipped'] is True


def test_create_invoice_reports_orphan_order(platform, catering_payload):
    handler = load_handler('api-create-invoice')
    platform.customers.queue('list_customers', ok({'customers': []}))
    platform.customers.queue('create_customer', ok({'customer': {'id': 'CUST-1'}}))
    platform.orders.queue('create_order', lambda body: ok({'order': dict(body['order'], id='ORDER-1')}))
    platform.invoices.queue('create_invoice', error(code='INVALID_VALUE', detail='Bad due date'))

    response = handler.lambda_handler(_event('POST', catering_payload), None)

    body = _body(response)
    assert response['statusCode'] == 400
    assert body['success'] is False
    assert body['orderId'] == 'ORDER-1'
    assert body['code'] == 'INVALID_VALUE'


def test_list_orders(platform):
    handler = load_handler('api-list-orders')
    platform.orders.queue('search_orders', ok({'orders': [
        {'id': 'O1', 'state': 'OPEN', 'total_money': {'amount': 60000, 'currency': 'USD'}}
    ]}))

    body = _body(handler.lambda_handler(_event('GET'), None))

    assert body['count'] == 1
    assert body['items'][0]['totalAmount'] == 600.0


def test_list_invoices(platform):
    handler = load_handler('api-list-invoices')
    platform.invoices.queue('list_invoices', ok({'invoices': [{'id': 'INV-1', 'status': 'DRAFT'}]}))

    body = _body(handler.lambda_handler(_event('GET'), None))

    assert body['items'][0]['id'] == 'INV-1'


def test_list_locations_platform_error(platform):
    handler = load_handler('api-list-locations')
    platform.locations.queue('list_locations', error(category='AUTHENTICATION_ERROR', code='UNAUTHORIZED',
                                                     detail='This request could not be authorized',
                                                     status_code=401))

    response = handler.lambda_handler(_event('GET'), None)

    assert response['statusCode'] == 400
    assert _body(response)['category'] == 'AUTHENTICATION_ERROR'


def test_list_customers(platform):
    handler = load_handler('api-list-customers')
    platform.customers.queue('list_customers', ok({'customers': [{'id': 'C1'}]}))

    body = _body(handler.lambda_handler(_event('GET'), None))

    assert body['items'] == [{'id': 'C1', 'givenName': None, 'familyName': None, 'emailAddress': None,
                              'phoneNumber': None, 'referenceId': None, 'createdAt': None}]


def test_publish_invoice_requires_id(platform):
    handler = load_handler('api-publish-invoice')

    response = handler.lambda_handler(_event('POST', {'version': 1}), None)

    assert response['statusCode'] == 400
    assert _body(response)['error'] == 'Invoice ID is required'


def test_publish_invoice(platform):
    handler = load_handler('api-publish-invoice')
    platform.invoices.queue('publish_invoice', ok({'invoice': {'id': 'INV-1', 'version': 2, 'status': 'UNPAID'}}))

    body = _body(handler.lambda_handler(_event('POST', {'invoiceId': 'INV-1', 'version': 1}), None))

    assert body['invoice'] == {'id': 'INV-1', 'version': 2, 'status': 'UNPAID', 'totalMoney': None}


def test_update_order_requires_id(platform):
    handler = load_handler('api-update-order')

    response = handler.lambda_handler(_event('PUT', {'note': 'x'}), None)

    assert response['statusCode'] == 400
    assert _body(response)['error'] == 'Order ID is required'


def test_update_order(platform):
    handler = load_handler('api-update-order')
    platform.orders.queue('update_order', ok({'order': {'id': 'ORDER-1', 'version': 5, 'note': 'Call first'}}))

    body = _body(handler.lambda_handler(_event('PUT', {'orderId': 'ORDER-1', 'note': 'Call first',
                                                       'version': 4}), None))

    assert body['order']['version'] == 5
    assert body['order']['note'] == 'Call first'


def test_verify_order_requires_id(platform):
    handler = load_handler('api-verify-order')

    response = handler.lambda_handler(_event('GET'), None)

    assert response['statusCode'] == 400
    assert _body(response)['error'] == 'Order ID is required'


def test_verify_order_not_found(platform):
    handler = load_handler('api-verify-order')
    platform.orders.queue('retrieve_order', error(code='NOT_FOUND', detail='Order not found', status_code=404))

    response = handler.lambda_handler(_event('GET', query={'orderId': 'missing'}), None)

    assert response['statusCode'] == 404
    assert _body(response)['orderExists'] is False


def test_verify_order_found(platform):
    handler = load_handler('api-verify-order')
    platform.orders.queue('retrieve_order', ok({'order': {
        'id': 'ORDER-1', 'state': 'OPEN', 'total_money': {'amount': 60000, 'currency': 'USD'}
    }}))

    body = _body(handler.lambda_handler(_event('GET', query={'orderId': 'ORDER-1'}), None))

    assert body['orderExists'] is True
    assert body['orderStatus'] == 'OPEN'
    assert body['orderTotal'] == {'amount': 60000, 'currency': 'USD'}
