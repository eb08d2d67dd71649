from decimal import Decimal

import data_access_utils as data
from conftest import ok


def test_format_order():
    order = {
        'id': 'ORDER-1',
        'reference_id': 'KKC-1',
        'state': 'OPEN',
        'total_money': {'amount': 60000, 'currency': 'USD'},
        'created_at': '2025-05-01T12:00:00Z',
        'customer_id': 'CUST-1',
        'line_items': [{'name': 'KKC 1 - Base Package', 'quantity': '20',
                        'base_price_money': {'amount': 3000, 'currency': 'USD'}}]
    }

    item = data.format_order(order)

    assert item['totalAmount'] == Decimal('600.00')
    assert item['status'] == 'OPEN'
    assert item['lineItems'][0]['unitPrice'] == Decimal('30.00')
    assert item['lineItems'][0]['basePriceMoney'] == {'amount': 3000, 'currency': 'USD'}


def test_format_invoice_with_and_without_recipient():
    invoice = {
        'id': 'INV-1',
        'order_id': 'ORDER-1',
        'status': 'DRAFT',
        'version': 0,
        'payment_requests': [{'computed_amount_money': {'amount': 12345, 'currency': 'USD'}}],
        'primary_recipient': {'customer_id': 'CUST-1', 'given_name': 'Jane', 'family_name': 'Doe'}
    }

    item = data.format_invoice(invoice)

    assert item['totalAmount'] == Decimal('123.45')
    assert item['primaryRecipient']['givenName'] == 'Jane'
    assert data.format_invoice({'id': 'INV-2'})['primaryRecipient'] is None
    assert data.format_invoice({'id': 'INV-2'})['totalMoney'] is None


def test_format_location():
    location = {'id': 'LOC1', 'name': 'Main', 'status': 'ACTIVE', 'type': 'PHYSICAL',
                'address': {'address_line_1': '1 Main St', 'locality': 'Kansas City',
                            'administrative_district_level_1': 'MO'}}

    assert data.format_location(location)['address'] == {
        'addressLine1': '1 Main St', 'locality': 'Kansas City', 'administrativeDistrictLevel1': 'MO'
    }
    assert data.format_location({'id': 'LOC2'})['address'] is None


def test_list_locations_and_customers(config, square_client):
    square_client.locations.queue('list_locations', ok({'locations': [{'id': 'LOC1', 'name': 'Main'}]}))
    square_client.customers.queue(
        'list_customers',
        ok({'customers': [{'id': 'C1', 'given_name': 'Jane'}], 'cursor': 'next'}),
        ok({'customers': [{'id': 'C2', 'email_address': 'b@example.com'}]})
    )
    manager = data.get_data_access_manager(config, square_client)

    locations = manager.list_locations()
    customers = manager.list_customers()

    assert [location['id'] for location in locations] == ['LOC1']
    assert [customer['id'] for customer in customers] == ['C1', 'C2']
    assert customers[1]['emailAddress'] == 'b@example.com'
    assert data.list_result(customers)['count'] == 2
