from datetime import datetime, timezone

import pytest

import catering_manager as cat
import idempotency_utils as idem
from conftest import FakeDynamoDB, FakeEmailSender, error, ok
from customer_manager import CustomerManager
from exceptions import BusinessLogicError, PlatformError, ValidationError
from invoice_manager import InvoiceManager
from notification_manager import NotificationManager
from order_manager import OrderManager

NOW = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)

HAPPY_PATH = [
    cat.STATE_START,
    cat.STATE_CUSTOMER_RESOLVED,
    cat.STATE_ORDER_CREATED,
    cat.STATE_INVOICE_CREATED,
    cat.STATE_NOTIFIED,
    cat.STATE_RESPONDED,
]


def _echo_order(body):
    order = dict(body['order'], id='ORDER-1', state='OPEN',
                 total_money={'amount': 60000, 'currency': 'USD'})
    return ok({'order': order})


def _echo_invoice(body):
    return ok({'invoice': dict(body['invoice'], id='INV-1', status='DRAFT', version=0)})


@pytest.fixture
def dynamodb():
    return FakeDynamoDB()


@pytest.fixture
def sender():
    return FakeEmailSender(email_id='re_123')


@pytest.fixture
def manager(config, square_client, clock, dynamodb, sender):
    return cat.CateringRequestManager(
        config=config,
        customer_manager=CustomerManager(config, square_client, clock=clock),
        order_manager=OrderManager(config, square_client, clock=clock),
        invoice_manager=InvoiceManager(config, square_client, now=lambda: NOW),
        notification_manager=NotificationManager(config, email_client=sender, now=lambda: NOW),
        idempotency_store=idem.IdempotencyStore('catering-idempotency', 3600,
                                                dynamodb_client=dynamodb, clock=clock)
    )


@pytest.fixture
def happy_platform(square_client):
    square_client.customers.queue('list_customers', ok({'customers': []}))
    square_client.customers.queue('create_customer', ok({'customer': {'id': 'CUST-1'}}))
    square_client.orders.queue('create_order', _echo_order)
    square_client.invoices.queue('create_invoice', _echo_invoice)
    return square_client


def test_successful_submission(manager, happy_platform, catering_payload, sender):
    result = manager.process(catering_payload)

    assert result['orderId'] == 'ORDER-1'
    assert result['invoiceId'] == 'INV-1'
    assert result['customerId'] == 'CUST-1'
    assert result['duplicate'] is False
    assert result['formIdempotencyKey'] == idem.derive_form_idempotency_key(catering_payload)
    assert result['eventDetails']['customerName'] == 'Jane Doe'
    assert result['eventDetails']['guestCount'] == 20
    assert result['selectionSummary'] == result['invoiceDescription']
    assert manager.history == HAPPY_PATH

    order_body = happy_platform.orders.calls_to('create_order')[0]['body']['order']
    assert order_body['customer_id'] == 'CUST-1'
    assert [item['name'] for item in order_body['line_items']] == ["Kaycee's Kitchen #1 - Base Package"]

    # The operator is notified
    assert result['emailNotification']['success'] is True
    assert result['emailNotification']['emailId'] == 're_123'
    assert len(sender.sent) == 1


def test_customer_creation_failure_still_invoices(manager, square_client, catering_payload):
    square_client.customers.queue('list_customers', ok({'customers': []}))
    square_client.customers.queue('create_customer', error(detail='Service unavailable', status_code=503))
    square_client.orders.queue('create_order', _echo_order)
    square_client.invoices.queue('create_invoice', _echo_invoice)

    result = manager.process(catering_payload)

    assert result['customerId'] is None
    assert result['eventDetails']['customerName'] is None
    assert 'customer_id' not in square_client.orders.calls_to('create_order')[0]['body']['order']
    assert 'primary_recipient' not in square_client.invoices.calls_to('create_invoice')[0]['body']['invoice']
    assert manager.state == cat.STATE_RESPONDED


def test_submission_without_contact_info(manager, square_client, catering_payload, sender):
    catering_payload['contactInfo'] = {}
    square_client.orders.queue('create_order', _echo_order)
    square_client.invoices.queue('create_invoice', _echo_invoice)

    result = manager.process(catering_payload)

    assert square_client.customers.calls == []
    assert result['customerId'] is None
    assert result['orderId'] == 'ORDER-1'
    assert result['invoiceId'] == 'INV-1'
    assert result['eventDetails']['date'] == 'TBD'
    assert 'customer_id' not in square_client.orders.calls_to('create_order')[0]['body']['order']
    assert 'primary_recipient' not in square_client.invoices.calls_to('create_invoice')[0]['body']['invoice']
    assert result['emailNotification']['success'] is True
    assert manager.state == cat.STATE_RESPONDED


def test_order_failure_stops_before_invoice(manager, square_client, catering_payload, dynamodb):
    square_client.customers.queue('list_customers', ok({'customers': []}))
    square_client.customers.queue('create_customer', ok({'customer': {'id': 'CUST-1'}}))
    square_client.orders.queue('create_order', error(code='INVALID_VALUE', detail='Location not found'))

    with pytest.raises(PlatformError, match='Location not found'):
        manager.process(catering_payload)

    assert manager.state == cat.STATE_ORDER_FAILED
    assert square_client.invoices.calls == []
    # The claim is released so the form can be resubmitted
    assert dynamodb.items == {}


def test_invoice_rejection_reports_orphan_order(manager, square_client, catering_payload):
    square_client.customers.queue('list_customers', ok({'customers': []}))
    square_client.customers.queue('create_customer', ok({'customer': {'id': 'CUST-1'}}))
    square_client.orders.queue('create_order', _echo_order)
    square_client.invoices.queue('create_invoice', error(detail='Invalid payment request'))

    with pytest.raises(PlatformError) as exc_info:
        manager.process(catering_payload)

    assert exc_info.value.extra == {'orderId': 'ORDER-1'}
    assert 'Invalid payment request' in exc_info.value.message
    assert manager.state == cat.STATE_INVOICE_FAILED


def test_unexpected_invoice_error_is_internal(manager, square_client, catering_payload):
    square_client.customers.queue('list_customers', ok({'customers': []}))
    square_client.customers.queue('create_customer', ok({'customer': {'id': 'CUST-1'}}))
    square_client.orders.queue('create_order', _echo_order)
    square_client.invoices.queue('create_invoice', ConnectionError('connection reset'))

    with pytest.raises(BusinessLogicError) as exc_info:
        manager.process(catering_payload)

    assert exc_info.value.status_code == 500
    assert exc_info.value.extra['orderId'] == 'ORDER-1'


def test_notification_failure_still_succeeds(manager, happy_platform, catering_payload, sender):
    sender.raises = RuntimeError('rate limited')

    result = manager.process(catering_payload)

    assert result['invoiceId'] == 'INV-1'
    assert result['emailNotification']['success'] is False
    assert cat.STATE_NOTIFICATION_FAILED in manager.history
    assert manager.state == cat.STATE_RESPONDED


def test_duplicate_submission_returns_first_result(manager, happy_platform, catering_payload):
    first = manager.process(catering_payload)
    second = manager.process(dict(catering_payload))

    assert second['duplicate'] is True
    assert second['orderId'] == first['orderId']
    assert second['invoiceId'] == first['invoiceId']
    assert len(happy_platform.orders.calls_to('create_order')) == 1
    assert len(happy_platform.invoices.calls_to('create_invoice')) == 1


def test_concurrent_duplicate_is_rejected(manager, square_client, catering_payload, clock):
    key = idem.derive_form_idempotency_key(catering_payload)
    manager.idempotency_store.claim(key)

    with pytest.raises(BusinessLogicError) as exc_info:
        manager.process(catering_payload)

    assert exc_info.value.status_code == 409
    assert square_client.orders.calls == []


def test_invalid_submission_makes_no_platform_calls(manager, square_client, catering_payload, dynamodb):
    catering_payload['guestCount'] = 10

    with pytest.raises(ValidationError):
        manager.process(catering_payload)

    assert square_client.customers.calls == []
    assert dynamodb.items == {}


def test_submitted_prices_are_replaced_with_catalog_prices(manager, happy_platform, catering_payload, caplog):
    catering_payload['package']['price'] = 1
    catering_payload['totalPrice'] = 20

    manager.process(catering_payload)

    order_body = happy_platform.orders.calls_to('create_order')[0]['body']['order']
    assert order_body['line_items'][0]['base_price_money']['amount'] == 3000
    assert 'differs from catalog total' in caplog.text
