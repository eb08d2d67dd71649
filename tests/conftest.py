"""Pytest configuration: shared-library import path and fake platform clients."""
import importlib.util
import sys
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

# Handlers import the shared modules as top-level names, as the Lambda layer provides them
ROOT = Path(__file__).resolve().parents[1]
COMMON_LIB = ROOT / 'lambda' / 'common_lib'
if str(COMMON_LIB) not in sys.path:
    sys.path.insert(0, str(COMMON_LIB))

from config_utils import AppConfig  # noqa: E402

FIXED_NOW = 1718000000.0


class FakeApiResponse:
    """Mirrors the SDK's ApiResponse surface"""

    def __init__(self, body=None, errors=None, status_code=200):
        self.body = body if body is not None else {}
        self.errors = errors
        self.status_code = status_code

    def is_success(self):
        return not self.errors

    def is_error(self):
        return bool(self.errors)


def ok(body=None):
    return FakeApiResponse(body=body or {})


def error(code='INVALID_REQUEST_ERROR', detail='Bad request', category='INVALID_REQUEST_ERROR', status_code=400):
    return FakeApiResponse(
        errors=[{'category': category, 'code': code, 'detail': detail}],
        status_code=status_code
    )


class FakeApi:
    """
    Records every call and replays queued responses per method name

    A queued response may be a FakeApiResponse, an exception to raise or a
    callable taking the call's kwargs.
    """

    def __init__(self):
        self.responses = {}
        self.calls = []

    def queue(self, method, *responses):
        self.responses.setdefault(method, []).extend(responses)
        return self

    def calls_to(self, method):
        return [kwargs for name, kwargs in self.calls if name == method]

    def __getattr__(self, method):
        if method.startswith('_'):
            raise AttributeError(method)

        def call(**kwargs):
            self.calls.append((method, kwargs))
            queued = self.responses.get(method)
            if not queued:
                raise AssertionError(f"Unexpected call to {method}")
            response = queued.pop(0) if len(queued) > 1 else queued[0]
            if isinstance(response, Exception):
                raise response
            if callable(response):
                return response(**kwargs)
            return response

        return call


class FakeSquareClient:
    def __init__(self):
        self.customers = FakeApi()
        self.orders = FakeApi()
        self.invoices = FakeApi()
        self.locations = FakeApi()


def client_error(code, message='failed', operation='PutItem'):
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


class FakeDynamoDB:
    """In-memory DynamoDB client covering the calls the dedup store makes"""

    def __init__(self, fail_with=None):
        self.items = {}
        self.fail_with = fail_with

    def _check(self, operation):
        if self.fail_with:
            raise client_error(self.fail_with, operation=operation)

    def put_item(self, TableName, Item, ConditionExpression=None, ExpressionAttributeValues=None):
        self._check('PutItem')
        key = Item['idempotencyKey']['S']
        existing = self.items.get(key)
        if existing is not None:
            now = int(ExpressionAttributeValues[':now']['N'])
            if not int(existing['expiresAt']['N']) < now:
                raise client_error('ConditionalCheckFailedException', 'The conditional request failed')
        self.items[key] = dict(Item)
        return {}

    def get_item(self, TableName, Key, ConsistentRead=False):
        self._check('GetItem')
        item = self.items.get(Key['idempotencyKey']['S'])
        return {'Item': dict(item)} if item else {}

    def update_item(self, TableName, Key, UpdateExpression, ExpressionAttributeNames, ExpressionAttributeValues):
        self._check('UpdateItem')
        item = self.items.setdefault(Key['idempotencyKey']['S'], dict(Key))
        item['status'] = ExpressionAttributeValues[':status']
        item['response'] = ExpressionAttributeValues[':response']
        item['expiresAt'] = ExpressionAttributeValues[':expires']
        return {}

    def delete_item(self, TableName, Key):
        self._check('DeleteItem')
        self.items.pop(Key['idempotencyKey']['S'], None)
        return {}


class FakeEmailSender:
    """Stands in for resend.Emails"""

    def __init__(self, email_id='email-123', raises=None):
        self.email_id = email_id
        self.raises = raises
        self.sent = []

    def send(self, params):
        self.sent.append(params)
        if self.raises:
            raise self.raises
        return {'id': self.email_id}


@pytest.fixture
def config():
    return AppConfig(
        square_access_token='test-token',
        square_environment='sandbox',
        square_location_id='LOC123',
        resend_api_key='re_test_key',
        notification_to_emails=['ops@example.com'],
        environment='test'
    )


@pytest.fixture
def square_client():
    return FakeSquareClient()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def contact_info():
    return {
        'firstName': 'Jane',
        'lastName': 'Doe',
        'email': 'jane@example.com',
        'phone': '(555) 123-4567',
        'companyName': 'Doe Events',
        'eventDate': '2025-06-14',
        'time': '6:00 PM',
        'location': 'Community Hall',
        'deliveryMethod': 'delivery'
    }


@pytest.fixture
def catering_payload(contact_info):
    """Basic submission: 20 guests of KKC #1 with one $0 side"""
    return {
        'package': {'id': 'kkc1', 'name': "Kaycee's Kitchen #1", 'price': 30},
        'guestCount': 20,
        'entrees': [],
        'sides': [{'name': 'Green Beans', 'price': 0}],
        'additionalServices': [],
        'totalPrice': 600,
        'contactInfo': contact_info
    }


def load_handler(name):
    """Import lambda/<name>/main.py under a unique module name"""
    path = ROOT / 'lambda' / name / 'main.py'
    module_name = f"handler_{name.replace('-', '_')}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module
