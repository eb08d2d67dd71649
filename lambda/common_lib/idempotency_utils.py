"""
Submission deduplication
Derives a stable key from the significant fields of a catering form and
records processed submissions in DynamoDB so an identical resubmission inside
the dedup window returns the first result instead of creating a second order.
"""

import hashlib
import json
import logging
import time

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

KEY_PREFIX = 'form-'
KEY_HASH_LENGTH = 16

STATUS_IN_PROGRESS = 'IN_PROGRESS'
STATUS_COMPLETED = 'COMPLETED'

DEFAULT_LEASE_SECONDS = 15 * 60

# claim() outcomes
CLAIMED = 'claimed'
DUPLICATE = 'duplicate'
IN_PROGRESS = 'in_progress'
UNAVAILABLE = 'unavailable'
DISABLED = 'disabled'


def derive_form_idempotency_key(payload):
    """
    Deterministic key for a catering submission

    Hashes contact identity, event date/time/location, package id, guest
    count, total price and the serialized selections. Missing fields hash as
    null.

    Returns:
        str: 'form-' followed by the first 16 hex chars of the SHA-256 digest
    """
    payload = payload or {}
    contact_info = payload.get('contactInfo') or {}
    package = payload.get('package') or {}

    key_fields = {
        'email': contact_info.get('email'),
        'firstName': contact_info.get('firstName'),
        'lastName': contact_info.get('lastName'),
        'eventDate': contact_info.get('eventDate'),
        'location': contact_info.get('location'),
        'time': contact_info.get('time'),
        'packageId': package.get('id'),
        'guestCount': payload.get('guestCount'),
        'totalPrice': payload.get('totalPrice'),
        'selections': json.dumps({
            'entrees': payload.get('entrees'),
            'sides': payload.get('sides'),
            'additionalServices': payload.get('additionalServices')
        }, sort_keys=True, default=str)
    }

    serialized = json.dumps(key_fields, sort_keys=True, default=str)
    digest = hashlib.sha256(serialized.encode('utf-8')).hexdigest()
    return f"{KEY_PREFIX}{digest[:KEY_HASH_LENGTH]}"


class ClaimResult:
    """Outcome of IdempotencyStore.claim"""

    def __init__(self, outcome, cached_response=None):
        self.outcome = outcome
        self.cached_response = cached_response

    @property
    def proceed(self):
        """True when the caller should run the workflow"""
        return self.outcome in (CLAIMED, UNAVAILABLE, DISABLED)

    def __repr__(self):
        return f"ClaimResult(outcome={self.outcome!r})"


class IdempotencyStore:
    """
    DynamoDB-backed record of processed submissions

    Table schema: partition key `idempotencyKey` (S); attributes `status`,
    `createdAt`, `expiresAt` (TTL attribute) and `response` (JSON string).
    An in-progress claim holds a short lease; completing it extends
    `expiresAt` to the full dedup window. A claim whose lease ran out (its
    invocation died before completing or releasing) is taken over.
    Store failures never block a submission; they are logged and the
    submission proceeds without dedup.
    """

    def __init__(self, table_name, window_seconds, lease_seconds=DEFAULT_LEASE_SECONDS,
                 dynamodb_client=None, clock=time.time):
        self.table_name = table_name
        self.window_seconds = window_seconds
        self.lease_seconds = lease_seconds
        self.clock = clock
        self._dynamodb = dynamodb_client

    @property
    def enabled(self):
        return bool(self.table_name)

    @property
    def dynamodb(self):
        if self._dynamodb is None:
            self._dynamodb = boto3.client('dynamodb')
        return self._dynamodb

    def claim(self, key):
        """
        Reserve a key before processing a submission

        Returns:
            ClaimResult: CLAIMED, DUPLICATE (with the cached response),
            IN_PROGRESS, UNAVAILABLE (store error) or DISABLED
        """
        if not self.enabled:
            return ClaimResult(DISABLED)

        now = int(self.clock())
        try:
            self.dynamodb.put_item(
                TableName=self.table_name,
                Item={
                    'idempotencyKey': {'S': key},
                    'status': {'S': STATUS_IN_PROGRESS},
                    'createdAt': {'N': str(now)},
                    'expiresAt': {'N': str(now + self.lease_seconds)}
                },
                # Stale leases and lapsed windows stay in the table until TTL deletes them
                ConditionExpression='attribute_not_exists(idempotencyKey) OR expiresAt < :now',
                ExpressionAttributeValues={':now': {'N': str(now)}}
            )
            logger.info(f"Claimed idempotency key {key}")
            return ClaimResult(CLAIMED)

        except ClientError as e:
            error_code = e.response['Error']['Code']
            if error_code != 'ConditionalCheckFailedException':
                logger.warning(f"Idempotency store unavailable ({error_code}) - proceeding without dedup for {key}")
                return ClaimResult(UNAVAILABLE)

        return self._existing_claim(key)

    def _existing_claim(self, key):
        try:
            result = self.dynamodb.get_item(
                TableName=self.table_name,
                Key={'idempotencyKey': {'S': key}},
                ConsistentRead=True
            )
        except ClientError as e:
            logger.warning(f"Failed to read idempotency record {key}: {e.response['Error']['Message']}")
            return ClaimResult(UNAVAILABLE)

        item = result.get('Item')
        if not item:
            # Released between our put and get; treat as in flight
            return ClaimResult(IN_PROGRESS)

        status = item.get('status', {}).get('S')
        if status == STATUS_COMPLETED:
            try:
                cached = json.loads(item.get('response', {}).get('S') or '{}')
            except ValueError:
                logger.warning(f"Cached response for {key} is not valid JSON - proceeding without dedup")
                return ClaimResult(UNAVAILABLE)
            logger.info(f"Duplicate submission detected for {key}; returning cached result")
            return ClaimResult(DUPLICATE, cached)

        logger.info(f"Submission {key} is already being processed")
        return ClaimResult(IN_PROGRESS)

    def complete(self, key, response_data):
        """Mark a claimed key as processed and cache its response"""
        if not self.enabled:
            return False
        now = int(self.clock())
        try:
            self.dynamodb.update_item(
                TableName=self.table_name,
                Key={'idempotencyKey': {'S': key}},
                UpdateExpression='SET #status = :status, #response = :response, expiresAt = :expires',
                ExpressionAttributeNames={'#status': 'status', '#response': 'response'},
                ExpressionAttributeValues={
                    ':expires': {'N': str(now + self.window_seconds)},
                    ':status': {'S': STATUS_COMPLETED},
                    ':response': {'S': json.dumps(response_data, default=str)}
                }
            )
            return True
        except ClientError as e:
            logger.warning(f"Failed to record completed submission {key}: {e.response['Error']['Message']}")
            return False

    def release(self, key):
        """Drop a claim after a failed submission so it can be retried"""
        if not self.enabled:
            return False
        try:
            self.dynamodb.delete_item(
                TableName=self.table_name,
                Key={'idempotencyKey': {'S': key}}
            )
            logger.info(f"Released idempotency key {key}")
            return True
        except ClientError as e:
            logger.warning(f"Failed to release idempotency key {key}: {e.response['Error']['Message']}")
            return False


def get_idempotency_store(config):
    """Factory function to get an IdempotencyStore for the configured table"""
    return IdempotencyStore(
        config.idempotency_table,
        config.idempotency_window_seconds,
        lease_seconds=config.idempotency_lease_seconds
    )
