"""
Customer Management Module
Resolves the Square customer a catering submission belongs to: finds an
existing customer by email or creates one, degrading to an email-only
profile and finally to no customer at all. Never raises to the caller.
"""

import logging
import time
from collections import namedtuple

import square_utils as sq
from exceptions import PlatformError
from validation_utils import normalize_phone_number

logger = logging.getLogger(__name__)

CUSTOMER_NOTE = 'Catering customer'
DEFAULT_GIVEN_NAME = 'Guest'
DEFAULT_FAMILY_NAME = 'Customer'

StrategyResult = namedtuple('StrategyResult', ['strategy', 'success', 'value', 'error'])


def run_strategies(strategies):
    """
    Try (name, callable) strategies in order until one succeeds

    Returns:
        list: StrategyResult for every attempt made; the last one is the
        success if any strategy succeeded
    """
    attempts = []
    for name, strategy in strategies:
        try:
            value = strategy()
        except Exception as e:
            logger.warning(f"Strategy '{name}' failed: {str(e)}")
            attempts.append(StrategyResult(name, False, None, str(e)))
            continue
        attempts.append(StrategyResult(name, True, value, None))
        break
    return attempts


def has_identity(contact_info):
    contact_info = contact_info or {}
    return any(contact_info.get(field) for field in ('firstName', 'lastName', 'email', 'phone'))


class CustomerManager:
    """Manages customer lookup and creation on Square"""

    def __init__(self, config, square_client, clock=time.time):
        self.config = config
        self.client = square_client
        self.clock = clock

    def _reference_id(self):
        return f"{self.config.reference_id_prefix}-{int(self.clock() * 1000)}"

    def find_by_email(self, email):
        """
        Find an existing customer by email (case-insensitive exact match)

        Scans every page of the customer list. Any API or transport error is
        logged and reported as not found.

        Returns:
            dict: Customer record, or None
        """
        if not email:
            return None

        target = email.strip().lower()
        logger.info(f"Searching for existing customer with email: {email}")

        def fetch_page(cursor):
            return sq.unwrap(self.client.customers.list_customers(cursor=cursor), 'List customers')

        try:
            for customer in sq.iterate_pages(fetch_page, 'customers'):
                customer_email = customer.get('email_address')
                if customer_email and customer_email.strip().lower() == target:
                    logger.info(f"Found existing customer: {customer.get('id')}")
                    return customer
        except Exception as e:
            logger.warning(f"Customer search failed: {str(e)}")
            return None

        logger.info(f"No existing customer found for email: {email}")
        return None

    def build_customer_body(self, contact_info):
        """Full-profile customer creation request"""
        body = {
            'idempotency_key': sq.new_idempotency_key(),
            'given_name': contact_info.get('firstName') or DEFAULT_GIVEN_NAME,
            'family_name': contact_info.get('lastName') or DEFAULT_FAMILY_NAME,
            'reference_id': self._reference_id(),
            'note': CUSTOMER_NOTE
        }
        if contact_info.get('email'):
            body['email_address'] = contact_info['email'].strip()
        if contact_info.get('companyName'):
            body['company_name'] = contact_info['companyName']

        if contact_info.get('phone'):
            phone_number = normalize_phone_number(contact_info['phone'])
            if phone_number:
                body['phone_number'] = phone_number
            else:
                logger.info(f"Phone number format not supported, skipping: {contact_info['phone']}")
        return body

    def build_minimal_customer_body(self, contact_info):
        """Email-only customer creation request used after a full create fails"""
        return {
            'idempotency_key': sq.new_idempotency_key(),
            'email_address': contact_info['email'].strip(),
            'reference_id': self._reference_id(),
            'note': CUSTOMER_NOTE
        }

    def _create_customer(self, body):
        response = sq.unwrap(self.client.customers.create_customer(body=body), 'Create customer')
        customer = response.get('customer') or {}
        if not customer.get('id'):
            raise PlatformError("Create customer failed: no customer returned")
        logger.info(f"Customer created successfully: {customer['id']}")
        return customer['id']

    def _refresh_existing(self, existing_customer, contact_info):
        """Patch changed name fields on a found customer; falls back to its id"""
        customer_id = existing_customer['id']
        update_fields = {}
        if contact_info.get('firstName') and contact_info['firstName'] != existing_customer.get('given_name'):
            update_fields['given_name'] = contact_info['firstName']
        if contact_info.get('lastName') and contact_info['lastName'] != existing_customer.get('family_name'):
            update_fields['family_name'] = contact_info['lastName']

        if not update_fields:
            return customer_id

        try:
            logger.info(f"Updating existing customer {customer_id} with fields: {sorted(update_fields)}")
            response = sq.unwrap(
                self.client.customers.update_customer(customer_id=customer_id, body=update_fields),
                'Update customer'
            )
            return (response.get('customer') or {}).get('id') or customer_id
        except Exception as e:
            logger.warning(f"Failed to update customer, using existing {customer_id}: {str(e)}")
            return customer_id

    def upsert(self, contact_info):
        """
        Resolve the customer id for a submission

        Returns:
            str: Square customer id, or None when no identifying information
            was given or every creation attempt failed
        """
        contact_info = contact_info or {}
        if not has_identity(contact_info):
            logger.info("No contact info provided - skipping customer creation")
            return None

        if contact_info.get('email'):
            existing_customer = self.find_by_email(contact_info['email'])
            if existing_customer and existing_customer.get('id'):
                logger.info(f"Using existing customer: {existing_customer['id']}")
                return self._refresh_existing(existing_customer, contact_info)

        strategies = [
            ('full_profile', lambda: self._create_customer(self.build_customer_body(contact_info)))
        ]
        if contact_info.get('email'):
            strategies.append(
                ('email_only', lambda: self._create_customer(self.build_minimal_customer_body(contact_info)))
            )

        attempts = run_strategies(strategies)
        if attempts and attempts[-1].success:
            return attempts[-1].value

        logger.warning(f"Customer creation failed after {len(attempts)} attempt(s) "
                       f"({[attempt.strategy for attempt in attempts]}) - proceeding without customer")
        return None


def get_customer_manager(config, square_client):
    """Factory function to get CustomerManager instance"""
    return CustomerManager(config, square_client)
