"""
Validation utilities for common input validation patterns
Centralizes validation logic across Lambda functions
"""

import functools
import re

import response_utils as resp
from catalog_utils import MINIMUM_GUEST_COUNT, SERVICE_TYPE_PER_PERSON, SERVICE_TYPE_QUOTE_BASED
from exceptions import ValidationError
from money_utils import to_decimal

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15


def normalize_phone_number(phone):
    """
    Normalize a phone number to the +<digits> form the platform accepts

    All non-digits are stripped. 10 digits are taken as a US number (+1),
    11 digits starting with 1 get a leading +, any other length from 10 to 15
    digits gets a leading + as-is.

    Returns:
        str: Normalized number, or None if the digit count is out of range
    """
    if not phone or not isinstance(phone, str):
        return None

    digits = re.sub(r'\D', '', phone)
    if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
        return None

    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}"


class DataValidator:
    """Common data validation patterns"""

    @staticmethod
    def validate_email(email, field_name="email"):
        """
        Validate email format using regex

        Raises:
            ValidationError: If email is invalid
        """
        if not email or not isinstance(email, str):
            raise ValidationError(f"{field_name} must be a valid string", field_name)

        if not re.match(EMAIL_PATTERN, email.strip()):
            raise ValidationError(f"{field_name} must be a valid email address", field_name)

        return True

    @staticmethod
    def validate_price(value, field_name="price"):
        """
        Validate a non-negative price

        Raises:
            ValidationError: If the value is not a non-negative number
        """
        try:
            amount = to_decimal(value)
        except ValueError:
            raise ValidationError(f"{field_name} must be a valid number", field_name)
        if not amount.is_finite() or amount < 0:
            raise ValidationError(f"{field_name} must be a non-negative number", field_name)
        return True

    @staticmethod
    def validate_object_list(value, field_name):
        """
        Validate an optional list of objects

        Raises:
            ValidationError: If value is present and not a list of objects
        """
        if value is None:
            return True
        if not isinstance(value, list):
            raise ValidationError(f"{field_name} must be an array", field_name)
        for i, item in enumerate(value):
            if not isinstance(item, dict):
                raise ValidationError(f"{field_name}[{i}] must be an object", field_name)
        return True


class CateringRequestValidator:
    """Validator for catering form submissions"""

    @staticmethod
    def validate(body):
        """
        Validate a catering request body before any external call is made

        Raises:
            ValidationError: If the submission is malformed
        """
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")

        package = body.get('package')
        if not isinstance(package, dict):
            raise ValidationError("package is required", 'package')
        if not package.get('name'):
            raise ValidationError("package.name is required", 'package')
        DataValidator.validate_price(package.get('price'), 'package.price')

        guest_count = body.get('guestCount')
        if isinstance(guest_count, bool) or not isinstance(guest_count, int):
            raise ValidationError("guestCount must be an integer", 'guestCount')
        if guest_count < MINIMUM_GUEST_COUNT:
            raise ValidationError(f"guestCount must be at least {MINIMUM_GUEST_COUNT}", 'guestCount')

        for field in ['entrees', 'sides', 'additionalServices']:
            DataValidator.validate_object_list(body.get(field), field)
            for i, item in enumerate(body.get(field) or []):
                if not item.get('name'):
                    raise ValidationError(f"{field}[{i}].name is required", field)
                DataValidator.validate_price(item.get('price', 0), f"{field}[{i}].price")

        for i, service in enumerate(body.get('additionalServices') or []):
            service_type = service.get('type')
            if service_type and service_type not in (SERVICE_TYPE_PER_PERSON, SERVICE_TYPE_QUOTE_BASED):
                raise ValidationError(
                    f"additionalServices[{i}].type must be '{SERVICE_TYPE_PER_PERSON}' or '{SERVICE_TYPE_QUOTE_BASED}'",
                    'additionalServices'
                )

        contact_info = body.get('contactInfo')
        if contact_info is not None and not isinstance(contact_info, dict):
            raise ValidationError("contactInfo must be an object", 'contactInfo')

        email = (contact_info or {}).get('email')
        if email:
            DataValidator.validate_email(email, 'contactInfo.email')

        return True


def handle_validation_error(func):
    """
    Decorator to handle ValidationError exceptions and convert to proper responses
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ValidationError as e:
            extra = {'field': e.field} if e.field else {}
            return resp.error_response(e.message, 400, **extra)

    return wrapper
