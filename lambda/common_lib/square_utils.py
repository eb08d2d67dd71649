"""
Square API helpers
Client construction, response unwrapping and cursor pagination
"""

import logging
import uuid

from square.client import Client

from exceptions import PlatformError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


def get_square_client(config):
    """Build a Square client from AppConfig"""
    if not config.square_access_token:
        logger.warning("SQUARE_ACCESS_TOKEN is not configured - Square calls will be rejected")
    logger.info(f"Initializing Square client for {config.square_environment} environment")
    return Client(
        access_token=config.square_access_token,
        environment=config.square_environment
    )


def new_idempotency_key():
    """Fresh idempotency key for a single Square create/update call"""
    return str(uuid.uuid4())


def unwrap(result, operation):
    """
    Return the body of a Square API response

    Args:
        result: ApiResponse returned by the SDK
        operation (str): Human-readable name of the call, used in errors

    Returns:
        dict: Response body (empty dict when the platform returned none)

    Raises:
        PlatformError: If the platform reported an error
    """
    if result.is_success():
        body = result.body
        return body if isinstance(body, dict) else {}

    errors = result.errors or []
    logger.error(f"{operation} failed with status {result.status_code}: {errors}")
    raise PlatformError.from_errors(errors, operation, result.status_code)


def iterate_pages(fetch_page, items_key):
    """
    Yield every item from a cursor-paginated Square endpoint

    Args:
        fetch_page: Callable taking a cursor (None for the first page) and
            returning the unwrapped response body
        items_key (str): Body key holding the page's items
    """
    cursor = None
    page = 0
    while True:
        body = fetch_page(cursor)
        page += 1
        items = body.get(items_key) or []
        logger.info(f"Fetched page {page} of {items_key} ({len(items)} items)")
        for item in items:
            yield item
        cursor = body.get('cursor')
        if not cursor:
            break
