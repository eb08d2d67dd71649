"""
Business logic utilities for common operations across Lambda functions
This module provides the shared error handling decorators used by every handler
"""

import functools
import logging
import traceback

import request_utils as req
import response_utils as resp
from exceptions import BusinessLogicError, PlatformError

logger = logging.getLogger(__name__)


def handle_business_logic_error(func):
    """Decorator to handle BusinessLogicError, PlatformError and unexpected exceptions"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PlatformError as e:
            logger.error(f"PlatformError in {func.__name__}: {e.message} "
                         f"(category: {e.category}, code: {e.code})")
            return resp.error_response(
                e.message,
                e.status_code,
                category=e.category,
                code=e.code,
                **e.extra
            )
        except BusinessLogicError as e:
            logger.error(f"BusinessLogicError in {func.__name__}: {e.message} (status: {e.status_code})")
            return resp.error_response(e.message, e.status_code, **e.extra)
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {str(e)} (type: {type(e).__name__})")
            details = traceback.format_exc()
            logger.error(details)
            return resp.error_response(
                f"Internal server error: {str(e)}",
                500,
                details=details
            )
    return wrapper


def allow_methods(*allowed_methods):
    """
    Decorator that answers CORS preflight requests and rejects unsupported methods

    Must be the outermost decorator so preflight never reaches the handler body.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(event, context):
            method = req.get_http_method(event)
            if method == 'OPTIONS':
                return resp.preflight_response()
            if method not in allowed_methods:
                return resp.method_not_allowed_response(method, allowed_methods)
            return func(event, context)
        return wrapper
    return decorator
