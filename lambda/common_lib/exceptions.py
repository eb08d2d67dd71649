"""
Common exceptions used across the application
"""

INVALID_REQUEST_ERROR = 'INVALID_REQUEST_ERROR'


class BusinessLogicError(Exception):
    """Custom exception for business logic errors"""
    def __init__(self, message, status_code=400, extra=None):
        self.message = message
        self.status_code = status_code
        self.extra = extra or {}
        super().__init__(self.message)


class ValidationError(Exception):
    """Custom exception for validation errors"""
    def __init__(self, message, field=None):
        self.message = message
        self.field = field
        super().__init__(self.message)


class PlatformError(Exception):
    """
    Error reported by the Square API

    Carries the category and code of the first error the platform returned,
    plus the full error list for logging.
    """
    def __init__(self, message, category=None, code=None, errors=None, status_code=400, extra=None):
        self.message = message
        self.category = category
        self.code = code
        self.errors = errors or []
        self.status_code = status_code
        self.extra = extra or {}
        super().__init__(self.message)

    @classmethod
    def from_errors(cls, errors, operation, status_code=None):
        """Build a PlatformError from the platform's error list"""
        errors = errors or []
        first = errors[0] if errors else {}
        detail = first.get('detail') or first.get('code') or 'Unknown error'
        return cls(
            f"{operation} failed: {detail}",
            category=first.get('category'),
            code=first.get('code'),
            errors=errors,
            status_code=cls._response_status(first, status_code)
        )

    @staticmethod
    def _response_status(first_error, status_code):
        """
        HTTP status to answer with: 404 for lookups that miss, 400 for
        requests the platform rejected, otherwise the platform's 5xx or 500
        """
        if first_error.get('code') == 'NOT_FOUND' or status_code == 404:
            return 404
        if status_code and status_code >= 500:
            return status_code
        if status_code and 400 <= status_code < 500 and status_code != 429:
            return 400
        if first_error.get('category') == INVALID_REQUEST_ERROR:
            return 400
        return 500
