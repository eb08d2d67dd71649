"""
Runtime configuration
Reads environment variables once per invocation into an AppConfig that is
passed explicitly to every manager
"""

import os

DEFAULT_LOCATION_ID = 'default'
DEFAULT_CURRENCY = 'USD'
DEFAULT_REFERENCE_ID_PREFIX = 'KKC'
DEFAULT_NOTIFICATION_FROM_EMAIL = 'notifications@kcc.wgmtx.net'
DEFAULT_NOTIFICATION_TO_EMAILS = 'hosting@wgmtx.com'
DEFAULT_DASHBOARD_URL = 'https://squareup.com/dashboard'
DEFAULT_IDEMPOTENCY_WINDOW_SECONDS = 24 * 60 * 60
# Lambda maximum timeout; an in-progress claim older than this belongs to a dead invocation
DEFAULT_IDEMPOTENCY_LEASE_SECONDS = 15 * 60


class AppConfig:
    """Settings for the Square, email and dedup collaborators"""

    def __init__(self,
                 square_access_token=None,
                 square_environment='sandbox',
                 square_location_id=DEFAULT_LOCATION_ID,
                 currency=DEFAULT_CURRENCY,
                 reference_id_prefix=DEFAULT_REFERENCE_ID_PREFIX,
                 resend_api_key=None,
                 notification_from_email=DEFAULT_NOTIFICATION_FROM_EMAIL,
                 notification_to_emails=None,
                 dashboard_url=DEFAULT_DASHBOARD_URL,
                 idempotency_table=None,
                 idempotency_window_seconds=DEFAULT_IDEMPOTENCY_WINDOW_SECONDS,
                 idempotency_lease_seconds=DEFAULT_IDEMPOTENCY_LEASE_SECONDS,
                 environment='development'):
        self.square_access_token = square_access_token
        self.square_environment = 'production' if square_environment == 'production' else 'sandbox'
        self.square_location_id = square_location_id or DEFAULT_LOCATION_ID
        self.currency = currency or DEFAULT_CURRENCY
        self.reference_id_prefix = reference_id_prefix or DEFAULT_REFERENCE_ID_PREFIX
        self.resend_api_key = resend_api_key or None
        self.notification_from_email = notification_from_email or DEFAULT_NOTIFICATION_FROM_EMAIL
        self.notification_to_emails = notification_to_emails or [DEFAULT_NOTIFICATION_TO_EMAILS]
        self.dashboard_url = (dashboard_url or DEFAULT_DASHBOARD_URL).rstrip('/')
        self.idempotency_table = idempotency_table or None
        self.idempotency_window_seconds = int(idempotency_window_seconds)
        self.idempotency_lease_seconds = int(idempotency_lease_seconds)
        self.environment = environment

    @classmethod
    def from_environment(cls, environ=None):
        """Build config from environment variables (os.environ by default)"""
        env = os.environ if environ is None else environ

        to_emails = [
            address.strip()
            for address in env.get('NOTIFICATION_TO_EMAILS', DEFAULT_NOTIFICATION_TO_EMAILS).split(',')
            if address.strip()
        ]

        window = env.get('IDEMPOTENCY_WINDOW_SECONDS')
        try:
            window_seconds = int(window) if window else DEFAULT_IDEMPOTENCY_WINDOW_SECONDS
        except ValueError:
            window_seconds = DEFAULT_IDEMPOTENCY_WINDOW_SECONDS

        lease = env.get('IDEMPOTENCY_LEASE_SECONDS')
        try:
            lease_seconds = int(lease) if lease else DEFAULT_IDEMPOTENCY_LEASE_SECONDS
        except ValueError:
            lease_seconds = DEFAULT_IDEMPOTENCY_LEASE_SECONDS

        return cls(
            square_access_token=env.get('SQUARE_ACCESS_TOKEN'),
            square_environment=env.get('SQUARE_ENVIRONMENT', 'sandbox'),
            square_location_id=env.get('SQUARE_LOCATION_ID', DEFAULT_LOCATION_ID),
            currency=env.get('CURRENCY', DEFAULT_CURRENCY),
            reference_id_prefix=env.get('REFERENCE_ID_PREFIX', DEFAULT_REFERENCE_ID_PREFIX),
            resend_api_key=env.get('RESEND_API_KEY'),
            notification_from_email=env.get('NOTIFICATION_FROM_EMAIL', DEFAULT_NOTIFICATION_FROM_EMAIL),
            notification_to_emails=to_emails,
            dashboard_url=env.get('SQUARE_DASHBOARD_URL', DEFAULT_DASHBOARD_URL),
            idempotency_table=env.get('IDEMPOTENCY_TABLE'),
            idempotency_window_seconds=window_seconds,
            idempotency_lease_seconds=lease_seconds,
            environment=env.get('ENVIRONMENT', 'development')
        )

    @property
    def email_configured(self):
        return bool(self.resend_api_key)

    @property
    def dedup_enabled(self):
        return bool(self.idempotency_table)

    def __repr__(self):
        # Credentials are reported as present/missing only
        return (f"AppConfig(environment={self.environment!r}, square_environment={self.square_environment!r}, "
                f"location_id={self.square_location_id!r}, "
                f"square_token={'present' if self.square_access_token else 'missing'}, "
                f"resend_key={'present' if self.resend_api_key else 'missing'}, "
                f"idempotency_table={self.idempotency_table!r})")
