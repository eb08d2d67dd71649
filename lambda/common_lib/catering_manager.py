"""
Catering Request Management Module
Runs a catering form submission through customer resolution, order creation,
invoice creation and operator notification, in that order.

States: start -> customer_resolved -> order_created -> invoice_created ->
notified -> responded. order_failed and invoice_failed are terminal;
notification_failed still reaches responded. Nothing created earlier is
rolled back when a later step fails.
"""

import logging
import traceback

import catalog_utils as catalog
import idempotency_utils as idem
import square_utils as sq
from config_utils import AppConfig
from customer_manager import get_customer_manager
from exceptions import BusinessLogicError, PlatformError
from invoice_manager import build_selection_summary, get_invoice_manager
from money_utils import format_currency, to_cents
from notification_manager import get_notification_manager
from order_manager import build_line_items, get_order_manager
from validation_utils import CateringRequestValidator

logger = logging.getLogger(__name__)

STATE_START = 'start'
STATE_CUSTOMER_RESOLVED = 'customer_resolved'
STATE_ORDER_CREATED = 'order_created'
STATE_INVOICE_CREATED = 'invoice_created'
STATE_NOTIFIED = 'notified'
STATE_NOTIFICATION_FAILED = 'notification_failed'
STATE_RESPONDED = 'responded'
STATE_ORDER_FAILED = 'order_failed'
STATE_INVOICE_FAILED = 'invoice_failed'

SUCCESS_MESSAGE = 'Draft invoice created successfully with comprehensive event details'


class CateringRequestManager:
    """Orchestrates the catering submission workflow"""

    def __init__(self, config, customer_manager, order_manager, invoice_manager,
                 notification_manager, idempotency_store):
        self.config = config
        self.customer_manager = customer_manager
        self.order_manager = order_manager
        self.invoice_manager = invoice_manager
        self.notification_manager = notification_manager
        self.idempotency_store = idempotency_store
        self.state = None
        self.history = []

    def _transition(self, state):
        logger.info(f"Catering request state: {self.state or '-'} -> {state}")
        self.state = state
        self.history.append(state)

    def process(self, payload):
        """
        Process a catering form submission

        Args:
            payload (dict): {package, guestCount, entrees, sides,
                additionalServices, totalPrice, contactInfo}

        Returns:
            dict: Response data (orderId, invoiceId, customerId, ...)

        Raises:
            ValidationError: If the submission is malformed
            BusinessLogicError: On a concurrent duplicate or a fatal step failure
            PlatformError: If Square rejects the order or invoice
        """
        CateringRequestValidator.validate(payload)

        form_key = idem.derive_form_idempotency_key(payload)
        logger.info(f"Form idempotency key: {form_key}")

        claim = self.idempotency_store.claim(form_key)
        if claim.outcome == idem.DUPLICATE:
            return {**claim.cached_response, 'duplicate': True}
        if claim.outcome == idem.IN_PROGRESS:
            raise BusinessLogicError(
                "An identical submission is already being processed",
                409,
                extra={'formIdempotencyKey': form_key}
            )

        try:
            response_data = self._run(payload, form_key)
        except Exception:
            self.idempotency_store.release(form_key)
            raise

        self.idempotency_store.complete(form_key, response_data)
        return response_data

    def _run(self, payload, form_key):
        self.history = []
        self.state = None
        self._transition(STATE_START)

        guest_count = payload['guestCount']
        contact_info = payload.get('contactInfo') or {}
        selected_package, selected_entrees, selected_sides, selected_services = catalog.reprice_selection(
            payload['package'],
            payload.get('entrees') or [],
            payload.get('sides') or [],
            payload.get('additionalServices') or []
        )

        # Step 1: customer (never raises)
        customer_id = self.customer_manager.upsert(contact_info)
        logger.info(f"Customer upsert result: {customer_id}")
        self._transition(STATE_CUSTOMER_RESOLVED)

        # Step 2: order
        line_items = build_line_items(
            selected_package, guest_count, selected_entrees, selected_sides, selected_services,
            self.config.currency
        )
        self._check_submitted_total(
            payload.get('totalPrice'),
            catalog.estimate_total(selected_package, guest_count, selected_entrees, selected_services)
        )

        try:
            order = self.order_manager.create_order(line_items, guest_count, contact_info, customer_id)
        except Exception as e:
            self._transition(STATE_ORDER_FAILED)
            logger.error(f"Order creation failed: {str(e)}")
            raise
        self._transition(STATE_ORDER_CREATED)

        # Step 3: invoice
        selection_summary = build_selection_summary(order, guest_count, contact_info)
        try:
            invoice = self.invoice_manager.create_invoice(order['id'], customer_id, contact_info, selection_summary)
        except PlatformError as e:
            self._transition(STATE_INVOICE_FAILED)
            logger.error(f"Invoice creation rejected by Square; order {order['id']} left without invoice: {e.message}")
            raise PlatformError(
                f"Invoice could not be created because Square rejected it: {e.message}",
                category=e.category,
                code=e.code,
                errors=e.errors,
                status_code=e.status_code,
                extra={'orderId': order['id']}
            ) from e
        except Exception as e:
            self._transition(STATE_INVOICE_FAILED)
            logger.error(f"Invoice creation failed; order {order['id']} left without invoice: {str(e)}")
            raise BusinessLogicError(
                f"Failed to create invoice: {str(e)}",
                500,
                extra={'orderId': order['id'], 'details': traceback.format_exc()}
            ) from e
        self._transition(STATE_INVOICE_CREATED)

        # Step 4: notification (best-effort)
        customer_data = None
        if customer_id:
            customer_data = {
                'id': customer_id,
                'givenName': contact_info.get('firstName'),
                'familyName': contact_info.get('lastName'),
                'emailAddress': contact_info.get('email'),
                'phoneNumber': contact_info.get('phone')
            }
        email_notification = self.notification_manager.send_invoice_created_notification(invoice, customer_data, order)
        logger.info(f"Email notification result: {email_notification}")
        self._transition(STATE_NOTIFIED if email_notification.get('success') else STATE_NOTIFICATION_FAILED)

        response_data = {
            'orderId': order['id'],
            'invoiceId': invoice['id'],
            'customerId': customer_id,
            'formIdempotencyKey': form_key,
            'message': SUCCESS_MESSAGE,
            'eventDetails': {
                'date': contact_info.get('eventDate') or 'TBD',
                'time': contact_info.get('time') or 'TBD',
                'location': contact_info.get('location') or 'TBD',
                'deliveryMethod': contact_info.get('deliveryMethod') or 'TBD',
                'guestCount': guest_count,
                'customerName': (
                    f"{contact_info.get('firstName') or 'Guest'} {contact_info.get('lastName') or 'Customer'}"
                    if customer_id else None
                )
            },
            'selectionSummary': selection_summary,
            'invoiceDescription': invoice.get('description') or 'Not set',
            'emailNotification': email_notification,
            'duplicate': False
        }
        self._transition(STATE_RESPONDED)
        return response_data

    def _check_submitted_total(self, submitted_total, computed):
        """Log when the form's total disagrees with the catalog-priced total (cents)"""
        if submitted_total is None:
            return
        try:
            submitted = to_cents(submitted_total)
        except ValueError:
            logger.warning(f"Submitted totalPrice is not a valid amount: {submitted_total!r}")
            return
        if submitted != computed:
            logger.warning(f"Submitted total {format_currency(submitted)} differs from "
                           f"catalog total {format_currency(computed)}; invoicing catalog prices")


def get_catering_request_manager(config=None):
    """Factory function to get a fully wired CateringRequestManager"""
    config = config or AppConfig.from_environment()
    square_client = sq.get_square_client(config)
    return CateringRequestManager(
        config=config,
        customer_manager=get_customer_manager(config, square_client),
        order_manager=get_order_manager(config, square_client),
        invoice_manager=get_invoice_manager(config, square_client),
        notification_manager=get_notification_manager(config),
        idempotency_store=idem.get_idempotency_store(config)
    )
