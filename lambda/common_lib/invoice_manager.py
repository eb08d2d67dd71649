"""
Invoice Management Module
Composes catering invoices (title, selection summary, payment terms) and
handles invoice creation, publishing and listing on Square
"""

import logging
from datetime import datetime, timedelta, timezone

import square_utils as sq
from exceptions import BusinessLogicError
from money_utils import format_currency
from order_manager import QUOTE_REQUIRED_SUFFIX

logger = logging.getLogger(__name__)

PAYMENT_DUE_DAYS = 30
INITIAL_REMINDER_DAY = 3
REMINDER_DAYS = [7, 14, 21]

ADDITIONAL_NOTES = [
    "This is a draft invoice for your catering event",
    "Final pricing for quote-required services will be provided separately",
    "Please review all details and contact us with any questions",
    f"Payment is due {PAYMENT_DUE_DAYS} days from invoice date"
]


def parse_event_date(value):
    """Parse a YYYY-MM-DD event date, or None"""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip()[:10], '%Y-%m-%d').date()
    except ValueError:
        return None


def format_long_date(value, default='TBD'):
    """'2025-06-14' -> 'Saturday, June 14, 2025'; unparseable input is returned as given"""
    if not value:
        return default
    event_date = parse_event_date(value)
    if event_date is None:
        return value
    return f"{event_date:%A}, {event_date:%B} {event_date.day}, {event_date.year}"


def customer_display_name(first_name, last_name, default='Guest'):
    if first_name and last_name:
        return f"{first_name} {last_name}"
    return first_name or last_name or default


def build_invoice_title(contact_info):
    contact_info = contact_info or {}
    customer_name = customer_display_name(contact_info.get('firstName'), contact_info.get('lastName'))
    event_date = format_long_date(contact_info.get('eventDate'))
    location = contact_info.get('location') or 'TBD'
    return f"Catering Invoice - {customer_name} - {event_date} at {location}"


def _line_price(item, guest_count):
    amount = (item.get('base_price_money') or {}).get('amount') or 0
    price = format_currency(amount)
    if str(item.get('quantity')) == str(guest_count) and str(item.get('quantity')) != '1':
        return f"{price}/guest"
    return price


def group_line_items(line_items):
    """
    Split order line items into summary sections by their names

    Returns:
        dict: package, entrees, beverages and quote_required lists
    """
    groups = {'package': [], 'entrees': [], 'beverages': [], 'quote_required': []}
    for item in line_items or []:
        name = item.get('name') or ''
        amount = (item.get('base_price_money') or {}).get('amount') or 0
        if 'Base Package' in name:
            groups['package'].append(item)
        elif 'Quote Required' in name:
            groups['quote_required'].append(item)
        elif 'Beverage' in name:
            groups['beverages'].append(item)
        elif int(amount) > 0:
            groups['entrees'].append(item)
    return groups


def build_selection_summary(order, guest_count, contact_info):
    """
    Plain-text report of the event and selections used as invoice description
    """
    contact_info = contact_info or {}
    customer_name = customer_display_name(contact_info.get('firstName'), contact_info.get('lastName'))
    delivery_method = contact_info.get('deliveryMethod') or 'TBD'
    groups = group_line_items((order or {}).get('line_items'))

    lines = [
        "CATERING EVENT DETAILS",
        "================================",
        "",
        "EVENT INFORMATION",
        "------------------",
        f"Date: {format_long_date(contact_info.get('eventDate'))}",
        f"Time: {contact_info.get('time') or 'TBD'}",
        f"Location: {contact_info.get('location') or 'TBD'}",
        f"Guest Count: {guest_count} guests",
        f"Delivery Method: {delivery_method[:1].upper() + delivery_method[1:]}",
        "",
        "SELECTED SERVICES",
        "-----------------",
        "BASE PACKAGE:"
    ]
    if groups['package']:
        lines.extend(f"• {item['name']} - {_line_price(item, guest_count)}" for item in groups['package'])
    else:
        lines.append("• Package details")

    if groups['entrees']:
        lines.extend(["", "ENTREES:"])
        lines.extend(f"• {item['name']} - {_line_price(item, guest_count)}" for item in groups['entrees'])

    if groups['beverages']:
        lines.extend(["", "BEVERAGES:"])
        lines.extend(f"• {item['name']} - {_line_price(item, guest_count)}" for item in groups['beverages'])

    if groups['quote_required']:
        lines.extend(["", "ADDITIONAL SERVICES:"])
        lines.extend(
            f"• {item['name'].replace(QUOTE_REQUIRED_SUFFIX, '')} - Quote required"
            for item in groups['quote_required']
        )

    lines.extend([
        "",
        "CONTACT INFORMATION",
        "-------------------",
        f"Name: {customer_name}"
    ])
    if contact_info.get('companyName'):
        lines.append(f"Company: {contact_info['companyName']}")
    lines.extend([
        f"Email: {contact_info.get('email') or 'Not provided'}",
        f"Phone: {contact_info.get('phone') or 'Not provided'}"
    ])

    special_instructions = (contact_info.get('specialInstructions') or '').strip()
    if special_instructions:
        lines.extend([
            "",
            "SPECIAL INSTRUCTIONS",
            "--------------------",
            special_instructions
        ])

    lines.extend([
        "",
        "ADDITIONAL NOTES",
        "-----------------"
    ])
    lines.extend(f"• {note}" for note in ADDITIONAL_NOTES)
    return "\n".join(lines)


def build_payment_requests(now):
    """
    Single balance request due 30 days out

    Reminders fall on days 3, 7, 14 and 21 of the payment cycle, expressed
    relative to the due date as Square expects.
    """
    due_date = (now + timedelta(days=PAYMENT_DUE_DAYS)).date()
    reminders = [
        {
            'relative_scheduled_days': day - PAYMENT_DUE_DAYS,
            'message': f"Reminder: your catering invoice is due on {due_date.isoformat()}"
        }
        for day in [INITIAL_REMINDER_DAY] + REMINDER_DAYS
    ]
    return [{
        'request_type': 'BALANCE',
        'due_date': due_date.isoformat(),
        'reminders': reminders
    }]


class InvoiceManager:
    """Manages invoice-related business logic"""

    def __init__(self, config, square_client, now=None):
        self.config = config
        self.client = square_client
        self.now = now or (lambda: datetime.now(timezone.utc))

    def build_invoice_body(self, order_id, customer_id, contact_info, selection_summary):
        contact_info = contact_info or {}
        invoice = {
            'location_id': self.config.square_location_id,
            'order_id': order_id,
            'title': build_invoice_title(contact_info),
            'delivery_method': 'EMAIL',
            'accepted_payment_methods': {
                'card': True,
                'square_gift_card': False,
                'bank_account': False,
                'buy_now_pay_later': False
            },
            'payment_requests': build_payment_requests(self.now()),
            'description': selection_summary
        }

        event_date = parse_event_date(contact_info.get('eventDate'))
        if event_date:
            invoice['sale_or_service_date'] = event_date.isoformat()

        # Without a customer the draft waits for an admin to assign a recipient
        if customer_id:
            invoice['primary_recipient'] = {'customer_id': customer_id}

        return {
            'idempotency_key': sq.new_idempotency_key(),
            'invoice': invoice
        }

    def create_invoice(self, order_id, customer_id, contact_info, selection_summary):
        """
        Create the draft invoice for an order

        Raises:
            PlatformError: If Square rejects the invoice
            BusinessLogicError: If Square returns no invoice id
        """
        body = self.build_invoice_body(order_id, customer_id, contact_info, selection_summary)
        logger.info(f"Creating invoice for order {order_id} "
                    f"({'with' if customer_id else 'without'} primary recipient)")
        response = sq.unwrap(self.client.invoices.create_invoice(body=body), 'Create invoice')

        invoice = response.get('invoice') or {}
        if not invoice.get('id'):
            raise BusinessLogicError("Invoice creation failed: no invoice returned by Square", 500)

        logger.info(f"Invoice created successfully: {invoice['id']}")
        return invoice

    def get_invoice(self, invoice_id):
        response = sq.unwrap(self.client.invoices.get_invoice(invoice_id=invoice_id), 'Get invoice')
        return response.get('invoice') or {}

    def publish_invoice(self, invoice_id, version=None):
        """
        Move a draft invoice to PUBLISHED

        Without a version the current one is read from Square first.

        Raises:
            BusinessLogicError: If version is not an integer
            PlatformError: If Square rejects the publish
        """
        if version is None:
            version = self.get_invoice(invoice_id).get('version')
        try:
            version = int(version)
        except (TypeError, ValueError):
            raise BusinessLogicError("version must be an integer")

        body = {
            'version': version,
            'idempotency_key': sq.new_idempotency_key()
        }
        logger.info(f"Publishing invoice {invoice_id} at version {version}")
        response = sq.unwrap(
            self.client.invoices.publish_invoice(invoice_id=invoice_id, body=body),
            'Publish invoice'
        )
        invoice = response.get('invoice') or {}
        logger.info(f"Invoice {invoice_id} is now {invoice.get('status')}")
        return invoice

    def list_invoices(self):
        """All invoices at the configured location, newest first"""
        location_id = self.config.square_location_id

        def fetch_page(cursor):
            return sq.unwrap(
                self.client.invoices.list_invoices(
                    location_id=location_id,
                    cursor=cursor,
                    limit=sq.DEFAULT_PAGE_SIZE
                ),
                'List invoices'
            )

        invoices = list(sq.iterate_pages(fetch_page, 'invoices'))
        invoices.sort(key=lambda invoice: invoice.get('created_at') or '', reverse=True)
        return invoices


def get_invoice_manager(config, square_client):
    """Factory function to get InvoiceManager instance"""
    return InvoiceManager(config, square_client)
