"""
Data Access Manager for admin API operations

This module provides the read-side of the admin endpoints: listing orders,
invoices, locations and customers from Square and shaping platform records
into the camelCase items the dashboard consumes.
"""

import logging

import square_utils as sq
from invoice_manager import InvoiceManager
from money_utils import money_amount
from order_manager import OrderManager

logger = logging.getLogger(__name__)


def format_money(money_obj):
    """Platform money object as {amount (cents), currency}, or None"""
    if not money_obj:
        return None
    return {
        'amount': money_obj.get('amount'),
        'currency': money_obj.get('currency')
    }


def format_line_item(item):
    base_price_money = item.get('base_price_money')
    return {
        'name': item.get('name'),
        'quantity': item.get('quantity'),
        'basePriceMoney': format_money(base_price_money),
        'unitPrice': money_amount(base_price_money)
    }


def format_order(order):
    """Order list item"""
    return {
        'id': order.get('id'),
        'referenceId': order.get('reference_id'),
        'state': order.get('state'),
        # Square orders carry a single state; status mirrors it for the dashboard
        'status': order.get('state'),
        'totalMoney': format_money(order.get('total_money')),
        'totalAmount': money_amount(order.get('total_money')),
        'createdAt': order.get('created_at'),
        'note': order.get('note'),
        'customerId': order.get('customer_id'),
        'lineItems': [format_line_item(item) for item in order.get('line_items') or []]
    }


def invoice_total_money(invoice):
    if invoice.get('total_money'):
        return invoice['total_money']
    payment_requests = invoice.get('payment_requests') or []
    if not payment_requests:
        return None
    return payment_requests[0].get('computed_amount_money') or payment_requests[0].get('total_completed_amount_money')


def format_invoice(invoice):
    """Invoice list item"""
    recipient = invoice.get('primary_recipient')
    total_money = invoice_total_money(invoice)
    return {
        'id': invoice.get('id'),
        'orderId': invoice.get('order_id'),
        'status': invoice.get('status'),
        'version': invoice.get('version'),
        'title': invoice.get('title'),
        'totalMoney': format_money(total_money),
        'totalAmount': money_amount(total_money),
        'createdAt': invoice.get('created_at'),
        'primaryRecipient': {
            'customerId': recipient.get('customer_id'),
            'givenName': recipient.get('given_name'),
            'familyName': recipient.get('family_name'),
            'emailAddress': recipient.get('email_address'),
            'companyName': recipient.get('company_name')
        } if recipient else None,
        'deliveryMethod': invoice.get('delivery_method'),
        'saleOrServiceDate': invoice.get('sale_or_service_date')
    }


def format_location(location):
    address = location.get('address')
    return {
        'id': location.get('id'),
        'name': location.get('name'),
        'status': location.get('status'),
        'type': location.get('type'),
        'address': {
            'addressLine1': address.get('address_line_1'),
            'locality': address.get('locality'),
            'administrativeDistrictLevel1': address.get('administrative_district_level_1')
        } if address else None
    }


def format_customer(customer):
    return {
        'id': customer.get('id'),
        'givenName': customer.get('given_name'),
        'familyName': customer.get('family_name'),
        'emailAddress': customer.get('email_address'),
        'phoneNumber': customer.get('phone_number'),
        'referenceId': customer.get('reference_id'),
        'createdAt': customer.get('created_at')
    }


def list_result(items):
    """Standard list endpoint payload"""
    return {
        'items': items,
        'count': len(items)
    }


class DataAccessManager:
    """Read-only access to Square records for the admin endpoints"""

    def __init__(self, config, square_client):
        self.config = config
        self.client = square_client
        self.order_manager = OrderManager(config, square_client)
        self.invoice_manager = InvoiceManager(config, square_client)

    def list_orders(self):
        orders = self.order_manager.search_orders()
        logger.info(f"Retrieved {len(orders)} orders")
        return [format_order(order) for order in orders]

    def list_invoices(self):
        invoices = self.invoice_manager.list_invoices()
        logger.info(f"Retrieved {len(invoices)} invoices")
        return [format_invoice(invoice) for invoice in invoices]

    def list_locations(self):
        response = sq.unwrap(self.client.locations.list_locations(), 'List locations')
        locations = response.get('locations') or []
        logger.info(f"Retrieved {len(locations)} locations")
        return [format_location(location) for location in locations]

    def list_customers(self):
        def fetch_page(cursor):
            return sq.unwrap(self.client.customers.list_customers(cursor=cursor), 'List customers')

        customers = list(sq.iterate_pages(fetch_page, 'customers'))
        logger.info(f"Retrieved {len(customers)} customers")
        return [format_customer(customer) for customer in customers]


def get_data_access_manager(config, square_client):
    """Factory function to get DataAccessManager instance"""
    return DataAccessManager(config, square_client)
