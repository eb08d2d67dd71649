"""
Order Management Module
Handles order creation, update and lookup on Square
"""

import logging
import time

import square_utils as sq
from catalog_utils import SERVICE_TYPE_PER_PERSON, SERVICE_TYPE_QUOTE_BASED
from exceptions import BusinessLogicError, PlatformError
from money_utils import format_currency, money, to_cents

logger = logging.getLogger(__name__)

BASE_PACKAGE_SUFFIX = ' - Base Package'
QUOTE_REQUIRED_SUFFIX = ' (Quote Required)'


def build_line_items(selected_package, guest_count, selected_entrees, selected_sides, selected_services, currency):
    """
    Price a selection into Square line items

    Order is package, entrees, sides, services. The package is always
    included; other zero-price items are left out except quote-based services,
    which go in at $0 for later pricing. Per-guest items use the guest count
    as quantity; flat and quote-based services use quantity 1.

    Returns:
        list: Line item dicts with integer-cent base_price_money
    """
    line_items = []
    guests = str(guest_count)

    if selected_package:
        line_items.append({
            'name': f"{selected_package['name']}{BASE_PACKAGE_SUFFIX}",
            'quantity': guests,
            'base_price_money': money(to_cents(selected_package.get('price', 0) or 0), currency)
        })

    for item in list(selected_entrees or []) + list(selected_sides or []):
        amount = to_cents(item.get('price', 0) or 0)
        if amount > 0:
            line_items.append({
                'name': item['name'],
                'quantity': guests,
                'base_price_money': money(amount, currency)
            })

    for service in selected_services or []:
        amount = to_cents(service.get('price', 0) or 0)
        service_type = service.get('type')

        if service_type == SERVICE_TYPE_QUOTE_BASED:
            line_items.append({
                'name': f"{service['name']}{QUOTE_REQUIRED_SUFFIX}",
                'quantity': '1',
                'base_price_money': money(0, currency)
            })
        elif amount > 0:
            line_items.append({
                'name': service['name'],
                'quantity': guests if service_type == SERVICE_TYPE_PER_PERSON else '1',
                'base_price_money': money(amount, currency)
            })

    return line_items


def line_items_total(line_items):
    """Sum of quantity x unit price over line items, in cents"""
    return sum(
        int(item['quantity']) * int(item['base_price_money']['amount'])
        for item in line_items
    )


def build_order_note(guest_count, contact_info):
    contact_info = contact_info or {}
    event_date = contact_info.get('eventDate') or 'TBD'
    location = contact_info.get('location') or 'Unknown location'
    return f"Catering event for {guest_count} guests on {event_date} at {location}"


class OrderManager:
    """Manages order-related business logic"""

    def __init__(self, config, square_client, clock=time.time):
        self.config = config
        self.client = square_client
        self.clock = clock

    def create_order(self, line_items, guest_count, contact_info, customer_id=None):
        """
        Create the Square order for a submission

        Returns:
            dict: Created order

        Raises:
            PlatformError: If Square rejects the order
            BusinessLogicError: If Square returns no order id
        """
        order = {
            'location_id': self.config.square_location_id,
            'line_items': line_items,
            'reference_id': f"{self.config.reference_id_prefix}-{int(self.clock() * 1000)}",
            'note': build_order_note(guest_count, contact_info)
        }
        if customer_id:
            order['customer_id'] = customer_id

        body = {
            'idempotency_key': sq.new_idempotency_key(),
            'order': order
        }

        logger.info(f"Creating order with {len(line_items)} line items "
                    f"({format_currency(line_items_total(line_items))}) at location {self.config.square_location_id}")
        response = sq.unwrap(self.client.orders.create_order(body=body), 'Create order')

        created = response.get('order') or {}
        if not created.get('id'):
            raise BusinessLogicError("Order creation failed: no order returned by Square", 500)

        logger.info(f"Order created successfully: {created['id']}")
        return created

    def retrieve_order(self, order_id):
        """
        Raises:
            PlatformError: If the order does not exist or cannot be read
        """
        response = sq.unwrap(self.client.orders.retrieve_order(order_id=order_id), 'Retrieve order')
        order = response.get('order')
        if not order:
            raise PlatformError(f"Retrieve order failed: order {order_id} not found",
                                code='NOT_FOUND', status_code=404)
        return order

    def verify_order(self, order_id):
        """Whether an order exists, with its current state"""
        try:
            order = self.retrieve_order(order_id)
        except PlatformError as e:
            if e.status_code == 404:
                logger.info(f"Order {order_id} not found")
                return None
            raise
        logger.info(f"Order found: {order.get('id')}")
        return order

    def search_orders(self):
        """All orders at the configured location, newest first"""
        location_id = self.config.square_location_id

        def fetch_page(cursor):
            body = {
                'location_ids': [location_id],
                'limit': sq.DEFAULT_PAGE_SIZE,
                'query': {
                    'sort': {'sort_field': 'CREATED_AT', 'sort_order': 'DESC'}
                }
            }
            if cursor:
                body['cursor'] = cursor
            return sq.unwrap(self.client.orders.search_orders(body=body), 'Search orders')

        return list(sq.iterate_pages(fetch_page, 'orders'))


class OrderUpdateManager:
    """Manages order update business logic"""

    def __init__(self, config, square_client, order_manager=None):
        self.config = config
        self.client = square_client
        self.order_manager = order_manager or OrderManager(config, square_client)

    def _convert_line_items(self, line_items):
        """Admin line items carry dollar amounts; Square wants cents"""
        converted = []
        for i, item in enumerate(line_items):
            if not isinstance(item, dict):
                raise BusinessLogicError(f"lineItems[{i}] must be an object")
            price_money = item.get('basePriceMoney') or item.get('base_price_money') or {}
            try:
                amount = to_cents(price_money.get('amount', 0) or 0)
            except ValueError as e:
                raise BusinessLogicError(f"lineItems[{i}]: {str(e)}")

            converted_item = {
                'name': item.get('name'),
                'quantity': str(item.get('quantity', '1')),
                'base_price_money': money(amount, self.config.currency)
            }
            if item.get('note'):
                converted_item['note'] = item['note']
            converted.append(converted_item)
        return converted

    def update_order(self, order_id, line_items=None, note=None, version=None):
        """
        Replace an order's line items and/or note

        Supplied line items replace the existing ones. An empty note clears the
        existing one; None leaves it untouched. Without an explicit
        version the current one is read first so the update is still guarded
        by optimistic concurrency.

        Returns:
            dict: Updated order

        Raises:
            BusinessLogicError: If the request is malformed
            PlatformError: If Square rejects the update (e.g. version mismatch)
        """
        if line_items is not None and not isinstance(line_items, list):
            raise BusinessLogicError("lineItems must be an array")

        fields_to_clear = []
        if version is None or line_items is not None:
            current = self.order_manager.retrieve_order(order_id)
            if version is None:
                version = current.get('version')
            if line_items is not None:
                fields_to_clear = [
                    f"line_items[{item['uid']}]"
                    for item in current.get('line_items') or []
                    if item.get('uid')
                ]

        order = {'location_id': self.config.square_location_id}
        if version is not None:
            try:
                order['version'] = int(version)
            except (TypeError, ValueError):
                raise BusinessLogicError("version must be an integer")
        if line_items is not None:
            order['line_items'] = self._convert_line_items(line_items)
        if note:
            order['note'] = note
        elif note is not None:
            fields_to_clear.append('note')

        body = {
            'idempotency_key': sq.new_idempotency_key(),
            'order': order
        }
        if fields_to_clear:
            body['fields_to_clear'] = fields_to_clear

        logger.info(f"Updating order {order_id} (version {order.get('version')}, "
                    f"clearing {len(fields_to_clear)} fields)")
        response = sq.unwrap(self.client.orders.update_order(order_id=order_id, body=body), 'Update order')
        updated = response.get('order') or {}
        logger.info(f"Order {order_id} updated to version {updated.get('version')}")
        return updated


def get_order_manager(config, square_client):
    """Factory function to get OrderManager instance"""
    return OrderManager(config, square_client)


def get_order_update_manager(config, square_client):
    """Factory function to get OrderUpdateManager instance"""
    return OrderUpdateManager(config, square_client)
