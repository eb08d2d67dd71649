import logging

import square_utils as sq
import request_utils as req
import response_utils as resp
import business_logic_utils as biz
import data_access_utils as data
from config_utils import AppConfig
from order_manager import get_order_manager

logger = logging.getLogger()
logger.setLevel(logging.INFO)


@biz.allow_methods('GET')
@biz.handle_business_logic_error
def lambda_handler(event, context):
    """Check whether an order exists (GET ?orderId=)"""
    order_id = req.get_query_param(event, 'orderId')
    if not order_id:
        raise biz.BusinessLogicError("Order ID is required")

    config = AppConfig.from_environment()
    manager = get_order_manager(config, sq.get_square_client(config))
    order = manager.verify_order(order_id)

    if order is None:
        return resp.error_response(
            f"Order {order_id} not found",
            404,
            orderExists=False,
            orderId=order_id
        )

    return resp.success_response({
        'orderExists': True,
        'orderId': order.get('id'),
        'orderStatus': order.get('state'),
        'orderTotal': data.format_money(order.get('total_money')),
        'orderLineItems': [data.format_line_item(item) for item in order.get('line_items') or []],
        'orderCreatedAt': order.get('created_at'),
        'orderUpdatedAt': order.get('updated_at')
    })
