import logging

import square_utils as sq
import request_utils as req
import response_utils as resp
import business_logic_utils as biz
import validation_utils as valid
import data_access_utils as data
from config_utils import AppConfig
from order_manager import get_order_update_manager

logger = logging.getLogger()
logger.setLevel(logging.INFO)


@biz.allow_methods('PUT')
@biz.handle_business_logic_error
@valid.handle_validation_error
def lambda_handler(event, context):
    """
    Update an order's line items and/or note

    Body: {orderId, lineItems?, note?, version?}. Line item amounts are in
    dollars; supplied line items replace the existing ones. An empty note
    clears the existing note.
    """
    body = req.get_json_body(event)

    order_id = body.get('orderId') or req.get_path_param(event, 'orderId')
    if not order_id:
        raise biz.BusinessLogicError("Order ID is required")

    config = AppConfig.from_environment()
    manager = get_order_update_manager(config, sq.get_square_client(config))
    order = manager.update_order(
        order_id,
        line_items=body.get('lineItems'),
        note=body.get('note'),
        version=body.get('version')
    )

    return resp.success_response({
        'order': {
            'id': order.get('id'),
            'version': order.get('version'),
            'totalMoney': data.format_money(order.get('total_money')),
            'lineItems': [data.format_line_item(item) for item in order.get('line_items') or []],
            'note': order.get('note')
        }
    })
