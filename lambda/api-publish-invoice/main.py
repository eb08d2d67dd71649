import logging

import square_utils as sq
import request_utils as req
import response_utils as resp
import business_logic_utils as biz
import validation_utils as valid
import data_access_utils as data
from config_utils import AppConfig
from invoice_manager import get_invoice_manager

logger = logging.getLogger()
logger.setLevel(logging.INFO)


@biz.allow_methods('POST')
@biz.handle_business_logic_error
@valid.handle_validation_error
def lambda_handler(event, context):
    """
    Publish a draft invoice

    Body: {invoiceId, version?}. Without a version the invoice's current
    version is used.
    """
    body = req.get_json_body(event)

    invoice_id = body.get('invoiceId')
    if not invoice_id:
        raise biz.BusinessLogicError("Invoice ID is required")

    config = AppConfig.from_environment()
    manager = get_invoice_manager(config, sq.get_square_client(config))
    invoice = manager.publish_invoice(invoice_id, body.get('version'))

    return resp.success_response({
        'invoice': {
            'id': invoice.get('id'),
            'version': invoice.get('version'),
            'status': invoice.get('status'),
            'totalMoney': data.format_money(data.invoice_total_money(invoice))
        }
    })
