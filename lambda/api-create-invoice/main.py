import logging

import request_utils as req
import response_utils as resp
import business_logic_utils as biz
import validation_utils as valid
from catering_manager import get_catering_request_manager

logger = logging.getLogger()
logger.setLevel(logging.INFO)


@biz.allow_methods('POST')
@biz.handle_business_logic_error
@valid.handle_validation_error
def lambda_handler(event, context):
    """
    Catering Form Submission API

    Turns a catering order form into a Square customer, order and draft
    invoice, then notifies the operations mailbox. An identical resubmission
    inside the dedup window returns the first submission's result.
    """
    payload = req.get_json_body(event)

    contact_info = payload.get('contactInfo') or {}
    logger.info(f"Catering request received: {payload.get('guestCount')} guests, "
                f"package {(payload.get('package') or {}).get('name')}, "
                f"event date {contact_info.get('eventDate') or 'TBD'}")

    manager = get_catering_request_manager()
    result = manager.process(payload)

    logger.info(f"Catering request complete: order {result.get('orderId')}, invoice {result.get('invoiceId')}, "
                f"duplicate {result.get('duplicate')}")
    return resp.success_response(result)
