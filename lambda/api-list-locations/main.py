import logging

import square_utils as sq
import response_utils as resp
import business_logic_utils as biz
import data_access_utils as data
from config_utils import AppConfig

logger = logging.getLogger()
logger.setLevel(logging.INFO)


@biz.allow_methods('GET')
@biz.handle_business_logic_error
def lambda_handler(event, context):
    """List the merchant's locations (used to find SQUARE_LOCATION_ID)"""
    config = AppConfig.from_environment()
    manager = data.get_data_access_manager(config, sq.get_square_client(config))

    locations = manager.list_locations()
    return resp.success_response(data.list_result(locations))
