import json
import logging
from decimal import Decimal

logger = logging.getLogger(__name__)

response_headers = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "OPTIONS,GET,POST,PUT"
}

def convert_decimal(obj):
    """Convert Decimal objects to float for JSON serialization"""
    if isinstance(obj, list):
        return [convert_decimal(i) for i in obj]
    elif isinstance(obj, dict):
        return {k: convert_decimal(v) for k, v in obj.items()}
    elif isinstance(obj, Decimal):
        return float(obj)
    return obj

def safe_json_dumps(data):
    """Safely serialize data to JSON with proper error handling"""
    try:
        # Amounts from the platform are plain ints and serialize exactly;
        # Decimals become floats and anything else falls back to str
        converted_data = convert_decimal(data)
        return json.dumps(converted_data, default=str)
    except (TypeError, ValueError) as e:
        logger.error(f"JSON serialization error: {str(e)} (data type: {type(data).__name__})")
        return json.dumps({"success": False, "error": "Serialization failed", "raw_data": str(data)})

def preflight_response():
    """Empty 200 response for CORS preflight requests"""
    return {
        "statusCode": 200,
        "headers": response_headers,
        "body": ""
    }

def error_response(message, status_code=400, **extra):
    logger.info(f"Error response: {message} (status: {status_code})")

    response_body = {
        "success": False,
        "error": message,
        **extra
    }

    return {
        "statusCode": status_code,
        "headers": response_headers,
        "body": safe_json_dumps(response_body)
    }

def success_response(data, success=True, status_code=200):
    response_body = {
        "success": success,
        **data
    }

    response = {
        "statusCode": status_code,
        "headers": response_headers,
        "body": safe_json_dumps(response_body)
    }

    logger.info(f"Success response (status: {status_code}, keys: {sorted(data.keys())})")
    return response

def method_not_allowed_response(method, allowed_methods):
    return error_response(
        f"Method {method or 'UNKNOWN'} not allowed. Use {', '.join(allowed_methods)}",
        405
    )
