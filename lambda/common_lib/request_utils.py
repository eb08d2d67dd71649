import json

from exceptions import ValidationError


def get_http_method(event):
    """HTTP method of the request, upper-cased ('' when absent)"""
    method = event.get('httpMethod')
    if not method:
        # HTTP API (payload v2) events carry the method in the request context
        method = (event.get('requestContext') or {}).get('http', {}).get('method')
    return (method or '').upper()

def get_query_param(event, key, default=None):
    return (event.get('queryStringParameters') or {}).get(key, default)

def get_path_param(event, key, default=None):
    return (event.get('pathParameters') or {}).get(key, default)

def get_json_body(event):
    """
    Parse the request body as a JSON object

    Raises:
        ValidationError: If the body is missing, not JSON, or not an object
    """
    body = event.get('body')
    if not body:
        raise ValidationError("Request body is required")
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
