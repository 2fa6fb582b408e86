import json
import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from shortlinks.store import ShortLinkStore
from shortlinks.constants import Validity, DEFAULT_STORAGE_KEY
from shortlinks.dao.redis import BlobRedisDAO
from shortlinks.dao.exceptions import ShortLinkAlreadyExistsError
from shortlinks.exceptions import ValidationError, ConfigurationError
from shortlinks.utils import load_config, app_prefix, base_url, guarantee_500_response
from shortlinks.lambdas.responses import response_201, response_400, response_500
from shortlinks.lambdas.shorten_url.constants import (
    INVALID_JSON_BODY,
    INVALID_REQUEST_FIELD,
    VALIDATION_FAILED,
    SHORT_LINK_CREATED,
)


logger = logging.getLogger(__name__)


def _field(body: dict[str, Any], snake_name: str, camel_name: str, default: Any = None) -> Any:
    """Read a request field by its snake_case or camelCase name"""
    if snake_name in body:
        return body[snake_name]
    return body.get(camel_name, default)


@guarantee_500_response
def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Handle incoming API Gateway requests to shorten URLs

    This Lambda handler follows this procedure to shorten URLs:
    - Step 1: Load the application's config
    - Step 2: Extract the request fields from the JSON body
    - Step 3: Create the short link (validation included)
    - Step 4: Respond to user with 201 created

    Request body:
        original_url (str): URL to shorten (also accepted as 'originalUrl')
        validity_minutes (int, optional): validity window, 30 by default (also 'validityMinutes')
        custom_short_code (str, optional): custom short code (also 'customShortCode')

    HTTP responses:
        201: Short link created
            message: success message
            link: the serialized short link
        400: Bad client request
            message: cause of bad request (invalid JSON, bad field types, failed validation)
            errors: list of {field, message} when validation failed
        500: Internal server error
            message: indicate the server experienced an internal error

    Args:
        event (dict[str, Any]):
            API Gateway event payload in Lambda Proxy format.
        context (Any):
            AWS Lambda context object containing runtime information.

    Returns:
        dict[str, Any]:
            JSON-serializable response following API Gateway Lambda Proxy output format.

    Example:
        >>> event = {'body': '{"original_url": "https://example.com", "custom_short_code": "example"}'}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        201
        >>> json.loads(response['body'])['link']['shortUrl']
        'http://localhost:3000/example'
    """
    # 1- Get application's config
    try:
        app_config = load_config('shorten_url')
    except (ConfigurationError, BotoCoreError, ClientError):
        logger.exception('Failed to load AppConfig for shorten URL function. Responding with 500.')
        return response_500()
    else:
        redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}

    # 2- Extract request fields from the JSON body
    try:
        request_body = json.loads(event.get('body') or '{}')
    except json.JSONDecodeError:
        logger.info('Invalid JSON body. Responding with 400.', extra={'event': INVALID_JSON_BODY})
        return response_400(message='invalid JSON body', error_code=INVALID_JSON_BODY)
    if not isinstance(request_body, dict):
        logger.info('JSON body is not an object. Responding with 400.', extra={'event': INVALID_JSON_BODY})
        return response_400(message='JSON body must be an object', error_code=INVALID_JSON_BODY)

    original_url = _field(request_body, 'original_url', 'originalUrl', '')
    validity_minutes = _field(request_body, 'validity_minutes', 'validityMinutes', Validity.DEFAULT_MINUTES)
    custom_short_code = _field(request_body, 'custom_short_code', 'customShortCode')

    # bool is an int subclass, but never a meaningful number of minutes
    if not isinstance(validity_minutes, int) or isinstance(validity_minutes, bool):
        return response_400(message="'validity_minutes' must be an integer", error_code=INVALID_REQUEST_FIELD)
    if not isinstance(original_url, str):
        return response_400(message="'original_url' must be a string", error_code=INVALID_REQUEST_FIELD)
    if custom_short_code is not None and not isinstance(custom_short_code, str):
        return response_400(message="'custom_short_code' must be a string", error_code=INVALID_REQUEST_FIELD)

    # 3- Create the short link
    store = ShortLinkStore(
        dao=BlobRedisDAO(**redis_config, prefix=app_prefix()),
        storage_key=app_config.get('storage_key', DEFAULT_STORAGE_KEY),
        base_url=base_url(event),
    )
    try:
        link = store.create(original_url, validity_minutes=validity_minutes, custom_short_code=custom_short_code)
    except ValidationError as e:
        logger.info('Short link validation failed. Responding with 400.', extra={'event': VALIDATION_FAILED})
        return response_400(
            message='validation failed',
            error_code=VALIDATION_FAILED,
            errors=[{'field': error.field, 'message': error.message} for error in e.errors],
        )
    except ShortLinkAlreadyExistsError:
        logger.exception('Failed to allocate an unused short code. Responding with 500.')
        return response_500()

    # 4- Return successful response to user
    logger.info(
        'Short link created. Responding with 201.',
        extra={'shortCode': link.short_code, 'event': SHORT_LINK_CREATED},
    )
    return response_201(
        {
            'message': f'Successfully shortened {link.original_url} to {link.short_url}',
            'link': link.to_document(),
        }
    )
