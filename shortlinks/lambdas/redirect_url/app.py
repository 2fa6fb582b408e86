import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from shortlinks.store import ShortLinkStore
from shortlinks.types import LambdaEvent, LambdaContext, LambdaResponse
from shortlinks.constants import DEFAULT_STORAGE_KEY
from shortlinks.dao.redis import BlobRedisDAO
from shortlinks.exceptions import ConfigurationError
from shortlinks.utils import load_config, app_prefix, base_url, get_short_url, guarantee_500_response
from shortlinks.lambdas.responses import response_302, response_400, response_404, response_500
from shortlinks.lambdas.redirect_url.constants import (
    MISSING_SHORTCODE,
    SHORT_LINK_NOT_FOUND,
    REDIRECT_SUCCESS,
)


logger = logging.getLogger(__name__)


def click_metadata(event: dict[str, Any]) -> dict[str, str | None]:
    """Extract visitor metadata for a click record from an API Gateway event

    Returns:
        dict: keyword arguments for ShortLinkStore.record_click()
              (source, location, user_agent, ip_address); missing values are None.
    """
    headers = {k.lower(): v for k, v in (event.get('headers') or {}).items()}
    identity = (event.get('requestContext') or {}).get('identity') or {}
    return {
        'source': headers.get('referer'),
        'location': headers.get('cloudfront-viewer-country'),
        'user_agent': headers.get('user-agent') or identity.get('userAgent'),
        'ip_address': identity.get('sourceIp'),
    }


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle incoming API Gateway requests to redirect URLs

    This Lambda handler follows this procedure to redirect URLs:
    - Step 1: Load the application's config
    - Step 2: Extract shortcode from request path
    - Step 3: Resolve the short link (expired links don't resolve)
    - Step 4: Record the click
    - Step 5: Redirect client to the original URL

    HTTP responses:
        302: Successful redirect
            headers:
                Location: original URL
        400: Bad client request
            message: missing shortcode in path parameters
        404: Not found
            message: short link doesn't exist or has expired
        500: Internal server error
            message: server experienced an internal error

    Args:
        event (dict):
            API Gateway event payload containing the shortcode path parameter.
        context (LambdaContext):
            AWS Lambda runtime context object (not used directly).

    Returns:
        dict:
            API Gateway-compatible response including statusCode, headers, and body.

    Example:
        >>> event = {'pathParameters': {'shortcode': 'Gh71TC'}}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        302
        >>> response['headers']['Location']
        'https://example.com/my-page'
    """
    # 1- Get application's config
    try:
        app_config = load_config('redirect_url')
    except (ConfigurationError, BotoCoreError, ClientError):
        logger.exception('Failed to load AppConfig for redirect URL function. Responding with 500.')
        return response_500()
    else:
        logger.debug('Assuming Redis as the backend database for short links')
        redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}

    # 2- Extract shortcode from request's path
    shortcode = (event.get('pathParameters') or {}).get('shortcode')
    if shortcode is None:
        logger.info(
            'Missing "shortcode" in path. Responding with 400.',
            extra={'event': MISSING_SHORTCODE},
        )
        return response_400(message="missing 'shortcode' in path", error_code=MISSING_SHORTCODE)
    logger.debug('Client requested short URL %s.', get_short_url(shortcode, event))

    store = ShortLinkStore(
        dao=BlobRedisDAO(**redis_config, prefix=app_prefix()),
        storage_key=app_config.get('storage_key', DEFAULT_STORAGE_KEY),
        base_url=base_url(event),
    )

    # 3- Resolve the short link
    link = store.lookup(shortcode)
    if link is None:
        logger.info(
            'Short link not found or expired. Responding with 404.',
            extra={'shortcode': shortcode, 'event': SHORT_LINK_NOT_FOUND},
        )
        return response_404(message=f"short url {get_short_url(shortcode, event)} doesn't exist", error_code=SHORT_LINK_NOT_FOUND)

    # 4- Record the click
    store.record_click(shortcode, **click_metadata(event))

    # 5- Redirect client to the original URL
    logger.info(
        'Redirecting client to original URL. Responding with 302.',
        extra={'shortcode': shortcode, 'event': REDIRECT_SUCCESS},
    )
    return response_302(location=link.original_url)
