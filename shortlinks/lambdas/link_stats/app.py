import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from shortlinks.store import ShortLinkStore
from shortlinks.constants import DEFAULT_STORAGE_KEY
from shortlinks.dao.redis import BlobRedisDAO
from shortlinks.exceptions import ConfigurationError
from shortlinks.utils import load_config, app_prefix, base_url, guarantee_500_response
from shortlinks.lambdas.responses import response_200, response_400, response_500
from shortlinks.lambdas.link_stats.constants import INVALID_STATUS_FILTER, STATUS_FILTERS


logger = logging.getLogger(__name__)


@guarantee_500_response
def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Handle incoming API Gateway requests for short link statistics

    Query string parameters:
        status (str, optional): one of 'all' (default), 'active', 'expired'

    HTTP responses:
        200: Statistics
            links: serialized short links matching the status filter
            count: number of returned links
            totalClicks: clicks recorded across all stored links
        400: Bad client request
            message: unknown status filter
        500: Internal server error

    Example:
        >>> event = {'queryStringParameters': {'status': 'active'}}
        >>> response = lambda_handler(event, None)
        >>> json.loads(response['body'])['count']
        3
    """
    # 1- Get application's config
    try:
        app_config = load_config('link_stats')
    except (ConfigurationError, BotoCoreError, ClientError):
        logger.exception('Failed to load AppConfig for link stats function. Responding with 500.')
        return response_500()
    else:
        redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}

    # 2- Validate the status filter
    status = ((event.get('queryStringParameters') or {}).get('status') or 'all').lower()
    if status not in STATUS_FILTERS:
        logger.info('Unknown status filter. Responding with 400.', extra={'status': status, 'event': INVALID_STATUS_FILTER})
        return response_400(
            message=f"'status' must be one of {', '.join(STATUS_FILTERS)}",
            error_code=INVALID_STATUS_FILTER,
        )

    store = ShortLinkStore(
        dao=BlobRedisDAO(**redis_config, prefix=app_prefix()),
        storage_key=app_config.get('storage_key', DEFAULT_STORAGE_KEY),
        base_url=base_url(event),
    )

    # 3- Collect the statistics
    match status:
        case 'active':
            links = store.list_active()
        case 'expired':
            links = store.list_expired()
        case _:
            links = store.list()

    logger.debug('Collected short link statistics.', extra={'status': status, 'count': len(links)})
    return response_200(
        {
            'links': [link.to_document() for link in links],
            'count': len(links),
            'totalClicks': store.total_clicks(),
        }
    )
