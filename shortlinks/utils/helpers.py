"""Helper utilities shared by the store and the AWS lambda functions.

Functions:
    base_url() -> str
        Extract correct public base URL from API Gateway event
    get_short_url() -> str
        Get string representation of short URL for a given shortcode
    utc_now() -> datetime
        Current UTC time truncated to millisecond precision
    format_timestamp() -> str
        Serialize a datetime as ISO-8601 with millisecond precision
    parse_timestamp() -> datetime
        Parse an ISO-8601 string back into an aware datetime
    is_absolute_url() -> bool
        Check whether a string parses as an absolute URL
    require_environment(*names: str) -> Callable
        Decorator: Ensure required environment variables are present
    guarantee_500_response(handler) -> Callable
        Decorator: Turn unexpected lambda handler errors into HTTP 500 responses

Example:
    Typical usage inside a Lambda handler:

        >>> from shortlinks.utils.helpers import base_url
        >>> event = {
        ...     "requestContext": {
        ...         "domainName": "abc123.execute-api.us-east-1.amazonaws.com",
        ...         "stage": "Prod"
        ...     }
        ... }
        >>> base_url(event)
        'https://abc123.execute-api.us-east-1.amazonaws.com/Prod'

        >>> base_url({})
        'http://localhost:3000'
"""

import os
import json
import logging
import functools
import urllib.parse
from datetime import datetime, UTC
from typing import Any
from collections.abc import Callable

from shortlinks.utils.runtime import running_locally
from shortlinks.exceptions import MissingEnvironmentVariableError
from shortlinks.constants import ENV, DEFAULT_BASE_URL, UNKNOWN_INTERNAL_SERVER_ERROR


logger = logging.getLogger(__name__)


def base_url(event: dict[str, Any]) -> str:
    """Extract public base URL from API Gateway event

    Works seamlessly with both custom and default AWS API Gateway domains.
    If a custom domain is configured, the stage name is omitted.
    If using the default AWS execute-api domain, the stage name is included.
    Without a domain, SHORTLINKS_BASE_URL is used, then 'http://localhost:3000'.

    Args:
        event (dict): API Gateway event object passed to Lambda handler

    Returns:
        str: Base URL, e.g.:
             - "https://sho.rt"
             - "https://abc123.execute-api.us-east-1.amazonaws.com/Prod"
    """
    request_context = event.get('requestContext', {})
    domain = request_context.get('domainName', '')
    stage = request_context.get('stage', '')

    if domain and 'execute-api' not in domain:
        # Custom domain: skip stage
        return f'https://{domain}'
    elif domain:
        return f'https://{domain}/{stage}'
    else:
        # Fallback: local invocation (SAM CLI, tests, etc.)
        return os.environ.get(ENV.App.BASE_URL) or DEFAULT_BASE_URL


def get_short_url(shortcode: str, event: dict[str, Any]) -> str:
    """Get string representation of shortened URL

    Args:
        shortcode (str): shortcode
        event (dict): API Gateway event object passed to Lambda handler

    Returns:
        str: short url string representation
    """
    return f'{base_url(event).rstrip("/")}/{shortcode}'


def utc_now() -> datetime:
    """Return the current UTC time truncated to milliseconds

    Persisted timestamps only keep millisecond precision, so every timestamp
    the application creates is truncated up front.

    Example:
        >>> utc_now()
        datetime.datetime(2025, 10, 15, 12, 0, 0, 123000, tzinfo=datetime.timezone.utc)
    """
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def format_timestamp(moment: datetime) -> str:
    """Serialize a datetime as '2025-10-15T12:00:00.123Z'

    Naive datetimes are assumed to be in UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    # fmt: off
    return moment.astimezone(UTC) \
                 .isoformat(timespec='milliseconds') \
                 .replace('+00:00', 'Z')
    # fmt: on


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime

    Raises:
        ValueError: If the value is not valid ISO-8601.
    """
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def is_absolute_url(url: str) -> bool:
    """Check whether url has both a scheme and a network location

    Only host-based URLs count: schemes without an authority such as
    'mailto:a@b.c' or 'urn:isbn:123' are rejected, since a short link
    must redirect a browser to a page.

    Example:
        >>> is_absolute_url('https://example.com/page')
        True
        >>> is_absolute_url('example.com/page')
        False
        >>> is_absolute_url('mailto:a@b.c')
        False
    """
    try:
        components = urllib.parse.urlparse(url.strip())
        # Accessing port validates it (raises ValueError when out of range)
        _ = components.port
    except ValueError:
        return False
    return bool(components.scheme) and bool(components.netloc) and ' ' not in url.strip()


def require_environment(*names: str) -> Callable:
    """Decorator ensuring required environment variables are present.

    Args:
        *names (str):
            Names of required environment variables.

    Raises:
        MissingEnvironmentVariableError:
            If any required environment variable is missing or empty.

    Example:
        >>> @require_environment('APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID')
        ... def my_function():
        ...     pass
        >>> my_function()
        MissingEnvironmentVariableError: Missing required environment variables: 'APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID'
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            missing = [name for name in names if not os.environ.get(name)]
            if missing:
                missing_list = ', '.join(f"'{name}'" for name in missing)
                raise MissingEnvironmentVariableError(f'Missing required environment variables: {missing_list}')
            return func(*args, **kwargs)

        return wrapper

    return decorator


def guarantee_500_response[F: Callable[..., dict]](handler: F) -> F:
    """Decorator: respond with HTTP 500 when a lambda handler raises unexpectedly

    When running locally the original exception is re-raised to ease debugging.

    Example:
        >>> @guarantee_500_response
        ... def lambda_handler(event, context):
        ...     raise RuntimeError('boom')
        >>> lambda_handler({}, None)['statusCode']
        500
    """

    @functools.wraps(handler)
    def wrapper(event, context, *args, **kwargs):
        try:
            return handler(event, context, *args, **kwargs)
        except Exception:
            if running_locally():
                raise
            logger.exception('Unhandled error in lambda handler. Responding with 500.', extra={'event': UNKNOWN_INTERNAL_SERVER_ERROR})
            return {
                'statusCode': 500,
                'body': json.dumps(
                    {
                        'message': 'Internal Server Error',
                        'error_code': UNKNOWN_INTERNAL_SERVER_ERROR,
                    }
                ),
            }

    return wrapper
