from shortlinks.utils.config import app_env, app_name, project_root, app_prefix, load_config
from shortlinks.utils.helpers import (
    base_url,
    get_short_url,
    utc_now,
    format_timestamp,
    parse_timestamp,
    is_absolute_url,
    require_environment,
    guarantee_500_response,
)
from shortlinks.utils.shortener import generate_shortcode, generate_id
from shortlinks.utils.logging import initialize_logging, JsonFormatter, LogBufferHandler


__all__ = [
    'generate_shortcode',
    'generate_id',
    'app_env',
    'app_name',
    'app_prefix',
    'project_root',
    'load_config',
    'base_url',
    'get_short_url',
    'utc_now',
    'format_timestamp',
    'parse_timestamp',
    'is_absolute_url',
    'require_environment',
    'guarantee_500_response',
    'initialize_logging',
    'JsonFormatter',
    'LogBufferHandler',
]
