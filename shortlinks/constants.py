import string
from enum import StrEnum


class Validity:
    """Short link validity window in minutes."""

    MIN_MINUTES = 1
    MAX_MINUTES = 43_200  # 30 days * 24 hours * 60 minutes
    DEFAULT_MINUTES = 30


class ShortCode:
    """Short code generation and validation parameters."""

    ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
    GENERATED_LENGTH = 6
    PATTERN = r'[A-Za-z0-9]{3,20}'
    MAX_GENERATION_ATTEMPTS = 10


class ClickDefaults:
    """Fallback values for click metadata the caller didn't provide."""

    SOURCE = 'direct'
    LOCATION = 'Unknown'
    USER_AGENT = 'Unknown'
    IP_ADDRESS = 'Unknown'


# Logical key of the persisted short link collection
DEFAULT_STORAGE_KEY = 'shortenedUrls'

# Public base URL when neither the request nor the environment provide one
DEFAULT_BASE_URL = 'http://localhost:3000'

# Maximum number of log entries kept by the in-memory log buffer
DEFAULT_LOG_BUFFER_SIZE = 1000


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        PROJECT_ROOT = 'PROJECT_ROOT'
        AWS_SAM_LOCAL = 'AWS_SAM_LOCAL'
        LOG_LEVEL = 'LOG_LEVEL'
        BASE_URL = 'SHORTLINKS_BASE_URL'

    class AppConfig(StrEnum):
        APP_ID = 'APPCONFIG_APP_ID'
        ENV_ID = 'APPCONFIG_ENV_ID'
        PROFILE_ID = 'APPCONFIG_PROFILE_ID'
        AGENT_URL = 'APPCONFIG_AGENT_URL'
        PROFILE_NAME = 'APPCONFIG_PROFILE_NAME'


# Error codes
UNKNOWN_INTERNAL_SERVER_ERROR = 'UNKNOWN_INTERNAL_SERVER_ERROR'
