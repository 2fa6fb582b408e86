"""Application-specific exceptions.

Classes:
    ShortLinksError:
        Base class for all application errors.

    ValidationError:
        Raised when a short link request violates one or more input rules.

    ConfigurationError:
        Base class for configuration errors.

    MissingEnvironmentVariableError:
        Raised when a required environment variable is missing.

    BadConfigurationError:
        Raised when the application is configured with invalid parameters.

Example:
    >>> from shortlinks.models import FieldError
    >>> raise ValidationError([FieldError('validityMinutes', 'Validity must be between 1 and 43200 minutes')])
    Traceback (most recent call last):
        ...
    shortlinks.exceptions.ValidationError: Validation failed: Validity must be between 1 and 43200 minutes
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shortlinks.models import FieldError


class ShortLinksError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:shortlinks_error'


class ValidationError(ShortLinksError):
    """Raised when a short link request fails validation.

    Attributes:
        errors (list[FieldError]):
            One entry per violated rule, in evaluation order.
    """

    error_code = 'app:validation_error'

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        super().__init__(f'Validation failed: {", ".join(e.message for e in self.errors)}')


class ConfigurationError(ShortLinksError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class MissingEnvironmentVariableError(ConfigurationError, KeyError):
    """Raised when a required environment variable is missing."""

    error_code = 'config:missing_environment_variable_error'

    def __str__(self) -> str:
        # KeyError quotes its argument by default
        return str(self.args[0]) if self.args else ''


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'
