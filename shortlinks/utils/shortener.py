"""Short code and identifier generation

Functions:
    generate_shortcode(length=6) -> str:
        Sample a random Base62 short code.
    generate_id(prefix) -> str:
        Build an opaque record identifier, e.g. 'url_1760529600000_k3j9x0a1b'.

Example:
    >>> from shortlinks.utils import generate_shortcode
    >>> generate_shortcode()
    'Xb7Qa2'
"""

import secrets
import string
import time

from shortlinks.constants import ShortCode


ID_ALPHABET = string.digits + string.ascii_lowercase  # base36
ID_SUFFIX_LENGTH = 9


def generate_shortcode(length: int = ShortCode.GENERATED_LENGTH) -> str:
    """Generate a random short code

    Every character is sampled uniformly and independently from the Base62
    alphabet [A-Za-z0-9]. The result is NOT checked for uniqueness here; the
    store retries on collision.

    Args:
        length (int, optional):
            Number of characters. Defaults to 6.

    Returns:
        str: Random alphanumeric short code.
    """
    if not isinstance(length, int):
        raise TypeError(f'Length must be of type integer (given type: {type(length)}).')
    if length < 1:
        raise ValueError(f'Length must be a positive integer (given value: {length}).')

    return ''.join(secrets.choice(ShortCode.ALPHABET) for _ in range(length))


def generate_id(prefix: str) -> str:
    """Generate an opaque identifier '<prefix>_<epoch millis>_<9 base36 chars>'

    Example:
        >>> generate_id('click')
        'click_1760529600000_0k2m9x7qa'
    """
    millis = time.time_ns() // 1_000_000
    suffix = ''.join(secrets.choice(ID_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))
    return f'{prefix}_{millis}_{suffix}'
