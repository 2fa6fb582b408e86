from shortlinks.store import ShortLinkStore
from shortlinks.exceptions import ValidationError
from shortlinks.models import ShortLinkModel, ClickRecordModel, FieldError


__all__ = [
    'ShortLinkStore',
    'ValidationError',
    'ShortLinkModel',
    'ClickRecordModel',
    'FieldError',
]
