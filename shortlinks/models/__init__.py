from shortlinks.models.click_record_model import ClickRecordModel
from shortlinks.models.field_error import FieldError
from shortlinks.models.short_link_model import ShortLinkModel


__all__ = [
    'ClickRecordModel',
    'FieldError',
    'ShortLinkModel',
]
