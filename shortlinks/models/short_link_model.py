from dataclasses import dataclass, field
from datetime import datetime

from shortlinks.models.click_record_model import ClickRecordModel
from shortlinks.types import ShortLinkDocument
from shortlinks.utils.helpers import format_timestamp, parse_timestamp


@dataclass
class ShortLinkModel:
    """Represent a shortened URL and its click history.

    Unlike ClickRecordModel, a short link is mutable: clicks get appended to it
    and `is_active` is flipped to False the first time a read finds it expired.
    `expires_at` is authoritative; `is_active` is only a cached verdict.

    Attributes:
        id (str):
            Unique link identifier, e.g. 'url_1760529600000_q8w7e6r5t'.
        original_url (str):
            The absolute URL the short code redirects to.
        short_code (str):
            The unique short identifier of the link.
        short_url (str):
            Public short URL, i.e. '<base url>/<short code>'.
        validity_minutes (int):
            Requested validity window in minutes.
        created_at (datetime):
            UTC creation moment.
        expires_at (datetime):
            UTC moment after which the link no longer resolves.
        custom_short_code (str | None):
            The custom short code, if one was requested.
        is_active (bool):
            False once a read has observed the link as expired.
        click_count (int):
            Number of recorded clicks; always equals len(clicks).
        clicks (list[ClickRecordModel]):
            Recorded clicks in the order they happened.

    Example:
        >>> from datetime import datetime, timedelta, UTC
        >>> now = datetime(2025, 10, 15, tzinfo=UTC)
        >>> link = ShortLinkModel(
        ...     id='url_1760486400000_abcdefghi',
        ...     original_url='https://example.com/article/123',
        ...     short_code='abc123',
        ...     short_url='http://localhost:3000/abc123',
        ...     validity_minutes=30,
        ...     created_at=now,
        ...     expires_at=now + timedelta(minutes=30),
        ... )
        >>> link.is_expired(now)
        False
        >>> link.to_document()['expiresAt']
        '2025-10-15T00:30:00.000Z'
    """

    id: str
    original_url: str
    short_code: str
    short_url: str
    validity_minutes: int
    created_at: datetime
    expires_at: datetime
    custom_short_code: str | None = None
    is_active: bool = True
    click_count: int = 0
    clicks: list[ClickRecordModel] = field(default_factory=list)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def add_click(self, click: ClickRecordModel) -> None:
        self.clicks.append(click)
        self.click_count += 1

    def to_document(self) -> ShortLinkDocument:
        """Serialize into the persisted JSON layout (camelCase keys, ISO-8601 dates)"""
        document = {
            'id': self.id,
            'originalUrl': self.original_url,
            'shortCode': self.short_code,
            'shortUrl': self.short_url,
            'validityMinutes': self.validity_minutes,
            'createdAt': format_timestamp(self.created_at),
            'expiresAt': format_timestamp(self.expires_at),
            'isActive': self.is_active,
            'clickCount': self.click_count,
            'clicks': [click.to_document() for click in self.clicks],
        }
        if self.custom_short_code is not None:
            document['customShortCode'] = self.custom_short_code
        return document

    @classmethod
    def from_document(cls, document: ShortLinkDocument) -> 'ShortLinkModel':
        """Parse a persisted JSON document back into a model

        Raises:
            KeyError: If a required field is missing.
            ValueError: If a date field is not valid ISO-8601.
        """
        return cls(
            id=document['id'],
            original_url=document['originalUrl'],
            short_code=document['shortCode'],
            short_url=document['shortUrl'],
            validity_minutes=document['validityMinutes'],
            created_at=parse_timestamp(document['createdAt']),
            expires_at=parse_timestamp(document['expiresAt']),
            custom_short_code=document.get('customShortCode'),
            is_active=document['isActive'],
            click_count=document['clickCount'],
            clicks=[ClickRecordModel.from_document(click) for click in document.get('clicks', [])],
        )
