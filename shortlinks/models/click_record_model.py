from dataclasses import dataclass
from datetime import datetime

from shortlinks.types import ClickRecordDocument
from shortlinks.utils.helpers import format_timestamp, parse_timestamp


@dataclass(frozen=True)
class ClickRecordModel:
    """Represent a single recorded visit to a short code.

    All metadata fields are free-form and never validated.

    Attributes:
        id (str):
            Unique click identifier, e.g. 'click_1760529600000_k3j9x0a1b'.
        timestamp (datetime):
            UTC moment the click was recorded.
        source (str):
            Referrer of the visit ('direct' when there was none).
        location (str):
            Coarse location of the visitor.
        user_agent (str):
            User agent string of the visitor.
        ip_address (str):
            Origin address of the visitor.
    """

    id: str
    timestamp: datetime
    source: str
    location: str
    user_agent: str
    ip_address: str

    def to_document(self) -> ClickRecordDocument:
        return {
            'id': self.id,
            'timestamp': format_timestamp(self.timestamp),
            'source': self.source,
            'location': self.location,
            'userAgent': self.user_agent,
            'ipAddress': self.ip_address,
        }

    @classmethod
    def from_document(cls, document: ClickRecordDocument) -> 'ClickRecordModel':
        return cls(
            id=document['id'],
            timestamp=parse_timestamp(document['timestamp']),
            source=document['source'],
            location=document['location'],
            user_agent=document['userAgent'],
            ip_address=document['ipAddress'],
        )
