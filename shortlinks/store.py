"""Short link lifecycle management

The store owns creation, lookup, click recording and lazy expiry of short
links. The whole collection is persisted as one JSON array under a single
key of a BlobBaseDAO, and every mutation rewrites that array through
`BlobBaseDAO.update()`.

Expiry is evaluated lazily: a link is expired once `now > expires_at`, and
its `is_active` flag is only flipped (and persisted) the first time a lookup
observes it. There is no background sweep.

Classes:
    ShortLinkStore:
        Create, resolve and track short links on top of a blob DAO.

Example:
    >>> from shortlinks.dao import BlobMemoryDAO
    >>> store = ShortLinkStore(dao=BlobMemoryDAO())
    >>> link = store.create('https://example.com/article/123', validity_minutes=30, custom_short_code='article')
    >>> link.short_url
    'http://localhost:3000/article'
    >>> store.record_click('article', source='https://news.ycombinator.com')
    >>> store.lookup('article').click_count
    1
"""

import re
import json
import logging
from datetime import timedelta
from collections.abc import Callable

from beartype import beartype

from shortlinks.constants import Validity, ShortCode, ClickDefaults, DEFAULT_STORAGE_KEY, DEFAULT_BASE_URL
from shortlinks.dao.base import BlobBaseDAO
from shortlinks.dao.exceptions import DataStoreError, ShortLinkAlreadyExistsError
from shortlinks.exceptions import ValidationError
from shortlinks.models import ShortLinkModel, ClickRecordModel, FieldError
from shortlinks.utils.helpers import utc_now, is_absolute_url
from shortlinks.utils.shortener import generate_shortcode, generate_id


logger = logging.getLogger(__name__)

SHORT_CODE_RE = re.compile(ShortCode.PATTERN)


class CorruptedCollectionError(ValueError):
    """Raised when the persisted blob isn't a valid short link collection."""

    pass


def decode_collection(raw: str | None) -> list[ShortLinkModel]:
    """Parse the persisted JSON array into models

    Raises:
        CorruptedCollectionError: If the blob isn't a JSON array of short link documents.
    """
    if not raw:
        return []
    try:
        documents = json.loads(raw)
        if not isinstance(documents, list):
            raise TypeError(f'Expected a JSON array (given type: {type(documents).__name__}).')
        return [ShortLinkModel.from_document(document) for document in documents]
    except (ValueError, TypeError, KeyError) as e:
        raise CorruptedCollectionError(f'Persisted short link collection is malformed: {e}') from e


def encode_collection(links: list[ShortLinkModel]) -> str:
    return json.dumps([link.to_document() for link in links])


class ShortLinkStore:
    """Create, resolve and track short links

    The store holds no state besides its collaborators, so one instance can be
    shared by everything that needs it within a process.

    Attributes:
        dao (BlobBaseDAO):
            Persistence backend holding the serialized collection.
        storage_key (str):
            Key of the collection within the DAO. Defaults to 'shortenedUrls'.
        base_url (str):
            Public base URL used to build each link's short_url.

    Methods:
        validate(original_url, validity_minutes, custom_short_code=None) -> list[FieldError]
        create(original_url, validity_minutes=30, custom_short_code=None) -> ShortLinkModel
        lookup(short_code) -> ShortLinkModel | None
        record_click(short_code, source=None, location=None, user_agent=None, ip_address=None) -> None
        list() -> list[ShortLinkModel]
        list_active() -> list[ShortLinkModel]
        list_expired() -> list[ShortLinkModel]
        total_clicks() -> int
        clear_all() -> None
    """

    def __init__(self, dao: BlobBaseDAO, storage_key: str = DEFAULT_STORAGE_KEY, base_url: str = DEFAULT_BASE_URL):
        self.dao = dao
        self.storage_key = storage_key
        self.base_url = base_url.rstrip('/')
        logger.debug('ShortLinkStore initialized.', extra={'storageKey': storage_key, 'baseUrl': self.base_url})

    # -------------------------------
    # Persistence boundary
    # -------------------------------

    def _load(self) -> list[ShortLinkModel]:
        """Read the collection, treating any read failure as an empty collection"""
        try:
            links = decode_collection(self.dao.get(self.storage_key))
        except (DataStoreError, CorruptedCollectionError):
            logger.exception('Failed to retrieve short links from storage.', extra={'storageKey': self.storage_key})
            return []

        logger.debug('Retrieved short links from storage.', extra={'count': len(links)})
        return links

    def _mutate[T](self, func: Callable[[list[ShortLinkModel]], T]) -> T:
        """Apply func to the persisted collection and write it back

        func receives the freshly loaded collection and mutates it in place.
        A corrupted collection is replaced by an empty one. Storage failures are
        logged and swallowed: func's result is still returned, but the change
        is lost.
        """
        result = None
        applied = False

        def apply(raw: str | None) -> str:
            nonlocal result, applied
            try:
                links = decode_collection(raw)
            except CorruptedCollectionError:
                logger.exception('Discarding malformed short link collection.', extra={'storageKey': self.storage_key})
                links = []
            result = func(links)
            applied = True
            return encode_collection(links)

        try:
            self.dao.update(self.storage_key, apply)
        except DataStoreError:
            logger.exception('Failed to persist short links to storage.', extra={'storageKey': self.storage_key})
            if not applied:
                # The read already failed: apply func to what a read yields now
                result = func(self._load())
        return result

    # -------------------------------
    # Validation
    # -------------------------------

    @beartype
    def validate(self, original_url: str, validity_minutes: int, custom_short_code: str | None = None) -> list[FieldError]:
        """Check a short link request against every input rule

        Args:
            original_url (str):
                URL to shorten; must be absolute.
            validity_minutes (int):
                Requested validity window, within [1, 43200].
            custom_short_code (str | None):
                Optional custom short code. Blank strings count as not given; anything else is checked unstripped.

        Returns:
            list[FieldError]: One entry per violated rule (empty if valid).
        """
        return self._validate(original_url, validity_minutes, custom_short_code, self._load())

    def _validate(
        self,
        original_url: str,
        validity_minutes: int,
        custom_short_code: str | None,
        links: list[ShortLinkModel],
    ) -> list[FieldError]:
        errors = []

        if not original_url.strip():
            errors.append(FieldError('originalUrl', 'URL is required'))
        elif not is_absolute_url(original_url):
            errors.append(FieldError('originalUrl', 'Please enter a valid URL'))

        # bool is an int subclass, but never a number of minutes
        if isinstance(validity_minutes, bool) or not Validity.MIN_MINUTES <= validity_minutes <= Validity.MAX_MINUTES:
            errors.append(
                FieldError('validityMinutes', f'Validity must be between {Validity.MIN_MINUTES} and {Validity.MAX_MINUTES} minutes')
            )

        # Whitespace only decides whether a code was given; the code itself is checked as-is
        if custom_short_code and custom_short_code.strip():
            if not SHORT_CODE_RE.fullmatch(custom_short_code):
                errors.append(FieldError('customShortCode', 'Short code must be 3-20 alphanumeric characters'))
            elif any(link.short_code == custom_short_code for link in links):
                errors.append(FieldError('customShortCode', 'This short code is already taken'))

        logger.debug('Short link validation completed.', extra={'errors': len(errors)})
        return errors

    # -------------------------------
    # Operations
    # -------------------------------

    @beartype
    def create(
        self,
        original_url: str,
        validity_minutes: int = Validity.DEFAULT_MINUTES,
        custom_short_code: str | None = None,
    ) -> ShortLinkModel:
        """Create and persist a new short link

        Validation runs against the collection inside the same read-modify-write
        cycle that appends the link, so a custom code can't be taken twice.
        Generated short codes are re-drawn while they collide with a stored one.

        Args:
            original_url (str):
                URL to shorten; must be absolute.
            validity_minutes (int):
                Validity window in minutes, within [1, 43200]. Defaults to 30.
            custom_short_code (str | None):
                Optional custom short code (3-20 alphanumeric characters, no padding).
                Blank strings count as not given.

        Returns:
            ShortLinkModel: The created short link.

        Raises:
            ValidationError:
                If any input rule is violated. Nothing is stored.
            ShortLinkAlreadyExistsError:
                If no unused short code could be generated.
        """
        logger.info('Shortening URL.', extra={'originalUrl': original_url})
        if not (custom_short_code and custom_short_code.strip()):
            custom_short_code = None

        def append(links: list[ShortLinkModel]) -> ShortLinkModel:
            errors = self._validate(original_url, validity_minutes, custom_short_code, links)
            if errors:
                raise ValidationError(errors)

            short_code = custom_short_code or self._unused_shortcode(links)
            now = utc_now()
            link = ShortLinkModel(
                id=generate_id('url'),
                original_url=original_url,
                short_code=short_code,
                short_url=f'{self.base_url}/{short_code}',
                custom_short_code=custom_short_code,
                validity_minutes=validity_minutes,
                created_at=now,
                expires_at=now + timedelta(minutes=validity_minutes),
            )
            links.append(link)
            return link

        try:
            link = self._mutate(append)
        except ValidationError as e:
            logger.warning('Short link validation failed.', extra={'errors': [error.message for error in e.errors]})
            raise

        logger.info('URL shortened successfully.', extra={'id': link.id, 'shortCode': link.short_code})
        return link

    def _unused_shortcode(self, links: list[ShortLinkModel]) -> str:
        taken = {link.short_code for link in links}
        for _ in range(ShortCode.MAX_GENERATION_ATTEMPTS):
            short_code = generate_shortcode()
            if short_code not in taken:
                logger.debug('Generated short code.', extra={'shortCode': short_code})
                return short_code
            logger.debug('Generated short code collides with a stored one.', extra={'shortCode': short_code})

        raise ShortLinkAlreadyExistsError(f'Failed to generate an unused short code in {ShortCode.MAX_GENERATION_ATTEMPTS} attempts.')

    @beartype
    def lookup(self, short_code: str) -> ShortLinkModel | None:
        """Resolve a short code

        An expired link is never returned. The first lookup that finds it
        expired flips its `is_active` flag to False and persists the change.

        Returns:
            ShortLinkModel | None: The link, or None if unknown or expired.
        """
        link = next((link for link in self._load() if link.short_code == short_code), None)
        if link is None:
            logger.warning('Short link not found.', extra={'shortCode': short_code})
            return None

        now = utc_now()
        if link.is_expired(now):
            logger.warning('Short link has expired.', extra={'shortCode': short_code, 'expiresAt': link.expires_at.isoformat()})
            if link.is_active:
                self._mutate(lambda links: self._deactivate(links, short_code))
            return None

        logger.info('Short link found.', extra={'shortCode': short_code, 'id': link.id})
        return link

    @staticmethod
    def _deactivate(links: list[ShortLinkModel], short_code: str) -> None:
        for link in links:
            if link.short_code == short_code:
                link.is_active = False
                return

    @beartype
    def record_click(
        self,
        short_code: str,
        source: str | None = None,
        location: str | None = None,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> None:
        """Append a click to a short link

        Clicks on unknown or expired short codes are dropped. Missing metadata
        falls back to 'direct' (source) or 'Unknown'.
        """
        logger.info('Recording click.', extra={'shortCode': short_code})

        def append(links: list[ShortLinkModel]) -> int | None:
            link = next((link for link in links if link.short_code == short_code), None)
            if link is None or link.is_expired(utc_now()):
                return None

            link.add_click(
                ClickRecordModel(
                    id=generate_id('click'),
                    timestamp=utc_now(),
                    source=source or ClickDefaults.SOURCE,
                    location=location or ClickDefaults.LOCATION,
                    user_agent=user_agent or ClickDefaults.USER_AGENT,
                    ip_address=ip_address or ClickDefaults.IP_ADDRESS,
                )
            )
            return link.click_count

        # Avoid rewriting the collection for clicks that will be dropped anyway
        link = next((link for link in self._load() if link.short_code == short_code), None)
        if link is None or link.is_expired(utc_now()):
            logger.warning('Dropping click for unknown or expired short link.', extra={'shortCode': short_code})
            return

        click_count = self._mutate(append)
        if click_count is None:
            logger.warning('Dropping click for unknown or expired short link.', extra={'shortCode': short_code})
        else:
            logger.info('Click recorded successfully.', extra={'shortCode': short_code, 'clickCount': click_count})

    def list_active(self) -> list[ShortLinkModel]:
        now = utc_now()
        return [link for link in self._load() if link.is_active and not link.is_expired(now)]

    def list_expired(self) -> list[ShortLinkModel]:
        now = utc_now()
        return [link for link in self._load() if not link.is_active or link.is_expired(now)]

    def total_clicks(self) -> int:
        return sum(link.click_count for link in self._load())

    def clear_all(self) -> None:
        """Remove the whole persisted collection"""
        try:
            self.dao.delete(self.storage_key)
        except DataStoreError:
            logger.exception('Failed to clear short links from storage.', extra={'storageKey': self.storage_key})
            return
        logger.info('All short links cleared from storage.', extra={'storageKey': self.storage_key})

    # NOTE: defined last so the name doesn't shadow the builtin in the
    #       annotations of the methods above
    def list(self) -> list[ShortLinkModel]:
        """Return every stored short link in insertion order"""
        return self._load()
