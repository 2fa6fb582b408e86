"""Unit tests for the ShortLinkStore

Test coverage includes:

1. Creation
   - Ensures created links resolve with identical URL, code and zero clicks.
   - Ensures generated codes are 6 Base62 characters and custom codes are used verbatim.
   - Ensures expiry is creation time plus the validity window.
   - Ensures created links are persisted in the documented JSON layout.

2. Validation
   - Ensures malformed custom codes, bad URLs and out-of-range validity are rejected.
   - Ensures duplicate custom codes are rejected and the first record is kept.
   - Ensures every violated rule is reported.

3. Generated short code collisions
   - Ensures colliding generated codes are re-drawn.
   - Ensures exhausting the retry budget raises ShortLinkAlreadyExistsError.

4. Lookup and lazy expiry
   - Ensures expired links don't resolve and get flagged inactive on first lookup.

5. Click recording
   - Ensures n clicks yield click_count n in call order.
   - Ensures clicks on unknown or expired codes are dropped.

6. Listing and statistics
   - Ensures list/list_active/list_expired/total_clicks filter as documented.

7. Clearing
   - Ensures clear_all() empties the collection.

8. Persistence failures
   - Ensures read failures and corrupted blobs are treated as an empty collection.
   - Ensures write failures are logged and swallowed.

9. Serialization round trip
"""

import json
import logging
import re
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from beartype.roar import BeartypeCallHintParamViolation
from freezegun import freeze_time

from shortlinks.store import ShortLinkStore, decode_collection, encode_collection
from shortlinks.dao import BlobBaseDAO, BlobMemoryDAO
from shortlinks.dao.exceptions import DataStoreError, ShortLinkAlreadyExistsError
from shortlinks.exceptions import ValidationError
from shortlinks.models import FieldError


# -------------------------------
# Fixtures
# -------------------------------


@pytest.fixture
def dao():
    return BlobMemoryDAO()


@pytest.fixture
def store(dao):
    return ShortLinkStore(dao=dao)


@pytest.fixture
def original_url():
    return 'https://example.com/blog/chuck-norris-is-awesome'


def persisted(dao, key='shortenedUrls'):
    return json.loads(dao.blobs[key])


# -------------------------------
# 1. Creation
# -------------------------------


def test_create_then_lookup(store, original_url):
    """Ensure a created link resolves with identical URL, short code and no clicks."""
    link = store.create(original_url, validity_minutes=30)

    found = store.lookup(link.short_code)

    assert found is not None
    assert found.original_url == original_url
    assert found.short_code == link.short_code
    assert found.click_count == 0
    assert found.clicks == []
    assert found == link


def test_create_generates_base62_short_code(store, original_url):
    link = store.create(original_url)

    assert re.fullmatch(r'[A-Za-z0-9]{6}', link.short_code)
    assert link.custom_short_code is None
    assert link.short_url == f'http://localhost:3000/{link.short_code}'


def test_create_with_custom_short_code(store, original_url):
    link = store.create(original_url, validity_minutes=30, custom_short_code='Promo2025')

    assert link.short_code == 'Promo2025'
    assert link.custom_short_code == 'Promo2025'
    assert store.lookup('Promo2025') == link


def test_create_does_not_strip_padded_custom_short_code(store, original_url):
    """Ensure padding around a custom code is rejected rather than trimmed away."""
    with pytest.raises(ValidationError) as exc_info:
        store.create(original_url, validity_minutes=30, custom_short_code='  Promo2025 ')

    assert exc_info.value.errors == [FieldError('customShortCode', 'Short code must be 3-20 alphanumeric characters')]
    assert store.list() == []
    assert store.lookup('Promo2025') is None


@pytest.mark.parametrize('custom_short_code', [None, '', '   '])
def test_create_with_blank_custom_short_code_generates_one(store, original_url, custom_short_code):
    link = store.create(original_url, custom_short_code=custom_short_code)

    assert len(link.short_code) == 6
    assert link.custom_short_code is None


@freeze_time('2025-10-15 12:00:00.123456')
def test_create_computes_expiry(store, original_url):
    """Ensure expires_at = created_at + validity, with millisecond precision."""
    link = store.create(original_url, validity_minutes=90)

    assert link.created_at.microsecond == 123000
    assert link.expires_at - link.created_at == timedelta(minutes=90)
    assert link.validity_minutes == 90
    assert link.is_active is True


def test_create_defaults_to_30_minutes(store, original_url):
    link = store.create(original_url)
    assert link.validity_minutes == 30


def test_create_uses_base_url(dao, original_url):
    store = ShortLinkStore(dao=dao, base_url='https://sho.rt/')
    link = store.create(original_url, custom_short_code='abc123')
    assert link.short_url == 'https://sho.rt/abc123'


def test_create_ids_are_unique(store, original_url):
    ids = {store.create(original_url).id for _ in range(20)}
    assert len(ids) == 20


@freeze_time('2025-10-15 12:00:00')
def test_create_persists_documented_layout(store, dao, original_url):
    store.create(original_url, validity_minutes=5, custom_short_code='abc123')

    (document,) = persisted(dao)
    assert set(document) == {
        'id',
        'originalUrl',
        'shortCode',
        'shortUrl',
        'customShortCode',
        'validityMinutes',
        'createdAt',
        'expiresAt',
        'isActive',
        'clickCount',
        'clicks',
    }
    assert document['createdAt'] == '2025-10-15T12:00:00.000Z'
    assert document['expiresAt'] == '2025-10-15T12:05:00.000Z'
    assert document['id'].startswith('url_')


def test_create_appends_in_insertion_order(store, original_url):
    codes = ['first', 'second', 'third']
    for code in codes:
        store.create(original_url, custom_short_code=code)

    assert [link.short_code for link in store.list()] == codes


def test_create_with_invalid_types(store):
    with pytest.raises(BeartypeCallHintParamViolation):
        store.create(12345)
    with pytest.raises(BeartypeCallHintParamViolation):
        store.create('https://example.com', validity_minutes='30')


# -------------------------------
# 2. Validation
# -------------------------------


@pytest.mark.parametrize(
    'custom_short_code',
    [
        'ab',
        'a' * 21,
        'abc-123',
        'abc 12',
        'abc_12',
        'äbc123',
        'abc123!',
        '١٢٣٤٥',
        ' abc',
        'abc\n',
        '\tPromo2025 ',
    ],
)
def test_create_rejects_malformed_custom_short_code(store, original_url, custom_short_code):
    """Ensure custom codes outside ^[A-Za-z0-9]{3,20}$ are rejected without storing anything."""
    store.create(original_url, custom_short_code='existing')
    before = len(store.list())

    with pytest.raises(ValidationError) as exc_info:
        store.create(original_url, custom_short_code=custom_short_code)

    assert exc_info.value.errors == [FieldError('customShortCode', 'Short code must be 3-20 alphanumeric characters')]
    assert len(store.list()) == before


@pytest.mark.parametrize('custom_short_code', ['abc', 'a' * 20, 'ABCxyz789'])
def test_create_accepts_boundary_custom_short_codes(store, original_url, custom_short_code):
    assert store.create(original_url, custom_short_code=custom_short_code).short_code == custom_short_code


def test_create_rejects_duplicate_custom_short_code(store, original_url):
    """Ensure the second request for the same custom code fails and only the first record remains."""
    first = store.create(original_url, custom_short_code='promo')

    with pytest.raises(ValidationError, match='This short code is already taken'):
        store.create('https://example.org/other', custom_short_code='promo')

    assert store.list() == [first]


def test_duplicate_check_is_case_sensitive(store, original_url):
    store.create(original_url, custom_short_code='promo')
    assert store.create(original_url, custom_short_code='PROMO').short_code == 'PROMO'


@freeze_time('2025-10-15 12:00:00')
def test_duplicate_check_includes_expired_links(store, original_url):
    store.create(original_url, validity_minutes=1, custom_short_code='promo')

    with freeze_time('2025-10-16 12:00:00'):
        assert store.lookup('promo') is None
        with pytest.raises(ValidationError, match='This short code is already taken'):
            store.create(original_url, custom_short_code='promo')


@pytest.mark.parametrize(
    'url, message',
    [
        ('', 'URL is required'),
        ('   ', 'URL is required'),
        ('example.com/page', 'Please enter a valid URL'),
        ('not a url', 'Please enter a valid URL'),
        ('https://', 'Please enter a valid URL'),
        ('http://example.com:99999/', 'Please enter a valid URL'),
    ],
)
def test_create_rejects_invalid_url(store, url, message):
    with pytest.raises(ValidationError) as exc_info:
        store.create(url)

    assert exc_info.value.errors == [FieldError('originalUrl', message)]
    assert store.list() == []


@pytest.mark.parametrize('validity_minutes', [0, -5, 43201])
def test_create_rejects_out_of_range_validity(store, original_url, validity_minutes):
    with pytest.raises(ValidationError) as exc_info:
        store.create(original_url, validity_minutes=validity_minutes)

    assert exc_info.value.errors == [FieldError('validityMinutes', 'Validity must be between 1 and 43200 minutes')]


@pytest.mark.parametrize('validity_minutes', [True, False])
def test_create_rejects_boolean_validity(store, dao, original_url, validity_minutes):
    """Ensure booleans never reach the persisted validityMinutes number."""
    with pytest.raises(ValidationError) as exc_info:
        store.create(original_url, validity_minutes=validity_minutes)

    assert exc_info.value.errors == [FieldError('validityMinutes', 'Validity must be between 1 and 43200 minutes')]
    assert store.validate(original_url, validity_minutes) == exc_info.value.errors
    assert 'shortenedUrls' not in dao.blobs


@pytest.mark.parametrize('validity_minutes', [1, 43200])
def test_create_accepts_boundary_validity(store, original_url, validity_minutes):
    assert store.create(original_url, validity_minutes=validity_minutes).validity_minutes == validity_minutes


def test_validation_reports_every_violation(store):
    with pytest.raises(ValidationError) as exc_info:
        store.create('', validity_minutes=0, custom_short_code='no!')

    assert [error.field for error in exc_info.value.errors] == ['originalUrl', 'validityMinutes', 'customShortCode']
    assert str(exc_info.value) == (
        'Validation failed: URL is required, Validity must be between 1 and 43200 minutes, '
        'Short code must be 3-20 alphanumeric characters'
    )


def test_validate_without_creating(store, original_url):
    store.create(original_url, custom_short_code='taken')

    assert store.validate(original_url, 30) == []
    assert store.validate(original_url, 30, 'taken') == [FieldError('customShortCode', 'This short code is already taken')]
    assert len(store.list()) == 1


# -------------------------------
# 3. Generated short code collisions
# -------------------------------


def test_generated_short_code_is_redrawn_on_collision(store, original_url, monkeypatch):
    store.create(original_url, custom_short_code='taken1')
    codes = iter(['taken1', 'taken1', 'fresh1'])
    monkeypatch.setattr('shortlinks.store.generate_shortcode', lambda: next(codes))

    link = store.create(original_url)

    assert link.short_code == 'fresh1'


def test_generated_short_code_retry_budget(store, original_url, monkeypatch):
    store.create(original_url, custom_short_code='taken1')
    monkeypatch.setattr('shortlinks.store.generate_shortcode', lambda: 'taken1')

    with pytest.raises(ShortLinkAlreadyExistsError):
        store.create(original_url)

    assert len(store.list()) == 1


# -------------------------------
# 4. Lookup and lazy expiry
# -------------------------------


def test_lookup_unknown_short_code(store):
    assert store.lookup('nope') is None


def test_lookup_is_case_sensitive(store, original_url):
    store.create(original_url, custom_short_code='Promo')
    assert store.lookup('promo') is None


def test_lookup_expires_after_validity_window(store, dao, original_url):
    """A 1-minute link resolves until the clock passes one minute, then gets flagged inactive."""
    with freeze_time('2025-10-15 12:00:00') as frozen:
        link = store.create(original_url, validity_minutes=1)
        assert store.lookup(link.short_code) is not None

        frozen.tick(timedelta(seconds=60))
        assert store.lookup(link.short_code) is not None

        frozen.tick(timedelta(milliseconds=1))
        assert persisted(dao)[0]['isActive'] is True  # not flagged until read
        assert store.lookup(link.short_code) is None

        (stored,) = store.list()
        assert stored.is_active is False
        assert persisted(dao)[0]['isActive'] is False
        assert stored.expires_at == link.expires_at


def test_lookup_of_already_flagged_link_does_not_write(original_url):
    dao = MagicMock(wraps=BlobMemoryDAO())
    store = ShortLinkStore(dao=dao)

    with freeze_time('2025-10-15 12:00:00') as frozen:
        link = store.create(original_url, validity_minutes=1)
        frozen.tick(timedelta(minutes=2))
        store.lookup(link.short_code)
        store.lookup(link.short_code)

    assert dao.update.call_count == 2  # create + first expired lookup


def test_lookup_with_invalid_type(store):
    with pytest.raises(BeartypeCallHintParamViolation):
        store.lookup(123)


# -------------------------------
# 5. Click recording
# -------------------------------


def test_record_click_n_times(store, original_url):
    link = store.create(original_url, custom_short_code='clicky')
    sources = [f'https://referrer-{i}.example' for i in range(5)]

    for source in sources:
        store.record_click('clicky', source=source)

    found = store.lookup(link.short_code)
    assert found.click_count == 5
    assert len(found.clicks) == 5
    assert [click.source for click in found.clicks] == sources
    assert len({click.id for click in found.clicks}) == 5


@freeze_time('2025-10-15 12:00:00')
def test_record_click_metadata_and_defaults(store, original_url):
    store.create(original_url, custom_short_code='clicky')

    store.record_click('clicky')
    store.record_click('clicky', source='https://t.co', location='BG', user_agent='curl/8.0', ip_address='203.0.113.7')

    first, second = store.lookup('clicky').clicks
    assert (first.source, first.location, first.user_agent, first.ip_address) == ('direct', 'Unknown', 'Unknown', 'Unknown')
    assert (second.source, second.location, second.user_agent, second.ip_address) == ('https://t.co', 'BG', 'curl/8.0', '203.0.113.7')
    assert second.timestamp.isoformat() == '2025-10-15T12:00:00+00:00'
    assert second.id.startswith('click_')


def test_record_click_on_unknown_short_code_is_dropped(store, dao, original_url):
    store.create(original_url, custom_short_code='known')
    before = dict(dao.blobs)

    assert store.record_click('unknown') is None

    assert dao.blobs == before


def test_record_click_on_expired_short_code_is_dropped(store, original_url):
    with freeze_time('2025-10-15 12:00:00') as frozen:
        store.create(original_url, validity_minutes=1, custom_short_code='old')
        frozen.tick(timedelta(minutes=5))

        store.record_click('old')

        (link,) = store.list()
        assert link.click_count == 0
        assert link.clicks == []


def test_record_click_ignores_is_active_flag_but_checks_expiry(store, dao, original_url):
    """Ensure the advisory is_active flag alone doesn't block clicks."""
    store.create(original_url, custom_short_code='flagged')
    documents = persisted(dao)
    documents[0]['isActive'] = False
    dao.set('shortenedUrls', json.dumps(documents))

    store.record_click('flagged')

    assert store.list()[0].click_count == 1


# -------------------------------
# 6. Listing and statistics
# -------------------------------


def test_list_active_and_expired(store, original_url):
    with freeze_time('2025-10-15 12:00:00') as frozen:
        short = store.create(original_url, validity_minutes=1, custom_short_code='short')
        long = store.create(original_url, validity_minutes=60, custom_short_code='long')

        assert store.list_active() == [short, long]
        assert store.list_expired() == []

        frozen.tick(timedelta(minutes=2))

        # Expired but never looked up: still flagged active, yet listed as expired
        assert [link.short_code for link in store.list_active()] == ['long']
        assert [link.short_code for link in store.list_expired()] == ['short']
        assert store.list_expired()[0].is_active is True
        assert [link.short_code for link in store.list()] == ['short', 'long']


def test_total_clicks(store, original_url):
    store.create(original_url, custom_short_code='one')
    store.create(original_url, custom_short_code='two')
    for code in ['one', 'two', 'two', 'nope']:
        store.record_click(code)

    assert store.total_clicks() == 3


def test_list_on_empty_store(store):
    assert store.list() == []
    assert store.list_active() == []
    assert store.list_expired() == []
    assert store.total_clicks() == 0


# -------------------------------
# 7. Clearing
# -------------------------------


def test_clear_all(store, dao, original_url):
    for code in ['one', 'two', 'three']:
        store.create(original_url, custom_short_code=code)
    store.record_click('one')

    store.clear_all()

    assert store.list() == []
    assert 'shortenedUrls' not in dao.blobs


def test_clear_all_on_empty_store(store):
    store.clear_all()
    assert store.list() == []


def test_custom_storage_key(dao, original_url):
    store = ShortLinkStore(dao=dao, storage_key='links')
    store.create(original_url, custom_short_code='abc123')

    assert set(dao.blobs) == {'links'}


# -------------------------------
# 8. Persistence failures
# -------------------------------


@pytest.fixture
def failing_dao():
    dao = MagicMock(spec=BlobBaseDAO)
    dao.get.side_effect = DataStoreError("Can't connect to Redis at localhost:6379/0.")
    dao.update.side_effect = DataStoreError("Can't connect to Redis at localhost:6379/0.")
    dao.delete.side_effect = DataStoreError("Can't connect to Redis at localhost:6379/0.")
    return dao


def test_read_failure_is_treated_as_empty_collection(failing_dao, caplog):
    store = ShortLinkStore(dao=failing_dao)

    with caplog.at_level(logging.ERROR, logger='shortlinks.store'):
        assert store.list() == []
        assert store.lookup('abc123') is None

    assert 'Failed to retrieve short links from storage.' in caplog.messages


def test_create_survives_storage_failure(failing_dao, original_url, caplog):
    """Ensure create() still returns the link when it can't be persisted."""
    store = ShortLinkStore(dao=failing_dao)

    with caplog.at_level(logging.ERROR, logger='shortlinks.store'):
        link = store.create(original_url, custom_short_code='lost')

    assert link.short_code == 'lost'
    assert 'Failed to persist short links to storage.' in caplog.messages


def test_write_failure_after_read_is_logged(original_url, caplog):
    dao = BlobMemoryDAO()

    def failing_update(key, func):
        func(dao.get(key))
        raise DataStoreError('write failed')

    dao.update = failing_update
    store = ShortLinkStore(dao=dao)

    with caplog.at_level(logging.ERROR, logger='shortlinks.store'):
        link = store.create(original_url, custom_short_code='lost')

    assert link.short_code == 'lost'
    assert store.list() == []
    assert 'Failed to persist short links to storage.' in caplog.messages


def test_validation_error_still_raised_when_storage_fails(failing_dao):
    store = ShortLinkStore(dao=failing_dao)
    with pytest.raises(ValidationError):
        store.create('not a url')


def test_clear_all_failure_is_logged(failing_dao, caplog):
    store = ShortLinkStore(dao=failing_dao)

    with caplog.at_level(logging.ERROR, logger='shortlinks.store'):
        store.clear_all()

    assert 'Failed to clear short links from storage.' in caplog.messages


@pytest.mark.parametrize('blob', ['not json', '{"id": "url_1"}', '[{"id": "url_1"}]', '[1, 2]'])
def test_corrupted_collection_is_treated_as_empty(blob, original_url):
    dao = BlobMemoryDAO({'shortenedUrls': blob})
    store = ShortLinkStore(dao=dao)

    assert store.list() == []

    store.create(original_url, custom_short_code='fresh')
    assert [link.short_code for link in store.list()] == ['fresh']


# -------------------------------
# 9. Serialization round trip
# -------------------------------


def test_collection_round_trip(store, original_url):
    """Ensure encoding and decoding the collection reproduces identical field values."""
    with freeze_time('2025-10-15 12:00:00.987654') as frozen:
        store.create(original_url, validity_minutes=1, custom_short_code='custom')
        store.create('https://example.org/a?b=c#d', validity_minutes=43200)
        store.record_click('custom', source='https://t.co', location='BG', user_agent='curl/8.0', ip_address='203.0.113.7')
        frozen.tick(timedelta(minutes=3))
        store.lookup('custom')

    links = store.list()
    decoded = decode_collection(encode_collection(links))

    assert decoded == links
    assert decoded[0].is_active is False
    assert decoded[0].created_at.microsecond == 987000
    assert decoded[0].clicks[0].timestamp == links[0].clicks[0].timestamp


def test_decode_empty_blob():
    assert decode_collection(None) == []
    assert decode_collection('') == []
    assert decode_collection('[]') == []
