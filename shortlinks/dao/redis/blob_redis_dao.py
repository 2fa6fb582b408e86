"""Data Access Object (DAO) implementation for storing blobs in Redis

Each blob is a plain Redis string under a namespaced key
(`<prefix>:blobs:<name>`). Read-modify-write cycles use optimistic locking:
the key is WATCHed, the new value is computed client-side and written inside
MULTI/EXEC. redis-py retries the whole cycle whenever another client touched
the key in the meantime.

Classes:
    BlobRedisDAO:
        DAO for storing and retrieving blobs in a Redis datastore.

Example:
    >>> from shortlinks.dao.redis import BlobRedisDAO
    >>> dao = BlobRedisDAO(redis_host='localhost', prefix='shortlinks:dev')
    >>> dao.set('shortenedUrls', '[]').get('shortenedUrls')
    '[]'
"""

from collections.abc import Callable

from beartype import beartype

from shortlinks.dao.base import BlobBaseDAO
from shortlinks.dao.redis.mixins import RedisClientMixin
from shortlinks.dao.redis.helpers import handle_redis_connection_error


class BlobRedisDAO(RedisClientMixin, BlobBaseDAO):
    """Redis-based Data Access Object (DAO) for key-value blobs

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.

    Methods:
        get(key: str) -> str | None
        set(key: str, value: str) -> BlobRedisDAO
        delete(key: str) -> BlobRedisDAO
        update(key: str, func: Callable[[str | None], str]) -> str

    All methods raise DataStoreError on connectivity issues with Redis.
    """

    @handle_redis_connection_error
    @beartype
    def get(self, key: str) -> str | None:
        value = self.redis.get(self.keys.blob_key(key))
        if isinstance(value, bytes):
            value = value.decode('utf-8')
        return value

    @handle_redis_connection_error
    @beartype
    def set(self, key: str, value: str) -> 'BlobRedisDAO':
        self.redis.set(self.keys.blob_key(key), value)
        return self

    @handle_redis_connection_error
    @beartype
    def delete(self, key: str) -> 'BlobRedisDAO':
        self.redis.delete(self.keys.blob_key(key))
        return self

    @handle_redis_connection_error
    @beartype
    def update(self, key: str, func: Callable[[str | None], str]) -> str:
        """Atomically replace the blob under key with func(current blob)

        NOTE: The GET and SET are bracketed by WATCH and MULTI/EXEC so two
              concurrent writers can't both base their write on the same
              stale read:

              (writer 1): WATCH k -> GET k => [A]
                          ... interruption
              (writer 2): WATCH k -> GET k => [A] -> MULTI -> SET k [A, B] -> EXEC
              (writer 1): MULTI -> SET k [A, C] -> EXEC => WatchError, retry:
                          WATCH k -> GET k => [A, B] -> MULTI -> SET k [A, B, C] -> EXEC

        Args:
            key (str):
                Logical key of the blob.
            func (Callable[[str | None], str]):
                Transformation from the current blob to the new blob.

        Returns:
            str: The blob that was written.

        Raises:
            DataStoreError:
                If a Redis connection issue occurs during the transaction.
        """
        blob_key = self.keys.blob_key(key)

        def transact(pipe) -> str:
            current = pipe.get(blob_key)
            if isinstance(current, bytes):
                current = current.decode('utf-8')
            new_value = func(current)
            pipe.multi()
            pipe.set(blob_key, new_value)
            return new_value

        return self.redis.transaction(transact, blob_key, value_from_callable=True)
