"""Shared Redis client setup for Redis-backed DAOs

A DAO mixing in RedisClientMixin gets a ready `redis` client, a namespaced
`keys` schema and a connectivity check that runs once at construction, so a
misconfigured lambda fails before touching any short link.

Example:
    >>> class BlobRedisDAO(RedisClientMixin, BlobBaseDAO):
    ...     pass
    ...
    >>> dao = BlobRedisDAO(redis_host='localhost', prefix='shortlinks:prod')
    >>> dao.keys.blob_key('shortenedUrls')
    'shortlinks:prod:blobs:shortenedUrls'
"""

import redis

from shortlinks.dao.redis.redis_key_schema import RedisKeySchema
from shortlinks.dao.exceptions import DataStoreError


class RedisClientMixin:
    """Redis client, key schema and healthcheck for Redis-backed DAOs

    Connection parameters are named `redis_<option>` so a lambda can forward
    the 'redis' section of its AppConfig document as keyword arguments.

    Attributes:
        redis (redis.Redis):
            Client used by the DAO methods.
        keys (RedisKeySchema):
            Key schema namespaced by `prefix`.
    """

    def __init__(
        self,
        redis_host: str = 'localhost',
        redis_port: int | str = 6379,
        redis_db: int | str = 0,
        redis_decode_responses: bool = True,
        redis_username: str | None = None,
        redis_password: str | None = None,
        redis_client: redis.Redis | None = None,
        prefix: str | None = None,
    ):
        """Connect to Redis or adopt an existing client

        Args:
            redis_host, redis_port, redis_db, redis_decode_responses, redis_username, redis_password:
                Used to build a client when `redis_client` is None. Port and
                database index may be given as strings.
            redis_client (redis.Redis | None):
                Pre-initialized client; the connection parameters are ignored.
            prefix (str | None):
                Key namespace, typically '<app name>:<app env>'.

        Raises:
            DataStoreError:
                If Redis doesn't answer the initial PING.
        """
        if redis_client is None:
            redis_client = redis.Redis(
                host=redis_host,
                port=int(redis_port),
                db=int(redis_db),
                decode_responses=redis_decode_responses,
                username=redis_username,
                password=redis_password,
            )

        self.redis = redis_client
        self.keys = RedisKeySchema(prefix=prefix)

        self._healthcheck()

    def _address(self) -> str:
        info = self.redis.connection_pool.connection_kwargs
        return f'{info.get("host")}:{info.get("port")}/{info.get("db")}'

    def _healthcheck(self, raise_error: bool = True) -> bool:
        """PING Redis

        Returns:
            bool: True if Redis answered. False if it didn't and raise_error is False.

        Raises:
            DataStoreError:
                If Redis didn't answer and raise_error is True.
        """
        try:
            self.redis.ping()
        except redis.exceptions.ConnectionError as e:
            if not raise_error:
                return False
            raise DataStoreError(f"Can't connect to Redis at {self._address()}. Check the provided configuration parameters.") from e
        return True
