from shortlinks.dao.redis.redis_key_schema import RedisKeySchema
from shortlinks.dao.redis.mixins import RedisClientMixin
from shortlinks.dao.redis.blob_redis_dao import BlobRedisDAO


__all__ = [
    'RedisKeySchema',
    'RedisClientMixin',
    'BlobRedisDAO',
]
