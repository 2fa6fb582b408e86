from shortlinks.dao.base import BlobBaseDAO
from shortlinks.dao.memory import BlobMemoryDAO
from shortlinks.dao.redis import BlobRedisDAO


__all__ = [
    'BlobBaseDAO',
    'BlobMemoryDAO',
    'BlobRedisDAO',
]
