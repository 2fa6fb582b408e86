"""In-process blob DAO

Keeps blobs in a plain dictionary guarded by a lock. Useful for hosts that
embed the store without a Redis server (CLIs, notebooks, tests).
"""

import threading
from collections.abc import Callable

from beartype import beartype

from shortlinks.dao.base import BlobBaseDAO


class BlobMemoryDAO(BlobBaseDAO):
    """Dictionary-backed blob DAO

    Args:
        blobs (dict[str, str] | None):
            Initial contents. The dictionary is used as-is, not copied.
    """

    def __init__(self, blobs: dict[str, str] | None = None):
        self.blobs = blobs if blobs is not None else {}
        self._lock = threading.Lock()

    @beartype
    def get(self, key: str) -> str | None:
        with self._lock:
            return self.blobs.get(key)

    @beartype
    def set(self, key: str, value: str) -> 'BlobMemoryDAO':
        with self._lock:
            self.blobs[key] = value
        return self

    @beartype
    def delete(self, key: str) -> 'BlobMemoryDAO':
        with self._lock:
            self.blobs.pop(key, None)
        return self

    @beartype
    def update(self, key: str, func: Callable[[str | None], str]) -> str:
        with self._lock:
            new_value = func(self.blobs.get(key))
            self.blobs[key] = new_value
        return new_value
