"""Abstract base class for key-value blob data access objects (DAOs).

The short link store persists its whole collection as one serialized blob
under a single key. This class establishes the contract every blob backend
(e.g., Redis, process memory) fulfils for the store.

Responsibilities:
    - Read, write and delete a blob by key.
    - Run read-modify-write cycles atomically with respect to other writers.
    - Standardize error handling (DataStoreError) across backends.

Example:
    Typical usage with a datastore-specific implementation:

        >>> from shortlinks.dao.redis import BlobRedisDAO

        >>> dao = BlobRedisDAO(prefix='shortlinks:dev')
        >>> dao.set('shortenedUrls', '[]')
        <BlobRedisDAO>
        >>> dao.get('shortenedUrls')
        '[]'
        >>> dao.update('shortenedUrls', lambda raw: '[1]')
        '[1]'
        >>> dao.delete('shortenedUrls')
        <BlobRedisDAO>
"""

from abc import ABC, abstractmethod
from collections.abc import Callable


class BlobBaseDAO(ABC):
    """Interface for key-value blob data access objects (DAOs).

    Methods:
        get(key: str) -> str | None:
            Return the blob stored under key, None if absent.

        set(key: str, value: str) -> BlobBaseDAO:
            Store value under key, replacing any previous blob.

        delete(key: str) -> BlobBaseDAO:
            Remove the blob stored under key. Missing keys are ignored.

        update(key: str, func: Callable[[str | None], str]) -> str:
            Atomically replace the blob under key with func(current blob).

    All methods raise DataStoreError on connection or I/O failures.

    Subclassing:
        Datastore-specific implementations (e.g., BlobRedisDAO or
        BlobMemoryDAO) must extend this class and implement all
        abstract methods.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Retrieve the blob stored under key.

        Args:
            key (str):
                Logical key of the blob (prefixing is the DAO's concern).

        Returns:
            str | None: The stored blob, or None if nothing is stored.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> 'BlobBaseDAO':
        """Store value under key.

        Returns:
            BlobBaseDAO: self (for method chaining)

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> 'BlobBaseDAO':
        """Remove the blob stored under key.

        Returns:
            BlobBaseDAO: self (for method chaining)

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def update(self, key: str, func: Callable[[str | None], str]) -> str:
        """Atomically read, transform and write back the blob under key.

        func receives the current blob (None if absent) and returns the new
        blob. It may be called more than once if another writer modifies the
        key concurrently, so only the result of its last call counts.
        Exceptions raised by func abort the update and propagate unchanged.

        Args:
            key (str):
                Logical key of the blob.
            func (Callable[[str | None], str]):
                Transformation from the current blob to the new blob.

        Returns:
            str: The blob that was written.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass
