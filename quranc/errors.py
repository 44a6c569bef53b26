"""
Exception hierarchy for the quran.com client and its cache layer.
"""

from typing import Optional


class QuranCError(Exception):
    """Base class for all quranc errors."""


class QuranAPIError(QuranCError):
    """Request to the quran.com API failed (transport, status, or decoding)."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: str = "", body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.body = body


class CacheError(QuranCError):
    """Base class for cache layer errors."""


class KeyEncodingError(CacheError):
    """Call arguments could not be canonically encoded into a cache key."""


class CacheMissError(CacheError):
    """No value is stored under the requested key."""


class ValueDecodeError(CacheError):
    """Stored bytes could not be decoded into the requested type."""


class BucketNotFoundError(CacheError):
    """Requested bucket (or nested bucket) does not exist."""


class TransactionError(CacheError):
    """Operation is not permitted in the current transaction."""


class CacheSetupError(CacheError):
    """Cache buckets could not be initialized."""
