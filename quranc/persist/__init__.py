"""
Persistence and caching layer.

Provides:
- SQLite-backed bucket store with nested buckets and transactions
- Canonical cache keys for API calls
- Value codec for cached responses
- CachingClient, a read-through cache in front of any QuranAPI
"""

from .sqlite_store import Bucket, BucketStore, Transaction
from .keys import chapter_key, language_key, verse_key, verse_tafsir_key, verses_key
from .codec import decode_value, encode_value
from .caching import BUCKETS, CacheStats, CachingClient, bootstrap_buckets

__all__ = [
    "Bucket",
    "BucketStore",
    "Transaction",
    "chapter_key",
    "language_key",
    "verse_key",
    "verse_tafsir_key",
    "verses_key",
    "decode_value",
    "encode_value",
    "BUCKETS",
    "CacheStats",
    "CachingClient",
    "bootstrap_buckets",
]
