"""
Caching decorator for QuranAPI implementations.

CachingClient wraps any QuranAPI and persists its responses in a
BucketStore. Every call is a read-through lookup:

    key → read tx lookup → hit: return cached value
                         → miss: call wrapped API → write tx (best effort) → return

Cache writes are fire-and-forget: the outcome of the write transaction is
discarded (logged only), so a decorated call fails exactly when the wrapped
call fails. Search is never cached.
"""

import logging
import sqlite3
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Type, TypeVar

from ..api import QuranAPI
from ..errors import CacheError, CacheSetupError, KeyEncodingError
from ..models import (
    Chapter,
    ChapterInfo,
    Juz,
    Language,
    Recitation,
    ReqOpt,
    SearchRequest,
    SearchResponse,
    Tafsir,
    Translation,
    Verse,
    VerseTafsir,
    VerseTafsirReqOpt,
    VersesReqOpt,
)
from . import keys
from .codec import decode_value, encode_value
from .sqlite_store import BucketPath, BucketStore, Transaction

T = TypeVar("T")

logger = logging.getLogger(__name__)

BUCKET_CHAPTERS = "chapters"
BUCKET_CHAPTER = "chapter"
BUCKET_CHAPTER_INFO = "chapterinfo"
BUCKET_JUZZAH = "juzzah"
BUCKET_LANGUAGES = "languages"
BUCKET_RECITATIONS = "recitations"
BUCKET_TAFSIRAAT = "tafsiraat"
BUCKET_TRANSLATIONS = "translations"
BUCKET_VERSE = "verse"
BUCKET_VERSE_TAFSIR = "verse_tafsir"
BUCKET_VERSES = "verses"

# top-level bucket → nested buckets
BUCKETS: Dict[str, Tuple[str, ...]] = {
    BUCKET_CHAPTERS: (BUCKET_CHAPTER, BUCKET_CHAPTER_INFO),
    BUCKET_JUZZAH: (),
    BUCKET_LANGUAGES: (),
    BUCKET_RECITATIONS: (),
    BUCKET_TAFSIRAAT: (),
    BUCKET_TRANSLATIONS: (),
    BUCKET_VERSES: (BUCKET_VERSE, BUCKET_VERSE_TAFSIR),
}


def bootstrap_buckets(store: BucketStore) -> None:
    """
    Create every bucket the cache uses. Safe to run on an initialized store.

    Raises:
        CacheSetupError: If any bucket cannot be created
    """
    for bucket, nested_buckets in BUCKETS.items():
        try:
            with store.update() as tx:
                b = tx.create_bucket_if_not_exists(bucket)
                for nested in nested_buckets:
                    b.create_bucket_if_not_exists(nested)
        except (CacheError, sqlite3.Error, ValueError) as e:
            raise CacheSetupError(f"create bucket {bucket!r}: {e}") from e

    logger.info(f"Cache buckets ready in {store.db_path}")


@dataclass
class CacheStats:
    """Hit/miss counters, for diagnostics only."""
    hits: int = 0
    misses: int = 0
    bypassed: int = 0
    write_errors: int = 0

    def to_dict(self) -> dict:
        total = self.hits + self.misses
        return {
            "hits": self.hits,
            "misses": self.misses,
            "bypassed": self.bypassed,
            "write_errors": self.write_errors,
            "hit_rate": self.hits / total if total > 0 else 0.0,
        }


class CachingClient(QuranAPI):
    """
    QuranAPI decorator backed by a BucketStore.

    The store is owned by the caller and may be shared between several
    CachingClient instances.

    Usage:
        >>> store = BucketStore(Path("data/cache/quran.db"))
        >>> api = CachingClient(Client(), store)
        >>> api.chapter(1)  # fetched from quran.com
        >>> api.chapter(1)  # served from the store
    """

    def __init__(self, client: QuranAPI, store: BucketStore):
        """
        Args:
            client: Wrapped API implementation
            store: Store to persist responses in

        Raises:
            CacheSetupError: If the cache buckets cannot be created
        """
        bootstrap_buckets(store)
        self.next = client
        self.store = store
        self.stats = CacheStats()
        self._stats_lock = threading.Lock()

    def _count(self, name: str) -> None:
        with self._stats_lock:
            setattr(self.stats, name, getattr(self.stats, name) + 1)

    @staticmethod
    def _bucket(tx: Transaction, path: BucketPath):
        b = tx.bucket(path[0])
        for name in path[1:]:
            b = b.bucket(name)
        return b

    def _lookup(self, path: BucketPath, key: bytes, type_: Type[T]) -> Tuple[bool, Optional[T]]:
        """Return (True, value) on a hit, (False, None) on any kind of miss."""
        try:
            with self.store.view() as tx:
                return True, decode_value(self._bucket(tx, path).get(key), type_)
        except (CacheError, sqlite3.Error) as e:
            logger.debug(f"Cache miss in {'/'.join(path)} for {key!r}: {e}")
            return False, None

    def _persist(self, path: BucketPath, key: bytes, value, type_) -> None:
        """
        Store a fetched value. The result is intentionally discarded: a
        failed write only shows up in the log and in stats.
        """
        try:
            with self.store.update() as tx:
                self._bucket(tx, path).put(key, encode_value(value, type_))
        except Exception as e:
            self._count("write_errors")
            logger.warning(f"Cache write to {'/'.join(path)} failed: {e}")

    def _read_through(
        self,
        path: BucketPath,
        make_key: Callable[[], bytes],
        type_: Type[T],
        fetch: Callable[[], T],
    ) -> T:
        try:
            key = make_key()
        except KeyEncodingError as e:
            logger.debug(f"Not caching call in {'/'.join(path)}: {e}")
            self._count("bypassed")
            return fetch()

        hit, cached = self._lookup(path, key, type_)
        if hit:
            self._count("hits")
            return cached

        self._count("misses")
        value = fetch()
        self._persist(path, key, value, type_)
        return value

    def recitations(self, opts: Optional[ReqOpt] = None) -> List[Recitation]:
        return self._read_through(
            (BUCKET_RECITATIONS,),
            lambda: keys.language_key(opts),
            List[Recitation],
            lambda: self.next.recitations(opts),
        )

    def translations(self, opts: Optional[ReqOpt] = None) -> List[Translation]:
        return self._read_through(
            (BUCKET_TRANSLATIONS,),
            lambda: keys.language_key(opts),
            List[Translation],
            lambda: self.next.translations(opts),
        )

    def languages(self, opts: Optional[ReqOpt] = None) -> List[Language]:
        return self._read_through(
            (BUCKET_LANGUAGES,),
            lambda: keys.language_key(opts),
            List[Language],
            lambda: self.next.languages(opts),
        )

    def tafsiraat(self, opts: Optional[ReqOpt] = None) -> List[Tafsir]:
        return self._read_through(
            (BUCKET_TAFSIRAAT,),
            lambda: keys.language_key(opts),
            List[Tafsir],
            lambda: self.next.tafsiraat(opts),
        )

    def chapters(self, opts: Optional[ReqOpt] = None) -> List[Chapter]:
        return self._read_through(
            (BUCKET_CHAPTERS,),
            lambda: keys.language_key(opts),
            List[Chapter],
            lambda: self.next.chapters(opts),
        )

    def chapter(self, chapter_id: int, opts: Optional[ReqOpt] = None) -> Chapter:
        return self._read_through(
            (BUCKET_CHAPTERS, BUCKET_CHAPTER),
            lambda: keys.chapter_key(chapter_id, opts),
            Chapter,
            lambda: self.next.chapter(chapter_id, opts),
        )

    def chapter_info(self, chapter_id: int, opts: Optional[ReqOpt] = None) -> ChapterInfo:
        return self._read_through(
            (BUCKET_CHAPTERS, BUCKET_CHAPTER_INFO),
            lambda: keys.chapter_key(chapter_id, opts),
            ChapterInfo,
            lambda: self.next.chapter_info(chapter_id, opts),
        )

    def verses(self, chapter_id: int, opts: Optional[VersesReqOpt] = None) -> List[Verse]:
        return self._read_through(
            (BUCKET_VERSES,),
            lambda: keys.verses_key(chapter_id, opts),
            List[Verse],
            lambda: self.next.verses(chapter_id, opts),
        )

    def verse(self, chapter_id: int, verse_id: int) -> Verse:
        return self._read_through(
            (BUCKET_VERSES, BUCKET_VERSE),
            lambda: keys.verse_key(chapter_id, verse_id),
            Verse,
            lambda: self.next.verse(chapter_id, verse_id),
        )

    def juzzah(self) -> List[Juz]:
        return self._read_through(
            (BUCKET_JUZZAH,),
            lambda: keys.JUZZAH_KEY,
            List[Juz],
            self.next.juzzah,
        )

    def verse_tafsir(
        self,
        chapter_id: int,
        verse_id: int,
        opts: Optional[VerseTafsirReqOpt] = None,
    ) -> List[VerseTafsir]:
        return self._read_through(
            (BUCKET_VERSES, BUCKET_VERSE_TAFSIR),
            lambda: keys.verse_tafsir_key(chapter_id, verse_id, opts),
            List[VerseTafsir],
            lambda: self.next.verse_tafsir(chapter_id, verse_id, opts),
        )

    def search(self, query: SearchRequest) -> SearchResponse:
        # ranked, high-cardinality results: always fetched
        self._count("bypassed")
        return self.next.search(query)
