"""
Unit tests for quranc/persist/caching.py

Tests the read-through cache in front of a stub QuranAPI: hits, misses,
error transparency, best-effort writes, and bucket bootstrap.
"""
import sqlite3
import threading
from contextlib import contextmanager
from typing import List

import pytest

from quranc.errors import CacheSetupError, QuranAPIError
from quranc.models import (
    Chapter,
    ChapterInfo,
    Juz,
    JuzMapping,
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
from quranc.persist import caching
from quranc.persist.caching import BUCKETS, CachingClient, bootstrap_buckets
from quranc.persist.codec import encode_value
from quranc.persist.keys import chapter_key


def test_hit_after_miss_returns_first_value(stub_api, store):
    """Second identical call is served from the store, not the API."""
    stub_api.chapter.side_effect = [
        Chapter(id=1, name_simple="Al-Fatihah"),
        Chapter(id=1, name_simple="CHANGED"),
    ]
    api = CachingClient(stub_api, store)

    first = api.chapter(1)
    second = api.chapter(1)

    assert first == Chapter(id=1, name_simple="Al-Fatihah")
    assert second == Chapter(id=1, name_simple="Al-Fatihah")
    assert stub_api.chapter.call_count == 1
    assert api.stats.hits == 1
    assert api.stats.misses == 1


def test_verses_translation_order_shares_entry(stub_api, store):
    """Permuted translation ids hit the same cache entry."""
    api = CachingClient(stub_api, store)

    first = api.verses(2, VersesReqOpt(translations=[3, 1, 2]))
    second = api.verses(2, VersesReqOpt(translations=[1, 2, 3]))

    assert first == second
    assert stub_api.verses.call_count == 1


def test_wrapped_api_receives_original_arguments(stub_api, store):
    api = CachingClient(stub_api, store)
    opts = VersesReqOpt(translations=[3, 1, 2])

    api.verses(2, opts)

    stub_api.verses.assert_called_once_with(2, opts)
    assert opts.translations == [3, 1, 2]


def test_different_arguments_miss(stub_api, store):
    api = CachingClient(stub_api, store)

    api.chapter(1)
    api.chapter(1, ReqOpt(language_id=38))
    api.chapter(2)

    assert stub_api.chapter.call_count == 3


def test_unset_language_shares_entry_with_zero(stub_api, store):
    """No filter and filter=0 collapse to the same key."""
    api = CachingClient(stub_api, store)

    api.chapters()
    api.chapters(ReqOpt(language_id=0))

    assert stub_api.chapters.call_count == 1


def test_upstream_error_propagates_without_write(stub_api, store):
    """A failing fetch surfaces unchanged and caches nothing."""
    err = QuranAPIError("quran.com API returned status 503", status_code=503)
    stub_api.chapter.side_effect = err
    api = CachingClient(stub_api, store)

    with pytest.raises(QuranAPIError) as exc_info:
        api.chapter(1)
    assert exc_info.value is err

    with store.view() as tx:
        assert tx.bucket("chapters").bucket("chapter").get(chapter_key(1, None)) is None


def test_error_then_success_caches_success(stub_api, store):
    good = Chapter(id=1, name_simple="Al-Fatihah")
    stub_api.chapter.side_effect = [QuranAPIError("timeout"), good, Chapter(id=1, name_simple="later")]
    api = CachingClient(stub_api, store)

    with pytest.raises(QuranAPIError):
        api.chapter(1)
    assert api.chapter(1) == good
    assert api.chapter(1) == good
    assert stub_api.chapter.call_count == 2


def test_interrupt_propagates_without_write(stub_api, store):
    """Cancellation of the fetch propagates and leaves the cache untouched."""
    stub_api.juzzah.side_effect = KeyboardInterrupt
    api = CachingClient(stub_api, store)

    with pytest.raises(KeyboardInterrupt):
        api.juzzah()

    with store.view() as tx:
        assert tx.bucket("juzzah").get(b"juzzah") is None


def test_store_write_failure_is_swallowed(stub_api, store, monkeypatch):
    """A failing write transaction does not change the call's result."""
    api = CachingClient(stub_api, store)

    @contextmanager
    def failing_update():
        raise sqlite3.OperationalError("database is locked")
        yield

    monkeypatch.setattr(store, "update", failing_update)

    result = api.chapter(1)

    assert result == stub_api.chapter.return_value
    assert api.stats.write_errors == 1

    # nothing was stored, so the next call fetches again
    api.chapter(1)
    assert stub_api.chapter.call_count == 2


def test_encode_failure_is_swallowed(stub_api, store, monkeypatch):
    api = CachingClient(stub_api, store)

    def failing_encode(value, type_):
        raise ValueError("cannot serialize")

    monkeypatch.setattr(caching, "encode_value", failing_encode)

    assert api.verses(2) == stub_api.verses.return_value
    assert api.stats.write_errors == 1


def test_corrupt_entry_is_a_miss_and_is_overwritten(stub_api, store):
    api = CachingClient(stub_api, store)
    with store.update() as tx:
        tx.bucket("chapters").bucket("chapter").put(chapter_key(1, None), b"garbage")

    assert api.chapter(1) == stub_api.chapter.return_value
    assert api.chapter(1) == stub_api.chapter.return_value
    assert stub_api.chapter.call_count == 1


def test_cached_empty_list_is_a_hit(stub_api, store):
    """An empty list is a real cached value, not a miss."""
    stub_api.verses.return_value = []
    api = CachingClient(stub_api, store)

    assert api.verses(200) == []
    assert api.verses(200) == []
    assert stub_api.verses.call_count == 1


def test_unkeyable_verses_bypass_cache(stub_api, store):
    """When the key cannot be derived every call goes to the API."""
    api = CachingClient(stub_api, store)
    opts = VersesReqOpt(media=["a", 1])

    api.verses(2, opts)
    api.verses(2, opts)

    assert stub_api.verses.call_count == 2
    assert api.stats.bypassed == 2
    assert store.stats()["verses"]["count"] == 0


def test_unkeyable_verse_tafsir_bypasses_cache(stub_api, store):
    """A bad option on a non-verses operation is fetched, never raised."""
    stub_api.verse_tafsir.return_value = [VerseTafsir(id=1, text="...")]
    api = CachingClient(stub_api, store)
    opts = VerseTafsirReqOpt(tafsir=169)

    assert api.verse_tafsir(2, 255, opts) == [VerseTafsir(id=1, text="...")]
    assert api.verse_tafsir(2, 255, opts) == [VerseTafsir(id=1, text="...")]

    assert stub_api.verse_tafsir.call_count == 2
    stub_api.verse_tafsir.assert_called_with(2, 255, opts)
    assert api.stats.bypassed == 2
    assert store.stats()["verses/verse_tafsir"]["count"] == 0


def test_float_language_not_served_truncated_entry(stub_api, store):
    api = CachingClient(stub_api, store)
    api.chapters(ReqOpt(language_id=5))

    api.chapters(ReqOpt(language_id=5.7))

    assert stub_api.chapters.call_count == 2
    assert api.stats.hits == 0
    assert api.stats.bypassed == 1
    assert store.stats()["chapters"]["count"] == 1


def test_search_is_never_cached(stub_api, store):
    stub_api.search.return_value = SearchResponse(query="mercy", total_count=1)
    api = CachingClient(stub_api, store)
    query = SearchRequest(query="mercy")

    for _ in range(3):
        assert api.search(query).query == "mercy"

    assert stub_api.search.call_count == 3
    assert sum(s["count"] for s in store.stats().values()) == 0


def test_search_errors_propagate(stub_api, store):
    stub_api.search.side_effect = ValueError("no query param provided")
    api = CachingClient(stub_api, store)

    with pytest.raises(ValueError, match="no query param provided"):
        api.search(SearchRequest())


@pytest.mark.parametrize(
    "method, args, value, bucket",
    [
        ("recitations", (), [Recitation(id=7, reciter_name_eng="Mishari")], "recitations"),
        ("translations", (), [Translation(id=131, name="Clear Quran")], "translations"),
        ("languages", (), [Language(id=38, iso_code="en")], "languages"),
        ("tafsiraat", (), [Tafsir(id=169, name="Ibn Kathir")], "tafsiraat"),
        ("chapters", (), [Chapter(id=1)], "chapters"),
        ("chapter", (1,), Chapter(id=1), "chapters/chapter"),
        ("chapter_info", (1,), ChapterInfo(chapter_id=1, text="..."), "chapters/chapterinfo"),
        ("verses", (2,), [Verse(id=8)], "verses"),
        ("verse", (2, 255), Verse(id=262), "verses/verse"),
        ("juzzah", (), [Juz(id=1, verse_mapping=[JuzMapping(chapter_id=1, start_verse=1, end_verse=7)])], "juzzah"),
        ("verse_tafsir", (2, 255, VerseTafsirReqOpt.for_tafsir_id(169)), [VerseTafsir(id=1)], "verses/verse_tafsir"),
    ],
)
def test_every_operation_caches_in_its_bucket(stub_api, store, method, args, value, bucket):
    getattr(stub_api, method).return_value = value
    getattr(stub_api, method).side_effect = None
    api = CachingClient(stub_api, store)

    assert getattr(api, method)(*args) == value
    assert getattr(api, method)(*args) == value

    assert getattr(stub_api, method).call_count == 1
    assert store.stats()[bucket]["count"] == 1


def test_chapter_and_chapter_info_do_not_collide(stub_api, store):
    """Same key shape in sibling nested buckets stays separate."""
    stub_api.chapter_info.return_value = ChapterInfo(chapter_id=1, text="info")
    api = CachingClient(stub_api, store)

    assert api.chapter(1) == stub_api.chapter.return_value
    assert api.chapter_info(1) == ChapterInfo(chapter_id=1, text="info")
    assert stub_api.chapter.call_count == 1
    assert stub_api.chapter_info.call_count == 1


def test_cache_survives_reopen(stub_api, tmp_path):
    from quranc.persist.sqlite_store import BucketStore

    db_path = tmp_path / "quran.db"
    with BucketStore(db_path) as s:
        CachingClient(stub_api, s).chapters()

    with BucketStore(db_path) as s:
        assert CachingClient(stub_api, s).chapters() == stub_api.chapters.return_value

    assert stub_api.chapters.call_count == 1


def test_shared_store_between_decorators(stub_api, store):
    a = CachingClient(stub_api, store)
    b = CachingClient(stub_api, store)

    a.verse(2, 255)
    b.verse(2, 255)

    assert stub_api.verse.call_count == 1


def test_concurrent_calls_do_not_fail(stub_api, store):
    """Concurrent identical misses may all fetch, but none may fail."""
    api = CachingClient(stub_api, store)
    errors = []
    results = []

    def call():
        try:
            results.append(api.chapter(1))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=call) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert results == [stub_api.chapter.return_value] * 8
    assert 1 <= stub_api.chapter.call_count <= 8

    api.chapter(1)
    assert store.stats()["chapters/chapter"]["count"] == 1


def test_bootstrap_creates_all_buckets(store):
    bootstrap_buckets(store)

    expected = set()
    for bucket, nested in BUCKETS.items():
        expected.add(bucket)
        expected.update(f"{bucket}/{n}" for n in nested)
    assert set(store.buckets()) == expected


def test_bootstrap_is_idempotent(store):
    bootstrap_buckets(store)
    before = store.buckets()

    bootstrap_buckets(store)
    CachingClient(object(), store)

    assert store.buckets() == before


def test_bootstrap_failure_is_fatal(stub_api, store, monkeypatch):
    @contextmanager
    def failing_update():
        raise sqlite3.OperationalError("disk I/O error")
        yield

    monkeypatch.setattr(store, "update", failing_update)

    with pytest.raises(CacheSetupError):
        CachingClient(stub_api, store)


def test_stats_to_dict(stub_api, store):
    api = CachingClient(stub_api, store)
    api.chapter(1)
    api.chapter(1)

    stats = api.stats.to_dict()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["hit_rate"] == 0.5
