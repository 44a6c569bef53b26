"""Typed client for the quran.com API with an optional persistent cache."""

from .api import QuranAPI
from .client import Client
from .errors import (
    CacheError,
    CacheSetupError,
    QuranAPIError,
    QuranCError,
)
from .models import (
    Chapter,
    ChapterInfo,
    Juz,
    JuzMapping,
    Language,
    Recitation,
    ReqOpt,
    Resource,
    SearchRequest,
    SearchResponse,
    SearchVerse,
    Tafsir,
    Translation,
    Verse,
    VerseTafsir,
    VerseTafsirReqOpt,
    VersesReqOpt,
    Word,
)
from .persist import BucketStore, CachingClient

__version__ = "0.1.0"

__all__ = [
    "QuranAPI",
    "Client",
    "CachingClient",
    "BucketStore",
    "CacheError",
    "CacheSetupError",
    "QuranAPIError",
    "QuranCError",
    "Chapter",
    "ChapterInfo",
    "Juz",
    "JuzMapping",
    "Language",
    "Recitation",
    "ReqOpt",
    "Resource",
    "SearchRequest",
    "SearchResponse",
    "SearchVerse",
    "Tafsir",
    "Translation",
    "Verse",
    "VerseTafsir",
    "VerseTafsirReqOpt",
    "VersesReqOpt",
    "Word",
]
