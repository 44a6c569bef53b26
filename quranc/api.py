"""Content API surface shared by the HTTP client and its decorators."""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional

from .models import (
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


class QuranAPI(ABC):
    """
    Abstract base class for quran.com API implementations.

    The HTTP client and the cache decorator both implement this interface,
    so decorators can be stacked by wrapping one implementation in another.
    """

    @abstractmethod
    def recitations(self, opts: Optional[ReqOpt] = None) -> List[Recitation]:
        """Return all available recitations."""
        pass

    @abstractmethod
    def translations(self, opts: Optional[ReqOpt] = None) -> List[Translation]:
        """Return all available translations."""
        pass

    @abstractmethod
    def languages(self, opts: Optional[ReqOpt] = None) -> List[Language]:
        """Return all available languages."""
        pass

    @abstractmethod
    def tafsiraat(self, opts: Optional[ReqOpt] = None) -> List[Tafsir]:
        """Return all available tafsiraat."""
        pass

    @abstractmethod
    def chapters(self, opts: Optional[ReqOpt] = None) -> List[Chapter]:
        """Return all chapters."""
        pass

    @abstractmethod
    def chapter(self, chapter_id: int, opts: Optional[ReqOpt] = None) -> Chapter:
        """Return a single chapter by id."""
        pass

    @abstractmethod
    def chapter_info(self, chapter_id: int, opts: Optional[ReqOpt] = None) -> ChapterInfo:
        """Return the descriptive info of a chapter."""
        pass

    @abstractmethod
    def verses(self, chapter_id: int, opts: Optional[VersesReqOpt] = None) -> List[Verse]:
        """Return a page of verses of a chapter."""
        pass

    @abstractmethod
    def verse(self, chapter_id: int, verse_id: int) -> Verse:
        """Return a single verse."""
        pass

    @abstractmethod
    def juzzah(self) -> List[Juz]:
        """Return all juz divisions."""
        pass

    @abstractmethod
    def verse_tafsir(
        self,
        chapter_id: int,
        verse_id: int,
        opts: Optional[VerseTafsirReqOpt] = None,
    ) -> List[VerseTafsir]:
        """Return the tafsirs of a verse."""
        pass

    @abstractmethod
    def search(self, query: SearchRequest) -> SearchResponse:
        """Run a full-text search."""
        pass
