"""
Data models for the quran.com API.

Response payloads are pydantic models so they can be validated from the API
JSON and serialized into the cache. Request options are plain dataclasses.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class Recitation(BaseModel):
    """A recitation provided from quran.com."""

    id: int = 0
    style: Optional[str] = ""
    reciter_name_eng: str = ""
    reciter_name_translated: str = ""


class Translation(BaseModel):
    """
    A translation available via the quran.com API.

    The translation id may be used in other API calls to add translations
    to the response.
    """

    id: int = 0
    author_name: str = ""
    language_name: str = ""
    name: str = ""
    slug: Optional[str] = ""


class TranslatedName(BaseModel):
    """A name and the language it is translated from."""

    language_name: str = ""
    name: str = ""


class Language(BaseModel):
    """
    A language with associated quran.com identifiers.

    The language id is useful for filtering other API calls. The iso code is
    used by search and verses calls.
    """

    id: int = 0
    name: str = ""
    iso_code: str = ""
    native_name: str = ""
    direction: str = ""
    translated_names: List[TranslatedName] = Field(default_factory=list)


class Tafsir(BaseModel):
    """A tafsir overview. The slug is documented but never populated."""

    id: int = 0
    author_name: str = ""
    slug: Optional[str] = ""
    name: str = ""
    language_name: str = ""


class ChapterPages(BaseModel):
    start: int = 0
    end: int = 0


class Chapter(BaseModel):
    """A chapter (surah) and the metadata summarizing it."""

    id: int = 0
    chapter_number: int = 0
    bismillah_pre: bool = False
    revelation_order: int = 0
    revelation_place: str = ""
    name_complex: str = ""
    name_arabic: str = ""
    name_simple: str = ""
    verses_count: int = 0
    pages: ChapterPages = Field(default_factory=ChapterPages)
    translated_name: TranslatedName = Field(default_factory=TranslatedName)


class ChapterInfo(BaseModel):
    chapter_id: int = 0
    text: str = ""
    source: str = ""
    short_text: str = ""
    language_name: str = ""


class Resource(BaseModel):
    id: int = 0
    language_name: str = ""
    text: str = ""
    resource_name: str = ""
    resource_id: int = 0


class VerseAudio(BaseModel):
    url: str = ""
    duration: int = 0
    segments: List[List[str]] = Field(default_factory=list)
    format: str = ""


class MediaContent(BaseModel):
    url: str = ""
    embed_text: str = ""
    provider: str = ""
    author_name: str = ""


class WordAudio(BaseModel):
    url: Optional[str] = ""


class Word(BaseModel):
    id: Optional[int] = 0
    position: int = 0
    text_madani: Optional[str] = ""
    text_indopak: Optional[str] = ""
    text_simple: Optional[str] = ""
    verse_key: str = ""
    class_name: str = ""
    line_number: int = 0
    page_number: int = 0
    code: str = ""
    code_v3: str = ""
    char_type: str = ""
    audio: WordAudio = Field(default_factory=WordAudio)
    translation: Resource = Field(default_factory=Resource)
    transliteration: Resource = Field(default_factory=Resource)


class Verse(BaseModel):
    id: int = 0
    verse_number: int = 0
    chapter_id: int = 0
    verse_key: str = ""
    text_madani: str = ""
    text_indopak: str = ""
    text_simple: str = ""
    juz_number: int = 0
    hizb_number: int = 0
    rub_number: int = 0
    sajdah: Optional[str] = ""
    sajdah_number: Optional[int] = 0
    page_number: int = 0
    audio: VerseAudio = Field(default_factory=VerseAudio)
    translations: List[Resource] = Field(default_factory=list)
    media_contents: List[MediaContent] = Field(default_factory=list)
    words: List[Word] = Field(default_factory=list)


class JuzMapping(BaseModel):
    """Verse range of a single chapter inside a juz."""

    chapter_id: int
    start_verse: int
    end_verse: int


class Juz(BaseModel):
    id: int = 0
    juz_number: int = 0
    verse_mapping: List[JuzMapping] = Field(default_factory=list)


class VerseTafsir(BaseModel):
    id: int = 0
    text: str = ""
    verse_id: int = 0
    language_name: str = ""
    resource_name: str = ""
    # present in API responses but undocumented
    verse_key: Any = None


class SearchRequest(BaseModel):
    query: str = ""
    language: str = ""
    page: int = 0
    size: int = 0


class SearchVerse(BaseModel):
    id: int = 0
    verse_number: int = 0
    chapter_id: int = 0
    verse_key: str = ""
    text_madani: str = ""
    words: List[Word] = Field(default_factory=list)
    translations: List[Resource] = Field(default_factory=list)


class SearchResponse(BaseModel):
    query: str = ""
    total_count: int = 0
    took: int = 0
    current_page: int = 0
    total_pages: int = 0
    per_page: int = 0
    results: List[SearchVerse] = Field(default_factory=list)


@dataclass
class ReqOpt:
    """Options shared by the listing endpoints."""
    language_id: int = 0


@dataclass
class VersesReqOpt:
    """Options for listing the verses of a chapter."""
    language: str = ""
    recitation: int = 0
    text_type: str = ""

    page: int = 0
    limit: int = 0
    # part of the cache key only; not sent upstream
    offset: int = 0

    media: List[int] = field(default_factory=list)
    translations: List[int] = field(default_factory=list)


@dataclass
class VerseTafsirReqOpt:
    """Options for fetching the tafsirs of a verse."""
    tafsir: str = ""

    @classmethod
    def for_tafsir_id(cls, tafsir_id: int) -> "VerseTafsirReqOpt":
        return cls(tafsir=str(tafsir_id))
