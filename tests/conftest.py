"""Test configuration and fixtures."""

from unittest.mock import MagicMock

import pytest

from quranc.api import QuranAPI
from quranc.models import Chapter, Verse


@pytest.fixture
def stub_api() -> MagicMock:
    """A QuranAPI stand-in whose calls can be counted."""
    api = MagicMock(spec=QuranAPI)
    api.chapter.return_value = Chapter(id=1, chapter_number=1, name_simple="Al-Fatihah")
    api.chapters.return_value = [
        Chapter(id=1, chapter_number=1, name_simple="Al-Fatihah"),
        Chapter(id=2, chapter_number=2, name_simple="Al-Baqarah"),
    ]
    api.verses.return_value = [
        Verse(id=8, verse_number=1, chapter_id=2, verse_key="2:1"),
        Verse(id=9, verse_number=2, chapter_id=2, verse_key="2:2"),
    ]
    api.verse.return_value = Verse(id=262, verse_number=255, chapter_id=2, verse_key="2:255")
    return api
