"""
Canonical cache keys for quran.com API calls.

Scalar and composite keys are plain text (components joined with ":").
Option bags with unordered collections are normalized, then serialized as
canonical JSON (sorted keys, compact separators), so semantically equal
calls always yield byte-identical keys.
"""

import json
from dataclasses import asdict, replace
from typing import Optional

from ..errors import KeyEncodingError
from ..models import ReqOpt, VerseTafsirReqOpt, VersesReqOpt

KEY_SEP = ":"
JUZZAH_KEY = b"juzzah"


def itoa(i: int) -> str:
    """
    Decimal text of an int.

    Raises:
        KeyEncodingError: If i is not an int (floats are never truncated)
    """
    if isinstance(i, bool) or not isinstance(i, int):
        raise KeyEncodingError(f"cannot encode {i!r} as an integer key component")
    return str(i)


def join(*parts: str) -> str:
    """
    Join key components with ":".

    Raises:
        KeyEncodingError: If a component is not a str or contains ":"
    """
    for part in parts:
        if not isinstance(part, str):
            raise KeyEncodingError(f"key component {part!r} is not a string")
        if KEY_SEP in part:
            raise KeyEncodingError(f"key component {part!r} contains {KEY_SEP!r}")
    return KEY_SEP.join(parts)


def language_key(opts: Optional[ReqOpt]) -> bytes:
    """
    Key for the listing endpoints: the language filter.

    An unset filter encodes the same as language id 0.
    """
    language_id = opts.language_id if opts is not None else 0
    return itoa(language_id).encode("utf-8")


def chapter_key(chapter_id: int, opts: Optional[ReqOpt]) -> bytes:
    """Key for a chapter or chapter info: language:chapter."""
    language_id = opts.language_id if opts is not None else 0
    return join(itoa(language_id), itoa(chapter_id)).encode("utf-8")


def verse_key(chapter_id: int, verse_id: int) -> bytes:
    """Key for a single verse: chapter:verse."""
    return join(itoa(chapter_id), itoa(verse_id)).encode("utf-8")


def verse_tafsir_key(chapter_id: int, verse_id: int, opts: Optional[VerseTafsirReqOpt]) -> bytes:
    """Key for verse tafsirs: tafsir:chapter:verse."""
    tafsir = opts.tafsir if opts is not None else ""
    return join(tafsir, itoa(chapter_id), itoa(verse_id)).encode("utf-8")


def verses_key(chapter_id: int, opts: Optional[VersesReqOpt]) -> bytes:
    """
    Key for a verses listing.

    Media and translation ids are sorted first; the caller's options are
    left untouched.

    Raises:
        KeyEncodingError: If the options cannot be serialized
    """
    opts = opts or VersesReqOpt()
    try:
        normalized = replace(
            opts,
            media=sorted(opts.media),
            translations=sorted(opts.translations),
        )
        data = {
            "chapter_id": chapter_id,
            "opts": asdict(normalized),
        }
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise KeyEncodingError(f"cannot encode verses key for chapter {chapter_id}: {e}") from e

    return canonical.encode("utf-8")
