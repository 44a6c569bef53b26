"""
HTTP client for the quran.com REST API.

Implements QuranAPI on top of a requests session and translates the
API's JSON into the models in quranc.models.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from .api import QuranAPI
from .errors import QuranAPIError
from .models import (
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

DEFAULT_HOST = "https://quran.com/api"
DEFAULT_TIMEOUT = 15.0

Params = List[Tuple[str, str]]

logger = logging.getLogger(__name__)


def _language_params(opts: Optional[ReqOpt]) -> Params:
    if opts is not None and opts.language_id > 0:
        return [("language", str(opts.language_id))]
    return []


def _verses_params(opts: VersesReqOpt) -> Params:
    params: Params = []
    if opts.language:
        params.append(("language", opts.language))
    if opts.recitation > 0:
        params.append(("recitation", str(opts.recitation)))
    if opts.text_type:
        params.append(("text_type", opts.text_type))
    if opts.page > 0:
        params.append(("page", str(opts.page)))
    if opts.limit > 0:
        params.append(("limit", str(opts.limit)))
    for media in opts.media:
        params.append(("media[]", str(media)))
    for translation in opts.translations:
        params.append(("translations[]", str(translation)))
    return params


def _api_chapter_to_chapter(raw: Dict[str, Any]) -> Chapter:
    """The API reports pages as a [start, end] list."""
    data = dict(raw)
    pages = data.get("pages") or [0, 0]
    if isinstance(pages, list):
        start = pages[0] if len(pages) > 0 else 0
        end = pages[1] if len(pages) > 1 else start
        data["pages"] = {"start": start, "end": end}
    return Chapter.model_validate(data)


def _to_int(s: str) -> int:
    try:
        return int(s.strip())
    except ValueError:
        return -1


def _api_juz_to_juz(raw: Dict[str, Any]) -> Juz:
    """The API reports verse mappings as {"chapter": "start-end"}."""
    mappings = []
    for chapter_id, ayaat in (raw.get("verse_mapping") or {}).items():
        start_end = ayaat.split("-")
        if len(start_end) != 2:
            continue
        mappings.append(JuzMapping(
            chapter_id=_to_int(chapter_id),
            start_verse=_to_int(start_end[0]),
            end_verse=_to_int(start_end[1]),
        ))

    mappings.sort(key=lambda m: m.chapter_id)

    return Juz(
        id=raw.get("id", 0),
        juz_number=raw.get("juz_number", 0),
        verse_mapping=mappings,
    )


class Client(QuranAPI):
    """
    API client that translates the quran.com API into python types.

    Usage:
        >>> client = Client()
        >>> chapters = client.chapters()
        >>> fatihah = client.chapter(1, ReqOpt(language_id=38))
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            host: API host; requests go to {host}/api/v3
            timeout: Request timeout in seconds
            session: Optional session to send requests with
        """
        self.host = host.rstrip("/")
        self.base_url = self.host + "/api/v3"
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str, params: Optional[Params] = None) -> Dict[str, Any]:
        """
        GET a path under the base URL and decode the JSON body.

        Raises:
            QuranAPIError: On transport failure, non-200 status, or bad JSON
        """
        url = self.base_url + path
        logger.debug(f"GET {url} params={params}")

        try:
            response = self.session.get(url, params=params or None, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise QuranAPIError(f"request to {url} timed out after {self.timeout}s", url=url) from e
        except requests.exceptions.RequestException as e:
            raise QuranAPIError(f"request to {url} failed: {e}", url=url) from e

        if response.status_code != 200:
            raise QuranAPIError(
                f"quran.com API returned status {response.status_code} for {url}",
                status_code=response.status_code,
                url=url,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise QuranAPIError(
                f"invalid JSON from {url}: {e}",
                status_code=response.status_code,
                url=url,
                body=response.text,
            ) from e

    def recitations(self, opts: Optional[ReqOpt] = None) -> List[Recitation]:
        resp = self._get("/options/recitations", _language_params(opts))
        return [Recitation.model_validate(r) for r in resp.get("recitations") or []]

    def translations(self, opts: Optional[ReqOpt] = None) -> List[Translation]:
        resp = self._get("/options/translations", _language_params(opts))
        out = [Translation.model_validate(t) for t in resp.get("translations") or []]
        out.sort(key=lambda t: t.id)
        return out

    def languages(self, opts: Optional[ReqOpt] = None) -> List[Language]:
        resp = self._get("/options/languages", _language_params(opts))
        out = [Language.model_validate(lang) for lang in resp.get("languages") or []]
        out.sort(key=lambda lang: lang.id)
        return out

    def tafsiraat(self, opts: Optional[ReqOpt] = None) -> List[Tafsir]:
        resp = self._get("/options/tafsirs", _language_params(opts))
        out = [Tafsir.model_validate(t) for t in resp.get("tafsirs") or []]
        out.sort(key=lambda t: t.id)
        return out

    def chapters(self, opts: Optional[ReqOpt] = None) -> List[Chapter]:
        resp = self._get("/chapters", _language_params(opts))
        out = [_api_chapter_to_chapter(ch) for ch in resp.get("chapters") or []]
        out.sort(key=lambda ch: ch.chapter_number)
        return out

    def chapter(self, chapter_id: int, opts: Optional[ReqOpt] = None) -> Chapter:
        resp = self._get(f"/chapters/{chapter_id}", _language_params(opts))
        return _api_chapter_to_chapter(resp.get("chapter") or {})

    def chapter_info(self, chapter_id: int, opts: Optional[ReqOpt] = None) -> ChapterInfo:
        resp = self._get(f"/chapters/{chapter_id}/info", _language_params(opts))
        return ChapterInfo.model_validate(resp.get("chapter_info") or {})

    def verses(self, chapter_id: int, opts: Optional[VersesReqOpt] = None) -> List[Verse]:
        opts = opts or VersesReqOpt()
        resp = self._get(f"/chapters/{chapter_id}/verses", _verses_params(opts))
        return [Verse.model_validate(v) for v in resp.get("verses") or []]

    def verse(self, chapter_id: int, verse_id: int) -> Verse:
        # TODO: the API docs list this route under the wrong path; report upstream
        resp = self._get(f"/chapters/{chapter_id}/verses/{verse_id}")
        return Verse.model_validate(resp.get("verse") or {})

    def juzzah(self) -> List[Juz]:
        resp = self._get("/juzs")
        return [_api_juz_to_juz(j) for j in resp.get("juzs") or []]

    def verse_tafsir(
        self,
        chapter_id: int,
        verse_id: int,
        opts: Optional[VerseTafsirReqOpt] = None,
    ) -> List[VerseTafsir]:
        params: Params = []
        if opts is not None and opts.tafsir:
            params.append(("tafsirs", opts.tafsir))

        resp = self._get(f"/chapters/{chapter_id}/verses/{verse_id}/tafsirs", params)
        return [VerseTafsir.model_validate(t) for t in resp.get("tafsirs") or []]

    def search(self, query: SearchRequest) -> SearchResponse:
        if not query.query:
            raise ValueError("no query param provided")

        params: Params = [("q", query.query)]
        if query.language:
            params.append(("language", query.language))
        if query.page > 0:
            params.append(("page", str(query.page)))
        if query.size > 0:
            params.append(("size", str(query.size)))

        resp = self._get("/search", params)
        return SearchResponse.model_validate(resp)
