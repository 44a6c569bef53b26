"""Client settings and configuration schema."""

import os
from pathlib import Path
from typing import Mapping, Optional, Tuple

from pydantic import BaseModel

from ..api import QuranAPI
from ..client import DEFAULT_HOST, DEFAULT_TIMEOUT, Client
from ..persist import BucketStore, CachingClient


class ClientCfg(BaseModel):
    """Configuration for the HTTP client."""
    host: str = DEFAULT_HOST
    timeout: float = DEFAULT_TIMEOUT


class CacheCfg(BaseModel):
    """Configuration for the response cache."""
    enabled: bool = True
    path: str = "data/cache/quran.db"


class Settings(BaseModel):
    """Main application settings."""
    client: ClientCfg = ClientCfg()
    cache: CacheCfg = CacheCfg()


_FALSEY = {"0", "false", "no", "off"}


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from environment variables.

    Reads QURANC_HOST, QURANC_TIMEOUT, QURANC_CACHE and QURANC_CACHE_PATH;
    anything unset keeps its default.
    """
    env = os.environ if env is None else env

    client = {}
    if env.get("QURANC_HOST"):
        client["host"] = env["QURANC_HOST"]
    if env.get("QURANC_TIMEOUT"):
        client["timeout"] = env["QURANC_TIMEOUT"]

    cache = {}
    if env.get("QURANC_CACHE"):
        cache["enabled"] = env["QURANC_CACHE"].strip().lower() not in _FALSEY
    if env.get("QURANC_CACHE_PATH"):
        cache["path"] = env["QURANC_CACHE_PATH"]

    return Settings(client=ClientCfg(**client), cache=CacheCfg(**cache))


def build_client(settings: Settings) -> Tuple[QuranAPI, Optional[BucketStore]]:
    """
    Wire up the API client described by settings.

    Returns:
        Tuple of (api, store). store is None when caching is disabled;
        otherwise the caller owns it and must close it.
    """
    client = Client(host=settings.client.host, timeout=settings.client.timeout)
    if not settings.cache.enabled:
        return client, None

    store = BucketStore(Path(settings.cache.path))
    try:
        return CachingClient(client, store), store
    except Exception:
        store.close()
        raise
