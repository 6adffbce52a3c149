from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "PLAYLISTIFY_"
DESCRIPTION_TAG = "Playlistify"


@dataclass(frozen=True)
class Settings:
    """Tunables for the transformation engine.

    Delays are in seconds. Every field can be overridden from the environment
    as ``PLAYLISTIFY_<FIELD_NAME>`` (e.g. ``PLAYLISTIFY_PACING_DELAY=0.5``).
    """

    max_retries: int = 3
    initial_delay: float = 1.0
    max_rate_limit_waits: int = 10
    min_request_delay: float = 0.1
    page_size: int = 100
    write_batch_size: int = 100
    pacing_delay: float = 0.3
    clean_batch_size: int = 5
    clean_batch_pause: float = 1.0
    search_limit: int = 15
    artist_batch_size: int = 50
    similarity_threshold: float = 0.7
    min_bucket_size: int = 10
    requests_timeout: float = 10.0

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        load_dotenv(env_file, override=False)
        overrides = {}
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            cast = int if f.type in ("int", int) else float
            try:
                overrides[f.name] = cast(raw)
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}{f.name.upper()} must be a number, got {raw!r}") from None
        return replace(cls(), **overrides)


DEFAULT_SETTINGS = Settings()


def get_access_token() -> Optional[str]:
    load_dotenv(override=False)
    return os.getenv("SPOTIFY_ACCESS_TOKEN")
