from __future__ import annotations

import random
import re
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


def now_timestamp_str() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def chunked(seq: Sequence[T] | Iterable[T], n: int) -> Iterator[List[T]]:
    """Yield lists of size n from a sequence/iterable."""
    if n <= 0:
        raise ValueError("n must be > 0")
    buf: List[T] = []
    for item in seq:
        buf.append(item)
        if len(buf) >= n:
            yield buf
            buf = []
    if buf:
        yield buf


def shuffled(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a Fisher-Yates shuffled copy of items."""
    rng = rng or random
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


_feat_re = re.compile(r"feat\..*$", re.IGNORECASE)
_paren_re = re.compile(r"\(.*?\)")
_brackets_re = re.compile(r"\[.*?\]")
_ws_re = re.compile(r"\s+")


def normalize_title(text: str) -> str:
    """Lower-case and drop (...), [...] and 'feat.' tails, e.g. 'Song (Remix) feat. X' -> 'song'."""
    if not text:
        return ""
    t = text.lower()
    t = _paren_re.sub("", t)
    t = _brackets_re.sub("", t)
    t = _feat_re.sub("", t)
    return _ws_re.sub(" ", t).strip()


def release_sort_key(release_date: Optional[str]) -> Optional[str]:
    """Pad Spotify's partial release dates ('1999', '1999-05') to YYYY-MM-DD."""
    if not release_date:
        return None
    parts = release_date.strip().split("-")
    if not parts[0].isdigit():
        return None
    while len(parts) < 3:
        parts.append("01")
    return "-".join(p.zfill(2) for p in parts[:3])


def release_year(release_date: Optional[str]) -> Optional[int]:
    if not release_date:
        return None
    try:
        return int(release_date.split("-")[0])
    except ValueError:
        return None


_playlist_link_re = re.compile(r"(?:playlist[/:])([a-zA-Z0-9]+)")
_playlist_id_re = re.compile(r"^[a-zA-Z0-9]{22}$")


def playlist_id_from_link(link: str) -> Optional[str]:
    """Playlist id from an open.spotify.com link, a spotify:playlist: URI or a bare id."""
    link = (link or "").strip()
    if _playlist_id_re.match(link):
        return link
    match = _playlist_link_re.search(link)
    return match.group(1) if match else None


def brief_id(s: str, prefix: int = 3, suffix: int = 2) -> str:
    if len(s) <= prefix + suffix + 3:
        return s
    return f"{s[:prefix]}...{s[-suffix:]}"


def split_bearer(headers: dict) -> Tuple[str, str]:
    value = (headers or {}).get("Authorization") or ""
    scheme, _, token = value.partition(" ")
    return scheme, token.strip()
