from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from spotipy.exceptions import SpotifyException

from .config import DEFAULT_SETTINGS, Settings
from .errors import RequestFailed
from .retry import retry_with
from .utils import normalize_title

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = DEFAULT_SETTINGS.similarity_threshold


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit-cost substitution, insertion and deletion."""
    rows, cols = len(b) + 1, len(a) + 1
    matrix = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            if b[i - 1] == a[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = min(
                    matrix[i - 1][j - 1] + 1,  # substitution
                    matrix[i][j - 1] + 1,  # insertion
                    matrix[i - 1][j] + 1,  # deletion
                )
    return matrix[rows - 1][cols - 1]


def similarity(a: str, b: str) -> float:
    """Score in [0,1] on normalized strings; 1.0 when they normalize to the same text."""
    na, nb = normalize_title(a), normalize_title(b)
    if na == nb:
        return 1.0
    longest = max(len(na), len(nb))
    return 1.0 - levenshtein_distance(na, nb) / longest


def is_similar(a: str, b: str, threshold: float = SIMILARITY_THRESHOLD) -> bool:
    return similarity(a, b) >= threshold


def _artist_names(item: Dict[str, Any]) -> List[str]:
    return [a.get("name", "") for a in item.get("artists") or []]


def pick_clean_match(
    candidates: Iterable[Dict[str, Any]],
    song_name: str,
    song_artist: str,
    threshold: float = SIMILARITY_THRESHOLD,
) -> Optional[str]:
    """Return the URI of the best non-explicit candidate, or None.

    Tiers, first hit wins:
    1. exact name, exact artist
    2. similar name, exact artist
    3. similar name, similar artist
    """
    clean = [c for c in candidates if c and not c.get("explicit")]
    tiers = (
        lambda c: c.get("name") == song_name and song_artist in _artist_names(c),
        lambda c: is_similar(c.get("name", ""), song_name, threshold) and song_artist in _artist_names(c),
        lambda c: is_similar(c.get("name", ""), song_name, threshold)
        and any(is_similar(name, song_artist, threshold) for name in _artist_names(c)),
    )
    for matches in tiers:
        for cand in clean:
            if matches(cand):
                return cand.get("uri")
    return None


def search_query(song_name: str, song_artist: str) -> str:
    return f'track:"{song_name}" artist:"{song_artist}"'


def find_clean_version(sp, song_name: str, song_artist: str, settings: Settings = DEFAULT_SETTINGS) -> Optional[str]:
    """Search Spotify for a non-explicit version of a song.

    A failed search is logged and reported as no match.
    """
    query = search_query(song_name, song_artist)
    try:
        resp = retry_with(settings)(lambda: sp.search(q=query, type="track", limit=settings.search_limit))
    except (SpotifyException, RequestFailed) as e:
        logger.warning("Search failed for %s: %s", query, e)
        return None

    items = ((resp or {}).get("tracks") or {}).get("items") or []
    if not items:
        return None
    uri = pick_clean_match(items, song_name, song_artist, settings.similarity_threshold)
    if uri:
        logger.debug("Clean version of '%s' by %s: %s", song_name, song_artist, uri)
    return uri
