from __future__ import annotations

import logging
import time
from concurrent.futures import Future
from typing import Callable, Dict, List, Optional, Sequence, Union

from tqdm import tqdm

from .config import DEFAULT_SETTINGS, DESCRIPTION_TAG, Settings
from .errors import InvalidInput, NoPlaylistsCreated
from .matcher import find_clean_version
from .playlist import create_and_fill, fetch_all_tracks
from .ratelimit import RateLimiter
from .types import PlaylistOptions, PlaylistRef, PlaylistResult, Track
from .utils import chunked

logger = logging.getLogger(__name__)


def cache_key(track: Track) -> str:
    return f"{track.name}-{track.artist}"


def resolve_clean_versions(
    sp,
    tracks: Sequence[Track],
    limiter: Optional[RateLimiter] = None,
    settings: Settings = DEFAULT_SETTINGS,
    sleep: Callable[[float], None] = time.sleep,
    progress: bool = False,
) -> List[str]:
    """Map tracks to URIs that are safe to write to a clean playlist.

    Local tracks are dropped, clean tracks keep their URI, explicit tracks are
    replaced by a searched clean version or dropped when none is found.
    Searches run on the limiter batch by batch; output keeps input order.
    """
    limiter = limiter or RateLimiter(settings.min_request_delay)
    cache: Dict[str, Optional[str]] = {}
    cleaned: List[str] = []
    batches = list(chunked(tracks, settings.clean_batch_size))

    with tqdm(total=len(tracks), desc="Clean", unit="track", disable=not progress) as bar:
        for index, batch in enumerate(batches):
            pending: Dict[str, Future] = {}
            slots: List[Union[str, Future, None]] = []
            for song in batch:
                if song.is_local:
                    slots.append(None)
                elif not song.explicit:
                    slots.append(song.uri)
                else:
                    key = cache_key(song)
                    if key in cache:
                        slots.append(cache[key])
                    elif key in pending:
                        slots.append(pending[key])
                    else:
                        fut = limiter.enqueue(find_clean_version, sp, song.name, song.artist, settings)
                        pending[key] = fut
                        slots.append(fut)

            for key, fut in pending.items():
                cache[key] = fut.result()

            for slot in slots:
                uri = slot.result() if isinstance(slot, Future) else slot
                if uri:
                    cleaned.append(uri)
            bar.update(len(batch))

            if index + 1 < len(batches):
                sleep(settings.clean_batch_pause)

    logger.info("Resolved %d of %d tracks to clean versions", len(cleaned), len(tracks))
    return cleaned


def clean_playlist(
    sp,
    playlists: Sequence[PlaylistRef],
    options: Optional[PlaylistOptions] = None,
    limiter: Optional[RateLimiter] = None,
    settings: Settings = DEFAULT_SETTINGS,
    progress: bool = False,
) -> PlaylistResult:
    """Copy the first selected playlist with explicit tracks swapped for clean versions."""
    options = options or PlaylistOptions()
    if not playlists:
        raise InvalidInput("No playlists selected")

    playlist = playlists[0]
    tracks = fetch_all_tracks(sp, playlist.id, settings=settings)
    if not tracks:
        raise InvalidInput("No tracks found in the playlist")

    cleaned = resolve_clean_versions(sp, tracks, limiter=limiter, settings=settings, progress=progress)
    if not cleaned:
        raise NoPlaylistsCreated("No clean tracks found after processing")

    result = create_and_fill(
        sp,
        options.name or f"{playlist.name} (Clean)",
        options,
        cleaned,
        description=f"Clean version created with {DESCRIPTION_TAG}",
        settings=settings,
    )
    result.explicit_removed = sum(1 for t in tracks if t.explicit)
    return result
