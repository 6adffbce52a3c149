from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from spotipy.exceptions import SpotifyException

from .config import DEFAULT_SETTINGS, Settings
from .errors import FetchError, WriteError
from .retry import retry_with
from .types import UNKNOWN_ARTIST, PlaylistOptions, PlaylistResult, Track
from .utils import chunked, shuffled

logger = logging.getLogger(__name__)


def track_from_item(item: Dict[str, Any]) -> Optional[Track]:
    """Build a Track from one playlist item; None when the item has no track."""
    data = (item or {}).get("track")
    if not data:
        return None
    artists = data.get("artists") or []
    first = artists[0] if artists else {}
    album = data.get("album") or {}
    return Track(
        uri=data.get("uri") or "",
        id=data.get("id"),
        name=data.get("name") or "",
        artist=first.get("name") or UNKNOWN_ARTIST,
        artist_id=first.get("id"),
        explicit=bool(data.get("explicit")),
        is_local=bool(data.get("is_local")),
        album=album.get("name"),
        popularity=data.get("popularity"),
        release_date=album.get("release_date"),
    )


def fetch_all_tracks(sp, playlist_id: str, settings: Settings = DEFAULT_SETTINGS) -> List[Track]:
    """Page through a playlist and return its tracks in API order.

    Items whose track is null (removed/unavailable) are skipped. Raises
    FetchError on an error response, a page without an items list, or a
    next cursor that was already followed.
    """
    retry = retry_with(settings)
    tracks: List[Track] = []
    seen_cursors = set()

    def first_page():
        return sp.playlist_items(playlist_id, limit=settings.page_size, offset=0, additional_types=("track",))

    request = first_page
    while True:
        try:
            page = retry(request)
        except SpotifyException as e:
            raise FetchError(f"Failed to fetch tracks from playlist {playlist_id}: {e.msg}") from e
        items = (page or {}).get("items")
        if not isinstance(items, list):
            raise FetchError(f"Spotify API returned no items for playlist {playlist_id}")
        for item in items:
            track = track_from_item(item)
            if track is not None:
                tracks.append(track)

        cursor = page.get("next")
        if not cursor:
            break
        if cursor in seen_cursors:
            raise FetchError(f"Pagination cursor repeated for playlist {playlist_id}: {cursor}")
        seen_cursors.add(cursor)
        request = lambda current=page: sp.next(current)  # noqa: E731

    logger.debug("Fetched %d tracks from playlist %s", len(tracks), playlist_id)
    return tracks


def writable_uris(tracks: Sequence[Track]) -> List[str]:
    return [t.uri for t in tracks if t.writable]


def current_user_id(sp, settings: Settings = DEFAULT_SETTINGS) -> str:
    try:
        me = retry_with(settings)(sp.me)
    except SpotifyException as e:
        raise FetchError(f"Failed to fetch user information: {e.msg}") from e
    return me["id"]


def ensure_playlist_create(
    sp,
    user_id: str,
    name: str,
    public: bool,
    description: str = "",
    settings: Settings = DEFAULT_SETTINGS,
) -> str:
    try:
        pl = retry_with(settings)(
            lambda: sp.user_playlist_create(user=user_id, name=name, public=public, description=description or "")
        )
    except SpotifyException as e:
        raise WriteError(f"Failed to create playlist '{name}': {e.msg}") from e
    logger.info("Created playlist '%s' (%s)", name, pl["id"])
    return pl["id"]


def add_tracks_batched(
    sp,
    playlist_id: str,
    uris: List[str],
    settings: Settings = DEFAULT_SETTINGS,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Add uris in pages of write_batch_size, pausing pacing_delay between pages.

    Raises WriteError on the first failed page; earlier pages stay written.
    """
    retry = retry_with(settings, sleep)
    size = settings.write_batch_size
    written = 0
    for index, batch in enumerate(chunked(uris, size)):
        start = index * size
        if index:
            sleep(settings.pacing_delay)
        try:
            retry(lambda b=batch: sp.playlist_add_items(playlist_id, b))
        except SpotifyException as e:
            logger.error("Error adding tracks to playlist %s: %s", playlist_id, e.msg)
            raise WriteError(
                f"Failed to add tracks batch starting at index {start}",
                start_index=start,
                playlist_id=playlist_id,
            ) from e
        written += len(batch)
    return written


def create_and_fill(
    sp,
    name: str,
    options: PlaylistOptions,
    uris: Sequence[str],
    description: str = "",
    user_id: Optional[str] = None,
    default_public: bool = False,
    settings: Settings = DEFAULT_SETTINGS,
    sleep: Callable[[float], None] = time.sleep,
) -> PlaylistResult:
    """Create a playlist for the current user and fill it with uris.

    options.shuffle is applied to the uris right before writing.
    """
    if user_id is None:
        user_id = current_user_id(sp, settings)
    playlist_id = ensure_playlist_create(
        sp, user_id, name, options.visibility(default_public), description, settings=settings
    )
    final_uris = shuffled(uris) if options.shuffle else list(uris)
    add_tracks_batched(sp, playlist_id, final_uris, settings=settings, sleep=sleep)
    return PlaylistResult(id=playlist_id, name=name, track_count=len(final_uris))
