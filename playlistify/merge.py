from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .config import DEFAULT_SETTINGS, DESCRIPTION_TAG, Settings
from .errors import InvalidInput
from .playlist import create_and_fill, fetch_all_tracks, writable_uris
from .types import PlaylistOptions, PlaylistRef, PlaylistResult

logger = logging.getLogger(__name__)

MERGED_NAME = "Merged Playlist"


def collect_uris(sp, playlists: Sequence[PlaylistRef], settings: Settings = DEFAULT_SETTINGS) -> List[str]:
    """Track URIs of every playlist, in input order, duplicates kept."""
    uris: List[str] = []
    for playlist in playlists:
        uris.extend(writable_uris(fetch_all_tracks(sp, playlist.id, settings=settings)))
    return uris


def merge_playlists(
    sp,
    playlists: Sequence[PlaylistRef],
    options: Optional[PlaylistOptions] = None,
    settings: Settings = DEFAULT_SETTINGS,
) -> PlaylistResult:
    options = options or PlaylistOptions()
    if not playlists:
        raise InvalidInput("No playlists selected")

    uris = collect_uris(sp, playlists, settings)
    names = ", ".join(p.name for p in playlists)
    result = create_and_fill(
        sp,
        options.name or MERGED_NAME,
        options,
        uris,
        description=f"Merged from {names} with {DESCRIPTION_TAG}",
        settings=settings,
    )
    logger.info("Successfully merged %d playlists into '%s'", len(playlists), result.name)
    return result
