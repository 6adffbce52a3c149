from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from spotipy.exceptions import SpotifyException

from .config import DEFAULT_SETTINGS, DESCRIPTION_TAG, Settings
from .errors import FetchError, InvalidInput
from .playlist import create_and_fill, fetch_all_tracks, writable_uris
from .retry import retry_with
from .types import UNKNOWN_ARTIST, Criterion, PlaylistOptions, PlaylistRef, PlaylistResult, Track
from .utils import chunked, release_sort_key

logger = logging.getLogger(__name__)

UNKNOWN_GENRE = "Unknown"


def fetch_artist_genres(sp, artist_ids: Sequence[str], settings: Settings = DEFAULT_SETTINGS) -> Dict[str, List[str]]:
    """Look up genres for artist ids, settings.artist_batch_size ids per request."""
    retry = retry_with(settings)
    genres: Dict[str, List[str]] = {}
    for batch in chunked(list(artist_ids), settings.artist_batch_size):
        try:
            resp = retry(lambda b=batch: sp.artists(b))
        except SpotifyException as e:
            raise FetchError(f"Failed to fetch artist genres: {e.msg}") from e
        for artist in (resp or {}).get("artists") or []:
            if artist:
                genres[artist["id"]] = list(artist.get("genres") or [])
    return genres


def enrich_with_genres(sp, tracks: Sequence[Track], settings: Settings = DEFAULT_SETTINGS) -> List[Track]:
    artist_ids = list(dict.fromkeys(t.artist_id for t in tracks if t.artist_id))
    genres = fetch_artist_genres(sp, artist_ids, settings)
    return [replace(t, genres=genres.get(t.artist_id, []) if t.artist_id else []) for t in tracks]


def _artist_key(track: Track) -> str:
    if track.artist_id and (not track.artist or track.artist == UNKNOWN_ARTIST):
        return track.artist_id.casefold()
    return (track.artist or "").casefold()


def _genre_key(track: Track) -> str:
    return track.primary_genre or UNKNOWN_GENRE


def _popularity_key(track: Track) -> int:
    return -(track.popularity or 0)


def _name_key(track: Track) -> str:
    return track.name.casefold()


def _sort_by_date(tracks: Sequence[Track]) -> List[Track]:
    dated = [t for t in tracks if release_sort_key(t.release_date)]
    undated = [t for t in tracks if not release_sort_key(t.release_date)]
    # reverse=True keeps equal keys in their original order
    dated.sort(key=lambda t: release_sort_key(t.release_date), reverse=True)
    return dated + undated


def _by(key: Callable[[Track], Any]) -> Callable[[Sequence[Track]], List[Track]]:
    return lambda tracks: sorted(tracks, key=key)


# Language is approximated by artist name.
SORTERS: Dict[Criterion, Callable[[Sequence[Track]], List[Track]]] = {
    Criterion.ARTIST: _by(_artist_key),
    Criterion.GENRE: _by(_genre_key),
    Criterion.POPULARITY: _by(_popularity_key),
    Criterion.DATE: _sort_by_date,
    Criterion.LANGUAGE: _by(_artist_key),
    Criterion.NAME: _by(_name_key),
}


def sort_tracks(tracks: Sequence[Track], criterion: Criterion) -> List[Track]:
    return SORTERS[criterion](tracks)


def sorted_playlist_name(original: str, criterion: Criterion, options: PlaylistOptions) -> str:
    return f"{options.name or original} (Sorted by {criterion.display})"


def sort_playlist(
    sp,
    playlists: Sequence[PlaylistRef],
    criterion: Optional[Criterion | str],
    options: Optional[PlaylistOptions] = None,
    settings: Settings = DEFAULT_SETTINGS,
) -> PlaylistResult:
    """Write a sorted copy of the first selected playlist."""
    options = options or PlaylistOptions()
    criterion = Criterion.parse(criterion)
    if not playlists:
        raise InvalidInput("No playlists selected")

    playlist = playlists[0]
    tracks = [t for t in fetch_all_tracks(sp, playlist.id, settings=settings) if t.writable]
    if not tracks:
        raise InvalidInput("No tracks found in the playlist")

    if criterion is Criterion.GENRE:
        tracks = enrich_with_genres(sp, tracks, settings)

    ordered = sort_tracks(tracks, criterion)
    logger.info("Sorted %d tracks of '%s' by %s", len(ordered), playlist.name, criterion.value)

    return create_and_fill(
        sp,
        sorted_playlist_name(playlist.name, criterion, options),
        options,
        writable_uris(ordered),
        description=f"Sorted with {DESCRIPTION_TAG} by {criterion.display}",
        settings=settings,
    )
