from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence

from spotipy.exceptions import SpotifyException

from .config import DEFAULT_SETTINGS, DESCRIPTION_TAG, Settings
from .errors import FetchError, InvalidInput, NoPlaylistsCreated
from .playlist import create_and_fill, current_user_id, fetch_all_tracks, writable_uris
from .retry import retry_with
from .types import Criterion, PlaylistOptions, PlaylistRef, SplitResult, Track
from .utils import release_year

logger = logging.getLogger(__name__)

UNKNOWN_GENRE = "Unknown Genre"
UNKNOWN_LANGUAGE = "Unknown Language"
UNKNOWN_YEAR = "Unknown Year"
UNSORTED = "Unsorted"
DISCARDED_BUCKETS = frozenset({UNKNOWN_GENRE, UNKNOWN_LANGUAGE})

POPULARITY_BANDS = (
    (80, "Very Popular (80-100)"),
    (60, "Popular (60-79)"),
    (40, "Moderate (40-59)"),
    (20, "Less Popular (20-39)"),
    (0, "Rare (0-19)"),
)

# Substring of a genre tag -> language bucket, checked in order.
LANGUAGE_HINTS = (
    (("latin", "spanish"), "Spanish"),
    (("k-pop",), "Korean"),
    (("j-pop",), "Japanese"),
)
DEFAULT_LANGUAGE = "English/Other"


class ArtistGenres:
    """Per-invocation genre lookup, one request per distinct artist id."""

    def __init__(self, sp, settings: Settings = DEFAULT_SETTINGS):
        self.sp = sp
        self._retry = retry_with(settings)
        self._cache: Dict[str, List[str]] = {}

    def __call__(self, artist_id: str) -> List[str]:
        if artist_id not in self._cache:
            try:
                artist = self._retry(lambda: self.sp.artist(artist_id))
            except SpotifyException as e:
                raise FetchError(f"Failed to fetch artist {artist_id}: {e.msg}") from e
            self._cache[artist_id] = list((artist or {}).get("genres") or [])
        return self._cache[artist_id]

    @property
    def lookups(self) -> int:
        return len(self._cache)


GenreLookup = Callable[[str], List[str]]


def _artist_bucket(track: Track, genres_of: GenreLookup) -> str:
    return track.artist


def _genre_bucket(track: Track, genres_of: GenreLookup) -> str:
    if not track.artist_id:
        return UNKNOWN_GENRE
    genres = genres_of(track.artist_id)
    return genres[0] if genres else UNKNOWN_GENRE


def language_from_genres(genres: Sequence[str]) -> str:
    """Guess a language from genre tags. A heuristic, not language detection."""
    for needles, language in LANGUAGE_HINTS:
        if any(needle in genre for genre in genres for needle in needles):
            return language
    return DEFAULT_LANGUAGE


def _language_bucket(track: Track, genres_of: GenreLookup) -> str:
    if not track.artist_id:
        return UNKNOWN_LANGUAGE
    return language_from_genres(genres_of(track.artist_id))


def popularity_band(popularity: Optional[int]) -> str:
    score = popularity or 0
    for floor, label in POPULARITY_BANDS:
        if score >= floor:
            return label
    return POPULARITY_BANDS[-1][1]


def _popularity_bucket(track: Track, genres_of: GenreLookup) -> str:
    return popularity_band(track.popularity)


def _date_bucket(track: Track, genres_of: GenreLookup) -> str:
    year = release_year(track.release_date)
    if year is None:
        return UNKNOWN_YEAR
    return f"{year // 10 * 10}s"


def _unsorted_bucket(track: Track, genres_of: GenreLookup) -> str:
    return UNSORTED


BUCKETERS: Dict[Criterion, Callable[[Track, GenreLookup], str]] = {
    Criterion.ARTIST: _artist_bucket,
    Criterion.GENRE: _genre_bucket,
    Criterion.LANGUAGE: _language_bucket,
    Criterion.POPULARITY: _popularity_bucket,
    Criterion.DATE: _date_bucket,
    Criterion.NAME: _unsorted_bucket,
}


def group_tracks(tracks: Sequence[Track], criterion: Criterion, genres_of: GenreLookup) -> Dict[str, List[Track]]:
    bucket_of = BUCKETERS[criterion]
    groups: Dict[str, List[Track]] = {}
    for track in tracks:
        groups.setdefault(bucket_of(track, genres_of), []).append(track)
    return groups


def filter_groups(groups: Dict[str, List[Track]], min_size: int) -> Dict[str, List[Track]]:
    """Drop unknown genre/language buckets and buckets smaller than min_size."""
    return {
        name: tracks
        for name, tracks in groups.items()
        if name not in DISCARDED_BUCKETS and len(tracks) >= min_size
    }


def split_playlist(
    sp,
    playlists: Sequence[PlaylistRef],
    criterion: Optional[Criterion | str],
    options: Optional[PlaylistOptions] = None,
    settings: Settings = DEFAULT_SETTINGS,
) -> SplitResult:
    """Split the first selected playlist into one new playlist per bucket.

    Split playlists are public unless options.public says otherwise.
    """
    options = options or PlaylistOptions()
    criterion = Criterion.parse(criterion)
    if not playlists:
        raise InvalidInput("No playlists selected")

    playlist = playlists[0]
    tracks = [t for t in fetch_all_tracks(sp, playlist.id, settings=settings) if t.writable]
    if not tracks:
        raise InvalidInput("No tracks found in the playlist")

    genres_of = ArtistGenres(sp, settings)
    groups = group_tracks(tracks, criterion, genres_of)
    if criterion.needs_artist_lookup:
        logger.debug("Looked up genres for %d artists", genres_of.lookups)
    kept = filter_groups(groups, settings.min_bucket_size)
    logger.info(
        "Split '%s' by %s: %d buckets, %d kept", playlist.name, criterion.value, len(groups), len(kept)
    )
    if not kept:
        raise NoPlaylistsCreated(
            f"No playlists were created. All groups had fewer than {settings.min_bucket_size} "
            "tracks or were unknown categories."
        )

    user_id = current_user_id(sp, settings)
    result = SplitResult(original_playlist=playlist.name)
    base = options.name or playlist.name
    for bucket, bucket_tracks in kept.items():
        result.new_playlists.append(
            create_and_fill(
                sp,
                f"{base} - {bucket}",
                options,
                writable_uris(bucket_tracks),
                description=f"Split from {playlist.name} by {bucket} ({DESCRIPTION_TAG})",
                user_id=user_id,
                default_public=True,
                settings=settings,
            )
        )
    return result
