from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .errors import InvalidInput

UNKNOWN_ARTIST = "Unknown Artist"


@dataclass(frozen=True)
class PlaylistRef:
    id: str
    name: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlaylistRef":
        try:
            return cls(id=str(data["id"]), name=str(data.get("name") or ""))
        except (KeyError, TypeError, AttributeError) as e:
            raise InvalidInput(f"Invalid playlist reference: {data!r}") from e


@dataclass(frozen=True)
class Track:
    """One playlist entry, flattened from the API's track object."""
    uri: str
    name: str
    artist: str
    explicit: bool = False
    is_local: bool = False
    id: Optional[str] = None
    artist_id: Optional[str] = None
    album: Optional[str] = None
    popularity: Optional[int] = None
    release_date: Optional[str] = None
    genres: Optional[List[str]] = None

    @property
    def primary_genre(self) -> Optional[str]:
        return self.genres[0] if self.genres else None

    @property
    def writable(self) -> bool:
        return bool(self.uri) and not self.is_local


_TRUE = ("true", "1", "yes")
_FALSE = ("false", "0", "no")


def _flag(data: Mapping[str, Any], key: str) -> Optional[bool]:
    """Read an optional boolean option; "true"/"false" strings are accepted."""
    value = data.get(key)
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    raise InvalidInput(f"Option '{key}' must be true or false, got {value!r}")


@dataclass(frozen=True)
class PlaylistOptions:
    name: Optional[str] = None
    public: Optional[bool] = None
    shuffle: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "PlaylistOptions":
        data = data or {}
        return cls(
            name=(data.get("name") or None),
            public=_flag(data, "public"),
            shuffle=bool(_flag(data, "shuffle")),
        )

    def visibility(self, default: bool) -> bool:
        return default if self.public is None else self.public


@dataclass
class PlaylistResult:
    id: str
    name: str
    track_count: int
    explicit_removed: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {"name": self.name, "id": self.id, "trackCount": self.track_count}
        if self.explicit_removed is not None:
            out["explicitRemoved"] = self.explicit_removed
        return out


@dataclass
class SplitResult:
    original_playlist: str
    new_playlists: List[PlaylistResult] = field(default_factory=list)

    @property
    def split_count(self) -> int:
        return len(self.new_playlists)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "originalPlaylist": self.original_playlist,
            "splitCount": self.split_count,
            "newPlaylists": [p.to_dict() for p in self.new_playlists],
        }


class Criterion(Enum):
    """Dimension a playlist is sorted or split by."""

    ARTIST = "artist"
    GENRE = "genre"
    POPULARITY = "popularity"
    DATE = "date"
    LANGUAGE = "language"
    NAME = "name"

    @property
    def display(self) -> str:
        return _CRITERION_DISPLAY[self]

    @property
    def needs_artist_lookup(self) -> bool:
        return self in (Criterion.GENRE, Criterion.LANGUAGE)

    @classmethod
    def parse(cls, value: "str | Criterion | None") -> "Criterion":
        if isinstance(value, Criterion):
            return value
        if not value:
            return cls.NAME
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(c.value for c in cls)
            raise InvalidInput(f"Unknown criteria '{value}' (expected one of: {choices})") from None


_CRITERION_DISPLAY = {
    Criterion.ARTIST: "Artist",
    Criterion.GENRE: "Genre",
    Criterion.POPULARITY: "Popularity",
    Criterion.DATE: "Release Date",
    Criterion.LANGUAGE: "Language",
    Criterion.NAME: "Name",
}


class FunctionType(Enum):
    MERGE = "merge"
    CLEAN = "clean"
    SORT = "sort"
    SPLIT = "split"

