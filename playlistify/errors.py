from __future__ import annotations

from typing import Optional


class PlaylistifyError(Exception):
    """Base class for every failure surfaced by a playlist operation."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(PlaylistifyError):
    pass


class RequestFailed(PlaylistifyError):
    """Raised once the retry layer has used up its attempts."""

    def __init__(self, last_error: Optional[BaseException], attempts: int = 0):
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(f"Request failed after {attempts} attempts{detail}")
        self.last_error = last_error
        self.attempts = attempts


class FetchError(PlaylistifyError):
    pass


class WriteError(PlaylistifyError):
    """A playlist could not be created or a batch of tracks could not be added.

    Batches written before the failure stay in the playlist; ``playlist_id``
    and ``start_index`` tell the caller where the write stopped.
    """

    def __init__(self, message: str, start_index: Optional[int] = None, playlist_id: Optional[str] = None):
        super().__init__(message)
        self.start_index = start_index
        self.playlist_id = playlist_id


class NoPlaylistsCreated(PlaylistifyError):
    pass
