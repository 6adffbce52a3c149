from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from spotipy.exceptions import SpotifyException

from .auth import client_from_headers
from .clean import clean_playlist
from .config import DEFAULT_SETTINGS, Settings
from .errors import FetchError, InvalidInput, PlaylistifyError
from .merge import merge_playlists
from .retry import retry_with
from .sort import sort_playlist
from .split import split_playlist
from .types import Criterion, FunctionType, PlaylistOptions, PlaylistRef
from .utils import playlist_id_from_link

logger = logging.getLogger(__name__)

SUCCESS = "success"


def parse_playlists(raw: Any) -> List[PlaylistRef]:
    """Accept playlist refs as dicts or JSON-encoded strings."""
    refs: List[PlaylistRef] = []
    for entry in raw or []:
        if isinstance(entry, str):
            try:
                entry = json.loads(entry)
            except ValueError as e:
                raise InvalidInput(f"Invalid playlist reference: {entry!r}") from e
        if isinstance(entry, PlaylistRef):
            refs.append(entry)
        else:
            refs.append(PlaylistRef.from_dict(entry))
    return refs


def resolve_playlist_link(sp, link: str, settings: Settings = DEFAULT_SETTINGS) -> PlaylistRef:
    """Turn an open.spotify.com link (or spotify: URI) into a PlaylistRef."""
    playlist_id = playlist_id_from_link(link)
    if not playlist_id:
        raise InvalidInput(f"Not a Spotify playlist link: {link}")
    try:
        data = retry_with(settings)(lambda: sp.playlist(playlist_id, fields="id,name"))
    except SpotifyException as e:
        raise FetchError(f"Failed to fetch external playlist: {e.msg}") from e
    return PlaylistRef(id=data["id"], name=data.get("name") or "")


def run_function(
    sp,
    function_type: FunctionType,
    playlists: List[PlaylistRef],
    criterion: Optional[Criterion],
    options: PlaylistOptions,
    settings: Settings = DEFAULT_SETTINGS,
    progress: bool = False,
):
    if function_type is FunctionType.MERGE:
        return merge_playlists(sp, playlists, options, settings=settings)
    if function_type is FunctionType.CLEAN:
        return clean_playlist(sp, playlists, options, settings=settings, progress=progress)
    if function_type is FunctionType.SORT:
        return sort_playlist(sp, playlists, criterion, options, settings=settings)
    if function_type is FunctionType.SPLIT:
        return split_playlist(sp, playlists, criterion, options, settings=settings)
    raise InvalidInput(f"Invalid function type: {function_type}")


def handle_function(
    request: Mapping[str, Any],
    headers: Optional[Dict[str, str]] = None,
    sp=None,
    settings: Settings = DEFAULT_SETTINGS,
    progress: bool = False,
) -> Dict[str, Any]:
    """Run one transformation and report it as {"message", "result"}.

    request keys: functionType, playlists, criteria, options and optionally
    externalPlaylistLink (replaces the selection). Every failure becomes
    {"message": <reason>}.
    """
    try:
        try:
            function_type = FunctionType(str(request.get("functionType") or "").lower())
        except ValueError:
            raise InvalidInput(f"Invalid function type: {request.get('functionType')!r}") from None

        criterion = None
        if function_type in (FunctionType.SORT, FunctionType.SPLIT):
            if not request.get("criteria"):
                raise InvalidInput("No criteria selected")
            criterion = Criterion.parse(request["criteria"])

        if sp is None:
            sp = client_from_headers(headers or {}, settings)

        playlists = parse_playlists(request.get("playlists"))
        link = request.get("externalPlaylistLink")
        if link:
            playlists = [resolve_playlist_link(sp, link, settings)]

        options = PlaylistOptions.from_dict(request.get("options"))
        logger.info("Running %s on %d playlist(s)", function_type.value, len(playlists))
        result = run_function(sp, function_type, playlists, criterion, options, settings, progress)
    except PlaylistifyError as e:
        logger.error("Error in %s: %s", request.get("functionType"), e.message)
        return {"message": e.message}
    except Exception as e:
        logger.exception("Unexpected error in %s", request.get("functionType"))
        return {"message": str(e) or "An error occurred"}
    return {"message": SUCCESS, "result": result.to_dict()}
