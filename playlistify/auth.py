from __future__ import annotations

from typing import Dict, Optional

import requests
import spotipy

from .config import DEFAULT_SETTINGS, Settings, get_access_token
from .errors import InvalidInput
from .log_utils import quiet_third_party_loggers
from .utils import split_bearer

quiet_third_party_loggers()


def bearer_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def headers_from_env() -> Dict[str, str]:
    """Bearer headers from SPOTIFY_ACCESS_TOKEN (.env is loaded if present)."""
    token = get_access_token()
    if not token:
        raise InvalidInput("SPOTIFY_ACCESS_TOKEN must be set (environment or .env)")
    return bearer_headers(token)


def client_from_headers(headers: Dict[str, str], settings: Optional[Settings] = None) -> spotipy.Spotify:
    """Return a spotipy client that sends the caller's bearer token.

    The token is used as-is: it is never refreshed or validated, so an expired
    token surfaces as a 401 from the first call. spotipy's own retries are
    disabled (a bare requests session has no urllib3 Retry mounted) so 429s keep
    their Retry-After header and reach retry.retry_request.
    """
    settings = settings or DEFAULT_SETTINGS
    scheme, token = split_bearer(headers)
    if scheme.lower() != "bearer" or not token:
        raise InvalidInput("Authorization header must be 'Bearer <token>'")
    return spotipy.Spotify(
        auth=token,
        requests_timeout=settings.requests_timeout,
        requests_session=requests.Session(),
    )
