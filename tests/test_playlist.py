import pytest
from spotipy.exceptions import SpotifyException

from playlistify.errors import FetchError, WriteError
from playlistify.playlist import create_and_fill, fetch_all_tracks, track_from_item, writable_uris
from playlistify.types import PlaylistOptions
from tests.fakes import FAST, FakeSpotify, make_item


def test_fetch_returns_every_track_in_page_order():
    items = [make_item(i) for i in range(250)]
    items.insert(120, {"track": None})
    sp = FakeSpotify(playlists={"pl": items})

    tracks = fetch_all_tracks(sp, "pl", settings=FAST)

    assert len(tracks) == 250
    assert [t.uri for t in tracks] == [f"spotify:track:{i}" for i in range(250)]


def test_fetch_maps_track_fields():
    item = make_item(
        "abc", name="Title", artist="Band", artist_id="band1", explicit=True, popularity=42, release_date="2001-02-03"
    )
    t = track_from_item(item)
    assert t.uri == "spotify:track:abc"
    assert t.name == "Title"
    assert t.artist == "Band"
    assert t.artist_id == "band1"
    assert t.explicit is True
    assert t.popularity == 42
    assert t.release_date == "2001-02-03"


def test_track_without_artists_uses_placeholder():
    t = track_from_item({"track": {"uri": "spotify:track:x", "name": "X", "artists": []}})
    assert t.artist == "Unknown Artist"
    assert t.artist_id is None


def test_fetch_error_status_raises_fetch_error():
    sp = FakeSpotify()
    with pytest.raises(FetchError):
        fetch_all_tracks(sp, "missing", settings=FAST)


def test_fetch_malformed_page_raises():
    class NoItems(FakeSpotify):
        def playlist_items(self, *args, **kwargs):
            return {"next": None}

    with pytest.raises(FetchError):
        fetch_all_tracks(NoItems(), "pl", settings=FAST)


def test_fetch_repeated_cursor_raises():
    class Looping(FakeSpotify):
        def playlist_items(self, *args, **kwargs):
            return {"items": [make_item(1)], "next": "https://api.spotify.com/v1/playlists/pl/tracks?offset=100"}

        def next(self, result):
            return {"items": [make_item(2)], "next": result["next"]}

    with pytest.raises(FetchError, match="cursor"):
        fetch_all_tracks(Looping(), "pl", settings=FAST)


def test_local_tracks_are_not_writable():
    tracks = [
        track_from_item(make_item(1)),
        track_from_item(make_item(2, is_local=True)),
        track_from_item({"track": {"uri": "", "name": "no uri"}}),
    ]
    assert writable_uris(tracks) == ["spotify:track:1"]


def test_create_and_fill_defaults_to_private():
    sp = FakeSpotify()
    result = create_and_fill(sp, "New", PlaylistOptions(), ["spotify:track:1", "spotify:track:2"], description="d")

    assert result.name == "New"
    assert result.track_count == 2
    assert sp.created[0]["public"] is False
    assert sp.created[0]["user"] == "user-1"
    assert sp.created[0]["description"] == "d"
    assert sp.added_uris(result.id) == ["spotify:track:1", "spotify:track:2"]


def test_create_and_fill_honours_public_and_user_id():
    sp = FakeSpotify()
    create_and_fill(sp, "New", PlaylistOptions(public=True), ["spotify:track:1"], user_id="someone")
    assert sp.created[0]["public"] is True
    assert sp.created[0]["user"] == "someone"
    assert sp.me_calls == 0


def test_failed_batch_reports_start_index_and_keeps_playlist(sleeps):
    sp = FakeSpotify()
    sp.fail_add_at = 1
    uris = [f"spotify:track:{i}" for i in range(250)]

    with pytest.raises(WriteError) as exc:
        create_and_fill(sp, "Partial", PlaylistOptions(), uris, sleep=sleeps.append)

    assert exc.value.start_index == 100
    assert exc.value.playlist_id == "new-1"
    assert "index 100" in str(exc.value)
    assert len(sp.added) == 1


def test_failed_create_raises_write_error():
    class NoCreate(FakeSpotify):
        def user_playlist_create(self, *args, **kwargs):
            raise SpotifyException(403, -1, "Forbidden")

    with pytest.raises(WriteError):
        create_and_fill(NoCreate(), "X", PlaylistOptions(), ["spotify:track:1"])
