import pytest

from playlistify.errors import FetchError, InvalidInput
from playlistify.merge import MERGED_NAME, collect_uris, merge_playlists
from playlistify.types import PlaylistOptions, PlaylistRef
from tests.fakes import FAST, FakeSpotify, make_item


@pytest.fixture
def two_playlists():
    return FakeSpotify(
        playlists={
            "p1": [make_item(1), make_item(2), make_item(3, is_local=True)],
            "p2": [make_item(2), make_item(4)],
        }
    )


def refs():
    return [PlaylistRef("p1", "Morning"), PlaylistRef("p2", "Evening")]


def test_collect_uris_keeps_order_and_duplicates(two_playlists):
    assert collect_uris(two_playlists, refs(), FAST) == [
        "spotify:track:1",
        "spotify:track:2",
        "spotify:track:2",
        "spotify:track:4",
    ]


def test_merge_creates_private_merged_playlist(two_playlists):
    result = merge_playlists(two_playlists, refs(), settings=FAST)

    assert result.name == MERGED_NAME
    assert result.track_count == 4
    created = two_playlists.created[0]
    assert created["public"] is False
    assert created["user"] == "user-1"
    assert created["description"] == "Merged from Morning, Evening with Playlistify"
    assert two_playlists.added_uris(result.id) == collect_uris(two_playlists, refs(), FAST)


def test_merge_respects_options(two_playlists):
    result = merge_playlists(two_playlists, refs(), PlaylistOptions(name="Daylong", public=True), FAST)

    assert result.name == "Daylong"
    assert two_playlists.created[0]["public"] is True


def test_merging_twice_creates_two_playlists(two_playlists):
    first = merge_playlists(two_playlists, refs(), settings=FAST)
    second = merge_playlists(two_playlists, refs(), settings=FAST)

    assert first.id != second.id
    assert first.track_count == second.track_count
    assert len(two_playlists.created) == 2


def test_merge_requires_playlists():
    with pytest.raises(InvalidInput):
        merge_playlists(FakeSpotify(), [], settings=FAST)


def test_merge_unknown_playlist_is_fetch_error(two_playlists):
    with pytest.raises(FetchError):
        merge_playlists(two_playlists, [PlaylistRef("missing", "Gone")], settings=FAST)
    assert two_playlists.created == []
