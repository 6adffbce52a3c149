import pytest

from playlistify.auth import bearer_headers, client_from_headers, headers_from_env
from playlistify.config import DEFAULT_SETTINGS, Settings
from playlistify.errors import InvalidInput
from playlistify.types import Criterion, PlaylistOptions, PlaylistRef, PlaylistResult, SplitResult


def test_settings_defaults():
    assert DEFAULT_SETTINGS.max_retries == 3
    assert DEFAULT_SETTINGS.initial_delay == 1.0
    assert DEFAULT_SETTINGS.min_request_delay == 0.1
    assert DEFAULT_SETTINGS.write_batch_size == 100
    assert DEFAULT_SETTINGS.clean_batch_size == 5
    assert DEFAULT_SETTINGS.min_bucket_size == 10


def test_settings_from_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("PLAYLISTIFY_MAX_RETRIES", "5")
    monkeypatch.setenv("PLAYLISTIFY_PACING_DELAY", "0.5")
    env_file = tmp_path / ".env"
    env_file.write_text("PLAYLISTIFY_MIN_BUCKET_SIZE=3\nPLAYLISTIFY_MAX_RETRIES=9\n")

    settings = Settings.from_env(str(env_file))

    assert settings.max_retries == 5
    assert settings.pacing_delay == 0.5
    assert settings.min_bucket_size == 3
    assert settings.page_size == 100


def test_settings_from_env_rejects_bad_number(monkeypatch, tmp_path):
    monkeypatch.setenv("PLAYLISTIFY_PAGE_SIZE", "lots")
    with pytest.raises(ValueError, match="PLAYLISTIFY_PAGE_SIZE"):
        Settings.from_env(str(tmp_path / "missing.env"))


@pytest.mark.parametrize(
    "value,expected",
    [(None, Criterion.NAME), ("", Criterion.NAME), ("Artist", Criterion.ARTIST), (" date ", Criterion.DATE)],
)
def test_criterion_parse(value, expected):
    assert Criterion.parse(value) is expected


def test_criterion_parse_rejects_unknown():
    with pytest.raises(InvalidInput):
        Criterion.parse("tempo")


def test_criterion_artist_lookup():
    assert {c for c in Criterion if c.needs_artist_lookup} == {Criterion.GENRE, Criterion.LANGUAGE}


def test_playlist_options_from_dict():
    assert PlaylistOptions.from_dict(None) == PlaylistOptions()
    opts = PlaylistOptions.from_dict({"name": "", "public": 1, "shuffle": True})
    assert opts == PlaylistOptions(name=None, public=True, shuffle=True)
    assert opts.visibility(False) is True
    assert PlaylistOptions().visibility(True) is True
    assert PlaylistOptions(public=False).visibility(True) is False


@pytest.mark.parametrize(
    "raw,expected",
    [("false", False), ("False", False), ("0", False), ("true", True), (" TRUE ", True), (False, False), (None, None)],
)
def test_playlist_options_public_strings(raw, expected):
    assert PlaylistOptions.from_dict({"public": raw}).public is expected


def test_playlist_options_shuffle_string_false():
    assert PlaylistOptions.from_dict({"shuffle": "false"}).shuffle is False


@pytest.mark.parametrize("raw", ["maybe", 2, [True]])
def test_playlist_options_rejects_non_boolean(raw):
    with pytest.raises(InvalidInput, match="public"):
        PlaylistOptions.from_dict({"public": raw})


def test_result_dicts():
    plain = PlaylistResult(id="x", name="Mix", track_count=4)
    assert plain.to_dict() == {"name": "Mix", "id": "x", "trackCount": 4}
    cleaned = PlaylistResult(id="y", name="Mix (Clean)", track_count=3, explicit_removed=1)
    assert cleaned.to_dict()["explicitRemoved"] == 1

    split = SplitResult("Mix", [plain])
    assert split.to_dict() == {"originalPlaylist": "Mix", "splitCount": 1, "newPlaylists": [plain.to_dict()]}


def test_playlist_ref_from_dict():
    assert PlaylistRef.from_dict({"id": "abc"}) == PlaylistRef("abc", "")
    with pytest.raises(InvalidInput):
        PlaylistRef.from_dict("abc")


def test_client_from_headers_uses_token_as_is():
    sp = client_from_headers(bearer_headers("tok-123"))
    assert sp._auth == "tok-123"


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer"}, {"Authorization": "Token abc"}])
def test_client_from_headers_rejects_bad_header(headers):
    with pytest.raises(InvalidInput):
        client_from_headers(headers)


def test_headers_from_env(monkeypatch):
    monkeypatch.setenv("SPOTIFY_ACCESS_TOKEN", "env-token")
    assert headers_from_env() == {"Authorization": "Bearer env-token"}
