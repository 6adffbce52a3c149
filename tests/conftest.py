import os
import sys

import pytest

# Ensure project root is on sys.path so 'playlistify' and 'tests' import correctly
_TESTS_DIR = os.path.dirname(__file__)
_ROOT_DIR = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _ROOT_DIR not in sys.path:
    sys.path.insert(0, _ROOT_DIR)

from tests.fakes import FakeSpotify  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("PLAYLISTIFY_") or key == "SPOTIFY_ACCESS_TOKEN":
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def sp():
    return FakeSpotify()


@pytest.fixture
def sleeps():
    """Collects the delays a function would have slept for."""
    return []
