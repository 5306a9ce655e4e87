import pytest

import checker
from segcheck.config import TOKEN_ENV_VAR
from tests.helpers import BAD_PLAIN, BASE_URL, VALID_PLAIN, ZERO_KEY, encrypt, media_playlist


MEDIA_URL = f"{BASE_URL}/media.m3u8"
GATED_URL = "https://deploys.brightcove.com/stream/master.m3u8"


@pytest.fixture(autouse=True)
def _no_token(monkeypatch):
    monkeypatch.delenv(TOKEN_ENV_VAR, raising=False)


def test_unsupported_type(requests_mock, capsys):
    assert checker.main(["-m", MEDIA_URL, "-y", "chunklist"]) == 1
    assert 'ERROR: type "chunklist" isn\'t supported' in capsys.readouterr().err
    assert not requests_mock.called


def test_missing_manifest(requests_mock, capsys):
    assert checker.main([]) == 1
    assert "ERROR: no manifest uri provided" in capsys.readouterr().err
    assert not requests_mock.called


def test_gated_without_token(requests_mock, capsys):
    assert checker.main(["-m", GATED_URL]) == 1
    assert "no token provided" in capsys.readouterr().err
    assert not requests_mock.called


def test_gated_with_token(requests_mock, monkeypatch, tmp_path):
    monkeypatch.setenv(TOKEN_ENV_VAR, "secret")
    requests_mock.get(GATED_URL, status_code=401)

    assert checker.main(["-m", GATED_URL, "-o", str(tmp_path)]) == 1
    assert requests_mock.last_request.headers["authorization"] == "Bearer secret"


def test_media_run(requests_mock, tmp_path, capsys):
    requests_mock.get(MEDIA_URL, text=media_playlist(["seg0.m4f", "seg1.m4f"]))
    requests_mock.get(f"{BASE_URL}/key.bin", content=ZERO_KEY)
    requests_mock.get(f"{BASE_URL}/seg0.m4f", content=encrypt(VALID_PLAIN))
    requests_mock.get(f"{BASE_URL}/seg1.m4f", content=encrypt(BAD_PLAIN))

    assert checker.main(["-m", MEDIA_URL, "--type", "media", "--save", "--out-dir", str(tmp_path)]) == 0

    assert (tmp_path / "media" / "segment0.m4f").read_bytes() == VALID_PLAIN
    assert (tmp_path / "media" / "error_segment1.m4f").read_bytes() == BAD_PLAIN
    out = capsys.readouterr().out
    assert "2 segments, 1 padding errors" in out
    assert "Done!" in out


def test_network_failure(requests_mock, tmp_path, capsys):
    requests_mock.get(MEDIA_URL, status_code=404)
    assert checker.main(["-m", MEDIA_URL, "-y", "media", "-o", str(tmp_path)]) == 1
    assert "ERROR: Failed to fetch" in capsys.readouterr().err
