from concurrent.futures import ThreadPoolExecutor

import pytest

from segcheck.errors import NetworkError
from segcheck.fetcher import PlaylistFetcher
from tests.helpers import BASE_URL


SEGMENT_URL = f"{BASE_URL}/seg0.m4f"
GATED_URL = "https://deploys.brightcove.com/master.m3u8"


class TestPlaylistFetcher:
    def test_fetch(self, requests_mock, fetcher):
        requests_mock.get(SEGMENT_URL, content=b"payload")

        assert fetcher.fetch(SEGMENT_URL) == b"payload"
        request = requests_mock.last_request
        assert request.headers["user-agent"].startswith("Mozilla/5.0")
        assert "authorization" not in request.headers

    def test_http_error(self, requests_mock, fetcher):
        requests_mock.get(SEGMENT_URL, status_code=404)
        with pytest.raises(NetworkError, match="seg0.m4f"):
            fetcher.fetch(SEGMENT_URL)

    def test_bearer_token_on_gated_host(self, requests_mock):
        requests_mock.get(GATED_URL, text="#EXTM3U\n")
        requests_mock.get(SEGMENT_URL, content=b"payload")
        fetcher = PlaylistFetcher(token="secret")

        fetcher.fetch(GATED_URL)
        assert requests_mock.last_request.headers["authorization"] == "Bearer secret"
        fetcher.fetch(SEGMENT_URL)
        assert "authorization" not in requests_mock.last_request.headers
        fetcher.close()


class TestThreadSessions:
    def test_reused_within_thread(self):
        fetcher = PlaylistFetcher()
        assert fetcher.session is fetcher.session
        fetcher.close()

    def test_one_session_per_thread(self):
        fetcher = PlaylistFetcher()
        main_session = fetcher.session

        with ThreadPoolExecutor(max_workers=1) as executor:
            worker_sessions = [executor.submit(lambda: fetcher.session).result() for _ in range(3)]

        assert worker_sessions[0] is not main_session
        assert all(session is worker_sessions[0] for session in worker_sessions)
        assert worker_sessions[0].headers["user-agent"].startswith("Mozilla/5.0")
        fetcher.close()

    def test_close_all_sessions(self, requests_mock):
        requests_mock.get(SEGMENT_URL, content=b"payload")
        fetcher = PlaylistFetcher()

        with ThreadPoolExecutor(max_workers=4) as executor:
            bodies = list(executor.map(lambda _: fetcher.fetch(SEGMENT_URL), range(8)))

        assert bodies == [b"payload"] * 8
        assert fetcher._sessions
        fetcher.close()
        assert fetcher._sessions == []
