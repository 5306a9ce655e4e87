"""
HTTP access for manifests, keys and segments.
"""

import logging
import threading
from typing import List, Optional

import requests

from segcheck.errors import NetworkError
from segcheck.url_utils import is_gated_url


log = logging.getLogger(__name__)


def get_browser_headers() -> dict:
    """
    Get browser-like headers for playlist requests.
    """
    return {
        'accept': '*/*',
        'accept-encoding': 'gzip, deflate, br, zstd',
        'accept-language': 'en-US,en;q=0.9',
        'cache-control': 'no-cache',
        'pragma': 'no-cache',
        'user-agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36'
    }


class PlaylistFetcher:
    """
    Performs single GET requests, each worker thread on its own session.
    No retries and no timeout beyond the transport defaults.
    """

    def __init__(self, token: Optional[str] = None):
        self.token = token
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """
        Get or create the session for the current thread.
        Reuses connections within the same thread.
        """
        if not hasattr(self._local, 'session'):
            session = requests.Session()
            session.headers.update(get_browser_headers())
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return self._local.session

    def _headers_for(self, uri: str) -> Optional[dict]:
        if self.token and is_gated_url(uri):
            return {'authorization': f'Bearer {self.token}'}
        return None

    def fetch(self, uri: str) -> bytes:
        """
        Download the resource at uri.
        Return the full body as bytes.
        """
        log.debug(f"GET {uri}")
        try:
            with self.session.get(uri, headers=self._headers_for(uri)) as response:
                response.raise_for_status()
                return response.content
        except requests.RequestException as e:
            raise NetworkError(f"Failed to fetch {uri}: {e}") from e

    def close(self) -> None:
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
