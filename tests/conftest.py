import pytest

from segcheck.config import CheckConfig
from segcheck.fetcher import PlaylistFetcher
from tests.helpers import BASE_URL


@pytest.fixture()
def config(tmp_path) -> CheckConfig:
    return CheckConfig(manifest_uri=f"{BASE_URL}/master.m3u8", output_dir=str(tmp_path), max_workers=4)


@pytest.fixture()
def fetcher(requests_mock) -> PlaylistFetcher:
    fetcher = PlaylistFetcher()
    yield fetcher
    fetcher.close()
