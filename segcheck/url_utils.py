"""
URL helpers for resolving playlist references.
"""

from urllib.parse import urljoin, urlparse


# Hosts that only serve manifests to callers presenting an access token.
GATED_HOSTS = ('deploys.brightcove.com',)


def get_base_url(url: str) -> str:
    """
    Extract base URL from full URL.
    Return base URL for relative path resolution.
    """
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path.rsplit('/', 1)[0]}/"


def build_absolute_url(playlist_url: str, reference: str) -> str:
    """
    Resolve a URI found inside a playlist against the playlist's own URL.
    Absolute references are returned unchanged.
    """
    if not reference or reference.startswith(('http://', 'https://')):
        return reference
    return urljoin(get_base_url(playlist_url), reference)


def is_gated_url(url: str) -> bool:
    """
    Check whether the URL points at a host that requires an access token.
    """
    return any(host in url for host in GATED_HOSTS)
