"""
Key material: fetch the AES-128 key, decode the IV and bind both into a
decryption context.
"""

import logging
from dataclasses import dataclass

from Crypto.Cipher import AES

from segcheck.errors import AlignmentError, InvalidIVError, InvalidKeyError
from segcheck.fetcher import PlaylistFetcher
from segcheck.playlist import MediaPlaylist


log = logging.getLogger(__name__)

SUPPORTED_METHOD = 'AES-128'

# Playlists write the IV as a hex literal, e.g. IV=0x0123...; the first two
# characters are the "0x" marker and are dropped before decoding.
IV_HEX_PREFIX_LENGTH = 2


def parse_iv(iv_hex: str) -> bytes:
    """
    Decode a 0x-prefixed hex IV into exactly one AES block.
    """
    if not iv_hex:
        raise InvalidIVError("playlist key has no explicit IV")

    if iv_hex[:IV_HEX_PREFIX_LENGTH].lower() != '0x':
        raise InvalidIVError(f"IV must start with 0x, got {iv_hex!r}")

    try:
        iv = bytes.fromhex(iv_hex[IV_HEX_PREFIX_LENGTH:])
    except ValueError as e:
        raise InvalidIVError(f"IV {iv_hex!r} is not valid hex: {e}") from e

    if len(iv) != AES.block_size:
        raise InvalidIVError(f"IV length must be equal block size ({len(iv)} != {AES.block_size})")

    return iv


@dataclass(frozen=True)
class DecryptionContext:
    """
    AES-128-CBC key and IV for one media playlist.

    Every segment is decrypted from the same IV rather than chained from the
    previous one, so decrypt() builds a fresh cipher per call. No cipher state
    is shared between the threads decrypting segments of the same playlist.
    """
    key: bytes
    iv: bytes

    def __post_init__(self):
        if len(self.iv) != AES.block_size:
            raise InvalidIVError(f"IV length must be equal block size ({len(self.iv)} != {AES.block_size})")
        # Building a cipher once surfaces a bad key before any segment is fetched
        self.new_cipher()

    def new_cipher(self):
        try:
            return AES.new(self.key, AES.MODE_CBC, self.iv)
        except ValueError as e:
            raise InvalidKeyError(f"Invalid key length: {len(self.key)} bytes: {e}") from e

    def decrypt(self, data: bytes) -> bytes:
        if len(data) % AES.block_size:
            raise AlignmentError(f"input length {len(data)} is not a multiple of {AES.block_size}")
        return self.new_cipher().decrypt(data)


class KeyMaterialProvider:
    """Builds the decryption context of a media playlist."""

    def __init__(self, fetcher: PlaylistFetcher):
        self.fetcher = fetcher

    def resolve_key(self, key_uri: str, iv_hex: str) -> DecryptionContext:
        """
        Download encryption key from URI and pair it with the decoded IV.
        """
        key = self.fetcher.fetch(key_uri)
        iv = parse_iv(iv_hex)
        log.debug(f"Encryption key fetched from {key_uri}: {len(key)} bytes")
        return DecryptionContext(key=key, iv=iv)

    def resolve(self, playlist: MediaPlaylist) -> DecryptionContext:
        """
        Resolve the key declared by a media playlist.
        """
        key = playlist.key
        if key is None:
            raise InvalidKeyError(f"media playlist {playlist.uri} declares no encryption key")

        if key.method != SUPPORTED_METHOD:
            raise InvalidKeyError(f"Unsupported encryption method {key.method} in {playlist.uri}")

        if not key.uri:
            raise InvalidKeyError(f"encryption key in {playlist.uri} has no URI")

        return self.resolve_key(key.uri, key.iv)
