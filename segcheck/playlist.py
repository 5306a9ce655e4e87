"""
Parse master and media playlists with the m3u8 library into a typed union.
"""

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

import m3u8
import zstandard as zstd
from m3u8.parser import ParseError as M3U8ParseError

from segcheck.errors import ParseError, TypeMismatchError
from segcheck.url_utils import build_absolute_url


ZSTD_MAGIC = b'\x28\xb5\x2f\xfd'


class PlaylistKind(enum.Enum):
    MASTER = 'master'
    MEDIA = 'media'


@dataclass(frozen=True)
class Alternative:
    """EXT-X-MEDIA rendition (audio, subtitles...) attached to a variant."""
    uri: str
    type: Optional[str] = None
    group_id: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class Variant:
    uri: str
    iframe: bool = False
    alternatives: Tuple[Alternative, ...] = ()


@dataclass(frozen=True)
class Segment:
    uri: str


@dataclass(frozen=True)
class EncryptionKey:
    """
    The key shared by every segment of a media playlist.
    iv keeps the manifest's hex notation, prefix included.
    """
    method: str
    uri: Optional[str]
    iv: Optional[str]


@dataclass
class MasterPlaylist:
    uri: str
    variants: List[Variant] = field(default_factory=list)


@dataclass
class MediaPlaylist:
    uri: str
    key: Optional[EncryptionKey]
    # None marks an index with no segment
    segments: List[Optional[Segment]] = field(default_factory=list)


Playlist = Union[MasterPlaylist, MediaPlaylist]


def decompress_zstd(raw_bytes: bytes) -> bytes:
    """
    Decompress zstd-compressed content.
    Check for zstd magic bytes: 0x28 0xB5 0x2F 0xFD
    """
    if len(raw_bytes) < 4 or raw_bytes[:4] != ZSTD_MAGIC:
        return raw_bytes

    dctx = zstd.ZstdDecompressor()
    try:
        return dctx.decompress(raw_bytes, max_output_size=10*1024*1024)  # 10MB max
    except zstd.ZstdError:
        # Frames without a content size header need the streaming reader
        decompressed = bytearray()
        try:
            with dctx.stream_reader(raw_bytes) as reader:
                while True:
                    chunk = reader.read(8192)
                    if not chunk:
                        break
                    decompressed.extend(chunk)
        except zstd.ZstdError as e:
            raise ParseError(f"Failed to decompress zstd content: {e}") from e
        return bytes(decompressed)


def _to_alternatives(playlist_url: str, stream: m3u8.Playlist) -> Tuple[Alternative, ...]:
    # Renditions carried in-band have no URI and nothing to fetch
    return tuple(
        Alternative(
            uri=build_absolute_url(playlist_url, media.uri),
            type=media.type,
            group_id=media.group_id,
            name=media.name,
        )
        for media in stream.media
        if media.uri
    )


VARIANT_TAGS = ('#EXT-X-STREAM-INF', '#EXT-X-I-FRAME-STREAM-INF')


def _declared_iframe_flags(content: str) -> List[bool]:
    # m3u8 lists I-frame streams apart from the others; the tag order restores
    # the position of each variant as declared
    return [
        line.startswith('#EXT-X-I-FRAME-STREAM-INF')
        for line in content.splitlines()
        if line.startswith(VARIANT_TAGS)
    ]


def _to_master(playlist_url: str, parsed: m3u8.M3U8, content: str) -> MasterPlaylist:
    streams = iter([
        Variant(
            uri=build_absolute_url(playlist_url, stream.uri),
            alternatives=_to_alternatives(playlist_url, stream),
        )
        for stream in parsed.playlists
    ])
    iframes = iter([
        Variant(uri=build_absolute_url(playlist_url, stream.uri), iframe=True)
        for stream in parsed.iframe_playlists
    ])

    variants = []
    for is_iframe in _declared_iframe_flags(content):
        variant = next(iframes if is_iframe else streams, None)
        if variant is not None:
            variants.append(variant)
    variants += list(streams) + list(iframes)
    return MasterPlaylist(uri=playlist_url, variants=variants)


def _to_media(playlist_url: str, parsed: m3u8.M3U8) -> MediaPlaylist:
    segments = [
        Segment(uri=build_absolute_url(playlist_url, segment.uri)) if segment.uri else None
        for segment in parsed.segments
    ]
    key = next((k for k in parsed.keys if k is not None and k.method != 'NONE'), None)
    if key is not None:
        key = EncryptionKey(
            method=key.method,
            uri=build_absolute_url(playlist_url, key.uri) if key.uri else None,
            iv=key.iv,
        )
    return MediaPlaylist(uri=playlist_url, key=key, segments=segments)


class PlaylistResolver:
    """Turns fetched manifest bytes into a MasterPlaylist or MediaPlaylist."""

    def resolve(self, data: bytes, uri: str) -> Tuple[Playlist, PlaylistKind]:
        """
        Parse playlist bytes fetched from uri.
        Return the typed playlist and its kind.
        """
        try:
            content = decompress_zstd(data).decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise ParseError(f"playlist at {uri} is not valid UTF-8: {e}") from e

        if not content.lstrip().startswith('#EXTM3U'):
            raise ParseError(f"playlist at {uri} is missing the #EXTM3U header")

        try:
            parsed = m3u8.loads(content, uri=uri)
        except (M3U8ParseError, ValueError) as e:
            raise ParseError(f"unable to parse playlist at {uri}: {e}") from e

        if parsed.is_variant:
            return _to_master(uri, parsed, content), PlaylistKind.MASTER

        return _to_media(uri, parsed), PlaylistKind.MEDIA

    def resolve_as(self, data: bytes, uri: str, expected: PlaylistKind) -> Playlist:
        """
        Parse playlist bytes and require a specific kind.
        """
        playlist, kind = self.resolve(data, uri)
        if kind is not expected:
            raise TypeMismatchError(f"manifest must be of {expected.value} type, got {kind.value}: {uri}")
        return playlist
