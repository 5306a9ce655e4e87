"""
Fetch, decrypt and padding-check a single media segment.
"""

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from Crypto.Cipher import AES

from segcheck.errors import EmptyBodyError
from segcheck.fetcher import PlaylistFetcher
from segcheck.keys import DecryptionContext
from segcheck.writer import write_file


log = logging.getLogger(__name__)


class SegmentStatus(enum.Enum):
    VALID = 'valid'
    PADDING_ERROR = 'padding_error'


@dataclass(frozen=True)
class SegmentOutcome:
    uri: str
    index: int
    status: SegmentStatus
    data: bytes
    # Where the decrypted bytes were written, None when they were not kept
    path: Optional[Path] = None

    @property
    def is_valid(self) -> bool:
        return self.status is SegmentStatus.VALID


def classify_padding(decrypted: bytes) -> SegmentStatus:
    """
    Check that a decrypted buffer ends in a PKCS#7 padding block.

    The last byte p gives the padding length. p must be between 1 and the
    block size, and the last p bytes must all equal p.
    """
    if not decrypted:
        raise EmptyBodyError("cannot check padding of an empty buffer")

    padding_length = decrypted[-1]
    if padding_length == 0 or padding_length > AES.block_size:
        return SegmentStatus.PADDING_ERROR

    padding = decrypted[len(decrypted) - padding_length:]
    if any(b != padding_length for b in padding):
        return SegmentStatus.PADDING_ERROR

    return SegmentStatus.VALID


def segment_filename(index: int, status: SegmentStatus) -> str:
    if status is SegmentStatus.PADDING_ERROR:
        return f"error_segment{index}.m4f"
    return f"segment{index}.m4f"


class SegmentProcessor:
    """
    Downloads one segment, decrypts it and writes it out when needed.
    Padding errors are always written; valid segments only with save_segments.
    """

    def __init__(self, fetcher: PlaylistFetcher, save_segments: bool = False):
        self.fetcher = fetcher
        self.save_segments = save_segments

    def process(self, uri: str, context: DecryptionContext, folder: Path, index: int) -> SegmentOutcome:
        body = self.fetcher.fetch(uri)
        if not body:
            raise EmptyBodyError(f"segment {index} at {uri} has an empty body")

        decrypted = context.decrypt(body)
        status = classify_padding(decrypted)

        path = None
        if status is SegmentStatus.PADDING_ERROR:
            print(f"Error segment padding incorrect on segment: {uri}")
            path = write_file(folder, segment_filename(index, status), decrypted)
        elif self.save_segments:
            path = write_file(folder, segment_filename(index, status), decrypted)
        else:
            log.debug(f"Segment {index} valid: {uri}")

        return SegmentOutcome(uri=uri, index=index, status=status, data=decrypted, path=path)
