"""
Concurrent master and media playlist pipelines.

A master playlist fans out one media pipeline per variant and alternative;
each media pipeline fans out one task per segment. The first error in any
task cancels the tasks that have not started yet and is re-raised to the
caller once the running ones have finished.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from segcheck.config import MANIFEST_TYPES, CheckConfig
from segcheck.errors import ConfigError, PipelineCancelled
from segcheck.fetcher import PlaylistFetcher
from segcheck.keys import DecryptionContext, KeyMaterialProvider
from segcheck.playlist import PlaylistKind, PlaylistResolver
from segcheck.segments import SegmentOutcome, SegmentProcessor
from segcheck.writer import clear_folder


log = logging.getLogger(__name__)

MEDIA_FOLDER = 'media'


@dataclass
class MediaReport:
    """Summary of one media playlist run."""
    uri: str
    folder: Path
    valid: List[int] = field(default_factory=list)
    padding_errors: List[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.valid) + len(self.padding_errors)

    def add(self, outcome: SegmentOutcome) -> None:
        if outcome.is_valid:
            self.valid.append(outcome.index)
        else:
            self.padding_errors.append(outcome.index)


def video_folder(variant_index: int) -> str:
    return f"video_{variant_index}"


def audio_folder(variant_index: int, alternative_index: int) -> str:
    return f"audio_{variant_index}_{alternative_index}"


def iter_results(futures: Iterable[Future], cancel_event: threading.Event) -> Iterator:
    """
    Yield task results as they complete.

    On the first failure, cancel the tasks that have not started and wait for
    the running ones. Then raise the first error that is not a
    PipelineCancelled: a sibling skipped because of the failure can finish
    before the task that actually failed.
    """
    futures = list(futures)
    for future in as_completed(futures):
        error = future.exception()
        if error is None:
            yield future.result()
            continue

        cancel_event.set()
        started = [f for f in futures if not f.cancel()]
        wait(started)
        if isinstance(error, PipelineCancelled):
            errors = [f.exception() for f in started if f.exception() is not None]
            error = next((e for e in errors if not isinstance(e, PipelineCancelled)), error)
        raise error


class MediaPipeline:
    """Decrypts and checks every segment of one media playlist."""

    def __init__(self, config: CheckConfig, fetcher: PlaylistFetcher,
                 resolver: Optional[PlaylistResolver] = None,
                 key_provider: Optional[KeyMaterialProvider] = None,
                 processor: Optional[SegmentProcessor] = None):
        self.config = config
        self.fetcher = fetcher
        self.resolver = resolver or PlaylistResolver()
        self.key_provider = key_provider or KeyMaterialProvider(fetcher)
        self.processor = processor or SegmentProcessor(fetcher, save_segments=config.save_segments)

    def _process(self, uri: str, context: DecryptionContext, folder: Path, index: int,
                 cancel_event: threading.Event) -> SegmentOutcome:
        if cancel_event.is_set():
            raise PipelineCancelled(f"segment {index} skipped after an earlier failure")
        return self.processor.process(uri, context, folder, index)

    def run(self, uri: str, folder: str = MEDIA_FOLDER,
            cancel_event: Optional[threading.Event] = None) -> MediaReport:
        """
        Fetch the media playlist at uri and check all of its segments.
        Files land in <output_dir>/<folder>, which is emptied first.
        """
        if cancel_event is None:
            cancel_event = threading.Event()
        if cancel_event.is_set():
            raise PipelineCancelled(f"media playlist {uri} skipped after an earlier failure")

        playlist = self.resolver.resolve_as(self.fetcher.fetch(uri), uri, PlaylistKind.MEDIA)
        indexed = [(index, segment) for index, segment in enumerate(playlist.segments) if segment is not None]

        output_folder = Path(self.config.output_dir) / folder
        report = MediaReport(uri=uri, folder=output_folder)
        if not indexed:
            clear_folder(output_folder)
            print(f"No segments in: {uri}")
            return report

        context = self.key_provider.resolve(playlist)
        clear_folder(output_folder)

        print(f"Starting decryption for: {uri}")

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = [
                executor.submit(self._process, segment.uri, context, output_folder, index, cancel_event)
                for index, segment in indexed
            ]
            for outcome in iter_results(futures, cancel_event):
                report.add(outcome)

        report.valid.sort()
        report.padding_errors.sort()
        log.debug(f"{uri}: {report.total} segments, {len(report.padding_errors)} padding errors")
        return report


class MasterPipeline:
    """Runs a media pipeline for every rendition of a master playlist."""

    def __init__(self, config: CheckConfig, fetcher: PlaylistFetcher,
                 resolver: Optional[PlaylistResolver] = None,
                 media_pipeline: Optional[MediaPipeline] = None):
        self.config = config
        self.fetcher = fetcher
        self.resolver = resolver or PlaylistResolver()
        self.media_pipeline = media_pipeline or MediaPipeline(config, fetcher, self.resolver)

    def run(self, uri: str) -> List[MediaReport]:
        """
        Fetch the master playlist at uri and check every non I-frame variant
        plus the alternatives attached to it.
        Return one report per rendition, in playlist order.
        """
        playlist = self.resolver.resolve_as(self.fetcher.fetch(uri), uri, PlaylistKind.MASTER)

        cancel_event = threading.Event()
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = []
            for i, variant in enumerate(playlist.variants):
                # I-frame streams carry no decryptable payload to check
                if variant.iframe:
                    continue

                futures.append(executor.submit(
                    self.media_pipeline.run, variant.uri, video_folder(i), cancel_event))

                for j, alternative in enumerate(variant.alternatives):
                    futures.append(executor.submit(
                        self.media_pipeline.run, alternative.uri, audio_folder(i, j), cancel_event))

            # Drain in completion order, report in submission order
            for _ in iter_results(futures, cancel_event):
                pass

        return [future.result() for future in futures]


def start(config: CheckConfig, fetcher: Optional[PlaylistFetcher] = None) -> List[MediaReport]:
    """
    Run the pipeline matching config.manifest_type.
    """
    if config.manifest_type not in MANIFEST_TYPES:
        raise ConfigError(f'type "{config.manifest_type}" isn\'t supported')

    owns_fetcher = fetcher is None
    if owns_fetcher:
        fetcher = PlaylistFetcher(token=config.token)

    try:
        if config.manifest_type == 'master':
            return MasterPipeline(config, fetcher).run(config.manifest_uri)
        return [MediaPipeline(config, fetcher).run(config.manifest_uri, MEDIA_FOLDER)]
    finally:
        if owns_fetcher:
            fetcher.close()
