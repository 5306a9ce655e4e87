#!/usr/bin/env python3
"""
Main entry point for the HLS segment padding checker.
"""

import argparse
import logging
import sys

from segcheck import __version__
from segcheck import pipeline
from segcheck.config import DEFAULT_WORKERS, CheckConfig
from segcheck.errors import SegcheckError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Decrypt AES-128 HLS segments and report the ones with broken padding',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Every rendition of a master playlist
  python checker.py -m "https://.../master.m3u8"

  # A single media playlist, keeping every decrypted segment
  python checker.py -m "https://.../chunklist.m3u8" -y media -s
        """
    )
    parser.add_argument('-m', '--manifest', default='',
                        help='manifest uri to be called. If the uri isn\'t signed, a manifest token will be required')
    parser.add_argument('-y', '--type', default='master',
                        help='OPTIONAL, can be "master" or "media" types')
    parser.add_argument('-s', '--save', action='store_true',
                        help='when present, all segments will be saved, and not only error segments')
    parser.add_argument('-o', '--out-dir', help='output directory (optional)')
    parser.add_argument('-w', '--workers', type=int, default=DEFAULT_WORKERS,
                        help=f'concurrent tasks per playlist (default {DEFAULT_WORKERS})')
    parser.add_argument('-v', '--verbose', action='store_true', help='debug logging')
    return parser


def print_summary(reports) -> None:
    print("-" * 80)
    for report in reports:
        status = "OK" if not report.padding_errors else f"{len(report.padding_errors)} padding errors"
        print(f"{report.folder}: {report.total} segments, {status}")
        if report.padding_errors:
            print(f"  error segments: {', '.join(str(i) for i in report.padding_errors)}")
    print("-" * 80)


def main(argv=None) -> int:
    """
    Check every segment reachable from the given manifest.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    print(f"segcheck / v{__version__}\n")

    try:
        config = CheckConfig.from_args(args)
        reports = pipeline.start(config)
    except SegcheckError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print_summary(reports)
    print("\nDone!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
