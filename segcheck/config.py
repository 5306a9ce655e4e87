"""
Run configuration, built once from the command line and the environment.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from segcheck.errors import ConfigError
from segcheck.url_utils import is_gated_url


MANIFEST_TYPES = ('master', 'media')
TOKEN_ENV_VAR = 'SEGCHECK_TOKEN'
DEFAULT_WORKERS = 25


@dataclass(frozen=True)
class CheckConfig:
    """Immutable settings shared by every pipeline of one run."""

    manifest_uri: str
    manifest_type: str = 'master'
    save_segments: bool = False
    output_dir: str = '.'
    max_workers: int = DEFAULT_WORKERS
    token: Optional[str] = None

    def validate(self) -> 'CheckConfig':
        """
        Check the settings before any request is made.
        Return self so construction and validation can be chained.
        """
        if not self.manifest_uri:
            raise ConfigError("no manifest uri provided")

        if self.manifest_type not in MANIFEST_TYPES:
            raise ConfigError(f'type "{self.manifest_type}" isn\'t supported')

        if self.max_workers < 1:
            raise ConfigError(f"workers must be at least 1, got {self.max_workers}")

        if is_gated_url(self.manifest_uri) and not self.token:
            raise ConfigError(f"no token provided on gated request (set {TOKEN_ENV_VAR})")

        return self

    @classmethod
    def from_args(cls, args, environ: Optional[Mapping[str, str]] = None) -> 'CheckConfig':
        """
        Build a validated config from parsed argparse arguments.
        """
        if environ is None:
            environ = os.environ

        return cls(
            manifest_uri=args.manifest or '',
            manifest_type=args.type,
            save_segments=args.save,
            output_dir=args.out_dir or os.getcwd(),
            max_workers=args.workers,
            token=environ.get(TOKEN_ENV_VAR) or None,
        ).validate()
