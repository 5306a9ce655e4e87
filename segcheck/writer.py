"""
Output folders and segment files.
"""

import logging
import shutil
from pathlib import Path

from segcheck.errors import FilesystemError


log = logging.getLogger(__name__)


def clear_folder(folder: Path) -> None:
    """
    Remove a segment folder left over from an earlier run.
    A missing folder is not an error.
    """
    try:
        shutil.rmtree(folder)
    except FileNotFoundError:
        return
    except OSError as e:
        raise FilesystemError(f"Failed to clear {folder}: {e}") from e


def write_file(folder: Path, filename: str, data: bytes) -> Path:
    """
    Write bytes to folder/filename, creating the folder and its parents.
    Return the path written.
    """
    output_file = Path(folder) / filename
    try:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'wb') as f:
            f.write(data)
    except OSError as e:
        raise FilesystemError(f"Failed to write {output_file}: {e}") from e

    log.debug(f"Wrote {len(data)} bytes to {output_file}")
    return output_file
