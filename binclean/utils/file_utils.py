"""File utilities for enumerating build outputs and writing reports."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Iterator, Optional, Tuple
from datetime import datetime

logger = logging.getLogger(__name__)


def iter_files(root: str, max_depth: int = 10) -> Iterator[str]:
    """
    Yield files below a directory, descending at most ``max_depth`` levels.

    Files directly inside ``root`` are at depth 0. Unreadable directories are
    skipped.

    Args:
        root: Directory to enumerate
        max_depth: Maximum number of directory levels to descend

    Yields:
        Absolute file paths
    """
    root = os.path.abspath(root)
    base_depth = root.rstrip(os.sep).count(os.sep)

    def _on_error(error: OSError) -> None:
        logger.debug(f"Skipping unreadable directory {error.filename}: {error.strerror}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        depth = dirpath.rstrip(os.sep).count(os.sep) - base_depth
        if depth >= max_depth:
            dirnames[:] = []
        for name in filenames:
            yield os.path.join(dirpath, name)


def directory_stats(root: str, max_depth: int = 10) -> Tuple[int, int]:
    """
    Count files and sum their sizes below a directory.

    Args:
        root: Directory to measure
        max_depth: Maximum number of directory levels to descend

    Returns:
        Tuple of (file_count, total_bytes)
    """
    count = 0
    total = 0
    for file_path in iter_files(root, max_depth):
        try:
            total += os.lstat(file_path).st_size
        except OSError as e:
            logger.debug(f"Cannot stat {file_path}: {e}")
            continue
        count += 1
    return count, total


def is_empty_dir(path: str) -> bool:
    """Return True when the directory has neither files nor subdirectories."""
    with os.scandir(path) as entries:
        return next(entries, None) is None


def write_json_file(file_path: str, data: Any, indent: int = 2) -> None:
    """
    Write data to JSON file.

    Args:
        file_path: Output file path
        data: Data to write
        indent: JSON indentation level
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=indent)

    logger.info(f"JSON file written to: {file_path}")


def read_json_file(file_path: str) -> Any:
    """
    Read JSON file.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed JSON data
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    with open(path, "r", encoding="utf-8-sig") as f:
        return json.load(f)


def generate_output_filename(
    prefix: str,
    suffix: str,
    project_name: Optional[str] = None,
    use_timestamp: bool = True,
) -> str:
    """
    Generate output filename with optional project name and timestamp.

    Args:
        prefix: Filename prefix
        suffix: File extension (e.g., 'json')
        project_name: Optional project name to include
        use_timestamp: Whether to include timestamp

    Returns:
        Generated filename
    """
    parts = []

    if project_name:
        parts.append(project_name)

    parts.append(prefix)

    if use_timestamp:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        parts.append(timestamp)

    filename = "_".join(parts) + f".{suffix}"
    return filename
