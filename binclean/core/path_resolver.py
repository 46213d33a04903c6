"""Rooting and containment checks for untrusted path strings."""

import os
import logging

from ..utils.exceptions import InvalidPathError

logger = logging.getLogger(__name__)

DEVICE_PREFIX = "\\\\.\\"
EXTENDED_PREFIX = "\\\\?\\"

if os.name == "nt":
    INVALID_PATH_CHARS = frozenset('"<>|' + "".join(chr(code) for code in range(32)))
else:
    INVALID_PATH_CHARS = frozenset("\0")


def ensure_rooted(path: str, base_dir: str) -> str:
    """
    Combine a possibly relative path with ``base_dir`` and normalize it.

    Args:
        path: Absolute or relative path
        base_dir: Directory relative paths are resolved against

    Returns:
        Fully qualified path without ``.``/``..`` segments or trailing separator

    Raises:
        InvalidPathError: For raw device paths
    """
    if path.startswith(DEVICE_PREFIX):
        raise InvalidPathError(f"Device paths prefixed with {DEVICE_PREFIX} are not supported: {path}", path=path)

    if path.startswith(EXTENDED_PREFIX):
        remainder = path[len(EXTENDED_PREFIX):]
        if not remainder:
            return os.path.abspath(base_dir)
        return ensure_rooted(remainder, base_dir)

    if os.path.isabs(path):
        return os.path.abspath(path)

    return os.path.abspath(os.path.join(base_dir, path))


def root_path(candidate: str, base_dir: str) -> str:
    """
    Validate an untrusted path string and root it against ``base_dir``.

    A bare ``.`` or ``..`` is resolved against the current working directory,
    not ``base_dir``.

    Args:
        candidate: Path as reported by a build tool or user
        base_dir: Directory relative candidates are resolved against

    Returns:
        Fully qualified, normalized path

    Raises:
        InvalidPathError: If the candidate is empty, a device path, home-relative
            or contains characters invalid for the filesystem
    """
    if candidate is None or not candidate.strip():
        raise InvalidPathError("Empty path", path=candidate)

    if candidate in (".", ".."):
        return ensure_rooted(candidate, os.getcwd())

    stripped = candidate.lstrip()
    if stripped.startswith(DEVICE_PREFIX):
        raise InvalidPathError(f"Device paths are not supported: {candidate}", path=candidate)
    if stripped.startswith("~"):
        raise InvalidPathError(f"Home-relative paths are not supported: {candidate}", path=candidate)
    if any(ch in INVALID_PATH_CHARS for ch in candidate):
        raise InvalidPathError(f"Path contains invalid characters: {candidate!r}", path=candidate)

    return ensure_rooted(candidate, base_dir)


def is_nested_strictly_below(target: str, base_dir_rooted: str) -> bool:
    """
    Check whether ``target`` lies inside ``base_dir_rooted``.

    Answers "would ``target`` be destroyed if ``base_dir_rooted`` were
    removed?". A directory is not nested below itself, and a sibling sharing a
    name prefix (``/a/bin`` vs ``/a/binx``) is not nested.

    Args:
        target: Absolute path, or a path relative to ``base_dir_rooted``
        base_dir_rooted: Absolute directory path

    Returns:
        True if ``target`` has at least one more path segment below the base
    """
    if target is None or not target.strip() or target in (".", ".."):
        return False

    rooted = os.path.normcase(ensure_rooted(target, base_dir_rooted))
    base = os.path.normcase(os.path.abspath(base_dir_rooted))

    if rooted == base:
        return False

    prefix = base if base.endswith(os.sep) else base + os.sep
    return rooted.startswith(prefix)


def path_key(path: str) -> str:
    """Comparison key that ignores trailing separators and, where the platform does, case."""
    return os.path.normcase(os.path.abspath(path))
