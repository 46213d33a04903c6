"""Deduplicated deletion plan, size statistics and dry-run commands."""

import os
import shlex
import logging
import threading
from typing import List, Optional

from ..entities import (
    BuildUnitRecord,
    CleanOptions,
    DeletionCandidate,
    DeletionPlan,
    OutputKind,
    PlanEntry,
    PlanSummary,
)
from ..utils.exceptions import InvalidPathError
from ..utils.file_utils import directory_stats
from .path_resolver import path_key, root_path

logger = logging.getLogger(__name__)


class DeletionPlanner:
    """Collects candidates from all build units into one plan."""

    def __init__(self, options: Optional[CleanOptions] = None):
        self.options = options or CleanOptions()
        self._lock = threading.Lock()
        self.plan = DeletionPlan()

    def add_directory(self, path: str, record: BuildUnitRecord, kind: OutputKind = OutputKind.OUT) -> DeletionCandidate:
        """
        Merge a resolved directory into the plan.

        Paths that differ only by casing (where the platform ignores it) or a
        trailing separator share one entry.

        Args:
            path: Absolute directory path
            record: Contributing build unit
            kind: Output kind the directory was resolved from

        Returns:
            The plan entry for the directory
        """
        path = os.path.abspath(path)
        key = path_key(path)
        with self._lock:
            candidate = self.plan.directories.get(key)
            if candidate is None:
                candidate = DeletionCandidate(path=path)
                self.plan.directories[key] = candidate
            candidate.add_contributor(record, kind)
        return candidate

    def add_file(self, path: str) -> None:
        """Add a loose file (e.g. a stale package) to the plan."""
        try:
            path = root_path(path, os.getcwd())
        except InvalidPathError as e:
            logger.warning(f"Ignoring file: {e}")
            return
        with self._lock:
            self.plan.files.setdefault(path_key(path), path)

    def summarize(self) -> PlanSummary:
        """
        Measure every existing candidate directory.

        Directories without any files are left out of the summary.

        Returns:
            Per-directory statistics, loose files and grand totals
        """
        summary = PlanSummary()
        summary.files = [path for path in self.plan.sorted_files if os.path.isfile(path)]

        for candidate in self.plan.sorted_directories:
            if not os.path.isdir(candidate.path):
                continue
            count, size = directory_stats(candidate.path, self.options.max_enumeration_depth)
            if count == 0 and size == 0:
                logger.debug(f"No files below {candidate.path}.")
                continue
            summary.entries.append(
                PlanEntry(
                    path=candidate.path,
                    file_count=count,
                    total_bytes=size,
                    contributors=list(candidate.contributors),
                )
            )
            summary.total_files += count
            summary.total_bytes += size
            logger.info(f"{count:4} files with {size // 1024:7} KiB below {candidate.path}")

        return summary


def render_removal_commands(summary: PlanSummary, windows: Optional[bool] = None) -> List[str]:
    """
    Build shell commands equivalent to the plan, one per file or directory.

    Args:
        summary: Plan summary
        windows: Emit cmd.exe syntax; defaults to the host platform

    Returns:
        Command lines, files first
    """
    if windows is None:
        windows = os.name == "nt"

    commands = []
    for file_path in summary.files:
        if windows:
            commands.append(f'del "{file_path}"')
        else:
            commands.append(f"rm -f -- {shlex.quote(file_path)}")
    for entry in summary.entries:
        if windows:
            commands.append(f'rmdir /q /s "{entry.path}"')
        else:
            commands.append(f"rm -rf -- {shlex.quote(entry.path)}")
    return commands
