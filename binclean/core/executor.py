"""Executes a deletion plan under a confirmation policy."""

import os
import shutil
import logging
from typing import Callable, Dict, Optional, Tuple

from ..entities import (
    CleanOptions,
    ConfirmKind,
    ConfirmLevel,
    DeletionCandidate,
    DeletionFailure,
    DeletionPlan,
    ExecutionResult,
)
from ..utils.exceptions import DeletionError
from ..utils.file_utils import is_empty_dir, iter_files

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[ConfirmKind, str], bool]


def always_confirm(kind: ConfirmKind, path: str) -> bool:
    return True


class DeletionExecutor:
    """Deletes planned directories and loose files, best effort."""

    def __init__(self, options: Optional[CleanOptions] = None, confirm: Optional[ConfirmCallback] = None):
        """
        Initialize executor.

        Args:
            options: Policy switches (confirm level, files only, delete empty directories)
            confirm: Callback asked before destructive actions; defaults to yes
        """
        self.options = options or CleanOptions()
        self.confirm = confirm or always_confirm
        self._decisions: Dict[Tuple[ConfirmKind, str], bool] = {}

    def execute(self, plan: DeletionPlan) -> ExecutionResult:
        """
        Delete directories, then loose files, in lexicographic order.

        A failure on one path is recorded and the run continues.

        Args:
            plan: Deduplicated plan

        Returns:
            What was deleted, skipped and what failed
        """
        result = ExecutionResult()

        for candidate in plan.sorted_directories:
            self._delete_directory(candidate, result)

        for file_path in plan.sorted_files:
            if not os.path.isfile(file_path):
                continue
            if not self._approved(ConfirmKind.SINGLE_FILE, file_path):
                result.skipped.append(file_path)
                continue
            logger.debug(f"Deleting {file_path}")
            try:
                self._remove(os.unlink, file_path)
                result.deleted_files.append(file_path)
            except DeletionError as e:
                self._record_failure(result, e)

        if result.failures:
            logger.warning(f"{len(result.failures)} deletions failed")
        return result

    def _delete_directory(self, candidate: DeletionCandidate, result: ExecutionResult) -> None:
        path = candidate.path
        if not os.path.isdir(path):
            return

        try:
            empty = is_empty_dir(path)
        except OSError as e:
            self._record_failure(result, DeletionError(f"Cannot read {path}: {e}", path=path))
            return

        if empty:
            if not self.options.force_delete_if_empty:
                logger.debug(f"{path} is empty.")
                result.skipped.append(path)
                return
            if not self._approved(ConfirmKind.DIRECTORY, path, candidate):
                result.skipped.append(path)
                return
            logger.debug(f"Deleting {path}")
            try:
                self._remove(os.rmdir, path)
                result.deleted_directories.append(path)
            except DeletionError as e:
                self._record_failure(result, e)
            return

        if self.options.files_only:
            if not self._approved(ConfirmKind.FILES_UNDER_DIRECTORY, path, candidate):
                result.skipped.append(path)
                return
            for file_path in list(iter_files(path, self.options.max_enumeration_depth)):
                logger.debug(f"Deleting {file_path}")
                try:
                    self._remove(os.unlink, file_path)
                    result.deleted_files.append(file_path)
                except DeletionError as e:
                    self._record_failure(result, e)
            return

        if not self._approved(ConfirmKind.DIRECTORY, path, candidate):
            result.skipped.append(path)
            return
        logger.debug(f"Deleting {path}")
        try:
            self._remove(shutil.rmtree, path)
            result.deleted_directories.append(path)
        except DeletionError as e:
            self._record_failure(result, e)

    def _approved(self, kind: ConfirmKind, path: str, candidate: Optional[DeletionCandidate] = None) -> bool:
        level = self.options.confirm
        if level is ConfirmLevel.FORCE:
            return True
        if candidate is not None:
            if level is ConfirmLevel.SOLUTION and candidate.containers:
                return all(self._scoped(ConfirmKind.CONTAINER, container) for container in candidate.containers)
            if level in (ConfirmLevel.SOLUTION, ConfirmLevel.PROJECT) and candidate.contributors:
                return all(self._scoped(ConfirmKind.BUILD_UNIT, unit) for unit in candidate.contributors)
        return bool(self.confirm(kind, path))

    def _scoped(self, kind: ConfirmKind, scope: str) -> bool:
        key = (kind, scope)
        if key not in self._decisions:
            self._decisions[key] = bool(self.confirm(kind, scope))
        return self._decisions[key]

    @staticmethod
    def _remove(remove: Callable[[str], None], path: str) -> None:
        try:
            remove(path)
        except OSError as e:
            raise DeletionError(f"Deletion of {path} failed with: {e.strerror or e}", path=path) from e

    @staticmethod
    def _record_failure(result: ExecutionResult, error: DeletionError) -> None:
        logger.error(str(error))
        result.failures.append(DeletionFailure(path=error.path, message=str(error)))
