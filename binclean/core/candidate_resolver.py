"""Turns build unit outputs into concrete directories to delete."""

import os
import logging
from typing import Callable, Dict, List, Optional, Tuple

from ..entities import BuildUnitRecord, CleanOptions, OutputKind, ProjectFamily, ProjectKind
from ..utils.exceptions import PolicyNotImplementedError
from .aggregator import BuildUnitAggregator
from .path_resolver import path_key
from .tfm import TfmCatalog

logger = logging.getLogger(__name__)

ResolvedCandidate = Tuple[str, OutputKind]
Strategy = Callable[[str, BuildUnitRecord], List[str]]


class CandidateResolver:
    """Resolves each output of a gated record through a (family, kind) strategy table."""

    def __init__(
        self,
        aggregator: BuildUnitAggregator,
        options: Optional[CleanOptions] = None,
        tfms: Optional[TfmCatalog] = None,
    ):
        """
        Initialize candidate resolver.

        Args:
            aggregator: Aggregator holding the records; receives the processed flag
            options: Policy switches (structure validation, non-current only)
            tfms: Target framework names; defaults to the known list plus options.extra_tfms
        """
        self.aggregator = aggregator
        self.options = options or CleanOptions()
        self.tfms = tfms or TfmCatalog(self.options.extra_tfms)
        self._strategies: Dict[Tuple[ProjectFamily, OutputKind], Strategy] = {
            (ProjectFamily.NATIVE, OutputKind.OUT): self._resolve_direct,
            (ProjectFamily.NATIVE, OutputKind.BASE_OUTPUT): self._resolve_direct,
            (ProjectFamily.NATIVE, OutputKind.BASE_INTERMEDIATE): self._resolve_direct,
            (ProjectFamily.MANAGED, OutputKind.OUT): self._resolve_primary_output,
            (ProjectFamily.MANAGED, OutputKind.BASE_OUTPUT): self._resolve_undefined,
            (ProjectFamily.MANAGED, OutputKind.BASE_INTERMEDIATE): self._resolve_direct,
        }

    def strategy_for(self, project_kind: ProjectKind, output_kind: OutputKind) -> Optional[Strategy]:
        family = project_kind.family
        if family is None:
            return None
        return self._strategies[(family, output_kind)]

    def resolve(self, record: BuildUnitRecord) -> List[ResolvedCandidate]:
        """
        Resolve all outputs of a record to candidate directories.

        The record is marked processed afterwards, also when a strategy raises.

        Args:
            record: Build unit that passed the safety gate

        Returns:
            Distinct (directory, output kind) pairs

        Raises:
            PolicyNotImplementedError: If an output kind has no defined policy
            KeyError: If the record was not aggregated by this resolver's aggregator
        """
        if self.aggregator.get(record.key) is None:
            raise KeyError(f"{record.key} is not a record of this aggregator")
        if record.processed or self.aggregator.is_processed(record.key):
            logger.debug(f"{record.key} already processed")
            return []

        results: List[ResolvedCandidate] = []
        seen = set()
        try:
            for output in dict.fromkeys(record.outputs):
                logger.debug(f"Process {output.path} [{output.kind.value}]")
                strategy = self.strategy_for(record.project_kind, output.kind)
                if strategy is None:
                    logger.warning(f"Unsupported project type: {record.key}")
                    break
                for path in strategy(output.path, record):
                    key = path_key(path)
                    if key in seen:
                        continue
                    seen.add(key)
                    results.append((path, output.kind))
                    logger.debug(f"Directory marked for deletion: {path}")
        finally:
            self.aggregator.mark_processed(record.key)

        return results

    def _resolve_direct(self, path: str, record: BuildUnitRecord) -> List[str]:
        return [path] if os.path.isdir(path) else []

    def _resolve_undefined(self, path: str, record: BuildUnitRecord) -> List[str]:
        # TODO: decide whether BaseOutputPath should reuse the OutDir heuristics.
        raise PolicyNotImplementedError(
            f"No cleanup policy defined for BaseOutputPath of managed project {record.key}: {path}"
        )

    def _resolve_primary_output(self, path: str, record: BuildUnitRecord) -> List[str]:
        if not self.options.validate_structure:
            return self._resolve_direct(path, record)

        leaf = os.path.basename(path)
        config_dir = os.path.dirname(path)
        if not (self.tfms.is_tfm_name(leaf) and record.has_configuration(os.path.basename(config_dir))):
            logger.debug(f"{path} does not follow <configuration>/<tfm> layout")
            return self._resolve_direct(path, record)

        if not os.path.isdir(config_dir):
            logger.debug(f"{config_dir} does not exist.")
            return []

        only_noncurrent = self.options.only_noncurrent
        has_files, subdirs = self._list_config_dir(config_dir)
        polluted = has_files or any(not self.tfms.is_tfm_name(name) for name in subdirs)
        logger.debug(f"{path} onlyNonCurrent: {only_noncurrent}")

        if only_noncurrent or polluted:
            logger.debug(
                f"{config_dir} contains files or directories which don't match tfm format. "
                f"Selectively adding subdirectories ..."
            )
        else:
            logger.debug(f"{config_dir} only holds target framework folders")

        return [
            os.path.join(config_dir, name)
            for name in sorted(subdirs)
            if self.tfms.is_tfm_name(name) and not (only_noncurrent and record.targets_framework(name))
        ]

    @staticmethod
    def _list_config_dir(config_dir: str) -> Tuple[bool, List[str]]:
        has_files = False
        subdirs = []
        with os.scandir(config_dir) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(entry.name)
                else:
                    has_files = True
        return has_files, subdirs
