"""Thread-safe aggregation of output observations into build unit records."""

import os
import logging
import threading
from typing import Dict, List, Optional, Set, Tuple

from ..entities import BuildUnitRecord, Observation, OutputEntry, ProjectKind
from ..utils.exceptions import InvalidPathError
from .path_resolver import path_key, root_path

logger = logging.getLogger(__name__)


class BuildUnitAggregator:
    """Merges observations into one record per build unit.

    Each merge builds a new immutable record and swaps it into the map under
    the lock, so concurrent writers never lose updates and readers only ever
    see complete snapshots.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._records: Dict[str, BuildUnitRecord] = {}

    def record(self, observation: Observation) -> None:
        """
        Upsert the record for ``observation.build_unit_path``.

        Args:
            observation: Resolved output path of one configuration
        """
        try:
            unit_path = root_path(
                observation.build_unit_path,
                observation.parent_container_path or os.getcwd(),
            )
        except InvalidPathError as e:
            logger.warning(f"Dropping observation with unusable build unit path: {e}")
            return

        parent = self._root_optional(observation.parent_container_path, os.getcwd(), "parent container")
        output_path = self._root_optional(observation.output_path, os.path.dirname(unit_path), "output")
        output = OutputEntry(path=output_path, kind=observation.output_kind) if output_path else None
        kind = observation.project_kind or ProjectKind.from_path(unit_path)
        key = path_key(unit_path)

        with self._lock:
            existing = self._records.get(key)
            if existing is None:
                updated = BuildUnitRecord(
                    key=unit_path,
                    project_kind=kind,
                    outputs=(output,) if output else (),
                    display_names={unit_path: observation.display_name},
                    configurations=frozenset({observation.configuration_name})
                    if observation.configuration_name else frozenset(),
                    target_frameworks=observation.target_framework_ids,
                    parent_containers=frozenset({parent}) if parent else frozenset(),
                )
            else:
                updated = existing.merged(
                    output,
                    unit_path=unit_path,
                    display_name=observation.display_name,
                    configuration=observation.configuration_name,
                    target_frameworks=observation.target_framework_ids,
                    parent_container=parent,
                )
            self._records[key] = updated

        logger.debug(
            f"Recorded {observation.output_kind.value} {output_path} for {unit_path} "
            f"[{observation.configuration_name}]"
        )

    @staticmethod
    def _root_optional(path: Optional[str], base_dir: str, label: str) -> Optional[str]:
        if not path:
            return None
        try:
            return root_path(path, base_dir)
        except InvalidPathError as e:
            logger.warning(f"Ignoring {label} path: {e}")
            return None

    def get(self, unit_path: str) -> Optional[BuildUnitRecord]:
        with self._lock:
            return self._records.get(path_key(unit_path))

    def records(self) -> List[BuildUnitRecord]:
        """Snapshot of all records, ordered by key."""
        with self._lock:
            snapshot = list(self._records.values())
        return sorted(snapshot, key=lambda record: record.key)

    def is_processed(self, unit_path: str) -> bool:
        record = self.get(unit_path)
        return record is not None and record.processed

    def mark_processed(self, unit_path: str) -> bool:
        """
        Flip the record's ``processed`` flag.

        Returns:
            True on the first call for a record, False if it was already processed

        Raises:
            KeyError: If no record exists for ``unit_path``
        """
        key = path_key(unit_path)
        with self._lock:
            record = self._records[key]
            if record.processed:
                return False
            self._records[key] = record.model_copy(update={"processed": True})
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class QueryGuard:
    """Suppresses duplicate property queries for the same (unit, configuration, platform)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._claimed: Set[Tuple[str, str, str]] = set()

    def try_claim(
        self,
        build_unit_path: str,
        configuration_name: Optional[str] = None,
        platform_name: Optional[str] = None,
    ) -> bool:
        """
        Atomically claim a query slot.

        Returns:
            True for the first caller with this compound key, False afterwards
        """
        key = (
            path_key(build_unit_path),
            (configuration_name or "").casefold(),
            (platform_name or "").casefold(),
        )
        with self._lock:
            if key in self._claimed:
                return False
            self._claimed.add(key)
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._claimed)
