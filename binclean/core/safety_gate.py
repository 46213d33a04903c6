"""All-or-nothing veto for build units whose outputs contain descriptor files."""

import logging

from ..entities import BuildUnitRecord
from ..utils.exceptions import InvalidPathError, UnsafeDeletionError
from .path_resolver import is_nested_strictly_below

logger = logging.getLogger(__name__)


class SafetyGate:
    """Rejects a record if deleting any of its outputs would remove a project,
    solution or the directory that discovered it."""

    def check(self, record: BuildUnitRecord) -> None:
        """
        Raise if any output directory contains a descriptor path.

        Args:
            record: Aggregated build unit

        Raises:
            UnsafeDeletionError: On the first conflicting (descriptor, output) pair
        """
        descriptors = sorted(record.descriptor_paths)
        for output in record.outputs:
            for descriptor in descriptors:
                try:
                    nested = is_nested_strictly_below(descriptor, output.path)
                except InvalidPathError as e:
                    raise UnsafeDeletionError(
                        f"Cannot verify {output.path} against {descriptor}: {e}",
                        unit_path=record.key,
                        output_path=output.path,
                        descriptor_path=descriptor,
                    ) from e
                if nested:
                    raise UnsafeDeletionError(
                        f"{descriptor} lies below output directory {output.path}",
                        unit_path=record.key,
                        output_path=output.path,
                        descriptor_path=descriptor,
                    )

    def is_safe_to_process(self, record: BuildUnitRecord) -> bool:
        try:
            self.check(record)
        except UnsafeDeletionError as e:
            logger.warning(f"Directories of {record.key} cannot be safely deleted: {e}")
            return False
        return True
