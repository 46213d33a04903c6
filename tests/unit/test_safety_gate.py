"""Unit tests for the safety gate."""

import pytest

from binclean.core.aggregator import BuildUnitAggregator
from binclean.core.safety_gate import SafetyGate
from binclean.entities import Observation, OutputKind
from binclean.utils.exceptions import UnsafeDeletionError


def build_record(project, outputs, container=None):
    aggregator = BuildUnitAggregator()
    for output in outputs:
        aggregator.record(
            Observation(
                build_unit_path=str(project),
                output_path=str(output),
                output_kind=OutputKind.OUT,
                configuration_name="Debug",
                parent_container_path=str(container) if container else None,
            )
        )
    return aggregator.get(str(project))


class TestSafetyGate:
    """Test SafetyGate."""

    def test_regular_outputs_pass(self, tmp_path):
        project = tmp_path / "src" / "App" / "App.csproj"
        record = build_record(
            project,
            [tmp_path / "src" / "App" / "bin" / "Debug", tmp_path / "src" / "App" / "obj"],
            container=tmp_path,
        )

        SafetyGate().check(record)
        assert SafetyGate().is_safe_to_process(record)

    def test_output_containing_project_is_vetoed(self, tmp_path):
        """An OutDir that is an ancestor of the project file rejects the unit."""
        project = tmp_path / "src" / "App" / "App.csproj"
        record = build_record(project, [tmp_path / "src" / "App" / "bin", tmp_path / "src"])

        with pytest.raises(UnsafeDeletionError) as exc_info:
            SafetyGate().check(record)

        assert exc_info.value.descriptor_path == str(project)
        assert exc_info.value.output_path == str(tmp_path / "src")
        assert exc_info.value.unit_path == str(project)

    def test_output_containing_solution_directory_is_vetoed(self, tmp_path):
        project = tmp_path / "other" / "App.csproj"
        container = tmp_path / "shared" / "sln"
        record = build_record(project, [tmp_path / "shared"], container=container)

        with pytest.raises(UnsafeDeletionError) as exc_info:
            SafetyGate().check(record)
        assert exc_info.value.descriptor_path == str(container)

    def test_output_equal_to_project_directory_is_vetoed(self, tmp_path):
        project = tmp_path / "App" / "App.csproj"
        record = build_record(project, [tmp_path / "App"])

        assert not SafetyGate().is_safe_to_process(record)

    def test_sibling_with_shared_prefix_passes(self, tmp_path):
        project = tmp_path / "binx" / "App.csproj"
        record = build_record(project, [tmp_path / "bin"])

        assert SafetyGate().is_safe_to_process(record)
