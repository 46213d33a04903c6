"""Data entities for observations, build units and deletion plans."""

from __future__ import annotations

import os
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OutputKind(str, Enum):
    """Classification of a reported output directory."""

    OUT = "out"
    BASE_OUTPUT = "base_output"
    BASE_INTERMEDIATE = "base_intermediate"


class ProjectFamily(str, Enum):
    """Managed (SDK or legacy) versus native project outputs."""

    MANAGED = "managed"
    NATIVE = "native"


class ProjectKind(str, Enum):
    """Project types, keyed by project file extension."""

    CSPROJ = ".csproj"
    FSPROJ = ".fsproj"
    VBPROJ = ".vbproj"
    SQLPROJ = ".sqlproj"
    VCXPROJ = ".vcxproj"
    UNKNOWN = ""

    @classmethod
    def from_path(cls, project_path: Optional[str]) -> "ProjectKind":
        if not project_path:
            return cls.UNKNOWN
        extension = os.path.splitext(project_path)[1].lower()
        for kind in cls:
            if kind is not cls.UNKNOWN and kind.value == extension:
                return kind
        return cls.UNKNOWN

    @property
    def family(self) -> Optional[ProjectFamily]:
        if self is ProjectKind.UNKNOWN:
            return None
        if self is ProjectKind.VCXPROJ:
            return ProjectFamily.NATIVE
        return ProjectFamily.MANAGED

    @property
    def queries_platform(self) -> bool:
        """Native projects resolve outputs per configuration and platform."""
        return self is ProjectKind.VCXPROJ


class ConfirmLevel(str, Enum):
    """Granularity at which destructive actions are confirmed."""

    FORCE = "force"
    SOLUTION = "solution"
    PROJECT = "project"
    DIRECTORY = "dir"


class ConfirmKind(str, Enum):
    """What a confirmation request is about."""

    DIRECTORY = "directory"
    FILES_UNDER_DIRECTORY = "files_under_directory"
    SINGLE_FILE = "single_file"
    BUILD_UNIT = "build_unit"
    CONTAINER = "container"


def _split_tfms(value: object) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = value.split(";")
    return frozenset(item.strip() for item in value if item and item.strip())


class Observation(BaseModel):
    """One resolved output path of a build unit for one configuration."""

    model_config = ConfigDict(frozen=True, use_enum_values=False, extra="ignore")

    build_unit_path: str
    output_path: Optional[str] = None
    output_kind: OutputKind = OutputKind.OUT
    configuration_name: Optional[str] = None
    target_framework_ids: FrozenSet[str] = frozenset()
    parent_container_path: Optional[str] = None
    display_name: Optional[str] = None
    project_kind: Optional[ProjectKind] = None

    @field_validator("target_framework_ids", mode="before")
    @classmethod
    def _parse_tfms(cls, value: object) -> FrozenSet[str]:
        return _split_tfms(value)


class OutputEntry(BaseModel):
    """Rooted output directory and its kind."""

    model_config = ConfigDict(frozen=True)

    path: str
    kind: OutputKind


class BuildUnitRecord(BaseModel):
    """Aggregated outputs of one build unit across all configurations.

    Records are immutable snapshots; merging produces a new record which the
    aggregator swaps in atomically.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    project_kind: ProjectKind = ProjectKind.UNKNOWN
    outputs: Tuple[OutputEntry, ...] = ()
    display_names: Dict[str, Optional[str]] = Field(default_factory=dict)
    configurations: FrozenSet[str] = frozenset()
    target_frameworks: FrozenSet[str] = frozenset()
    parent_containers: FrozenSet[str] = frozenset()
    processed: bool = False

    @property
    def display_name(self) -> str:
        for name in self.display_names.values():
            if name:
                return name
        return os.path.splitext(os.path.basename(self.key))[0]

    @property
    def descriptor_paths(self) -> FrozenSet[str]:
        """Paths that must survive any deletion made on behalf of this unit."""
        return frozenset(self.parent_containers) | frozenset(self.display_names) | {self.key}

    def has_configuration(self, name: Optional[str]) -> bool:
        if not name:
            return False
        folded = name.casefold()
        return any(cfg.casefold() == folded for cfg in self.configurations)

    def targets_framework(self, tfm: str) -> bool:
        folded = tfm.casefold()
        return any(current.casefold() == folded for current in self.target_frameworks)

    def merged(
        self,
        output: Optional[OutputEntry],
        unit_path: str,
        display_name: Optional[str] = None,
        configuration: Optional[str] = None,
        target_frameworks: FrozenSet[str] = frozenset(),
        parent_container: Optional[str] = None,
    ) -> "BuildUnitRecord":
        """Return a copy with one more observation folded in."""
        outputs = self.outputs + (output,) if output is not None else self.outputs
        display_names = dict(self.display_names)
        display_names.setdefault(unit_path, display_name)
        configurations = self.configurations | {configuration} if configuration else self.configurations
        containers = self.parent_containers | {parent_container} if parent_container else self.parent_containers
        return self.model_copy(
            update={
                "outputs": outputs,
                "display_names": display_names,
                "configurations": configurations,
                "target_frameworks": self.target_frameworks | target_frameworks,
                "parent_containers": containers,
            }
        )


class DeletionCandidate(BaseModel):
    """Directory marked for deletion and the build units that contributed it."""

    path: str
    kinds: List[OutputKind] = Field(default_factory=list)
    contributors: List[str] = Field(default_factory=list)
    containers: List[str] = Field(default_factory=list)

    def add_contributor(self, record: BuildUnitRecord, kind: OutputKind) -> None:
        if record.key not in self.contributors:
            self.contributors.append(record.key)
        if kind not in self.kinds:
            self.kinds.append(kind)
        for container in sorted(record.parent_containers):
            if container not in self.containers:
                self.containers.append(container)


class DeletionPlan(BaseModel):
    """Deduplicated loose files and directories ready for reporting or execution."""

    files: Dict[str, str] = Field(default_factory=dict)
    directories: Dict[str, DeletionCandidate] = Field(default_factory=dict)

    @property
    def sorted_files(self) -> List[str]:
        return sorted(self.files.values())

    @property
    def sorted_directories(self) -> List[DeletionCandidate]:
        return sorted(self.directories.values(), key=lambda candidate: candidate.path)

    def is_empty(self) -> bool:
        return not self.files and not self.directories


class PlanEntry(BaseModel):
    """Size statistics for one candidate directory."""

    path: str
    file_count: int
    total_bytes: int
    contributors: List[str] = Field(default_factory=list)


class PlanSummary(BaseModel):
    """Report of what a deletion run would remove."""

    entries: List[PlanEntry] = Field(default_factory=list)
    files: List[str] = Field(default_factory=list)
    total_files: int = 0
    total_bytes: int = 0

    @property
    def total_kib(self) -> int:
        return self.total_bytes // 1024

    @property
    def total_mib(self) -> int:
        return self.total_bytes // (1024 * 1024)


class DeletionFailure(BaseModel):
    """A single file or directory that could not be removed."""

    path: str
    message: str


class ExecutionResult(BaseModel):
    """Outcome of a destructive run."""

    deleted_directories: List[str] = Field(default_factory=list)
    deleted_files: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failures: List[DeletionFailure] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures


class CleanOptions(BaseModel):
    """Policy switches for one clean run."""

    model_config = ConfigDict(extra="ignore")

    root_path: str = "."
    delete: bool = False
    confirm: ConfirmLevel = ConfirmLevel.DIRECTORY
    parallel: int = 6
    depth: int = 2
    msbuild_path: Optional[str] = None
    validate_structure: bool = True
    only_noncurrent: bool = False
    clean_build_output: bool = True
    clean_intermediate: bool = True
    clean_nupkg: bool = False
    force_delete_if_empty: bool = False
    files_only: bool = False
    max_enumeration_depth: int = 10
    query_timeout: float = 300.0
    extra_tfms: List[str] = Field(default_factory=list)

    @field_validator("confirm", mode="before")
    @classmethod
    def _parse_confirm(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("depth", "max_enumeration_depth")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be >= 0")
        return value

    @property
    def sequential(self) -> bool:
        return self.parallel <= 0
