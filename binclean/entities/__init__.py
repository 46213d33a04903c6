"""Entity models for observations, build units and deletion plans."""

from .models import (
    BuildUnitRecord,
    CleanOptions,
    ConfirmKind,
    ConfirmLevel,
    DeletionCandidate,
    DeletionFailure,
    DeletionPlan,
    ExecutionResult,
    Observation,
    OutputEntry,
    OutputKind,
    PlanEntry,
    PlanSummary,
    ProjectFamily,
    ProjectKind,
)

__all__ = [
    "BuildUnitRecord",
    "CleanOptions",
    "ConfirmKind",
    "ConfirmLevel",
    "DeletionCandidate",
    "DeletionFailure",
    "DeletionPlan",
    "ExecutionResult",
    "Observation",
    "OutputEntry",
    "OutputKind",
    "PlanEntry",
    "PlanSummary",
    "ProjectFamily",
    "ProjectKind",
]
