"""Orchestrates discovery, property queries, aggregation, resolution and deletion."""

import os
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, NamedTuple, Optional, Set

from pydantic import BaseModel, Field

from ..discovery import (
    Solution,
    find_solutions,
    is_solution_file,
    parse_solution,
    solution_for_project,
)
from ..entities import CleanOptions, ExecutionResult, PlanSummary, ProjectKind
from ..msbuild import (
    QUERIED_PROPERTIES,
    BasePropertyClient,
    get_default_client,
    observations_from_properties,
)
from ..utils.error_handler import handle_errors, log_unit_error
from ..utils.exceptions import (
    BinCleanError,
    DiscoveryError,
    InvalidPathError,
    PolicyNotImplementedError,
    PropertyQueryError,
)
from .aggregator import BuildUnitAggregator, QueryGuard
from .candidate_resolver import CandidateResolver
from .executor import ConfirmCallback, DeletionExecutor
from .path_resolver import path_key, root_path
from .planner import DeletionPlanner, render_removal_commands
from .safety_gate import SafetyGate

logger = logging.getLogger(__name__)


class WorkItem(NamedTuple):
    """One property query: a project under one configuration/platform."""

    project_path: str
    configuration: Optional[str]
    platform: Optional[str]
    container: Optional[str]


class CleanResult(BaseModel):
    """Everything a clean run found and did."""

    root_path: str
    solutions: List[str] = Field(default_factory=list)
    build_units: int = 0
    skipped_units: List[str] = Field(default_factory=list)
    summary: PlanSummary = Field(default_factory=PlanSummary)
    commands: List[str] = Field(default_factory=list)
    execution: Optional[ExecutionResult] = None
    errors: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def exit_code(self) -> int:
        if self.errors or (self.execution is not None and not self.execution.success):
            return 1
        return 0


class CleanProcessor:
    """Runs one clean pass over a root directory, solution or project file."""

    def __init__(
        self,
        options: CleanOptions,
        client: Optional[BasePropertyClient] = None,
        confirm: Optional[ConfirmCallback] = None,
    ):
        """
        Initialize clean processor.

        Args:
            options: Policy switches for this run
            client: Property backend; located lazily when omitted
            confirm: Callback asked before destructive actions
        """
        self.options = options
        self.client = client
        self.confirm = confirm
        self.aggregator = BuildUnitAggregator()
        self.guard = QueryGuard()
        self.gate = SafetyGate()
        self.resolver = CandidateResolver(self.aggregator, options)
        self.planner = DeletionPlanner(options)
        self._lock = threading.Lock()
        self._errors: List[Dict[str, Any]] = []
        self._failed_units: Set[str] = set()
        self._loose_files: Dict[str, List[str]] = {}

    def run(self) -> CleanResult:
        """
        Discover build units, aggregate their outputs and plan (or perform) deletion.

        Returns:
            CleanResult

        Raises:
            InvalidPathError: If the root path is unusable
            DiscoveryError: If the root is a file that is neither a solution nor a project
            BackendNotFoundError: If no MSBuild instance can be found
        """
        root = root_path(self.options.root_path, os.getcwd())
        solutions = self.discover(root)
        result = CleanResult(root_path=root, solutions=[solution.path for solution in solutions])

        items = self.work_items(solutions)
        if items:
            if self.client is None:
                self.client = get_default_client(
                    msbuild_path=self.options.msbuild_path,
                    timeout=self.options.query_timeout,
                )
            logger.info(f"Using {self.client.description}")
            self.aggregate(items)

        result.skipped_units = self.resolve()
        result.build_units = len(self.aggregator)
        result.summary = self.planner.summarize()
        result.commands = render_removal_commands(result.summary)

        if self.options.delete and not self.planner.plan.is_empty():
            executor = DeletionExecutor(self.options, self.confirm)
            result.execution = executor.execute(self.planner.plan)

        result.errors = list(self._errors)
        return result

    def discover(self, root: str) -> List[Solution]:
        """
        Find the solutions (or the single project) to process.

        Args:
            root: Rooted directory, solution file or project file

        Returns:
            Parsed solutions; unreadable solution files are logged and skipped
        """
        if os.path.isfile(root):
            if is_solution_file(root):
                return [parse_solution(root)]
            if ProjectKind.from_path(root) is not ProjectKind.UNKNOWN:
                return [solution_for_project(root)]
            raise DiscoveryError(f"{root} is neither a solution nor a project file", path=root)

        if not os.path.isdir(root):
            raise InvalidPathError(f"Root path does not exist: {root}", path=root)

        paths = find_solutions(root, self.options.depth)
        logger.info(f"Found {len(paths)} solution(s) below {root}")

        solutions = []
        for path in paths:
            solution = self._parse_solution(path)
            if solution is not None:
                solutions.append(solution)
        return solutions

    @handle_errors("Failed to read solution", reraise=False)
    def _parse_solution(self, path: str) -> Optional[Solution]:
        logger.info(f"Processing solution {path}")
        return parse_solution(path)

    def work_items(self, solutions: List[Solution]) -> List[WorkItem]:
        """Cross product of every discovered project with its configurations."""
        items = []
        for solution in solutions:
            container = solution.directory
            for project in solution.projects:
                queries_platform = ProjectKind.from_path(project.path).queries_platform
                if not project.configurations:
                    items.append(WorkItem(project.path, None, None, container))
                    continue
                for entry in project.configurations:
                    platform = entry.platform if queries_platform else None
                    items.append(WorkItem(project.path, entry.configuration, platform, container))
        return items

    def aggregate(self, items: List[WorkItem]) -> None:
        """
        Query every work item and record its observations.

        Returns only once every item has finished, so resolution always sees
        complete records.
        """
        if self.options.sequential:
            logger.debug(f"Processing {len(items)} work items sequentially")
            for item in items:
                self._run_item(item)
            return

        logger.debug(f"Processing {len(items)} work items with {self.options.parallel} workers")
        with ThreadPoolExecutor(max_workers=self.options.parallel, thread_name_prefix="binclean") as pool:
            futures = [pool.submit(self._run_item, item) for item in items]
            for future in as_completed(futures):
                future.result()

    def _run_item(self, item: WorkItem) -> None:
        try:
            self.process_item(item)
        except PropertyQueryError as e:
            logger.warning(
                f"Skipping {item.project_path} [{item.configuration}]: {e}. "
                f"If the wrong MSBuild instance was picked, pass its path with --msbuild."
            )
            if e.output:
                logger.debug(e.output)
            self._fail(item, "query", e)
        except BinCleanError as e:
            self._fail(item, "query", e)
        except Exception as e:
            self._fail(item, "query", BinCleanError(f"Unexpected error: {e}"))

    def process_item(self, item: WorkItem) -> None:
        """Query one work item and feed its observations to the aggregator."""
        if not self.guard.try_claim(item.project_path, item.configuration, item.platform):
            logger.debug(f"{item.project_path} [{item.configuration}|{item.platform}] already queried")
            return

        props = self.client.query_properties(
            item.project_path,
            QUERIED_PROPERTIES,
            configuration=item.configuration,
            platform=item.platform,
        )
        observations, files = observations_from_properties(
            props,
            item.project_path,
            item.configuration,
            item.container,
            self.options,
        )
        for observation in observations:
            self.aggregator.record(observation)
        if files:
            # planned only after the unit clears every query and the gate
            with self._lock:
                self._loose_files.setdefault(path_key(item.project_path), []).extend(files)

    def _fail(self, item: WorkItem, stage: str, error: Exception) -> None:
        info = log_unit_error(
            item.project_path,
            stage,
            error,
            context={"configuration": item.configuration, "platform": item.platform},
        )
        with self._lock:
            self._errors.append(info)
            self._failed_units.add(path_key(item.project_path))

    def resolve(self) -> List[str]:
        """
        Gate and resolve every aggregated record into the plan.

        Returns:
            Build units skipped because their outputs are unsafe to delete
        """
        skipped = []
        seen = set()
        for record in self.aggregator.records():
            key = path_key(record.key)
            seen.add(key)
            if key in self._failed_units:
                logger.debug(f"Not resolving {record.key}: a property query failed")
                continue
            if not self.gate.is_safe_to_process(record):
                skipped.append(record.key)
                continue
            self._plan_loose_files(key)
            try:
                candidates = self.resolver.resolve(record)
            except PolicyNotImplementedError as e:
                self._errors.append(log_unit_error(record.key, "resolve", e))
                continue
            except OSError as e:
                self._errors.append(log_unit_error(record.key, "resolve", e))
                continue
            for path, kind in candidates:
                self.planner.add_directory(path, record, kind)

        # units that produced packages but no output directories
        for key in sorted(set(self._loose_files) - seen - self._failed_units):
            self._plan_loose_files(key)
        return skipped

    def _plan_loose_files(self, key: str) -> None:
        for file_path in self._loose_files.get(key, []):
            self.planner.add_file(file_path)
