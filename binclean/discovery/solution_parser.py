"""Reading projects and configurations from .sln, .slnf and .slnx files."""

from __future__ import annotations

import os
import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..core.path_resolver import path_key, root_path
from ..utils.exceptions import DiscoveryError, InvalidPathError
from ..utils.file_utils import iter_files, read_json_file

logger = logging.getLogger(__name__)

SOLUTION_EXTENSIONS = (".sln", ".slnf", ".slnx")
SOLUTION_FOLDER_TYPE = "2150E333-8FDC-42A3-9474-1A3956D46DE8"
SLNX_DEFAULT_CONFIGURATIONS = ("Debug", "Release")


class ProjectConfiguration(BaseModel):
    """Configuration/platform pair a project is built with."""

    configuration: str
    platform: Optional[str] = None


class SolutionProject(BaseModel):
    """Project listed in a solution."""

    name: str
    path: str
    guid: Optional[str] = None
    configurations: List[ProjectConfiguration] = Field(default_factory=list)


class Solution(BaseModel):
    """Parsed solution: its path and the projects that exist on disk."""

    path: str
    projects: List[SolutionProject] = Field(default_factory=list)

    @property
    def directory(self) -> str:
        return os.path.dirname(self.path)


def is_solution_file(path: str) -> bool:
    return path.lower().endswith(SOLUTION_EXTENSIONS)


def find_solutions(root: str, depth: int = 2) -> List[str]:
    """
    Find solution files below a directory.

    Args:
        root: Directory to scan
        depth: How many directory levels below ``root`` are scanned

    Returns:
        Sorted absolute solution file paths
    """
    return sorted(path for path in iter_files(root, depth) if is_solution_file(path))


def parse_solution(path: str) -> Solution:
    """
    Parse a solution file of any supported format.

    Args:
        path: Absolute path of a .sln, .slnf or .slnx file

    Returns:
        Solution

    Raises:
        DiscoveryError: If the file cannot be read or parsed
    """
    lowered = path.lower()
    if lowered.endswith(".slnf"):
        return parse_slnf(path)
    if lowered.endswith(".slnx"):
        return parse_slnx(path)
    return parse_sln(path)


def _project_path(relative: str, base_dir: str) -> Optional[str]:
    try:
        return root_path(relative.replace("\\", os.sep), base_dir)
    except InvalidPathError as e:
        logger.warning(f"Skipping project with invalid path: {e}")
        return None


def _read_text(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8-sig", errors="replace") as f:
            return f.read()
    except OSError as e:
        raise DiscoveryError(f"Cannot read solution {path}: {e}", path=path) from e


def parse_sln(path: str) -> Solution:
    """Parse a classic text .sln file."""
    text = _read_text(path)
    base_dir = os.path.dirname(path)
    projects: Dict[str, SolutionProject] = {}
    order: List[str] = []
    in_config_section = False

    for raw_line in text.splitlines():
        line = raw_line.strip()

        if line.startswith("Project("):
            project = _parse_project_line(line, base_dir)
            if project is not None:
                projects[project.guid] = project
                order.append(project.guid)
            continue

        if line.startswith("GlobalSection(ProjectConfigurationPlatforms)"):
            in_config_section = True
            continue
        if line.startswith("EndGlobalSection"):
            in_config_section = False
            continue

        if in_config_section and "=" in line:
            left, right = (part.strip() for part in line.split("=", 1))
            if not left.endswith(".ActiveCfg") or not left.startswith("{"):
                continue
            guid = left[1:left.index("}")].upper()
            project = projects.get(guid)
            if project is None:
                continue
            configuration, _, platform = right.partition("|")
            entry = ProjectConfiguration(
                configuration=configuration.strip(),
                platform=platform.strip() or None,
            )
            if entry.configuration and entry not in project.configurations:
                project.configurations.append(entry)

    solution = Solution(path=path, projects=[projects[guid] for guid in order])
    logger.debug(f"{path}: {len(solution.projects)} projects")
    return solution


def _parse_project_line(line: str, base_dir: str) -> Optional[SolutionProject]:
    # Project("{TYPE}") = "Name", "relative\path.csproj", "{GUID}"
    try:
        header, values = line.split("=", 1)
        type_guid = header[header.index("{") + 1:header.index("}")].upper()
        name, relative, guid = [part.strip().strip('"') for part in values.split(",")[:3]]
    except ValueError:
        logger.debug(f"Unrecognized project line: {line}")
        return None

    if type_guid == SOLUTION_FOLDER_TYPE or not relative.lower().endswith("proj"):
        return None

    project_path = _project_path(relative, base_dir)
    if project_path is None or not os.path.isfile(project_path):
        logger.debug(f"Project file not found: {relative}")
        return None

    return SolutionProject(name=name, path=project_path, guid=guid.strip("{}").upper())


def parse_slnf(path: str) -> Solution:
    """Parse a solution filter: the referenced .sln restricted to the listed projects."""
    try:
        data = read_json_file(path)
    except (OSError, ValueError) as e:
        raise DiscoveryError(f"Cannot read solution filter {path}: {e}", path=path) from e

    section = data.get("solution") if isinstance(data, dict) else None
    if not isinstance(section, dict) or not section.get("path"):
        raise DiscoveryError(f"Solution filter {path} does not reference a solution", path=path)

    sln_path = _project_path(section["path"], os.path.dirname(path))
    if sln_path is None or not os.path.isfile(sln_path):
        raise DiscoveryError(f"Solution {section['path']} referenced by {path} not found", path=path)

    solution = parse_sln(sln_path)
    wanted = set()
    for relative in section.get("projects") or []:
        project_path = _project_path(relative, solution.directory)
        if project_path:
            wanted.add(path_key(project_path))

    return Solution(
        path=path,
        projects=[project for project in solution.projects if path_key(project.path) in wanted],
    )


def parse_slnx(path: str) -> Solution:
    """Parse an XML .slnx solution."""
    try:
        root = ET.fromstring(_read_text(path))
    except ET.ParseError as e:
        raise DiscoveryError(f"Cannot parse solution {path}: {e}", path=path) from e

    configurations = [node.get("Name") for node in root.iter("BuildType") if node.get("Name")]
    platforms = [node.get("Name") for node in root.iter("Platform") if node.get("Name")]
    pairs = [
        ProjectConfiguration(configuration=configuration, platform=platform)
        for configuration in configurations or SLNX_DEFAULT_CONFIGURATIONS
        for platform in platforms or [None]
    ]

    projects = []
    for node in root.iter("Project"):
        relative = node.get("Path")
        if not relative:
            continue
        project_path = _project_path(relative, os.path.dirname(path))
        if project_path is None or not os.path.isfile(project_path):
            logger.debug(f"Project file not found: {relative}")
            continue
        name = os.path.splitext(os.path.basename(project_path))[0]
        projects.append(SolutionProject(name=name, path=project_path, configurations=list(pairs)))

    return Solution(path=path, projects=projects)


def solution_for_project(project_path: str) -> Solution:
    """Wrap a single project file so it can be processed like a solution."""
    name = os.path.splitext(os.path.basename(project_path))[0]
    return Solution(path=project_path, projects=[SolutionProject(name=name, path=project_path)])
