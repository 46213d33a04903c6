"""Translate evaluated project properties into output observations."""

import os
import glob
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from ..core.path_resolver import root_path
from ..entities import CleanOptions, Observation, OutputKind, ProjectKind
from ..utils.exceptions import InvalidPathError
from .base import PropertyOutput

logger = logging.getLogger(__name__)

QUERIED_PROPERTIES = [
    "OutDir",
    "BaseIntermediateOutputPath",
    "BaseOutputPath",
    "ProjectName",
    "TargetFramework",
    "TargetFrameworks",
    "UsingMicrosoftNETSdk",
    "IsPackable",
    "PackageOutputPath",
    "PackageId",
    "AssemblyName",
]


def _rooted(value: str, project_dir: str, label: str) -> Optional[str]:
    try:
        return root_path(value, project_dir)
    except InvalidPathError as e:
        logger.warning(f"Ignoring {label}: {e}")
        return None


def observations_from_properties(
    props: PropertyOutput,
    project_path: str,
    configuration: Optional[str],
    parent_container: Optional[str],
    options: CleanOptions,
) -> Tuple[List[Observation], List[str]]:
    """
    Build observations for one project/configuration.

    OutDir is preferred; BaseOutputPath is only used when OutDir is empty.

    Args:
        props: Evaluated properties
        project_path: Absolute project file path
        configuration: Configuration the properties were evaluated for
        parent_container: Directory of the solution that listed the project
        options: Which output kinds to clean

    Returns:
        Tuple of (observations, stale package files)
    """
    project_dir = os.path.dirname(project_path)
    common = dict(
        build_unit_path=project_path,
        configuration_name=configuration,
        target_framework_ids=props.target_frameworks,
        parent_container_path=parent_container,
        display_name=props.project_name,
        project_kind=ProjectKind.from_path(project_path),
    )
    observations: List[Observation] = []
    files: List[str] = []

    if options.clean_build_output:
        if props.out_dir:
            out_dir = _rooted(props.out_dir, project_dir, "OutDir")
            if out_dir:
                # the OutDir itself may be gone while sibling framework folders remain
                observations.append(Observation(output_path=out_dir, output_kind=OutputKind.OUT, **common))
        elif props.base_output_path:
            base_out = _rooted(props.base_output_path, project_dir, "BaseOutputPath")
            if base_out and os.path.isdir(base_out):
                observations.append(Observation(output_path=base_out, output_kind=OutputKind.BASE_OUTPUT, **common))
            elif base_out:
                logger.debug(f"{base_out} does not exist.")

    if options.clean_nupkg and props.package_output_path and props.package_id:
        package_dir = _rooted(props.package_output_path, project_dir, "PackageOutputPath")
        if package_dir and os.path.isdir(package_dir):
            pattern = f"{glob.escape(props.package_id)}.*.nupkg"
            for package in sorted(Path(package_dir).glob(pattern)):
                if package.is_file():
                    logger.debug(f"Delete {package}")
                    files.append(str(package))

    if options.clean_intermediate and props.base_intermediate_output_path:
        inter_dir = _rooted(props.base_intermediate_output_path, project_dir, "BaseIntermediateOutputPath")
        if inter_dir and os.path.isdir(inter_dir):
            observations.append(
                Observation(output_path=inter_dir, output_kind=OutputKind.BASE_INTERMEDIATE, **common)
            )
        elif inter_dir:
            logger.debug(f"{inter_dir} does not exist.")

    return observations, files
