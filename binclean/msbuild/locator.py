"""Locating an MSBuild instance."""

import os
import shutil
import logging
import subprocess
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from ..utils.exceptions import BackendNotFoundError

logger = logging.getLogger(__name__)

VSWHERE = os.path.join(
    os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)"),
    "Microsoft Visual Studio",
    "Installer",
    "vswhere.exe",
)


class ExecType(str, Enum):
    """How an MSBuild location is invoked."""

    EXE = "exe"
    DLL = "dll"
    DOTNET_CLI = "dotnet"


class MSBuildLocation(BaseModel):
    """An MSBuild entry point."""
    full_path: str
    exec_type: ExecType
    source: str = "manual"

    def command(self) -> List[str]:
        if self.exec_type is ExecType.DLL:
            return [shutil.which("dotnet") or "dotnet", self.full_path]
        if self.exec_type is ExecType.DOTNET_CLI:
            return [self.full_path, "msbuild"]
        return [self.full_path]

    @classmethod
    def from_path(cls, path: str) -> Optional["MSBuildLocation"]:
        """
        Resolve an explicit MSBuild path.

        Args:
            path: MSBuild.exe, MSBuild.dll, or a directory containing one of them

        Returns:
            MSBuildLocation, or None if nothing usable was found
        """
        if os.path.isfile(path):
            return cls._from_file(path)
        if os.path.isdir(path):
            for name in sorted(os.listdir(path)):
                if name.lower() in ("msbuild.exe", "msbuild.dll", "msbuild"):
                    return cls._from_file(os.path.join(path, name))
        return None

    @classmethod
    def _from_file(cls, path: str) -> "MSBuildLocation":
        full_path = os.path.abspath(path)
        if full_path.lower().endswith(".dll"):
            return cls(full_path=full_path, exec_type=ExecType.DLL)
        return cls(full_path=full_path, exec_type=ExecType.EXE)


def _visual_studio_locations() -> List[MSBuildLocation]:
    if os.name != "nt" or not os.path.isfile(VSWHERE):
        return []
    try:
        completed = subprocess.run(
            [VSWHERE, "-prerelease", "-format", "value", "-property", "installationPath", "-nologo"],
            capture_output=True,
            text=True,
            timeout=30,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"vswhere failed: {e}")
        return []
    if completed.returncode != 0:
        return []

    candidates = []
    for install_dir in completed.stdout.splitlines():
        install_dir = install_dir.strip()
        if not install_dir or not os.path.isdir(install_dir):
            continue
        for version in ("Current", "15.0"):
            exe = os.path.join(install_dir, "MSBuild", version, "Bin", "amd64", "MSBuild.exe")
            if os.path.isfile(exe):
                candidates.append(exe)
    return [
        MSBuildLocation(full_path=exe, exec_type=ExecType.EXE, source="visual-studio")
        for exe in sorted(candidates, reverse=True)
    ]


def locate_msbuild(explicit_path: Optional[str] = None) -> MSBuildLocation:
    """
    Find MSBuild: explicit path, Visual Studio, the dotnet CLI, then msbuild on PATH.

    Args:
        explicit_path: User supplied MSBuild.exe/MSBuild.dll or directory

    Returns:
        MSBuildLocation

    Raises:
        BackendNotFoundError: If no MSBuild instance can be found
    """
    if explicit_path:
        location = MSBuildLocation.from_path(explicit_path)
        if location is None:
            raise BackendNotFoundError(f"No MSBuild instance found @{explicit_path}.")
        return location

    visual_studio = _visual_studio_locations()
    if visual_studio:
        return visual_studio[0]

    dotnet = shutil.which("dotnet")
    if dotnet:
        return MSBuildLocation(full_path=dotnet, exec_type=ExecType.DOTNET_CLI, source="dotnet-sdk")

    msbuild = shutil.which("msbuild") or shutil.which("MSBuild.exe")
    if msbuild:
        return MSBuildLocation(full_path=msbuild, exec_type=ExecType.EXE, source="path")

    raise BackendNotFoundError(
        "No MSBuild instance found. We try to resolve MSBuild from Visual Studio first, .NET SDK second. "
        "Please make sure this machine has a MSBuild instance or specify the path to MSBuild.exe/MSBuild.dll explicitly."
    )
