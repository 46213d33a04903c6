"""MSBuild subprocess client using -getProperty."""

import os
import json
import logging
import subprocess
from typing import List, Optional

from .base import BasePropertyClient, PropertyOutput
from .locator import MSBuildLocation
from ..utils.exceptions import PropertyQueryError

logger = logging.getLogger(__name__)


def parse_property_json(text: str, project_path: str = None) -> PropertyOutput:
    """
    Parse the JSON document printed by ``msbuild -getProperty:A,B``.

    Args:
        text: Standard output of the MSBuild invocation
        project_path: Project the output belongs to, for error context

    Returns:
        PropertyOutput

    Raises:
        PropertyQueryError: If the output is not the expected JSON document
    """
    start = text.find("{")
    if start < 0:
        raise PropertyQueryError(
            f"MSBuild did not print a property document for {project_path}",
            project_path=project_path,
            output=text,
        )

    try:
        data = json.loads(text[start:])
    except json.JSONDecodeError as e:
        raise PropertyQueryError(
            f"Failed to parse MSBuild property output: {e}",
            project_path=project_path,
            output=text,
        )

    properties = data.get("Properties") if isinstance(data, dict) else None
    if not isinstance(properties, dict):
        raise PropertyQueryError(
            "MSBuild output has no 'Properties' section",
            project_path=project_path,
            output=text,
        )

    return PropertyOutput(properties={str(k): "" if v is None else str(v) for k, v in properties.items()})


class MSBuildClient(BasePropertyClient):
    """Evaluates project properties by running MSBuild."""

    def __init__(self, location: MSBuildLocation, timeout: float = 300.0):
        """
        Initialize MSBuild client.

        Args:
            location: MSBuild executable to invoke
            timeout: Seconds before an invocation is abandoned
        """
        self.location = location
        self.timeout = timeout

    @property
    def description(self) -> str:
        return self.location.full_path

    def build_command(
        self,
        project_path: str,
        properties: List[str],
        configuration: Optional[str] = None,
        platform: Optional[str] = None,
    ) -> List[str]:
        command = self.location.command() + [f"-getProperty:{','.join(properties)}"]
        if configuration:
            command.append(f"-p:Configuration={configuration}")
            if platform:
                command.append(f"-p:Platform={platform}")
        command.append(project_path)
        return command

    def query_properties(
        self,
        project_path: str,
        properties: List[str],
        configuration: Optional[str] = None,
        platform: Optional[str] = None,
    ) -> PropertyOutput:
        command = self.build_command(project_path, properties, configuration, platform)
        logger.debug(f"Running {' '.join(command)}")

        try:
            completed = subprocess.run(
                command,
                cwd=os.path.dirname(project_path) or None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise PropertyQueryError(
                f"MSBuild timed out after {self.timeout}s",
                project_path=project_path,
            ) from e
        except OSError as e:
            raise PropertyQueryError(
                f"Failed to start MSBuild: {e}",
                project_path=project_path,
            ) from e

        if completed.returncode != 0:
            raise PropertyQueryError(
                f"MSBuild exited with code {completed.returncode}",
                project_path=project_path,
                output=(completed.stderr or completed.stdout or "").strip(),
            )

        output = parse_property_json(completed.stdout, project_path)
        if not any(value for value in output.properties.values()):
            raise PropertyQueryError(
                "MSBuild invocation did not return any property values for this project",
                project_path=project_path,
            )
        return output
