"""Base property client interface."""

from abc import ABC, abstractmethod
from typing import Dict, FrozenSet, List, Optional
from pydantic import BaseModel


class PropertyOutput(BaseModel):
    """Evaluated MSBuild properties of one project/configuration."""
    properties: Dict[str, str] = {}

    def get(self, name: str) -> Optional[str]:
        value = self.properties.get(name)
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def out_dir(self) -> Optional[str]:
        return self.get("OutDir")

    @property
    def base_output_path(self) -> Optional[str]:
        return self.get("BaseOutputPath")

    @property
    def base_intermediate_output_path(self) -> Optional[str]:
        return self.get("BaseIntermediateOutputPath")

    @property
    def package_output_path(self) -> Optional[str]:
        return self.get("PackageOutputPath")

    @property
    def project_name(self) -> Optional[str]:
        return self.get("ProjectName")

    @property
    def package_id(self) -> Optional[str]:
        return self.get("PackageId") or self.project_name or self.get("AssemblyName")

    @property
    def target_frameworks(self) -> FrozenSet[str]:
        """TargetFramework and every entry of TargetFrameworks combined."""
        names = set()
        if self.get("TargetFramework"):
            names.add(self.get("TargetFramework"))
        for item in (self.get("TargetFrameworks") or "").split(";"):
            if item.strip():
                names.add(item.strip())
        return frozenset(names)


class BasePropertyClient(ABC):
    """Abstract base class for build property backends."""

    @abstractmethod
    def query_properties(
        self,
        project_path: str,
        properties: List[str],
        configuration: Optional[str] = None,
        platform: Optional[str] = None,
    ) -> PropertyOutput:
        """
        Evaluate properties of a project.

        Args:
            project_path: Absolute project file path
            properties: Property names to evaluate
            configuration: Configuration name (e.g. Debug)
            platform: Platform name, only for project types that need it

        Returns:
            PropertyOutput with at least one property

        Raises:
            PropertyQueryError: If the backend returned nothing usable
        """
        pass

    @property
    def description(self) -> str:
        return type(self).__name__
