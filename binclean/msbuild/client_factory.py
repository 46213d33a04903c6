"""Property client factory."""

import os
import logging
from typing import Optional

from .base import BasePropertyClient
from .locator import locate_msbuild
from .msbuild_client import MSBuildClient

logger = logging.getLogger(__name__)


class PropertyClientFactory:
    """Factory for creating property clients."""

    @staticmethod
    def create_client(msbuild_path: Optional[str] = None, timeout: float = 300.0) -> BasePropertyClient:
        """
        Create an MSBuild-backed property client.

        Args:
            msbuild_path: Explicit MSBuild path; falls back to BINCLEAN_MSBUILD_PATH,
                     then Visual Studio, the dotnet CLI and msbuild on PATH
            timeout: Per-invocation timeout in seconds

        Returns:
            BasePropertyClient instance

        Raises:
            BackendNotFoundError: If no MSBuild instance can be found
        """
        location = locate_msbuild(msbuild_path or os.getenv("BINCLEAN_MSBUILD_PATH"))
        logger.info(f"Using MSBuild from {location.full_path}")
        return MSBuildClient(location, timeout=timeout)


def get_default_client(**kwargs) -> BasePropertyClient:
    """
    Get default property client.

    Args:
        **kwargs: Additional arguments to pass to the factory

    Returns:
        BasePropertyClient instance
    """
    return PropertyClientFactory.create_client(**kwargs)
