"""MSBuild property backend."""

from .base import BasePropertyClient, PropertyOutput
from .client_factory import PropertyClientFactory, get_default_client
from .locator import MSBuildLocation, locate_msbuild
from .msbuild_client import MSBuildClient, parse_property_json
from .observations import QUERIED_PROPERTIES, observations_from_properties

__all__ = [
    "BasePropertyClient",
    "PropertyOutput",
    "PropertyClientFactory",
    "get_default_client",
    "MSBuildLocation",
    "locate_msbuild",
    "MSBuildClient",
    "parse_property_json",
    "QUERIED_PROPERTIES",
    "observations_from_properties",
]
