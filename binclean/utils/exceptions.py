"""Custom exceptions for binclean."""


class BinCleanError(Exception):
    """Base exception for binclean."""
    pass


class InvalidPathError(BinCleanError):
    """Malformed or unsupported path string."""

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path


class UnsafeDeletionError(BinCleanError):
    """Deleting an output directory would destroy a descriptor path."""

    def __init__(self, message: str, unit_path: str = None, output_path: str = None, descriptor_path: str = None):
        super().__init__(message)
        self.unit_path = unit_path
        self.output_path = output_path
        self.descriptor_path = descriptor_path


class PropertyQueryError(BinCleanError):
    """Property query against the build backend returned nothing usable."""

    def __init__(self, message: str, project_path: str = None, output: str = None):
        super().__init__(message)
        self.project_path = project_path
        self.output = output


class DeletionError(BinCleanError):
    """Deletion of a single file or directory failed."""

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path


class PolicyNotImplementedError(BinCleanError, NotImplementedError):
    """No cleanup policy is defined for this kind of output."""
    pass


class DiscoveryError(BinCleanError):
    """Solution or project file could not be read."""

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path


class ConfigurationError(BinCleanError):
    """Configuration error."""
    pass


class BackendNotFoundError(BinCleanError):
    """No MSBuild instance could be located."""
    pass
