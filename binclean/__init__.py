"""binclean - safe removal of MSBuild build-output directories."""

__version__ = "0.1.0"
