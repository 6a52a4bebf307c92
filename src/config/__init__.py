"""
Configuration package for annotext

Provides application settings via environment variables using pydantic-settings,
and node override loading from YAML files and command-line entries.
"""

from .settings import appsettings, AppSettings
from .nodes import NodesFileError, nodesFile_load, nodeAssignments_parse

__all__ = [
    "appsettings",
    "AppSettings",
    "NodesFileError",
    "nodesFile_load",
    "nodeAssignments_parse",
]
