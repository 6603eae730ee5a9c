"""Tool adapters for orchestrating external tools in phoenix."""

from phoenix_build.tools.base import (
    Builder,
    CommandResult,
    ReleaseHost,
    SourceControl,
    ToolAdapter,
)
from phoenix_build.tools.cmake import CMakeBuilder
from phoenix_build.tools.git import GitSourceControl
from phoenix_build.tools.github import GitHubReleaseHost

__all__ = [
    "Builder",
    "CommandResult",
    "ReleaseHost",
    "SourceControl",
    "ToolAdapter",
    "CMakeBuilder",
    "GitSourceControl",
    "GitHubReleaseHost",
]
