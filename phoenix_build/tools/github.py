"""GitHub release adapter for phoenix (drives the `gh` CLI)."""

import logging
from pathlib import Path
from typing import Optional

from phoenix_build.tools.base import CommandResult, ReleaseHost, ToolAdapter


class GitHubReleaseHost(ToolAdapter, ReleaseHost):
    """Creates releases and uploads assets on a GitHub repository via `gh`."""

    executable = "gh"

    def __init__(self, cwd: Path, repo: str, logger: Optional[logging.Logger] = None):
        """
        Args:
            cwd: Working directory for gh
            repo: Repository identifier ("owner/repo")
            logger: Logger instance
        """
        super().__init__(cwd, logger)
        self.repo = repo

    def create_release(self, tag: str, asset: Path, title: str, notes: str) -> CommandResult:
        return self.run(
            "release", "create", tag, str(asset),
            "--repo", self.repo,
            "--title", title,
            "--notes", notes,
        )

    def upload_asset(self, tag: str, asset: Path) -> CommandResult:
        return self.run(
            "release", "upload", tag, str(asset),
            "--repo", self.repo,
            "--clobber",
        )
