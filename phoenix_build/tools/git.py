"""Git tool adapter for phoenix."""

from pathlib import Path
from typing import Sequence

from phoenix_build.tools.base import CommandResult, SourceControl, ToolAdapter


UNKNOWN_COMMIT = "unknown"


class GitSourceControl(ToolAdapter, SourceControl):
    """
    Adapter for git.

    Remote operations always target the "origin" remote.
    """

    executable = "git"
    remote = "origin"

    def short_commit(self) -> str:
        result = self.run("rev-parse", "--short", "HEAD")
        commit = result.stdout.strip()
        if not result.ok or not commit:
            return UNKNOWN_COMMIT
        return commit

    def is_dirty(self) -> bool:
        # Rewritten but identical files only differ in stat info until the index is refreshed
        self.run("update-index", "-q", "--refresh")
        # diff-index exits 0 when clean and 1 when there are differences
        result = self.run("diff-index", "--quiet", "HEAD", "--")
        if result.returncode == 127:
            # git not installed
            return False
        return not result.ok

    def has_changes(self, paths: Sequence[Path]) -> bool:
        result = self.run("status", "--porcelain", "--", *[str(p) for p in paths])
        if not result.ok:
            # Let the commit itself report the failure
            return True
        return bool(result.stdout.strip())

    def commit(self, paths: Sequence[Path], message: str) -> CommandResult:
        added = self.run("add", "--", *[str(p) for p in paths])
        if not added.ok:
            return added
        return self.run("commit", "-m", message)

    def push(self, branch: str) -> CommandResult:
        return self.run("push", self.remote, branch)

    def create_tag(self, tag: str, message: str) -> CommandResult:
        return self.run("tag", "-a", tag, "-m", message)

    def push_tag(self, tag: str) -> CommandResult:
        return self.run("push", self.remote, tag)

    def delete_tag(self, tag: str) -> CommandResult:
        return self.run("tag", "-d", tag)

    def delete_remote_tag(self, tag: str) -> CommandResult:
        return self.run("push", self.remote, f":refs/tags/{tag}")
