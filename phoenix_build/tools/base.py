"""
Base classes for external tool adapters.

The release pipeline talks to cmake, git and gh only through the
capability interfaces defined here, so tests can substitute fakes.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence


@dataclass
class CommandResult:
    """Outcome of one external command."""

    command: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        """One-line summary for error messages."""
        summary = f"`{' '.join(self.command)}` exited with code {self.returncode}"
        detail = (self.stderr or self.stdout).strip()
        if detail:
            summary += f": {detail[:500]}"
        return summary


class ToolAdapter(ABC):
    """
    Runs one external executable inside a working directory.

    Subclasses supply the executable name and the operations they expose.
    """

    executable: str = ""

    def __init__(self, cwd: Path, logger: Optional[logging.Logger] = None):
        self.cwd = Path(cwd)
        self.logger = logger or logging.getLogger("phoenix")

    def run(self, *args: str, capture: bool = True) -> CommandResult:
        """
        Execute the tool with the given arguments.

        A missing executable is reported as exit code 127 rather than raised,
        so callers handle every failure through CommandResult.
        """
        cmd = [self.executable] + list(args)
        self.logger.debug(
            f"+ {' '.join(cmd)}",
            extra={"event": "command_started", "metadata": {"command": cmd, "cwd": str(self.cwd)}},
        )

        try:
            completed = subprocess.run(
                cmd,
                cwd=self.cwd,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            return CommandResult(command=cmd, returncode=127, stderr=str(e))

        result = CommandResult(
            command=cmd,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

        if not result.ok:
            self.logger.debug(
                f"Command failed: {result.describe()}",
                extra={"event": "command_failed", "metadata": {"command": cmd, "returncode": result.returncode}},
            )

        return result


class Builder(ABC):
    """Native build tool (configure, build)."""

    @abstractmethod
    def configure(self, source_dir: Path, build_dir: Path) -> CommandResult:
        pass

    @abstractmethod
    def build(self, build_dir: Path) -> CommandResult:
        pass


class SourceControl(ABC):
    """Source control operations used by the version resolver and the release pipeline."""

    @abstractmethod
    def short_commit(self) -> str:
        """Short HEAD commit hash, or "unknown" when it cannot be determined."""

    @abstractmethod
    def is_dirty(self) -> bool:
        """True when the working tree differs from HEAD."""

    @abstractmethod
    def has_changes(self, paths: Sequence[Path]) -> bool:
        """True when any of the paths differs from HEAD or is untracked."""

    @abstractmethod
    def commit(self, paths: Sequence[Path], message: str) -> CommandResult:
        pass

    @abstractmethod
    def push(self, branch: str) -> CommandResult:
        pass

    @abstractmethod
    def create_tag(self, tag: str, message: str) -> CommandResult:
        pass

    @abstractmethod
    def push_tag(self, tag: str) -> CommandResult:
        pass

    @abstractmethod
    def delete_tag(self, tag: str) -> CommandResult:
        pass

    @abstractmethod
    def delete_remote_tag(self, tag: str) -> CommandResult:
        pass


class ReleaseHost(ABC):
    """Hosting service for tagged release artifacts."""

    @abstractmethod
    def create_release(self, tag: str, asset: Path, title: str, notes: str) -> CommandResult:
        pass

    @abstractmethod
    def upload_asset(self, tag: str, asset: Path) -> CommandResult:
        """Upload to an existing release, overwriting an asset with the same name."""
