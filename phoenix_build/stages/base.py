"""
Base classes for release stages.

All stages inherit from Stage and return StageResult.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from phoenix_build.config import ProjectDescriptor
from phoenix_build.errors import PhoenixError
from phoenix_build.tools.base import Builder, ReleaseHost, SourceControl
from phoenix_build.version import BumpMode, VersionInfo, VersionStore


@dataclass
class ReleaseContext:
    """
    Inputs and collaborators shared by every stage of one release run.

    Stages fill in version, artifacts and archive as the run progresses.
    """

    descriptor: ProjectDescriptor
    store: VersionStore
    builder: Builder
    source_control: SourceControl
    release_host: ReleaseHost
    bump: BumpMode = BumpMode.NONE
    deploy: bool = False
    version: Optional[VersionInfo] = None
    artifacts: List[Path] = field(default_factory=list)
    archive: Optional[Path] = None
    tag_pushed: bool = False


@dataclass
class StageResult:
    """Result of stage execution."""

    stage_name: str
    success: bool
    duration_seconds: float = 0.0
    output_files: List[Path] = field(default_factory=list)
    error_message: Optional[str] = None
    error: Optional[Exception] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "stage_name": self.stage_name,
            "success": self.success,
            "duration_seconds": self.duration_seconds,
            "output_files": [str(f) for f in self.output_files],
            "error_message": self.error_message,
            "error_type": type(self.error).__name__ if self.error else None,
            "metadata": self.metadata,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }


class Stage(ABC):
    """
    Abstract base class for release stages.

    Each stage must implement:
    - execute(): Run the stage, raising a PhoenixError on failure

    and may override:
    - validate(): Check prerequisites before execution
    - cleanup(): Clean up resources after execution
    """

    name = "stage"

    def __init__(self, context: ReleaseContext, logger: logging.Logger):
        """
        Initialize stage.

        Args:
            context: Shared release context
            logger: Logger instance
        """
        self.context = context
        self.descriptor = context.descriptor
        self.logger = logger

    def validate(self) -> None:
        """
        Validate stage prerequisites.

        Raises:
            PhoenixError: If validation fails
        """
        pass

    @abstractmethod
    def execute(self) -> StageResult:
        """
        Execute the stage.

        Returns:
            StageResult with execution details

        Raises:
            PhoenixError: If execution fails
        """
        pass

    def cleanup(self) -> None:
        """
        Clean up resources after stage execution.

        Override if stage needs cleanup.
        """
        pass

    def run(self) -> StageResult:
        """
        Run the complete stage lifecycle.

        Exceptions are logged and captured in the returned StageResult.

        Returns:
            StageResult with execution details
        """
        self.logger.info(
            f"Starting stage: {self.name}",
            extra={"stage": self.name, "event": "stage_started"},
        )

        started_at = datetime.utcnow()
        start_time = time.time()

        try:
            self.validate()

            result = self.execute()
            result.started_at = started_at
            result.ended_at = datetime.utcnow()
            result.duration_seconds = time.time() - start_time

            self.logger.info(
                f"Stage {self.name} completed successfully",
                extra={
                    "stage": self.name,
                    "event": "stage_completed",
                    "metadata": {
                        "duration_seconds": result.duration_seconds,
                        "output_files_count": len(result.output_files),
                    },
                },
            )

            return result

        except Exception as e:
            duration = time.time() - start_time

            self.logger.error(
                f"Stage {self.name} failed: {e}",
                extra={
                    "stage": self.name,
                    "event": "stage_failed",
                    "metadata": {"exception": str(e), "error_type": type(e).__name__},
                },
                exc_info=not isinstance(e, PhoenixError),
            )

            return StageResult(
                stage_name=self.name,
                success=False,
                duration_seconds=duration,
                error_message=str(e),
                error=e,
                started_at=started_at,
                ended_at=datetime.utcnow(),
            )

        finally:
            try:
                self.cleanup()
            except Exception as e:
                self.logger.warning(
                    f"Stage {self.name} cleanup failed: {e}",
                    extra={"stage": self.name, "event": "cleanup_failed"},
                )

    def _result(self, output_files: Optional[List[Path]] = None, **metadata: Any) -> StageResult:
        """Successful StageResult for this stage."""
        return StageResult(
            stage_name=self.name,
            success=True,
            output_files=output_files or [],
            metadata=metadata,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"
