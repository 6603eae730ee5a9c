"""
Release pipeline for phoenix.

Runs version → build → verify → package, and on deploy
commit → tag → upload. Stops at the first failed stage.
"""

import json
import logging
import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Type

from phoenix_build.config import ProjectDescriptor
from phoenix_build.errors import ConfigError
from phoenix_build.header import find_template
from phoenix_build.stages import BUILD_STAGES, DEPLOY_STAGES, ReleaseContext, Stage, StageResult
from phoenix_build.tools import (
    Builder,
    CMakeBuilder,
    GitHubReleaseHost,
    GitSourceControl,
    ReleaseHost,
    SourceControl,
)
from phoenix_build.utils import (
    format_duration,
    print_banner,
    print_error,
    print_info,
    print_success,
    print_warning,
    setup_logging,
)
from phoenix_build.version import BumpMode, VersionInfo, VersionStore


@dataclass
class ReleaseResult:
    """Result of one release run."""

    success: bool
    started_at: datetime
    ended_at: datetime
    duration_seconds: float
    dry_run: bool = True
    stages: Dict[str, StageResult] = field(default_factory=dict)
    version: Optional[VersionInfo] = None
    archive: Optional[Path] = None
    error_message: Optional[str] = None
    error: Optional[Exception] = None

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            "success": self.success,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat(),
            "duration_seconds": self.duration_seconds,
            "dry_run": self.dry_run,
            "stages": {name: result.to_dict() for name, result in self.stages.items()},
            "version": self.version.to_dict() if self.version else None,
            "archive": str(self.archive) if self.archive else None,
            "error_message": self.error_message,
            "error_type": type(self.error).__name__ if self.error else None,
        }


class ReleasePipeline:
    """
    Release orchestrator.

    Tool adapters default to cmake, git and gh in the project root and can
    be replaced for testing.
    """

    def __init__(
        self,
        descriptor: ProjectDescriptor,
        builder: Optional[Builder] = None,
        source_control: Optional[SourceControl] = None,
        release_host: Optional[ReleaseHost] = None,
    ):
        self.descriptor = descriptor
        self.logger: logging.Logger = logging.getLogger("phoenix")
        self.store = VersionStore(descriptor.version_file, descriptor.build_number_file)
        self.builder = builder or CMakeBuilder(
            descriptor.root,
            build_type=descriptor.build_type,
            generator=descriptor.generator,
            logger=self.logger,
        )
        self.source_control = source_control or GitSourceControl(descriptor.root, logger=self.logger)
        self.release_host = release_host or GitHubReleaseHost(
            descriptor.root, descriptor.github_repo, logger=self.logger
        )

    def validate(self, deploy: bool = False) -> None:
        """
        Validate descriptor, version declaration, header template and tools.

        Raises:
            ConfigError: If a required piece is missing
        """
        print_banner("Release Validation")

        self.descriptor.validate()
        print_success(f"Descriptor valid: {self.descriptor.descriptor_path}")

        triple = self.store.read_triple()
        print_success(f"Version declaration: {triple} ({self.store.version_file.name})")

        template = find_template(self.descriptor.root)
        print_success(f"Header template: {template}")

        required = ["cmake", "git"] + (["gh"] if deploy else [])
        for tool in ["cmake", "git", "gh"]:
            if shutil.which(tool):
                print_success(f"  {tool}: found")
            elif tool in required:
                raise ConfigError(f"Required tool not found on PATH: {tool}")
            else:
                print_warning(f"  {tool}: not found (needed for --deploy)")

    def run(
        self,
        bump: BumpMode = BumpMode.NONE,
        deploy: bool = False,
        verbose: bool = False,
    ) -> ReleaseResult:
        """
        Run the release pipeline.

        Args:
            bump: Version increment mode
            deploy: Commit, tag and upload after packaging (default: dry run)
            verbose: Enable debug logging

        Returns:
            ReleaseResult with execution details
        """
        started_at = datetime.utcnow()
        start_time = time.time()

        log_level = "DEBUG" if verbose else self.descriptor.get_log_level()
        self.logger = setup_logging(
            self.descriptor.get_log_file_path(),
            log_level,
            self.descriptor.get_log_format(),
            self.descriptor.should_log_to_console() or verbose,
        )

        mode = "deploy" if deploy else "dry run"
        self.logger.info(
            f"Starting release: {self.descriptor.project_name} ({mode})",
            extra={
                "event": "release_started",
                "metadata": {
                    "project": self.descriptor.project_name,
                    "bump": bump.value,
                    "deploy": deploy,
                },
            },
        )

        print_banner(f"{self.descriptor.project_name} release ({mode})")

        context = ReleaseContext(
            descriptor=self.descriptor,
            store=self.store,
            builder=self.builder,
            source_control=self.source_control,
            release_host=self.release_host,
            bump=bump,
            deploy=deploy,
        )

        stage_classes: List[Type[Stage]] = list(BUILD_STAGES)
        if deploy:
            stage_classes += DEPLOY_STAGES

        stage_results: Dict[str, StageResult] = {}

        for stage_class in stage_classes:
            stage = stage_class(context, self.logger)
            print_info(f"{stage.name}...")

            result = stage.run()
            stage_results[stage.name] = result

            if not result.success:
                print_error(f"{stage.name}: {result.error_message}")

                self.logger.error(
                    f"Release failed at stage {stage.name}",
                    extra={
                        "event": "release_failed",
                        "stage": stage.name,
                        "metadata": {"error": result.error_message},
                    },
                )

                return self._finish(
                    ReleaseResult(
                        success=False,
                        started_at=started_at,
                        ended_at=datetime.utcnow(),
                        duration_seconds=time.time() - start_time,
                        dry_run=not deploy,
                        stages=stage_results,
                        version=context.version,
                        archive=context.archive,
                        error_message=f"Stage {stage.name} failed: {result.error_message}",
                        error=result.error,
                    )
                )

            print_success(self._describe(stage.name, context))

        duration = time.time() - start_time

        if deploy:
            print_success(
                f"Released {context.version.triple.tag} ({context.version.full}) "
                f"in {format_duration(duration)}"
            )
        else:
            print_info("Dry run - skipping commit, tag and upload")
            print_success(f"Dry run completed in {format_duration(duration)}")

        self.logger.info(
            "Release completed successfully",
            extra={
                "event": "release_completed",
                "metadata": {"duration_seconds": duration, "dry_run": not deploy},
            },
        )

        return self._finish(
            ReleaseResult(
                success=True,
                started_at=started_at,
                ended_at=datetime.utcnow(),
                duration_seconds=duration,
                dry_run=not deploy,
                stages=stage_results,
                version=context.version,
                archive=context.archive,
            )
        )

    def status(self) -> Optional[Dict]:
        """
        Get the saved state of the last release run.

        Returns:
            State dictionary, or None if no previous run
        """
        state_file = self.descriptor.get_state_file()

        if not state_file.exists():
            return None

        try:
            with open(state_file, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning(f"Could not load release state: {e}")
            return None

    def _describe(self, stage_name: str, context: ReleaseContext) -> str:
        if stage_name == "version":
            return f"version: {context.version.full}"
        if stage_name == "verify":
            return f"verify: {len(context.artifacts)} artifacts"
        if stage_name == "package":
            return f"package: {context.archive.name}"
        return f"{stage_name}: done"

    def _finish(self, result: ReleaseResult) -> ReleaseResult:
        self._save_state(result)
        return result

    def _save_state(self, result: ReleaseResult) -> None:
        """
        Save release state to disk.

        Args:
            result: Release result to save
        """
        state_file = self.descriptor.get_state_file()
        state_file.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(state_file, "w", encoding="utf-8") as f:
                json.dump(result.to_dict(), f, indent=2, default=str)

            self.logger.debug(
                f"Saved release state to {state_file}",
                extra={"event": "state_saved", "metadata": {"file": str(state_file)}},
            )

        except OSError as e:
            self.logger.warning(
                f"Could not save release state: {e}",
                extra={"event": "state_save_failed", "metadata": {"error": str(e)}},
            )
