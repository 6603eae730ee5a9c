"""
Configuration management for phoenix.

Loads and validates the phoenix-project.json project descriptor.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from phoenix_build.errors import ConfigError
from phoenix_build.utils import detect_platform_tag


DEFAULT_DESCRIPTOR = "phoenix-project.json"
DEFAULT_BUILD_NUMBER_FILE = ".phoenix-build-number"
DEFAULT_VERSION_FILE = "CMakeLists.txt"

# Printed when the descriptor cannot be loaded
EXPECTED_SHAPE = """{
  "projectName": "MyApp",
  "githubRepo": "owner/repo",
  "executables": ["myapp"],
  "dlls": [],
  "packageFiles": ["README.md", "LICENSE"]
}"""


class ProjectDescriptor:
    """Static packaging configuration for one project."""

    def __init__(self, descriptor_path: Path):
        self.descriptor_path = Path(descriptor_path)
        self.root = self.descriptor_path.resolve().parent
        self.raw_config = self._load_json()

        self.project_name = self.raw_config.get("projectName", "")
        self.github_repo = self.raw_config.get("githubRepo", "")
        self.executables: List[str] = list(self.raw_config.get("executables") or [])
        self.dlls: List[str] = list(self.raw_config.get("dlls") or [])
        self.package_files: List[str] = list(self.raw_config.get("packageFiles") or [])

        self.branch = self.raw_config.get("branch", "main")
        self.build_type = self.raw_config.get("buildType", "Release")
        self.generator: Optional[str] = self.raw_config.get("generator")
        self.platform = self.raw_config.get("platform") or detect_platform_tag()

        self.build_dir = self._resolve(self.raw_config.get("buildDir", "build"))
        artifact_dir = self.raw_config.get("artifactDir")
        self.artifact_dir = self._resolve(artifact_dir) if artifact_dir else self.build_dir
        self.dist_dir = self._resolve(self.raw_config.get("distDir", "dist"))
        self.version_file = self._resolve(
            self.raw_config.get("versionFile", DEFAULT_VERSION_FILE)
        )
        self.build_number_file = self._resolve(
            self.raw_config.get("buildNumberFile", DEFAULT_BUILD_NUMBER_FILE)
        )

        # Logging
        self.logging: Dict[str, Any] = self.raw_config.get("logging") or {}

    def _load_json(self) -> Dict[str, Any]:
        """Load and parse the JSON descriptor."""
        if not self.descriptor_path.exists():
            raise ConfigError(f"Project descriptor not found: {self.descriptor_path}")

        try:
            with open(self.descriptor_path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {self.descriptor_path}: {e}")

        if not isinstance(config, dict):
            raise ConfigError(f"Project descriptor must be a JSON object: {self.descriptor_path}")

        return config

    def _resolve(self, value: str) -> Path:
        path = Path(value)
        return path if path.is_absolute() else self.root / path

    def resolve_path(self, value: str) -> Path:
        """Resolve a descriptor-relative path against the project root."""
        return self._resolve(value)

    def archive_name(self, version: str) -> str:
        """Release archive file name for a MAJOR.MINOR.PATCH version."""
        return f"{self.project_name}-{self.platform}-{version}.zip"

    def get_log_file_path(self) -> Path:
        """Get log file path with date interpolation."""
        log_output = self.logging.get("output", ".phoenix/logs/release-{date}.log")
        log_output = log_output.replace("{date}", datetime.now().strftime("%Y-%m-%d"))
        return self._resolve(log_output)

    def get_log_level(self) -> str:
        """Get logging level."""
        return self.logging.get("level", "INFO").upper()

    def get_log_format(self) -> str:
        """Get log format (structured or pretty)."""
        return self.logging.get("format", "structured")

    def should_log_to_console(self) -> bool:
        """Check if console logging is enabled."""
        return self.logging.get("console", False)

    def get_state_file(self) -> Path:
        """Path of the last-run state file."""
        return self.root / ".phoenix" / "state.json"

    def validate(self) -> None:
        """Validate descriptor fields."""
        if not self.project_name:
            raise ConfigError("projectName is required")

        if not self.github_repo or self.github_repo.count("/") != 1:
            raise ConfigError(
                f"githubRepo must look like 'owner/repo', got: {self.github_repo!r}"
            )

        for field_name in ("executables", "dlls", "packageFiles"):
            values = self.raw_config.get(field_name) or []
            if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                raise ConfigError(f"{field_name} must be a list of strings")

        if not isinstance(self.logging, dict):
            raise ConfigError(f"logging must be an object, got: {self.logging!r}")

        if self.get_log_format() not in ("structured", "pretty"):
            raise ConfigError(
                f"logging.format must be 'structured' or 'pretty', got: {self.get_log_format()!r}"
            )

    def __repr__(self) -> str:
        return f"ProjectDescriptor(name={self.project_name}, repo={self.github_repo})"


def load_descriptor(descriptor_path: Optional[Path] = None) -> ProjectDescriptor:
    """
    Load and validate the project descriptor.

    Args:
        descriptor_path: Path to descriptor. Defaults to phoenix-project.json
            in the current working directory.

    Returns:
        ProjectDescriptor instance

    Raises:
        ConfigError: If the descriptor is missing or invalid
    """
    if descriptor_path is None:
        descriptor_path = Path.cwd() / DEFAULT_DESCRIPTOR

    descriptor = ProjectDescriptor(descriptor_path)
    descriptor.validate()
    return descriptor
