"""
Version resolution for phoenix.

The version triple lives in the `project(<name> VERSION x.y.z)` call of
CMakeLists.txt, the build number in a plain-text counter file. Both are
re-read on every run; the composite version string is derived from them
plus live git state and never stored.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from phoenix_build.errors import ConfigError
from phoenix_build.tools.base import SourceControl


logger = logging.getLogger("phoenix")

# project(<name> ... VERSION <major>.<minor>.<patch> ...), argument list may span lines
PROJECT_VERSION_RE = re.compile(
    r"(?P<prefix>\bproject\s*\([^)]*?\bVERSION\s+)(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)(?![.\d])",
    re.IGNORECASE,
)
PROJECT_NAME_RE = re.compile(r"\bproject\s*\(\s*([A-Za-z0-9_.+-]+)", re.IGNORECASE)
BUILD_NUMBER_RE = re.compile(r"^\d+$")


@dataclass(frozen=True)
class VersionTriple:
    """Semantic MAJOR.MINOR.PATCH version."""

    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @property
    def tag(self) -> str:
        """Git tag name for this version."""
        return f"v{self}"


class BumpMode(Enum):
    """Version increment mode for a release run."""

    NONE = "none"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"


@dataclass(frozen=True)
class GitState:
    """Commit identity and cleanliness of the working tree."""

    commit: str
    dirty: bool


@dataclass(frozen=True)
class VersionInfo:
    """All resolved version fields for one run."""

    triple: VersionTriple
    build: int
    commit: str
    dirty: bool

    @property
    def major(self) -> int:
        return self.triple.major

    @property
    def minor(self) -> int:
        return self.triple.minor

    @property
    def patch(self) -> int:
        return self.triple.patch

    @property
    def full(self) -> str:
        return format_full_version(self.triple, self.build, self.commit, self.dirty)

    def to_dict(self) -> dict:
        return {
            "version": str(self.triple),
            "build": self.build,
            "commit": self.commit,
            "dirty": self.dirty,
            "full": self.full,
        }


def format_full_version(triple: VersionTriple, build: int, commit: str, dirty: bool) -> str:
    """Composite version string: M.m.p+BUILD.COMMIT with -dirty appended iff dirty."""
    suffix = "-dirty" if dirty else ""
    return f"{triple}+{build}.{commit}{suffix}"


def bump(triple: VersionTriple, build: int, mode: BumpMode) -> Tuple[VersionTriple, int]:
    """
    Compute the next version triple and build counter.

    Major and minor bumps reset the counter, a patch bump increments it,
    no bump leaves both unchanged.
    """
    if mode is BumpMode.MAJOR:
        return VersionTriple(triple.major + 1, 0, 0), 0
    if mode is BumpMode.MINOR:
        return VersionTriple(triple.major, triple.minor + 1, 0), 0
    if mode is BumpMode.PATCH:
        return VersionTriple(triple.major, triple.minor, triple.patch + 1), build + 1
    return triple, build


def _match_version(text: str, source: str) -> re.Match:
    match = PROJECT_VERSION_RE.search(text)
    if not match:
        raise ConfigError(
            f"No MAJOR.MINOR.PATCH version declaration found in {source}. "
            "Use project(<name> VERSION x.y.z); two- and four-part versions are not supported"
        )
    return match


def parse_version(text: str, source: str = "CMakeLists.txt") -> VersionTriple:
    """
    Extract the version triple from a project() declaration.

    Raises:
        ConfigError: If no project(... VERSION x.y.z) declaration is found
    """
    match = _match_version(text, source)
    return VersionTriple(
        int(match.group("major")),
        int(match.group("minor")),
        int(match.group("patch")),
    )


def replace_version(text: str, triple: VersionTriple, source: str = "CMakeLists.txt") -> str:
    """Rewrite the first project() version declaration in place."""
    match = _match_version(text, source)
    return text[:match.start()] + match.group("prefix") + str(triple) + text[match.end():]


def parse_project_name(text: str) -> Optional[str]:
    """Name given to the first project() call, if any."""
    match = PROJECT_NAME_RE.search(text)
    return match.group(1) if match else None


class BuildCounter:
    """Build number persisted as a single integer in a plain-text file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self, create_missing: bool = True) -> int:
        """
        Read the counter.

        A missing file counts as 0 and is created unless create_missing is
        False. Content that is not a non-negative integer is treated as 0
        with a warning.
        """
        if not self.path.exists():
            logger.warning(
                f"{self.path.name} not found, using 0",
                extra={"event": "build_number_missing", "metadata": {"file": str(self.path)}},
            )
            if create_missing:
                self.write(0)
            return 0

        raw = self.path.read_text(encoding="utf-8").strip()
        if not BUILD_NUMBER_RE.match(raw):
            logger.warning(
                f"Invalid {self.path.name} ({raw!r}), resetting to 0",
                extra={"event": "build_number_invalid", "metadata": {"file": str(self.path), "value": raw}},
            )
            return 0

        return int(raw)

    def write(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"Build number must be non-negative, got {value}")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(str(value), encoding="utf-8")


class VersionStore:
    """
    The version declaration and the build counter, read and written together.
    """

    def __init__(self, version_file: Path, build_number_file: Path):
        self.version_file = Path(version_file)
        self.counter = BuildCounter(build_number_file)

    def _read_version_text(self) -> str:
        if not self.version_file.exists():
            raise ConfigError(f"Version file not found: {self.version_file}")
        return self.version_file.read_text(encoding="utf-8")

    def read_triple(self) -> VersionTriple:
        return parse_version(self._read_version_text(), source=str(self.version_file))

    def read_build(self, create_missing: bool = True) -> int:
        return self.counter.read(create_missing=create_missing)

    def read_project_name(self) -> Optional[str]:
        return parse_project_name(self._read_version_text())

    def persist(self, triple: VersionTriple, build: int) -> None:
        """
        Write the version triple and build counter.

        The new version file content is computed before either file is
        touched, so an unmatched declaration leaves both files unchanged.
        """
        if build < 0:
            raise ValueError(f"Build number must be non-negative, got {build}")

        new_text = replace_version(
            self._read_version_text(), triple, source=str(self.version_file)
        )
        self.version_file.write_text(new_text, encoding="utf-8")
        self.counter.write(build)

        logger.info(
            f"Persisted version {triple} build {build}",
            extra={
                "event": "version_persisted",
                "metadata": {"version": str(triple), "build": build},
            },
        )


def resolve_git_state(source_control: Optional[SourceControl]) -> GitState:
    """Query commit and dirty flag; without source control the commit is "unknown"."""
    if source_control is None:
        return GitState(commit="unknown", dirty=False)
    return GitState(commit=source_control.short_commit(), dirty=source_control.is_dirty())


def resolve_version(store: VersionStore, source_control: Optional[SourceControl]) -> VersionInfo:
    """Resolve the current version triple, build number and git state."""
    triple = store.read_triple()
    build = store.read_build()
    git_state = resolve_git_state(source_control)
    return VersionInfo(triple=triple, build=build, commit=git_state.commit, dirty=git_state.dirty)
