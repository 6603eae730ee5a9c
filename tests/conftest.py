import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

from phoenix_build.config import load_descriptor
from phoenix_build.tools.base import Builder, CommandResult, ReleaseHost, SourceControl


CMAKELISTS = """cmake_minimum_required(VERSION 3.20)
project(MyApp
    VERSION 0.1.2
    LANGUAGES CXX)

add_executable(myapp main.cpp)
"""

TEMPLATE = """#pragma once
#define APP_VERSION "@PHOENIX_VERSION_FULL@"
#define APP_BUILD @PHOENIX_VERSION_BUILD@
#define APP_COMMIT "@PHOENIX_GIT_COMMIT@"
"""


def _content(path: Path) -> Optional[bytes]:
    return path.read_bytes() if path.exists() else None


def ok(*command: str) -> CommandResult:
    return CommandResult(command=list(command), returncode=0)


def failed(*command: str, stderr: str = "boom") -> CommandResult:
    return CommandResult(command=list(command), returncode=1, stderr=stderr)


class FakeBuilder(Builder):
    """Records calls and drops the given files into the build directory."""

    def __init__(self, outputs: Sequence[str] = (), fail_configure: bool = False, fail_build: bool = False):
        self.outputs = list(outputs)
        self.fail_configure = fail_configure
        self.fail_build = fail_build
        self.calls: List[str] = []

    def configure(self, source_dir: Path, build_dir: Path) -> CommandResult:
        self.calls.append("configure")
        if self.fail_configure:
            return failed("cmake", "-S", str(source_dir))
        build_dir.mkdir(parents=True, exist_ok=True)
        return ok("cmake", "-S", str(source_dir))

    def build(self, build_dir: Path) -> CommandResult:
        self.calls.append("build")
        if self.fail_build:
            return failed("cmake", "--build", str(build_dir))
        for name in self.outputs:
            (build_dir / name).write_bytes(b"binary")
        return ok("cmake", "--build", str(build_dir))


class FakeSourceControl(SourceControl):
    """
    In-memory git: tracks commits, pushes and local/remote tags.

    File content is compared against the last committed snapshot, so
    committing unchanged files fails the way git does.
    """

    def __init__(self, commit: str = "abc1234", dirty: bool = False):
        self.commit_id = commit
        self.dirty = dirty
        self.commits: List[str] = []
        self.pushed_branches: List[str] = []
        self.local_tags = set()
        self.remote_tags = set()
        self.fail = set()
        self.snapshot: Dict[str, Optional[bytes]] = {}

    def short_commit(self) -> str:
        return self.commit_id

    def is_dirty(self) -> bool:
        return self.dirty

    def track(self, *paths: Path) -> None:
        """Record the current content of paths as committed."""
        for path in paths:
            self.snapshot[str(path)] = _content(path)

    def has_changes(self, paths) -> bool:
        return any(str(p) not in self.snapshot or self.snapshot[str(p)] != _content(p) for p in paths)

    def commit(self, paths, message: str) -> CommandResult:
        if "commit" in self.fail:
            return failed("git", "commit")
        if not self.has_changes(paths):
            return failed("git", "commit", stderr="nothing to commit, working tree clean")
        self.track(*paths)
        self.commits.append(message)
        return ok("git", "commit", "-m", message)

    def push(self, branch: str) -> CommandResult:
        if "push" in self.fail:
            return failed("git", "push")
        self.pushed_branches.append(branch)
        return ok("git", "push", "origin", branch)

    def create_tag(self, tag: str, message: str) -> CommandResult:
        if "create_tag" in self.fail:
            return failed("git", "tag")
        self.local_tags.add(tag)
        return ok("git", "tag", "-a", tag)

    def push_tag(self, tag: str) -> CommandResult:
        if "push_tag" in self.fail:
            return failed("git", "push", "origin", tag)
        self.remote_tags.add(tag)
        return ok("git", "push", "origin", tag)

    def delete_tag(self, tag: str) -> CommandResult:
        if tag not in self.local_tags:
            return failed("git", "tag", "-d", tag)
        self.local_tags.discard(tag)
        return ok("git", "tag", "-d", tag)

    def delete_remote_tag(self, tag: str) -> CommandResult:
        if tag not in self.remote_tags:
            return failed("git", "push", "origin", f":refs/tags/{tag}")
        self.remote_tags.discard(tag)
        return ok("git", "push", "origin", f":refs/tags/{tag}")


class FakeReleaseHost(ReleaseHost):
    def __init__(self, fail_create: bool = False, fail_upload: bool = False):
        self.fail_create = fail_create
        self.fail_upload = fail_upload
        self.calls: List[tuple] = []

    def create_release(self, tag: str, asset: Path, title: str, notes: str) -> CommandResult:
        self.calls.append(("create", tag, asset))
        if self.fail_create:
            return failed("gh", "release", "create", stderr="release already exists")
        return ok("gh", "release", "create", tag)

    def upload_asset(self, tag: str, asset: Path) -> CommandResult:
        self.calls.append(("upload", tag, asset))
        if self.fail_upload:
            return failed("gh", "release", "upload")
        return ok("gh", "release", "upload", tag)


def write_project(
    root: Path,
    descriptor: Optional[dict] = None,
    build_number: Optional[str] = "5",
    template: Optional[str] = TEMPLATE,
) -> Path:
    """Lay out a consuming project; returns the descriptor path."""
    root.mkdir(parents=True, exist_ok=True)
    (root / "CMakeLists.txt").write_text(CMAKELISTS)
    if build_number is not None:
        (root / ".phoenix-build-number").write_text(build_number)
    if template is not None:
        (root / "cmake").mkdir(exist_ok=True)
        (root / "cmake" / "version.h.in").write_text(template)
    (root / "README.md").write_text("# MyApp\n")

    data = {
        "projectName": "MyApp",
        "githubRepo": "owner/myapp",
        "executables": ["myapp"],
        "dlls": [],
        "packageFiles": ["README.md"],
        "platform": "linux-x64",
    }
    data.update(descriptor or {})

    path = root / "phoenix-project.json"
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def project(tmp_path):
    """Descriptor path of a standard project (version 0.1.2, build 5)."""
    return write_project(tmp_path / "project")


@pytest.fixture
def descriptor(project):
    return load_descriptor(project)


@pytest.fixture(autouse=True)
def reset_phoenix_logger():
    yield
    logger = logging.getLogger("phoenix")
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
