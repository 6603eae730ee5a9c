"""GitSourceControl and the deploy stages against a real git repository with a bare remote."""

import shutil
import subprocess

import pytest

from phoenix_build.config import load_descriptor
from phoenix_build.errors import ReleaseUploadError
from phoenix_build.pipeline import ReleasePipeline
from phoenix_build.tools import GitSourceControl
from phoenix_build.version import BumpMode

from conftest import FakeBuilder, FakeReleaseHost, write_project


pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(cwd, *args):
    return subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True, check=True).stdout


def remote_tags(root):
    return git(root, "ls-remote", "--tags", "origin")


@pytest.fixture
def repo(tmp_path, monkeypatch):
    """Committed project at tmp_path/work whose origin is the bare repo tmp_path/origin.git."""
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    origin = tmp_path / "origin.git"
    git(tmp_path, "init", "--bare", "-q", str(origin))

    descriptor_path = write_project(tmp_path / "work")
    root = descriptor_path.parent
    (root / ".gitignore").write_text("build/\ndist/\n.phoenix/\n")

    git(root, "init", "-q")
    git(root, "symbolic-ref", "HEAD", "refs/heads/main")
    git(root, "config", "user.name", "Release Bot")
    git(root, "config", "user.email", "release@example.com")
    git(root, "config", "commit.gpgsign", "false")
    git(root, "config", "tag.gpgsign", "false")
    git(root, "add", "-A")
    git(root, "commit", "-q", "-m", "initial")
    git(root, "remote", "add", "origin", str(origin))
    git(root, "push", "-q", "origin", "main")
    return descriptor_path


def make_pipeline(descriptor_path, host=None):
    descriptor = load_descriptor(descriptor_path)
    return ReleasePipeline(
        descriptor,
        builder=FakeBuilder(outputs=["myapp"]),
        source_control=GitSourceControl(descriptor.root),
        release_host=host or FakeReleaseHost(),
    )


class TestGitSourceControl:
    def test_commit_and_dirty_state(self, repo):
        root = repo.parent
        scm = GitSourceControl(root)

        assert scm.short_commit() == git(root, "rev-parse", "--short", "HEAD").strip()
        assert scm.is_dirty() is False

        (root / "CMakeLists.txt").write_text((root / "CMakeLists.txt").read_text() + "\n")
        assert scm.is_dirty() is True

    def test_identical_rewrite_is_clean(self, repo):
        root = repo.parent
        scm = GitSourceControl(root)
        counter = root / ".phoenix-build-number"

        counter.write_text(counter.read_text())

        assert scm.is_dirty() is False
        assert scm.has_changes([counter]) is False

    def test_outside_repository(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
        plain = tmp_path / "plain"
        plain.mkdir()
        scm = GitSourceControl(plain)

        assert scm.short_commit() == "unknown"
        assert scm.is_dirty() is True

    def test_commit_only_when_changed(self, repo):
        root = repo.parent
        scm = GitSourceControl(root)
        counter = root / ".phoenix-build-number"

        assert scm.has_changes([counter]) is False
        assert not scm.commit([counter], "Release nothing").ok

        counter.write_text("6")
        assert scm.has_changes([counter]) is True
        assert scm.commit([counter], "Release v0.1.2+6").ok
        assert scm.has_changes([counter]) is False
        assert scm.push("main").ok
        assert git(root, "log", "-1", "--format=%s", "origin/main").strip() == "Release v0.1.2+6"

    def test_tag_push_and_delete(self, repo):
        root = repo.parent
        scm = GitSourceControl(root)

        assert scm.create_tag("v0.1.2", "Release 0.1.2+5").ok
        assert scm.push_tag("v0.1.2").ok
        assert "refs/tags/v0.1.2" in remote_tags(root)

        assert scm.delete_tag("v0.1.2").ok
        assert scm.delete_remote_tag("v0.1.2").ok
        assert "refs/tags/v0.1.2" not in remote_tags(root)

        assert not scm.delete_tag("v0.1.2").ok
        assert not scm.delete_remote_tag("v0.1.2").ok


class TestDeployWithGit:
    def test_deploy_without_bump(self, repo):
        root = repo.parent
        head = git(root, "rev-parse", "HEAD")

        result = make_pipeline(repo).run(deploy=True)

        assert result.success, result.error_message
        assert result.stages["commit"].metadata["committed"] is False
        assert git(root, "rev-parse", "HEAD") == head
        assert "refs/tags/v0.1.2" in remote_tags(root)

    def test_redeploy_then_bump(self, repo):
        root = repo.parent

        assert make_pipeline(repo).run(deploy=True).success
        result = make_pipeline(repo).run(bump=BumpMode.PATCH, deploy=True)

        assert result.success, result.error_message
        assert git(root, "log", "-1", "--format=%s", "origin/main").startswith("Release v0.1.3+6.")
        tags = remote_tags(root)
        assert "refs/tags/v0.1.2" in tags
        assert "refs/tags/v0.1.3" in tags

    def test_upload_failure_removes_tag(self, repo):
        root = repo.parent
        host = FakeReleaseHost(fail_create=True, fail_upload=True)

        result = make_pipeline(repo, host=host).run(bump=BumpMode.PATCH, deploy=True)

        assert isinstance(result.error, ReleaseUploadError)
        assert "v0.1.3" not in remote_tags(root)
        assert git(root, "tag", "--list", "v0.1.3") == ""
        assert git(root, "log", "-1", "--format=%s", "origin/main").startswith("Release v0.1.3+6.")
