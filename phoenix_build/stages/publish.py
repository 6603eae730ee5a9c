"""
Publish stages: commit the version bump, tag it, upload the archive.

Only run on a real deploy. The single compensating action is removing the
release tag when the upload fails; the pushed version commit stays.
"""

from phoenix_build.errors import GitOpsError, ReleaseUploadError
from phoenix_build.stages.base import Stage, StageResult


class CommitStage(Stage):
    """Commit the version file and build counter, then push the release branch."""

    name = "commit"

    def execute(self) -> StageResult:
        scm = self.context.source_control
        store = self.context.store
        message = f"Release v{self.context.version.full}"
        paths = [store.version_file, store.counter.path]

        # Re-releasing without a bump leaves both files as committed
        committed = scm.has_changes(paths)
        if committed:
            result = scm.commit(paths, message)
            if not result.ok:
                raise GitOpsError(f"Commit failed: {result.describe()}")
        else:
            self.logger.info(
                "Version files unchanged, nothing to commit",
                extra={"stage": self.name, "event": "commit_skipped"},
            )

        pushed = scm.push(self.descriptor.branch)
        if not pushed.ok:
            raise GitOpsError(f"Push to {self.descriptor.branch} failed: {pushed.describe()}")

        return self._result(message=message, branch=self.descriptor.branch, committed=committed)


class TagStage(Stage):
    """Recreate and push the v{MAJOR.MINOR.PATCH} tag."""

    name = "tag"

    def execute(self) -> StageResult:
        scm = self.context.source_control
        tag = self.context.version.triple.tag

        # Stale tags from an earlier attempt; failures here are expected when absent
        scm.delete_tag(tag)
        scm.delete_remote_tag(tag)

        created = scm.create_tag(tag, f"Release {self.context.version.full}")
        if not created.ok:
            raise GitOpsError(f"Creating tag {tag} failed: {created.describe()}")

        pushed = scm.push_tag(tag)
        if not pushed.ok:
            raise GitOpsError(f"Pushing tag {tag} failed: {pushed.describe()}")

        self.context.tag_pushed = True
        return self._result(tag=tag)


class UploadStage(Stage):
    """
    Publish the archive on the release host.

    Falls back to uploading into an existing release. When both fail, the
    tag created by TagStage is deleted locally and remotely.
    """

    name = "upload"

    def execute(self) -> StageResult:
        host = self.context.release_host
        version = self.context.version
        tag = version.triple.tag
        archive = self.context.archive

        created = host.create_release(
            tag,
            archive,
            title=f"{self.descriptor.project_name} {tag}",
            notes=f"Release {version.full}",
        )
        if created.ok:
            return self._result(tag=tag, archive=str(archive), action="created")

        self.logger.warning(
            f"Creating release {tag} failed, uploading to existing release: {created.describe()}",
            extra={"stage": self.name, "event": "release_create_failed"},
        )

        uploaded = host.upload_asset(tag, archive)
        if uploaded.ok:
            return self._result(tag=tag, archive=str(archive), action="uploaded")

        self._rollback_tag(tag)
        raise ReleaseUploadError(
            f"Release upload for {tag} failed: {uploaded.describe()}. "
            f"Tag {tag} was removed; the version commit remains on {self.descriptor.branch}."
        )

    def _rollback_tag(self, tag: str) -> None:
        scm = self.context.source_control
        local = scm.delete_tag(tag)
        remote = scm.delete_remote_tag(tag)
        self.context.tag_pushed = False

        self.logger.warning(
            f"Rolled back tag {tag}",
            extra={
                "stage": self.name,
                "event": "tag_rolled_back",
                "metadata": {"local_deleted": local.ok, "remote_deleted": remote.ok},
            },
        )
