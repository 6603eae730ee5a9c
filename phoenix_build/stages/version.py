"""
Version stage: parse, bump, guard and persist the project version.

Nothing is written until the dirty-tree guard has passed.
"""

from phoenix_build.errors import PreconditionError
from phoenix_build.stages.base import Stage, StageResult
from phoenix_build.version import VersionInfo, bump, resolve_git_state


class VersionStage(Stage):
    """Compute the release version and persist it with the build counter."""

    name = "version"

    def execute(self) -> StageResult:
        store = self.context.store

        current = store.read_triple()
        current_build = store.read_build(create_missing=False)
        triple, build = bump(current, current_build, self.context.bump)

        git_state = resolve_git_state(self.context.source_control)

        if self.context.deploy and git_state.dirty:
            raise PreconditionError(
                "Working tree has uncommitted changes. "
                "Commit or stash them before deploying."
            )

        info = VersionInfo(
            triple=triple,
            build=build,
            commit=git_state.commit,
            dirty=git_state.dirty,
        )

        self.logger.info(
            f"Version {current}+{current_build} -> {info.full} ({self.context.bump.value})",
            extra={
                "stage": self.name,
                "event": "version_resolved",
                "metadata": {"previous": str(current), "bump": self.context.bump.value, **info.to_dict()},
            },
        )

        store.persist(triple, build)
        self.context.version = info

        return self._result(
            output_files=[store.version_file, store.counter.path],
            **info.to_dict(),
        )
