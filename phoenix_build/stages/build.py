"""
Build stage: clean rebuild through the configured builder.
"""

import shutil

from phoenix_build.errors import BuildError
from phoenix_build.stages.base import Stage, StageResult


class BuildStage(Stage):
    """
    Delete the build directory, then configure and build.

    A failed build leaves the persisted version bump in place.
    """

    name = "build"

    def execute(self) -> StageResult:
        build_dir = self.descriptor.build_dir

        if build_dir.exists():
            self.logger.info(
                f"Removing previous build directory {build_dir}",
                extra={"stage": self.name, "event": "build_dir_removed"},
            )
            shutil.rmtree(build_dir)

        configured = self.context.builder.configure(self.descriptor.root, build_dir)
        if not configured.ok:
            raise BuildError(f"Configure failed: {configured.describe()}")

        built = self.context.builder.build(build_dir)
        if not built.ok:
            raise BuildError(f"Build failed: {built.describe()}")

        return self._result(build_dir=str(build_dir))
