"""CMake tool adapter for phoenix."""

import logging
import os
from pathlib import Path
from typing import List, Optional

from phoenix_build.tools.base import Builder, CommandResult, ToolAdapter


def is_multi_config_generator(gen: Optional[str]) -> bool:
    """Heuristic: VS and Xcode are multi-config; Ninja/Makefiles are typically single-config."""
    if not gen:
        return False
    g = gen.lower()
    return ("visual studio" in g) or ("xcode" in g) or ("multi-config" in g)


class CMakeBuilder(ToolAdapter, Builder):
    """
    Adapter for cmake configure/build.

    Single-config generators get -DCMAKE_BUILD_TYPE at configure time;
    multi-config generators get --config at build time.
    """

    executable = "cmake"

    def __init__(
        self,
        cwd: Path,
        build_type: str = "Release",
        generator: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(cwd, logger)
        self.build_type = build_type
        self.generator = generator or os.environ.get("CMAKE_GENERATOR")

    @property
    def multi_config(self) -> bool:
        return is_multi_config_generator(self.generator)

    def configure(self, source_dir: Path, build_dir: Path) -> CommandResult:
        args: List[str] = ["-S", str(source_dir), "-B", str(build_dir)]
        if self.generator:
            args += ["-G", self.generator]
        if not self.multi_config:
            args += [f"-DCMAKE_BUILD_TYPE={self.build_type}"]
        return self.run(*args, capture=False)

    def build(self, build_dir: Path) -> CommandResult:
        args: List[str] = ["--build", str(build_dir)]
        if self.multi_config:
            args += ["--config", self.build_type]
        return self.run(*args, capture=False)
