"""
Version header generation.

Renders version.h from a version.h.in template at CMake configure time,
with configure_file(@ONLY) substitution semantics.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from phoenix_build.errors import ConfigError
from phoenix_build.version import VersionInfo


logger = logging.getLogger("phoenix")

TEMPLATE_NAME = "version.h.in"

# Searched in order, relative to the CMake source directory
TEMPLATE_SEARCH_PATHS = [
    Path("cmake") / TEMPLATE_NAME,
    Path("templates") / TEMPLATE_NAME,
    Path("external") / "phoenix-build-scripts" / "templates" / TEMPLATE_NAME,
]

PLACEHOLDER_RE = re.compile(r"@([A-Za-z_][A-Za-z0-9_]*)@")


def find_template(source_dir: Path) -> Path:
    """
    Locate version.h.in.

    Raises:
        ConfigError: If no candidate path exists
    """
    candidates: List[Path] = [Path(source_dir) / rel for rel in TEMPLATE_SEARCH_PATHS]
    for candidate in candidates:
        if candidate.is_file():
            return candidate

    searched = ", ".join(str(c) for c in candidates)
    raise ConfigError(
        f"{TEMPLATE_NAME} not found (searched: {searched}). "
        "Run 'phoenix init' or copy it from the phoenix templates."
    )


def header_variables(info: VersionInfo, project_name: Optional[str] = None) -> Dict[str, str]:
    """Template variables for a resolved version."""
    return {
        "PROJECT_NAME": project_name or "",
        "PHOENIX_VERSION_MAJOR": str(info.major),
        "PHOENIX_VERSION_MINOR": str(info.minor),
        "PHOENIX_VERSION_PATCH": str(info.patch),
        "PHOENIX_VERSION_STRING": str(info.triple),
        "PHOENIX_VERSION_BUILD": str(info.build),
        "PHOENIX_GIT_COMMIT": info.commit,
        "PHOENIX_GIT_DIRTY": "1" if info.dirty else "0",
        "PHOENIX_GIT_DIRTY_STR": "-dirty" if info.dirty else "",
        "PHOENIX_VERSION_FULL": info.full,
    }


def render_template(template: str, variables: Dict[str, str]) -> str:
    """Replace @NAME@ tokens; unknown names become empty strings."""
    return PLACEHOLDER_RE.sub(lambda m: variables.get(m.group(1), ""), template)


class HeaderGenerator:
    """Generates <binary_dir>/include/version.h."""

    def __init__(self, source_dir: Path, binary_dir: Path):
        self.source_dir = Path(source_dir)
        self.binary_dir = Path(binary_dir)

    @property
    def include_dir(self) -> Path:
        return self.binary_dir / "include"

    @property
    def output_path(self) -> Path:
        return self.include_dir / "version.h"

    def generate(self, info: VersionInfo, project_name: Optional[str] = None) -> Path:
        """
        Render the header, overwriting any previous one.

        Returns:
            Path of the generated header
        """
        template_path = find_template(self.source_dir)
        # newline="" keeps the template's line endings
        with open(template_path, "r", encoding="utf-8", newline="") as f:
            template = f.read()
        rendered = render_template(template, header_variables(info, project_name))

        self.include_dir.mkdir(parents=True, exist_ok=True)
        with open(self.output_path, "w", encoding="utf-8", newline="") as f:
            f.write(rendered)

        logger.info(
            f"Generated {self.output_path}",
            extra={
                "event": "header_generated",
                "metadata": {"template": str(template_path), "version": info.full},
            },
        )
        return self.output_path
