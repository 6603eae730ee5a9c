"""
Project initializer.

Copies bootstrap files into a consuming project. Existing files are never
overwritten.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from phoenix_build.config import DEFAULT_BUILD_NUMBER_FILE, DEFAULT_DESCRIPTOR


TEMPLATES_DIR = Path(__file__).parent / "templates"
CMAKE_MODULE = Path(__file__).parent / "cmake" / "phoenix-build.cmake"

# (destination relative to project root, packaged template or None for fixed content)
BOOTSTRAP_FILES: List[Tuple[str, Optional[str]]] = [
    ("CMakePresets.json", "CMakePresets.json"),
    ("cmake/version.h.in", "version.h.in"),
    (DEFAULT_DESCRIPTOR, "phoenix-project.json"),
    (DEFAULT_BUILD_NUMBER_FILE, None),
    (".gitignore", "gitignore"),
]


@dataclass
class InitResult:
    """Files created and skipped by one init run."""

    created: List[Path]
    skipped: List[Path]


def init_project(project_dir: Path) -> InitResult:
    """
    Create missing bootstrap files in project_dir.

    Args:
        project_dir: Root of the consuming project

    Returns:
        InitResult listing created and skipped destinations
    """
    project_dir = Path(project_dir)
    created: List[Path] = []
    skipped: List[Path] = []

    for relative, template in BOOTSTRAP_FILES:
        destination = project_dir / relative

        if destination.exists():
            skipped.append(destination)
            continue

        destination.parent.mkdir(parents=True, exist_ok=True)
        if template is None:
            destination.write_text("0", encoding="utf-8")
        else:
            destination.write_bytes((TEMPLATES_DIR / template).read_bytes())
        created.append(destination)

    return InitResult(created=created, skipped=skipped)
