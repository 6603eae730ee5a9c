"""
Artifact verification and packaging stages.
"""

import zipfile
from pathlib import Path
from typing import List, Tuple

from phoenix_build.errors import ArtifactMissingError
from phoenix_build.stages.base import Stage, StageResult
from phoenix_build.utils import executable_name, file_sha256, library_name


class VerifyStage(Stage):
    """
    Check declared build outputs.

    Missing executables are fatal, missing libraries only warn.
    """

    name = "verify"

    def execute(self) -> StageResult:
        artifact_dir = self.descriptor.artifact_dir
        platform_tag = self.descriptor.platform

        artifacts: List[Path] = []
        missing: List[Path] = []

        for name in self.descriptor.executables:
            path = artifact_dir / executable_name(name, platform_tag)
            if path.is_file():
                artifacts.append(path)
            else:
                missing.append(path)

        if missing:
            raise ArtifactMissingError(
                "Executable(s) not found after build: "
                + ", ".join(str(p) for p in missing)
            )

        missing_libraries = []
        for name in self.descriptor.dlls:
            path = artifact_dir / library_name(name, platform_tag)
            if path.is_file():
                artifacts.append(path)
            else:
                missing_libraries.append(str(path))
                self.logger.warning(
                    f"Library not found, packaging without it: {path}",
                    extra={"stage": self.name, "event": "library_missing", "metadata": {"file": str(path)}},
                )

        self.context.artifacts = artifacts
        return self._result(output_files=artifacts, missing_libraries=missing_libraries)


class PackageStage(Stage):
    """Zip verified artifacts and extra package files into the release archive."""

    name = "package"

    def execute(self) -> StageResult:
        version = self.context.version
        archive = self.descriptor.dist_dir / self.descriptor.archive_name(str(version.triple))

        if archive.exists():
            archive.unlink()
        archive.parent.mkdir(parents=True, exist_ok=True)

        entries = self._collect_entries()

        with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for source, arcname in entries:
                zf.write(source, arcname)

        self.context.archive = archive

        self.logger.info(
            f"Packaged {len(entries)} files into {archive.name}",
            extra={
                "stage": self.name,
                "event": "archive_created",
                "metadata": {"archive": str(archive), "files": [a for _, a in entries]},
            },
        )

        return self._result(
            output_files=[archive],
            archive=str(archive),
            file_count=len(entries),
            sha256=file_sha256(archive),
        )

    def _collect_entries(self) -> List[Tuple[Path, str]]:
        """(source path, archive name) pairs, artifacts first."""
        entries: List[Tuple[Path, str]] = [(p, p.name) for p in self.context.artifacts]

        for item in self.descriptor.package_files:
            path = self.descriptor.resolve_path(item)

            if not path.exists():
                self.logger.warning(
                    f"Package file not found, skipping: {path}",
                    extra={"stage": self.name, "event": "package_file_missing", "metadata": {"file": str(path)}},
                )
                continue

            if path.is_dir():
                for child in sorted(path.rglob("*")):
                    if child.is_file():
                        entries.append((child, self._archive_name(child)))
            else:
                entries.append((path, self._archive_name(path)))

        return entries

    def _archive_name(self, path: Path) -> str:
        """Project-relative name inside the archive, or the bare name for outside paths."""
        try:
            return path.resolve().relative_to(self.descriptor.root).as_posix()
        except ValueError:
            return path.name
