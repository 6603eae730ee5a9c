"""
CLI interface for phoenix.

Provides commands: release, header, version, init, validate, status, cmake-module.
"""

from pathlib import Path
from typing import Optional

import click

from phoenix_build import __version__
from phoenix_build.config import (
    DEFAULT_BUILD_NUMBER_FILE,
    DEFAULT_DESCRIPTOR,
    DEFAULT_VERSION_FILE,
    EXPECTED_SHAPE,
    load_descriptor,
)
from phoenix_build.errors import ConfigError, PhoenixError
from phoenix_build.header import HeaderGenerator
from phoenix_build.initializer import CMAKE_MODULE, init_project
from phoenix_build.pipeline import ReleasePipeline
from phoenix_build.tools import GitSourceControl
from phoenix_build.utils import (
    format_duration,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from phoenix_build.version import BumpMode, VersionStore, resolve_version


@click.group()
@click.version_option(version=__version__, prog_name="phoenix")
def main():
    """
    phoenix - version stamping and release packaging for CMake projects.

    Coordinates version → build → verify → package → commit → tag → upload.
    """
    pass


def _load_descriptor_or_exit(config):
    try:
        return load_descriptor(config)
    except ConfigError as e:
        print_error(f"Could not load project descriptor: {e}")
        print_info("Expected phoenix-project.json shape:")
        click.echo(EXPECTED_SHAPE)
        raise SystemExit(1)


def _version_store(source_dir: Path, config: Optional[Path]) -> VersionStore:
    """
    Version file and build counter for a source tree.

    Uses the paths from the project descriptor (--config, or
    phoenix-project.json in the source dir) so header generation and
    releases share one counter; falls back to the defaults without one.
    """
    descriptor_path = config or source_dir / DEFAULT_DESCRIPTOR
    if config is None and not descriptor_path.exists():
        return VersionStore(source_dir / DEFAULT_VERSION_FILE, source_dir / DEFAULT_BUILD_NUMBER_FILE)

    descriptor = load_descriptor(descriptor_path)
    return VersionStore(descriptor.version_file, descriptor.build_number_file)


def _bump_mode(major: bool, minor: bool, patch: bool) -> BumpMode:
    selected = [flag for flag, on in (("--major", major), ("--minor", minor), ("--patch", patch)) if on]
    if len(selected) > 1:
        raise click.UsageError(f"{' and '.join(selected)} are mutually exclusive")
    if major:
        return BumpMode.MAJOR
    if minor:
        return BumpMode.MINOR
    if patch:
        return BumpMode.PATCH
    return BumpMode.NONE


@main.command()
@click.option("--major", is_flag=True, help="Bump major version (resets build number)")
@click.option("--minor", is_flag=True, help="Bump minor version (resets build number)")
@click.option("--patch", is_flag=True, help="Bump patch version (increments build number)")
@click.option(
    "--deploy",
    is_flag=True,
    help="Commit, tag and upload the release (default: dry run)",
)
@click.option(
    "--config",
    type=click.Path(path_type=Path),
    help="Project descriptor (default: ./phoenix-project.json)",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable debug logging",
)
def release(major, minor, patch, deploy, config, verbose):
    """
    Build, package and optionally publish a release.

    Examples:

      # Dry run: rebuild and package the current version
      phoenix release

      # Bump patch version and package
      phoenix release --patch

      # Bump minor version, commit, tag and upload
      phoenix release --minor --deploy
    """
    bump = _bump_mode(major, minor, patch)
    descriptor = _load_descriptor_or_exit(config)

    try:
        result = ReleasePipeline(descriptor).run(bump=bump, deploy=deploy, verbose=verbose)
    except Exception as e:
        print_error(f"Release failed: {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        raise SystemExit(1)

    if result.success:
        if result.archive:
            print_info(f"Archive: {result.archive}")
        raise SystemExit(0)

    if result.error is not None:
        print_error(f"{type(result.error).__name__}: {result.error}")
    raise SystemExit(1)


@main.command()
@click.option(
    "--source-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="CMake source directory",
)
@click.option(
    "--binary-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="CMake binary directory (default: <source-dir>/build)",
)
@click.option(
    "--config",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Project descriptor (default: <source-dir>/phoenix-project.json when present)",
)
def header(source_dir, binary_dir, config):
    """
    Generate <binary-dir>/include/version.h from version.h.in.

    Prints the include directory on stdout; status goes to stderr.
    """
    source_dir = source_dir.resolve()
    binary_dir = (binary_dir or source_dir / "build").resolve()

    try:
        store = _version_store(source_dir, config)
        info = resolve_version(store, GitSourceControl(source_dir))
        generator = HeaderGenerator(source_dir, binary_dir)
        output = generator.generate(info, project_name=store.read_project_name())
    except PhoenixError as e:
        click.echo(f"Phoenix Build: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"Phoenix Build: Full version {info.full}", err=True)
    click.echo(f"Phoenix Build: Generated {output}", err=True)
    click.echo(str(generator.include_dir))


@main.command()
@click.option(
    "--source-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="CMake source directory",
)
@click.option(
    "--config",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Project descriptor (default: <source-dir>/phoenix-project.json when present)",
)
def version(source_dir, config):
    """Print the composite version string (MAJOR.MINOR.PATCH+BUILD.COMMIT[-dirty])."""
    try:
        store = _version_store(source_dir, config)
        info = resolve_version(store, GitSourceControl(source_dir))
    except PhoenixError as e:
        print_error(str(e))
        raise SystemExit(1)

    click.echo(info.full)


@main.command()
@click.option(
    "--dir",
    "project_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Project root to initialize",
)
def init(project_dir):
    """
    Create missing bootstrap files (never overwrites).

    Creates CMakePresets.json, cmake/version.h.in, phoenix-project.json,
    .phoenix-build-number and .gitignore when they do not exist.
    """
    result = init_project(project_dir)

    for path in result.skipped:
        print_warning(f"{path} already exists, skipping")
    for path in result.created:
        print_success(f"Created {path}")

    print_info(f"Add include({CMAKE_MODULE.as_posix()}) after project() in CMakeLists.txt")


@main.command()
@click.option(
    "--config",
    type=click.Path(path_type=Path),
    help="Project descriptor (default: ./phoenix-project.json)",
)
@click.option(
    "--deploy",
    is_flag=True,
    help="Also require the tools needed for --deploy",
)
def validate(config, deploy):
    """
    Validate project descriptor, version declaration and tools.

    Checks:
    - Descriptor syntax and required fields
    - project(... VERSION x.y.z) declaration
    - version.h.in template location
    - cmake, git (and gh) on PATH
    """
    descriptor = _load_descriptor_or_exit(config)

    try:
        ReleasePipeline(descriptor).validate(deploy=deploy)
    except PhoenixError as e:
        print_error(f"Validation failed: {e}")
        raise SystemExit(1)

    print_success("Project configuration is valid")


@main.command()
@click.option(
    "--config",
    type=click.Path(path_type=Path),
    help="Project descriptor (default: ./phoenix-project.json)",
)
def status(config):
    """Show the last release run."""
    descriptor = _load_descriptor_or_exit(config)
    last_run = ReleasePipeline(descriptor).status()

    if not last_run:
        print_info("No previous release runs found")
        return

    status_symbol = "✅" if last_run["success"] else "❌"
    status_text = "SUCCESS" if last_run["success"] else "FAILED"
    mode = "dry run" if last_run.get("dry_run") else "deploy"

    click.echo(f"Last Run: {last_run['started_at']} ({mode})")
    click.echo(f"Status: {status_symbol} {status_text}")
    click.echo(f"Duration: {format_duration(last_run['duration_seconds'])}")

    if last_run.get("version"):
        click.echo(f"Version: {last_run['version']['full']}")
    if last_run.get("archive"):
        click.echo(f"Archive: {last_run['archive']}")
    if last_run.get("error_message"):
        click.echo(f"Error: {last_run['error_message']}")

    if last_run.get("stages"):
        click.echo("\nStages:")
        for stage_name, stage_result in last_run["stages"].items():
            stage_symbol = "✅" if stage_result["success"] else "❌"
            duration = format_duration(stage_result["duration_seconds"])
            click.echo(f"  {stage_symbol} {stage_name:<10} {duration:>8}")


@main.command("cmake-module")
def cmake_module():
    """Print the path of the phoenix-build.cmake include module."""
    click.echo(CMAKE_MODULE.as_posix())
