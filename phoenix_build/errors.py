"""
Error classes for phoenix release runs.

Every fatal condition in the release pipeline maps to one of these types:
- ConfigError: missing/malformed descriptor, version declaration or template
- PreconditionError: working tree is dirty on a real deploy
- BuildError: cmake configure or build exited non-zero
- ArtifactMissingError: a declared executable is absent after the build
- GitOpsError: commit, push or tag failure
- ReleaseUploadError: release creation and asset upload both failed

Nothing is retried. Stages raise these errors; the pipeline records the
first one and stops.
"""


class PhoenixError(Exception):
    """Base exception for phoenix."""
    pass


class ConfigError(PhoenixError):
    """Descriptor, version declaration or header template is missing or invalid."""
    pass


class PreconditionError(PhoenixError):
    """
    Release precondition not met.

    Raised before any file is modified, e.g. when a deploy is requested
    against a working tree with uncommitted changes.
    """
    pass


class BuildError(PhoenixError):
    """External build tool returned a non-zero exit code."""
    pass


class ArtifactMissingError(PhoenixError):
    """A declared executable was not produced by the build."""
    pass


class GitOpsError(PhoenixError):
    """A git commit, push or tag operation failed."""
    pass


class ReleaseUploadError(PhoenixError):
    """
    Release upload failed.

    Raised after both `gh release create` and `gh release upload --clobber`
    fail. The tag pushed earlier has already been removed when this is raised.
    """
    pass
