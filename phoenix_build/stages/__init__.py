"""Release stages, in pipeline order."""

from phoenix_build.stages.base import ReleaseContext, Stage, StageResult
from phoenix_build.stages.build import BuildStage
from phoenix_build.stages.package import PackageStage, VerifyStage
from phoenix_build.stages.publish import CommitStage, TagStage, UploadStage
from phoenix_build.stages.version import VersionStage

# Dry runs stop after PackageStage
BUILD_STAGES = [VersionStage, BuildStage, VerifyStage, PackageStage]
DEPLOY_STAGES = [CommitStage, TagStage, UploadStage]

__all__ = [
    "ReleaseContext",
    "Stage",
    "StageResult",
    "VersionStage",
    "BuildStage",
    "VerifyStage",
    "PackageStage",
    "CommitStage",
    "TagStage",
    "UploadStage",
    "BUILD_STAGES",
    "DEPLOY_STAGES",
]
