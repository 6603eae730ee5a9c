"""Tests for the Stage lifecycle."""

import logging

from phoenix_build.errors import BuildError
from phoenix_build.stages.base import ReleaseContext, Stage, StageResult
from phoenix_build.version import VersionStore

from conftest import FakeBuilder, FakeReleaseHost, FakeSourceControl


class RecordingStage(Stage):
    name = "recording"

    def __init__(self, context, logger, error=None):
        super().__init__(context, logger)
        self.error = error
        self.events = []

    def validate(self):
        self.events.append("validate")

    def execute(self):
        self.events.append("execute")
        if self.error:
            raise self.error
        return self._result(answer=42)

    def cleanup(self):
        self.events.append("cleanup")


def _context(descriptor):
    return ReleaseContext(
        descriptor=descriptor,
        store=VersionStore(descriptor.version_file, descriptor.build_number_file),
        builder=FakeBuilder(),
        source_control=FakeSourceControl(),
        release_host=FakeReleaseHost(),
    )


class TestStageRun:
    def test_success(self, descriptor):
        stage = RecordingStage(_context(descriptor), logging.getLogger("phoenix"))

        result = stage.run()

        assert isinstance(result, StageResult)
        assert result.success
        assert result.metadata == {"answer": 42}
        assert result.started_at is not None and result.ended_at is not None
        assert stage.events == ["validate", "execute", "cleanup"]

    def test_phoenix_error_captured(self, descriptor):
        error = BuildError("compiler exploded")
        stage = RecordingStage(_context(descriptor), logging.getLogger("phoenix"), error=error)

        result = stage.run()

        assert not result.success
        assert result.error is error
        assert result.error_message == "compiler exploded"
        assert result.to_dict()["error_type"] == "BuildError"
        assert stage.events == ["validate", "execute", "cleanup"]

    def test_unexpected_error_captured(self, descriptor):
        stage = RecordingStage(_context(descriptor), logging.getLogger("phoenix"), error=OSError("disk full"))

        result = stage.run()

        assert not result.success
        assert isinstance(result.error, OSError)
