"""Tests for phoenix error classes."""

import pytest

from phoenix_build.errors import (
    ArtifactMissingError,
    BuildError,
    ConfigError,
    GitOpsError,
    PhoenixError,
    PreconditionError,
    ReleaseUploadError,
)


ALL_ERRORS = [
    ConfigError,
    PreconditionError,
    BuildError,
    ArtifactMissingError,
    GitOpsError,
    ReleaseUploadError,
]


class TestPhoenixError:
    """Tests for base PhoenixError."""

    def test_is_exception(self):
        assert issubclass(PhoenixError, Exception)

    def test_has_message(self):
        error = PhoenixError("my message")
        assert str(error) == "my message"


class TestErrorTaxonomy:
    """Every fatal condition has its own PhoenixError subclass."""

    @pytest.mark.parametrize("error_cls", ALL_ERRORS)
    def test_is_phoenix_error(self, error_cls):
        assert issubclass(error_cls, PhoenixError)

    @pytest.mark.parametrize("error_cls", ALL_ERRORS)
    def test_can_be_caught_as_phoenix_error(self, error_cls):
        with pytest.raises(PhoenixError):
            raise error_cls("failure")

    def test_types_are_distinct(self):
        """No error type is a subclass of another."""
        for a in ALL_ERRORS:
            for b in ALL_ERRORS:
                if a is not b:
                    assert not issubclass(a, b)
