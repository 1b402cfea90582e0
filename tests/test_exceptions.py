"""
Tests for the exception hierarchy.
"""

import pytest

from audiobookrepack.exceptions import (
    ConfigurationError, DependencyError, ExternalToolError, MetadataError,
    ProbeFailureError, RepackError, RepackInterruptedError, UnparseableTitleError,
    ValidationError, classify_error
)


class TestRepackError:
    """Test cases for error messages."""

    def test_user_message_includes_suggestion_and_code(self):
        error = DependencyError("ffprobe")

        message = error.get_user_message()

        assert "Required dependency 'ffprobe' is not available" in message
        assert "Suggestion: ffprobe ships with FFmpeg" in message
        assert message.endswith("Error Code: DEP001")

    def test_probe_failure_message(self):
        """Test that the file, exit code and stderr are reported."""
        error = ProbeFailureError("ffprobe exited with an error", "/books/a.m4a",
                                  exit_code=1, stderr="Invalid data found\n")

        assert str(error) == ("Probe failed: ffprobe exited with an error (file: /books/a.m4a) "
                              "(exit code: 1)\nInvalid data found")

    def test_unparseable_title(self):
        error = UnparseableTitleError("Some Book")

        assert error.title == "Some Book"
        assert "'Some Book'" in str(error)

    def test_all_errors_share_the_base(self):
        for error in (ExternalToolError("x"), MetadataError("x", "f"), ConfigurationError("x"),
                      RepackInterruptedError("x", "concatenation"), ValidationError("x", "path")):
            assert isinstance(error, RepackError)


class TestClassifyError:
    """Test cases for classify_error."""

    @pytest.mark.parametrize("error,category", [
        (DependencyError("ffmpeg"), "fatal"),
        (ValidationError("x", "no_chapters"), "user_error"),
        (UnparseableTitleError("x"), "user_error"),
        (MetadataError("x", "f"), "recoverable"),
        (ExternalToolError("x", exit_code=1), "fatal"),
        (ValueError("x"), "unknown"),
    ])
    def test_categories(self, error, category):
        assert classify_error(error) == category
