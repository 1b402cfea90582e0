"""
Tests for the command-line interface.
"""

import pytest
import os
from unittest.mock import patch

from audiobookrepack.cli import main, parse_arguments
from audiobookrepack.core.processor import RepackResult
from audiobookrepack.exceptions import DependencyError, ExternalToolError


@pytest.fixture
def config_file(temp_dir):
    """An empty JSON settings file, so a user config never leaks into tests."""
    path = os.path.join(temp_dir, "config.json")
    with open(path, "w", encoding="utf-8") as f:
        f.write("{}")
    return path


class TestParseArguments:
    """Test cases for parse_arguments."""

    def test_defaults(self, book_folder):
        """Test that unset overrides stay None."""
        args = parse_arguments([book_folder])

        assert args.folder == book_folder
        assert args.batch_size is None
        assert args.keep_temp is None
        assert args.mark_as_audiobook is None
        assert args.quiet is False

    def test_flags(self, book_folder, temp_dir):
        args = parse_arguments([
            f'"{book_folder}"', '--batch-size', '3', '--keep-temp',
            '--no-audiobook-tag', '-o', temp_dir, '-q'
        ])

        assert args.folder == book_folder
        assert args.batch_size == 3
        assert args.keep_temp is True
        assert args.mark_as_audiobook is False
        assert args.output_dir == temp_dir
        assert args.quiet is True

    def test_missing_folder_exits(self, temp_dir):
        """Test that argparse rejects a folder that does not exist."""
        with pytest.raises(SystemExit) as excinfo:
            parse_arguments([os.path.join(temp_dir, "missing")])

        assert excinfo.value.code == 2


class TestMain:
    """Test cases for main."""

    @patch('audiobookrepack.cli.setup_logging')
    @patch('audiobookrepack.cli.RepackProcessor')
    def test_success(self, mock_processor_class, mock_logging, book_folder, temp_dir, config_file, capsys):
        """Test a successful run prints the summary and exits 0."""
        mock_processor_class.return_value.repack.return_value = RepackResult(
            output_file=os.path.join(temp_dir, "Dune.m4a"),
            total_duration_micros=180_000_000,
            warnings=["Tagging failed"],
        )

        with pytest.raises(SystemExit) as excinfo:
            main([book_folder, '--no-progress-bars', '--batch-size', '2', '--config', config_file])

        assert excinfo.value.code == 0
        settings = mock_processor_class.call_args.kwargs['settings']
        assert settings.batch_size == 2
        output = capsys.readouterr().out
        assert "REPACK SUMMARY" in output
        assert "Tagging failed" in output

    @patch('audiobookrepack.cli.setup_logging')
    @patch('audiobookrepack.cli.RepackProcessor')
    def test_repack_error_exits_1(self, mock_processor_class, mock_logging, book_folder, config_file, capsys):
        """Test that pipeline errors are reported on stderr."""
        mock_processor_class.return_value.repack.side_effect = ExternalToolError("boom", exit_code=1)

        with pytest.raises(SystemExit) as excinfo:
            main([book_folder, '-q', '--config', config_file])

        assert excinfo.value.code == 1
        assert "FFmpeg failed: boom" in capsys.readouterr().err

    @patch('audiobookrepack.cli.setup_logging')
    @patch('audiobookrepack.cli.RepackProcessor')
    def test_dependency_error_exits_1(self, mock_processor_class, mock_logging, book_folder, config_file, capsys):
        mock_processor_class.side_effect = DependencyError("ffmpeg")

        with pytest.raises(SystemExit) as excinfo:
            main([book_folder, '-q', '--config', config_file])

        assert excinfo.value.code == 1
        assert "Dependency Error" in capsys.readouterr().err

    @patch('audiobookrepack.cli.setup_logging')
    @patch('audiobookrepack.cli.RepackProcessor')
    def test_keyboard_interrupt_exits_130(self, mock_processor_class, mock_logging, book_folder, config_file):
        mock_processor_class.return_value.repack.side_effect = KeyboardInterrupt

        with pytest.raises(SystemExit) as excinfo:
            main([book_folder, '-q', '--config', config_file])

        assert excinfo.value.code == 130
