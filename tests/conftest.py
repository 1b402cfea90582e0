"""
Pytest configuration and fixtures for audiobookrepack tests.
"""

import io
import pytest
import os
import tempfile
import shutil
from unittest.mock import Mock

from audiobookrepack.config import RepackSettings
from audiobookrepack.core.bookinfo import BookInfo
from audiobookrepack.core.timeline import ChapterRecord

BOOK_FOLDER_NAME = "Dune - Written by Frank Herbert - Narrated by Scott Brick"

SAMPLE_RAW_METADATA = """;FFMETADATA1
major_brand=M4A 
minor_version=512
compatible_brands=M4A isomiso2
title=Dune - 0001 - Prologue
album=Dune
artist=Frank Herbert
encoder=Lavf60.3.100
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def book_folder(temp_dir):
    """Create an audiobook folder with three placeholder chapter files."""
    folder = os.path.join(temp_dir, BOOK_FOLDER_NAME)
    os.makedirs(folder)

    for name in ("Dune - 0001 - Prologue.m4a", "Dune - 0002 - Arrakis.m4a", "Dune - 0003 - The Desert.m4a"):
        with open(os.path.join(folder, name), 'wb') as f:
            # Placeholder bytes; ffprobe/ffmpeg are mocked in tests
            f.write(b'\x00\x00\x00\x20ftypM4A ' + b'\x00' * 100)

    # Non-chapter files are ignored
    with open(os.path.join(folder, "cover.jpg"), 'wb') as f:
        f.write(b'\xff\xd8\xff')

    return folder


@pytest.fixture
def settings():
    """Default settings."""
    return RepackSettings()


@pytest.fixture
def book_info():
    """Parsed book info for the sample folder."""
    return BookInfo(title="Dune", author="Frank Herbert", narrator="Scott Brick")


@pytest.fixture
def sample_raw_metadata():
    """ffmetadata dump of a tagged first chapter."""
    return SAMPLE_RAW_METADATA


@pytest.fixture
def sample_records():
    """Three chapters of 60s, 30s and 90s, not yet placed on a timeline."""
    return [
        ChapterRecord(key="0001", duration_micros=60_000_000, title="Prologue", original_index=0),
        ChapterRecord(key="0002", duration_micros=30_000_000, title="Arrakis", original_index=1),
        ChapterRecord(key="0003", duration_micros=90_000_000, title="The Desert", original_index=2),
    ]


def completed_process(returncode=0, stdout="", stderr=""):
    """Build a mock subprocess.CompletedProcess."""
    result = Mock()
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


@pytest.fixture
def make_result():
    """Factory for mock subprocess.run results."""
    return completed_process


def popen_process(stderr_text="", exit_code=0):
    """Build a mock subprocess.Popen object streaming ``stderr_text``."""
    process = Mock()
    process.stderr = io.StringIO(stderr_text, newline=None)
    process.wait.return_value = exit_code
    process.poll.return_value = None
    return process


@pytest.fixture
def make_process():
    """Factory for mock subprocess.Popen objects."""
    return popen_process
