"""
File utility functions for the repack pipeline.
"""

import os
import logging
from typing import List

from ..exceptions import ValidationError


def list_audio_files(folder: str, extension: str = ".m4a") -> List[str]:
    """
    List the chapter files of a folder, sorted by name.

    Args:
        folder: Audiobook folder
        extension: Chapter file extension (case-insensitive)

    Returns:
        List of absolute file paths

    Raises:
        ValidationError: If the folder does not exist or holds no chapter files
    """
    if not os.path.isdir(folder):
        raise ValidationError(f"Folder does not exist: {folder}", "path")

    names = sorted(
        name for name in os.listdir(folder)
        if name.lower().endswith(extension.lower()) and os.path.isfile(os.path.join(folder, name))
    )
    if not names:
        raise ValidationError(f"No {extension} files found in {folder}", "no_chapters")

    logging.info(f'Found {len(names)} chapter files in {folder}')
    return [os.path.abspath(os.path.join(folder, name)) for name in names]


def output_dir_for(folder: str, suffix: str = "_repack") -> str:
    """Default output directory: a sibling of ``folder`` named ``<folder><suffix>``."""
    folder = os.path.abspath(folder.rstrip('/\\') or folder)
    return os.path.join(os.path.dirname(folder), os.path.basename(folder) + suffix)


def escape_list_path(path: str) -> str:
    """Quote a path for a concat demuxer file list."""
    return path.replace("'", "'\\''")


def write_file_list(list_file: str, paths: List[str]) -> str:
    """
    Write the concat demuxer file list, one ``file '<absolute path>'`` line per input.

    Args:
        list_file: Path of the list document
        paths: Input files in playback order

    Returns:
        str: ``list_file``
    """
    content = '\n'.join(f"file '{escape_list_path(os.path.abspath(p))}'" for p in paths)
    with open(list_file, 'w', encoding='utf-8') as f:
        f.write(content + '\n')
    logging.debug(f'List file content:\n{content}')
    return list_file


def cleanup_files(*paths: str):
    """
    Remove transient files, ignoring ones that are already gone.

    Args:
        paths: Files to remove
    """
    for path in paths:
        if path and os.path.exists(path):
            try:
                os.remove(path)
                logging.debug(f'Removed {path}')
            except OSError as e:
                logging.warning(f"Failed to remove {path}: {e}")


def ensure_directory_exists(directory: str):
    """
    Ensure that a directory exists, creating it if necessary.

    Args:
        directory: Path to the directory
    """
    if not os.path.exists(directory):
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            logging.error(f"Failed to create directory {directory}: {e}")
            raise


def micros_to_timestamp(micros: int) -> str:
    """
    Convert microseconds to HH:MM:SS.mmm format.

    Args:
        micros: Microseconds

    Returns:
        str: Formatted timestamp
    """
    ms = micros // 1000
    hours = ms // (1000 * 60 * 60)
    minutes = (ms % (1000 * 60 * 60)) // (1000 * 60)
    seconds = (ms % (1000 * 60)) // 1000
    milliseconds = ms % 1000

    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{milliseconds:03d}"
