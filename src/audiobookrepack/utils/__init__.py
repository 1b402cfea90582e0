"""
Utility modules for the repack pipeline.
"""

from .progress_tracker import create_progress_tracker, ProcessingTimer
from .file_utils import list_audio_files, write_file_list, cleanup_files

__all__ = [
    "create_progress_tracker",
    "ProcessingTimer",
    "list_audio_files",
    "write_file_list",
    "cleanup_files"
]
