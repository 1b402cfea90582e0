"""
audiobookrepack - Repack audiobook chapter files into one file with chapters

Joins the individually recorded chapter files of an audiobook into a single
M4A file with embedded chapter markers, without re-encoding.
"""

__version__ = "1.0.0"
__author__ = "audiobookrepack Project"

from .core.processor import RepackProcessor, RepackResult
from .core.bookinfo import BookInfo, parse_book_info
from .exceptions import RepackError

__all__ = [
    "RepackProcessor",
    "RepackResult",
    "BookInfo",
    "parse_book_info",
    "RepackError",
    "__version__"
]
