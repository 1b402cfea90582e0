"""
Book information parsed from an audiobook folder name.
"""

import re
from dataclasses import dataclass
from typing import Optional

from ..exceptions import UnparseableTitleError

# Folder names look like "<Title> - Written by <Author> - Narrated by <Narrator>".
# Each part is kept as its own pattern so it can be adjusted independently.
TITLE_PATTERN = r'^(.*)- Writ'
AUTHOR_PATTERN = r'ten by (.*) -'
NARRATOR_PATTERN = r' Narrated by (.*)$'

BOOK_INFO_REGEX = re.compile(TITLE_PATTERN + AUTHOR_PATTERN + NARRATOR_PATTERN)


@dataclass(frozen=True)
class BookInfo:
    """Title, author and narrator of one audiobook."""
    title: str
    author: Optional[str] = None
    narrator: Optional[str] = None


def parse_book_info(title: str) -> BookInfo:
    """
    Parse book information from a folder name.

    Args:
        title: Folder name, e.g. "Dune - Written by Frank Herbert - Narrated by Scott Brick"

    Returns:
        BookInfo: Parsed title, author and narrator

    Raises:
        UnparseableTitleError: If the name does not follow the naming convention
    """
    match = BOOK_INFO_REGEX.match(title)
    if not match:
        raise UnparseableTitleError(title)

    return BookInfo(
        title=match.group(1).strip(),
        author=match.group(2) or None,
        narrator=match.group(3) or None,
    )
