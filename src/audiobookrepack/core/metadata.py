"""
Metadata document synthesis: global tags plus the chapter table, in
FFmpeg's ffmetadata format.
"""

import logging
from typing import List, Union

from .bookinfo import BookInfo, parse_book_info
from .timeline import ChapterRecord

FFMETADATA_HEADER = ";FFMETADATA1"
TIMEBASE = "1/1000000"

GLOBAL_TAG_KEYS = ('title', 'album', 'author', 'artist', 'album_artist')

_SPECIAL_CHARACTERS = ('\\', '=', ';', '#', '\n')


def escape_metadata_value(value: str) -> str:
    """Escape a value for an ffmetadata document."""
    for char in _SPECIAL_CHARACTERS:
        value = value.replace(char, '\\' + char)
    return value


def _tag_key(line: str) -> str:
    return line.split('=', 1)[0] if '=' in line else ''


class MetadataSynthesizer:
    """Builds the metadata document handed to the ffmpeg muxer."""

    def global_section(self, raw_metadata: str) -> List[str]:
        """
        Return the global lines of a raw ffmetadata dump.

        Everything from the first section header on ([CHAPTER], [STREAM])
        belongs to the source file and is dropped.
        """
        lines = []
        for line in raw_metadata.splitlines():
            if line.startswith('['):
                break
            lines.append(line)

        while lines and not lines[-1].strip():
            lines.pop()
        if not lines or lines[0] != FFMETADATA_HEADER:
            lines.insert(0, FFMETADATA_HEADER)
        return lines

    def reconcile_tags(self, lines: List[str], book: Union[BookInfo, str]) -> List[str]:
        """
        Apply the title/album rule to the global tag lines.

        When both a title and an album line exist, the album value becomes the
        title. Otherwise the global tags are rebuilt from the book information.

        Args:
            lines: Global section lines of the first chapter file
            book: Parsed book info, or the folder name to parse it from

        Returns:
            New list of global lines

        Raises:
            UnparseableTitleError: If the fallback is needed and ``book`` is an
                unparseable folder name
        """
        lines = list(lines)
        title_index = None
        album_index = None

        for i, line in enumerate(lines):
            if line.startswith('title='):
                title_index = i
            elif line.startswith('album='):
                album_index = i

        if title_index is not None and album_index is not None:
            album_value = lines[album_index][len('album='):]
            lines[title_index] = f'title={album_value}'
            logging.info(f'Using album tag as title: {album_value}')
            return lines

        if isinstance(book, str):
            book = parse_book_info(book)

        discarded = [_tag_key(line) for line in lines if _tag_key(line) in GLOBAL_TAG_KEYS]
        if discarded:
            logging.warning(f'Source metadata lacks title or album; discarding {", ".join(discarded)} '
                            f'and using folder name instead')
        else:
            logging.info('Source metadata lacks title and album; using folder name instead')

        lines = [line for line in lines if _tag_key(line) not in GLOBAL_TAG_KEYS]

        title = escape_metadata_value(book.title)
        author = escape_metadata_value(book.author or '')
        artist = author
        if book.narrator:
            artist = f'{author}; Narrated by {escape_metadata_value(book.narrator)}'
        lines.extend([
            f'title={title}',
            f'album={title}',
            f'author={author}',
            f'artist={artist}',
            f'album_artist={author}',
        ])
        return lines

    def render_chapters(self, timeline: List[ChapterRecord]) -> str:
        """Render the chapter table, one block per chapter, ordered by start."""
        blocks = []
        for record in sorted(timeline, key=lambda r: r.start_micros):
            blocks.append('\n'.join([
                '[CHAPTER]',
                f'TIMEBASE={TIMEBASE}',
                f'START={record.start_micros}',
                f'END={record.end_micros}',
                f'title={escape_metadata_value(record.title)}',
            ]))
        return '\n\n'.join(blocks)

    def synthesize(self, raw_metadata: str, book: Union[BookInfo, str],
                   timeline: List[ChapterRecord]) -> str:
        """
        Build the complete metadata document.

        Args:
            raw_metadata: ffmetadata dump of the first chapter file
            book: Book info (or folder name) used when tags are missing
            timeline: Chapters with assigned offsets

        Returns:
            str: Metadata document text
        """
        lines = self.reconcile_tags(self.global_section(raw_metadata), book)
        document = '\n'.join(lines) + '\n'

        chapters = self.render_chapters(timeline)
        if chapters:
            document += '\n' + chapters + '\n'

        logging.info(f'Synthesized metadata with {len(timeline)} chapters')
        return document

    def write_metadata_file(self, path: str, document: str) -> str:
        """Write the metadata document to ``path``."""
        with open(path, 'w', encoding='utf-8') as f:
            f.write(document)
        logging.debug(f'Wrote metadata document: {path}')
        return path
