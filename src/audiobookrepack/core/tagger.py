"""
Post-processing of the finished output file with mutagen.
"""

import logging

from mutagen import MutagenError
from mutagen.mp4 import MP4

from ..exceptions import MetadataError

# iTunes media kind for audiobooks
AUDIOBOOK_MEDIA_KIND = 2


class OutputTagger:
    """Marks the concatenated file as an audiobook and reports its length."""

    def __init__(self, mark_as_audiobook=True):
        self.mark_as_audiobook = mark_as_audiobook

    def tag_output(self, output_file: str) -> float:
        """
        Tag the output file.

        Args:
            output_file: Path to the concatenated MP4/M4A file

        Returns:
            float: Length of the output in seconds

        Raises:
            MetadataError: If the file cannot be read or saved
        """
        try:
            audiofile = MP4(output_file)

            if self.mark_as_audiobook:
                audiofile['stik'] = [AUDIOBOOK_MEDIA_KIND]
                audiofile.save()

            length = audiofile.info.length
            title = (audiofile.tags or {}).get('\xa9nam')
            logging.info(f'Output {output_file}: {length:.1f}s, title {title[0] if title else "<none>"}')
            return length

        except (MutagenError, OSError) as e:
            logging.error(f'Error tagging {output_file}: {str(e)}')
            raise MetadataError(f"Tagging output failed: {str(e)}", output_file) from e
