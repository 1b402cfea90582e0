"""
Chapter probing with ffprobe: durations, embedded titles and source metadata.
"""

import os
import re
import subprocess
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from .timeline import ChapterRecord
from ..config import RepackSettings
from ..exceptions import DependencyError, ProbeFailureError

# Duration output has six fractional digits; microseconds are the document unit
FRACTION_DIGITS = 6

CHAPTER_KEY_REGEX = re.compile(r'(\d{4})')
TITLE_TAG_REGEX = re.compile(r'^TAG:title=(.*)$')
DURATION_REGEX = re.compile(r'^(\d+)(?:\.(\d*))?$')


def check_ffmpeg_dependency(settings: Optional[RepackSettings] = None) -> str:
    """
    Check that ffmpeg and ffprobe are available and working.

    Returns:
        str: First line of the ffmpeg version banner

    Raises:
        DependencyError: If either tool is missing or broken
    """
    settings = settings or RepackSettings()
    version_line = ""
    for name, executable in (("ffmpeg", settings.ffmpeg_path), ("ffprobe", settings.ffprobe_path)):
        try:
            result = subprocess.run([executable, '-version'], capture_output=True, check=True, text=True,
                                    encoding='utf-8', errors='replace')
        except FileNotFoundError:
            raise DependencyError(name, f"{name} is not installed or not found in system PATH")
        except subprocess.CalledProcessError as e:
            raise DependencyError(name, f"{name} is installed but not working properly: {e}")
        if name == "ffmpeg":
            version_line = (result.stdout or result.stderr).split('\n')[0]

    logging.info('FFmpeg dependency check passed')
    return version_line


def parse_duration_micros(text: str) -> int:
    """
    Convert ffprobe's decimal seconds to integer microseconds.

    The conversion works on the digits, not on a float: "60.000000" becomes
    60000000. Fractions shorter than six digits are right-padded, longer
    ones are truncated.

    Raises:
        ValueError: If the text is not a non-negative decimal number
    """
    match = DURATION_REGEX.match(text.strip())
    if not match:
        raise ValueError(f"not a decimal duration: {text!r}")
    whole, fraction = match.group(1), match.group(2) or ""
    fraction = fraction[:FRACTION_DIGITS].ljust(FRACTION_DIGITS, '0')
    return int(whole + fraction)


def extract_chapter_key(filename: str, position: int) -> str:
    """
    Chapter key for a file: its first 4-digit number, or the 1-based
    listing position zero-padded to 4 digits.
    """
    match = CHAPTER_KEY_REGEX.search(filename)
    if match:
        return match.group(1)
    return f"{position:04d}"


def title_from_filename(path: str, extension: str = ".m4a") -> str:
    """
    Derive a chapter title from a filename: the text between the last "- "
    and the extension, e.g. "Book - 0003 - The Storm.m4a" -> "The Storm".
    """
    name = os.path.basename(path)
    marker = "- "
    start = name.rfind(marker)
    start = start + len(marker) if start != -1 else 0
    end = name.find(extension, start)
    if end == -1:
        end = len(name)
    return name[start:end]


class ChapterProber:
    """Runs ffprobe/ffmpeg against chapter files."""

    def __init__(self, settings: Optional[RepackSettings] = None):
        """
        Initialize the prober.

        Args:
            settings: Tool paths, batch size and probe timeout
        """
        self.settings = settings or RepackSettings()

    def _run(self, command: List[str], path: str) -> subprocess.CompletedProcess:
        """Run one inspection command, turning every failure into ProbeFailureError."""
        logging.debug(f'Running: {" ".join(command)}')
        try:
            result = subprocess.run(
                command, capture_output=True, text=True, encoding='utf-8', errors='replace',
                timeout=self.settings.probe_timeout
            )
        except subprocess.TimeoutExpired as e:
            raise ProbeFailureError(f"timed out after {self.settings.probe_timeout}s", path) from e
        except OSError as e:
            raise ProbeFailureError(f"could not run {command[0]}: {e}", path) from e

        if result.returncode != 0:
            raise ProbeFailureError(f"{command[0]} exited with an error", path,
                                    exit_code=result.returncode, stderr=result.stderr)
        return result

    def probe_duration(self, path: str) -> int:
        """
        Get the duration of an audio file in microseconds.

        Args:
            path: Path to the audio file

        Returns:
            int: Duration in microseconds

        Raises:
            ProbeFailureError: If ffprobe fails or prints no usable duration
        """
        command = [
            self.settings.ffprobe_path, '-v', 'error', '-select_streams', 'a:0',
            '-show_entries', 'format=duration', '-of', 'csv=p=0', path
        ]
        result = self._run(command, path)
        try:
            return parse_duration_micros(result.stdout)
        except ValueError as e:
            raise ProbeFailureError(f"unparseable duration output {result.stdout.strip()!r}", path,
                                    exit_code=result.returncode, stderr=result.stderr) from e

    def probe_embedded_title(self, path: str) -> str:
        """
        Get the title tag of an audio file, falling back to a title derived
        from its filename.

        Raises:
            ProbeFailureError: If ffprobe fails
        """
        command = [self.settings.ffprobe_path, '-show_entries', 'format_tags=title', '-v', 'quiet', path]
        result = self._run(command, path)

        for line in result.stdout.splitlines():
            match = TITLE_TAG_REGEX.match(line)
            if match:
                logging.debug(f'Found title tag for {path}: {match.group(1)}')
                return match.group(1)

        title = title_from_filename(path, self.settings.audio_extension)
        logging.debug(f'Using filename title for {path}: {title}')
        return title

    def extract_metadata(self, path: str) -> str:
        """
        Dump the global metadata of a file in ffmetadata format.

        Returns:
            str: Raw ffmetadata text

        Raises:
            ProbeFailureError: If ffmpeg fails
        """
        command = [
            self.settings.ffmpeg_path, '-y', '-loglevel', 'error',
            '-i', path, '-f', 'ffmetadata', '-'
        ]
        result = self._run(command, path)
        logging.info(f'Extracted source metadata from {path}')
        return result.stdout

    def probe_chapter(self, path: str, index: int) -> ChapterRecord:
        """Probe one chapter file at 0-based listing position ``index``."""
        duration = self.probe_duration(path)
        title = self.probe_embedded_title(path)
        key = extract_chapter_key(os.path.basename(path), index + 1)
        logging.info(f'Probed chapter {key}: {os.path.basename(path)} ({duration} us)')
        return ChapterRecord(key=key, duration_micros=duration, title=title,
                             original_index=index, path=path)

    def probe_chapters(self, paths: List[str],
                       on_probed: Optional[Callable[[ChapterRecord], None]] = None) -> List[ChapterRecord]:
        """
        Probe all chapter files in fixed-size concurrent batches.

        At most ``batch_size`` probes run at once, and each batch finishes
        before the next one starts.

        Args:
            paths: Chapter file paths in listing order
            on_probed: Optional callback invoked once per probed chapter

        Returns:
            List of ChapterRecord in listing order

        Raises:
            ProbeFailureError: For the first file that could not be probed
        """
        batch_size = self.settings.batch_size
        records: List[ChapterRecord] = []
        seen_keys = {}

        logging.info(f'Probing {len(paths)} chapter files in batches of {batch_size}')

        with ThreadPoolExecutor(max_workers=batch_size) as executor:
            for batch_start in range(0, len(paths), batch_size):
                batch = paths[batch_start:batch_start + batch_size]
                futures = [
                    executor.submit(self.probe_chapter, path, batch_start + offset)
                    for offset, path in enumerate(batch)
                ]

                # result() blocks, so the whole batch settles before the next starts
                batch_records = []
                failure = None
                for future in futures:
                    try:
                        record = future.result()
                    except ProbeFailureError as e:
                        failure = failure or e
                        continue
                    batch_records.append(record)
                    if on_probed:
                        on_probed(record)

                if failure:
                    logging.error(f'Chapter probing failed: {failure}')
                    raise failure

                for record in batch_records:
                    if record.key in seen_keys:
                        logging.warning(f'Duplicate chapter key {record.key}: '
                                        f'{os.path.basename(seen_keys[record.key])} and {os.path.basename(record.path)}')
                    seen_keys.setdefault(record.key, record.path)
                    records.append(record)

        return records
