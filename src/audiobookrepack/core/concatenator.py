"""
Audio file concatenation with live progress from FFmpeg's stderr.
"""

import re
import math
import subprocess
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..config import RepackSettings
from ..exceptions import ExternalToolError, RepackInterruptedError

ELAPSED_TIME_REGEX = re.compile(r'time=(\d+):(\d+):(\d+\.\d+)')

# 100% is only reported once ffmpeg has exited successfully
MAX_RUNNING_PERCENT = 99
STDERR_TAIL_LINES = 20
CANCEL_POLL_SECONDS = 0.1


def parse_elapsed_seconds(line: str) -> Optional[float]:
    """Return the elapsed seconds of a ``time=HH:MM:SS.ff`` marker in ``line``, if any."""
    match = ELAPSED_TIME_REGEX.search(line)
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


@dataclass
class ProgressState:
    """Progress of one ffmpeg run."""
    total_duration_seconds: float
    last_reported_percent: int = 0

    def percent_for(self, elapsed_seconds: float) -> int:
        """Map elapsed seconds to a percentage capped at 99 that never goes backwards."""
        if self.total_duration_seconds <= 0:
            return self.last_reported_percent
        percent = math.floor(min(MAX_RUNNING_PERCENT, elapsed_seconds / self.total_duration_seconds * 100))
        self.last_reported_percent = max(self.last_reported_percent, percent)
        return self.last_reported_percent

    def complete(self) -> int:
        self.last_reported_percent = 100
        return self.last_reported_percent


class AudioConcatenator:
    """Joins chapter files into one output file with FFmpeg's concat demuxer."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    def __init__(self, settings: Optional[RepackSettings] = None):
        """
        Initialize the audio concatenator.

        Args:
            settings: Provides the ffmpeg executable path
        """
        self.settings = settings or RepackSettings()
        self.state = self.IDLE
        self.progress: Optional[ProgressState] = None

    def build_command(self, list_file: str, metadata_file: str, output_file: str) -> List[str]:
        """Build the ffmpeg concat command (streams are copied, not re-encoded)."""
        return [
            self.settings.ffmpeg_path,
            '-hide_banner',
            '-y',
            '-f', 'concat',
            '-safe', '0',
            '-i', list_file,
            '-i', metadata_file,
            '-map_metadata', '1',
            '-c', 'copy',
            '-movflags', '+faststart',
            output_file
        ]

    def concatenate(self, list_file: str, metadata_file: str, output_file: str,
                    total_duration_seconds: float,
                    on_progress: Optional[Callable[[int], None]] = None,
                    cancel_event: Optional[threading.Event] = None) -> str:
        """
        Concatenate the listed files, embedding the metadata document.

        Args:
            list_file: Concat demuxer file list
            metadata_file: ffmetadata document with tags and chapters
            output_file: Path for the final output file
            total_duration_seconds: Combined duration used to compute progress
            on_progress: Callback receiving the completion percentage
            cancel_event: When set, the running ffmpeg process is terminated

        Returns:
            str: The output file path

        Raises:
            ExternalToolError: If ffmpeg cannot be started or exits non-zero
            RepackInterruptedError: If ``cancel_event`` was set
        """
        command = self.build_command(list_file, metadata_file, output_file)
        self.progress = ProgressState(total_duration_seconds)
        stderr_tail = deque(maxlen=STDERR_TAIL_LINES)

        logging.info(f'Concatenating into {output_file}')
        logging.debug(f'Running FFmpeg command: {" ".join(command)}')

        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                encoding='utf-8',
                errors='replace',
            )
        except OSError as e:
            self.state = self.FAILED
            logging.error(f'Could not start FFmpeg: {e}')
            raise ExternalToolError(f"could not start {command[0]}: {e}") from e

        self.state = self.RUNNING
        finished = threading.Event()
        watcher = None
        if cancel_event is not None:
            # Cancellation must not depend on ffmpeg writing to stderr
            watcher = threading.Thread(
                target=self._watch_for_cancel, args=(process, cancel_event, finished), daemon=True
            )
            watcher.start()

        try:
            # Text mode splits ffmpeg's carriage-return status updates into lines
            for line in process.stderr:
                stderr_tail.append(line.rstrip())
                elapsed = parse_elapsed_seconds(line)
                if elapsed is None:
                    continue
                percent = self.progress.percent_for(elapsed)
                if on_progress:
                    on_progress(percent)

            exit_code = process.wait()
        except KeyboardInterrupt:
            self._terminate(process)
            self.state = self.CANCELLED
            raise
        finally:
            finished.set()
            if watcher is not None:
                watcher.join()
            process.stderr.close()

        if cancel_event is not None and cancel_event.is_set():
            self._terminate(process)
            self.state = self.CANCELLED
            raise RepackInterruptedError("concatenation cancelled", stage="concatenation")

        if exit_code != 0:
            self.state = self.FAILED
            stderr_text = '\n'.join(stderr_tail)
            logging.error(f'FFmpeg process exited with code {exit_code}: {stderr_text}')
            raise ExternalToolError(f"FFmpeg process exited with code {exit_code}",
                                    exit_code=exit_code, stderr=stderr_text)

        self.state = self.SUCCEEDED
        percent = self.progress.complete()
        if on_progress:
            on_progress(percent)

        logging.info(f'Successfully concatenated chapters into {output_file}')
        return output_file

    def _terminate(self, process: subprocess.Popen):
        """Stop a running ffmpeg process."""
        if process.poll() is None:
            logging.warning('Terminating FFmpeg process')
            process.terminate()
            try:
                process.wait(timeout=10)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()

    def _watch_for_cancel(self, process: subprocess.Popen, cancel_event: threading.Event,
                          finished: threading.Event):
        """Terminate ``process`` as soon as ``cancel_event`` is set, until ``finished`` is."""
        while not finished.is_set():
            if cancel_event.wait(CANCEL_POLL_SECONDS):
                self._terminate(process)
                return
