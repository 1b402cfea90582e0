"""
Progress tracking module for audiobookrepack.
"""

import time
import logging
from contextlib import contextmanager
from typing import Any, Optional

from tqdm import tqdm


class ProgressTracker:
    """
    Progress display for a repack run.

    Chapter probing is shown per file; concatenation is shown as the
    percentage parsed from FFmpeg's output.
    """

    def __init__(self, use_progress_bars: bool = True, quiet: bool = False):
        """
        Initialize progress tracker.

        Args:
            use_progress_bars: Whether to use visual progress bars
            quiet: Suppress most output except errors
        """
        self.use_progress_bars = use_progress_bars and not quiet
        self.quiet = quiet
        self.logger = logging.getLogger(__name__)

    @contextmanager
    def probing_progress(self, total_files: int):
        """
        Context manager for chapter probing progress.

        Args:
            total_files: Total number of chapter files to probe
        """
        if self.use_progress_bars:
            with tqdm(
                total=total_files,
                desc="Processing chapters",
                unit="file",
                colour="blue",
                leave=False
            ) as pbar:
                yield ProgressUpdate(pbar, self.quiet)
        else:
            if not self.quiet:
                print(f"Probing {total_files} chapter files...")
            yield ProgressUpdate(None, self.quiet, total_files)

    @contextmanager
    def concatenation_progress(self):
        """
        Context manager for the concatenation step, shown as a 0-100 bar.

        This is the main progress bar users will see during processing.
        """
        if self.use_progress_bars:
            with tqdm(
                total=100,
                desc="Concatenating files",
                unit="%",
                colour="green",
                bar_format="{desc}: {percentage:3.0f}%|{bar}| ETA: {remaining}"
            ) as pbar:
                yield PercentProgress(pbar, self.quiet)
        else:
            if not self.quiet:
                print("Concatenating files...")
            yield PercentProgress(None, self.quiet)

    def print_step(self, message: str, step: Optional[int] = None, total_steps: Optional[int] = None):
        """
        Print a processing step message.

        Args:
            message: The message to print
            step: Current step number (optional)
            total_steps: Total number of steps (optional)
        """
        self.logger.info(message)
        if self.quiet:
            return

        if step is not None and total_steps is not None:
            print(f"[{step}/{total_steps}] {message}")
        else:
            print(f"- {message}")

    def print_summary(self, output_file: str, chapter_count: int,
                      audio_seconds: float, duration_seconds: float):
        """
        Print a processing summary.

        Args:
            output_file: Path of the created file
            chapter_count: Number of chapters embedded
            audio_seconds: Total audio length
            duration_seconds: Total processing time
        """
        if self.quiet:
            return

        print("\n" + "=" * 50)
        print("REPACK SUMMARY")
        print("=" * 50)
        print(f"Output: {output_file}")
        print(f"Chapters: {chapter_count}")
        print(f"Audio length: {format_duration(audio_seconds)}")
        print(f"Processing time: {format_duration(duration_seconds)}")


class ProgressUpdate:
    """
    Helper class for counting progress during probing.

    Abstracts whether we're using tqdm progress bars or simple text output.
    """

    def __init__(self, pbar: Optional[Any], quiet: bool, total: Optional[int] = None):
        self.pbar = pbar
        self.quiet = quiet
        self.total = total
        self.current = 0

    def update(self, increment: int = 1, description: Optional[str] = None):
        """
        Update progress by incrementing the counter.

        Args:
            increment: Amount to increment (default: 1)
            description: Optional description for this update
        """
        self.current += increment

        if self.pbar:
            if description:
                self.pbar.set_postfix_str(description)
            self.pbar.update(increment)
        elif not self.quiet and self.total:
            # Fallback: print progress every 10% or every 5 files, whichever is more frequent
            print_interval = max(1, min(self.total // 10, 5))
            if self.current % print_interval == 0 or self.current == self.total:
                percentage = (self.current / self.total) * 100
                print(f"Progress: {self.current}/{self.total} ({percentage:.1f}%)")


class PercentProgress:
    """Progress shown as an absolute percentage."""

    def __init__(self, pbar: Optional[Any], quiet: bool):
        self.pbar = pbar
        self.quiet = quiet
        self.percent = 0

    def update_to(self, percent: int):
        """Move the display to ``percent``; repeated or lower values are ignored."""
        if percent <= self.percent:
            return
        step = percent - self.percent
        self.percent = percent

        if self.pbar:
            self.pbar.update(step)
        elif not self.quiet and (percent % 10 == 0 or percent == 100):
            print(f"Progress: {percent}%")


class ProcessingTimer:
    """Simple timer for measuring processing duration."""

    def __init__(self):
        self.start_time = None
        self.end_time = None

    def start(self):
        """Start the timer."""
        self.start_time = time.time()

    def stop(self):
        """Stop the timer and return duration."""
        self.end_time = time.time()
        return self.get_duration()

    def get_duration(self) -> float:
        """Get the current duration in seconds."""
        if self.start_time is None:
            return 0.0
        end_time = self.end_time or time.time()
        return end_time - self.start_time


def format_duration(seconds: float) -> str:
    """Format duration in a human-readable way."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.1f}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = seconds % 60
        return f"{hours}h {minutes}m {secs:.1f}s"


def create_progress_tracker(quiet: bool = False, disable_bars: bool = False) -> ProgressTracker:
    """
    Create a progress tracker with appropriate settings.

    Args:
        quiet: Suppress most output
        disable_bars: Disable progress bars

    Returns:
        Configured ProgressTracker instance
    """
    return ProgressTracker(use_progress_bars=not disable_bars, quiet=quiet)
