"""
Main repack processor orchestrating the workflow.
"""

import os
import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional

from .bookinfo import BookInfo, parse_book_info
from .prober import ChapterProber, check_ffmpeg_dependency
from .timeline import ChapterRecord, build_timeline, total_duration_micros
from .metadata import MetadataSynthesizer
from .concatenator import AudioConcatenator
from .tagger import OutputTagger
from ..config import RepackSettings
from ..exceptions import MetadataError, UnparseableTitleError
from ..utils.file_utils import (
    cleanup_files, ensure_directory_exists, list_audio_files, micros_to_timestamp,
    output_dir_for, write_file_list
)
from ..utils.progress_tracker import ProgressTracker

LIST_FILE_NAME = "list_audio_files.txt"
METADATA_FILE_NAME = "combined.metadata.txt"

TOTAL_STEPS = 4


@dataclass
class RepackResult:
    """Result of a repack run."""
    output_file: str
    chapters: List[ChapterRecord] = field(default_factory=list)
    total_duration_micros: int = 0
    book_info: Optional[BookInfo] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def total_duration_seconds(self) -> float:
        return self.total_duration_micros / 1_000_000


class RepackProcessor:
    """Repacks a folder of chapter files into one file with chapter markers."""

    def __init__(self, settings: Optional[RepackSettings] = None,
                 progress_tracker: Optional[ProgressTracker] = None,
                 check_dependencies: bool = True):
        """
        Initialize the repack processor.

        Args:
            settings: Pipeline settings
            progress_tracker: Progress display; a silent one is used when omitted
            check_dependencies: Verify ffmpeg/ffprobe before processing
        """
        self.settings = settings or RepackSettings()
        self.progress_tracker = progress_tracker or ProgressTracker(use_progress_bars=False, quiet=True)

        self.prober = ChapterProber(self.settings)
        self.synthesizer = MetadataSynthesizer()
        self.concatenator = AudioConcatenator(self.settings)
        self.tagger = OutputTagger(mark_as_audiobook=self.settings.mark_as_audiobook)

        if check_dependencies:
            check_ffmpeg_dependency(self.settings)

    def repack(self, folder: str, output_dir: Optional[str] = None,
               cancel_event: Optional[threading.Event] = None) -> RepackResult:
        """
        Repack one audiobook folder.

        Args:
            folder: Folder holding the chapter files; its name is the book title
            output_dir: Where to write the output (default: ``<folder>_repack``)
            cancel_event: Set to stop a running concatenation

        Returns:
            RepackResult: Output path, timeline and warnings

        Raises:
            RepackError: Any fatal failure; partial output is left in place
        """
        folder = folder.strip('"')
        book_title = os.path.basename(os.path.abspath(folder))
        output_dir = output_dir or output_dir_for(folder, self.settings.output_suffix)
        output_file = os.path.join(output_dir, f"{book_title}.m4a")
        list_file = os.path.join(output_dir, LIST_FILE_NAME)
        metadata_file = os.path.join(output_dir, METADATA_FILE_NAME)
        warnings = []

        book_info = self._parse_folder_name(book_title)

        # Step 1: list the chapter files
        self.progress_tracker.print_step("Scanning chapter files", 1, TOTAL_STEPS)
        input_files = list_audio_files(folder, self.settings.audio_extension)
        ensure_directory_exists(output_dir)
        write_file_list(list_file, input_files)

        # Step 2: probe chapters and build the timeline
        self.progress_tracker.print_step(f"Probing {len(input_files)} chapters", 2, TOTAL_STEPS)
        with self.progress_tracker.probing_progress(len(input_files)) as progress:
            records = self.prober.probe_chapters(
                input_files, on_probed=lambda record: progress.update(1, record.key)
            )
        timeline = build_timeline(records)
        total_micros = total_duration_micros(timeline)
        logging.info(f'Total duration: {micros_to_timestamp(total_micros)}')

        # Step 3: metadata document
        self.progress_tracker.print_step("Writing chapter metadata", 3, TOTAL_STEPS)
        raw_metadata = self.prober.extract_metadata(input_files[0])
        document = self.synthesizer.synthesize(raw_metadata, book_info or book_title, timeline)
        self.synthesizer.write_metadata_file(metadata_file, document)

        # Step 4: concatenate
        self.progress_tracker.print_step("Concatenating chapters", 4, TOTAL_STEPS)
        with self.progress_tracker.concatenation_progress() as progress:
            self.concatenator.concatenate(
                list_file, metadata_file, output_file,
                total_micros / 1_000_000,
                on_progress=progress.update_to,
                cancel_event=cancel_event,
            )

        try:
            self.tagger.tag_output(output_file)
        except MetadataError as e:
            warnings.append(str(e))
            logging.warning(f"Tagging failed but the audiobook was created: {e}")

        if not self.settings.keep_temp_files:
            cleanup_files(list_file, metadata_file)

        return RepackResult(
            output_file=output_file,
            chapters=timeline,
            total_duration_micros=total_micros,
            book_info=book_info,
            warnings=warnings,
        )

    def _parse_folder_name(self, book_title: str) -> Optional[BookInfo]:
        """Parse the folder name up front; failures only matter if tags are missing later."""
        try:
            book_info = parse_book_info(book_title)
        except UnparseableTitleError:
            logging.info(f'Folder name does not follow the naming convention: {book_title}')
            return None
        logging.info(f'Book: {book_info.title} by {book_info.author}, narrated by {book_info.narrator}')
        return book_info
