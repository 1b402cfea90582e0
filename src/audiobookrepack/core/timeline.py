"""
Chapter ordering and timeline construction.
"""

import logging
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Iterable, List, Mapping, Optional, Union

# Separator between consecutive chapters, in microseconds
CHAPTER_GAP = 1


@dataclass
class ChapterRecord:
    """One input chapter file and its place on the timeline (microseconds)."""
    key: str
    duration_micros: int
    title: str
    original_index: int
    path: str = ""
    start_micros: int = 0
    end_micros: int = 0


def _numeric_key(key: str) -> Optional[int]:
    key = key.strip()
    return int(key) if key.isdigit() else None


def compare_chapters(a: ChapterRecord, b: ChapterRecord) -> int:
    """
    Ordering policy for chapters.

    Numeric chapter keys are compared as integers and sort before
    non-numeric keys; equal numbers and two non-numeric keys fall back to
    the listing position. This is a total order for any mix of keys.
    """
    num_a = _numeric_key(a.key)
    num_b = _numeric_key(b.key)
    if (num_a is None) != (num_b is None):
        return -1 if num_b is None else 1
    if num_a is not None and num_a != num_b:
        return -1 if num_a < num_b else 1
    return (a.original_index > b.original_index) - (a.original_index < b.original_index)


def build_timeline(records: Union[Mapping[str, ChapterRecord], Iterable[ChapterRecord]]) -> List[ChapterRecord]:
    """
    Sort chapters and assign their start/end offsets.

    Args:
        records: Mapping of chapter key to record, or the records themselves

    Returns:
        List of records in playback order; the first starts at 0 and each
        following one starts one microsecond after the previous end
    """
    if isinstance(records, Mapping):
        records = records.values()

    ordered = sorted(records, key=cmp_to_key(compare_chapters))

    cursor = 0
    for record in ordered:
        record.start_micros = cursor
        record.end_micros = record.start_micros + record.duration_micros
        cursor = record.end_micros + CHAPTER_GAP
        logging.debug(f'Chapter {record.key} "{record.title}": {record.start_micros} -> {record.end_micros}')

    logging.info(f'Built timeline with {len(ordered)} chapters')
    return ordered


def total_duration_micros(timeline: Iterable[ChapterRecord]) -> int:
    """Sum of chapter durations, excluding the separators."""
    return sum(record.duration_micros for record in timeline)
