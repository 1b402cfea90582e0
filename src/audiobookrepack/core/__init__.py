"""
Core repack modules.
"""

from .processor import RepackProcessor, RepackResult
from .prober import ChapterProber
from .timeline import ChapterRecord, build_timeline
from .metadata import MetadataSynthesizer
from .concatenator import AudioConcatenator
from .tagger import OutputTagger

__all__ = [
    "RepackProcessor",
    "RepackResult",
    "ChapterProber",
    "ChapterRecord",
    "build_timeline",
    "MetadataSynthesizer",
    "AudioConcatenator",
    "OutputTagger"
]
