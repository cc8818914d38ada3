"""Data models for ChunkScribe."""

from dataclasses import dataclass, field
from typing import Dict, Generic, List, Optional, TypeVar, Union

from .exceptions import ChunkScribeError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome of a fallible operation."""
    value: T
    ok: bool = field(default=True, init=False)

@dataclass(frozen=True)
class Err:
    """Failed outcome of a fallible operation."""
    error: ChunkScribeError
    ok: bool = field(default=False, init=False)

Result = Union[Ok[T], Err]


@dataclass(frozen=True)
class TranscriptionConfig:
    """Options passed verbatim to the transcription service."""
    model_id: str = "scribe_v1"
    language_code: str = "en"
    tag_audio_events: bool = False
    diarize: bool = False

@dataclass(frozen=True)
class AudioSegment:
    """One time-bounded slice of an input file produced by the splitter."""
    ordinal: int
    path: str
    source_file: str
    duration_seconds: int # Target length; the last segment may be shorter

@dataclass
class FileTranscript:
    """
    Ordered transcription text for one input file.

    ``ordered_text`` holds one slot per segment ordinal. A slot stays ``None``
    when that segment failed, so the joined text never depends on the order
    in which segment results arrived.
    """
    source_file: str
    ordered_text: List[Optional[str]] = field(default_factory=list)

    @classmethod
    def empty(cls, source_file: str, segment_count: int) -> "FileTranscript":
        return cls(source_file=source_file, ordered_text=[None] * segment_count)

    def record(self, ordinal: int, text: str) -> None:
        if self.ordered_text[ordinal] is not None:
            raise ValueError(f"Segment {ordinal} of {self.source_file} already recorded")
        self.ordered_text[ordinal] = text

    @property
    def succeeded(self) -> int:
        return sum(1 for text in self.ordered_text if text is not None)

    @property
    def failed_ordinals(self) -> List[int]:
        return [i for i, text in enumerate(self.ordered_text) if text is None]

    @property
    def combined_text(self) -> str:
        return " ".join(text for text in self.ordered_text if text is not None)

@dataclass(frozen=True)
class FileFailure:
    """A file that produced no transcript, with the reason why."""
    source_file: str
    error: ChunkScribeError

    @property
    def reason(self) -> str:
        return str(self.error)

@dataclass
class BatchReport:
    """Results across all input files of one run."""
    transcripts: Dict[str, str] = field(default_factory=dict) # file name -> combined text
    output_paths: Dict[str, str] = field(default_factory=dict)
    failures: List[FileFailure] = field(default_factory=list)
    total_files: int = 0
    combined_output_path: Optional[str] = None
    interrupted: bool = False

    @property
    def no_input(self) -> bool:
        """True when the run had nothing to process (not an error)."""
        return self.total_files == 0

    @property
    def succeeded(self) -> int:
        return len(self.transcripts)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def all_failed(self) -> bool:
        return self.total_files > 0 and not self.transcripts

    def summary_lines(self) -> List[str]:
        """Human readable end-of-run summary."""
        if self.no_input:
            return ["No audio files found to transcribe."]
        lines = [
            f"Successfully transcribed: {self.succeeded}/{self.total_files} files",
            f"Failed: {self.failed}/{self.total_files} files",
        ]
        for failure in self.failures:
            lines.append(f"  - {failure.source_file}: {failure.reason}")
        if self.interrupted:
            lines.append("Run was interrupted before all files were processed.")
        return lines
