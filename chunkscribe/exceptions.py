"""Custom Exceptions for the ChunkScribe application."""

from typing import Optional


class ChunkScribeError(Exception):
    """Base class for exceptions in this module."""
    pass

class ConfigurationError(ChunkScribeError):
    """Exception raised for missing credentials or invalid configuration."""
    pass

class SplitError(ChunkScribeError):
    """Exception raised when an audio file cannot be split into segments."""

    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    TOOL_FAILURE = "tool_failure"
    IO_ERROR = "io_error"

    def __init__(self, kind: str, message: str, exit_code: Optional[int] = None, stderr_text: Optional[str] = None):
        self.kind = kind
        self.exit_code = exit_code
        self.stderr_text = stderr_text
        super().__init__(message)

class SegmentReadError(ChunkScribeError):
    """Exception raised when a segment file cannot be read back from temp storage."""

    def __init__(self, path: str, cause: Optional[Exception] = None):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to read segment '{path}': {cause}")

class TranscriptionError(ChunkScribeError):
    """Exception raised when the transcription service fails or rejects a segment."""
    pass

class NoSegmentsTranscribedError(ChunkScribeError):
    """Exception raised when every segment of a file failed."""

    def __init__(self, source_file: str, attempted: int):
        self.source_file = source_file
        self.attempted = attempted
        super().__init__(f"Failed to transcribe any of the {attempted} segment(s) of '{source_file}'")

class FileSystemError(ChunkScribeError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass
