"""File locations and persistence of transcripts."""

import os
import logging
from datetime import datetime
from typing import Dict, List, Optional, Set

from .exceptions import FileSystemError, SegmentReadError
from .models import Err, Ok, Result
from .utils import ensure_dir_exists, is_audio_file, segment_number, title_from_name

logger = logging.getLogger(__name__)

COMBINED_OUTPUT_NAME = "combined_transcription"

class FileService:
    """Resolves input/output/temp directories and reads and writes artifacts."""

    def __init__(self, input_dir: str, output_dir: str, temp_dir: str, output_format: str = "md"):
        """
        Initializes the FileService.

        Args:
            input_dir: Directory scanned for audio files in batch mode.
            output_dir: Directory receiving per-file and combined transcripts.
            temp_dir: Scratch directory used only for segment files.
            output_format: 'md' or 'txt'.
        """
        self.input_dir = input_dir
        self.output_dir = output_dir
        self.temp_dir = temp_dir
        self.output_format = output_format
        self._written: Set[str] = set()

    @property
    def combined_output_path(self) -> str:
        return os.path.join(self.output_dir, f"{COMBINED_OUTPUT_NAME}.{self.output_format}")

    def ensure_directories(self) -> None:
        """
        Creates the input, output and temp directories if they are missing.

        Raises:
            FileSystemError: If a directory cannot be created.
        """
        for dir_path in (self.input_dir, self.output_dir, self.temp_dir):
            ensure_dir_exists(dir_path)

    def file_exists(self, file_path: str) -> bool:
        return os.path.isfile(file_path)

    def get_audio_files(self) -> List[str]:
        """
        Lists audio files in the input directory.

        Only regular files with a supported extension are returned, sorted by
        name so repeated runs process files in the same order.

        Returns:
            File names (not paths). Empty if the input directory did not exist yet.

        Raises:
            FileSystemError: If the input directory exists but cannot be listed.
        """
        if not os.path.exists(self.input_dir):
            logger.warning(f"Input directory {self.input_dir} does not exist, creating it.")
            ensure_dir_exists(self.input_dir)
            return []
        try:
            names = os.listdir(self.input_dir)
        except OSError as e:
            logger.error(f"Error reading input directory {self.input_dir}: {e}")
            raise FileSystemError(f"Could not read input directory {self.input_dir}: {e}") from e

        files = [
            name for name in names
            if is_audio_file(name) and os.path.isfile(os.path.join(self.input_dir, name))
        ]
        files.sort()
        logger.info(f"Found {len(files)} audio files in {self.input_dir}")
        return files

    def get_input_file_path(self, file_name: str) -> str:
        return os.path.join(self.input_dir, file_name)

    def read_segment(self, path: str) -> Result[bytes]:
        """Reads a segment file back from temp storage."""
        try:
            with open(path, 'rb') as f:
                return Ok(f.read())
        except OSError as e:
            return Err(SegmentReadError(path, e))

    def save_transcription(self, text: str, file_name: str, output_format: Optional[str] = None) -> str:
        """
        Saves the transcript of one input file.

        Args:
            text: Combined transcript text.
            file_name: Name of the original audio file.
            output_format: 'md' or 'txt'; defaults to the service format.

        Returns:
            Path of the written file, `<output_dir>/<base name>.<format>`.

        Raises:
            FileSystemError: If the file cannot be written.
        """
        fmt = output_format or self.output_format
        base_name = os.path.splitext(os.path.basename(file_name))[0]
        output_path = os.path.join(self.output_dir, f"{base_name}.{fmt}")
        if output_path in self._written:
            logger.warning(f"{output_path} was already written in this run; {file_name} replaces it.")
        content = self.format_as_markdown(text, base_name) if fmt == 'md' else text
        self._write_text(output_path, content)
        self._written.add(output_path)
        logger.info(f"Transcription saved to: {output_path}")
        return output_path

    def format_as_markdown(self, text: str, title: str, now: Optional[datetime] = None) -> str:
        """Renders a transcript as a Markdown document with a title and timestamp."""
        now = now or datetime.now()
        markdown = f"# Transcription: {title_from_name(title)}\n\n"
        markdown += f"*Transcribed on {now.strftime('%Y-%m-%d')} at {now.strftime('%H:%M:%S')}*\n\n"
        for paragraph in text.split('\n\n'):
            if paragraph.strip():
                markdown += f"{paragraph.strip()}\n\n"
        return markdown

    def combine_transcriptions(self, transcriptions: Dict[str, str]) -> Optional[str]:
        """
        Writes one document holding every transcript, sorted by file name.

        Args:
            transcriptions: Map of file name to transcript text.

        Returns:
            Path of the combined document, or None when there was nothing to combine.

        Raises:
            FileSystemError: If the file cannot be written.
        """
        if not transcriptions:
            logger.info("No transcriptions to combine")
            return None

        if self.output_format == 'md':
            content = "# Transcription\n\n"
            for file_name, text in sorted(transcriptions.items()):
                content += f"## {file_name}\n\n{text}\n\n"
        else:
            sections = []
            for file_name, text in sorted(transcriptions.items()):
                sections.append(f"{file_name}\n{'=' * len(file_name)}\n\n{text}\n")
            content = "\n".join(sections)

        self._write_text(self.combined_output_path, content)
        logger.info(f"Combined transcription saved to: {self.combined_output_path}")
        return self.combined_output_path

    def cleanup_segments(self, name_prefix: str) -> int:
        """
        Removes the temp files belonging to one segment prefix.

        Files of other prefixes are left alone. Removal errors are logged.

        Returns:
            Number of files removed.
        """
        removed = 0
        if not os.path.isdir(self.temp_dir):
            return removed
        try:
            names = os.listdir(self.temp_dir)
        except OSError as e:
            logger.warning(f"Could not list temporary directory {self.temp_dir}: {e}")
            return removed
        for name in names:
            path = os.path.join(self.temp_dir, name)
            if segment_number(name, name_prefix) is None or not os.path.isfile(path):
                continue
            try:
                os.remove(path)
                removed += 1
            except OSError as e:
                logger.warning(f"Could not remove temporary file {path}: {e}")
        logger.debug(f"Removed {removed} temporary segment files for prefix '{name_prefix}'")
        return removed

    def _write_text(self, path: str, content: str) -> None:
        try:
            ensure_dir_exists(os.path.dirname(path) or '.')
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Could not write {path}: {e}", exc_info=True)
            raise FileSystemError(f"Could not write {path}: {e}") from e

    def relocated(self, output_dir: Optional[str] = None, temp_dir: Optional[str] = None) -> "FileService":
        """Returns a copy of this service pointing at other output/temp directories."""
        return FileService(
            input_dir=self.input_dir,
            output_dir=output_dir or self.output_dir,
            temp_dir=temp_dir or self.temp_dir,
            output_format=self.output_format,
        )
