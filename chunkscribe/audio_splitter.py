"""Splits audio files into fixed-duration segments using ffmpeg."""

import ffmpeg
import os
import logging
from typing import List, Optional, Tuple

from .exceptions import FileSystemError, SplitError
from .models import AudioSegment, Err, Ok, Result
from .utils import ensure_dir_exists, segment_number

logger = logging.getLogger(__name__)

# ffmpeg segment muxer writes <prefix>_000.ext, <prefix>_001.ext, ...
SEGMENT_SUFFIX_DIGITS = 3

class AudioSplitter:
    """Cuts an audio file into back-to-back segments without re-encoding."""

    def __init__(self, ffmpeg_path: Optional[str] = None):
        """
        Initializes the AudioSplitter.

        Args:
            ffmpeg_path: Optional path to the ffmpeg executable.
                         If None, assumes ffmpeg is in the system PATH.
        """
        self.ffmpeg_cmd = ffmpeg_path or 'ffmpeg'
        logger.info(f"Using ffmpeg command: {self.ffmpeg_cmd}")

    def split(
        self,
        input_path: str,
        output_dir: str,
        segment_duration: int,
        name_prefix: str = "chunk",
    ) -> Result[List[AudioSegment]]:
        """
        Splits an audio file into segments of `segment_duration` seconds.

        The audio stream is copied as-is, so every segment keeps the original
        file's encoding and extension. Segment files are left on disk; removing
        them is the caller's job.

        Args:
            input_path: Path to the source audio file.
            output_dir: Directory receiving the segment files. Created if missing.
            segment_duration: Target segment length in seconds (positive integer).
            name_prefix: Prefix for segment file names.

        Returns:
            Ok with the segments ordered by ordinal, or Err with a SplitError.
        """
        if not os.path.exists(input_path):
            return Err(SplitError(SplitError.NOT_FOUND, f"Input file \"{input_path}\" does not exist"))
        if not os.path.isfile(input_path):
            return Err(SplitError(SplitError.INVALID_INPUT, f"Input path \"{input_path}\" is not a file"))
        if isinstance(segment_duration, bool) or not isinstance(segment_duration, int) or segment_duration <= 0:
            return Err(SplitError(SplitError.INVALID_INPUT, f"Segment duration must be a positive integer, got {segment_duration!r}"))

        ext = os.path.splitext(input_path)[1]
        try:
            ensure_dir_exists(output_dir)
            self._remove_stale_segments(output_dir, name_prefix, ext)

            pattern = os.path.join(output_dir, f"{name_prefix}_%0{SEGMENT_SUFFIX_DIGITS}d{ext}")
            stream = self.build_command(os.path.realpath(input_path), pattern, segment_duration)
            logger.info(f"Splitting {input_path} into {segment_duration}s segments in {output_dir}")
            logger.debug(f"ffmpeg arguments: {ffmpeg.get_args(stream)}")

            exit_code, stderr_text = self._run_ffmpeg(stream)
            if exit_code != 0:
                logger.error(f"ffmpeg exited with code {exit_code} for {input_path}: {stderr_text}")
                return Err(SplitError(
                    SplitError.TOOL_FAILURE,
                    f"FFmpeg process failed with code {exit_code}: {stderr_text}",
                    exit_code=exit_code,
                    stderr_text=stderr_text,
                ))

            paths = self.list_segments(output_dir, name_prefix, ext)
        except FileSystemError as e:
            return Err(SplitError(SplitError.IO_ERROR, str(e)))
        except OSError as e:
            logger.error(f"I/O error while splitting {input_path}: {e}", exc_info=True)
            return Err(SplitError(SplitError.IO_ERROR, f"I/O error while splitting \"{input_path}\": {e}"))

        if not paths:
            return Err(SplitError(
                SplitError.TOOL_FAILURE,
                f"FFmpeg produced no segments for \"{input_path}\"",
                exit_code=0,
                stderr_text="",
            ))

        segments = [
            AudioSegment(ordinal=i, path=path, source_file=input_path, duration_seconds=segment_duration)
            for i, path in enumerate(paths)
        ]
        logger.info(f"Split {input_path} into {len(segments)} segments.")
        return Ok(segments)

    def build_command(self, input_path: str, output_pattern: str, segment_duration: int):
        """Builds the ffmpeg-python stream for a stream-copy segment split."""
        return (
            ffmpeg
            .input(input_path)
            .audio
            .output(
                output_pattern,
                f='segment',
                segment_time=segment_duration,
                c='copy',
            )
            .overwrite_output()
        )

    def _run_ffmpeg(self, stream) -> Tuple[int, str]:
        """Runs ffmpeg and returns (exit code, stderr text)."""
        process = ffmpeg.run_async(stream, cmd=self.ffmpeg_cmd, pipe_stdout=True, pipe_stderr=True)
        _, stderr = process.communicate()
        return process.returncode, (stderr or b'').decode('utf-8', errors='replace')

    def list_segments(self, output_dir: str, name_prefix: str, ext: str) -> List[str]:
        """
        Lists the segment files for a prefix, ordered by their numeric suffix.

        Directory listing order is filesystem dependent, so the order is
        rebuilt from the number embedded in each filename.
        """
        numbered = []
        for name in os.listdir(output_dir):
            path = os.path.join(output_dir, name)
            if not name.endswith(ext) or not os.path.isfile(path):
                continue
            number = segment_number(name, name_prefix)
            if number is None:
                continue
            numbered.append((number, path))
        numbered.sort(key=lambda item: item[0])
        return [path for _, path in numbered]

    def _remove_stale_segments(self, output_dir: str, name_prefix: str, ext: str) -> None:
        for path in self.list_segments(output_dir, name_prefix, ext):
            logger.warning(f"Removing stale segment from a previous run: {path}")
            os.remove(path)
