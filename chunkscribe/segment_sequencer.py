"""Transcribes one audio file segment by segment."""

import logging
import os
import re
import time
from concurrent.futures import ThreadPoolExecutor, as_completed

from .audio_splitter import AudioSplitter
from .exceptions import NoSegmentsTranscribedError, TranscriptionError
from .file_service import FileService
from .models import AudioSegment, Err, FileTranscript, Ok, Result, TranscriptionConfig
from .transcriber import Transcriber
from .utils import mime_type_for

logger = logging.getLogger(__name__)

def segment_prefix(input_path: str) -> str:
    """Derives the temp file prefix for an input file, e.g. 'chunk_team_call'."""
    base_name = os.path.splitext(os.path.basename(input_path))[0]
    # ffmpeg treats '%' in the output pattern as a format directive
    return "chunk_" + re.sub(r'[^A-Za-z0-9_-]', '_', base_name)

class SegmentSequencer:
    """
    Splits one file, transcribes each segment and joins the results.

    Segment failures (unreadable segment, rejected transcription) leave a gap
    in the transcript and processing moves on. The file only fails when the
    split fails or when no segment at all was transcribed.

    By default segments are sent one after another. With
    `max_concurrent_segments` > 1 they are sent from a bounded thread pool;
    each result is stored in the slot of its ordinal, so the joined text is
    the same whatever order the calls complete in.
    """

    def __init__(
        self,
        splitter: AudioSplitter,
        transcriber: Transcriber,
        file_service: FileService,
        max_concurrent_segments: int = 1,
    ):
        if max_concurrent_segments < 1:
            raise ValueError(f"max_concurrent_segments must be >= 1, got {max_concurrent_segments}")
        self.splitter = splitter
        self.transcriber = transcriber
        self.file_service = file_service
        self.max_concurrent_segments = max_concurrent_segments

    def process_file(
        self,
        input_path: str,
        chunk_duration: int,
        config: TranscriptionConfig,
        temp_dir: str,
    ) -> Result[FileTranscript]:
        """
        Transcribes one input file.

        Args:
            input_path: Path to the audio file.
            chunk_duration: Segment length in seconds.
            config: Transcription options shared by every segment.
            temp_dir: Directory receiving the segment files.

        Returns:
            Ok with the FileTranscript, or Err with the SplitError or
            NoSegmentsTranscribedError that ended processing of the file.
        """
        start_time = time.time()
        logger.info(f"Splitting {input_path} into {chunk_duration}-second chunks...")
        split_result = self.splitter.split(input_path, temp_dir, chunk_duration, segment_prefix(input_path))
        if not split_result.ok:
            logger.error(f"Failed to split audio file {input_path}: {split_result.error}")
            return split_result

        segments = split_result.value
        transcript = FileTranscript.empty(input_path, len(segments))
        logger.info(f"Split audio into {len(segments)} chunks.")

        if self.max_concurrent_segments == 1:
            for segment in segments:
                self._record(transcript, segment, self._transcribe_segment(segment, config), len(segments))
        else:
            workers = max(1, min(self.max_concurrent_segments, len(segments)))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="segment") as pool:
                futures = {pool.submit(self._transcribe_segment, segment, config): segment for segment in segments}
                try:
                    for future in as_completed(futures):
                        self._record(transcript, futures[future], future.result(), len(segments))
                except BaseException:
                    # Drop queued segments; calls already running still finish
                    for future in futures:
                        future.cancel()
                    raise

        if transcript.succeeded == 0:
            return Err(NoSegmentsTranscribedError(input_path, len(segments)))

        if transcript.failed_ordinals:
            logger.warning(
                f"{input_path}: {len(transcript.failed_ordinals)} of {len(segments)} chunks failed "
                f"(ordinals {transcript.failed_ordinals}); transcript has gaps."
            )
        logger.info(f"Transcribed {transcript.succeeded}/{len(segments)} chunks of {input_path} in {time.time() - start_time:.2f}s")
        return Ok(transcript)

    def _transcribe_segment(self, segment: AudioSegment, config: TranscriptionConfig) -> Result[str]:
        read_result = self.file_service.read_segment(segment.path)
        if not read_result.ok:
            return read_result
        try:
            return self.transcriber.transcribe(read_result.value, mime_type_for(segment.path), config)
        except Exception as e:
            logger.error(f"Transcriber raised for chunk {segment.ordinal} of {segment.source_file}: {e}", exc_info=True)
            return Err(TranscriptionError(str(e) or type(e).__name__))

    def _record(self, transcript: FileTranscript, segment: AudioSegment, result: Result[str], total: int) -> None:
        if result.ok:
            transcript.record(segment.ordinal, result.value)
            logger.info(f"Transcribed chunk {segment.ordinal + 1}/{total}")
        else:
            logger.error(f"Failed to transcribe chunk {segment.ordinal + 1}/{total} ({segment.path}): {result.error}")
