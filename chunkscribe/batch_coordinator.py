"""Runs the segment pipeline over a batch of audio files."""

import logging
import os
import time
from typing import List

from tqdm import tqdm

from .exceptions import ChunkScribeError, FileSystemError
from .file_service import FileService
from .models import BatchReport, FileFailure, TranscriptionConfig
from .segment_sequencer import SegmentSequencer, segment_prefix

logger = logging.getLogger(__name__)

class BatchCoordinator:
    """
    Processes input files one at a time and assembles the combined document.

    A failing file never stops the batch: its error is logged and recorded in
    the BatchReport. The temp segments of each file are removed as soon as
    that file is done, whatever the outcome.
    """

    def __init__(self, sequencer: SegmentSequencer, file_service: FileService, show_progress: bool = True):
        self.sequencer = sequencer
        self.file_service = file_service
        self.show_progress = show_progress

    def run(
        self,
        input_files: List[str],
        chunk_duration: int,
        config: TranscriptionConfig,
        output_dir: str,
        temp_dir: str,
    ) -> BatchReport:
        """
        Transcribes every input file and writes per-file and combined outputs.

        Args:
            input_files: Paths of the audio files, in processing order.
            chunk_duration: Segment length in seconds.
            config: Transcription options.
            output_dir: Directory for transcripts.
            temp_dir: Directory for segment files.

        Returns:
            The BatchReport. `report.no_input` is set when there was nothing to do;
            `report.all_failed` when every file failed.

        Raises:
            FileSystemError: If the output or temp directory cannot be created.
            KeyboardInterrupt: Re-raised after completed files were flushed.
        """
        report = BatchReport(total_files=len(input_files))
        if not input_files:
            logger.info("No audio files to process.")
            return report

        store = self.file_service.relocated(output_dir=output_dir, temp_dir=temp_dir)
        store.ensure_directories()

        batch_start_time = time.time()
        logger.info(f"--- Starting batch transcription of {len(input_files)} files ---")
        try:
            with tqdm(total=len(input_files), unit="file", desc="Starting Batch", disable=not self.show_progress) as pbar:
                for input_path in input_files:
                    file_name = os.path.basename(input_path)
                    pbar.set_description(f"Processing: {file_name[:30]}")
                    try:
                        self._process_one(store, report, input_path, chunk_duration, config, temp_dir)
                    finally:
                        store.cleanup_segments(segment_prefix(input_path))
                        pbar.update(1)
        except KeyboardInterrupt:
            report.interrupted = True
            logger.warning("Batch interrupted; saving the combined document for completed files.")
            self._write_combined(store, report)
            for line in report.summary_lines():
                logger.info(line)
            raise

        self._write_combined(store, report)
        logger.info(f"--- Batch transcription finished in {time.time() - batch_start_time:.2f} seconds ---")
        for line in report.summary_lines():
            logger.info(line)
        return report

    def _process_one(
        self,
        store: FileService,
        report: BatchReport,
        input_path: str,
        chunk_duration: int,
        config: TranscriptionConfig,
        temp_dir: str,
    ) -> None:
        file_name = os.path.basename(input_path)
        logger.info(f"--- Processing: {input_path} ---")
        try:
            result = self.sequencer.process_file(input_path, chunk_duration, config, temp_dir)
        except Exception as e:
            logger.error(f"Unexpected error processing '{file_name}': {e}", exc_info=True)
            report.failures.append(FileFailure(file_name, ChunkScribeError(f"Unexpected error: {e}")))
            return

        if not result.ok:
            logger.error(f"Transcription failed for '{file_name}': {result.error}")
            report.failures.append(FileFailure(file_name, result.error))
            return

        text = result.value.combined_text
        try:
            output_path = store.save_transcription(text, file_name)
        except FileSystemError as e:
            logger.error(f"Could not save transcription for '{file_name}': {e}. Text was: {text}")
            report.failures.append(FileFailure(file_name, e))
            return

        if file_name in report.transcripts:
            logger.warning(f"Duplicate file name '{file_name}', replacing the earlier transcript.")
        report.transcripts[file_name] = text
        report.output_paths[file_name] = output_path

    def _write_combined(self, store: FileService, report: BatchReport) -> None:
        if not report.transcripts:
            logger.error("No file was transcribed; combined document not written.")
            return
        try:
            report.combined_output_path = store.combine_transcriptions(report.transcripts)
        except FileSystemError as e:
            logger.error(f"Could not write combined transcription: {e}")
