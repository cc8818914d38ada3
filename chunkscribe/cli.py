"""Command-Line Interface handler for ChunkScribe."""

import argparse
import logging
import os
import sys
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from .audio_splitter import AudioSplitter
from .batch_coordinator import BatchCoordinator
from .config_loader import AppConfig, ConfigLoader
from .exceptions import ChunkScribeError, ConfigurationError, FileSystemError
from .file_service import FileService
from .log_setup import setup_logging
from .segment_sequencer import SegmentSequencer
from .transcriber import ElevenLabsTranscriber
from .utils import is_audio_file

logger = logging.getLogger(__name__) # Get logger for this module

DEFAULT_CONFIG_PATH = "config.yaml"

class CLIHandler:
    """Parses arguments and orchestrates the ChunkScribe process."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            description="ChunkScribe: Transcribe long audio files in fixed-length chunks with ElevenLabs.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter # Show defaults in help
        )
        parser.add_argument(
            "file",
            nargs="?",
            default=None,
            help="Audio file to transcribe. Without it, every audio file in the input directory is processed."
        )
        parser.add_argument(
            "-c", "--config",
            default=None,
            help=f"Path to the configuration YAML file (optional, '{DEFAULT_CONFIG_PATH}' is used if present)."
        )
        parser.add_argument(
            "-i", "--input-dir",
            default=None,
            help="Override the input directory (INPUT_DIR)."
        )
        parser.add_argument(
            "-o", "--output-dir",
            default=None,
            help="Override the output directory (OUTPUT_DIR)."
        )
        parser.add_argument(
            "--temp-dir",
            default=None,
            help="Override the directory used for temporary segment files."
        )
        parser.add_argument(
            "--chunk-duration",
            type=int,
            default=None,
            help="Override the segment length in seconds (CHUNK_DURATION)."
        )
        parser.add_argument(
            "--language",
            default=None,
            help="Override the language code or name (LANGUAGE), e.g. 'en' or 'armenian'."
        )
        parser.add_argument(
            "--format",
            dest="output_format",
            default=None,
            choices=["md", "txt"],
            help="Override the output format."
        )
        parser.add_argument(
            "--concurrency",
            type=int,
            default=None,
            help="Number of segments of one file transcribed in parallel."
        )
        parser.add_argument(
            "--log-level",
            default="INFO",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Set the logging level for console and file output."
        )
        return parser

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Runs the CLI and exits the process with the resulting status code."""
        sys.exit(self.execute(argv))

    def execute(self, argv: Optional[List[str]] = None) -> int:
        """
        Parses arguments, sets up logging, loads config, and runs the batch.

        Returns:
            Process exit code: 0 on success (including "no files found"),
            1 on configuration errors, total failure or interrupt,
            2 on unexpected crashes.
        """
        args = self.parser.parse_args(argv)

        log_level = getattr(logging, args.log_level.upper(), logging.INFO)
        # Basic logging to catch config loading errors
        setup_logging(log_level=log_level, log_dir='logs', log_file='chunkscribe_init.log')

        load_dotenv(find_dotenv(usecwd=True), override=False)

        try:
            config = self._load_config(args)
        except (ConfigurationError, FileNotFoundError) as e:
            logger.critical(f"Failed to load configuration: {e}")
            return 1

        setup_logging(log_level=log_level, log_dir=config.log_dir, log_file=config.log_file)
        logger.info("Logging re-configured with settings from config.")

        try:
            api_key = config.require_api_key()
        except ConfigurationError as e:
            logger.critical(str(e))
            return 1

        file_service = FileService(
            input_dir=config.input_dir,
            output_dir=config.output_dir,
            temp_dir=config.temp_dir,
            output_format=config.output_format,
        )
        logger.info(f"Using input directory: {config.input_dir}")
        logger.info(f"Using output directory: {config.output_dir}")

        try:
            file_service.ensure_directories()
            input_files = self._resolve_input_files(args.file, file_service)
        except FileSystemError as e:
            logger.critical(f"Input directory error: {e}")
            return 1
        if input_files is None:
            return 1
        if not input_files:
            logger.warning(f"No audio files found in {config.input_dir}. Nothing to do.")
            return 0

        try:
            logger.info("Initializing ChunkScribe components...")
            coordinator = self._build_coordinator(config, api_key, file_service)
            logger.info(
                f"Transcribing {len(input_files)} file(s) with chunk duration {config.chunk_duration}s "
                f"and language {config.transcription.language_code}"
            )
            report = coordinator.run(
                input_files,
                config.chunk_duration,
                config.transcription,
                config.output_dir,
                config.temp_dir,
            )
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
            return 1
        except ChunkScribeError as e:
            logger.error(f"A ChunkScribe error occurred: {e}")
            return 1
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
            return 2

        if args.file and report.transcripts:
            logger.info(f"Transcription result:\n{next(iter(report.transcripts.values()))}")
        if report.all_failed:
            logger.error("Every file failed to transcribe.")
            return 1
        logger.info("ChunkScribe finished successfully.")
        return 0

    def _load_config(self, args: argparse.Namespace) -> AppConfig:
        loader = ConfigLoader()
        if args.config:
            file_config = loader.load_config(args.config)
        elif os.path.isfile(DEFAULT_CONFIG_PATH):
            file_config = loader.load_config(DEFAULT_CONFIG_PATH)
        else:
            logger.info(f"No {DEFAULT_CONFIG_PATH} found, using defaults and environment variables.")
            file_config = {}
        return loader.build(
            file_config,
            overrides={
                'input_dir': args.input_dir,
                'output_dir': args.output_dir,
                'temp_dir': args.temp_dir,
                'chunk_duration': args.chunk_duration,
                'language_code': args.language,
                'output_format': args.output_format,
                'max_concurrent_segments': args.concurrency,
            },
        )

    def _resolve_input_files(self, file_arg: Optional[str], file_service: FileService) -> Optional[List[str]]:
        """Returns the files to process, or None if the requested single file is missing."""
        if file_arg:
            if not file_service.file_exists(file_arg):
                logger.critical(f"Input file not found: {file_arg}")
                return None
            if not is_audio_file(file_arg):
                logger.warning(f"{file_arg} does not have a known audio extension; trying anyway.")
            return [file_arg]
        return [file_service.get_input_file_path(name) for name in file_service.get_audio_files()]

    def _build_coordinator(self, config: AppConfig, api_key: str, file_service: FileService) -> BatchCoordinator:
        sequencer = SegmentSequencer(
            splitter=AudioSplitter(ffmpeg_path=config.ffmpeg_path),
            transcriber=ElevenLabsTranscriber(api_key=api_key),
            file_service=file_service,
            max_concurrent_segments=config.max_concurrent_segments,
        )
        return BatchCoordinator(sequencer, file_service)


def main() -> None:
    CLIHandler().run()
