"""Handles loading configuration from YAML files and the environment."""

import yaml
import os
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .exceptions import ConfigurationError
from .models import TranscriptionConfig
from .utils import normalize_language_code

logger = logging.getLogger(__name__)

API_KEY_ENV = "ELEVENLABS_API_KEY"
DEFAULT_CHUNK_DURATION = 30
OUTPUT_FORMATS = ("md", "txt")


@dataclass(frozen=True)
class AppConfig:
    """Runtime settings, built once at startup and handed to the pipeline."""
    api_key: Optional[str] = None
    input_dir: str = "inputs"
    output_dir: str = "outputs"
    temp_dir: str = "temp"
    chunk_duration: int = DEFAULT_CHUNK_DURATION
    output_format: str = "md"
    max_concurrent_segments: int = 1
    ffmpeg_path: Optional[str] = None
    log_dir: str = "logs"
    log_file: str = "chunkscribe.log"
    transcription: TranscriptionConfig = field(default_factory=TranscriptionConfig)

    def require_api_key(self) -> str:
        """
        Returns the API key, failing fast if it is absent.

        Raises:
            ConfigurationError: If no API key was configured.
        """
        if not self.api_key:
            raise ConfigurationError(
                f"{API_KEY_ENV} not found in environment variables. "
                "Set it in your shell or in a .env file."
            )
        return self.api_key

    def validate(self) -> "AppConfig":
        if not isinstance(self.chunk_duration, int) or isinstance(self.chunk_duration, bool) or self.chunk_duration <= 0:
            raise ConfigurationError(f"chunk_duration must be a positive integer, got {self.chunk_duration!r}")
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigurationError(f"Unsupported output format '{self.output_format}'. Choose one of {OUTPUT_FORMATS}.")
        if not isinstance(self.max_concurrent_segments, int) or self.max_concurrent_segments < 1:
            raise ConfigurationError(f"max_concurrent_segments must be >= 1, got {self.max_concurrent_segments!r}")
        return self


class ConfigLoader:
    """Loads configuration settings from a YAML file, the environment and CLI overrides."""

    def load_config(self, config_path: str) -> dict:
        """
        Loads configuration from the specified YAML file path.

        Args:
            config_path: The path to the YAML configuration file.

        Returns:
            A dictionary containing the loaded configuration settings.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ConfigurationError: If the file cannot be parsed as YAML or
                              if there are other reading errors.
        """
        logger.info(f"Attempting to load configuration from: {config_path}")
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found at path: {config_path}")
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        if not os.path.isfile(config_path):
             logger.error(f"Configuration path is not a file: {config_path}")
             raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Invalid YAML format in {config_path}: {e}") from e
        except OSError as e:
            logger.error(f"Error reading configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Could not read configuration file {config_path}: {e}") from e

        if config is None:
            # Empty file
            config = {}
        if not isinstance(config, dict):
            logger.error(f"Configuration file {config_path} did not load as a dictionary (root object).")
            raise ConfigurationError(f"Invalid YAML structure in {config_path}. Root must be a mapping (dictionary).")
        logger.info(f"Configuration loaded successfully from {config_path}")
        return config

    def build(
        self,
        file_config: Optional[Dict[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> AppConfig:
        """
        Merges defaults, file settings, environment variables and CLI overrides.

        Args:
            file_config: Settings loaded from YAML (may be None or empty).
            environ: Environment mapping; defaults to os.environ.
            overrides: CLI values. Keys whose value is None are ignored.

        Returns:
            A validated AppConfig.

        Raises:
            ConfigurationError: If a value has the wrong type or is out of range.
        """
        file_config = dict(file_config or {})
        environ = os.environ if environ is None else environ
        overrides = {k: v for k, v in (overrides or {}).items() if v is not None}

        transcription_section = file_config.pop('transcription', None) or {}
        if not isinstance(transcription_section, dict):
            raise ConfigurationError("'transcription' section must be a mapping.")

        settings: Dict[str, Any] = {}
        for key in ('input_dir', 'output_dir', 'temp_dir', 'chunk_duration', 'output_format',
                    'max_concurrent_segments', 'ffmpeg_path', 'log_dir', 'log_file'):
            if key in file_config and file_config[key] is not None:
                settings[key] = file_config[key]

        if environ.get('INPUT_DIR'):
            settings['input_dir'] = environ['INPUT_DIR']
        if environ.get('OUTPUT_DIR'):
            settings['output_dir'] = environ['OUTPUT_DIR']
        if environ.get('CHUNK_DURATION'):
            settings['chunk_duration'] = self._parse_chunk_duration(environ['CHUNK_DURATION'])

        language = transcription_section.get('language_code')
        if environ.get('LANGUAGE'):
            language = environ['LANGUAGE']
        if overrides.get('language_code'):
            language = overrides.pop('language_code')

        for key in ('input_dir', 'output_dir', 'temp_dir', 'chunk_duration', 'output_format', 'max_concurrent_segments'):
            if key in overrides:
                logger.info(f"Overriding {key} with CLI argument: {overrides[key]}")
                settings[key] = overrides[key]

        if isinstance(settings.get('output_format'), str):
            settings['output_format'] = settings['output_format'].lower()

        try:
            transcription = TranscriptionConfig(
                model_id=str(transcription_section.get('model_id', TranscriptionConfig.model_id)),
                language_code=normalize_language_code(language),
                tag_audio_events=bool(transcription_section.get('tag_audio_events', False)),
                diarize=bool(transcription_section.get('diarize', False)),
            )
            config = AppConfig(
                api_key=environ.get(API_KEY_ENV) or None,
                transcription=transcription,
                **settings,
            )
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
        return config.validate()

    @staticmethod
    def _parse_chunk_duration(value: str) -> int:
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Ignoring non-numeric CHUNK_DURATION '{value}', using {DEFAULT_CHUNK_DURATION}s.")
            return DEFAULT_CHUNK_DURATION
