"""Handles Speech-to-Text transcription through the ElevenLabs API."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from elevenlabs.client import ElevenLabs

from .models import Err, Ok, Result, TranscriptionConfig
from .exceptions import TranscriptionError

logger = logging.getLogger(__name__)

class Transcriber(ABC):
    """Abstract base class for transcription services."""

    @abstractmethod
    def transcribe(self, segment_bytes: bytes, mime_type: str, config: TranscriptionConfig) -> Result[str]:
        """
        Transcribes one audio segment.

        Args:
            segment_bytes: The encoded audio of the segment.
            mime_type: MIME type of the audio, e.g. 'audio/mpeg'.
            config: Model, language and feature flags, passed through unchanged.

        Returns:
            Ok with the recognised (non-empty) text, or Err with a TranscriptionError.
        """
        pass

class ElevenLabsTranscriber(Transcriber):
    """Implements transcription using the ElevenLabs speech-to-text endpoint."""

    def __init__(self, api_key: Optional[str] = None, client: Optional[Any] = None):
        """
        Initializes the ElevenLabsTranscriber.

        Args:
            api_key: ElevenLabs API key. Ignored when `client` is given.
            client: A pre-built client exposing `speech_to_text.convert`.
        """
        self.client = client if client is not None else ElevenLabs(api_key=api_key)

    def transcribe(self, segment_bytes: bytes, mime_type: str, config: TranscriptionConfig) -> Result[str]:
        extension = mime_type.split('/')[-1] if mime_type else 'bin'
        logger.debug(f"Sending {len(segment_bytes)} bytes ({mime_type}) to model '{config.model_id}'")
        try:
            response = self.client.speech_to_text.convert(
                file=(f"segment.{extension}", segment_bytes, mime_type),
                model_id=config.model_id,
                tag_audio_events=config.tag_audio_events,
                language_code=config.language_code,
                diarize=config.diarize,
            )
        except Exception as e:
            # Auth, quota, network and API errors all collapse into one type
            logger.error(f"Error transcribing audio: {e}")
            return Err(TranscriptionError(str(e) or type(e).__name__))

        text = getattr(response, 'text', None)
        if not isinstance(text, str):
            return Err(TranscriptionError(f"Malformed transcription response: {type(response).__name__}"))
        text = text.strip()
        if not text:
            return Err(TranscriptionError("Transcription returned no text"))
        return Ok(text)
