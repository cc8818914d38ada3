from types import SimpleNamespace

from chunkscribe.exceptions import TranscriptionError
from chunkscribe.models import TranscriptionConfig
from chunkscribe.transcriber import ElevenLabsTranscriber


class FakeSpeechToText:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs = None

    def convert(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return self.response


class FakeClient:
    def __init__(self, **kwargs):
        self.speech_to_text = FakeSpeechToText(**kwargs)


def test_transcribe_passes_config_through():
    client = FakeClient(response=SimpleNamespace(text="  Barev dzez.  "))
    transcriber = ElevenLabsTranscriber(client=client)
    config = TranscriptionConfig(model_id="scribe_v1", language_code="hy", tag_audio_events=True, diarize=True)

    result = transcriber.transcribe(b"\x00\x01", "audio/mpeg", config)

    assert result.ok
    assert result.value == "Barev dzez."
    kwargs = client.speech_to_text.kwargs
    assert kwargs["file"] == ("segment.mpeg", b"\x00\x01", "audio/mpeg")
    assert kwargs["model_id"] == "scribe_v1"
    assert kwargs["language_code"] == "hy"
    assert kwargs["tag_audio_events"] is True
    assert kwargs["diarize"] is True


def test_service_errors_become_transcription_error():
    client = FakeClient(error=RuntimeError("status_code: 401, invalid api key"))

    result = ElevenLabsTranscriber(client=client).transcribe(b"x", "audio/wav", TranscriptionConfig())

    assert not result.ok
    assert isinstance(result.error, TranscriptionError)
    assert "invalid api key" in str(result.error)


def test_empty_text_is_a_failure():
    client = FakeClient(response=SimpleNamespace(text="   "))

    result = ElevenLabsTranscriber(client=client).transcribe(b"x", "audio/wav", TranscriptionConfig())

    assert isinstance(result.error, TranscriptionError)


def test_malformed_response_is_a_failure():
    client = FakeClient(response={"unexpected": True})

    result = ElevenLabsTranscriber(client=client).transcribe(b"x", "audio/wav", TranscriptionConfig())

    assert "Malformed" in str(result.error)
