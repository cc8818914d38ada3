import logging
from logging.handlers import RotatingFileHandler

import pytest

from chunkscribe.batch_coordinator import BatchCoordinator
from chunkscribe.cli import CLIHandler
from chunkscribe.segment_sequencer import SegmentSequencer

from fakes import FakeTranscriber, ScriptedSplitter, write_audio


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("ELEVENLABS_API_KEY", "INPUT_DIR", "OUTPUT_DIR", "CHUNK_DURATION", "LANGUAGE"):
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger()
    level = root.level
    yield
    # Drop the console and file handlers installed by setup_logging
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, RotatingFileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def fake_coordinator(transcriber):
    def build(self, config, api_key, file_service):
        sequencer = SegmentSequencer(ScriptedSplitter(default_count=2), transcriber, file_service)
        return BatchCoordinator(sequencer, file_service, show_progress=False)
    return build


def test_missing_api_key_exits_with_error(tmp_path):
    assert CLIHandler().execute([]) == 1


def test_no_files_found_is_success(tmp_path, monkeypatch):
    monkeypatch.setenv("ELEVENLABS_API_KEY", "sk-test")

    assert CLIHandler().execute([]) == 0
    assert (tmp_path / "inputs").is_dir()
    assert not (tmp_path / "outputs" / "combined_transcription.md").exists()


def test_missing_single_file_exits_with_error(tmp_path, monkeypatch):
    monkeypatch.setenv("ELEVENLABS_API_KEY", "sk-test")

    assert CLIHandler().execute([str(tmp_path / "nope.mp3")]) == 1


def test_invalid_config_file_exits_with_error(tmp_path, monkeypatch):
    monkeypatch.setenv("ELEVENLABS_API_KEY", "sk-test")
    (tmp_path / "broken.yaml").write_text("- 1\n- 2\n")

    assert CLIHandler().execute(["-c", "broken.yaml"]) == 1


def test_batch_mode_transcribes_input_directory(tmp_path, monkeypatch):
    monkeypatch.setenv("ELEVENLABS_API_KEY", "sk-test")
    monkeypatch.setenv("INPUT_DIR", str(tmp_path / "audio"))
    (tmp_path / "audio").mkdir()
    write_audio(tmp_path / "audio", "b.mp3")
    write_audio(tmp_path / "audio", "a.wav")
    write_audio(tmp_path / "audio", "notes.pdf")
    transcriber = FakeTranscriber()
    monkeypatch.setattr(CLIHandler, "_build_coordinator", fake_coordinator(transcriber))

    assert CLIHandler().execute(["--format", "txt", "--language", "armenian"]) == 0

    assert (tmp_path / "outputs" / "a.txt").read_text() == "a.wav#0 a.wav#1"
    assert (tmp_path / "outputs" / "b.txt").read_text() == "b.mp3#0 b.mp3#1"
    combined = (tmp_path / "outputs" / "combined_transcription.txt").read_text()
    assert combined.index("a.wav") < combined.index("b.mp3")
    assert {call[2].language_code for call in transcriber.calls} == {"hy"}
    assert list((tmp_path / "temp").iterdir()) == []


def test_single_file_mode(tmp_path, monkeypatch):
    monkeypatch.setenv("ELEVENLABS_API_KEY", "sk-test")
    source = write_audio(tmp_path, "memo.m4a")
    monkeypatch.setattr(CLIHandler, "_build_coordinator", fake_coordinator(FakeTranscriber()))

    assert CLIHandler().execute([source, "-o", str(tmp_path / "done")]) == 0

    assert (tmp_path / "done" / "memo.md").exists()
    assert (tmp_path / "done" / "combined_transcription.md").exists()


def test_total_failure_exits_with_error(tmp_path, monkeypatch):
    monkeypatch.setenv("ELEVENLABS_API_KEY", "sk-test")
    source = write_audio(tmp_path, "memo.mp3")
    transcriber = FakeTranscriber(failures={"memo.mp3#0", "memo.mp3#1"})
    monkeypatch.setattr(CLIHandler, "_build_coordinator", fake_coordinator(transcriber))

    assert CLIHandler().execute([source]) == 1
    assert not (tmp_path / "outputs" / "memo.md").exists()
