import logging
import os
from datetime import datetime

import pytest

from chunkscribe.exceptions import FileSystemError
from chunkscribe.file_service import FileService


@pytest.fixture
def service(tmp_path):
    return FileService(str(tmp_path / "in"), str(tmp_path / "out"), str(tmp_path / "temp"))


def test_get_audio_files_filters_by_extension(service, tmp_path):
    service.ensure_directories()
    for name in ("a.mp3", "b.wav", "c.pdf", "d.jpg"):
        (tmp_path / "in" / name).write_bytes(b"x")

    assert service.get_audio_files() == ["a.mp3", "b.wav"]


def test_get_audio_files_is_case_insensitive_and_sorted(service, tmp_path):
    service.ensure_directories()
    for name in ("z.FLAC", "m.Ogg", "b.m4a"):
        (tmp_path / "in" / name).write_bytes(b"x")
    (tmp_path / "in" / "folder.mp3").mkdir()

    assert service.get_audio_files() == ["b.m4a", "m.Ogg", "z.FLAC"]


def test_get_audio_files_creates_missing_input_dir(service, tmp_path):
    assert service.get_audio_files() == []
    assert (tmp_path / "in").is_dir()


def test_save_transcription_as_markdown(service, tmp_path):
    path = service.save_transcription("First part.\n\nSecond part.", "team_sync.mp3")

    content = (tmp_path / "out" / "team_sync.md").read_text(encoding="utf-8")
    assert path == str(tmp_path / "out" / "team_sync.md")
    assert content.startswith("# Transcription: Team Sync\n\n*Transcribed on ")
    assert content.endswith("First part.\n\nSecond part.\n\n")


def test_save_transcription_as_text(service, tmp_path):
    service.save_transcription("plain words", "memo.wav", output_format="txt")

    assert (tmp_path / "out" / "memo.txt").read_text(encoding="utf-8") == "plain words"


def test_format_as_markdown_timestamp(service):
    markdown = service.format_as_markdown("hi", "memo", now=datetime(2024, 3, 1, 9, 5, 0))

    assert "*Transcribed on 2024-03-01 at 09:05:00*" in markdown


def test_combine_transcriptions_markdown(service, tmp_path):
    path = service.combine_transcriptions({"b.mp3": "text B", "a.mp3": "text A"})

    assert path == str(tmp_path / "out" / "combined_transcription.md")
    assert (tmp_path / "out" / "combined_transcription.md").read_text(encoding="utf-8") == (
        "# Transcription\n\n## a.mp3\n\ntext A\n\n## b.mp3\n\ntext B\n\n"
    )


def test_combine_transcriptions_text(tmp_path):
    service = FileService(str(tmp_path), str(tmp_path / "out"), str(tmp_path), output_format="txt")

    service.combine_transcriptions({"b.mp3": "text B", "a.mp3": "text A"})

    content = (tmp_path / "out" / "combined_transcription.txt").read_text(encoding="utf-8")
    assert content == "a.mp3\n=====\n\ntext A\n\nb.mp3\n=====\n\ntext B\n"


def test_combine_nothing_writes_nothing(service, tmp_path):
    assert service.combine_transcriptions({}) is None
    assert not (tmp_path / "out").exists()


def test_cleanup_segments_only_touches_matching_prefix(service, tmp_path):
    service.ensure_directories()
    temp = tmp_path / "temp"
    for name in ("chunk_a_000.mp3", "chunk_a_001.mp3", "chunk_a_b_000.mp3", "chunk_ab_000.mp3", "notes.txt"):
        (temp / name).write_bytes(b"x")

    removed = service.cleanup_segments("chunk_a")

    assert removed == 2
    assert sorted(p.name for p in temp.iterdir()) == ["chunk_a_b_000.mp3", "chunk_ab_000.mp3", "notes.txt"]


def test_write_failure_raises_file_system_error(tmp_path):
    (tmp_path / "out").write_text("not a directory")
    service = FileService(str(tmp_path), str(tmp_path / "out"), str(tmp_path))

    with pytest.raises(FileSystemError):
        service.save_transcription("text", "a.mp3")


def test_relocated_keeps_input_and_format(service, tmp_path):
    moved = service.relocated(output_dir=str(tmp_path / "elsewhere"))

    assert moved.output_dir == str(tmp_path / "elsewhere")
    assert moved.temp_dir == service.temp_dir
    assert moved.input_dir == service.input_dir
    assert moved.combined_output_path.endswith("combined_transcription.md")


def test_cleanup_segments_tolerates_unlistable_temp_dir(service, tmp_path, monkeypatch):
    service.ensure_directories()
    (tmp_path / "temp" / "chunk_a_000.mp3").write_bytes(b"x")
    real_listdir = os.listdir

    def failing_listdir(path):
        if os.path.abspath(str(path)) == os.path.abspath(service.temp_dir):
            raise PermissionError(13, "Permission denied", str(path))
        return real_listdir(path)

    monkeypatch.setattr(os, "listdir", failing_listdir)

    assert service.cleanup_segments("chunk_a") == 0


def test_saving_same_output_twice_in_one_run_warns(service, tmp_path, caplog):
    caplog.set_level(logging.WARNING)

    first = service.save_transcription("from mp3", "a.mp3")
    second = service.save_transcription("from wav", "a.wav")

    assert first == second
    assert "already written in this run" in caplog.text
    assert "a.wav replaces it" in caplog.text
