import dataclasses
from pathlib import Path

import pytest

from tts_deck.config import DEFAULT_TIMEOUT, BuildOptions, check_create_dir, find_chest_path


class TestCheckCreateDir:
    def test_creates_missing_folder(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b"

        assert check_create_dir(target) == target
        assert target.is_dir()

    def test_rejects_files(self, tmp_path: Path) -> None:
        target = tmp_path / "file"
        target.write_text("x")

        with pytest.raises(NotADirectoryError):
            check_create_dir(target)


class TestFindChestPath:
    def test_linux(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        chest = tmp_path / ".local" / "share" / "Tabletop Simulator" / "Saves" / "Saved Objects"
        chest.mkdir(parents=True)
        monkeypatch.setenv("HOME", str(tmp_path))

        assert find_chest_path("linux") == chest

    def test_windows(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        chest = tmp_path / "Documents" / "My Games" / "Tabletop Simulator" / "Saves" / "Saved Objects"
        chest.mkdir(parents=True)
        monkeypatch.setenv("USERPROFILE", str(tmp_path))

        assert find_chest_path("win32") == chest

    def test_missing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))

        with pytest.raises(FileNotFoundError):
            find_chest_path("linux")


def test_build_options_defaults() -> None:
    options = BuildOptions(Path("out"))

    assert [f.name for f in dataclasses.fields(options)] == [
        "output_folder", "back_url", "template", "indent", "timeout", "request_interval",
    ]
    assert (options.template, options.indent) == (False, True)
    assert options.timeout == DEFAULT_TIMEOUT
