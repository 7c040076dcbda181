from pathlib import Path

import pytest

from markstamp.render import typography
from markstamp.render.typography import UnresolvedFont, load_font, resolve_font_path, split_family_list


@pytest.fixture(autouse=True)
def _clear_font_caches():
    resolve_font_path.cache_clear()
    load_font.cache_clear()
    yield
    resolve_font_path.cache_clear()
    load_font.cache_clear()


@pytest.fixture
def installed(monkeypatch):
    fonts = (
        Path("/fonts/DejaVuSans.ttf"),
        Path("/fonts/NotoSans-Regular.ttf"),
        Path("/fonts/NotoSansSC-Regular.otf"),
    )
    monkeypatch.setattr(typography, "list_available_font_paths", lambda: fonts)
    return fonts


def test_split_family_list() -> None:
    assert split_family_list("'Noto Sans SC', \"PingFang SC\", sans-serif") == [
        "Noto Sans SC",
        "PingFang SC",
        "sans-serif",
    ]
    assert split_family_list("") == []


def test_family_names_match_installed_files(installed) -> None:
    assert resolve_font_path("'Noto Sans SC', sans-serif") == Path("/fonts/NotoSansSC-Regular.otf")
    assert resolve_font_path("DejaVu Sans") == Path("/fonts/DejaVuSans.ttf")
    assert resolve_font_path("Missing Font, Noto Sans") == Path("/fonts/NotoSans-Regular.ttf")


def test_generic_family_uses_system_candidates(installed, monkeypatch, tmp_path: Path) -> None:
    candidate = tmp_path / "system.ttf"
    candidate.write_bytes(b"")
    monkeypatch.setattr(typography, "_system_font_candidates", lambda: [tmp_path / "absent.ttf", candidate])
    assert resolve_font_path("sans-serif") == candidate


def test_unknown_family_raises(installed, monkeypatch) -> None:
    monkeypatch.setattr(typography, "_system_font_candidates", lambda: [])
    with pytest.raises(UnresolvedFont):
        resolve_font_path("Nope Font, serif")


def test_font_file_path_is_used_directly(installed, tmp_path: Path) -> None:
    font_file = tmp_path / "Brand.ttf"
    font_file.write_bytes(b"")
    assert resolve_font_path(str(font_file)) == font_file


def test_load_font_falls_back_for_unusable_files(installed, monkeypatch, tmp_path: Path) -> None:
    font_file = tmp_path / "Broken.ttf"
    font_file.write_bytes(b"not a font")
    monkeypatch.setattr(typography, "_system_font_candidates", lambda: [])

    font = load_font(str(font_file), 32)
    assert font.getlength("MM") > 0
    assert load_font("Nope Font", 32).getlength("M") > 0
