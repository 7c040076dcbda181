import json
from pathlib import Path

import pytest
from PIL import Image
from typer.testing import CliRunner

from markstamp.cli import app
from markstamp.settings_loader import load_settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path: Path) -> Path:
    path = tmp_path / "cfg" / "config.yaml"
    monkeypatch.setenv("MARKSTAMP_CONFIG", str(path))
    return path


def _make_image(path: Path, size=(300, 200)) -> Path:
    Image.new("RGB", size, (10, 120, 60)).save(path)
    return path


def test_render_directory_writes_into_output(tmp_path: Path) -> None:
    photos = tmp_path / "photos"
    photos.mkdir()
    _make_image(photos / "a.png")
    _make_image(photos / "b.jpg")

    result = runner.invoke(app, ["render", str(photos), "--jobs", "1", "--settings", "signature"])

    assert result.exit_code == 0, result.output
    assert "success=2" in result.output
    assert (photos / "output" / "watermarked_a.jpg").is_file()
    assert (photos / "output" / "watermarked_b.jpg").is_file()


def test_render_rejects_unknown_format(tmp_path: Path) -> None:
    source = _make_image(tmp_path / "a.png")
    result = runner.invoke(app, ["render", str(source), "--format", "gif"])
    assert result.exit_code == 1


def test_render_reports_missing_settings(tmp_path: Path) -> None:
    source = _make_image(tmp_path / "a.png")
    result = runner.invoke(app, ["render", str(source), "--settings", "nowhere"])
    assert result.exit_code == 1


def test_inspect_prints_layout_json(tmp_path: Path) -> None:
    source = _make_image(tmp_path / "a.png", size=(2000, 1000))
    settings_path = tmp_path / "mark.yaml"
    settings_path.write_text(
        "main:\n  text: Hello\n  anchor: top-left\n  offset_x: 10\n  offset_y: 10\n"
        "sub:\n  enabled: true\n  text: World\n",
        encoding="utf-8",
    )

    result = runner.invoke(app, ["inspect", str(source), "--settings", str(settings_path)])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["output_size"] == [2000, 1000]
    assert payload["scale_factor"] == 2.0
    assert payload["enhance"] is None
    main, sub = payload["layers"]
    assert main["box"]["x"] == 20.0 and main["box"]["y"] == 20.0
    assert sub["linked"] is True
    assert sub["box"]["x"] == main["box"]["x"]


def test_init_settings_writes_preset(tmp_path: Path) -> None:
    target = tmp_path / "brand.yaml"
    result = runner.invoke(app, ["init-settings", str(target), "--preset", "signature"])
    assert result.exit_code == 0, result.output
    assert load_settings(target) == load_settings("signature")

    again = runner.invoke(app, ["init-settings", str(target)])
    assert again.exit_code == 1


def test_init_config_creates_file(_isolated_config: Path) -> None:
    result = runner.invoke(app, ["init-config"])
    assert result.exit_code == 0
    assert _isolated_config.is_file()
