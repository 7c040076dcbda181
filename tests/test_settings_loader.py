import json
from pathlib import Path

import pytest

from markstamp.models import Anchor, LinkAlignment, LinkedPlacement, ResizeMode
from markstamp.settings_loader import (
    list_builtin_presets,
    load_raw_settings,
    load_settings,
    normalize_settings_dict,
    settings_for_source,
    write_settings,
)


def test_empty_mapping_uses_default_layers() -> None:
    settings = normalize_settings_dict({})
    assert settings.resize_mode is ResizeMode.ORIGINAL
    assert settings.resize_long_edge == 1920
    assert settings.resize_width is None and settings.resize_height is None
    assert settings.enhance_intensity == 50
    assert settings.main.enabled is True
    assert settings.main.font_size == 48
    assert settings.main.placement.anchor is Anchor.BOTTOM_RIGHT
    assert settings.sub.enabled is False
    assert isinstance(settings.sub.placement, LinkedPlacement)
    assert settings.sub.placement.alignment is LinkAlignment.LEFT
    assert settings.sub.placement.spacing == 10
    assert settings.sub.placement.fallback.offset_y == 80


def test_values_are_clamped() -> None:
    settings = normalize_settings_dict(
        {
            "enhance_intensity": 400,
            "resize_width": -5,
            "main": {"opacity": 3, "bg_opacity": -1, "bg_blur": 80, "bg_padding": -4, "font_size": 0},
        }
    )
    assert settings.enhance_intensity == 100
    assert settings.resize_width is None
    assert settings.main.opacity == 1.0
    assert settings.main.bg_opacity == 0.0
    assert settings.main.bg_blur == 50.0
    assert settings.main.bg_padding == 0.0
    assert settings.main.font_size == 1.0


def test_camel_case_keys_are_accepted() -> None:
    settings = normalize_settings_dict(
        {
            "resizeMode": "fixed-long-edge",
            "resizeLongEdge": 1280,
            "autoEnhance": True,
            "main": {"fontSize": 60, "position": "top-center", "offsetY": 12, "bgEnabled": True},
            "sub": {"enabled": True, "isLinkedToMain": False, "position": "center-left", "offsetX": 8},
        }
    )
    assert settings.resize_mode is ResizeMode.FIXED_LONG_EDGE
    assert settings.resize_long_edge == 1280
    assert settings.auto_enhance is True
    assert settings.main.font_size == 60
    assert settings.main.placement.anchor is Anchor.TOP_CENTER
    assert settings.main.placement.offset_y == 12
    assert settings.main.bg_enabled is True
    assert settings.sub.placement.anchor is Anchor.CENTER_LEFT
    assert settings.sub.placement.offset_x == 8


def test_main_layer_is_never_linked() -> None:
    settings = normalize_settings_dict({"main": {"linked_to_main": True, "anchor": "top-left"}})
    assert not isinstance(settings.main.placement, LinkedPlacement)
    assert settings.main.placement.anchor is Anchor.TOP_LEFT


def test_unknown_enum_values_fall_back() -> None:
    settings = normalize_settings_dict({"resize_mode": "stretch", "sub": {"link_alignment": "justify"}})
    assert settings.resize_mode is ResizeMode.ORIGINAL
    assert settings.sub.placement.alignment is LinkAlignment.LEFT


def test_per_image_override_matches_name_then_stem() -> None:
    raw = {
        "main": {"text": "global"},
        "overrides": {
            "cover.jpg": {"main": {"text": "by name"}},
            "portrait": {"main": {"fontSize": 90}},
        },
    }
    assert settings_for_source(raw, Path("cover.jpg")).main.text == "by name"
    portrait = settings_for_source(raw, Path("/photos/portrait.png"))
    assert portrait.main.text == "global"
    assert portrait.main.font_size == 90
    assert settings_for_source(raw, Path("other.jpg")).main.text == "global"


def test_builtin_presets_and_unknown_name() -> None:
    assert list_builtin_presets() == ["default", "signature"]
    signature = load_settings("signature")
    assert signature.sub.enabled is True
    assert signature.sub.placement.alignment is LinkAlignment.RIGHT
    with pytest.raises(FileNotFoundError):
        load_settings("does-not-exist")


def test_written_settings_load_back(tmp_path: Path) -> None:
    original = load_settings("signature")
    yaml_path = write_settings(tmp_path / "mark.yaml", original)
    json_path = write_settings(tmp_path / "mark.json", original)

    assert load_settings(yaml_path) == original
    assert load_settings(str(json_path)) == original
    with pytest.raises(FileExistsError):
        write_settings(yaml_path, original)


def test_json_file_with_original_field_names(tmp_path: Path) -> None:
    path = tmp_path / "exported.json"
    path.write_text(
        json.dumps({"main": {"text": "©  Studio", "color": "#ff0000"}, "overrides": {"a.jpg": {}}}),
        encoding="utf-8",
    )
    raw = load_raw_settings(path)
    assert "overrides" in raw
    assert settings_for_source(raw, Path("a.jpg")).main.color == "#ff0000"


def test_non_mapping_file_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path)
