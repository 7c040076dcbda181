from __future__ import annotations

import copy
import json
import re
from pathlib import Path
from typing import Any

import yaml

from markstamp.config import deep_merge
from markstamp.constants import BG_BLUR_MAX, DEFAULT_ENHANCE_INTENSITY
from markstamp.models import (
    AbsolutePlacement,
    Anchor,
    LayerSettings,
    LinkAlignment,
    LinkedPlacement,
    ResizeMode,
    WatermarkSettings,
)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")
_KEY_ALIASES = {
    "is_linked_to_main": "linked_to_main",
    "position": "anchor",
}

DEFAULT_MAIN_LAYER: dict[str, Any] = {
    "enabled": True,
    "text": "在此输入水印",
    "font_size": 48,
    "font_family": "'Noto Sans SC', sans-serif",
    "color": "#ffffff",
    "opacity": 0.9,
    "bg_enabled": False,
    "bg_opacity": 0.6,
    "bg_blur": 20,
    "bg_padding": 15,
    "anchor": "bottom-right",
    "offset_x": 20,
    "offset_y": 20,
    "linked_to_main": False,
}

DEFAULT_SUB_LAYER: dict[str, Any] = {
    **DEFAULT_MAIN_LAYER,
    "enabled": False,
    "text": "副标题 / 第二行水印",
    "font_size": 24,
    "offset_y": 80,
    "linked_to_main": True,
    "link_alignment": "left",
    "link_spacing": 10,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "resize_mode": "original",
    "resize_long_edge": 1920,
    "resize_width": 0,
    "resize_height": 0,
    "auto_enhance": False,
    "enhance_intensity": DEFAULT_ENHANCE_INTENSITY,
    "main": DEFAULT_MAIN_LAYER,
    "sub": DEFAULT_SUB_LAYER,
}

BUILTIN_PRESETS: dict[str, dict[str, Any]] = {
    "default": {},
    "signature": {
        "main": {
            "text": "© MarkStamp",
            "font_size": 42,
            "bg_enabled": True,
            "bg_opacity": 0.5,
            "bg_blur": 30,
            "anchor": "bottom-right",
            "offset_x": 40,
            "offset_y": 70,
        },
        "sub": {
            "enabled": True,
            "text": "All rights reserved",
            "font_size": 20,
            "opacity": 0.8,
            "linked_to_main": True,
            "link_alignment": "right",
            "link_spacing": 6,
        },
    },
}


def list_builtin_presets() -> list[str]:
    return sorted(BUILTIN_PRESETS)


def _clamp_int(value: Any, minimum: int, maximum: int, fallback: int) -> int:
    try:
        parsed = int(float(value))
    except (TypeError, ValueError):
        parsed = fallback
    return max(minimum, min(maximum, parsed))


def _clamp_float(value: Any, minimum: float, maximum: float, fallback: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        parsed = fallback
    return max(minimum, min(maximum, parsed))


def _parse_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y", "on"}:
        return True
    if text in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _parse_enum(enum_type, value: Any, default):
    text = str(value or "").strip().lower().replace("_", "-")
    for member in enum_type:
        if member.value == text:
            return member
    return default


def _snake_keys(data: dict[str, Any]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for key, value in data.items():
        snake = _CAMEL_BOUNDARY.sub("_", str(key)).lower()
        snake = _KEY_ALIASES.get(snake, snake)
        if isinstance(value, dict) and snake in {"main", "sub"}:
            value = _snake_keys(value)
        normalized[snake] = value
    return normalized


def _optional_size(value: Any) -> int | None:
    size = _clamp_int(value, 0, 100000, 0)
    return size or None


def _normalize_layer(data: dict[str, Any], defaults: dict[str, Any], allow_link: bool) -> LayerSettings:
    merged = {**defaults, **data}
    absolute = AbsolutePlacement(
        anchor=_parse_enum(Anchor, merged.get("anchor"), Anchor.BOTTOM_RIGHT),
        offset_x=_clamp_float(merged.get("offset_x"), -100000.0, 100000.0, 0.0),
        offset_y=_clamp_float(merged.get("offset_y"), -100000.0, 100000.0, 0.0),
    )
    placement: AbsolutePlacement | LinkedPlacement = absolute
    if allow_link and _parse_bool(merged.get("linked_to_main"), False):
        placement = LinkedPlacement(
            alignment=_parse_enum(LinkAlignment, merged.get("link_alignment"), LinkAlignment.LEFT),
            spacing=_clamp_float(merged.get("link_spacing"), -100000.0, 100000.0, 0.0),
            fallback=absolute,
        )
    text = merged.get("text")
    return LayerSettings(
        enabled=_parse_bool(merged.get("enabled"), True),
        text="" if text is None else str(text),
        font_size=_clamp_float(merged.get("font_size"), 1.0, 10000.0, 48.0),
        font_family=str(merged.get("font_family") or "sans-serif"),
        color=str(merged.get("color") or "#ffffff"),
        opacity=_clamp_float(merged.get("opacity"), 0.0, 1.0, 1.0),
        bg_enabled=_parse_bool(merged.get("bg_enabled"), False),
        bg_opacity=_clamp_float(merged.get("bg_opacity"), 0.0, 1.0, 0.6),
        bg_blur=_clamp_float(merged.get("bg_blur"), 0.0, BG_BLUR_MAX, 0.0),
        bg_padding=_clamp_float(merged.get("bg_padding"), 0.0, 100000.0, 0.0),
        placement=placement,
    )


def normalize_settings_dict(data: dict[str, Any]) -> WatermarkSettings:
    data = _snake_keys(data or {})
    main = data.get("main") if isinstance(data.get("main"), dict) else {}
    sub = data.get("sub") if isinstance(data.get("sub"), dict) else {}
    intensity = data.get("enhance_intensity")
    if intensity is None:
        intensity = DEFAULT_ENHANCE_INTENSITY
    return WatermarkSettings(
        resize_mode=_parse_enum(ResizeMode, data.get("resize_mode"), ResizeMode.ORIGINAL),
        resize_long_edge=_clamp_int(data.get("resize_long_edge"), 0, 100000, 1920),
        resize_width=_optional_size(data.get("resize_width")),
        resize_height=_optional_size(data.get("resize_height")),
        auto_enhance=_parse_bool(data.get("auto_enhance"), False),
        enhance_intensity=_clamp_int(intensity, 0, 100, DEFAULT_ENHANCE_INTENSITY),
        main=_normalize_layer(main, DEFAULT_MAIN_LAYER, allow_link=False),
        sub=_normalize_layer(sub, DEFAULT_SUB_LAYER, allow_link=True),
    )


def _load_file(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"settings file is not a mapping: {path}")
    return data


def load_raw_settings(name_or_path: str | Path) -> dict[str, Any]:
    """Return the un-normalized settings mapping, ``overrides`` included."""
    path = Path(name_or_path)
    if path.is_file():
        return _snake_keys(_load_file(path))
    key = str(name_or_path)
    if key not in BUILTIN_PRESETS:
        raise FileNotFoundError(f"settings file or preset not found: {name_or_path}")
    return copy.deepcopy(BUILTIN_PRESETS[key])


def load_settings(name_or_path: str | Path) -> WatermarkSettings:
    return normalize_settings_dict(load_raw_settings(name_or_path))


def settings_for_source(raw: dict[str, Any], source: Path) -> WatermarkSettings:
    """Apply the per-image override matching ``source`` (by file name, then stem)."""
    base = {key: value for key, value in raw.items() if key != "overrides"}
    overrides = raw.get("overrides") or {}
    if isinstance(overrides, dict):
        override = overrides.get(source.name)
        if override is None:
            override = overrides.get(source.stem)
        if isinstance(override, dict):
            base = deep_merge(base, _snake_keys(override))
    return normalize_settings_dict(base)


def _layer_to_dict(layer: LayerSettings) -> dict[str, Any]:
    absolute = layer.absolute_placement
    payload: dict[str, Any] = {
        "enabled": layer.enabled,
        "text": layer.text,
        "font_size": layer.font_size,
        "font_family": layer.font_family,
        "color": layer.color,
        "opacity": layer.opacity,
        "bg_enabled": layer.bg_enabled,
        "bg_opacity": layer.bg_opacity,
        "bg_blur": layer.bg_blur,
        "bg_padding": layer.bg_padding,
        "anchor": absolute.anchor.value,
        "offset_x": absolute.offset_x,
        "offset_y": absolute.offset_y,
        "linked_to_main": isinstance(layer.placement, LinkedPlacement),
    }
    if isinstance(layer.placement, LinkedPlacement):
        payload["link_alignment"] = layer.placement.alignment.value
        payload["link_spacing"] = layer.placement.spacing
    return payload


def settings_to_dict(settings: WatermarkSettings) -> dict[str, Any]:
    return {
        "resize_mode": settings.resize_mode.value,
        "resize_long_edge": settings.resize_long_edge,
        "resize_width": settings.resize_width or 0,
        "resize_height": settings.resize_height or 0,
        "auto_enhance": settings.auto_enhance,
        "enhance_intensity": settings.enhance_intensity,
        "main": _layer_to_dict(settings.main),
        "sub": _layer_to_dict(settings.sub),
    }


def write_settings(path: Path, settings: WatermarkSettings, force: bool = False) -> Path:
    if path.exists() and not force:
        raise FileExistsError(f"settings file already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = settings_to_dict(settings)
    if path.suffix.lower() == ".json":
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    else:
        path.write_text(yaml.safe_dump(payload, sort_keys=False, allow_unicode=True), encoding="utf-8")
    return path
