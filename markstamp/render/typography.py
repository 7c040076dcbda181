from __future__ import annotations

import logging
import os
import platform
import re
from functools import lru_cache
from pathlib import Path

from PIL import ImageFont

_log = logging.getLogger(__name__)

_FONT_FILE_SUFFIXES = {".ttf", ".ttc", ".otf", ".otc"}
_GENERIC_FAMILIES = {"sans-serif", "serif", "monospace", "cursive", "fantasy", "system-ui"}
_NAME_NOISE = re.compile(r"[\s_\-'\"]+")


class UnresolvedFont(LookupError):
    """No installed font file matches a family identifier."""


def _system_font_candidates() -> list[Path]:
    system = platform.system().lower()
    if "windows" in system:
        return [
            Path(r"C:\Windows\Fonts\msyh.ttc"),
            Path(r"C:\Windows\Fonts\simhei.ttf"),
            Path(r"C:\Windows\Fonts\arial.ttf"),
        ]
    if "darwin" in system:
        return [
            Path("/System/Library/Fonts/PingFang.ttc"),
            Path("/System/Library/Fonts/Hiragino Sans GB.ttc"),
            Path("/Library/Fonts/Arial Unicode.ttf"),
        ]
    return [
        Path("/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc"),
        Path("/usr/share/fonts/truetype/noto/NotoSansCJK-Regular.ttc"),
        Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
    ]


def _system_font_directories() -> list[Path]:
    system = platform.system().lower()
    roots: list[Path] = []
    if "windows" in system:
        windows_dir = Path(os.environ.get("WINDIR", r"C:\Windows"))
        roots.append(windows_dir / "Fonts")
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            roots.append(Path(local_app_data) / "Microsoft" / "Windows" / "Fonts")
    elif "darwin" in system:
        roots.extend(
            [
                Path("/System/Library/Fonts"),
                Path("/Library/Fonts"),
                Path.home() / "Library" / "Fonts",
            ]
        )
    else:
        roots.extend(
            [
                Path("/usr/share/fonts"),
                Path("/usr/local/share/fonts"),
                Path.home() / ".fonts",
                Path.home() / ".local" / "share" / "fonts",
            ]
        )
    return roots


@lru_cache(maxsize=1)
def list_available_font_paths() -> tuple[Path, ...]:
    available: list[Path] = []
    seen: set[str] = set()
    for root in _system_font_directories():
        if not root.is_dir():
            continue
        for dir_path, _dir_names, file_names in os.walk(root, onerror=lambda _err: None):
            for file_name in file_names:
                if Path(file_name).suffix.lower() not in _FONT_FILE_SUFFIXES:
                    continue
                candidate = Path(dir_path) / file_name
                key = str(candidate).lower()
                if key in seen:
                    continue
                seen.add(key)
                available.append(candidate)
    available.sort(key=lambda path: (path.stem.lower(), str(path).lower()))
    return tuple(available)


def _normalize_name(value: str) -> str:
    return _NAME_NOISE.sub("", value).lower()


def split_family_list(family: str) -> list[str]:
    """Split a CSS-like family list such as ``'Noto Sans SC', sans-serif``."""
    names: list[str] = []
    for item in (family or "").split(","):
        name = item.strip().strip("'\"").strip()
        if name:
            names.append(name)
    return names


def _match_installed(name: str, available: tuple[Path, ...]) -> Path | None:
    wanted = _normalize_name(name)
    if not wanted:
        return None
    prefixed: list[Path] = []
    for path in available:
        stem = _normalize_name(path.stem)
        if stem == wanted:
            return path
        if stem.startswith(wanted):
            prefixed.append(path)
    if prefixed:
        return min(prefixed, key=lambda path: (len(path.stem), path.stem.lower()))
    return None


@lru_cache(maxsize=256)
def resolve_font_path(family: str) -> Path:
    """Map a family identifier (a font file path or a family list) to a font file.

    Generic families resolve to the platform's default sans-serif candidates.
    """
    names = split_family_list(family)
    for name in names:
        candidate = Path(name).expanduser()
        if candidate.suffix.lower() in _FONT_FILE_SUFFIXES and candidate.is_file():
            return candidate
        if name.lower() in _GENERIC_FAMILIES:
            for system_candidate in _system_font_candidates():
                if system_candidate.is_file():
                    return system_candidate
            continue
        matched = _match_installed(name, list_available_font_paths())
        if matched is not None:
            return matched
    raise UnresolvedFont(f"no installed font matches {family!r}")


def _load_default_font(size: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    for candidate in _system_font_candidates():
        if candidate.is_file():
            try:
                return ImageFont.truetype(str(candidate), size=size)
            except OSError:
                continue
    return ImageFont.load_default(size=size)


@lru_cache(maxsize=128)
def load_font(family: str, size: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    size = max(1.0, float(size))
    try:
        path = resolve_font_path(family)
        return ImageFont.truetype(str(path), size=size)
    except (UnresolvedFont, OSError) as exc:
        _log.debug("font fallback for %r: %s", family, exc)
        return _load_default_font(size)
