from __future__ import annotations

import re
from pathlib import Path

INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]')


def sanitize_token(value: str | None, fallback: str = "NA") -> str:
    text = (value or "").strip()
    if not text:
        text = fallback
    text = INVALID_FILENAME_CHARS.sub("_", text)
    text = re.sub(r"\s+", "_", text)
    text = text.strip(" ._")
    return text or fallback


def sanitize_filename(value: str, fallback: str = "output") -> str:
    text = INVALID_FILENAME_CHARS.sub("_", value).strip()
    text = text.strip(" .")
    return text or fallback


def build_output_name(
    name_template: str,
    source: Path,
    extension: str,
    settings_name: str | None = None,
) -> str:
    ext = extension.lower().lstrip(".")
    values = {
        "stem": sanitize_token(source.stem, fallback="image"),
        "name": sanitize_token(source.name, fallback="image"),
        "settings": sanitize_token(Path(settings_name).stem if settings_name else None, fallback="default"),
        "ext": ext,
    }
    try:
        rendered = name_template.format(**values)
    except KeyError as exc:
        missing = str(exc).strip("'")
        raise ValueError(f"name template contains unknown key: {missing}") from exc

    rendered = sanitize_filename(rendered, fallback=f"watermarked_{values['stem']}.{ext}")
    if not Path(rendered).suffix:
        rendered = f"{rendered}.{ext}"
    return rendered


def dedupe_output_name(file_name: str, counter: dict[str, int]) -> str:
    """Suffix repeated names within one batch with ``_2``, ``_3``..."""
    key = file_name.lower()
    count = counter.get(key, 0)
    counter[key] = count + 1
    if count == 0:
        return file_name
    path = Path(file_name)
    return f"{path.stem}_{count + 1}{path.suffix}"
