from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from PIL import Image

from markstamp.constants import DEFAULT_JPEG_QUALITY, DEFAULT_NAME_TEMPLATE
from markstamp.decoders.image_decoder import decode_image
from markstamp.naming import build_output_name, dedupe_output_name
from markstamp.render.compositor import compose
from markstamp.render.dimensions import InvalidDimension
from markstamp.settings_loader import settings_for_source

_log = logging.getLogger(__name__)


@dataclass(slots=True)
class ExportResult:
    source: Path
    status: str          # ok | skipped | failed
    output: Path | None = None
    elapsed: float = 0.0
    error: str | None = None


def resolve_output_format(fmt: str) -> tuple[str, str]:
    f = fmt.lower()
    if f in {"jpeg", "jpg"}:
        return "jpg", "JPEG"
    if f == "png":
        return "png", "PNG"
    raise ValueError(f"output format must be jpeg/jpg or png, got: {fmt!r}")


def save_image(image: Image.Image, path: Path, pil_format: str, quality: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if pil_format == "JPEG":
        image.convert("RGB").save(
            path,
            format="JPEG",
            quality=max(1, min(100, quality)),
            optimize=True,
            progressive=True,
        )
    else:
        image.save(path, format="PNG", optimize=True)


def _export_one(
    source: Path,
    target: Path,
    *,
    raw_settings: dict[str, Any],
    pil_format: str,
    quality: int,
    skip_existing: bool,
) -> ExportResult:
    t0 = time.perf_counter()
    if skip_existing and target.exists():
        return ExportResult(source=source, status="skipped", output=target, error="exists")
    try:
        settings = settings_for_source(raw_settings, source)
        image = decode_image(source)
        rendered = compose(image, settings, image.width, image.height)
        save_image(rendered, target, pil_format=pil_format, quality=quality)
    except InvalidDimension as exc:
        return ExportResult(source=source, status="skipped", error=str(exc), elapsed=time.perf_counter() - t0)
    except Exception as exc:
        return ExportResult(source=source, status="failed", error=str(exc), elapsed=time.perf_counter() - t0)
    return ExportResult(source=source, status="ok", output=target, elapsed=time.perf_counter() - t0)


def _log_result(result: ExportResult) -> None:
    if result.status == "ok":
        _log.info("OK   %s -> %s  (%.2fs)", result.source.name, result.output.name if result.output else "-", result.elapsed)
    elif result.status == "skipped":
        _log.warning("SKIP %s (%s)", result.source.name, result.error)
    else:
        _log.error("FAIL %s  %s", result.source.name, result.error)


def export_batch(
    sources: list[Path],
    *,
    out_dir: Path,
    raw_settings: dict[str, Any],
    settings_name: str | None = None,
    output_format: str = "jpeg",
    quality: int = DEFAULT_JPEG_QUALITY,
    name_template: str = DEFAULT_NAME_TEMPLATE,
    skip_existing: bool = True,
    jobs: int = 1,
    on_result: Callable[[ExportResult], None] | None = None,
) -> list[ExportResult]:
    """Watermark ``sources`` into ``out_dir``; results come back in input order.

    Images are independent, so they render on up to ``jobs`` worker threads.
    """
    out_ext, pil_format = resolve_output_format(output_format)
    out_dir.mkdir(parents=True, exist_ok=True)

    counter: dict[str, int] = {}
    targets = [
        out_dir / dedupe_output_name(build_output_name(name_template, source, out_ext, settings_name), counter)
        for source in sources
    ]

    def run(pair: tuple[Path, Path]) -> ExportResult:
        source, target = pair
        result = _export_one(
            source,
            target,
            raw_settings=raw_settings,
            pil_format=pil_format,
            quality=quality,
            skip_existing=skip_existing,
        )
        _log_result(result)
        if on_result is not None:
            on_result(result)
        return result

    workers = max(1, min(int(jobs or 1), len(sources) or 1))
    if workers == 1:
        return [run(pair) for pair in zip(sources, targets)]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(run, zip(sources, targets)))
