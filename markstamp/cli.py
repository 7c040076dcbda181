from __future__ import annotations

import json
import logging
from pathlib import Path

import typer

from markstamp.batch import export_batch, resolve_output_format
from markstamp.config import load_config, write_default_config
from markstamp.decoders.image_decoder import decode_image
from markstamp.discover import discover_inputs
from markstamp.render.compositor import plan_layers
from markstamp.render.dimensions import InvalidDimension, resolve_output_size, scale_factor_for
from markstamp.render.enhance import enhance_params
from markstamp.render.surface import PillowSurface
from markstamp.settings_loader import (
    list_builtin_presets,
    load_raw_settings,
    load_settings,
    settings_for_source,
    write_settings,
)

app = typer.Typer(add_completion=False, no_args_is_help=True, help="MarkStamp text watermark CLI.")
LOGGER = logging.getLogger("markstamp")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_raw_settings_or_exit(name_or_path: str) -> dict:
    try:
        return load_raw_settings(name_or_path)
    except (FileNotFoundError, ValueError) as exc:
        typer.secho(f"Settings load failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(1)


@app.command()
def render(
    input_path: Path = typer.Argument(..., exists=True, resolve_path=True),
    settings: str | None = typer.Option(
        None,
        "--settings",
        help=f"Settings file (.yaml/.json) or preset name ({', '.join(list_builtin_presets())}).",
    ),
    out: Path | None = typer.Option(None, "--out", help="Output directory."),
    recursive: bool | None = typer.Option(None, "--recursive/--no-recursive", help="Recursively scan input directories."),
    output_format: str | None = typer.Option(None, "--format", help="Output format: jpeg|png"),
    quality: int | None = typer.Option(None, "--quality", min=1, max=100),
    name_template: str | None = typer.Option(None, "--name", help='Output filename template, e.g. "watermarked_{stem}.{ext}"'),
    jobs: int | None = typer.Option(None, "--jobs", min=1, help="Number of images rendered in parallel."),
    skip_existing: bool | None = typer.Option(None, "--skip-existing/--no-skip-existing"),
    log_level: str | None = typer.Option(None, "--log-level"),
) -> None:
    """Stamp the watermark layers onto every supported image under INPUT_PATH."""
    cfg = load_config()
    _setup_logging(log_level or str(cfg.get("log_level", "info")))

    fmt_str = output_format or str(cfg.get("output_format", "jpeg"))
    try:
        resolve_output_format(fmt_str)
    except ValueError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(1)

    settings_name = settings or str(cfg.get("settings", "default"))
    raw_settings = _load_raw_settings_or_exit(settings_name)
    LOGGER.info("Settings: %s", settings_name)

    out_dir = out
    if out_dir is None:
        out_dir = (input_path / "output") if input_path.is_dir() else (input_path.parent / "output")

    scan_recursive = bool(cfg.get("recursive", False)) if recursive is None else recursive
    files = discover_inputs(input_path, recursive=scan_recursive, exclude_dir=out_dir)
    if not files:
        typer.echo("No supported image files found.")
        raise typer.Exit(0)

    results = export_batch(
        files,
        out_dir=out_dir,
        raw_settings=raw_settings,
        settings_name=settings_name,
        output_format=fmt_str,
        quality=int(quality if quality is not None else cfg.get("quality", 90)),
        name_template=name_template or str(cfg.get("name_template")),
        skip_existing=bool(cfg.get("skip_existing", True)) if skip_existing is None else skip_existing,
        jobs=int(jobs or cfg.get("jobs") or 1),
    )

    ok = sum(1 for r in results if r.status == "ok")
    skip = sum(1 for r in results if r.status == "skipped")
    failed = [r for r in results if r.status == "failed"]
    typer.echo(f"Done. success={ok} skipped={skip} failed={len(failed)}")
    if failed:
        typer.secho("Failures:", fg=typer.colors.RED)
        for r in failed:
            typer.secho(f"  {r.source}: {r.error}", fg=typer.colors.RED)
        raise typer.Exit(1)


@app.command("inspect")
def inspect_file(
    file: Path = typer.Argument(..., exists=True, resolve_path=True, dir_okay=False),
    settings: str = typer.Option("default", "--settings", help="Settings file or preset name."),
) -> None:
    """Print the resolved layout for FILE as JSON without writing an image."""
    raw_settings = _load_raw_settings_or_exit(settings)
    resolved = settings_for_source(raw_settings, file)
    try:
        image = decode_image(file)
    except (RuntimeError, OSError) as exc:
        typer.secho(f"Decode failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(1)
    try:
        width, height = resolve_output_size(image.width, image.height, resolved)
    except InvalidDimension as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(1)

    enhance = enhance_params(resolved)
    surface = PillowSurface(width, height)
    payload = {
        "file": str(file),
        "native_size": [image.width, image.height],
        "output_size": [width, height],
        "scale_factor": scale_factor_for(width, height),
        "enhance": None
        if enhance is None
        else {
            "contrast": enhance.contrast,
            "saturation": enhance.saturation,
            "brightness": enhance.brightness,
        },
        "layers": [plan.to_dict() for plan in plan_layers(surface, resolved)],
    }
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


@app.command("init-config")
def init_config(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config file."),
) -> None:
    path = write_default_config(force=force)
    typer.echo(f"Config initialized: {path}")


@app.command("init-settings")
def init_settings(
    path: Path = typer.Argument(..., help="Where to write the settings file (.yaml or .json)."),
    preset: str = typer.Option("default", "--preset", help="Built-in preset to start from."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file."),
) -> None:
    try:
        written = write_settings(path, load_settings(preset), force=force)
    except (FileNotFoundError, FileExistsError) as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(1)
    typer.echo(f"Settings written: {written}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
