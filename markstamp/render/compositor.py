"""Single-image watermark pipeline.

resolve size -> draw filtered base -> main layer -> sub layer -> encode.

The sub layer may be positioned against the main layer's resolved box, so the
main layer is always planned and drawn first and its box is passed on
explicitly. Nothing here keeps state between renders; concurrent renders of
different images need no locking.
"""
from __future__ import annotations

import logging
from typing import Callable

from PIL import Image

from markstamp.constants import DEFAULT_JPEG_QUALITY
from markstamp.models import LayerBox, LayerPlan, LayerSettings, WatermarkSettings
from markstamp.render.background import compute_panel, draw_background
from markstamp.render.dimensions import resolve_output_size, scale_factor_for
from markstamp.render.enhance import enhance_params
from markstamp.render.layout import measure_layer, resolve_layer_box
from markstamp.render.surface import PillowSurface, RenderSurface
from markstamp.render.text import draw_layer_text

_log = logging.getLogger(__name__)

SurfaceFactory = Callable[[int, int], RenderSurface]


def plan_layer(
    surface: RenderSurface,
    name: str,
    layer: LayerSettings,
    scale: float,
    main_box: LayerBox | None = None,
) -> LayerPlan | None:
    metrics = measure_layer(surface, layer, scale)
    if metrics is None:
        return None
    box, linked = resolve_layer_box(layer, metrics, surface.size, scale, main_box=main_box)
    return LayerPlan(
        name=name,
        layer=layer,
        metrics=metrics,
        box=box,
        panel=compute_panel(layer, box, scale),
        linked=linked,
    )


def plan_layers(surface: RenderSurface, settings: WatermarkSettings) -> list[LayerPlan]:
    """Resolve both layers without drawing anything."""
    scale = scale_factor_for(surface.width, surface.height)
    plans: list[LayerPlan] = []
    main_plan = plan_layer(surface, "main", settings.main, scale)
    if main_plan is not None:
        plans.append(main_plan)
    sub_plan = plan_layer(surface, "sub", settings.sub, scale, main_box=main_plan.box if main_plan else None)
    if sub_plan is not None:
        plans.append(sub_plan)
    return plans


def _draw_plan(surface: RenderSurface, plan: LayerPlan, scale: float) -> None:
    _log.debug(
        "layer %s at (%.1f, %.1f) size %.1fx%.1f linked=%s",
        plan.name,
        plan.box.x,
        plan.box.y,
        plan.box.width,
        plan.box.height,
        plan.linked,
    )
    draw_background(surface, plan.panel)
    draw_layer_text(surface, plan.layer, plan.box, plan.metrics, scale)


def render_to_surface(
    source: Image.Image,
    settings: WatermarkSettings,
    native_width: int,
    native_height: int,
    *,
    surface_factory: SurfaceFactory = PillowSurface,
) -> RenderSurface:
    width, height = resolve_output_size(native_width, native_height, settings)
    scale = scale_factor_for(width, height)
    _log.debug("output %dx%d scale=%.4f", width, height, scale)

    surface = surface_factory(width, height)
    surface.draw_base(source, enhance_params(settings))

    main_plan = plan_layer(surface, "main", settings.main, scale)
    if main_plan is not None:
        _draw_plan(surface, main_plan, scale)

    sub_plan = plan_layer(surface, "sub", settings.sub, scale, main_box=main_plan.box if main_plan else None)
    if sub_plan is not None:
        _draw_plan(surface, sub_plan, scale)
    return surface


def compose(
    source: Image.Image,
    settings: WatermarkSettings,
    native_width: int | None = None,
    native_height: int | None = None,
    *,
    surface_factory: SurfaceFactory = PillowSurface,
) -> Image.Image:
    """Return the watermarked image without encoding it."""
    if native_width is None or native_height is None:
        native_width, native_height = source.size
    surface = render_to_surface(
        source,
        settings,
        native_width,
        native_height,
        surface_factory=surface_factory,
    )
    return surface.to_image()


def render(
    source: Image.Image,
    settings: WatermarkSettings,
    native_width: int,
    native_height: int,
    *,
    quality: int = DEFAULT_JPEG_QUALITY,
    surface_factory: SurfaceFactory = PillowSurface,
) -> bytes:
    """Render ``source`` with ``settings`` and return JPEG bytes."""
    surface = render_to_surface(
        source,
        settings,
        native_width,
        native_height,
        surface_factory=surface_factory,
    )
    return surface.encode("JPEG", quality=quality)
