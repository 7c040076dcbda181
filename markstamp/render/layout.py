from __future__ import annotations

from markstamp.constants import LINE_HEIGHT_FACTOR, LINE_HEIGHT_REFERENCE_GLYPH
from markstamp.models import (
    AbsolutePlacement,
    Anchor,
    LayerBox,
    LayerMetrics,
    LayerSettings,
    LinkAlignment,
    LinkedPlacement,
)
from markstamp.render.surface import RenderSurface


def measure_layer(surface: RenderSurface, layer: LayerSettings, scale: float) -> LayerMetrics | None:
    if not layer.is_visible:
        return None
    font_size = layer.font_size * scale
    width = surface.measure_text(layer.text, layer.font_family, font_size)
    # line height is the 'M' advance times 1.2, not ascent plus descent
    height = surface.measure_text(LINE_HEIGHT_REFERENCE_GLYPH, layer.font_family, font_size) * LINE_HEIGHT_FACTOR
    return LayerMetrics(width=width, height=height, font_size=font_size)


def _axis_origin(part: str, dimension: float, size: float) -> float:
    if part in {"left", "top"}:
        return 0.0
    if part == "center":
        return (dimension - size) / 2.0
    return dimension - size


def anchor_origin(
    anchor: Anchor,
    canvas_width: float,
    canvas_height: float,
    width: float,
    height: float,
) -> tuple[float, float]:
    x = _axis_origin(anchor.horizontal, canvas_width, width)
    y = _axis_origin(anchor.vertical, canvas_height, height)
    return (x, y)


def resolve_absolute(
    placement: AbsolutePlacement,
    metrics: LayerMetrics,
    canvas_size: tuple[int, int],
    scale: float,
) -> LayerBox:
    canvas_width, canvas_height = canvas_size
    anchor = placement.anchor
    x, y = anchor_origin(anchor, canvas_width, canvas_height, metrics.width, metrics.height)
    offset_x = placement.offset_x * scale
    offset_y = placement.offset_y * scale
    if anchor.horizontal == "left":
        x += offset_x
    elif anchor.horizontal == "right":
        x -= offset_x
    if anchor.vertical == "top":
        y += offset_y
    elif anchor.vertical == "bottom":
        y -= offset_y
    return LayerBox(x=x, y=y, width=metrics.width, height=metrics.height)


def resolve_linked(
    placement: LinkedPlacement,
    metrics: LayerMetrics,
    main_box: LayerBox,
    scale: float,
) -> LayerBox:
    y = main_box.y + main_box.height + placement.spacing * scale
    if placement.alignment == LinkAlignment.CENTER:
        x = main_box.x + (main_box.width - metrics.width) / 2.0
    elif placement.alignment == LinkAlignment.RIGHT:
        x = main_box.x + main_box.width - metrics.width
    else:
        x = main_box.x
    return LayerBox(x=x, y=y, width=metrics.width, height=metrics.height)


def resolve_layer_box(
    layer: LayerSettings,
    metrics: LayerMetrics,
    canvas_size: tuple[int, int],
    scale: float,
    main_box: LayerBox | None = None,
) -> tuple[LayerBox, bool]:
    """Resolve a layer's draw origin.

    Returns the box and whether it was placed relative to ``main_box``. A
    linked placement without a main box falls back to its own anchor.
    """
    placement = layer.placement
    if isinstance(placement, LinkedPlacement) and main_box is not None:
        return resolve_linked(placement, metrics, main_box, scale), True
    return resolve_absolute(layer.absolute_placement, metrics, canvas_size, scale), False
