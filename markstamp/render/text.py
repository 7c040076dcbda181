from __future__ import annotations

import re

from markstamp.constants import SHADOW_COLOR, TEXT_SHADOW_BLUR, TEXT_SHADOW_OFFSET
from markstamp.models import LayerBox, LayerMetrics, LayerSettings, Shadow
from markstamp.render.surface import RenderSurface

_HEX_COLOR = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """Parse ``#rrggbb``; anything else is black."""
    match = _HEX_COLOR.match((value or "").strip())
    if not match:
        return (0, 0, 0)
    return (int(match.group(1), 16), int(match.group(2), 16), int(match.group(3), 16))


def text_fill_rgba(layer: LayerSettings) -> tuple[int, int, int, int]:
    r, g, b = hex_to_rgb(layer.color)
    alpha = int(round(max(0.0, min(1.0, layer.opacity)) * 255))
    return (r, g, b, alpha)


def text_shadow(scale: float) -> Shadow:
    return Shadow(
        color=SHADOW_COLOR,
        blur=TEXT_SHADOW_BLUR * scale,
        offset_x=TEXT_SHADOW_OFFSET * scale,
        offset_y=TEXT_SHADOW_OFFSET * scale,
    )


def draw_layer_text(
    surface: RenderSurface,
    layer: LayerSettings,
    box: LayerBox,
    metrics: LayerMetrics,
    scale: float,
) -> None:
    surface.draw_text(
        layer.text,
        (box.x, box.y),
        layer.font_family,
        metrics.font_size,
        text_fill_rgba(layer),
        shadow=text_shadow(scale),
    )
