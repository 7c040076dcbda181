from __future__ import annotations

from markstamp.constants import (
    BG_BLUR_MAX,
    BG_FADE_MAX_FRACTION,
    BG_FADE_MIN_FRACTION,
    BG_SHADOW_BLUR_THRESHOLD,
    SHADOW_COLOR,
)
from markstamp.models import BackgroundPanel, GradientStop, LayerBox, LayerSettings, Shadow
from markstamp.render.surface import RenderSurface


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, float(value)))


def fade_size_for(bg_blur: float) -> float:
    blur_factor = _clamp(bg_blur, 0.0, BG_BLUR_MAX) / BG_BLUR_MAX
    return max(BG_FADE_MIN_FRACTION, blur_factor * BG_FADE_MAX_FRACTION)


def gradient_stops(bg_opacity: float, fade_size: float) -> tuple[GradientStop, ...]:
    alpha = int(round(_clamp(bg_opacity, 0.0, 1.0) * 255))
    edge = (0, 0, 0, 0)
    center = (0, 0, 0, alpha)
    return (
        GradientStop(0.0, edge),
        GradientStop(fade_size, center),
        GradientStop(1.0 - fade_size, center),
        GradientStop(1.0, edge),
    )


def compute_panel(layer: LayerSettings, box: LayerBox, scale: float) -> BackgroundPanel | None:
    if not layer.bg_enabled:
        return None
    bg_blur = _clamp(layer.bg_blur, 0.0, BG_BLUR_MAX)
    padding = max(0.0, layer.bg_padding) * scale
    blur_factor = bg_blur / BG_BLUR_MAX
    # at full blur the panel grows by half the text width on each side
    extra_width = box.width * blur_factor * 0.5

    shadow = None
    if bg_blur > BG_SHADOW_BLUR_THRESHOLD:
        shadow = Shadow(color=SHADOW_COLOR, blur=bg_blur * scale * 0.5)

    return BackgroundPanel(
        x=box.x - padding - extra_width,
        y=box.y - padding,
        width=box.width + padding * 2 + extra_width * 2,
        height=box.height + padding * 2,
        stops=gradient_stops(layer.bg_opacity, fade_size_for(bg_blur)),
        shadow=shadow,
    )


def draw_background(surface: RenderSurface, panel: BackgroundPanel | None) -> None:
    if panel is None:
        return
    surface.fill_horizontal_gradient(
        (panel.x, panel.y, panel.width, panel.height),
        panel.stops,
        shadow=panel.shadow,
    )
