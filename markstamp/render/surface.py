"""Rasterization capability used by the compositor.

The compositor only talks to :class:`RenderSurface`, so layout and draw order
can be exercised with a stub that records calls instead of drawing pixels.
"""
from __future__ import annotations

import io
import math
from abc import ABC, abstractmethod

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from markstamp.models import EnhanceParams, GradientStop, Shadow
from markstamp.render.enhance import apply_enhancement
from markstamp.render.typography import load_font

Rect = tuple[float, float, float, float]


class RenderSurface(ABC):
    def __init__(self, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @abstractmethod
    def draw_base(self, image: Image.Image, enhance: EnhanceParams | None) -> None:
        """Draw ``image`` stretched to the surface, filtered by ``enhance``."""

    @abstractmethod
    def measure_text(self, text: str, family: str, size: float) -> float:
        """Return the advance width of ``text`` in pixels."""

    @abstractmethod
    def fill_horizontal_gradient(
        self,
        rect: Rect,
        stops: tuple[GradientStop, ...],
        shadow: Shadow | None = None,
    ) -> None:
        """Fill ``rect`` (x, y, width, height) with a left-to-right gradient."""

    @abstractmethod
    def draw_text(
        self,
        text: str,
        xy: tuple[float, float],
        family: str,
        size: float,
        fill: tuple[int, int, int, int],
        shadow: Shadow | None = None,
    ) -> None:
        """Draw ``text`` with the top of its glyph box at ``xy``."""

    @abstractmethod
    def to_image(self) -> Image.Image:
        ...

    def encode(self, format: str = "JPEG", quality: int = 90) -> bytes:
        image = self.to_image()
        buffer = io.BytesIO()
        if format.upper() in {"JPEG", "JPG"}:
            image.convert("RGB").save(buffer, format="JPEG", quality=max(1, min(100, int(quality))))
        else:
            image.save(buffer, format=format.upper())
        return buffer.getvalue()


def interpolate_stops(stops: tuple[GradientStop, ...], t: float) -> tuple[int, int, int, int]:
    if not stops:
        return (0, 0, 0, 0)
    if t <= stops[0].offset:
        return stops[0].color
    for left, right in zip(stops, stops[1:]):
        if t <= right.offset:
            span = right.offset - left.offset
            ratio = 0.0 if span <= 0 else (t - left.offset) / span
            return tuple(
                int(round(a + (b - a) * ratio)) for a, b in zip(left.color, right.color)
            )  # type: ignore[return-value]
    return stops[-1].color


def _shadow_layer(alpha: Image.Image, shadow: Shadow, offset: tuple[int, int]) -> Image.Image:
    shifted = Image.new("L", alpha.size, 0)
    shifted.paste(alpha, offset)
    strength = shadow.color[3] / 255.0
    shifted = shifted.point(lambda value: int(round(value * strength)))
    if shadow.blur > 0:
        # canvas shadowBlur is twice the gaussian standard deviation
        shifted = shifted.filter(ImageFilter.GaussianBlur(radius=shadow.blur / 2.0))
    layer = Image.new("RGBA", alpha.size, (*shadow.color[:3], 0))
    layer.putalpha(shifted)
    return layer


class PillowSurface(RenderSurface):
    def __init__(self, width: int, height: int) -> None:
        super().__init__(width, height)
        self._canvas = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 255))

    def draw_base(self, image: Image.Image, enhance: EnhanceParams | None) -> None:
        base = image.convert("RGBA")
        if base.size != self.size:
            base = base.resize(self.size, resample=Image.Resampling.LANCZOS)
        base = apply_enhancement(base, enhance)
        self._canvas.alpha_composite(base.convert("RGBA"))

    def measure_text(self, text: str, family: str, size: float) -> float:
        font = load_font(family, size)
        return float(font.getlength(text))

    def fill_horizontal_gradient(
        self,
        rect: Rect,
        stops: tuple[GradientStop, ...],
        shadow: Shadow | None = None,
    ) -> None:
        x, y, width, height = rect
        if width <= 0 or height <= 0:
            return
        left = int(math.floor(x))
        top = int(math.floor(y))
        right = int(math.ceil(x + width))
        bottom = int(math.ceil(y + height))
        strip_width = max(1, right - left)
        strip_height = max(1, bottom - top)

        pixels: list[tuple[int, int, int, int]] = []
        for column in range(strip_width):
            t = ((left + column + 0.5) - x) / width
            pixels.append(interpolate_stops(stops, max(0.0, min(1.0, t))))
        strip = Image.new("RGBA", (strip_width, 1))
        strip.putdata(pixels)
        strip = strip.resize((strip_width, strip_height), resample=Image.Resampling.NEAREST)

        overlay = Image.new("RGBA", self.size, (0, 0, 0, 0))
        overlay.paste(strip, (left, top))
        if shadow is not None:
            self._canvas.alpha_composite(
                _shadow_layer(overlay.getchannel("A"), shadow, (int(round(shadow.offset_x)), int(round(shadow.offset_y))))
            )
        self._canvas.alpha_composite(overlay)

    def draw_text(
        self,
        text: str,
        xy: tuple[float, float],
        family: str,
        size: float,
        fill: tuple[int, int, int, int],
        shadow: Shadow | None = None,
    ) -> None:
        font = load_font(family, size)
        layer = Image.new("RGBA", self.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        if isinstance(font, ImageFont.FreeTypeFont):
            draw.text(xy, text, font=font, fill=fill, anchor="la")
        else:
            draw.text(xy, text, font=font, fill=fill)
        if shadow is not None:
            self._canvas.alpha_composite(
                _shadow_layer(layer.getchannel("A"), shadow, (int(round(shadow.offset_x)), int(round(shadow.offset_y))))
            )
        self._canvas.alpha_composite(layer)

    def to_image(self) -> Image.Image:
        return self._canvas.convert("RGB")
