from __future__ import annotations

import math

from markstamp.constants import REFERENCE_LONG_EDGE
from markstamp.models import ResizeMode, WatermarkSettings


class InvalidDimension(ValueError):
    """Raised when a resize policy resolves to an empty canvas."""


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def resolve_output_size(native_width: int, native_height: int, settings: WatermarkSettings) -> tuple[int, int]:
    width = int(native_width)
    height = int(native_height)

    if settings.resize_mode == ResizeMode.FIXED_LONG_EDGE and settings.resize_long_edge > 0:
        long_edge = max(width, height)
        if long_edge > 0:
            scale = settings.resize_long_edge / float(long_edge)
            width = _round_half_up(width * scale)
            height = _round_half_up(height * scale)
    elif settings.resize_mode == ResizeMode.MANUAL:
        if settings.resize_width and settings.resize_width > 0:
            width = int(settings.resize_width)
        if settings.resize_height and settings.resize_height > 0:
            height = int(settings.resize_height)

    if width <= 0 or height <= 0:
        raise InvalidDimension(f"resolved output size is empty: {width}x{height}")
    return width, height


def scale_factor_for(width: int, height: int) -> float:
    return max(width, height) / REFERENCE_LONG_EDGE
