import pytest

from markstamp.models import ResizeMode, WatermarkSettings
from markstamp.render.dimensions import InvalidDimension, resolve_output_size, scale_factor_for


def test_original_mode_keeps_native_size() -> None:
    settings = WatermarkSettings(resize_mode=ResizeMode.ORIGINAL, resize_width=10, resize_height=10)
    assert resolve_output_size(4000, 2000, settings) == (4000, 2000)


def test_fixed_long_edge_preserves_aspect_ratio() -> None:
    settings = WatermarkSettings(resize_mode=ResizeMode.FIXED_LONG_EDGE, resize_long_edge=1920)
    assert resolve_output_size(4000, 2000, settings) == (1920, 960)
    assert resolve_output_size(3000, 4000, settings) == (1440, 1920)


def test_fixed_long_edge_rounds_half_up() -> None:
    settings = WatermarkSettings(resize_mode=ResizeMode.FIXED_LONG_EDGE, resize_long_edge=500)
    # 333 * 0.5 = 166.5
    assert resolve_output_size(1000, 333, settings) == (500, 167)


def test_fixed_long_edge_without_target_keeps_native_size() -> None:
    settings = WatermarkSettings(resize_mode=ResizeMode.FIXED_LONG_EDGE, resize_long_edge=0)
    assert resolve_output_size(800, 600, settings) == (800, 600)


def test_manual_mode_uses_both_values_verbatim() -> None:
    settings = WatermarkSettings(resize_mode=ResizeMode.MANUAL, resize_width=300, resize_height=900)
    assert resolve_output_size(4000, 2000, settings) == (300, 900)


def test_manual_mode_falls_back_per_axis() -> None:
    only_width = WatermarkSettings(resize_mode=ResizeMode.MANUAL, resize_width=1200, resize_height=None)
    only_height = WatermarkSettings(resize_mode=ResizeMode.MANUAL, resize_width=0, resize_height=700)
    assert resolve_output_size(4000, 2000, only_width) == (1200, 2000)
    assert resolve_output_size(4000, 2000, only_height) == (4000, 700)


def test_empty_native_size_is_rejected() -> None:
    with pytest.raises(InvalidDimension):
        resolve_output_size(0, 600, WatermarkSettings())
    with pytest.raises(ValueError):
        resolve_output_size(800, 0, WatermarkSettings(resize_mode=ResizeMode.MANUAL, resize_width=100))


def test_scale_factor_uses_long_edge_against_1000px_reference() -> None:
    assert scale_factor_for(1920, 960) == pytest.approx(1.92)
    assert scale_factor_for(300, 400) == pytest.approx(0.4)
    assert scale_factor_for(1000, 1000) == 1.0
