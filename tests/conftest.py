from __future__ import annotations

import pytest
from PIL import Image

from markstamp.render.surface import RenderSurface


class RecordingSurface(RenderSurface):
    """Surface stub: every glyph advances ``ADVANCE * size`` and draw calls are recorded."""

    ADVANCE = 0.5

    def __init__(self, width: int, height: int) -> None:
        super().__init__(width, height)
        self.calls: list[tuple] = []

    def draw_base(self, image, enhance) -> None:
        self.calls.append(("base", image.size, enhance))

    def measure_text(self, text: str, family: str, size: float) -> float:
        return len(text) * size * self.ADVANCE

    def fill_horizontal_gradient(self, rect, stops, shadow=None) -> None:
        self.calls.append(("gradient", rect, stops, shadow))

    def draw_text(self, text, xy, family, size, fill, shadow=None) -> None:
        self.calls.append(("text", text, xy, size, fill, shadow))

    def to_image(self) -> Image.Image:
        return Image.new("RGB", self.size)

    def draw_calls(self) -> list[tuple]:
        return [call for call in self.calls if call[0] != "base"]


class RecordingFactory:
    def __init__(self) -> None:
        self.created: list[RecordingSurface] = []

    def __call__(self, width: int, height: int) -> RecordingSurface:
        surface = RecordingSurface(width, height)
        self.created.append(surface)
        return surface

    @property
    def last(self) -> RecordingSurface:
        return self.created[-1]


@pytest.fixture
def recording_factory() -> RecordingFactory:
    return RecordingFactory()
