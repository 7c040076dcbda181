from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ResizeMode(str, Enum):
    ORIGINAL = "original"
    FIXED_LONG_EDGE = "fixed-long-edge"
    MANUAL = "manual"


class Anchor(str, Enum):
    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    CENTER_LEFT = "center-left"
    CENTER = "center"
    CENTER_RIGHT = "center-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"

    @property
    def vertical(self) -> str:
        return self.value.split("-")[0]

    @property
    def horizontal(self) -> str:
        parts = self.value.split("-")
        return parts[1] if len(parts) > 1 else "center"


class LinkAlignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True, slots=True)
class AbsolutePlacement:
    anchor: Anchor = Anchor.BOTTOM_RIGHT
    offset_x: float = 20.0
    offset_y: float = 20.0


@dataclass(frozen=True, slots=True)
class LinkedPlacement:
    """Places a layer under the main layer's resolved box.

    ``fallback`` is used whenever there is no main box to link against.
    """

    alignment: LinkAlignment = LinkAlignment.LEFT
    spacing: float = 10.0
    fallback: AbsolutePlacement = field(default_factory=AbsolutePlacement)


Placement = AbsolutePlacement | LinkedPlacement


@dataclass(frozen=True, slots=True)
class LayerSettings:
    enabled: bool = True
    text: str = ""
    font_size: float = 48.0
    font_family: str = "sans-serif"
    color: str = "#ffffff"
    opacity: float = 0.9
    bg_enabled: bool = False
    bg_opacity: float = 0.6
    bg_blur: float = 20.0
    bg_padding: float = 15.0
    placement: Placement = field(default_factory=AbsolutePlacement)

    @property
    def is_visible(self) -> bool:
        return bool(self.enabled and self.text)

    @property
    def absolute_placement(self) -> AbsolutePlacement:
        if isinstance(self.placement, LinkedPlacement):
            return self.placement.fallback
        return self.placement


@dataclass(frozen=True, slots=True)
class WatermarkSettings:
    resize_mode: ResizeMode = ResizeMode.ORIGINAL
    resize_long_edge: int = 1920
    resize_width: int | None = None
    resize_height: int | None = None
    auto_enhance: bool = False
    enhance_intensity: int = 50
    main: LayerSettings = field(default_factory=LayerSettings)
    sub: LayerSettings = field(default_factory=lambda: LayerSettings(enabled=False))


@dataclass(frozen=True, slots=True)
class EnhanceParams:
    contrast: float
    saturation: float
    brightness: float


@dataclass(frozen=True, slots=True)
class Shadow:
    color: tuple[int, int, int, int]
    blur: float
    offset_x: float = 0.0
    offset_y: float = 0.0


@dataclass(frozen=True, slots=True)
class LayerMetrics:
    width: float
    height: float
    font_size: float


@dataclass(frozen=True, slots=True)
class LayerBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True, slots=True)
class GradientStop:
    offset: float
    color: tuple[int, int, int, int]


@dataclass(frozen=True, slots=True)
class BackgroundPanel:
    x: float
    y: float
    width: float
    height: float
    stops: tuple[GradientStop, ...]
    shadow: Shadow | None = None


@dataclass(slots=True)
class LayerPlan:
    name: str
    layer: LayerSettings
    metrics: LayerMetrics
    box: LayerBox
    panel: BackgroundPanel | None = None
    linked: bool = False

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "name": self.name,
            "text": self.layer.text,
            "font_family": self.layer.font_family,
            "font_size": round(self.metrics.font_size, 3),
            "linked": self.linked,
            "box": {
                "x": round(self.box.x, 3),
                "y": round(self.box.y, 3),
                "width": round(self.box.width, 3),
                "height": round(self.box.height, 3),
            },
            "panel": None,
        }
        if self.panel is not None:
            payload["panel"] = {
                "x": round(self.panel.x, 3),
                "y": round(self.panel.y, 3),
                "width": round(self.panel.width, 3),
                "height": round(self.panel.height, 3),
                "stops": [round(stop.offset, 4) for stop in self.panel.stops],
                "shadow_blur": round(self.panel.shadow.blur, 3) if self.panel.shadow else None,
            }
        return payload
