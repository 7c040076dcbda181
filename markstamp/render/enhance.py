from __future__ import annotations

from PIL import Image, ImageEnhance

from markstamp.constants import DEFAULT_ENHANCE_INTENSITY
from markstamp.models import EnhanceParams, WatermarkSettings


def enhance_params(settings: WatermarkSettings) -> EnhanceParams | None:
    if not settings.auto_enhance:
        return None
    intensity = settings.enhance_intensity
    if intensity is None:
        intensity = DEFAULT_ENHANCE_INTENSITY
    t = max(0, min(100, int(intensity))) / 100.0
    return EnhanceParams(
        contrast=1.0 + 0.2 * t,
        saturation=1.0 + 0.4 * t,
        brightness=1.0 + 0.1 * t,
    )


def apply_enhancement(image: Image.Image, params: EnhanceParams | None) -> Image.Image:
    # order matters: contrast, saturation, brightness
    if params is None:
        return image
    alpha = None
    if image.mode == "RGBA":
        alpha = image.getchannel("A")
        image = image.convert("RGB")
    elif image.mode != "RGB":
        image = image.convert("RGB")
    image = ImageEnhance.Contrast(image).enhance(params.contrast)
    image = ImageEnhance.Color(image).enhance(params.saturation)
    image = ImageEnhance.Brightness(image).enhance(params.brightness)
    if alpha is not None:
        image.putalpha(alpha)
    return image
