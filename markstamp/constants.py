STANDARD_EXTENSIONS = {".jpg", ".jpeg", ".png", ".tif", ".tiff", ".webp", ".bmp"}
HEIF_EXTENSIONS = {".heic", ".heif", ".hif"}
SUPPORTED_EXTENSIONS = STANDARD_EXTENSIONS | HEIF_EXTENSIONS

# Every size-like layer setting is authored against an image whose long edge is this many pixels.
REFERENCE_LONG_EDGE = 1000.0

DEFAULT_ENHANCE_INTENSITY = 50
DEFAULT_JPEG_QUALITY = 90

LINE_HEIGHT_REFERENCE_GLYPH = "M"
LINE_HEIGHT_FACTOR = 1.2

BG_BLUR_MAX = 50.0
BG_FADE_MAX_FRACTION = 0.4
BG_FADE_MIN_FRACTION = 0.01
BG_SHADOW_BLUR_THRESHOLD = 5.0
SHADOW_COLOR = (0, 0, 0, 128)

TEXT_SHADOW_BLUR = 4.0
TEXT_SHADOW_OFFSET = 2.0

DEFAULT_NAME_TEMPLATE = "watermarked_{stem}.{ext}"
