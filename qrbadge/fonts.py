"""Font faces shared by label fitting and the raster adapter.

The badge fit and the rasterizer resolve the same CSS family list to the
same installed face, so the width a label is fitted against is the width
it is painted with.
"""

from functools import lru_cache

from PIL import ImageFont

from qrbadge.errors import RasterizationError
from qrbadge.logging import get_logger

log = get_logger("fonts")

DEFAULT_FONT_FAMILY = "Inter,Arial,sans-serif"
_GENERIC_FAMILIES = {"serif", "sans-serif", "monospace", "cursive", "fantasy", "system-ui"}
_FALLBACK_FONTS = ("DejaVuSans-Bold.ttf", "DejaVuSans.ttf", "LiberationSans-Bold.ttf", "Arial.ttf")

# Measurements are taken at this pixel size and expressed in em
REFERENCE_PX = 256


def _candidates(family: str, weight: int):
    bold = weight >= 600
    for name in (f.strip().strip("'\"") for f in family.split(",")):
        if not name or name.lower() in _GENERIC_FAMILIES:
            continue
        base = name.replace(" ", "")
        if bold:
            yield from (f"{base}-Bold.ttf", f"{base}Bold.ttf")
        yield from (f"{base}.ttf", f"{base}-Regular.ttf", name)
    yield from _FALLBACK_FONTS


@lru_cache(maxsize=64)
def load_font(family: str, weight: int, px: int) -> ImageFont.FreeTypeFont:
    """First installed face from the CSS family list, else a default face.

    Raises:
        RasterizationError: Pillow was built without FreeType, so no face scales.
    """
    for candidate in _candidates(family, weight):
        try:
            return ImageFont.truetype(candidate, px)
        except OSError:
            continue
    log.debug("no TrueType face for %r, using Pillow default", family)
    font = ImageFont.load_default(size=px)
    if not isinstance(font, ImageFont.FreeTypeFont):
        raise RasterizationError("no scalable font available; Pillow needs FreeType support")
    return font


@lru_cache(maxsize=256)
def text_width_em(text: str, family: str, weight: int) -> float:
    """Width of *text* in em when drawn centred on its anchor.

    Takes the larger of the advance width and twice the ink overhang on
    either side of the centre, so glyphs that overshoot their advance
    still count.
    """
    if not text:
        return 0.0
    font = load_font(family, weight, REFERENCE_PX)
    left, _, right, _ = font.getbbox(text, anchor="ms")
    return max(font.getlength(text), 2 * max(-left, right)) / REFERENCE_PX
