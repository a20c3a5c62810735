"""Raster adapter: paint the renderer's SVG with Pillow and encode it as PNG.

Covers the subset the pipeline emits: rects (optionally rounded), circles,
text and groups carrying inherited presentation attributes.
"""

import io
import xml.etree.ElementTree as ET

from PIL import Image, ImageDraw

from qrbadge.errors import RasterizationError
from qrbadge.fonts import load_font
from qrbadge.logging import audit, get_logger, trace

log = get_logger("raster")

# Painted at this multiple of the target size, then downscaled
SUPERSAMPLE = 2

_INHERITED = ("fill", "font-family", "font-size", "font-weight", "text-anchor")
_ANCHORS = {"start": "l", "middle": "m", "end": "r"}


def _tag(el: ET.Element) -> str:
    return el.tag.rsplit("}", 1)[-1]


def _length(el: ET.Element, name: str, default: float = 0.0) -> float:
    raw = el.get(name)
    return default if raw is None else float(raw)


def _paint_rect(draw: ImageDraw.ImageDraw, el: ET.Element, fill: str, scale: float):
    x, y = _length(el, "x"), _length(el, "y")
    w, h = _length(el, "width"), _length(el, "height")
    box = [round(x * scale), round(y * scale), round((x + w) * scale) - 1, round((y + h) * scale) - 1]
    rx = _length(el, "rx", _length(el, "ry"))
    if rx <= 0:
        draw.rectangle(box, fill=fill)
    elif rx * 2 >= min(w, h):
        draw.ellipse(box, fill=fill)
    else:
        draw.rounded_rectangle(box, radius=rx * scale, fill=fill)


def _paint_circle(draw: ImageDraw.ImageDraw, el: ET.Element, fill: str, scale: float):
    cx, cy, r = (_length(el, k) * scale for k in ("cx", "cy", "r"))
    draw.ellipse([cx - r, cy - r, cx + r, cy + r], fill=fill)


def _paint_text(draw: ImageDraw.ImageDraw, el: ET.Element, attrs: dict, scale: float):
    text = "".join(el.itertext())
    if not text:
        return
    px = max(1, round(float(attrs.get("font-size", "16")) * scale))
    font = load_font(attrs.get("font-family", "sans-serif"), int(attrs.get("font-weight", "400")), px)
    x, y = _length(el, "x") * scale, _length(el, "y") * scale
    anchor = _ANCHORS.get(attrs.get("text-anchor", "start"), "l")
    draw.text((x, y), text, font=font, fill=attrs.get("fill", "#000000"), anchor=f"{anchor}s")


def _paint(draw: ImageDraw.ImageDraw, el: ET.Element, inherited: dict, scale: float):
    attrs = dict(inherited)
    attrs.update({k: el.get(k) for k in _INHERITED if el.get(k) is not None})
    tag = _tag(el)
    fill = attrs.get("fill", "#000000")

    if tag in ("svg", "g"):
        for child in el:
            _paint(draw, child, attrs, scale)
    elif fill == "none":
        return
    elif tag == "rect":
        _paint_rect(draw, el, fill, scale)
    elif tag == "circle":
        _paint_circle(draw, el, fill, scale)
    elif tag == "text":
        _paint_text(draw, el, attrs, scale)
    else:
        log.debug("skipping unsupported element <%s>", tag)


@trace
def to_raster(document: str, supersample: int = SUPERSAMPLE) -> bytes:
    """Rasterize an SVG document to PNG bytes at its declared pixel size.

    Raises:
        RasterizationError: markup is unparsable or uses values Pillow rejects.
    """
    try:
        root = ET.fromstring(document.encode("utf-8"))
    except ET.ParseError as e:
        raise RasterizationError(f"unparsable SVG: {e}") from e
    if _tag(root) != "svg":
        raise RasterizationError(f"root element is <{_tag(root)}>, expected <svg>")

    try:
        span = float(root.get("viewBox", "").split()[2])
        size = int(float(root.get("width", span)))
    except (IndexError, ValueError) as e:
        raise RasterizationError(f"cannot read viewBox/width from root: {e}") from e
    if span <= 0 or size <= 0:
        raise RasterizationError(f"degenerate canvas: span={span} width={size}")

    canvas = size * supersample
    img = Image.new("RGB", (canvas, canvas), "#FFFFFF")
    try:
        _paint(ImageDraw.Draw(img), root, {}, canvas / span)
    except (ValueError, OSError) as e:
        raise RasterizationError(f"painting failed: {e}") from e

    if supersample > 1:
        img = img.resize((size, size), Image.LANCZOS)

    buf = io.BytesIO()
    img.save(buf, format="PNG", compress_level=9)
    png = buf.getvalue()
    audit("raster.done", logger=log, image_px=f"{size}x{size}", png_bytes=len(png))
    return png
