"""SVG normalization: caller-controlled pixel size and optional rounded modules.

The viewBox (module grid) is never rewritten; badge placement relies on it.
"""

import re

from qrbadge.encoder import MODULE_CLASS
from qrbadge.errors import MalformedEncoderOutput
from qrbadge.logging import audit, get_logger, trace

log = get_logger("normalize")

_ROOT_RE = re.compile(r"<svg\b[^>]*>", re.IGNORECASE)
_SIZING_ATTR_RE = re.compile(r'\s(?:width|height|shape-rendering)="[^"]*"', re.IGNORECASE)
_VIEWBOX_RE = re.compile(r'\sviewBox="\s*([-\d.]+)[\s,]+([-\d.]+)[\s,]+([\d.]+)[\s,]+([\d.]+)\s*"')
_MODULE_RE = re.compile(rf'<rect class="{MODULE_CLASS}" ')

# Larger radii would merge neighbouring dark modules into blobs
MAX_MODULE_RADIUS = 0.5


def fmt(value: float) -> str:
    """Compact fixed-precision number for SVG attributes."""
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _root(document: str) -> re.Match:
    match = _ROOT_RE.search(document)
    if match is None:
        raise MalformedEncoderOutput("no <svg> root element found")
    return match


def parse_grid_span(document: str) -> float:
    """Side length of the square module grid declared by the root viewBox."""
    header = _root(document).group(0)
    vb = _VIEWBOX_RE.search(header)
    if vb is None:
        raise MalformedEncoderOutput(f"root element has no viewBox: {header[:120]}")
    min_x, min_y, width, height = (float(v) for v in vb.groups())
    if width <= 0 or width != height or min_x != 0 or min_y != 0:
        raise MalformedEncoderOutput(f"viewBox is not a square grid at the origin: {vb.group(0).strip()}")
    return width


def module_radius(corner_roundness: float, span: float) -> float:
    """Corner radius in grid units for a roundness factor, clamped to half a module."""
    return min(corner_roundness * span * 0.5, MAX_MODULE_RADIUS)


@trace
def normalize(raw_document: str, pixel_size: int, corner_roundness: float = 0.0) -> str:
    """Rewrite encoder output into the canonical document.

    Root ``width``/``height``/``shape-rendering`` are replaced by the
    requested pixel size and ``geometricPrecision``. With
    ``corner_roundness > 0`` every module rect gets ``rx``/``ry``.

    Raises:
        MalformedEncoderOutput: root element or viewBox cannot be matched.
    """
    match = _root(raw_document)
    span = parse_grid_span(raw_document)

    header = _SIZING_ATTR_RE.sub("", match.group(0))
    header = re.sub(
        r"^<svg",
        f'<svg width="{pixel_size}" height="{pixel_size}" shape-rendering="geometricPrecision"',
        header,
        flags=re.IGNORECASE,
    )
    body = raw_document[: match.start()] + header + raw_document[match.end():]

    rounded = 0
    if corner_roundness > 0:
        r = fmt(module_radius(corner_roundness, span))
        body, rounded = _MODULE_RE.subn(f'<rect class="{MODULE_CLASS}" rx="{r}" ry="{r}" ', body)

    audit("svg.normalized", logger=log,
          pixel_size=pixel_size, span=fmt(span), rounded_modules=rounded)
    return body
