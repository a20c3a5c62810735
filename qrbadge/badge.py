"""Circular badge: geometry in module units, label fitting, SVG fragment and injection.

All lengths are grid units of the document viewBox, so the badge scales with
the code regardless of the final pixel size. Label widths are measured with
the face the raster adapter paints with (see ``qrbadge.fonts``).
"""

import math
import re
from dataclasses import dataclass
from html import escape

from qrbadge.errors import InvalidLabel, LabelTooLong, MalformedEncoderOutput
from qrbadge.fonts import DEFAULT_FONT_FAMILY, text_width_em
from qrbadge.logging import audit, get_logger, trace
from qrbadge.normalize import fmt

log = get_logger("badge")

# Font sizes as fractions of the grid span
NOMINAL_FONT_RATIO = 3.4 / 41
MIN_FONT_RATIO = 1.8 / 45

CAP_HEIGHT_EM = 0.7
# Share of the chord the text may occupy
TEXT_PADDING = 0.9
# Glyphs averaged for the advertised label capacity
CAPACITY_SAMPLE = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

_CLOSING_RE = re.compile(r"</svg>\s*$", re.IGNORECASE)
# Characters XML 1.0 cannot carry, plus the remaining C0 controls
_FORBIDDEN_RE = re.compile(r"[\x00-\x1f\x7f\ud800-\udfff\ufffe\uffff]")


@dataclass(frozen=True)
class BadgeGeometry:
    """Badge placement for one grid span."""

    span: float
    cx: float
    cy: float
    radius: float
    font_size: float
    baseline_y: float
    text: str
    font_family: str = DEFAULT_FONT_FAMILY
    font_weight: int = 600

    @property
    def diameter(self) -> float:
        return self.radius * 2

    @property
    def text_width(self) -> float:
        return text_width_em(self.text, self.font_family, self.font_weight) * self.font_size


def usable_text_width(span: float, badge_ratio: float) -> float:
    """Chord of the badge at the top/bottom of a nominal cap-height line."""
    radius = badge_ratio * span / 2
    half_cap = NOMINAL_FONT_RATIO * span * CAP_HEIGHT_EM / 2
    return 2 * math.sqrt(max(radius ** 2 - half_cap ** 2, 0.0)) * TEXT_PADDING


def max_label_length(badge_ratio: float, font_family: str = DEFAULT_FONT_FAMILY, font_weight: int = 600) -> int:
    """Typical number of characters that fit at the minimum font size.

    Based on the average width of digits and capitals in the resolved face;
    labels of unusually wide glyphs hold fewer. Every length involved scales
    with the span, so the result does not depend on the grid.
    """
    average_em = text_width_em(CAPACITY_SAMPLE, font_family, font_weight) / len(CAPACITY_SAMPLE)
    return int(usable_text_width(1.0, badge_ratio) / (MIN_FONT_RATIO * average_em))


def normalize_label(label: str | None) -> str:
    return (label or "").strip().upper()


def check_label(text: str) -> str:
    """Reject characters that cannot appear in an SVG text node.

    Raises:
        InvalidLabel: *text* holds a control character or a non-character.
    """
    match = _FORBIDDEN_RE.search(text)
    if match is not None:
        raise InvalidLabel(text, match.group())
    return text


def fit_font_size(
    text: str,
    span: float,
    badge_ratio: float,
    font_family: str = DEFAULT_FONT_FAMILY,
    font_weight: int = 600,
) -> float:
    """Nominal font size, shrunk until the measured *text* fits the badge chord.

    Raises:
        LabelTooLong: text does not fit even at the minimum font size.
    """
    nominal = NOMINAL_FONT_RATIO * span
    if not text:
        return nominal
    width_em = text_width_em(text, font_family, font_weight)
    if width_em <= 0:
        return nominal
    size = min(nominal, usable_text_width(span, badge_ratio) / width_em)
    if size < MIN_FONT_RATIO * span:
        raise LabelTooLong(text, max_label_length(badge_ratio, font_family, font_weight))
    return size


@trace
def compute_badge_geometry(
    span: float,
    label: str,
    badge_ratio: float,
    font_family: str = DEFAULT_FONT_FAMILY,
    font_weight: int = 600,
) -> BadgeGeometry:
    """Place the badge at the grid centre and size the label to fit inside it."""
    text = check_label(normalize_label(label))
    font_size = fit_font_size(text, span, badge_ratio, font_family, font_weight)
    centre = span / 2
    return BadgeGeometry(
        span=span,
        cx=centre,
        cy=centre,
        radius=badge_ratio * span / 2,
        font_size=font_size,
        # cap-height centring, not ascender/descender balanced
        baseline_y=centre + font_size * CAP_HEIGHT_EM / 2,
        text=text,
        font_family=font_family,
        font_weight=font_weight,
    )


def build_badge_markup(geometry: BadgeGeometry, background_color: str, text_color: str) -> str:
    """SVG fragment: one filled circle and one centred text element.

    The text uses the face the label was fitted with.
    """
    if not geometry.text:
        return ""
    return (
        '<g id="badge">\n'
        f'<circle cx="{fmt(geometry.cx)}" cy="{fmt(geometry.cy)}" r="{fmt(geometry.radius)}" '
        f'fill="{escape(background_color)}"/>\n'
        f'<text x="{fmt(geometry.cx)}" y="{fmt(geometry.baseline_y)}" '
        f'font-family="{escape(geometry.font_family)}" font-weight="{geometry.font_weight}" '
        f'font-size="{fmt(geometry.font_size)}" fill="{escape(text_color)}" '
        f'text-anchor="middle">{escape(geometry.text)}</text>\n'
        "</g>"
    )


@trace
def inject_badge(document: str, overlay: str) -> str:
    """Splice *overlay* right before the closing root tag so it paints last."""
    match = _CLOSING_RE.search(document)
    if match is None:
        raise MalformedEncoderOutput("document has no closing </svg> tag")
    if not overlay:
        return document
    audit("badge.injected", logger=log, overlay_chars=len(overlay))
    return f"{document[: match.start()]}{overlay}\n</svg>\n"
