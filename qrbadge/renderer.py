"""Render pipeline: encode -> normalize -> badge -> (optional) raster."""

from dataclasses import dataclass

from qrbadge.badge import BadgeGeometry, build_badge_markup, compute_badge_geometry, inject_badge, normalize_label
from qrbadge.config import RenderConfig
from qrbadge.encoder import encode
from qrbadge.errors import BadgeOcclusionTooLarge
from qrbadge.logging import audit, get_logger, trace
from qrbadge.normalize import normalize, parse_grid_span
from qrbadge.occlusion import compute_occlusion_budget
from qrbadge.raster import to_raster

log = get_logger("renderer")


@dataclass(frozen=True)
class RenderRequest:
    target_url: str
    label: str = ""

    def __post_init__(self):
        if not self.target_url:
            raise ValueError("target_url is required")

    @property
    def badge_text(self) -> str:
        return normalize_label(self.label)


@dataclass(frozen=True)
class RenderResult:
    """Final artifact of one render call."""

    vector: str
    raster: bytes | None
    span: float
    badge: BadgeGeometry | None


@trace
def render_request(request: RenderRequest, config: RenderConfig, raster: bool = False) -> RenderResult:
    """Run the full pipeline for one request.

    Raises one of the ``qrbadge.errors`` types; nothing partial is returned.
    """
    raw = encode(
        request.target_url,
        ec_level=config.ec_level,
        margin=config.module_margin,
        dark_color=config.dark_color,
        light_color=config.light_color,
        version=config.version,
    )
    document = normalize(raw, config.pixel_size, config.corner_roundness)
    span = parse_grid_span(document)

    geometry = None
    if request.badge_text:
        budget = compute_occlusion_budget(span, config.module_margin, config.badge_ratio, config.ec_level)
        if not budget.safe:
            raise BadgeOcclusionTooLarge(budget.fraction, budget.recovery, budget.ecc)
        geometry = compute_badge_geometry(
            span, request.badge_text, config.badge_ratio, config.font_family, config.font_weight
        )
        overlay = build_badge_markup(
            geometry,
            background_color=config.badge_background_color,
            text_color=config.badge_text_color,
        )
        document = inject_badge(document, overlay)

    png = to_raster(document) if raster else None
    audit("render.done", logger=log,
          url=request.target_url[:80], label=request.badge_text, span=span,
          svg_chars=len(document), png_bytes=len(png) if png else 0)
    return RenderResult(vector=document, raster=png, span=span, badge=geometry)


def render(target_url: str, label: str, config: RenderConfig | None = None, raster: bool = False) -> RenderResult:
    """Render *target_url* as a QR code with *label* in a centred badge."""
    return render_request(RenderRequest(target_url, label), config or RenderConfig(), raster=raster)


def slug_url(base_url: str, slug: str) -> str:
    return f"{base_url.rstrip('/')}/{slug}"


@trace
def render_for_slug(
    slug: str,
    product_code: str | None,
    base_url: str,
    config: RenderConfig | None = None,
    raster: bool = False,
) -> RenderResult:
    """Render the code for a slug: encodes ``base_url/slug``, labelled with the product code or the slug."""
    if not slug:
        raise ValueError("slug is required")
    label = (product_code or slug).strip()
    return render(slug_url(base_url, slug), label, config, raster=raster)
