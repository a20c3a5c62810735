"""Render configuration: one immutable value resolved at startup and shared read-only."""

import os
from dataclasses import dataclass

from PIL import ImageColor

from qrbadge.encoder import ECC_NAMES
from qrbadge.fonts import DEFAULT_FONT_FAMILY
from qrbadge.logging import get_logger
from qrbadge.occlusion import check_occlusion

log = get_logger("config")

DEFAULT_BASE_URL = "https://qr.kernseedtech.com"


@dataclass(frozen=True)
class RenderConfig:
    """Renderer settings.

    Validated on construction; an invalid combination never reaches a render.
    ``badge_ratio`` is the badge diameter as a fraction of the grid span.
    """

    pixel_size: int = 800
    module_margin: int = 4
    ec_level: str = "H"
    dark_color: str = "#000000"
    light_color: str = "#FFFFFF"
    badge_background_color: str = "#FFFFFF"
    badge_text_color: str = "#0A4C25"
    font_family: str = DEFAULT_FONT_FAMILY
    font_weight: int = 600
    corner_roundness: float = 0.25
    badge_ratio: float = 0.28
    version: int | None = None

    def __post_init__(self):
        if self.pixel_size <= 0:
            raise ValueError(f"pixel_size must be positive, got {self.pixel_size}")
        if self.module_margin < 0:
            raise ValueError(f"module_margin must be >= 0, got {self.module_margin}")
        if self.ec_level.upper() not in ECC_NAMES:
            raise ValueError(f"ec_level must be one of L/M/Q/H, got {self.ec_level!r}")
        if self.ec_level != self.ec_level.upper():
            object.__setattr__(self, "ec_level", self.ec_level.upper())
        if not 0.0 <= self.corner_roundness <= 1.0:
            raise ValueError(f"corner_roundness must be within [0, 1], got {self.corner_roundness}")
        if not 0.0 < self.badge_ratio < 1.0:
            raise ValueError(f"badge_ratio must be within (0, 1), got {self.badge_ratio}")
        if self.version is not None and not 1 <= self.version <= 40:
            raise ValueError(f"version must be within 1-40, got {self.version}")
        for name in ("dark_color", "light_color", "badge_background_color", "badge_text_color"):
            value = getattr(self, name)
            try:
                ImageColor.getrgb(value)
            except ValueError as e:
                raise ValueError(f"{name}: unrecognised colour {value!r}") from e
        if '"' in self.font_family:
            raise ValueError("font_family must not contain double quotes")
        if type(self.font_weight) is not int or not 1 <= self.font_weight <= 1000:
            raise ValueError(f"font_weight must be an integer within 1-1000, got {self.font_weight!r}")
        check_occlusion(self.badge_ratio, self.module_margin, self.ec_level, self.version)

    @classmethod
    def from_env(cls, environ=None) -> "RenderConfig":
        """Build a config from ``QR_*`` environment variables, defaults elsewhere."""
        defaults = cls.__dataclass_fields__
        kwargs = env_settings(environ)
        config = cls(**kwargs)
        overridden = sorted(k for k in kwargs if kwargs[k] != defaults[k].default)
        log.debug("config loaded from environment (overrides: %s)", ", ".join(overridden) or "none")
        return config


def env_settings(environ=None) -> dict:
    """Field values set through ``QR_*`` variables, cast but not yet validated."""
    env = os.environ if environ is None else environ
    settings = {}
    for var, field_name, cast in _ENV_FIELDS:
        raw = env.get(var)
        if raw is None or raw == "":
            continue
        try:
            settings[field_name] = cast(raw)
        except ValueError as e:
            raise ValueError(f"{var}={raw!r}: {e}") from e
    return settings


def base_url_from_env(environ=None) -> str:
    env = os.environ if environ is None else environ
    return (env.get("QR_BASE_URL") or env.get("BASE_PUBLIC_URL") or DEFAULT_BASE_URL).rstrip("/")


_ENV_FIELDS = [
    ("QR_SIZE", "pixel_size", int),
    ("QR_MARGIN", "module_margin", int),
    ("QR_EC_LEVEL", "ec_level", str),
    ("QR_DARK_COLOR", "dark_color", str),
    ("QR_LIGHT_COLOR", "light_color", str),
    ("QR_CENTER_BG_COLOR", "badge_background_color", str),
    ("QR_CENTER_TEXT_COLOR", "badge_text_color", str),
    ("QR_FONT_STACK", "font_family", str),
    ("QR_FONT_WEIGHT", "font_weight", int),
    ("QR_ROUNDED", "corner_roundness", float),
    ("QR_BADGE_RATIO", "badge_ratio", float),
    ("QR_VERSION", "version", int),
]
