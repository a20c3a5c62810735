import dataclasses

import pytest

from qrbadge.config import DEFAULT_BASE_URL, RenderConfig, base_url_from_env
from qrbadge.errors import BadgeOcclusionTooLarge


def test_defaults(config):
    assert config.pixel_size == 800
    assert config.module_margin == 4
    assert config.ec_level == "H"
    assert config.badge_text_color == "#0A4C25"
    assert config.corner_roundness == 0.25
    assert config.badge_ratio == 0.28


def test_frozen(config):
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.pixel_size = 100


def test_ec_level_normalised():
    assert RenderConfig(ec_level="q").ec_level == "Q"


@pytest.mark.parametrize("kwargs", [
    {"pixel_size": 0},
    {"module_margin": -1},
    {"ec_level": "X"},
    {"corner_roundness": -0.1},
    {"corner_roundness": 1.5},
    {"badge_ratio": 0.0},
    {"version": 41},
    {"dark_color": "not-a-colour"},
    {"badge_background_color": "#12"},
    {"font_family": 'Inter" onload="x'},
    {"font_weight": "bold"},
    {"font_weight": 0},
    {"font_weight": 1200},
    {"font_weight": True},
])
def test_invalid_values(kwargs):
    with pytest.raises(ValueError):
        RenderConfig(**kwargs)


def test_occlusion_checked_at_construction():
    with pytest.raises(BadgeOcclusionTooLarge):
        RenderConfig(badge_ratio=0.6)


def test_replace_revalidates(config):
    with pytest.raises(ValueError):
        dataclasses.replace(config, pixel_size=-5)
    assert dataclasses.replace(config, pixel_size=400).pixel_size == 400


def test_from_env():
    config = RenderConfig.from_env({
        "QR_SIZE": "1200",
        "QR_MARGIN": "2",
        "QR_CENTER_BG_COLOR": "#FFEEDD",
        "QR_CENTER_TEXT_COLOR": "#000000",
        "QR_FONT_STACK": "Roboto,sans-serif",
        "QR_ROUNDED": "0",
        "QR_VERSION": "",
    })
    assert config.pixel_size == 1200
    assert config.module_margin == 2
    assert config.badge_background_color == "#FFEEDD"
    assert config.font_family == "Roboto,sans-serif"
    assert config.corner_roundness == 0.0
    assert config.version is None


def test_from_env_empty_is_default():
    assert RenderConfig.from_env({}) == RenderConfig()


def test_from_env_bad_number():
    with pytest.raises(ValueError, match="QR_SIZE"):
        RenderConfig.from_env({"QR_SIZE": "big"})


def test_base_url_from_env():
    assert base_url_from_env({}) == DEFAULT_BASE_URL
    assert base_url_from_env({"QR_BASE_URL": "https://go.example.com/"}) == "https://go.example.com"
    assert base_url_from_env({"BASE_PUBLIC_URL": "https://b.example.com"}) == "https://b.example.com"


def test_font_weight_from_env_is_validated():
    with pytest.raises(ValueError, match="QR_FONT_WEIGHT"):
        RenderConfig.from_env({"QR_FONT_WEIGHT": "bold"})
    with pytest.raises(ValueError, match="font_weight"):
        RenderConfig.from_env({"QR_FONT_WEIGHT": "5000"})
    assert RenderConfig.from_env({"QR_FONT_WEIGHT": "700"}).font_weight == 700
