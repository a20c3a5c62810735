import pytest

from qrbadge.config import RenderConfig

# 28 bytes in byte mode -> version 4 at EC level H (33 modules, span 41 with margin 4)
URL = "https://example.com/p/SD4521"


@pytest.fixture
def url():
    return URL


@pytest.fixture
def config():
    return RenderConfig()


@pytest.fixture
def sharp_config():
    return RenderConfig(corner_roundness=0.0)
