import re

import pytest

from qrbadge.encoder import MODULE_CLASS, encode, get_module_matrix, symbol_size
from qrbadge.errors import EncodingCapacityExceeded

_RECT_RE = re.compile(rf'<rect class="{MODULE_CLASS}" x="(\d+)" y="(\d+)" width="1" height="1"/>')


def test_viewbox_is_module_count_plus_margins(url):
    svg = encode(url, ec_level="H", margin=4)
    assert 'viewBox="0 0 41 41"' in svg
    svg = encode(url, ec_level="H", margin=2)
    assert 'viewBox="0 0 37 37"' in svg


def test_one_rect_per_dark_module(url):
    svg = encode(url, ec_level="H", margin=4)
    matrix = get_module_matrix(url, "H", 4)
    cells = {(int(x), int(y)) for x, y in _RECT_RE.findall(svg)}
    expected = {(x, y) for y, row in enumerate(matrix) for x, dark in enumerate(row) if dark}
    assert cells == expected


def test_modules_stay_inside_quiet_zone(url):
    svg = encode(url, margin=4)
    for x, y in _RECT_RE.findall(svg):
        assert 4 <= int(x) < 37
        assert 4 <= int(y) < 37


def test_colours_are_applied(url):
    svg = encode(url, dark_color="#112233", light_color="#FAFAFA")
    assert 'fill="#112233"' in svg
    assert 'fill="#FAFAFA"' in svg


def test_lowercase_ec_level_accepted(url):
    assert encode(url, ec_level="h") == encode(url, ec_level="H")


def test_symbol_size():
    assert symbol_size(1) == 21
    assert symbol_size(4) == 33
    assert symbol_size(40) == 177


def test_payload_over_capacity_raises():
    with pytest.raises(EncodingCapacityExceeded) as exc:
        encode("https://example.com/" + "a" * 3000, ec_level="H")
    assert exc.value.ec_level == "H"
    assert exc.value.payload_bytes == 3020


def test_pinned_version_capacity(url):
    with pytest.raises(EncodingCapacityExceeded) as exc:
        encode(url, ec_level="H", version=1)
    assert exc.value.version == 1
