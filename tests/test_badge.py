import pytest

from qrbadge.badge import (
    MIN_FONT_RATIO,
    NOMINAL_FONT_RATIO,
    build_badge_markup,
    check_label,
    compute_badge_geometry,
    fit_font_size,
    inject_badge,
    max_label_length,
    usable_text_width,
)
from qrbadge.errors import InvalidLabel, LabelTooLong, MalformedEncoderOutput
from qrbadge.fonts import DEFAULT_FONT_FAMILY, text_width_em


def test_badge_centred_on_grid():
    g = compute_badge_geometry(41, "SD4521", 0.28)
    assert (g.cx, g.cy) == (20.5, 20.5)
    assert g.radius == pytest.approx(5.74)
    assert g.diameter == pytest.approx(11.48)


def test_geometry_follows_span():
    g = compute_badge_geometry(45, "SD4521", 0.28)
    assert g.cx == 22.5
    assert g.radius == pytest.approx(6.3)


def test_label_is_uppercased_and_stripped():
    assert compute_badge_geometry(41, "  abc123 ", 0.28).text == "ABC123"


def test_short_label_uses_nominal_font():
    g = compute_badge_geometry(41, "SD", 0.28)
    assert g.font_size == pytest.approx(3.4)
    assert g.baseline_y == pytest.approx(20.5 + 3.4 * 0.35)


def test_long_label_shrinks_but_fits_circle():
    g = compute_badge_geometry(41, "SD4521AB", 0.28)
    assert MIN_FONT_RATIO * 41 <= g.font_size < NOMINAL_FONT_RATIO * 41
    assert g.text_width <= usable_text_width(41, 0.28) + 1e-9
    assert g.text_width < g.diameter


def test_fit_uses_measured_glyph_widths():
    narrow = compute_badge_geometry(41, "IIIIII", 0.28)
    wide = compute_badge_geometry(41, "MWMW", 0.28)
    assert text_width_em("MWMW", DEFAULT_FONT_FAMILY, 600) > text_width_em("IIII", DEFAULT_FONT_FAMILY, 600)
    assert narrow.font_size == pytest.approx(3.4)
    assert wide.text_width <= usable_text_width(41, 0.28) + 1e-9


def test_wide_glyphs_hit_the_floor_before_capacity():
    n = max_label_length(0.28)
    with pytest.raises(LabelTooLong):
        compute_badge_geometry(41, "W" * n, 0.28)


@pytest.mark.parametrize("label", ["ABCDEFGHIJ", "ABCDEFGHIJKL"])
def test_label_over_capacity_raises(label):
    with pytest.raises(LabelTooLong) as exc:
        compute_badge_geometry(41, label, 0.28)
    assert exc.value.max_length == max_label_length(0.28)
    assert exc.value.max_length < len(label)


def test_max_label_length():
    n = max_label_length(0.28)
    assert 6 <= n < 10
    # capacity is independent of the grid
    fit_font_size("0" * n, 25, 0.28)
    fit_font_size("0" * n, 185, 0.28)


def test_smaller_badge_holds_fewer_characters():
    assert max_label_length(0.2) < max_label_length(0.28)


@pytest.mark.parametrize("label", ["AB\x01C", "\x00", "TAB\tBED", "A\ud800"])
def test_forbidden_characters_rejected(label):
    with pytest.raises(InvalidLabel):
        check_label(label)
    with pytest.raises(InvalidLabel):
        compute_badge_geometry(41, label, 0.28)


def test_printable_label_passes_check():
    assert check_label("SD-45/21 É") == "SD-45/21 É"


def test_markup_has_circle_and_text():
    g = compute_badge_geometry(41, "sd4521", 0.28, "Inter,Arial,sans-serif", 600)
    markup = build_badge_markup(g, "#FFFFFF", "#0A4C25")
    assert markup.count("<circle") == 1
    assert markup.count("<text") == 1
    assert 'cx="20.5" cy="20.5" r="5.74"' in markup
    assert 'fill="#0A4C25"' in markup
    assert 'font-family="Inter,Arial,sans-serif" font-weight="600"' in markup
    assert 'text-anchor="middle">SD4521</text>' in markup


def test_markup_uses_fitted_face():
    g = compute_badge_geometry(41, "SD4521", 0.28, "Arial", 400)
    markup = build_badge_markup(g, "#FFFFFF", "#000000")
    assert 'font-family="Arial" font-weight="400"' in markup


def test_markup_escapes_label():
    g = compute_badge_geometry(41, "a&b<1>", 0.28)
    markup = build_badge_markup(g, "#FFFFFF", "#000000")
    assert ">A&amp;B&lt;1&gt;</text>" in markup


def test_empty_label_has_no_markup():
    g = compute_badge_geometry(41, "", 0.28)
    assert build_badge_markup(g, "#FFFFFF", "#000000") == ""


def test_inject_before_closing_tag():
    doc = '<svg viewBox="0 0 41 41"><rect/></svg>\n'
    out = inject_badge(doc, '<g id="badge"/>')
    assert out == '<svg viewBox="0 0 41 41"><rect/><g id="badge"/>\n</svg>\n'


def test_inject_empty_overlay_keeps_document():
    doc = '<svg viewBox="0 0 41 41"></svg>'
    assert inject_badge(doc, "") == doc


def test_inject_without_closing_tag():
    with pytest.raises(MalformedEncoderOutput):
        inject_badge('<svg viewBox="0 0 41 41">', '<g id="badge"/>')
