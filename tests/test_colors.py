import pytest

from palette.colors import Lab, ColorObservation, parse_color


def test_parse_hex():
    c = parse_color("#FF0000", "test.css")
    assert c is not None
    assert c.hex == "#FF0000"
    assert c.alpha == 1
    assert c.original_value == "#FF0000"
    assert c.source == "test.css"
    assert isinstance(c.lab, Lab)


def test_parse_short_and_lowercase_hex():
    assert parse_color("#f00", "s").hex == "#FF0000"
    assert parse_color("  #abcdef ", "s").hex == "#ABCDEF"
    assert parse_color("  #abcdef ", "s").original_value == "#abcdef"


def test_parse_hex_with_alpha_digits():
    c = parse_color("#00ff0080", "s")
    assert c.hex == "#00FF00"
    assert c.alpha == pytest.approx(0.502, abs=1e-3)
    assert parse_color("#0f08", "s").alpha == pytest.approx(0.533, abs=1e-3)


def test_parse_rgb_and_rgba():
    assert parse_color("rgb(255, 0, 0)", "s").hex == "#FF0000"
    c = parse_color("rgba(255, 0, 0, 0.5)", "s")
    assert c.hex == "#FF0000"
    assert c.alpha == 0.5


def test_parse_modern_space_syntax():
    c = parse_color("rgb(0 255 0 / 50%)", "s")
    assert c.hex == "#00FF00"
    assert c.alpha == 0.5
    assert parse_color("rgb(100% 0% 0%)", "s").hex == "#FF0000"


def test_parse_hsl():
    assert parse_color("hsl(120, 100%, 50%)", "s").hex == "#00FF00"
    assert parse_color("hsl(0.5turn 100% 50%)", "s").hex == "#00FFFF"
    c = parse_color("hsla(240deg, 100%, 50%, 0.25)", "s")
    assert c.hex == "#0000FF"
    assert c.alpha == 0.25


def test_parse_named():
    assert parse_color("red", "s").hex == "#FF0000"
    assert parse_color("CornflowerBlue", "s").hex == "#6495ED"
    t = parse_color("transparent", "s")
    assert t.hex == "#000000" and t.alpha == 0


@pytest.mark.parametrize("value", ["", "   ", "invalid", "#ggg", "#12345", "rgb(1, 2)", "var(--brand)", "inherit", "currentColor", "hsl(nan, 10%, 10%)"])
def test_parse_rejects(value):
    assert parse_color(value, "s") is None


def test_parse_non_string():
    assert parse_color(None, "s") is None
    assert parse_color(123, "s") is None


def test_channels_are_clamped():
    assert parse_color("rgb(300, -5, 0)", "s").hex == "#FF0000"
    assert parse_color("rgba(0, 0, 0, 2)", "s").alpha == 1


def test_lab_reference_points():
    white = parse_color("#FFFFFF", "s").lab
    black = parse_color("#000000", "s").lab
    assert white.l == pytest.approx(100.0, abs=0.1)
    assert abs(white.a) < 0.5 and abs(white.b) < 0.5
    assert (black.l, black.a, black.b) == (0.0, 0.0, 0.0)
    red = parse_color("red", "s").lab
    assert red.l == pytest.approx(53.24, abs=0.1)
    assert red.a == pytest.approx(80.09, abs=0.2)


def test_same_hex_same_lab():
    assert parse_color("red", "a").lab == parse_color("#ff0000", "b").lab == parse_color("rgb(255,0,0)", "c").lab


def test_observation_dict_roundtrip_fields():
    c = parse_color("rgba(0,255,0,0.5)", "page (inline style)")
    d = c.to_dict()
    assert set(d) == {"hex", "alpha", "lab", "originalValue", "source"}
    assert ColorObservation.from_dict(d) == c
