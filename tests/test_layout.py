"""Unit tests for the position solver."""

import pytest

from leadsheet.config import CELL_WIDTH_SAFETY, LyricMetrics
from leadsheet.layout import layout, overflow_index, resolve_anchor_points
from leadsheet.lyric_models import Anchor, HyphenToken, SystemWindow
from leadsheet.spacing import PackPolicy
from leadsheet.systems import SystemGeometry
from leadsheet.tokenizer import tokenize

METRICS = LyricMetrics()


def _pixels(width: float, window: SystemWindow = SystemWindow(0, 16)) -> SystemGeometry:
    return SystemGeometry.pixels(window, width, METRICS)


def _positions(laid_out) -> list[float]:
    return [item.position for item in laid_out]


def test_layout_without_anchors_spreads_across_system() -> None:
    geometry = _pixels(1000)
    laid_out = layout(tokenize("la la la la"), [], geometry)
    positions = _positions(laid_out)
    assert positions[0] == 0
    assert positions[-1] + 38 == pytest.approx(1000)
    steps = [b - a for a, b in zip(positions, positions[1:])]
    assert steps == pytest.approx([steps[0]] * 3)


def test_layout_single_mid_line_anchor() -> None:
    tokens = tokenize("one two three")
    geometry = _pixels(1000)
    laid_out = layout(tokens, [Anchor(id="two", char_index=4, cell=8)], geometry)
    one, two, three = _positions(laid_out)
    assert two == pytest.approx(500)
    assert 0 <= one < two
    assert two < three
    assert three + 65 == pytest.approx(1000)


def test_anchor_position_ignores_surrounding_token_count() -> None:
    geometry = _pixels(2000)
    few = tokenize("a b target c")
    many = tokenize("a b c d e f target g h i j")
    anchor_few = Anchor(id="t", char_index=4, cell=6)
    anchor_many = Anchor(id="t", char_index=12, cell=6)

    pos_few = _positions(layout(few, [anchor_few], geometry))[2]
    pos_many = _positions(layout(many, [anchor_many], geometry))[6]
    assert pos_few == pos_many == pytest.approx(geometry.cell_to_position(6))


def test_layout_pushes_crowded_tokens_forward() -> None:
    geometry = _pixels(200)
    tokens = tokenize("aaaa bbbb cccc dddd")
    laid_out = layout(tokens, [Anchor(id="a", char_index=0, cell=0)], geometry)
    positions = _positions(laid_out)
    widths = [geometry.token_width(t) for t in tokens]
    assert positions[1] == pytest.approx(56 + 10)
    for i in range(1, len(tokens)):
        assert positions[i - 1] + widths[i - 1] + geometry.gap <= positions[i] + 1e-9


def test_layout_pulls_free_tokens_back_before_anchor() -> None:
    geometry = _pixels(1600)
    tokens = tokenize("a b c d")
    anchors = [Anchor(id="a", char_index=0, cell=0), Anchor(id="d", char_index=6, cell=1)]
    positions = _positions(layout(tokens, anchors, geometry))

    assert positions[0] == 0
    assert positions[3] == pytest.approx(100)
    # c is pulled left to clear the gap before the anchored d
    assert positions[2] == pytest.approx(100 - 10 - 29)
    assert positions[1] == pytest.approx(positions[2] - 10 - 29)


def test_layout_ripple_stops_at_anchored_token() -> None:
    geometry = _pixels(1600)
    tokens = tokenize("a b c")
    anchors = [Anchor(id="a", char_index=0, cell=1), Anchor(id="c", char_index=4, cell=1)]
    positions = _positions(layout(tokens, anchors, geometry))
    assert positions[0] == pytest.approx(100)
    assert positions[2] == pytest.approx(100)


def test_layout_centers_hyphen_between_words() -> None:
    geometry = _pixels(1000)
    laid_out = layout(tokenize("bro-ken"), [], geometry)
    bro, hyphen, ken = _positions(laid_out)
    assert isinstance(laid_out[1].token, HyphenToken)
    assert hyphen + 14 / 2 == pytest.approx((bro + 47 + ken) / 2)


def test_anchoring_second_half_of_hyphenated_word() -> None:
    geometry = _pixels(1000)
    laid_out = layout(tokenize("bro-ken"), [Anchor(id="ken", char_index=4, cell=8)], geometry)
    bro, hyphen, ken = _positions(laid_out)
    assert ken == pytest.approx(500)
    assert bro == 0
    assert hyphen + 7 == pytest.approx((47 + 500) / 2)


def test_stale_anchor_is_ignored() -> None:
    geometry = _pixels(1000)
    tokens = tokenize("la la la")
    plain = layout(tokens, [], geometry)
    stale = layout(tokens, [Anchor(id="gone", char_index=99, cell=4)], geometry)
    inside_word = layout(tokens, [Anchor(id="mid", char_index=1, cell=4)], geometry)
    assert stale == plain
    assert inside_word == plain


def test_anchor_outside_window_is_clamped_to_edge() -> None:
    geometry = _pixels(1000, SystemWindow(16, 32))
    tokens = tokenize("early late")
    positions = _positions(layout(tokens, [Anchor(id="e", char_index=0, cell=2)], geometry))
    assert positions[0] == 0


def test_resolve_anchor_points_orders_by_token_index() -> None:
    tokens = tokenize("one two three")
    anchors = [Anchor(id="c", char_index=8, cell=4), Anchor(id="a", char_index=0, cell=12)]
    points = resolve_anchor_points(tokens, anchors, _pixels(1600))
    assert points == [(0, pytest.approx(1200)), (2, pytest.approx(400))]


def test_degenerate_geometry_places_everything_at_zero() -> None:
    tokens = tokenize("one two")
    assert _positions(layout(tokens, [], _pixels(0))) == [0.0, 0.0]
    degenerate_window = _pixels(500, SystemWindow(8, 8))
    assert _positions(layout(tokens, [], degenerate_window)) == [0.0, 0.0]


def test_layout_of_empty_chunk() -> None:
    assert layout((), [], _pixels(100)) == ()


def test_overflow_index() -> None:
    geometry = _pixels(100)
    laid_out = layout(tokenize("la la la"), [], geometry)
    assert overflow_index(laid_out, geometry) is not None
    fitting = layout(tokenize("la la"), [], geometry)
    assert overflow_index(fitting, geometry) is None


def test_overflow_index_from_start() -> None:
    geometry = _pixels(100)
    laid_out = layout(tokenize("la la la"), [], geometry)
    assert overflow_index(laid_out, geometry) == 2
    assert overflow_index(laid_out, geometry, start=2) == 2
    assert overflow_index(laid_out, geometry, start=3) is None


def test_layout_is_idempotent() -> None:
    geometry = _pixels(1000)
    tokens = tokenize("one two-three four five")
    anchors = [Anchor(id="x", char_index=8, cell=5)]
    assert layout(tokens, anchors, geometry) == layout(tokens, anchors, geometry)


# ---------------------------------------------------------------------------
# Cell-space packing
# ---------------------------------------------------------------------------

def _cells(window: SystemWindow, px_per_cell: float) -> SystemGeometry:
    return SystemGeometry.cells(window, px_per_cell, METRICS)


def test_pack_layout_without_anchors_packs_from_left() -> None:
    geometry = _cells(SystemWindow(0, 16), 65)
    positions = _positions(layout(tokenize("la la la"), [], geometry, PackPolicy()))
    width = 38 * CELL_WIDTH_SAFETY / 65
    gap = 10 * CELL_WIDTH_SAFETY / 65
    assert positions == pytest.approx([0, width + gap, 2 * (width + gap)])


def test_pack_layout_compresses_to_fit() -> None:
    geometry = _cells(SystemWindow(0, 3), 50)
    tokens = tokenize("la la la")
    positions = _positions(layout(tokens, [], geometry, PackPolicy()))
    width = geometry.token_width(tokens[0])
    assert positions[-1] + width == pytest.approx(3)
    used_gap = positions[1] - positions[0] - width
    assert 0 < used_gap < geometry.gap


def test_pack_layout_overflows_at_zero_gap() -> None:
    geometry = _cells(SystemWindow(0, 2), 50)
    tokens = tokenize("la la la")
    positions = _positions(layout(tokens, [], geometry, PackPolicy()))
    width = geometry.token_width(tokens[0])
    assert positions == pytest.approx([0, width, 2 * width])


def test_pack_layout_keeps_anchor_and_fences() -> None:
    geometry = _cells(SystemWindow(8, 16), 50)
    tokens = tokenize("a b c")
    anchors = [Anchor(id="b", char_index=2, cell=10)]
    positions = _positions(layout(tokens, anchors, geometry, PackPolicy()))
    width = geometry.token_width(tokens[0])
    assert positions[1] == pytest.approx(2)
    assert positions[0] == 0
    assert positions[2] == pytest.approx(2 + width + geometry.gap)
