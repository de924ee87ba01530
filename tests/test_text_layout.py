import math

import pytest

from src import settings
from src.text_layout import TextBox, TextDoesNotFitError, TextLayoutEngine, box_from_bounds

from conftest import char_width_measure


@pytest.fixture
def engine():
    return TextLayoutEngine(char_width_measure, min_font_size=8)


def test_single_word_that_fits_is_one_line(engine):
    box = TextBox(offset_x=0, start_y=100, max_width=200, max_height=100)

    fitted = engine.fit("HI", box, 40)

    assert fitted.attempted_sizes == [40]
    assert len(fitted.lines) == 1
    assert fitted.lines[0].text == "HI"
    assert fitted.lines[0].offset_y == 100 + 40 * 1.375


def test_single_word_wider_than_box_shrinks_before_acceptance(engine):
    box = TextBox(offset_x=0, start_y=0, max_width=100, max_height=1000)
    # "WORD" is 4 * 0.6 * 300 = 720px wide at the starting size
    fitted = engine.fit("WORD", box, 300)

    assert len(fitted.attempted_sizes) > 1
    assert char_width_measure("WORD", fitted.font_size) <= 100


def test_greedy_wrap_breaks_lines_in_order(engine):
    box = TextBox(offset_x=0, start_y=0, max_width=100, max_height=1000)
    # At 10px each character is 6px wide: "aaaa bbbb" is 54px, adding " cccc" makes 84px,
    # adding " dddd" would make 114px.
    fitted = engine.fit("aaaa bbbb cccc dddd eeee", box, 10)

    assert [line.text for line in fitted.lines] == ["aaaa bbbb cccc", "dddd eeee"]
    offsets = [line.offset_y for line in fitted.lines]
    assert offsets == [13.75, 27.5]


def test_line_offsets_increase_by_line_height(engine):
    box = TextBox(offset_x=5, start_y=20, max_width=60, max_height=400)

    fitted = engine.fit("one two three four five six seven", box, 12)

    offsets = [line.offset_y for line in fitted.lines]
    deltas = {round(b - a, 6) for a, b in zip(offsets, offsets[1:])}
    assert deltas == {fitted.line_height}
    assert offsets[0] == 20 + fitted.line_height


def test_shrink_sequence_is_strictly_decreasing_and_bounded(engine):
    box = TextBox(offset_x=0, start_y=0, max_width=150, max_height=40)

    fitted = engine.fit("a rather long sentence to squeeze in", box, 300)

    sizes = fitted.attempted_sizes
    assert sizes[0] == 300
    assert all(later == pytest.approx(earlier * 0.75) for earlier, later in zip(sizes, sizes[1:]))
    assert all(size >= 8 for size in sizes)


def test_text_that_never_fits_raises_instead_of_recursing(engine):
    box = TextBox(offset_x=0, start_y=0, max_width=5, max_height=5)

    with pytest.raises(TextDoesNotFitError):
        engine.fit("unfittable", box, 300)


def test_layout_respects_box_height(engine):
    box = box_from_bounds(10, 10, 210, 60)

    fitted = engine.fit("HELLO WORLD", box, 300)

    assert fitted.font_size < 300
    assert len(fitted.lines) * fitted.line_height <= box.max_height
    assert all(line.offset_y <= box.start_y + box.max_height for line in fitted.lines)


def test_layout_is_repeatable(engine):
    box = TextBox(offset_x=0, start_y=0, max_width=120, max_height=120)

    first = engine.fit("the quick brown fox jumps", box, 48)
    second = engine.fit("the quick brown fox jumps", box, 48)

    assert first == second


def test_single_layout_attempt_reports_failure_with_none(engine):
    box = TextBox(offset_x=0, start_y=0, max_width=50, max_height=50)

    assert engine.layout("enormous", box, 100) is None
    assert engine.layout("ok", box, 10) is not None


def test_first_word_wider_than_box_fails_attempt(engine):
    box = TextBox(offset_x=0, start_y=0, max_width=50, max_height=500)

    assert engine.layout("extraordinarily ok", box, 10) is None


def test_blank_text_fits_with_no_lines(engine):
    fitted = engine.fit("   ", TextBox(0, 0, 10, 10), 100)

    assert fitted.lines == []


def test_line_height_uses_floored_font_size(engine):
    assert engine.line_height(168.75) == math.floor(168.75) * 1.375


@pytest.mark.parametrize("factor", [0, 1, 1.5])
def test_rejects_shrink_factor_outside_unit_interval(factor):
    with pytest.raises(ValueError):
        TextLayoutEngine(char_width_measure, shrink_factor=factor)


def test_defaults_follow_settings_at_construction(monkeypatch):
    monkeypatch.setattr(settings, "MIN_FONT_SIZE", 20)
    monkeypatch.setattr(settings, "FONT_SHRINK_FACTOR", 0.5)

    engine = TextLayoutEngine(char_width_measure)

    assert engine.min_font_size == 20
    assert engine.shrink_factor == 0.5
    with pytest.raises(TextDoesNotFitError):
        engine.fit("HELLO", TextBox(offset_x=0, start_y=0, max_width=10, max_height=10), 40)
