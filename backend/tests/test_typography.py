import logging

import pytest

from domain.models import FontFace
from services.fonts import DEFAULT_PAIRING, load_font
from services.typography import (
    DEFAULT_SIZES, fit_line_size, measure, solve_size, subtitle_size_for, wrap,
)


def _widths(lines, face, size):
    font = load_font(face, size)
    return [measure(font, line) for line in lines]


def test_wrap_keeps_lines_within_width():
    font = load_font(DEFAULT_PAIRING.title, 40)
    text = "the quick brown fox jumps over the lazy dog again and again"
    lines = wrap(text, font, 300)
    assert len(lines) > 1
    assert " ".join(lines) == text
    for line in lines:
        assert measure(font, line) <= 300 or " " not in line


def test_wrap_respects_paragraph_breaks():
    font = load_font(DEFAULT_PAIRING.subtitle, 20)
    lines = wrap("first part\nsecond part", font, 10_000)
    assert lines == ["first part", "second part"]


def test_wrap_flushes_single_overflowing_word():
    font = load_font(DEFAULT_PAIRING.title, 60)
    lines = wrap("a SUPERCALIFRAGILISTIC b", font, 80)
    assert lines == ["a", "SUPERCALIFRAGILISTIC", "b"]


def test_wrap_empty_text():
    font = load_font(DEFAULT_PAIRING.title, 30)
    assert wrap("", font, 100) == []
    assert wrap("   \n  ", font, 100) == []


def test_solve_size_summer_sale_title_fits_and_is_largest():
    title = "PROMOÇÃO DE VERÃO"
    result = solve_size(title, "", DEFAULT_PAIRING, 864, 864)
    assert result.fits
    assert result.title_size in DEFAULT_SIZES
    assert max(_widths(result.title.lines, DEFAULT_PAIRING.title, result.title_size)) <= 864
    assert result.block_height <= 864
    assert " ".join(result.title.lines) == title

    bigger = result.title_size + 5
    if bigger <= DEFAULT_SIZES[0]:
        assert not solve_size(title, "", DEFAULT_PAIRING, 864, 864, sizes=[bigger]).fits


def test_solve_size_subtitle_scale_and_gutter():
    result = solve_size("BIG NEWS", "details follow below", DEFAULT_PAIRING, 864, 864)
    assert result.subtitle_size == subtitle_size_for(result.title_size)
    assert result.subtitle_size == round(result.title_size * 0.4)
    assert result.gutter == pytest.approx(result.title_size * 0.2)
    expected = (
        len(result.title.lines) * result.title_size * 1.1
        + result.gutter
        + len(result.subtitle.lines) * result.subtitle_size * 1.2
    )
    assert result.block_height == pytest.approx(expected)
    assert max(_widths(result.subtitle.lines, DEFAULT_PAIRING.subtitle, result.subtitle_size)) <= 864


def test_empty_title_contributes_no_height_or_gutter():
    result = solve_size("", "only a subtitle", DEFAULT_PAIRING, 864, 864)
    assert result.title.is_empty
    assert result.gutter == 0.0
    assert result.block_height == pytest.approx(len(result.subtitle.lines) * result.subtitle_size * 1.2)


def test_narrower_box_never_increases_size():
    title = "GRANDE LIQUIDAÇÃO DE INVERNO"
    subtitle = "descontos em toda a loja"
    sizes = [
        solve_size(title, subtitle, DEFAULT_PAIRING, width, 864).title_size
        for width in (864, 700, 500, 300, 150)
    ]
    assert sizes == sorted(sizes, reverse=True)


def test_exhausted_search_falls_back_to_smallest(caplog):
    with caplog.at_level(logging.WARNING):
        result = solve_size("UNFITTABLE", "", DEFAULT_PAIRING, 1, 1)
    assert not result.fits
    assert result.title_size == DEFAULT_SIZES[-1] == 10
    assert "falling back" in caplog.text


def test_fit_line_size_shrinks_until_it_fits():
    face = FontFace("Poppins", 900)
    text = "R$ 1.999,90"
    start = 65
    width_at_start = measure(load_font(face, start), text)
    size = fit_line_size(text, face, width_at_start / 2, start)
    assert size < start
    assert measure(load_font(face, size), text) <= width_at_start / 2
    assert fit_line_size(text, face, width_at_start + 1, start) == start
