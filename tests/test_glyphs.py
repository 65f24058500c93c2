"""Tests for glyph rasterization with Pillow."""

import numpy as np
import pytest
from PIL import ImageFont

from glyphdex_config import GlyphConfig, IndexConfig
from glyphdex_glyphs import (
    FontLoadError,
    GlyphGridError,
    GlyphRasterizer,
    cell_brightness,
    is_printable,
    load_font,
)
from glyphdex_index import BrightnessIndex


@pytest.fixture(scope='module')
def font():
    return ImageFont.load_default()


@pytest.fixture
def rasterizer(font):
    return GlyphRasterizer(font=font, config=GlyphConfig())


class TestCellBrightness:
    def test_empty_and_full(self):
        assert cell_brightness(np.zeros((16, 16), dtype=bool)) == 0.0
        assert cell_brightness(np.ones((16, 16), dtype=bool)) == 1.0

    def test_fraction_of_on_cells(self):
        grid = np.zeros((16, 16), dtype=bool)
        grid[:4] = True
        assert cell_brightness(grid, (16, 16)) == 0.25

    def test_shape_mismatch(self):
        with pytest.raises(GlyphGridError):
            cell_brightness(np.zeros((8, 16), dtype=bool), (16, 16))

    def test_not_two_dimensional(self):
        with pytest.raises(GlyphGridError):
            cell_brightness(np.zeros(256, dtype=bool))


class TestIsPrintable:
    def test_printable(self):
        assert is_printable('a')
        assert is_printable(' ')
        assert is_printable('█')
        assert is_printable('漢')

    def test_not_printable(self):
        assert not is_printable('\x07')
        assert not is_printable('\u0301')  # combining acute accent
        assert not is_printable('ab')
        assert not is_printable('')


class TestGlyphRasterizer:
    def test_grid_shape_and_type(self, rasterizer):
        grid = rasterizer('A')
        assert grid.shape == (16, 16)
        assert grid.dtype == bool
        assert rasterizer.grid_shape == (16, 16)

    def test_space_is_empty(self, rasterizer):
        assert not rasterizer(' ').any()
        assert rasterizer.brightness(' ') == 0.0

    def test_dense_glyph_is_brighter(self, rasterizer):
        assert rasterizer.brightness('@') > rasterizer.brightness('.') > 0.0

    def test_custom_grid_size(self, font):
        small = GlyphRasterizer(font=font, config=GlyphConfig(grid_width=8, grid_height=12))
        assert small('x').shape == (12, 8)

    def test_invert_complements_grid(self, font):
        normal = GlyphRasterizer(font=font, config=GlyphConfig())
        inverted = GlyphRasterizer(font=font, config=GlyphConfig(invert=True))
        assert np.array_equal(inverted('#'), ~normal('#'))
        assert inverted.brightness(' ') == 1.0

    def test_single_character_required(self, rasterizer):
        with pytest.raises(ValueError):
            rasterizer('ab')

    def test_cache_hits(self, rasterizer):
        first = rasterizer('k')
        first[:] = True
        second = rasterizer('k')
        assert not second.all()
        stats = rasterizer.get_stats()
        assert stats['cache_misses'] == 1
        assert stats['cache_hits'] == 1
        assert stats['renders'] == 1
        assert stats['cache_hit_rate'] == 0.5

    def test_cache_eviction(self, font):
        rasterizer = GlyphRasterizer(font=font, config=GlyphConfig(cache_size=2))
        for char in "abc":
            rasterizer(char)
        stats = rasterizer.get_stats()
        assert stats['cache_entries'] == 2
        assert stats['cache_evictions'] == 1
        rasterizer.clear_cache()
        assert rasterizer.get_stats()['cache_entries'] == 0

    def test_cache_disabled(self, font):
        rasterizer = GlyphRasterizer(font=font, config=GlyphConfig(cache_size=0))
        rasterizer('a')
        rasterizer('a')
        assert rasterizer.get_stats()['renders'] == 2
        assert rasterizer.get_stats()['cache_entries'] == 0

    def test_preview(self, rasterizer):
        lines = rasterizer.preview('H').splitlines()
        assert len(lines) == 16
        assert all(len(line) == 16 for line in lines)
        assert any('#' in line for line in lines)

    def test_index_over_real_glyphs(self, rasterizer):
        index = BrightnessIndex(" .@", rasterizer=rasterizer, config=IndexConfig())
        assert index.min_char() == ' '
        assert index.lookup(0.0) == ' '
        assert index.lookup(1.0) == '@'


class TestFontLoading:
    def test_missing_explicit_font(self):
        with pytest.raises(FontLoadError):
            load_font('/nonexistent/glyphdex-missing.ttf')
        with pytest.raises(OSError):
            GlyphRasterizer(font_path='/nonexistent/glyphdex-missing.ttf', config=GlyphConfig())

    def test_search_chain_always_yields_a_font(self):
        result = load_font(size=14)
        assert result['font'] is not None
