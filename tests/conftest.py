"""Shared fixtures: rasterizers with exact, hand-picked on-cell counts."""

import numpy as np
import pytest

from glyphdex_config import GlyphConfig, IndexConfig, get_config, reload_config


class CountRasterizer:
    """Fake rasterizer turning on the first N cells of a 16x16 grid."""

    grid_shape = (16, 16)

    def __init__(self, counts):
        self.counts = dict(counts)
        self.calls = []

    def __call__(self, char):
        self.calls.append(char)
        grid = np.zeros(256, dtype=bool)
        grid[:self.counts[char]] = True
        return grid.reshape(self.grid_shape)


@pytest.fixture
def counts():
    # a: 0.25, b: 0.75, c: 1.0, m: 0.5, z: 0.0
    return {'a': 64, 'b': 192, 'c': 256, 'm': 128, 'z': 0,
            'd': 96, 'e': 96, 'f': 160, 'x': 64}


@pytest.fixture
def rasterizer(counts):
    return CountRasterizer(counts)


@pytest.fixture
def index_config():
    return IndexConfig()


@pytest.fixture
def glyph_config():
    return GlyphConfig()


@pytest.fixture
def restore_config():
    """Put the global configuration back after a test reloads it."""
    saved = get_config()
    yield
    reload_config(saved)
