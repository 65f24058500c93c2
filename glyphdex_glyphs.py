#!/usr/bin/env python3
"""
🐧 Glyphdex - Glyph Rasterization Module
========================================
Copyright (c) 2025 PNGN-Tec LLC

Glyph Rasterization System
==========================
Renders single characters into fixed-size boolean grids whose "on" cells
mark the glyph's ink. The grid is the input of the brightness index: a
character's raw brightness is the fraction of its grid that is on.

Core Features
=============
- Pure PIL-based rendering into a grayscale cell
- Glyph centered on its ink bounding box
- Threshold-based on/off classification, optional inversion
- Font search chain with logged fallbacks
- LRU grid cache with hit/miss statistics
- Printable-character detection through wcwidth

Module Interface
================
- GlyphRasterizer: Callable rasterizer (character -> boolean grid)
- cell_brightness(): On-cell fraction of a grid
- is_printable(): Whether a character occupies at least one column
- load_font(): Resolve a font through the search chain

Example Usage
=============
```python
from glyphdex_glyphs import GlyphRasterizer, cell_brightness

rasterizer = GlyphRasterizer()
grid = rasterizer('@')           # numpy bool array, shape (16, 16)
print(cell_brightness(grid))     # e.g. 0.3125
```
"""

import logging
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import numpy as np
from PIL import Image, ImageDraw, ImageFont
from wcwidth import wcwidth

from glyphdex_config import (
    FONT_CANDIDATES,
    SYSTEM_FONT_PATHS,
    GlyphConfig,
    get_glyph_config,
)

# Configure logging
logger = logging.getLogger('glyphdex.glyphs')

LOCAL_FONTS_DIR = Path(__file__).parent / 'fonts'

FontType = Union[ImageFont.ImageFont, ImageFont.FreeTypeFont]


# ============================================================================
# ERRORS
# ============================================================================

class GlyphdexError(Exception):
    """Base class for all Glyphdex errors"""


class GlyphGridError(GlyphdexError, ValueError):
    """A rasterized grid does not have the configured dimensions"""


class FontLoadError(GlyphdexError, OSError):
    """An explicitly requested font could not be loaded"""


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def is_printable(char: str) -> bool:
    """
    Check whether a character renders into at least one terminal column.

    Control characters report -1 and combining marks 0 from wcwidth; neither
    has a glyph of its own.
    """
    if not isinstance(char, str) or len(char) != 1:
        return False
    return wcwidth(char) >= 1


def cell_brightness(grid, shape: Optional[Tuple[int, int]] = None) -> float:
    """
    Compute the raw brightness of a glyph grid.

    Args:
        grid: Boolean grid (anything numpy.asarray accepts)
        shape: Expected (height, width); checked when given

    Returns:
        Fraction of cells that are on, in [0, 1]

    Raises:
        GlyphGridError: If the grid is not two-dimensional or its shape
            differs from the expected one
    """
    cells = np.asarray(grid, dtype=bool)
    if cells.ndim != 2 or cells.size == 0:
        raise GlyphGridError(f"Glyph grid must be a non-empty 2D array, got shape {cells.shape}")
    if shape is not None and cells.shape != tuple(shape):
        raise GlyphGridError(f"Glyph grid shape {cells.shape} does not match "
                             f"configured shape {tuple(shape)}")
    return int(np.count_nonzero(cells)) / cells.size


def load_font(font_path: Optional[str] = None, size: int = 14) -> Dict[str, object]:
    """
    Load a font and report which file it came from.

    Args:
        font_path: Explicit font file; failures here raise instead of falling back
        size: Point size for TrueType fonts

    Returns:
        {'font': font object, 'path': resolved path or None for the default font}

    Raises:
        FontLoadError: If font_path is given and cannot be loaded
    """
    if font_path:
        try:
            font = ImageFont.truetype(str(font_path), size)
        except OSError as e:
            raise FontLoadError(f"Cannot load font {font_path}: {e}") from e
        logger.info(f"Loaded requested font {font_path}")
        return {'font': font, 'path': str(font_path)}

    # Priority 1: Local fonts directory, then Pillow's system search
    for name in FONT_CANDIDATES:
        local = LOCAL_FONTS_DIR / name
        candidate = str(local) if local.exists() else name
        try:
            font = ImageFont.truetype(candidate, size)
        except OSError:
            logger.debug(f"Font candidate {name} not available")
            continue
        logger.info(f"Loaded font {candidate}")
        return {'font': font, 'path': candidate}

    # Priority 2: Common system paths
    for path in SYSTEM_FONT_PATHS:
        if Path(path).exists():
            try:
                font = ImageFont.truetype(path, size)
            except OSError as e:
                logger.debug(f"Could not load {path}: {e}")
                continue
            logger.info(f"Loaded font from system: {path}")
            return {'font': font, 'path': path}

    # Ultimate fallback
    logger.warning("No TrueType font found - using Pillow default font")
    return {'font': ImageFont.load_default(), 'path': None}


# ============================================================================
# RASTERIZER
# ============================================================================

class GlyphRasterizer:
    """
    Callable character-to-grid rasterizer with an LRU grid cache.

    Each character is drawn white on black into a grayscale cell of the
    configured grid size, centered on its ink bounding box. Cells at or above
    the threshold are on; with invert the grid is negated. Rendering is pure
    for a given font and configuration, so grids are cached per character.
    """

    def __init__(self,
                 font: Optional[FontType] = None,
                 font_path: Optional[str] = None,
                 config: Optional[GlyphConfig] = None):
        """
        Initialize the rasterizer.

        Args:
            font: Ready font object (takes precedence over any path)
            font_path: Font file to load (config.font_path used if None)
            config: Glyph configuration (global configuration if None)
        """
        self.config = config or get_glyph_config()
        self.config.validate()

        if font is not None:
            self.font = font
            self.font_path = font_path
        else:
            font_result = load_font(font_path or self.config.font_path, self.config.font_size)
            self.font = font_result['font']
            self.font_path = font_result['path']

        self._cache: "OrderedDict[str, np.ndarray]" = OrderedDict()
        self.stats = {
            'cache_hits': 0,
            'cache_misses': 0,
            'renders': 0,
            'cache_evictions': 0,
        }

        logger.info(f"GlyphRasterizer initialized: grid={self.config.grid_width}x"
                    f"{self.config.grid_height}, font={self.font_path or 'default'}, "
                    f"invert={self.config.invert}")

    @property
    def grid_shape(self) -> Tuple[int, int]:
        """Grid shape as (height, width)"""
        return (self.config.grid_height, self.config.grid_width)

    def __call__(self, char: str) -> np.ndarray:
        return self.rasterize(char)

    def rasterize(self, char: str) -> np.ndarray:
        """
        Get the boolean grid of a character, from cache or rendered on demand.

        Args:
            char: Single character to render

        Returns:
            NumPy bool array of shape (grid_height, grid_width)
        """
        if not isinstance(char, str) or len(char) != 1:
            raise ValueError(f"Expected a single character, got {char!r}")

        cached = self._cache.get(char)
        if cached is not None:
            self._cache.move_to_end(char)
            self.stats['cache_hits'] += 1
            return cached.copy()
        self.stats['cache_misses'] += 1

        grid = self._render_character(char)
        self.stats['renders'] += 1

        if self.config.cache_size > 0:
            while len(self._cache) >= self.config.cache_size:
                self._cache.popitem(last=False)
                self.stats['cache_evictions'] += 1
            self._cache[char] = grid
        return grid.copy()

    def _render_character(self, char: str) -> np.ndarray:
        """Render a character into a thresholded boolean grid"""
        width, height = self.config.grid_width, self.config.grid_height
        img = Image.new('L', (width, height), 0)
        draw = ImageDraw.Draw(img)

        left, top, right, bottom = draw.textbbox((0, 0), char, font=self.font)
        if right > left and bottom > top:
            x = (width - (right - left)) // 2 - left
            y = (height - (bottom - top)) // 2 - top
            draw.text((x, y), char, font=self.font, fill=255)

        grid = np.asarray(img, dtype=np.uint8) >= self.config.threshold
        if self.config.invert:
            grid = ~grid
        return grid

    def brightness(self, char: str) -> float:
        """Raw brightness of a character's glyph"""
        return cell_brightness(self.rasterize(char), self.grid_shape)

    def preview(self, char: str, on: str = '#', off: str = '.') -> str:
        """Text picture of a character's grid, one row per line"""
        grid = self.rasterize(char)
        return '\n'.join(''.join(on if cell else off for cell in row) for row in grid)

    def clear_cache(self):
        """Clear all cached grids."""
        self._cache.clear()

    def get_stats(self) -> Dict[str, Union[int, float]]:
        """
        Get rasterizer statistics.

        Returns:
            Dictionary with cache_hits, cache_misses, renders,
            cache_evictions, cache_hit_rate and cache_entries
        """
        stats = self.stats.copy()
        total_requests = stats['cache_hits'] + stats['cache_misses']
        if total_requests > 0:
            stats['cache_hit_rate'] = stats['cache_hits'] / total_requests
        else:
            stats['cache_hit_rate'] = 0.0
        stats['cache_entries'] = len(self._cache)
        return stats
