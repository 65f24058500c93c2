#!/usr/bin/env python3
"""
🐧 Glyphdex - ASCII Rendering Module
====================================
Copyright (c) 2025 PNGN-Tec LLC

Image-to-Text Rendering
=======================
Tiles an image into character-sized blocks, measures each block's average
brightness and asks a BrightnessIndex for the closest character.

Technical Implementation
========================
- Grayscale conversion and block averaging through a single PIL resize,
  so each output cell is one resampled pixel
- Row count corrected by the character cell aspect ratio
- Vectorized per-block lookup through BrightnessIndex.lookup_array()

Module Interface
================
- image_to_brightness_blocks(): Image -> 2D float array in [0, 1]
- render_blocks(): Brightness blocks -> list of text lines
- AsciiRenderer: Index plus render configuration
"""

import logging
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
from PIL import Image

from glyphdex_config import RenderConfig, ScalingAlgorithm, get_render_config
from glyphdex_index import BrightnessIndex

# Configure logging
logger = logging.getLogger('glyphdex.render')

# PIL algorithm mapping
ALGORITHM_MAP = {
    ScalingAlgorithm.NEAREST: Image.NEAREST,
    ScalingAlgorithm.BOX: Image.BOX,
    ScalingAlgorithm.BILINEAR: Image.BILINEAR,
    ScalingAlgorithm.BICUBIC: Image.BICUBIC,
    ScalingAlgorithm.LANCZOS: Image.LANCZOS,
}


def grid_size(image_width: int, image_height: int, columns: int,
              char_aspect: float = 0.5) -> Tuple[int, int]:
    """
    Compute the text grid for an image.

    Character cells are taller than wide, so the row count is scaled by
    char_aspect (cell width / cell height) to keep proportions.

    Returns:
        (columns, rows), both at least 1
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Invalid image size {image_width}x{image_height}")
    rows = max(1, int(round(columns * image_height / image_width * char_aspect)))
    return max(1, columns), rows


def image_to_brightness_blocks(image: Image.Image,
                               columns: int,
                               char_aspect: float = 0.5,
                               algorithm: ScalingAlgorithm = ScalingAlgorithm.BOX) -> np.ndarray:
    """
    Reduce an image to per-block average brightness.

    Args:
        image: Source image in any mode
        columns: Output width in characters
        char_aspect: Character cell width / height
        algorithm: Resampling used to average each block

    Returns:
        Float array of shape (rows, columns) with values in [0, 1]
    """
    if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
        # Composite over black so transparent areas read as dark
        rgba = image.convert('RGBA')
        background = Image.new('RGBA', rgba.size, (0, 0, 0, 255))
        image = Image.alpha_composite(background, rgba)

    gray = image.convert('L')
    cols, rows = grid_size(gray.width, gray.height, columns, char_aspect)
    resized = gray.resize((cols, rows), resample=ALGORITHM_MAP[algorithm])
    return np.asarray(resized, dtype=np.float64) / 255.0


def render_blocks(index: BrightnessIndex, blocks) -> List[str]:
    """
    Map brightness blocks to text lines.

    Args:
        index: Brightness index to query
        blocks: 2D array-like of brightness values

    Returns:
        One string per block row
    """
    blocks = np.asarray(blocks, dtype=np.float64)
    if blocks.ndim != 2:
        raise ValueError(f"Brightness blocks must be 2D, got shape {blocks.shape}")
    chars = index.lookup_array(blocks)
    return [''.join(row) for row in chars]


class AsciiRenderer:
    """
    Renders images as text through a BrightnessIndex.

    Attributes:
        index: The brightness index used for lookups
        config: Render configuration
    """

    def __init__(self, index: BrightnessIndex, config: Optional[RenderConfig] = None):
        self.index = index
        self.config = config or get_render_config()
        self.config.validate()
        self.render_times: List[float] = []

    def render(self, image: Image.Image, columns: Optional[int] = None) -> str:
        """
        Render an image as text.

        Args:
            image: Source image
            columns: Output width (config.columns if None)

        Returns:
            Newline-joined text, one line per block row
        """
        start = time.perf_counter()
        blocks = image_to_brightness_blocks(
            image,
            columns or self.config.columns,
            self.config.char_aspect,
            self.config.algorithm,
        )
        lines = render_blocks(self.index, blocks)
        elapsed = time.perf_counter() - start
        self.render_times.append(elapsed)
        logger.debug(f"Rendered {blocks.shape[1]}x{blocks.shape[0]} blocks in {elapsed * 1000:.1f}ms")
        return '\n'.join(lines)

    def render_file(self, path: Union[str, Path], columns: Optional[int] = None) -> str:
        """Open an image file and render it"""
        with Image.open(path) as image:
            image.load()
            logger.info(f"Rendering {path} ({image.width}x{image.height}, {image.mode})")
            return self.render(image, columns)

    def get_stats(self) -> Dict[str, object]:
        """Get render statistics"""
        if not self.render_times:
            return {'status': 'No renders yet'}
        return {
            'renders_completed': len(self.render_times),
            'avg_render_time': sum(self.render_times) / len(self.render_times),
            'min_render_time': min(self.render_times),
            'max_render_time': max(self.render_times),
            'index': self.index.get_stats(),
        }
