#!/usr/bin/env python3
"""
🐧 Glyphdex - Brightness Index Module
=====================================
Copyright (c) 2025 PNGN-Tec LLC

Character Brightness Index
==========================
Maps a requested brightness to the character of the active set whose glyph
brightness is closest. Raw brightness is the on-cell fraction of a
character's rasterized glyph; the index rescales raw values linearly into
[0, 1] against the current minimum and maximum so the darkest character
answers 0.0 and the brightest answers 1.0.

Index Structure
===============
- Base index: character -> raw brightness, kept in (brightness, character)
  order so min/max and iteration are stable
- Normalized index: normalized brightness -> characters sharing that value,
  each bucket ordered by character code

The normalized index is derived from the base index. Adding a character
outside the current range, or removing a character that holds the minimum
or maximum, rebuilds it from scratch; every other change patches the single
affected bucket.

Lookup Rules
============
- Candidates are the floor (largest key <= value) and the ceiling (smallest
  key >= value); a missing candidate is infinitely far away
- The strictly closer candidate wins, an exact distance tie goes to the floor
- Within the winning bucket the lowest character code is returned

Module Interface
================
- BrightnessIndex: The index
- InvalidCharsetError, CharacterNotFoundError, DegenerateRangeError

Example Usage
=============
```python
from glyphdex_index import BrightnessIndex

index = BrightnessIndex(" .:-=+*#%@")
index.lookup(0.0)    # ' '
index.lookup(1.0)    # brightest glyph of the set
index.add('&')
index.remove('.')
```

The index is not thread-safe; callers sharing one across threads must
serialize add/remove/lookup themselves.
"""

import bisect
import logging
import math
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from glyphdex_config import (
    DegeneratePolicy,
    GlyphConfig,
    IndexConfig,
    get_charset,
    get_glyph_config,
    get_index_config,
)
from glyphdex_glyphs import GlyphdexError, GlyphRasterizer, cell_brightness, is_printable

# Configure logging
logger = logging.getLogger('glyphdex.index')

Rasterizer = Callable[[str], object]


# ============================================================================
# ERRORS
# ============================================================================

class InvalidCharsetError(GlyphdexError, ValueError):
    """Character set is empty or holds an entry that cannot be indexed"""


class CharacterNotFoundError(GlyphdexError, KeyError):
    """Character is not part of the index"""


class DegenerateRangeError(GlyphdexError, ArithmeticError):
    """Minimum and maximum raw brightness coincide"""


# ============================================================================
# BRIGHTNESS INDEX
# ============================================================================

class BrightnessIndex:
    """
    Normalized brightness index over a dynamic character set.

    Attributes:
        config: Index policies in effect
        stats: Counters for rebuilds and incremental updates
    """

    def __init__(self,
                 charset: Iterable[str],
                 rasterizer: Optional[Rasterizer] = None,
                 config: Optional[IndexConfig] = None,
                 glyph_config: Optional[GlyphConfig] = None):
        """
        Build the index over a character set.

        Args:
            charset: Characters to index (a string or any iterable of
                single characters); duplicates collapse into one entry
            rasterizer: Callable returning a character's boolean glyph grid
                (a GlyphRasterizer is created if None)
            config: Index policies (global configuration if None)
            glyph_config: Grid dimensions for rasterizers that do not
                report their own grid_shape

        Raises:
            InvalidCharsetError: If the charset is empty or holds an entry
                that is not a single printable character
            DegenerateRangeError: If every character has the same raw
                brightness and the policy is RAISE
        """
        self.config = config or get_index_config()
        self.config.validate()

        glyph_config = glyph_config or get_glyph_config()
        if rasterizer is None:
            rasterizer = GlyphRasterizer(config=glyph_config)
        self._rasterize = rasterizer
        self._grid_shape = getattr(rasterizer, 'grid_shape', None) or (
            glyph_config.grid_height, glyph_config.grid_width)

        self.stats = {
            'rebuilds': 0,
            'incremental_adds': 0,
            'incremental_removes': 0,
            'unchanged_adds': 0,
        }

        chars = self._check_charset(charset)
        order = sorted((self._raw_brightness(char), char) for char in chars)
        self._base: Dict[str, float] = {}
        self._order: List[Tuple[float, str]] = []
        self._keys: List[float] = []
        self._buckets: Dict[float, List[str]] = {}
        self._commit_rebuild(order)

        logger.info(f"BrightnessIndex built: {len(self._base)} characters, "
                    f"raw range [{self.min_brightness():.4f}, {self.max_brightness():.4f}], "
                    f"{len(self._keys)} distinct levels")

    @classmethod
    def from_preset(cls, name: str, **kwargs) -> 'BrightnessIndex':
        """Build an index over a named preset from glyphdex_config.CHAR_SETS"""
        return cls(get_charset(name), **kwargs)

    # ------------------------------------------------------------------------
    # Validation and brightness
    # ------------------------------------------------------------------------

    @staticmethod
    def _check_char(char) -> str:
        if not isinstance(char, str) or len(char) != 1:
            raise InvalidCharsetError(f"Expected a single character, got {char!r}")
        if not is_printable(char):
            raise InvalidCharsetError(f"Character U+{ord(char):04X} has no printable glyph")
        return char

    def _check_charset(self, charset: Iterable[str]) -> List[str]:
        chars = []
        seen = set()
        for char in charset:
            self._check_char(char)
            if char in seen:
                logger.debug(f"Duplicate character {char!r} collapsed")
                continue
            seen.add(char)
            chars.append(char)
        if not chars:
            raise InvalidCharsetError("Character set is empty; no brightness range to normalize against")
        return chars

    def _raw_brightness(self, char: str) -> float:
        return cell_brightness(self._rasterize(char), self._grid_shape)

    def _normalize(self, raw: float, low: float, high: float) -> float:
        if high == low:
            if self.config.degenerate_policy is DegeneratePolicy.RAISE:
                raise DegenerateRangeError(
                    f"All characters share raw brightness {low}; cannot normalize")
            return self.config.degenerate_value
        return (raw - low) / (high - low)

    # ------------------------------------------------------------------------
    # Normalized index maintenance
    # ------------------------------------------------------------------------

    def _build_normalized(self, order: List[Tuple[float, str]]) -> Tuple[List[float], Dict[float, List[str]]]:
        low, high = order[0][0], order[-1][0]
        buckets: Dict[float, List[str]] = {}
        for raw, char in order:
            buckets.setdefault(self._normalize(raw, low, high), []).append(char)
        for chars in buckets.values():
            chars.sort()
        return sorted(buckets), buckets

    def _commit_rebuild(self, order: List[Tuple[float, str]]):
        """Replace both indexes with ones derived from order; unchanged on error"""
        keys, buckets = self._build_normalized(order)
        self._order = order
        self._base = {char: raw for raw, char in order}
        self._keys = keys
        self._buckets = buckets
        self.stats['rebuilds'] += 1
        logger.debug(f"Normalized index rebuilt: {len(order)} characters, {len(keys)} levels")

    def _bucket_add(self, key: float, char: str):
        chars = self._buckets.get(key)
        if chars is None:
            bisect.insort(self._keys, key)
            self._buckets[key] = [char]
        else:
            bisect.insort(chars, char)

    def _bucket_remove(self, key: float, char: str):
        chars = self._buckets[key]
        chars.remove(char)
        if not chars:
            del self._buckets[key]
            del self._keys[bisect.bisect_left(self._keys, key)]

    def rebuild(self):
        """Recompute the normalized index from the base index"""
        self._commit_rebuild(list(self._order))

    # ------------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------------

    def add(self, char: str):
        """
        Add a character, or refresh one already present.

        A raw brightness strictly outside the current range, or a refreshed
        character that held an extreme, triggers a full rebuild; otherwise
        only the character's own bucket changes.

        Raises:
            InvalidCharsetError: If char is not a single printable character
            DegenerateRangeError: If the rebuild would collapse the range
                under the RAISE policy (index left unchanged)
        """
        self._check_char(char)
        raw = self._raw_brightness(char)
        old = self._base.get(char)
        if old == raw:
            self.stats['unchanged_adds'] += 1
            logger.debug(f"add({char!r}): already indexed at {raw:.4f}")
            return

        low, high = self.min_brightness(), self.max_brightness()
        if raw < low or raw > high or old in (low, high):
            order = [entry for entry in self._order if entry[1] != char]
            bisect.insort(order, (raw, char))
            self._commit_rebuild(order)
            logger.debug(f"add({char!r}): raw {raw:.4f} changed the range, rebuilt")
            return

        if old is not None:
            del self._order[bisect.bisect_left(self._order, (old, char))]
            self._bucket_remove(self._normalize(old, low, high), char)
        bisect.insort(self._order, (raw, char))
        self._base[char] = raw
        self._bucket_add(self._normalize(raw, low, high), char)
        self.stats['incremental_adds'] += 1
        logger.debug(f"add({char!r}): raw {raw:.4f} inserted incrementally")

    def remove(self, char: str):
        """
        Remove a character.

        Removing a character that holds the minimum or maximum triggers a
        full rebuild; otherwise only its bucket changes, and an emptied
        bucket is dropped.

        Raises:
            CharacterNotFoundError: If char is absent and strict_remove is set
                (a logged no-op otherwise)
            InvalidCharsetError: If char is the last character in the index
            DegenerateRangeError: If the rebuild would collapse the range
                under the RAISE policy (index left unchanged)
        """
        raw = self._base.get(char)
        if raw is None:
            if self.config.strict_remove:
                raise CharacterNotFoundError(char)
            logger.debug(f"remove({char!r}): not indexed, ignored")
            return
        if len(self._base) == 1:
            raise InvalidCharsetError(f"Cannot remove {char!r}: it is the last character in the index")

        low, high = self.min_brightness(), self.max_brightness()
        if raw == low or raw == high:
            order = [entry for entry in self._order if entry[1] != char]
            self._commit_rebuild(order)
            logger.debug(f"remove({char!r}): extreme removed, rebuilt")
            return

        del self._order[bisect.bisect_left(self._order, (raw, char))]
        del self._base[char]
        self._bucket_remove(self._normalize(raw, low, high), char)
        self.stats['incremental_removes'] += 1
        logger.debug(f"remove({char!r}): removed incrementally")

    # ------------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------------

    def lookup(self, brightness: float) -> str:
        """
        Get the character whose normalized brightness is closest.

        Args:
            brightness: Requested brightness, normally in [0, 1]; values
                outside clamp to the darkest or brightest character

        Returns:
            The matching character

        Raises:
            ValueError: If brightness is NaN
        """
        value = float(brightness)
        if math.isnan(value):
            raise ValueError("Cannot look up a NaN brightness")

        keys = self._keys
        i = bisect.bisect_left(keys, value)
        ceiling = keys[i] if i < len(keys) else None
        j = bisect.bisect_right(keys, value) - 1
        floor = keys[j] if j >= 0 else None

        if floor is None:
            closest = ceiling
        elif ceiling is None:
            closest = floor
        else:
            closest = ceiling if abs(ceiling - value) < abs(floor - value) else floor
        return self._buckets[closest][0]

    def lookup_array(self, values) -> np.ndarray:
        """
        Vectorized lookup with the same rules as lookup().

        Args:
            values: Array-like of brightness values, any shape

        Returns:
            Array of single-character strings with the shape of values
        """
        values = np.asarray(values, dtype=np.float64)
        if np.isnan(values).any():
            raise ValueError("Cannot look up a NaN brightness")

        keys = np.asarray(self._keys, dtype=np.float64)
        chars = np.array([self._buckets[key][0] for key in self._keys])
        last = len(keys) - 1

        ceiling_idx = np.searchsorted(keys, values, side='left')
        floor_idx = np.searchsorted(keys, values, side='right') - 1
        has_ceiling = ceiling_idx <= last
        has_floor = floor_idx >= 0
        ceiling_idx = np.minimum(ceiling_idx, last)
        floor_idx = np.maximum(floor_idx, 0)

        ceiling_distance = np.where(has_ceiling, np.abs(keys[ceiling_idx] - values), np.inf)
        floor_distance = np.where(has_floor, np.abs(keys[floor_idx] - values), np.inf)
        use_ceiling = has_ceiling & (~has_floor | (ceiling_distance < floor_distance))
        return chars[np.where(use_ceiling, ceiling_idx, floor_idx)]

    # ------------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------------

    def min_brightness(self) -> float:
        """Lowest raw brightness in the index"""
        return self._order[0][0]

    def max_brightness(self) -> float:
        """Highest raw brightness in the index"""
        return self._order[-1][0]

    def min_char(self) -> str:
        """Darkest character (lowest code among equals)"""
        return self._order[0][1]

    def max_char(self) -> str:
        """Brightest character (highest code among equals)"""
        return self._order[-1][1]

    def base_brightness(self, char: str) -> float:
        try:
            return self._base[char]
        except KeyError:
            raise CharacterNotFoundError(char) from None

    def normalized_brightness(self, char: str) -> float:
        raw = self.base_brightness(char)
        return self._normalize(raw, self.min_brightness(), self.max_brightness())

    def items(self) -> Iterator[Tuple[str, float]]:
        """(character, raw brightness) pairs in brightness order"""
        for raw, char in self._order:
            yield char, raw

    def snapshot(self) -> Dict[float, Tuple[str, ...]]:
        """Copy of the normalized index as {key: characters}"""
        return {key: tuple(self._buckets[key]) for key in self._keys}

    def __len__(self) -> int:
        return len(self._base)

    def __contains__(self, char) -> bool:
        return char in self._base

    def __iter__(self) -> Iterator[str]:
        return (char for _, char in self._order)

    def __repr__(self) -> str:
        return (f"BrightnessIndex({len(self._base)} chars, "
                f"{self.min_char()!r}..{self.max_char()!r})")

    def get_stats(self) -> Dict[str, int]:
        """
        Get index statistics.

        Returns:
            Dictionary with rebuilds, incremental_adds, incremental_removes,
            unchanged_adds, characters and levels
        """
        stats = self.stats.copy()
        stats['characters'] = len(self._base)
        stats['levels'] = len(self._keys)
        return stats
