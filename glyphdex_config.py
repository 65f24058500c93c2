#!/usr/bin/env python3
"""
🐧 Glyphdex - Configuration Module
==================================
Copyright (c) 2025 PNGN-Tec LLC

Centralized Configuration System
=================================
Complete configuration for glyph brightness indexing including:
- Glyph grid dimensions and font settings
- Named character set presets
- Index policies (degenerate ranges, strict removal)
- Renderer settings (columns, cell aspect, resampling)
- Environment overrides and runtime reloading

Configuration Overview
======================
Every section is a dataclass with a validate() method that raises
ValueError on bad values. ConfigurationManager holds the process-wide
SystemConfig, applies GLYPHDEX_* environment overrides once at startup and
notifies registered callbacks whenever the configuration is reloaded.
"""

import threading
import logging
import os
from typing import Dict, Any, List, Optional, Callable
from dataclasses import dataclass, field
from enum import Enum

# Configure logging
logger = logging.getLogger('glyphdex.config')

# ============================================================================
# GLYPH GRID DIMENSIONS
# ============================================================================

GLYPH_GRID_WIDTH = 16    # Cells wide
GLYPH_GRID_HEIGHT = 16   # Cells tall
GLYPH_FONT_SIZE = 14     # Points, fits a 16x16 cell with DejaVu Sans Mono
GLYPH_THRESHOLD = 128    # Grayscale level at which a cell counts as "on"

# ============================================================================
# FONT SEARCH
# ============================================================================

# Tried in order, rendered at GlyphConfig.font_size. Bare names are resolved in the
# local fonts/ directory first, then by Pillow's system font search.
FONT_CANDIDATES: List[str] = [
    "DejaVuSansMono.ttf",
    "unifont.ttf",
    "LiberationMono-Regular.ttf",
]

# Absolute locations checked after the candidates above
SYSTEM_FONT_PATHS: List[str] = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/TTF/DejaVuSansMono.ttf",
    "/data/data/com.termux/files/usr/share/fonts/TTF/DejaVuSansMono.ttf",
]

# ============================================================================
# CHARACTER SET PRESETS
# ============================================================================

CHAR_SETS: Dict[str, Dict[str, str]] = {
    'standard': {
        'chars': " .:-=+*#%@",
        'name': 'Standard ASCII'
    },
    'standard_alt': {
        'chars': " .,:ilwW",
        'name': 'Standard ASCII Alternative'
    },
    'fine': {
        'chars': " `^\",:;Il!i~+_-?][}{1)(|\\/tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$",
        'name': 'Fine Detail ASCII'
    },
    'letters': {
        'chars': "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ",
        'name': 'Latin Letters'
    },
    'digits': {
        'chars': " 0123456789",
        'name': 'Digits'
    },
    'gradient': {
        'chars': " ░▒▓█",
        'name': 'Shaded Blocks'
    },
    'blocks': {
        'chars': " ▏▎▍▌▋▊▉█",
        'name': 'Block Elements'
    },
    'particles': {
        'chars': " ·∙•◦○◯⊙⊚⊛",
        'name': 'Particles'
    },
}

DEFAULT_CHAR_SET = 'standard'


def get_charset(name: str) -> str:
    """
    Get the characters of a named preset.

    Args:
        name: Preset key from CHAR_SETS

    Returns:
        Preset characters as a string

    Raises:
        KeyError: If the preset does not exist
    """
    try:
        return CHAR_SETS[name]['chars']
    except KeyError:
        raise KeyError(f"Unknown character set '{name}' "
                       f"(available: {', '.join(sorted(CHAR_SETS))})") from None

# ============================================================================
# CONFIGURATION ENUMS
# ============================================================================

class DegeneratePolicy(Enum):
    """Handling of a zero-width brightness range (max == min)"""
    COLLAPSE = "collapse"
    RAISE = "raise"


class ScalingAlgorithm(Enum):
    """Image scaling algorithms"""
    NEAREST = "nearest"
    BOX = "box"
    BILINEAR = "bilinear"
    BICUBIC = "bicubic"
    LANCZOS = "lanczos"


# ============================================================================
# GLYPH CONFIGURATION
# ============================================================================

@dataclass
class GlyphConfig:
    """
    Glyph rasterization parameters.

    Attributes:
        grid_width: Glyph grid width in cells
        grid_height: Glyph grid height in cells
        font_size: Font size in points
        font_path: Explicit font file (search chain used if None)
        threshold: Grayscale level (0-255) at which a cell is on
        invert: Count background cells instead of ink cells
        cache_size: Maximum number of cached glyph grids
    """

    grid_width: int = GLYPH_GRID_WIDTH
    grid_height: int = GLYPH_GRID_HEIGHT
    font_size: int = GLYPH_FONT_SIZE
    font_path: Optional[str] = None
    threshold: int = GLYPH_THRESHOLD
    invert: bool = False
    cache_size: int = 512

    @property
    def grid_area(self) -> int:
        """Number of cells in a glyph grid"""
        return self.grid_width * self.grid_height

    def validate(self) -> bool:
        """Validate glyph configuration"""
        if self.grid_width <= 0 or self.grid_height <= 0:
            raise ValueError("Glyph grid dimensions must be positive")
        if self.font_size <= 0:
            raise ValueError("Font size must be positive")
        if not 0 < self.threshold <= 255:
            raise ValueError("Threshold must be within 1-255")
        if self.cache_size < 0:
            raise ValueError("Glyph cache size cannot be negative")
        return True


# ============================================================================
# INDEX CONFIGURATION
# ============================================================================

@dataclass
class IndexConfig:
    """Brightness index policies"""

    degenerate_policy: DegeneratePolicy = DegeneratePolicy.COLLAPSE
    # Normalized value every character takes when max == min under COLLAPSE
    degenerate_value: float = 0.0
    # Raise CharacterNotFoundError when removing an absent character
    strict_remove: bool = True

    def validate(self) -> bool:
        """Validate index configuration"""
        if not isinstance(self.degenerate_policy, DegeneratePolicy):
            raise ValueError(f"Unknown degenerate policy: {self.degenerate_policy!r}")
        if not 0.0 <= self.degenerate_value <= 1.0:
            raise ValueError("Degenerate value must be within [0, 1]")
        return True


# ============================================================================
# RENDER CONFIGURATION
# ============================================================================

@dataclass
class RenderConfig:
    """Image-to-text rendering configuration"""

    columns: int = 80
    # Character cell width / height, used to correct the row count
    char_aspect: float = 0.5
    algorithm: ScalingAlgorithm = ScalingAlgorithm.BOX

    def validate(self) -> bool:
        """Validate render configuration"""
        if self.columns <= 0:
            raise ValueError("Column count must be positive")
        if self.char_aspect <= 0:
            raise ValueError("Character aspect must be positive")
        return True


# ============================================================================
# MAIN CONFIGURATION CLASS
# ============================================================================

@dataclass
class SystemConfig:
    """Complete system configuration"""

    # Sub-configurations
    glyph: GlyphConfig = field(default_factory=GlyphConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    render: RenderConfig = field(default_factory=RenderConfig)

    # System-wide settings
    debug_mode: bool = False
    log_level: str = "WARNING"

    def validate(self) -> bool:
        """Validate entire configuration"""
        self.glyph.validate()
        self.index.validate()
        self.render.validate()
        if logging.getLevelName(self.log_level.upper()) not in (
                logging.DEBUG, logging.INFO, logging.WARNING,
                logging.ERROR, logging.CRITICAL):
            raise ValueError(f"Unknown log level: {self.log_level}")
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Flatten configuration for logging and diagnostics"""
        return {
            'grid': f"{self.glyph.grid_width}x{self.glyph.grid_height}",
            'font_path': self.glyph.font_path,
            'font_size': self.glyph.font_size,
            'threshold': self.glyph.threshold,
            'invert': self.glyph.invert,
            'degenerate_policy': self.index.degenerate_policy.value,
            'strict_remove': self.index.strict_remove,
            'columns': self.render.columns,
            'algorithm': self.render.algorithm.value,
            'log_level': self.log_level,
        }


# ============================================================================
# CONFIGURATION MANAGER (SINGLETON)
# ============================================================================

def _env_flag(value: str) -> bool:
    return value.lower() in ('true', '1', 'yes')


class ConfigurationManager:
    """
    Singleton configuration manager with runtime reloading.
    Thread-safe management of global configuration with change notifications.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._config = SystemConfig()
        self._callbacks = []
        self._config_lock = threading.RLock()
        self._load_environment_overrides(self._config)
        self._config.validate()

        self._initialized = True
        logger.info("Configuration manager initialized")

    @staticmethod
    def _load_environment_overrides(config: SystemConfig):
        """Load configuration overrides from environment variables"""
        env = os.environ

        # Glyph settings
        if 'GLYPHDEX_GRID_WIDTH' in env:
            config.glyph.grid_width = int(env['GLYPHDEX_GRID_WIDTH'])
        if 'GLYPHDEX_GRID_HEIGHT' in env:
            config.glyph.grid_height = int(env['GLYPHDEX_GRID_HEIGHT'])
        if 'GLYPHDEX_FONT_PATH' in env:
            config.glyph.font_path = env['GLYPHDEX_FONT_PATH'] or None
        if 'GLYPHDEX_FONT_SIZE' in env:
            config.glyph.font_size = int(env['GLYPHDEX_FONT_SIZE'])
        if 'GLYPHDEX_THRESHOLD' in env:
            config.glyph.threshold = int(env['GLYPHDEX_THRESHOLD'])
        if 'GLYPHDEX_INVERT' in env:
            config.glyph.invert = _env_flag(env['GLYPHDEX_INVERT'])
        if 'GLYPHDEX_CACHE_SIZE' in env:
            config.glyph.cache_size = int(env['GLYPHDEX_CACHE_SIZE'])

        # Index settings
        if 'GLYPHDEX_DEGENERATE_POLICY' in env:
            config.index.degenerate_policy = DegeneratePolicy(
                env['GLYPHDEX_DEGENERATE_POLICY'].lower())
        if 'GLYPHDEX_STRICT_REMOVE' in env:
            config.index.strict_remove = _env_flag(env['GLYPHDEX_STRICT_REMOVE'])

        # Render settings
        if 'GLYPHDEX_COLUMNS' in env:
            config.render.columns = int(env['GLYPHDEX_COLUMNS'])

        # Debug mode
        if 'GLYPHDEX_DEBUG' in env:
            config.debug_mode = _env_flag(env['GLYPHDEX_DEBUG'])
        if 'GLYPHDEX_LOG_LEVEL' in env:
            config.log_level = env['GLYPHDEX_LOG_LEVEL'].upper()

    @property
    def config(self) -> SystemConfig:
        """Get current configuration"""
        with self._config_lock:
            return self._config

    def reload(self, new_config: Optional[SystemConfig] = None) -> bool:
        """
        Reload configuration and notify callbacks.

        Args:
            new_config: New configuration to apply (rebuilt from env if None)

        Returns:
            True if reload successful
        """
        with self._config_lock:
            old_config = self._config

            try:
                if new_config is None:
                    new_config = SystemConfig()
                    self._load_environment_overrides(new_config)
                new_config.validate()
            except ValueError as e:
                logger.error(f"Configuration reload failed: {e}")
                return False

            self._config = new_config
            self._notify_callbacks(old_config, new_config)

            logger.info("Configuration reloaded successfully")
            return True

    def register_callback(self, callback: Callable[[SystemConfig, SystemConfig], None]):
        """
        Register callback for configuration changes.

        Args:
            callback: Function called with (old_config, new_config)
        """
        self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable):
        """Remove a registered callback"""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self, old_config: SystemConfig, new_config: SystemConfig):
        """Notify all registered callbacks of configuration change"""
        for callback in list(self._callbacks):
            try:
                callback(old_config, new_config)
            except Exception as e:
                logger.error(f"Callback notification failed: {e}")


# ============================================================================
# PUBLIC API FUNCTIONS
# ============================================================================

_manager = ConfigurationManager()

def get_config() -> SystemConfig:
    """Get current system configuration"""
    return _manager.config

def reload_config(new_config: Optional[SystemConfig] = None) -> bool:
    """Reload system configuration"""
    return _manager.reload(new_config)

def register_config_callback(callback: Callable[[SystemConfig, SystemConfig], None]):
    """Register for configuration change notifications"""
    _manager.register_callback(callback)

def unregister_config_callback(callback: Callable):
    """Unregister a configuration change callback"""
    _manager.unregister_callback(callback)

def get_glyph_config() -> GlyphConfig:
    """Get glyph configuration"""
    return _manager.config.glyph

def get_index_config() -> IndexConfig:
    """Get index configuration"""
    return _manager.config.index

def get_render_config() -> RenderConfig:
    """Get render configuration"""
    return _manager.config.render
