#!/usr/bin/env python3
"""
🐧 Glyphdex - Command Line Renderer
===================================
Copyright (c) 2025 PNGN-Tec LLC

Renders an image as text using a brightness index over a character set.

    glyphdex photo.png -w 100 -c fine
    glyphdex logo.png --chars " .oO@" --add "#" --remove "o"
    glyphdex --list-charsets
"""

import argparse
import dataclasses
import logging
import sys
from typing import List, Optional

from glyphdex_config import (
    CHAR_SETS,
    DEFAULT_CHAR_SET,
    get_charset,
    get_config,
)
from glyphdex_glyphs import GlyphdexError, GlyphRasterizer
from glyphdex_index import BrightnessIndex
from glyphdex_render import AsciiRenderer

logger = logging.getLogger('glyphdex.cli')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='glyphdex',
        description='Render an image as text by matching block brightness to glyph brightness',
    )
    parser.add_argument('image', nargs='?', help='Image file to render')
    parser.add_argument('-w', '--width', type=int, default=None, metavar='COLUMNS',
                        help='Output width in characters (default: config columns)')

    charset = parser.add_mutually_exclusive_group()
    charset.add_argument('-c', '--charset', default=DEFAULT_CHAR_SET, choices=sorted(CHAR_SETS),
                         help=f'Character set preset (default: {DEFAULT_CHAR_SET})')
    charset.add_argument('--chars', help='Explicit characters to use instead of a preset')

    parser.add_argument('--add', default='', metavar='CHARS',
                        help='Characters added to the set after it is built')
    parser.add_argument('--remove', default='', metavar='CHARS',
                        help='Characters removed from the set after it is built')
    parser.add_argument('--font', metavar='PATH', help='TrueType font used to rasterize glyphs')
    parser.add_argument('--invert', action='store_true',
                        help='Count background cells as bright (dark text on light output)')
    parser.add_argument('-o', '--output', metavar='FILE', help='Write text here instead of stdout')
    parser.add_argument('--list-charsets', action='store_true', help='List presets and exit')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase log verbosity (-v info, -vv debug)')
    return parser


def configure_logging(verbosity: int):
    config = get_config()
    if verbosity >= 2 or config.debug_mode:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.getLevelName(config.log_level.upper())
    logging.basicConfig(level=level, format='%(asctime)s %(name)s %(levelname)s: %(message)s')


def list_charsets() -> str:
    lines = []
    for key in sorted(CHAR_SETS):
        preset = CHAR_SETS[key]
        lines.append(f"{key:<14} {preset['name']:<28} {preset['chars']!r}")
    return '\n'.join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.list_charsets:
        print(list_charsets())
        return 0
    if not args.image:
        parser.error('an image file is required unless --list-charsets is given')

    config = get_config()
    glyph_config = dataclasses.replace(
        config.glyph,
        font_path=args.font or config.glyph.font_path,
        invert=args.invert or config.glyph.invert,
    )

    try:
        rasterizer = GlyphRasterizer(config=glyph_config)
        chars = args.chars if args.chars is not None else get_charset(args.charset)
        index = BrightnessIndex(chars, rasterizer=rasterizer, config=config.index)
        for char in args.add:
            index.add(char)
        for char in args.remove:
            index.remove(char)
        text = AsciiRenderer(index, config.render).render_file(args.image, args.width)
    except (GlyphdexError, OSError, ValueError) as e:
        print(f"glyphdex: error: {e}", file=sys.stderr)
        return 1

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(text + '\n')
        logger.info(f"Wrote {args.output}")
    else:
        print(text)
    return 0


if __name__ == '__main__':
    sys.exit(main())
