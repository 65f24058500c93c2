"""Tests for the image renderer and the command line front end."""

import numpy as np
import pytest
from PIL import Image

from glyphdex_cli import list_charsets, main
from glyphdex_config import IndexConfig, RenderConfig, ScalingAlgorithm
from glyphdex_index import BrightnessIndex
from glyphdex_render import (
    AsciiRenderer,
    grid_size,
    image_to_brightness_blocks,
    render_blocks,
)


@pytest.fixture
def index(rasterizer):
    # z: 0.0, m: 0.5, c: 1.0
    return BrightnessIndex("zmc", rasterizer=rasterizer, config=IndexConfig())


def horizontal_gradient(width=64, height=32):
    row = np.linspace(0, 255, width).astype(np.uint8)
    return Image.fromarray(np.tile(row, (height, 1)), mode='L')


class TestGridSize:
    def test_aspect_correction(self):
        assert grid_size(200, 100, 40, 0.5) == (40, 10)
        assert grid_size(100, 100, 10, 1.0) == (10, 10)

    def test_minimum_one_row(self):
        assert grid_size(1000, 1, 10) == (10, 1)

    def test_invalid_image(self):
        with pytest.raises(ValueError):
            grid_size(0, 10, 10)


class TestBrightnessBlocks:
    def test_uniform_images(self):
        black = Image.new('L', (32, 32), 0)
        white = Image.new('RGB', (32, 32), (255, 255, 255))
        assert np.all(image_to_brightness_blocks(black, 8) == 0.0)
        assert np.all(image_to_brightness_blocks(white, 8) == 1.0)

    def test_shape_and_range(self):
        blocks = image_to_brightness_blocks(horizontal_gradient(), 16, 0.5)
        assert blocks.shape == (4, 16)
        assert blocks.min() >= 0.0 and blocks.max() <= 1.0
        assert np.all(np.diff(blocks[0]) >= 0)

    def test_transparent_areas_are_dark(self):
        image = Image.new('RGBA', (16, 16), (255, 255, 255, 0))
        blocks = image_to_brightness_blocks(image, 4, 1.0, ScalingAlgorithm.NEAREST)
        assert np.all(blocks == 0.0)


class TestRenderBlocks:
    def test_maps_each_block(self, index):
        lines = render_blocks(index, [[0.0, 0.5, 1.0], [0.2, 0.3, 0.8]])
        assert lines == ['zmc', 'zmc']

    def test_requires_2d(self, index):
        with pytest.raises(ValueError):
            render_blocks(index, [0.0, 1.0])


class TestAsciiRenderer:
    def test_gradient_runs_dark_to_bright(self, index):
        renderer = AsciiRenderer(index, RenderConfig(columns=12, char_aspect=0.5))
        text = renderer.render(horizontal_gradient(48, 24))
        lines = text.splitlines()
        assert len(lines) == 3
        for line in lines:
            assert len(line) == 12
            assert line[0] == 'z'
            assert line[-1] == 'c'
            assert 'm' in line
        assert renderer.get_stats()['renders_completed'] == 1

    def test_render_file(self, index, tmp_path):
        path = tmp_path / 'white.png'
        Image.new('RGB', (20, 20), (255, 255, 255)).save(path)
        renderer = AsciiRenderer(index, RenderConfig(columns=5, char_aspect=1.0))
        assert renderer.render_file(path) == '\n'.join(['ccccc'] * 5)

    def test_columns_override(self, index):
        renderer = AsciiRenderer(index, RenderConfig(columns=80, char_aspect=1.0))
        text = renderer.render(Image.new('L', (10, 10), 0), columns=4)
        assert text == '\n'.join(['zzzz'] * 4)

    def test_stats_before_render(self, index):
        assert AsciiRenderer(index, RenderConfig()).get_stats() == {'status': 'No renders yet'}


class TestCli:
    def test_list_charsets(self, capsys):
        assert main(['--list-charsets']) == 0
        out = capsys.readouterr().out
        assert 'standard' in out
        assert list_charsets() in out

    def test_render_black_and_white(self, tmp_path, capsys):
        black = tmp_path / 'black.png'
        white = tmp_path / 'white.png'
        Image.new('L', (16, 16), 0).save(black)
        Image.new('L', (16, 16), 255).save(white)

        assert main([str(black), '-w', '4', '--chars', ' @']) == 0
        assert capsys.readouterr().out.splitlines()[0] == '    '
        assert main([str(white), '-w', '4', '--chars', ' @']) == 0
        assert capsys.readouterr().out.splitlines()[0] == '@@@@'

    def test_output_file(self, tmp_path):
        image = tmp_path / 'white.png'
        out = tmp_path / 'out.txt'
        Image.new('L', (16, 16), 255).save(image)
        assert main([str(image), '-w', '3', '--chars', ' @', '-o', str(out)]) == 0
        assert out.read_text(encoding='utf-8').splitlines()[0] == '@@@'

    def test_remove_absent_character_fails(self, tmp_path, capsys):
        image = tmp_path / 'black.png'
        Image.new('L', (8, 8), 0).save(image)
        assert main([str(image), '--chars', ' @', '--remove', 'q']) == 1
        assert 'error' in capsys.readouterr().err

    def test_missing_image_file(self, tmp_path, capsys):
        assert main([str(tmp_path / 'missing.png'), '--chars', ' @']) == 1
        assert 'error' in capsys.readouterr().err

    def test_image_required(self):
        with pytest.raises(SystemExit):
            main([])
