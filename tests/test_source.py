"""Unit tests for height sample sources.

Tests cover:
- ArrayHeightSource dimensions and sample access
- HeightMapReader normalization for 8-bit, 16-bit, float and colour images
- Missing files and undersized images
- read_samples for arbitrary sources
"""

import numpy as np
import pytest
from PIL import Image as PILImage


class TestArrayHeightSource:
    """Tests for in-memory sample grids."""

    def test_dimensions(self):
        from src.python.heightmap.source import ArrayHeightSource

        source = ArrayHeightSource(np.zeros((3, 5)))

        assert source.image_height == 3
        assert source.image_width == 5

    def test_intensity_at(self):
        from src.python.heightmap.source import ArrayHeightSource

        source = ArrayHeightSource([[0.0, 1.5], [-2.0, 3.25]])

        assert source.intensity_at(1, 0) == -2.0
        assert source.intensity_at(0, 1) == 1.5

    def test_samples_are_float32(self):
        from src.python.heightmap.source import ArrayHeightSource

        source = ArrayHeightSource(np.arange(4, dtype=np.int64).reshape(2, 2))

        assert source.samples.dtype == np.float32

    def test_non_2d_raises(self):
        from src.python.heightmap.source import ArrayHeightSource

        with pytest.raises(ValueError, match="2D"):
            ArrayHeightSource(np.zeros(5))


class TestHeightMapReader:
    """Tests for loading height images with Pillow."""

    def test_8bit_normalized(self, tmp_path):
        from src.python.heightmap.source import HeightMapReader

        path = tmp_path / "gray.png"
        PILImage.fromarray(np.array([[0, 255, 51], [102, 0, 255]], dtype=np.uint8)).save(path)

        reader = HeightMapReader(path)

        assert reader.image_width == 3
        assert reader.image_height == 2
        assert reader.intensity_at(0, 1) == pytest.approx(1.0)
        assert reader.intensity_at(0, 2) == pytest.approx(0.2)
        assert reader.intensity_at(1, 0) == pytest.approx(0.4)
        assert reader.path == path

    def test_16bit_normalized(self, tmp_path):
        from src.python.heightmap.source import HeightMapReader

        path = tmp_path / "deep.png"
        PILImage.fromarray(np.array([[0, 65535], [32768, 1000]], dtype=np.uint16)).save(path)

        reader = HeightMapReader(path)

        assert reader.intensity_at(0, 0) == pytest.approx(0.0)
        assert reader.intensity_at(0, 1) == pytest.approx(1.0)
        assert reader.intensity_at(1, 0) == pytest.approx(32768 / 65535, rel=1e-5)

    def test_float_image_keeps_raw_elevation(self, tmp_path):
        from src.python.heightmap.source import HeightMapReader

        path = tmp_path / "elevation.tiff"
        PILImage.fromarray(np.array([[12.5, -3.0], [0.0, 100.0]], dtype=np.float32)).save(path)

        reader = HeightMapReader(path)

        assert reader.intensity_at(0, 0) == pytest.approx(12.5)
        assert reader.intensity_at(1, 1) == pytest.approx(100.0)

    def test_color_image_uses_luminance(self, tmp_path):
        from src.python.heightmap.source import HeightMapReader

        path = tmp_path / "color.png"
        rgb = np.full((2, 2, 3), 255, dtype=np.uint8)
        rgb[0, 0] = (0, 0, 0)
        PILImage.fromarray(rgb).save(path)

        reader = HeightMapReader(path)

        assert reader.intensity_at(0, 0) == pytest.approx(0.0)
        assert reader.intensity_at(1, 1) == pytest.approx(1.0)

    def test_missing_file(self, tmp_path):
        from src.python.heightmap.source import HeightMapReader

        with pytest.raises(FileNotFoundError):
            HeightMapReader(tmp_path / "missing.png")

    def test_single_row_image_raises(self, tmp_path):
        from src.python.heightmap.source import HeightMapReader

        path = tmp_path / "line.png"
        PILImage.fromarray(np.zeros((1, 8), dtype=np.uint8)).save(path)

        with pytest.raises(ValueError, match="2x2"):
            HeightMapReader(path)


class TestReadSamples:
    """Tests for reading complete sample grids."""

    def test_reads_every_sample_of_custom_source(self):
        from src.python.heightmap.source import read_samples

        class GridSource:
            image_width = 4
            image_height = 3

            def intensity_at(self, row, col):
                return row * 10.0 + col

        samples = read_samples(GridSource())

        assert samples.shape == (3, 4)
        assert samples[2, 3] == 23.0
        assert samples.dtype == np.float32

    def test_array_source_fast_path(self):
        from src.python.heightmap.source import ArrayHeightSource, read_samples

        source = ArrayHeightSource(np.ones((2, 3)))

        assert read_samples(source) is source.samples
