"""Tests for the preview module.

This module tests the preview/display, preview/export and
preview/interactive functionality including:
- Gamma correction
- PNG export
- InteractivePreview data handling

Note: Tests avoid displaying actual windows by not calling show_preview
or run() in automated tests. The processing functions are tested directly.
"""

import os
import tempfile

import numpy as np
import pytest
from PIL import Image as PILImage


def _rendered_plane(width=16, height=16):
    """A renderer that has rendered a flat plane seen from above."""
    from src.python.camera.pinhole import PinholeCamera
    from src.python.core.renderer import HeightMapRenderer, RenderSettings
    from src.python.heightmap.heightmap import HeightMap

    heightmap = HeightMap.from_array(
        np.zeros((2, 2)), position=(-5.0, 0.0, -5.0), width=10.0, height=1.0, depth=10.0
    )
    renderer = HeightMapRenderer(heightmap, RenderSettings(width=width, height=height))
    renderer.set_camera(
        PinholeCamera(
            lookfrom=(0.0, 3.0, 0.0),
            lookat=(0.0, 0.0, 0.0),
            vup=(0.0, 0.0, -1.0),
            vfov=60.0,
            aspect_ratio=width / height,
        )
    )
    renderer.render()
    return renderer


class TestApplyGamma:
    """Test gamma correction."""

    def test_gamma_1_no_change(self):
        """Test that gamma=1.0 produces no change."""
        from src.python.preview.display import apply_gamma

        image = np.random.rand(10, 10, 3).astype(np.float32)
        result = apply_gamma(image, gamma=1.0)

        assert np.allclose(result, image)

    def test_gamma_brightens_midtones(self):
        """Test that gamma correction brightens midtones."""
        from src.python.preview.display import apply_gamma

        image = np.full((10, 10, 3), 0.5, dtype=np.float32)
        result = apply_gamma(image, gamma=2.2)

        # 0.5^(1/2.2) ~ 0.73
        assert np.all(result > 0.5)

    def test_gamma_preserves_black_and_white(self):
        """Test that gamma preserves 0 and 1 values."""
        from src.python.preview.display import apply_gamma

        image = np.array([[[0.0, 1.0, 0.5]]], dtype=np.float32)
        result = apply_gamma(image, gamma=2.2)

        assert np.isclose(result[0, 0, 0], 0.0)
        assert np.isclose(result[0, 0, 1], 1.0)

    def test_gamma_clamps_negative(self):
        """Test that gamma clamps negative values."""
        from src.python.preview.display import apply_gamma

        image = np.full((2, 2, 3), -0.5, dtype=np.float32)
        result = apply_gamma(image, gamma=2.2)

        assert np.all(result >= 0.0)

    @pytest.mark.parametrize("gamma", [0.0, -2.2])
    def test_non_positive_gamma_raises(self, gamma):
        from src.python.preview.display import apply_gamma

        with pytest.raises(ValueError, match="Gamma must be positive"):
            apply_gamma(np.zeros((2, 2, 3), dtype=np.float32), gamma=gamma)


class TestProcessImageForDisplay:
    """Test the full image processing pipeline."""

    def test_process_linear(self):
        from src.python.preview.display import process_image_for_display

        image = np.full((10, 10, 3), 0.5, dtype=np.float32)
        result = process_image_for_display(image, gamma=1.0)

        assert np.allclose(result, 0.5)

    def test_process_clamps_out_of_range(self):
        from src.python.preview.display import process_image_for_display

        image = np.array([[[-1.0, 0.25, 3.0]]], dtype=np.float32)
        result = process_image_for_display(image, gamma=1.0)

        assert np.allclose(result, [[[0.0, 0.25, 1.0]]])

    def test_process_does_not_modify_input(self):
        from src.python.preview.display import process_image_for_display

        image = np.full((4, 4, 3), 0.25, dtype=np.float32)
        process_image_for_display(image, gamma=2.0)

        assert np.allclose(image, 0.25)

    def test_process_output_always_valid(self):
        """Test that processed output is always in valid display range."""
        from src.python.preview.display import process_image_for_display

        image = np.random.rand(10, 10, 3).astype(np.float32) * 4.0 - 1.0
        result = process_image_for_display(image, gamma=2.2)

        assert result.dtype == np.float32
        assert np.all(result >= 0.0)
        assert np.all(result <= 1.0)
        assert not np.any(np.isnan(result))


class TestSavePng:
    """Test PNG export of a rendered frame."""

    def test_save_png_creates_file(self):
        """Test that save_png creates a valid PNG file."""
        from src.python.preview.export import save_png

        renderer = _rendered_plane(32, 16)

        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            filepath = f.name

        try:
            save_png(renderer, filepath, gamma=2.2)

            assert os.path.exists(filepath)

            img = PILImage.open(filepath)
            assert img.size == (32, 16)
            assert img.mode == "RGB"
        finally:
            if os.path.exists(filepath):
                os.remove(filepath)

    def test_saved_pixels_match_albedo(self):
        """Every pixel of a fully covered frame is the material colour."""
        from src.python.materials.material import DEFAULT_MATERIAL
        from src.python.preview.export import save_png

        renderer = _rendered_plane(8, 8)

        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            filepath = f.name

        try:
            save_png(renderer, filepath, gamma=1.0)

            pixels = np.asarray(PILImage.open(filepath))
            expected = np.round(np.array(DEFAULT_MATERIAL.albedo) * 255.0)
            assert np.all(pixels == expected.astype(np.uint8))
        finally:
            if os.path.exists(filepath):
                os.remove(filepath)


class TestSavePngFromArray:
    """Test PNG export from NumPy array."""

    def test_save_png_from_array(self):
        """Test saving a NumPy array as PNG."""
        from src.python.preview.export import save_png_from_array

        image = np.zeros((32, 64, 3), dtype=np.float32)
        image[:, :, 0] = np.linspace(0, 1, 64)  # Red gradient

        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            filepath = f.name

        try:
            save_png_from_array(image, filepath, gamma=2.2)

            assert os.path.exists(filepath)

            img = PILImage.open(filepath)
            assert img.size == (64, 32)  # PIL size is (width, height)
            assert img.mode == "RGB"
        finally:
            if os.path.exists(filepath):
                os.remove(filepath)

    def test_save_png_from_array_rejects_grayscale(self, tmp_path):
        from src.python.preview.export import save_png_from_array

        with pytest.raises(ValueError, match="Expected an"):
            save_png_from_array(np.zeros((8, 8), dtype=np.float32), tmp_path / "gray.png")


class TestImageToUint8:
    """Test conversion to uint8."""

    def test_image_to_uint8_output_type(self):
        """Test that output is uint8."""
        from src.python.preview.export import image_to_uint8

        image = np.random.rand(10, 10, 3).astype(np.float32)
        result = image_to_uint8(image, gamma=2.2)

        assert result.dtype == np.uint8
        assert result.shape == (10, 10, 3)

    def test_image_to_uint8_black_and_white(self):
        """Test uint8 conversion of black and white."""
        from src.python.preview.export import image_to_uint8

        image = np.array([[[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]]], dtype=np.float32)
        result = image_to_uint8(image, gamma=1.0)

        assert np.all(result[0, 0] == 0)
        assert np.all(result[0, 1] == 255)

    def test_image_to_uint8_rounds(self):
        from src.python.preview.export import image_to_uint8

        image = np.full((1, 1, 3), 0.5, dtype=np.float32)
        result = image_to_uint8(image, gamma=1.0)

        # 0.5 * 255 = 127.5 rounds to even
        assert np.all(result == 128)


class TestModuleExports:
    """Test that all expected symbols are exported from the module."""

    def test_display_exports(self):
        from src.python.preview import apply_gamma, process_image_for_display, show_preview

        assert callable(show_preview)
        assert callable(apply_gamma)
        assert callable(process_image_for_display)

    def test_export_exports(self):
        from src.python.preview import image_to_uint8, save_png, save_png_from_array

        assert callable(save_png)
        assert callable(save_png_from_array)
        assert callable(image_to_uint8)

    def test_interactive_preview_export(self):
        from src.python.preview import InteractivePreview

        assert InteractivePreview is not None
        assert callable(InteractivePreview)


class TestInteractivePreview:
    """Tests for the InteractivePreview class.

    Note: These tests avoid creating actual GUI windows by testing
    the initialization and data handling logic only.
    """

    def test_init_creates_display_field(self):
        """Test that initialization creates the display image field."""
        from src.python.preview.interactive import InteractivePreview

        preview = InteractivePreview(64, 48)

        assert preview.width == 64
        assert preview.height == 48
        # Shape should be (width, height) for Taichi field
        assert preview.display_image.shape == (64, 48)

    def test_init_defers_window_creation(self):
        """Test that window creation is deferred until run/show."""
        from src.python.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 32)

        assert preview._window is None
        assert preview._canvas is None
        assert preview._is_initialized is False

    def test_update_image_validates_shape(self):
        from src.python.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 24)

        wrong_shape = np.zeros((10, 10, 3), dtype=np.float32)
        with pytest.raises(ValueError, match="doesn't match expected"):
            preview.update_image(wrong_shape)

    def test_update_image_orientation(self):
        """Top-left of the NumPy image lands at the top-left of the field."""
        from src.python.preview.interactive import InteractivePreview

        preview = InteractivePreview(4, 3)

        image = np.zeros((3, 4, 3), dtype=np.float32)
        image[0, 0] = 1.0
        preview.update_image(image)

        result = preview.display_image.to_numpy()
        # Field origin is bottom-left, so the top row is j = height - 1
        assert np.allclose(result[0, 2], 1.0)
        assert np.isclose(result.sum(), 3.0)

    def test_update_image_from_renderer_field(self):
        from src.python.preview.interactive import InteractivePreview

        renderer = _rendered_plane(8, 8)
        preview = InteractivePreview(8, 8)
        preview.update_image_from_field(renderer.color_buffer)

        assert np.allclose(preview.display_image.to_numpy(), renderer.color_buffer.to_numpy())

    def test_run_renderer_size_mismatch_raises(self):
        from src.python.preview.interactive import InteractivePreview

        renderer = _rendered_plane(8, 8)
        preview = InteractivePreview(16, 8)

        with pytest.raises(ValueError, match="doesn't match"):
            preview.run_renderer(renderer)

        # The window is never opened for a mismatched renderer
        assert preview._window is None

    def test_is_display_available_returns_bool(self):
        from src.python.preview.interactive import InteractivePreview

        result = InteractivePreview.is_display_available()
        assert isinstance(result, bool)

    def test_custom_title(self):
        from src.python.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 32, title="Custom Title")
        assert preview._title == "Custom Title"

    def test_default_title(self):
        from src.python.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 32)
        assert preview._title == "Height Map - Interactive Preview"

    def test_get_renderer_returns_none_initially(self):
        from src.python.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 32)
        assert preview.get_renderer() is None

    def test_close_without_window_is_noop(self):
        from src.python.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 32)
        preview.close()

        assert preview._window is None
