"""Renderer wrapper around the render target and tracing kernel.

The Renderer class owns the image dimensions and the tracer configuration
used for its passes, and offers NumPy and file export of the result.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from whitted.core.config import TracerConfig
    >>> from whitted.core.renderer import Renderer
    >>> from whitted.scene.presets import create_mirror_spheres_scene
    >>> from whitted.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_mirror_spheres_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = Renderer(512, 512, TracerConfig(bounce_limit=3))
    >>> renderer.render()
    >>> renderer.save_image("mirror_spheres.png", with_alpha=True)
"""

import logging
import time
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from whitted.core.config import TracerConfig, configure_tracer
from whitted.core.integrator import (
    clear_render_target,
    get_alpha_numpy,
    get_image_numpy,
    render_image,
    setup_render_target,
)

logger = logging.getLogger(__name__)


class Renderer:
    """Single-pass Whitted renderer.

    The renderer delegates to the global integrator buffers (which are
    Taichi fields), so only one render target is active at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        config: Tracer configuration applied before each pass.
    """

    def __init__(self, width: int, height: int, config: TracerConfig | None = None) -> None:
        """Initialize the renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            config: Tracer configuration. Defaults to TracerConfig().

        Raises:
            ValueError: If dimensions are out of range or the configuration
                is invalid.
        """
        self._config = config if config is not None else TracerConfig()
        self._config.validate()
        self._width = width
        self._height = height
        self._frame_count = 0
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def config(self) -> TracerConfig:
        """Get the tracer configuration."""
        return self._config

    @config.setter
    def config(self, value: TracerConfig) -> None:
        value.validate()
        self._config = value

    @property
    def frame_count(self) -> int:
        """Number of passes rendered since construction or the last reset."""
        return self._frame_count

    def reset(self) -> None:
        """Clear the image buffers and the frame counter."""
        clear_render_target()
        self._frame_count = 0

    def resize(self, width: int, height: int) -> None:
        """Resize the render target.

        Args:
            width: New image width in pixels.
            height: New image height in pixels.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height
        self._frame_count = 0

    def render(self) -> float:
        """Render one full pass with the current scene and camera.

        Returns:
            Wall-clock time of the pass in seconds.
        """
        configure_tracer(self._config)

        # Re-assert our dimensions in case another renderer changed them
        setup_render_target(self._width, self._height)

        start = time.perf_counter()
        render_image()
        elapsed = time.perf_counter() - start

        self._frame_count += 1
        logger.info(
            "Rendered %dx%d frame %d (bounce_limit=%d) in %.3fs",
            self._width,
            self._height,
            self._frame_count,
            self._config.bounce_limit,
            elapsed,
        )
        return elapsed

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the rendered image as a NumPy array.

        Returns the color buffer with values clamped to [0, 1] and optionally
        gamma corrected. The array shape is (height, width, 3).

        Args:
            gamma: Gamma correction value. Default 1.0 (linear).
                Use 2.2 for sRGB display.

        Returns:
            NumPy array of shape (height, width, 3) with dtype float32.
        """
        image = np.clip(get_image_numpy(), 0.0, 1.0)

        if gamma != 1.0:
            image = np.power(image, 1.0 / gamma)

        return image.astype(np.float32)

    def get_linear_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the linear, unclamped image of shape (height, width, 3)."""
        return get_image_numpy()

    def get_alpha_numpy(self) -> npt.NDArray[np.float32]:
        """Get the coverage mask of shape (height, width)."""
        return get_alpha_numpy()

    def get_rgba_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get color and coverage as a (height, width, 4) array."""
        rgb = self.get_image_numpy(gamma=gamma)
        alpha = self.get_alpha_numpy()
        return np.concatenate([rgb, alpha[..., np.newaxis]], axis=-1)

    def get_image_uint8(self, gamma: float = 2.2) -> npt.NDArray[np.uint8]:
        """Get the rendered image as an 8-bit NumPy array.

        Args:
            gamma: Gamma correction value. Default 2.2 for sRGB.

        Returns:
            NumPy array of shape (height, width, 3) with dtype uint8.
        """
        image = self.get_image_numpy(gamma=gamma)
        return (image * 255).astype(np.uint8)

    def save_image(self, filepath: str | Path, gamma: float = 2.2, with_alpha: bool = False) -> None:
        """Save the rendered image to a file.

        Args:
            filepath: Path to save the image (e.g., "output.png").
            gamma: Gamma correction value. Default 2.2 for sRGB.
            with_alpha: Store the coverage mask as an alpha channel.
        """
        if with_alpha:
            pixels = (self.get_rgba_numpy(gamma=gamma) * 255).astype(np.uint8)
        else:
            pixels = self.get_image_uint8(gamma=gamma)
        PILImage.fromarray(pixels).save(filepath)
        logger.info("Saved %s", filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"bounce_limit={self._config.bounce_limit}, frames={self.frame_count})"
        )
