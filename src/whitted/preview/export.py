"""PNG export for rendered images.

Linear renders go through the same display pipeline as the preview window
(tone map, gamma, clamp) and are quantized to 8 bits. The coverage mask can
be written as the alpha channel so background pixels come out transparent.

Example:
    >>> from whitted.preview.export import save_png
    >>> from whitted.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(512, 512)
    >>> renderer.render()
    >>> save_png(renderer, "output.png", tone_map="reinhard", with_alpha=True)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from whitted.preview.display import ToneMapMethod, process_image_for_display

if TYPE_CHECKING:
    from whitted.core.renderer import Renderer

logger = logging.getLogger(__name__)


def save_png(
    renderer: Renderer,
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
    with_alpha: bool = False,
) -> None:
    """Write the renderer's last pass to a PNG file.

    Keyword arguments match save_png_from_array; with_alpha takes the alpha
    channel from the renderer's coverage mask.
    """
    save_png_from_array(
        renderer.get_linear_image_numpy(),
        filepath,
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
        alpha=renderer.get_alpha_numpy() if with_alpha else None,
    )


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
    alpha: npt.NDArray[np.float32] | None = None,
) -> None:
    """Write a linear (H, W, 3) array to a PNG file.

    Args:
        image: Linear RGB values; anything above 1 is handled by tone_map.
        filepath: Destination path.
        tone_map: "none", "reinhard" or "exposure".
        gamma: Encoding gamma.
        exposure: Used by the "exposure" operator only.
        alpha: Optional (H, W) coverage in [0, 1]. Switches the output to RGBA.

    Raises:
        ValueError: If alpha is given with a different height or width.
    """
    pixels = image_to_uint8(image, tone_map=tone_map, gamma=gamma, exposure=exposure)

    if alpha is not None:
        if alpha.shape != image.shape[:2]:
            raise ValueError(f"Alpha shape {alpha.shape} does not match image {image.shape[:2]}")
        a8 = np.round(np.clip(alpha, 0.0, 1.0) * 255).astype(np.uint8)
        pixels = np.dstack([pixels, a8])

    PILImage.fromarray(pixels).save(filepath)
    logger.info("Saved %s (%dx%d)", filepath, image.shape[1], image.shape[0])


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Run the display pipeline and quantize to 8 bits per channel."""
    display = process_image_for_display(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    return (display * 255).astype(np.uint8)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Root mean squared difference between two same-shaped images.

    Raises:
        ValueError: If the shapes differ.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    delta = np.asarray(image_a, dtype=np.float64) - np.asarray(image_b, dtype=np.float64)
    return float(np.sqrt(np.mean(np.square(delta))))
