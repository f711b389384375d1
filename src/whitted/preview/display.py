"""Display pipeline and Matplotlib preview for rendered images.

Traced colors are linear and unclamped: mirror bounces can push sums of
Blinn-Phong terms well above 1. This module maps them to displayable
values and optionally replaces background pixels using the coverage mask.

Pipeline (process_image_for_display):
    linear RGB -> tone map -> gamma -> clamp to [0, 1]

Example:
    >>> from whitted.preview.display import show_preview
    >>> from whitted.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(512, 512)
    >>> renderer.render()
    >>> show_preview(renderer, tone_map="reinhard", background=(1, 1, 1))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from whitted.core.renderer import Renderer


# Type alias for tone mapping options
ToneMapMethod = Literal["none", "reinhard", "exposure"]


def tone_map_reinhard(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Compress each channel with c / (1 + c).

    Negative channels are treated as zero.
    """
    c = np.maximum(image, 0.0)
    return (c / (1.0 + c)).astype(np.float32)


def tone_map_exposure(
    image: npt.NDArray[np.float32],
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Map each channel with 1 - exp(-c * exposure).

    Args:
        image: Linear image array.
        exposure: Brightness scale; larger values saturate sooner.

    Returns:
        Image with channels in [0, 1).
    """
    c = np.maximum(image, 0.0)
    return (1.0 - np.exp(-exposure * c)).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Encode linear [0, 1] values as c^(1/gamma).

    Values are clamped to [0, 1] first. gamma == 1.0 returns the input
    untouched (no clamp, no copy).
    """
    if gamma == 1.0:
        return image
    return np.power(np.clip(image, 0.0, 1.0), 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Convert a linear render to display values in [0, 1].

    Args:
        image: Linear image array of shape (H, W, 3). Not modified.
        tone_map: "none", "reinhard" or "exposure". With "none", values
            above 1 simply clip.
        gamma: Display gamma (2.2 approximates sRGB).
        exposure: Only used by the "exposure" operator.

    Returns:
        A new float32 array of the same shape.

    Raises:
        ValueError: If the tone mapping method is unknown.
    """
    if tone_map == "none":
        mapped = image.astype(np.float32, copy=True)
    elif tone_map == "reinhard":
        mapped = tone_map_reinhard(image)
    elif tone_map == "exposure":
        mapped = tone_map_exposure(image, exposure)
    else:
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    return np.clip(apply_gamma(mapped, gamma), 0.0, 1.0).astype(np.float32)


def composite_over(
    image: npt.NDArray[np.float32],
    alpha: npt.NDArray[np.float32],
    background: tuple[float, float, float] = (1.0, 1.0, 1.0),
) -> npt.NDArray[np.float32]:
    """Composite an image over a constant background using its coverage.

    Pixels with zero coverage (rays that missed every sphere) are replaced by
    the background; covered pixels keep their color.

    Args:
        image: Image array of shape (H, W, 3).
        alpha: Coverage array of shape (H, W) in [0, 1].
        background: Background color as (R, G, B).

    Returns:
        The composited image of shape (H, W, 3).

    Raises:
        ValueError: If the image and alpha shapes do not match.
    """
    if image.shape[:2] != alpha.shape:
        raise ValueError(f"Alpha shape {alpha.shape} does not match image {image.shape[:2]}")

    a = alpha[..., np.newaxis].astype(np.float32)
    bg = np.asarray(background, dtype=np.float32)
    return (image * a + bg * (1.0 - a)).astype(np.float32)


def show_preview(
    renderer: Renderer,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
    background: tuple[float, float, float] | None = None,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 8),
    block: bool = True,
) -> None:
    """Show the renderer's last pass in a Matplotlib window.

    Args:
        renderer: Renderer holding the image to show.
        tone_map: Tone mapping method (see process_image_for_display).
        gamma: Display gamma.
        exposure: Exposure for the "exposure" operator.
        background: If given, composite over this color using the coverage
            mask instead of showing the environment.
        title: Window title. Defaults to the bounce limit of the pass.
        figsize: Figure size in inches (width, height).
        block: Block until the window is closed.
    """
    import matplotlib.pyplot as plt

    pixels = process_image_for_display(
        renderer.get_linear_image_numpy(),
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
    )
    if background is not None:
        pixels = composite_over(pixels, renderer.get_alpha_numpy(), background)

    if title is None:
        title = f"{renderer.width}x{renderer.height}, bounce limit {renderer.config.bounce_limit}"
        if tone_map != "none":
            title += f", {tone_map}"

    fig, ax = plt.subplots(figsize=figsize)
    ax.imshow(pixels)
    ax.set_axis_off()
    ax.set_title(title)
    fig.tight_layout()
    plt.show(block=block)
