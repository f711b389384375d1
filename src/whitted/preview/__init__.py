"""Preview module for output and visualization.

Components:
    display: Matplotlib-based preview display and tone mapping
    export: PNG export utilities
    interactive: Taichi GGUI-based interactive preview window

Features:
    - Matplotlib-based static preview
    - Tonemapping for values above 1 (Reinhard, exposure-based)
    - Gamma-correct PNG export (sRGB), optionally with coverage as alpha
    - Compositing over a background color
    - Interactive window with bounce limit and orbit controls

Example:
    >>> from whitted.preview import show_preview, save_png
    >>> from whitted.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(512, 512)
    >>> renderer.render()
    >>> show_preview(renderer, tone_map="reinhard")
    >>> save_png(renderer, "output.png", gamma=2.2, with_alpha=True)
"""

from whitted.preview.display import (
    ToneMapMethod,
    apply_gamma,
    composite_over,
    process_image_for_display,
    show_preview,
    tone_map_exposure,
    tone_map_reinhard,
)
from whitted.preview.export import (
    compute_rmse,
    image_to_uint8,
    save_png,
    save_png_from_array,
)
from whitted.preview.interactive import InteractivePreview

__all__ = [
    # Interactive preview
    "InteractivePreview",
    # Display functions
    "show_preview",
    "composite_over",
    # Tone mapping
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "ToneMapMethod",
    # Export functions
    "save_png",
    "save_png_from_array",
    "image_to_uint8",
    "compute_rmse",
]
