#!/usr/bin/env python3
"""Interactive mirror spheres renderer with real-time controls.

This script opens a preview window for the mirror spheres scene and
re-renders whenever a control changes.

Usage:
    python examples/interactive_mirror_spheres.py [--width W] [--height H] [--bounces N]

Controls:
    - Bounce limit: number of mirror reflections followed (0 = direct only)
    - Reflectance: mirror strength of the small spheres
    - Distance / Tilt / Orbit: camera placement around the scene
    - Export PNG: save the current render with a timestamp
"""

from __future__ import annotations

import argparse
import logging
import platform
import sys

import taichi as ti


def initialize_taichi() -> str:
    """Initialize Taichi with the best available backend.

    On macOS, prefers Metal. Falls back to CPU if GPU is unavailable.

    Returns:
        Name of the backend being used.
    """
    if platform.system() == "Darwin":
        try:
            ti.init(arch=ti.metal)
            return "Metal (GPU)"
        except Exception:
            pass

    # Try generic GPU (CUDA on Linux/Windows, Vulkan as fallback)
    try:
        ti.init(arch=ti.gpu)
        return "GPU"
    except Exception:
        pass

    ti.init(arch=ti.cpu)
    return "CPU"


def main() -> int:
    """Main entry point for the interactive renderer.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    parser = argparse.ArgumentParser(description="Interactive mirror spheres renderer.")
    parser.add_argument("--width", type=int, default=640, help="Window width (default: 640)")
    parser.add_argument("--height", type=int, default=480, help="Window height (default: 480)")
    parser.add_argument("--bounces", type=int, default=3, help="Initial bounce limit (default: 3)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # Initialize Taichi first (before importing modules that use ti.kernel)
    backend = initialize_taichi()
    print(f"Taichi backend: {backend}")

    from whitted.preview.interactive import InteractivePreview
    from whitted.scene.presets import MirrorSpheresParams

    if not InteractivePreview.is_display_available():
        print("Error: No display available. Cannot run interactive preview.", file=sys.stderr)
        return 1

    print(f"Creating interactive preview window ({args.width}x{args.height})...")
    preview = InteractivePreview(args.width, args.height)

    try:
        preview.set_params(
            MirrorSpheresParams(aspect_ratio=args.width / args.height),
            bounce_limit=args.bounces,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Starting interactive rendering...")
    print("  - Adjust sliders to change bounces and camera")
    print("  - Click 'Export PNG' to save current render")
    print("  - Close window to exit")
    print()

    try:
        preview.run_reactive()
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        preview.close()
        print("Preview window closed.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
