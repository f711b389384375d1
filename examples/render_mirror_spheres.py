#!/usr/bin/env python3
"""Render the mirror spheres scene (or a scene loaded from JSON).

Usage:
    python examples/render_mirror_spheres.py [options]

Options:
    --width WIDTH           Image width in pixels (default: 640)
    --height HEIGHT         Image height in pixels (default: 480)
    --bounces N             Mirror bounce limit (default: 5)
    --output OUTPUT         Output file path (default: mirror_spheres.png)
    --scene SCENE           Load spheres, lights and environment from a JSON file
    --save-scene PATH       Write the scene that was rendered to a JSON file
    --alpha                 Write the coverage mask as the PNG alpha channel
    --tone-map METHOD       none, reinhard or exposure (default: none)
    --verbose               Show library log messages
    --quiet                 Suppress progress output

Example:
    python examples/render_mirror_spheres.py --width 320 --height 240 --bounces 2
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the mirror spheres scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=640,
        help="Image width in pixels (default: 640)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=480,
        help="Image height in pixels (default: 480)",
    )
    parser.add_argument(
        "--bounces",
        type=int,
        default=5,
        help="Mirror bounce limit (default: 5)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="mirror_spheres.png",
        help="Output file path (default: mirror_spheres.png)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="Scene JSON file to render instead of the built-in scene",
    )
    parser.add_argument(
        "--save-scene",
        type=str,
        default=None,
        help="Write the rendered scene to this JSON file",
    )
    parser.add_argument(
        "--alpha",
        action="store_true",
        help="Write the coverage mask as the PNG alpha channel",
    )
    parser.add_argument(
        "--tone-map",
        choices=["none", "reinhard", "exposure"],
        default="none",
        help="Tone mapping method (default: none)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show library log messages",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_mirror_spheres(
    width: int = 640,
    height: int = 480,
    bounce_limit: int = 5,
    output_path: str = "mirror_spheres.png",
    scene_path: str | None = None,
    save_scene_path: str | None = None,
    with_alpha: bool = False,
    tone_map: str = "none",
    quiet: bool = False,
) -> Path:
    """Render a scene and save it to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        bounce_limit: Mirror bounce limit.
        output_path: Output file path (PNG).
        scene_path: Optional scene JSON file. The built-in scene's camera is
            used either way.
        save_scene_path: Optional path to write the rendered scene as JSON.
        with_alpha: Store the coverage mask as alpha.
        tone_map: Tone mapping method.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from whitted.camera.pinhole import setup_camera
    from whitted.core.config import TracerConfig
    from whitted.core.renderer import Renderer
    from whitted.preview.export import save_png
    from whitted.scene.presets import MirrorSpheresParams, create_mirror_spheres_scene

    params = MirrorSpheresParams(aspect_ratio=width / height)
    scene, camera = create_mirror_spheres_scene(params)

    if scene_path is not None:
        if not quiet:
            print(f"Loading scene from {scene_path}...")
        scene.load_json(scene_path)

    if not quiet:
        print(
            f"Scene: {scene.get_sphere_count()} spheres, {scene.get_light_count()} lights "
            f"({width}x{height}, {bounce_limit} bounces)"
        )

    if save_scene_path is not None:
        scene.save_json(save_scene_path)

    setup_camera(camera)

    renderer = Renderer(width, height, TracerConfig(bounce_limit=bounce_limit))

    # First pass includes kernel compilation
    elapsed = renderer.render()
    if not quiet:
        print(f"Rendered in {elapsed:.2f}s")

    output_file = Path(output_path)
    save_png(
        renderer,
        output_file,
        tone_map=tone_map,
        gamma=2.2,
        with_alpha=with_alpha,
    )

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_mirror_spheres(
            width=args.width,
            height=args.height,
            bounce_limit=args.bounces,
            output_path=args.output,
            scene_path=args.scene,
            save_scene_path=args.save_scene,
            with_alpha=args.alpha,
            tone_map=args.tone_map,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
