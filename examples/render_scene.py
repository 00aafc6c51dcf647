#!/usr/bin/env python3
"""Render one of the built-in sphere scenes.

This script demonstrates end-to-end rendering: it builds a scene, sets up the
camera, renders scanline by scanline with a progress readout and saves the
image.

Usage:
    python -m examples.render_scene [options]

Options:
    --width WIDTH           Image width in pixels (default: 400)
    --height HEIGHT         Image height in pixels (default: 225)
    --samples SAMPLES       Number of samples per pixel (default: 100)
    --max-depth DEPTH       Maximum bounces per path (default: 50)
    --scene NAME            random, showcase or two-spheres (default: random)
    --scene-file PATH       Load spheres and materials from a JSON file
    --seed SEED             Seed for the scene and the render (default: 0)
    --output OUTPUT         Output file path (default: render.png)
    --normals               Shade by surface normal instead of path tracing
    --no-jitter             Sample pixel centers only
    --quiet                 Suppress progress output
    --show                  Display the result in a Matplotlib window

Example:
    python -m examples.render_scene --width 200 --height 100 --samples 16 --scene showcase
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
import time
from pathlib import Path

import taichi as ti

SCENE_CHOICES = ("random", "showcase", "two-spheres")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=225,
        help="Image height in pixels (default: 225)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--scene",
        choices=SCENE_CHOICES,
        default="random",
        help="Built-in scene; also selects the camera (default: random)",
    )
    parser.add_argument(
        "--scene-file",
        type=str,
        default=None,
        help="JSON scene file replacing the built-in scene's spheres and materials",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the random scene and the render (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="render.png",
        help="Output file path; .png, .bmp or .ppm (default: render.png)",
    )
    parser.add_argument(
        "--normals",
        action="store_true",
        help="Shade by surface normal instead of path tracing",
    )
    parser.add_argument(
        "--no-jitter",
        action="store_true",
        help="Sample pixel centers only",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Display the result in a Matplotlib window",
    )
    return parser.parse_args()


def build_scene(name: str, seed: int, aspect_ratio: float, scene_file: str | None = None):
    """Build a named scene and a camera matching the image aspect ratio.

    Returns:
        Tuple of (SceneManager, ThinLensCamera).
    """
    from pathtrace.scene.presets import (
        material_showcase_scene,
        random_scene,
        two_sphere_scene,
    )

    if name == "random":
        scene, camera = random_scene(seed=seed, aspect_ratio=aspect_ratio)
    elif name == "showcase":
        scene, camera = material_showcase_scene()
    elif name == "two-spheres":
        scene, camera = two_sphere_scene()
    else:
        raise ValueError(f"Unknown scene: {name}")

    if scene_file is not None:
        scene.load_scene_file(scene_file)

    return scene, dataclasses.replace(camera, aspect_ratio=aspect_ratio)


def render_scene(
    width: int = 400,
    height: int = 225,
    num_samples: int = 100,
    max_depth: int = 50,
    scene_name: str = "random",
    scene_file: str | None = None,
    seed: int = 0,
    output_path: str = "render.png",
    normals: bool = False,
    jitter: bool = True,
    quiet: bool = False,
    show: bool = False,
) -> Path:
    """Render a scene and save it to file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtrace.core.integrator import RenderMode
    from pathtrace.core.scanline import render
    from pathtrace.preview.export import save_image

    if height <= 0:
        raise ValueError(f"Image height {height} must be positive")

    if not quiet:
        print(f"Creating {scene_name} scene ({width}x{height})...")

    scene, camera = build_scene(scene_name, seed, width / height, scene_file)

    if not quiet:
        print(
            f"Rendering {scene.get_sphere_count()} spheres at "
            f"{num_samples} samples per pixel..."
        )

    start_time = time.time()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (rows_done / total_rows) * 100 if total_rows > 0 else 0
            rows_per_sec = rows_done / elapsed if elapsed > 0 else 0
            eta = (total_rows - rows_done) / rows_per_sec if rows_per_sec > 0 else 0
            print(
                f"\r  Progress: {rows_done}/{total_rows} scanlines "
                f"({progress_pct:.1f}%) - {rows_per_sec:.1f} rows/s, ETA {eta:.0f}s",
                end="",
                flush=True,
            )

    mode = RenderMode.NORMALS if normals else RenderMode.RADIANCE
    image = render(
        scene,
        camera,
        width,
        height,
        num_samples,
        max_depth,
        callback=progress_callback,
        seed=seed,
        jitter=jitter,
        gamma=1.0 if normals else 2.0,
        mode=mode,
    )

    if not quiet:
        print()  # Newline after progress

    output_file = save_image(image, output_path)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    if show:
        from pathtrace.preview.display import show_image

        show_image(image, title=f"{scene_name} - {num_samples} SPP")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    # Initialize Taichi
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
        render_scene(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_depth=args.max_depth,
            scene_name=args.scene,
            scene_file=args.scene_file,
            seed=args.seed,
            output_path=args.output,
            normals=args.normals,
            jitter=not args.no_jitter,
            quiet=args.quiet,
            show=args.show,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
