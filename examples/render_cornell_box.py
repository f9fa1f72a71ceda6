#!/usr/bin/env python3
"""Render the Cornell box scene.

This script renders the Cornell box end to end with the path integrator:
it builds the scene, sets up the camera, and accumulates iterations with
progress reporting before writing a PNG.

Usage:
    python -m examples.render_cornell_box [options]

Options:
    --width WIDTH            Image width in pixels (default: 512)
    --height HEIGHT          Image height in pixels (default: 512)
    --iterations N           Number of iterations (paths per pixel) (default: 100)
    --max-path-length N      Hard cap on the path length (default: 100)
    --mis                    Combine light and BRDF sampling with MIS
    --seed SEED              Random seed (default: 0)
    --background R G B       Uniform background seen through the open side
    --output OUTPUT          Output file path (default: cornell_box.png)
    --batch-size SIZE        Iterations per progress update (default: 10)
    --tone-map METHOD        none, reinhard or exposure (default: reinhard)
    --quiet                  Suppress progress output

Example:
    python -m examples.render_cornell_box --width 256 --height 256 --iterations 50 --mis
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the Cornell box scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=512, help="Image width in pixels (default: 512)")
    parser.add_argument("--height", type=int, default=512, help="Image height in pixels (default: 512)")
    parser.add_argument(
        "--iterations",
        type=int,
        default=100,
        help="Number of iterations, one path per pixel each (default: 100)",
    )
    parser.add_argument(
        "--max-path-length",
        type=int,
        default=100,
        help="Hard cap on the path length (default: 100)",
    )
    parser.add_argument("--mis", action="store_true", help="Use multiple importance sampling")
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--background",
        type=float,
        nargs=3,
        metavar=("R", "G", "B"),
        default=None,
        help="Uniform background radiance (default: none)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="cornell_box.png",
        help="Output file path (default: cornell_box.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Iterations per progress update (default: 10)",
    )
    parser.add_argument(
        "--tone-map",
        choices=("none", "reinhard", "exposure"),
        default="reinhard",
        help="Tone mapping method (default: reinhard)",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_cornell_box(
    width: int = 512,
    height: int = 512,
    num_iterations: int = 100,
    max_path_length: int = 100,
    use_mis: bool = False,
    seed: int = 0,
    background: tuple[float, float, float] | None = None,
    output_path: str = "cornell_box.png",
    batch_size: int = 10,
    tone_map: str = "reinhard",
    quiet: bool = False,
) -> Path:
    """Render the Cornell box scene and save to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        num_iterations: Number of iterations to accumulate.
        max_path_length: Hard cap on the path length.
        use_mis: Combine light and BRDF sampling with the power heuristic.
        seed: Seed of the per-pixel random streams.
        background: Uniform background radiance, or None for black.
        output_path: Output file path (PNG).
        batch_size: Number of iterations to render between progress updates.
        tone_map: Tone mapping method used for the PNG.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.pathcore.camera.pinhole import setup_camera
    from src.pathcore.core.integrator import RenderSettings
    from src.pathcore.core.progressive import ProgressiveRenderer
    from src.pathcore.preview.export import save_png
    from src.pathcore.scene.cornell_box import CornellBoxParams, create_cornell_box_scene

    if not quiet:
        print(f"Creating Cornell box scene ({width}x{height})...")

    params = CornellBoxParams(background_intensity=tuple(background) if background else None)
    _, camera, _ = create_cornell_box_scene(params=params)

    camera.aspect_ratio = width / height
    setup_camera(camera)

    settings = RenderSettings(max_path_length=max_path_length, use_mis=use_mis, seed=seed)
    renderer = ProgressiveRenderer(width, height, settings)

    if not quiet:
        print(f"Rendering {num_iterations} iterations (MIS {'on' if use_mis else 'off'})...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            iterations_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} iterations "
                f"({progress_pct:.1f}%) - {iterations_per_sec:.1f} it/s",
                end="",
                flush=True,
            )

    renderer.render(
        num_iterations=num_iterations,
        batch_size=batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print()

    output_file = Path(output_path)
    save_png(renderer, output_file, tone_map=tone_map, gamma=2.2)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO, format="%(name)s: %(message)s")

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except RuntimeError:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_cornell_box(
            width=args.width,
            height=args.height,
            num_iterations=args.iterations,
            max_path_length=args.max_path_length,
            use_mis=args.mis,
            seed=args.seed,
            background=args.background,
            output_path=args.output,
            batch_size=args.batch_size,
            tone_map=args.tone_map,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
