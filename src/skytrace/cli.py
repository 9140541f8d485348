"""Command-line driver: build a scene, render it and write the image.

Usage:
    skytrace [options] > image.ppm
    python -m skytrace [options]

Options:
    --width WIDTH          Image width in pixels (default: 400)
    --aspect-ratio RATIO   Width / height ratio (default: 16/9)
    --height HEIGHT        Image height in pixels (overrides --aspect-ratio)
    --samples SAMPLES      Samples per pixel (default: 10)
    --scene NAME           Scene to render: spheres, single, empty (default: spheres)
    --no-jitter            Sample pixel centers only
    --seed SEED            Random seed for the jitter stream (default: 0)
    --output OUTPUT        PPM output path, "-" for stdout (default: -)
    --png PATH             Also save the image as PNG
    --test-pattern         Write a gradient test pattern instead of rendering
    --cpu                  Force the CPU backend
    --quiet                Suppress progress output

Example:
    skytrace --width 256 --samples 50 --output spheres.ppm --png spheres.png
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import TextIO

import taichi as ti


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from None
    if not number > 0.0:
        raise argparse.ArgumentTypeError(f"must be positive, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="skytrace",
        description="Render a sphere scene to a PPM image.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=_positive_int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    size = parser.add_mutually_exclusive_group()
    size.add_argument(
        "--aspect-ratio",
        type=_positive_float,
        default=16.0 / 9.0,
        help="Width / height ratio used to derive the height (default: 16/9)",
    )
    size.add_argument(
        "--height",
        type=_positive_int,
        default=None,
        help="Image height in pixels (overrides --aspect-ratio)",
    )
    parser.add_argument(
        "--samples",
        type=_positive_int,
        default=10,
        help="Number of samples per pixel (default: 10)",
    )
    parser.add_argument(
        "--scene",
        choices=["spheres", "single", "empty"],
        default="spheres",
        help="Scene to render (default: spheres)",
    )
    parser.add_argument(
        "--no-jitter",
        action="store_true",
        help="Sample pixel centers only (deterministic output)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed for the jitter stream (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="-",
        help='PPM output path, "-" for stdout (default: -)',
    )
    parser.add_argument(
        "--png",
        type=str,
        default=None,
        help="Also save the image as PNG to this path",
    )
    parser.add_argument(
        "--test-pattern",
        action="store_true",
        help="Write a gradient test pattern instead of rendering",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Force the CPU backend",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def init_taichi(force_cpu: bool = False, seed: int = 0, quiet: bool = False) -> None:
    """Initialize Taichi, preferring the GPU and falling back to the CPU."""
    if force_cpu:
        ti.init(arch=ti.cpu, random_seed=seed)
        if not quiet:
            print("Using CPU backend", file=sys.stderr)
        return

    try:
        ti.init(arch=ti.gpu, random_seed=seed)
        if not quiet:
            print("Using GPU backend", file=sys.stderr)
    except Exception:
        ti.init(arch=ti.cpu, random_seed=seed)
        if not quiet:
            print("Using CPU backend", file=sys.stderr)


def render_to_stream(args: argparse.Namespace, sink: TextIO) -> None:
    """Render (or draw the test pattern) according to args into sink.

    Args:
        args: Parsed command-line arguments.
        sink: Writable text stream receiving the PPM output.
    """
    # Lazy imports so that Taichi fields are created after ti.init()
    from skytrace.camera.camera import Camera, CameraConfig
    from skytrace.image.export import save_png
    from skytrace.image.ppm import write_gradient
    from skytrace.scene.presets import SCENES

    quiet = args.quiet
    config = CameraConfig(
        image_width=args.width,
        aspect_ratio=args.aspect_ratio,
        image_height=args.height,
        samples_per_pixel=args.samples,
        jitter=not args.no_jitter,
    )
    width = config.image_width
    height = config.resolved_height()

    if args.test_pattern:
        if not quiet:
            print(f"Writing {width}x{height} test pattern...", file=sys.stderr)
        write_gradient(sink, width, height)
        return

    scene = SCENES[args.scene]()
    camera = Camera(config)

    if not quiet:
        print(
            f"Rendering {args.scene} scene ({width}x{height}, "
            f"{config.samples_per_pixel} samples per pixel)...",
            file=sys.stderr,
        )

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            progress_pct = (current / target) * 100 if target > 0 else 0
            print(
                f"\r  Progress: {current}/{target} scanlines ({progress_pct:.1f}%)",
                end="",
                file=sys.stderr,
                flush=True,
            )

    pixels = camera.render(scene, sink, callback=progress_callback)

    if not quiet:
        print(file=sys.stderr)  # Newline after progress

    if args.png is not None:
        png_path = Path(args.png)
        save_png(pixels, png_path)
        if not quiet:
            print(f"Saved PNG to: {png_path.absolute()}", file=sys.stderr)

    if not quiet:
        print(f"Total time: {time.time() - start_time:.2f}s", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    init_taichi(force_cpu=args.cpu, seed=args.seed, quiet=args.quiet)

    try:
        if args.output == "-":
            render_to_stream(args, sys.stdout)
        else:
            output_file = Path(args.output)
            with output_file.open("w", encoding="ascii") as sink:
                render_to_stream(args, sink)
            if not args.quiet:
                print(f"Saved to: {output_file.absolute()}", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
