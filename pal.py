#!/usr/bin/env python3
"""
Derive a terminal-style color scheme from images.

For each image: decode → sample → select accents → saturate → cache, then
fill user templates and print the colors. A cached palette for the same file
state and options skips decoding entirely.
"""

from concurrent.futures import ThreadPoolExecutor
import argparse
import logging
import sys

from color_metrics import Palette, apply_saturation
from decode_image import DecodeFailure, DecodedImage, decode_image
from pal_config import Config, ConfigOutOfRange, Format, Method, Settings, configure_logging, get_settings
from palette_cache import CacheStore, CacheWriteFailure, cache_key
from palette_format import plain_lines
from render_templates import find_templates, write_templates
from sample_colors import sample_blocks, sample_points
from select_average import select_average
from select_kmeans import select_kmeans


logger = logging.getLogger(__name__)

MAX_INPUT_IMAGES = 128


# =============================================================================
# Pipeline
# =============================================================================

def generate_palette(image: DecodedImage, config: Config) -> Palette:
    """
    Compute a palette from decoded pixels.

    Area-average selection works on 4x4 block means, k-means on single
    pixels. Saturation is applied only after selection.
    """
    if config.method == Method.AREA_AVERAGE:
        samples = sample_blocks(image.pixels, image.width, image.height)
        accents = select_average(samples, config.accent_count)
    else:
        samples = sample_points(image.pixels, image.width, image.height)
        accents = select_kmeans(samples, config.accent_count)

    s = config.saturation
    return Palette(
        background=apply_saturation(samples.darkest, s),
        foreground=apply_saturation(samples.lightest, s),
        accents=tuple(apply_saturation(c, s) for c in accents),
    )


def process_image(image_path: str, config: Config, store: CacheStore) -> Palette:
    """
    Return the palette for one image, from cache when possible.

    Raises:
        DecodeFailure: If the image is missing or cannot be decoded
    """
    try:
        key = cache_key(image_path, config)
    except OSError as e:
        raise DecodeFailure(f"Image not found: {image_path} ({e.strerror or e})") from e

    cached = store.lookup(key)
    if cached is not None:
        logger.info("Cache hit for %s (%08X)", image_path, key)
        return cached

    logger.info("Cache miss for %s (%08X), decoding", image_path, key)
    palette = generate_palette(decode_image(image_path), config)

    try:
        store.store(key, palette)
    except CacheWriteFailure as e:
        logger.warning("%s", e)

    return palette


def _process_safely(image_path: str, config: Config, store: CacheStore) -> tuple[Palette | None, str | None]:
    try:
        return process_image(image_path, config, store), None
    except DecodeFailure as e:
        return None, str(e)


def run_batch(image_paths: list[str], config: Config, settings: Settings, jobs: int = 1) -> int:
    """
    Process images in order, writing templates and printing colors.

    A failed image is reported and skipped. With jobs > 1, palettes are
    computed in a thread pool but templates and output still follow input
    order.

    Returns:
        Exit status: 0 if every image succeeded, 1 otherwise
    """
    store = CacheStore(settings.palette_dir)
    templates = find_templates(settings.template_dir)
    failed = 0

    def work(path):
        return _process_safely(path, config, store)

    if jobs > 1:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            results = list(pool.map(work, image_paths))
    else:
        results = map(work, image_paths)

    for image_path, (palette, error) in zip(image_paths, results):
        if palette is None:
            print(f"Error: {error}", file=sys.stderr)
            failed += 1
            continue

        write_templates(templates, settings.cache_dir, palette, config.format)
        if not config.silent:
            for line in plain_lines(palette, config):
                print(line)

    return 1 if failed else 0


# =============================================================================
# CLI
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='pal',
        description='Generate a color scheme from images and fill templates in ~/.config/pal/.'
    )
    parser.add_argument(
        '-n',
        dest='show_bg_fg',
        action='store_false',
        help="Don't print background and foreground"
    )
    parser.add_argument(
        '-nv',
        dest='silent',
        action='store_true',
        help='No output'
    )
    parser.add_argument(
        '-s',
        dest='saturation',
        type=float,
        default=1.0,
        help='Saturation (float, 0.0 - 5.0)'
    )
    parser.add_argument(
        '-m',
        dest='method',
        type=int,
        default=int(Method.KMEANS),
        help='Color picking method (0 - Area Average, 1 - K-Means)'
    )
    parser.add_argument(
        '-f',
        dest='format',
        type=int,
        default=int(Format.HEX),
        help='Output format (0 - rgb, 1 - hex)'
    )
    parser.add_argument(
        '-c', '--count',
        dest='accent_count',
        type=int,
        default=16,
        help='Number of accent colors (1 - 16)'
    )
    parser.add_argument(
        '-j', '--jobs',
        type=int,
        default=1,
        help='Process images in parallel with this many workers'
    )
    parser.add_argument(
        'images',
        nargs='*',
        help='Image files'
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.images:
        parser.print_usage()
        return 1

    try:
        config = Config(
            accent_count=args.accent_count,
            saturation=args.saturation,
            method=args.method,
            format=args.format,
            show_bg_fg=args.show_bg_fg,
            silent=args.silent,
        )
    except ConfigOutOfRange as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.jobs < 1:
        print(f"Error: --jobs must be at least 1, got {args.jobs}", file=sys.stderr)
        return 1

    images = args.images
    if len(images) > MAX_INPUT_IMAGES:
        print(f"Error: too many inputs, skipping {len(images) - MAX_INPUT_IMAGES} ...", file=sys.stderr)
        images = images[:MAX_INPUT_IMAGES]

    settings = get_settings()
    configure_logging(settings.log_level)
    return run_batch(images, config, settings, jobs=args.jobs)


if __name__ == '__main__':
    sys.exit(main())
