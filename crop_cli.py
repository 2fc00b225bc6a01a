#!/usr/bin/env python3
"""
CLI runner for the wall mural cropper.

Quotes wall sizes and exports crops without the storefront UI.
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import settings
from core.exceptions import CropperError
from cropping.panels import plan_panels
from cropping.pricing import RateTable, quote
from logging_config import setup_logging
from services.interaction_controller import InteractionController
from services.render_surface import PreviewSurface
from utils.units import area_in_square_feet, dimensions_in_inches, parse_dimensions


CLI_RATE_KEY = 'cli'


def _rate_provider(args):
    """Rate table from --rate, falling back to the configured variant prices."""
    if args.rate is not None:
        return RateTable({CLI_RATE_KEY: args.rate}), CLI_RATE_KEY
    return settings.get_rate_table(), args.variant


def _format_cents(cents: int) -> str:
    return f"{cents / 100:.2f}"


def _parse_viewport(value: str):
    try:
        width, height = value.lower().split('x')
        return int(width), int(height)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Viewport must look like 800x600, got '{value}'")


def quote_cli(args):
    """Print area, panel layout and price for a wall size."""
    dims = parse_dimensions(args.width, args.height, args.unit, default_unit=settings.default_unit)
    width_in, height_in = dimensions_in_inches(dims)
    area = area_in_square_feet(width_in, height_in)
    rates, key = _rate_provider(args)
    price = quote(area, rates.get_rate(key))
    splits = plan_panels(width_in, settings.panel_target, settings.panel_max)

    print("=" * 60)
    print(f"Wall: {dims.width:g} x {dims.height:g} {dims.unit} ({width_in:.2f} x {height_in:.2f} in)")
    print(f"Area: {area:.2f} ft²")
    print(f"Panels: {len(splits) + 1 if width_in > 0 else 0}")
    if splits:
        print(f"  Splits: {', '.join(f'{s:.4f}' for s in splits)}")
    if price.rate_available:
        print(f"Total: {_format_cents(price.total_cost)}")
    else:
        print("Total: no price configured for this selection")
    if area < settings.min_area_ft2:
        print(f"⚠️  Below minimum area of {settings.min_area_ft2:g} ft²")
    print("=" * 60)


async def export_cli(args):
    """Crop an image for a wall size and write the result."""
    rates, key = _rate_provider(args)
    surface = PreviewSurface(*args.viewport)
    controller = InteractionController(surface=surface, rate_provider=rates)

    await controller.load_image(args.image)
    controller.on_rate_selection_changed(key)
    controller.on_panel_toggle(args.panels)
    controller.on_dimensions_changed((args.width, args.height), args.unit)
    if args.dx or args.dy:
        controller.on_drag(args.dx, args.dy)

    snapshot = controller.snapshot()
    print(f"Crop rectangle: {snapshot.rect}")
    print(f"Area: {snapshot.area:.2f} ft²  Panels: {snapshot.panel_split_count + 1}")
    if snapshot.rate_available:
        print(f"Total: {_format_cents(snapshot.total_cost)}")

    if args.preview:
        surface.clear()
        surface.draw_image(controller.session.image.handle, controller.session.placement)
        controller.render_overlay()
        surface.to_image().save(args.preview)
        print(f"✓ Preview written to: {args.preview}")

    result = await controller.request_export(upload=args.upload)
    with open(args.output, 'wb') as f:
        f.write(result.image_bytes)

    region = result.region
    print(f"✓ Crop written to: {args.output}")
    print(f"  Region: x={region.source_x} y={region.source_y} "
          f"w={region.source_width} h={region.source_height}")
    if result.url:
        print(f"  Uploaded: {result.url}")


def main():
    parser = argparse.ArgumentParser(
        description='Wall mural crop & panel layout CLI'
    )
    parser.add_argument('--log-level', type=str, default=settings.log_level, help='Logging level')
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    def add_wall_args(sub):
        sub.add_argument('width', type=str, help='Wall width')
        sub.add_argument('height', type=str, help='Wall height')
        sub.add_argument('--unit', type=str, default=settings.default_unit, choices=['in', 'cm'], help='Input unit')
        sub.add_argument('--rate', type=float, default=None, help='Price per ft² in cents')
        sub.add_argument('--variant', type=str, default=settings.default_selection_key, help='Configured variant key')

    # Quote command
    quote_parser = subparsers.add_parser('quote', help='Show area, panels and price')
    add_wall_args(quote_parser)

    # Export command
    export_parser = subparsers.add_parser('export', help='Crop an image for a wall size')
    export_parser.add_argument('image', type=str, help='Image path or URL')
    add_wall_args(export_parser)
    export_parser.add_argument('-o', '--output', type=str, default='crop.jpg', help='Output JPEG path')
    export_parser.add_argument('--preview', type=str, help='Write an overlay preview PNG')
    export_parser.add_argument('--viewport', type=_parse_viewport, default=(800, 600), help='Surface size, e.g. 800x600')
    export_parser.add_argument('--dx', type=float, default=0.0, help='Drag the crop horizontally (display px)')
    export_parser.add_argument('--dy', type=float, default=0.0, help='Drag the crop vertically (display px)')
    export_parser.add_argument('--panels', action='store_true', help='Show panel split lines')
    export_parser.add_argument('--upload', action='store_true', help='Upload the crop to the configured endpoint')

    args = parser.parse_args()
    setup_logging(args.log_level)

    try:
        if args.command == 'quote':
            quote_cli(args)
        elif args.command == 'export':
            asyncio.run(export_cli(args))
        else:
            parser.print_help()
    except CropperError as e:
        print(f"❌ Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
