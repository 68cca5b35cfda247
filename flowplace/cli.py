#!/usr/bin/env python3
"""
FlowPlace CLI

Command-line interface for placing batches of content onto canvas
description files.

Usage:
    flowplace place <canvas.yaml> <items.yaml> [options]
    flowplace info <canvas.yaml>
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .errors import FlowPlaceError


def load_placement_config(args):
    """Resolve the placement config from --preset/--config and the environment."""
    from .placement.config import config_from_env, get_preset, load_config

    config = config_from_env()
    if getattr(args, 'preset', None):
        config = get_preset(args.preset)
    if getattr(args, 'config', None):
        config = load_config(args.config, base=config)
    return config


def cmd_place(args):
    """Place a batch of items onto a canvas."""
    from .canvas.canvas_file import load_canvas, load_items, save_canvas
    from .canvas.memory_adapter import MemoryHost
    from .placement.driver import BatchDriver

    canvas = load_canvas(args.canvas)
    items = load_items(args.items)
    config = load_placement_config(args)

    print(f"Canvas: {canvas.name} ({len(canvas.pages)} pages, "
          f"{canvas.layout.column_count} columns)")
    print(f"Items: {len(items)}")

    host = MemoryHost([canvas])
    driver = BatchDriver(host, config=config)
    result = driver.run_batch(items)

    if result.rejected:
        print(f"\nError: {result.rejection}")
        return 1

    print()
    for item_result in result.results:
        if item_result.bounds is not None:
            print(f"  placed  {item_result.name}: page {item_result.page_index + 1} "
                  f"at {item_result.bounds}")
        else:
            print(f"  failed  {item_result.name}: {item_result.error}")

    for warning in result.warnings:
        print(f"  Warning: {warning}")

    print(f"\n{result.summary()}")

    if not args.dry_run:
        output_path = Path(args.output) if args.output else Path(args.canvas)
        save_canvas(canvas, output_path)
        print(f"Saved to: {output_path}")
    else:
        print("Dry run - not saving changes")

    return 0 if result.failed_count == 0 else 1


def cmd_info(args):
    """Show page, margin and column information for a canvas."""
    from .canvas.abstraction import describe_layout
    from .canvas.canvas_file import load_canvas

    canvas = load_canvas(args.canvas)

    for label, value in describe_layout(canvas.layout, canvas.name):
        print(f"{label + ':':<15} {value}")
    print(f"{'Pages:':<15} {len(canvas.pages)}")
    print(f"{'Anchors:':<15} {len(canvas.anchors)}")

    owners = canvas.owner_names()
    if owners:
        print(f"{'Placed items:':<15} {len(owners)}")

    return 0


def main(argv: Optional[list] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="FlowPlace - column-flow placement of content onto paged canvases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  flowplace place brochure.yaml items.yaml
  flowplace place brochure.yaml items.yaml -o placed.yaml --preset strict
  flowplace info brochure.yaml
        """,
    )

    parser.add_argument('--version', action='version', version=f'flowplace {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Place command
    place_parser = subparsers.add_parser('place', help='Place a batch of items')
    place_parser.add_argument('canvas', help='Path to canvas description (YAML)')
    place_parser.add_argument('items', help='Path to item list (YAML)')
    place_parser.add_argument('-o', '--output', help='Output file path (default: overwrite canvas)')
    place_parser.add_argument('--config', help='Placement config file (YAML)')
    place_parser.add_argument('--preset', help='Placement preset (default, strict, no_new_pages)')
    place_parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    place_parser.add_argument('--dry-run', action='store_true', help="Don't save changes")

    # Info command
    info_parser = subparsers.add_parser('info', help='Show canvas layout information')
    info_parser.add_argument('canvas', help='Path to canvas description (YAML)')
    info_parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    commands = {
        'place': cmd_place,
        'info': cmd_info,
    }

    try:
        return commands[args.command](args)
    except (FileNotFoundError, ValueError, FlowPlaceError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
