"""
Command line entry point for Poster Tags.

    poster-tags apply --config CFG --manifest ITEMS --output-dir DIR
    poster-tags preview --config CFG --manifest ITEMS [--item ID] --output FILE
    poster-tags init-config PATH
"""

import argparse
import asyncio
import logging
import re
import sys
from pathlib import Path
from typing import List, Optional

from .compositor import get_preview_image, has_usable_image, run_batch
from .config import load_badge_config, write_badge_config
from .constants import logger, configure_logging, MAX_COMPOSITE_WORKERS
from .fonts import validate_fonts_at_startup
from .jobs import load_manifest, select_items


def output_filename(item_id: str) -> str:
    """File name for an item's tagged poster."""
    return re.sub(r'[^\w.\-]', '_', item_id) + '.png'


def _load_inputs(args):
    config = load_badge_config(Path(args.config))
    manifest = load_manifest(Path(args.manifest))
    return config, manifest


def cmd_apply(args) -> int:
    try:
        config, manifest = _load_inputs(args)
    except (FileNotFoundError, RuntimeError) as e:
        logger.error(f"{e}")
        return 1

    validate_fonts_at_startup()
    output_dir = Path(args.output_dir)
    items = select_items(manifest.items, config.selected_library_ids)
    if not items:
        logger.info("No items selected for poster tagging.")
        return 1

    summary = asyncio.run(run_batch(
        items,
        manifest.stream_source,
        config,
        lambda item: output_dir / output_filename(item.item_id),
        max_workers=args.workers,
    ))

    logger.info(
        f"Poster tags complete: processed {summary.processed} items, "
        f"updated {summary.updated}, failed {summary.failed}"
    )
    return 0 if summary.processed > summary.failed else 1


def cmd_preview(args) -> int:
    try:
        config, manifest = _load_inputs(args)
    except (FileNotFoundError, RuntimeError) as e:
        logger.error(f"{e}")
        return 1

    if args.item:
        item = manifest.find(args.item)
        if item is None:
            logger.error(f"Item not found in manifest: {args.item}")
            return 1
    else:
        item = next((i for i in manifest.items if has_usable_image(i)), None)
        if item is None:
            logger.error("No item with a usable poster in manifest")
            return 1

    data = asyncio.run(get_preview_image(item, manifest.stream_source, config))
    if data is None:
        logger.error(f"Could not render preview for {item.item_id}")
        return 1

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    logger.info(f"Preview written: {output} ({len(data)} bytes)")
    return 0


def cmd_init_config(args) -> int:
    path = Path(args.path)
    if path.exists() and not args.force:
        logger.error(f"Config already exists: {path} (use --force to overwrite)")
        return 1
    write_badge_config(path)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='poster-tags',
        description='Poster Tags - draw quality, language and rating badges onto posters'
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    apply_parser = sub.add_parser('apply', help='Tag every selected item and write the posters')
    apply_parser.add_argument('--config', '-c', required=True, help='Badge config YAML')
    apply_parser.add_argument('--manifest', '-m', required=True, help='Item manifest YAML')
    apply_parser.add_argument('--output-dir', '-o', required=True, help='Directory for tagged posters')
    apply_parser.add_argument('--workers', type=int, default=MAX_COMPOSITE_WORKERS,
                              help='Items processed in parallel')
    apply_parser.set_defaults(func=cmd_apply)

    preview_parser = sub.add_parser('preview', help='Render one item to a PNG file')
    preview_parser.add_argument('--config', '-c', required=True, help='Badge config YAML')
    preview_parser.add_argument('--manifest', '-m', required=True, help='Item manifest YAML')
    preview_parser.add_argument('--item', '-i', help='Item id (default: first item with a poster)')
    preview_parser.add_argument('--output', '-o', required=True, help='Output PNG path')
    preview_parser.set_defaults(func=cmd_preview)

    init_parser = sub.add_parser('init-config', help='Write the default badge config')
    init_parser.add_argument('path', help='Config YAML to create')
    init_parser.add_argument('--force', action='store_true', help='Overwrite an existing file')
    init_parser.set_defaults(func=cmd_init_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
