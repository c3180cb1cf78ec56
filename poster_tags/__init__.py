"""
Poster Tags - Badge Compositor Package

This package draws metadata badges onto poster images, including:
- Media fact extraction from stream metadata
- Badge content building (resolution, HDR, audio, flags, ratings, custom tag)
- Anchor layout and rounded badge outlines
- Font resolution with a thread-safe cache
- External ratings lookup (MDBList)
- Atomic PNG export and batch processing
"""

from .constants import (
    logger,
    configure_logging,
    MAX_COMPOSITE_WORKERS,
    RATINGS_TIMEOUT,
)

from .config import (
    BadgeConfig,
    BadgePosition,
    ResolutionFormat,
    badge_config_from_dict,
    load_badge_config,
    write_badge_config,
    redact_config,
)

from .media_facts import (
    HdrSignal,
    MediaFacts,
    MediaItem,
    MediaStream,
    RatingKey,
    extract_facts,
)

from .badges import Badge, build_badges, should_skip_item

from .layout import PlacedBadge, badge_metrics, calculate_anchor_position, place_badges

from .shapes import build_outline, corner_radius

from .fonts import get_badge_font, validate_fonts_at_startup

from .ratings import MdbListRatingsSource, fetch_external_ratings, parse_mdblist_ratings

from .export import encode_png, save_png_atomic

from .compositor import (
    BatchSummary,
    ProcessResult,
    RenderOutcome,
    compose_poster,
    ensure_preview_copy,
    get_preview_image,
    has_usable_image,
    process_item,
    render_badges,
    run_batch,
)

from .jobs import Manifest, load_manifest, select_items

__all__ = [
    # Constants
    'logger',
    'configure_logging',
    'MAX_COMPOSITE_WORKERS',
    'RATINGS_TIMEOUT',
    # Config
    'BadgeConfig',
    'BadgePosition',
    'ResolutionFormat',
    'badge_config_from_dict',
    'load_badge_config',
    'write_badge_config',
    'redact_config',
    # Facts
    'HdrSignal',
    'MediaFacts',
    'MediaItem',
    'MediaStream',
    'RatingKey',
    'extract_facts',
    # Badges
    'Badge',
    'build_badges',
    'should_skip_item',
    # Layout
    'PlacedBadge',
    'badge_metrics',
    'calculate_anchor_position',
    'place_badges',
    'build_outline',
    'corner_radius',
    # Fonts
    'get_badge_font',
    'validate_fonts_at_startup',
    # Ratings
    'MdbListRatingsSource',
    'fetch_external_ratings',
    'parse_mdblist_ratings',
    # Export
    'encode_png',
    'save_png_atomic',
    # Compositor
    'BatchSummary',
    'ProcessResult',
    'RenderOutcome',
    'compose_poster',
    'ensure_preview_copy',
    'get_preview_image',
    'has_usable_image',
    'process_item',
    'render_badges',
    'run_batch',
    # Jobs
    'Manifest',
    'load_manifest',
    'select_items',
]
