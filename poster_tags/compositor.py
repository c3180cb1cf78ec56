"""
Poster Tags Compositor

Draws metadata badges onto poster images with Pillow and runs the per-item
pipeline around it:

  skip rule -> poster lookup -> external ratings (optional, async) ->
  media facts -> badge list -> layout -> render -> PNG bytes or atomic write

Each badge is drawn on its own box-sized RGBA layer (translucent outline plus
white text) and alpha-composited onto the poster, in badge order, so badges
sharing an anchor overlap with the later one on top.

Batch runs process items concurrently, bounded by MAX_COMPOSITE_WORKERS, with
the Pillow work moved off the event loop. One failing item never stops a
batch; cancellation always propagates.
"""

import asyncio
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

import aiohttp
from PIL import Image, ImageDraw

from .badges import Badge, build_badges, should_skip_item
from .config import BadgeConfig
from .constants import logger, BADGE_FILL, BADGE_TEXT_COLOR, MAX_COMPOSITE_WORKERS
from .export import encode_png, save_png_atomic
from .fonts import get_badge_font
from .layout import PlacedBadge, badge_metrics, place_badges
from .media_facts import MediaItem, StreamSource, audio_languages, extract_facts
from .ratings import MdbListRatingsSource, RatingsSource, fetch_external_ratings, ratings_enabled
from .shapes import translate


@dataclass(frozen=True)
class RenderOutcome:
    """How a badge pass went: badges drawn and the error that stopped it, if any."""
    drawn: int
    total: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ProcessResult:
    """Per-item report. ``changed`` is True only when a poster was written."""
    item_id: str
    changed: bool
    reason: str = ''
    output_path: Optional[Path] = None


@dataclass
class BatchSummary:
    total: int = 0
    processed: int = 0
    updated: int = 0
    failed: int = 0
    results: List[ProcessResult] = field(default_factory=list)


# ============================================================================
# Rendering
# ============================================================================

def render_badges(
    canvas: Image.Image,
    placed: Sequence[PlacedBadge],
    font: Any,
    padding: int
) -> RenderOutcome:
    """
    Draw placed badges onto an RGBA canvas in place.

    A drawing error stops the pass; badges already drawn stay on the canvas
    and the error is reported in the outcome.
    """
    drawn = 0
    for item in placed:
        try:
            layer = Image.new('RGBA', (item.width, item.height), (0, 0, 0, 0))
            draw = ImageDraw.Draw(layer)
            draw.polygon(translate(list(item.outline), -item.x, -item.y), fill=BADGE_FILL)
            draw.text((padding, padding), item.badge.text, font=font, fill=BADGE_TEXT_COLOR)
            canvas.alpha_composite(layer, dest=(item.x, item.y))
        except Exception as e:
            logger.warning(f"BADGE_DRAW_FAILED text={item.badge.text!r} error={e}")
            return RenderOutcome(drawn=drawn, total=len(placed), error=str(e))
        drawn += 1
    return RenderOutcome(drawn=drawn, total=len(placed))


def prepare_canvas(image: Image.Image) -> Image.Image:
    """Return an RGBA copy of the poster to draw on."""
    if image.mode == 'RGBA':
        return image.copy()
    return image.convert('RGBA')


def load_poster(path: Path) -> Image.Image:
    """Load a poster fully into memory as RGBA, releasing the file handle."""
    with Image.open(path) as img:
        img.load()
        return prepare_canvas(img)


def compose_poster(
    image: Image.Image,
    badges: Sequence[Badge],
    config: BadgeConfig,
    font: Optional[Any] = None
) -> Tuple[Image.Image, RenderOutcome]:
    """
    Lay out and draw badges on a copy of ``image``.

    Args:
        image: source poster, any mode
        badges: ordered badges from build_badges (custom tag included)
        config: badge settings for size and curvature
        font: font to use instead of the resolved badge font

    Returns:
        Tuple of (composited RGBA image, render outcome)
    """
    canvas = prepare_canvas(image)
    size = config.font_size
    if font is None:
        font = get_badge_font(size)
    padding, line_height = badge_metrics(size)

    placed = place_badges(
        canvas.width, canvas.height, font, badges, padding, line_height, config.curvature
    )
    outcome = render_badges(canvas, placed, font, padding)
    return canvas, outcome


# ============================================================================
# Item helpers
# ============================================================================

def has_usable_image(item: MediaItem) -> bool:
    """True when the item's poster file exists on disk."""
    if not item.image_path or not item.image_path.strip():
        return False
    try:
        return Path(item.image_path).is_file()
    except OSError:
        return False


def ensure_preview_copy(item: MediaItem, dest_path: Path) -> bool:
    """Copy the item's poster to ``dest_path`` so previews never touch the original."""
    if not dest_path or not has_usable_image(item):
        return False
    dest_path = Path(dest_path)
    try:
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(item.image_path, dest_path)
        return True
    except OSError as e:
        logger.warning(f"PREVIEW_COPY_FAILED item={item.item_id} path={dest_path} error={e}")
        return False


async def _external_ratings_for(
    item: MediaItem,
    config: BadgeConfig,
    session: Optional[aiohttp.ClientSession],
    ratings_source: Optional[RatingsSource]
):
    if ratings_source is not None or not ratings_enabled(config):
        return await fetch_external_ratings(item, config, ratings_source)

    async with MdbListRatingsSource(config.mdblist_api_key, session=session) as source:
        return await fetch_external_ratings(item, config, source)


def _build_item_badges(item, stream_source, config, external_ratings) -> List[Badge]:
    facts = extract_facts(item, stream_source, external_ratings)
    return build_badges(facts, config)


def _render_to_file(source: Path, badges: List[Badge], config: BadgeConfig,
                    output_path: Path) -> RenderOutcome:
    poster = load_poster(source)
    canvas, outcome = compose_poster(poster, badges, config)
    if outcome.drawn == 0 and not outcome.ok:
        return outcome
    save_png_atomic(canvas, output_path)
    return outcome


def _render_to_bytes(source: Path, badges: List[Badge], config: BadgeConfig) -> bytes:
    poster = load_poster(source)
    if not badges:
        return encode_png(poster)
    canvas, _ = compose_poster(poster, badges, config)
    return encode_png(canvas)


# ============================================================================
# Pipeline
# ============================================================================

async def process_item(
    item: MediaItem,
    stream_source: Optional[StreamSource],
    config: BadgeConfig,
    output_path: Path,
    *,
    session: Optional[aiohttp.ClientSession] = None,
    ratings_source: Optional[RatingsSource] = None
) -> ProcessResult:
    """
    Draw badges on an item's poster and write the result to ``output_path``.

    Returns a ProcessResult; ``changed`` is False with a ``reason`` for every
    "nothing to do" case and every recoverable failure. Only cancellation
    escapes.
    """
    item_id = item.item_id

    if should_skip_item(audio_languages(item, stream_source), config):
        logger.debug(f"POSTER_TAGS_SKIPPED item={item_id} reason=no_audio_language")
        return ProcessResult(item_id, False, 'no_audio_language')

    if not has_usable_image(item):
        logger.debug(f"POSTER_TAGS_SKIPPED item={item_id} reason=no_image path={item.image_path}")
        return ProcessResult(item_id, False, 'no_image')

    external_ratings = await _external_ratings_for(item, config, session, ratings_source)

    try:
        badges = _build_item_badges(item, stream_source, config, external_ratings)
    except Exception as e:
        logger.warning(f"BADGE_BUILD_FAILED item={item_id} error={e}")
        return ProcessResult(item_id, False, 'badge_build_failed')

    if not badges:
        logger.debug(f"POSTER_TAGS_SKIPPED item={item_id} reason=no_badges")
        return ProcessResult(item_id, False, 'no_badges')

    output_path = Path(output_path)
    try:
        outcome = await asyncio.to_thread(
            _render_to_file, Path(item.image_path), badges, config, output_path
        )
    except Exception as e:
        logger.warning(
            f"POSTER_TAGS_FAILED item={item_id} path={item.image_path} "
            f"error={type(e).__name__}: {e}"
        )
        return ProcessResult(item_id, False, 'write_failed')

    if outcome.drawn == 0 and not outcome.ok:
        return ProcessResult(item_id, False, 'render_failed')

    reason = 'partial_render' if not outcome.ok else ''
    logger.info(f"POSTER_TAGS_APPLIED item={item_id} badges={outcome.drawn} output={output_path}")
    return ProcessResult(item_id, True, reason, output_path)


async def get_preview_image(
    item: MediaItem,
    stream_source: Optional[StreamSource],
    config: BadgeConfig,
    *,
    source_path: Optional[Path] = None,
    session: Optional[aiohttp.ClientSession] = None,
    ratings_source: Optional[RatingsSource] = None
) -> Optional[bytes]:
    """
    Render a preview of the item's poster as PNG bytes without saving it.

    ``source_path`` (e.g. a copy made by ensure_preview_copy) is used instead
    of the item's poster when it exists. With no badges to draw the poster is
    returned unmodified. Returns None when there is no poster or it cannot be
    rendered.
    """
    source = Path(source_path) if source_path else None
    if source is None or not source.is_file():
        if not has_usable_image(item):
            return None
        source = Path(item.image_path)

    external_ratings = await _external_ratings_for(item, config, session, ratings_source)

    try:
        badges = _build_item_badges(item, stream_source, config, external_ratings)
    except Exception as e:
        logger.debug(f"PREVIEW_BADGES_FAILED item={item.item_id} error={e}")
        return None

    try:
        return await asyncio.to_thread(_render_to_bytes, source, badges, config)
    except Exception as e:
        logger.debug(f"PREVIEW_FAILED item={item.item_id} path={source} error={e}")
        return None


def select_batch_items(
    items: Iterable[MediaItem],
    stream_source: Optional[StreamSource],
    config: BadgeConfig
) -> List[MediaItem]:
    """Items that have a poster and are not excluded by the skip rule."""
    return [
        item for item in items
        if item is not None
        and has_usable_image(item)
        and not should_skip_item(audio_languages(item, stream_source), config)
    ]


async def run_batch(
    items: Iterable[MediaItem],
    stream_source: Optional[StreamSource],
    config: BadgeConfig,
    output_for: Callable[[MediaItem], Path],
    *,
    session: Optional[aiohttp.ClientSession] = None,
    ratings_source: Optional[RatingsSource] = None,
    max_workers: int = MAX_COMPOSITE_WORKERS,
    progress: Optional[Callable[[float], None]] = None
) -> BatchSummary:
    """
    Apply badges to many items concurrently.

    Args:
        items: candidate items; those without a poster or excluded by the
            skip rule are filtered out first
        stream_source: stream lookup shared by all items
        config: badge settings snapshot
        output_for: maps an item to its output poster path
        session: aiohttp session for the default MDBList source
        ratings_source: external ratings source overriding MDBList
        max_workers: items processed at the same time
        progress: called with the completed percentage after each item

    Returns:
        BatchSummary with per-item results in completion order
    """
    selected = select_batch_items(items, stream_source, config)
    summary = BatchSummary(total=len(selected))
    semaphore = asyncio.Semaphore(max(1, max_workers))

    logger.info(f"BATCH_START items={summary.total} workers={max(1, max_workers)}")

    owned_source = None
    if ratings_source is None and ratings_enabled(config):
        owned_source = ratings_source = MdbListRatingsSource(config.mdblist_api_key, session=session)

    async def _run_one(item: MediaItem) -> ProcessResult:
        async with semaphore:
            try:
                return await process_item(
                    item, stream_source, config, output_for(item),
                    session=session, ratings_source=ratings_source,
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"POSTER_TAGS_FAILED item={item.item_id} error={type(e).__name__}: {e}")
                return ProcessResult(item.item_id, False, 'error')

    tasks = [asyncio.create_task(_run_one(item)) for item in selected]
    try:
        for next_done in asyncio.as_completed(tasks):
            result = await next_done
            summary.processed += 1
            summary.results.append(result)
            if result.changed:
                summary.updated += 1
            elif result.reason in ('error', 'write_failed', 'render_failed', 'badge_build_failed'):
                summary.failed += 1
            if progress is not None:
                progress(summary.processed / summary.total * 100 if summary.total else 0.0)
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        if owned_source is not None:
            await owned_source.close()

    logger.info(
        f"BATCH_COMPLETE processed={summary.processed} updated={summary.updated} "
        f"failed={summary.failed}"
    )
    return summary
