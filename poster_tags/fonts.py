"""
Font handling for Poster Tags.

This module resolves the bold sans-serif font used for badge text and keeps
one loaded instance per size. Resolution order:

  1. bold Arial, Segoe UI, Helvetica, Liberation Sans, DejaVu Sans files, by
     name through Pillow's own font search and then in the font directories
  2. POSTER_TAGS_FALLBACK_FONT when set
  3. the first font file found in any font directory
  4. Pillow's built-in default font at the requested size
"""

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from PIL import ImageFont

from .constants import (
    logger,
    BOLD_FONT_CANDIDATES,
    COMMON_FONT_PATHS,
    FALLBACK_FONT,
    FONT_EXTENSIONS,
)

# ============================================================================
# Font Caching - one font object per size, shared by all render threads
# ============================================================================
_font_cache: Dict[int, Any] = {}
_font_lock = threading.Lock()


def find_font_files(font_dirs: Optional[List[str]] = None) -> List[Path]:
    """List font files below the font directories, in directory order."""
    found: List[Path] = []
    for font_dir in font_dirs if font_dirs is not None else COMMON_FONT_PATHS:
        root = Path(font_dir)
        if not root.is_dir():
            continue
        try:
            found.extend(
                sorted(p for p in root.rglob('*') if p.suffix.lower() in FONT_EXTENSIONS)
            )
        except OSError as e:
            logger.debug(f"FONT_DIR_UNREADABLE dir={font_dir} error={e}")
    return found


def _try_truetype(source: str, size: int) -> Optional[Any]:
    try:
        return ImageFont.truetype(source, size)
    except OSError:
        return None


def _find_in_dirs(filename: str, font_files: List[Path]) -> Optional[Path]:
    wanted = filename.lower()
    for path in font_files:
        if path.name.lower() == wanted:
            return path
    return None


def load_badge_font(size: int, font_dirs: Optional[List[str]] = None) -> Any:
    """Load the best available badge font at ``size`` without caching."""
    font_files = find_font_files(font_dirs)

    for family, filenames in BOLD_FONT_CANDIDATES:
        for filename in filenames:
            font = _try_truetype(filename, size)
            if font is None:
                path = _find_in_dirs(filename, font_files)
                font = _try_truetype(str(path), size) if path else None
            if font is not None:
                logger.debug(f"FONT_RESOLVED family={family} file={filename} size={size}")
                return font

    if FALLBACK_FONT:
        font = _try_truetype(FALLBACK_FONT, size)
        if font is not None:
            logger.debug(f"FONT_RESOLVED fallback={FALLBACK_FONT} size={size}")
            return font
        logger.warning(f"FALLBACK_FONT_MISSING: {FALLBACK_FONT}")

    for path in font_files:
        font = _try_truetype(str(path), size)
        if font is not None:
            logger.debug(f"FONT_RESOLVED system={path} size={size}")
            return font

    logger.warning(f"FONT_WARNING: no font files found, using Pillow default font size={size}")
    return ImageFont.load_default(size=size)


def get_badge_font(size: int) -> Any:
    """
    Get a cached badge font for the given size.

    Fonts are expensive to load from disk, so each size is loaded once and
    reused across threads.
    """
    with _font_lock:
        font = _font_cache.get(size)
        if font is None:
            font = load_badge_font(size)
            _font_cache[size] = font
        return font


def clear_font_cache() -> None:
    with _font_lock:
        _font_cache.clear()


def validate_fonts_at_startup() -> List[str]:
    """
    Log the font directories that exist and how many fonts each holds.

    Returns a list of available font directories.
    """
    available_dirs = []
    for font_dir in COMMON_FONT_PATHS:
        if not Path(font_dir).is_dir():
            continue
        available_dirs.append(font_dir)
        count = len(find_font_files([font_dir]))
        if count:
            logger.debug(f"FONT_DIR_FOUND: {font_dir} ({count} fonts)")
        else:
            logger.debug(f"FONT_DIR_EMPTY: {font_dir} exists but contains no fonts")

    if not available_dirs:
        logger.warning("FONT_WARNING: No font directories found!")
        logger.warning(f"  Checked: {', '.join(COMMON_FONT_PATHS)}")
        logger.warning("  Badges will use Pillow's default font. Set POSTER_TAGS_FONT_DIRS to fix.")

    return available_dirs
