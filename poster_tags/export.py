"""
Output export for Poster Tags.

This module encodes composited posters as PNG and writes them to disk with a
write-temp-then-rename step so a destination is never left half written.
"""

import io
import os
import uuid
from pathlib import Path

from PIL import Image

from .constants import logger


def encode_png(image: Image.Image) -> bytes:
    """Encode an image as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, 'PNG')
    return buffer.getvalue()


def temp_path_for(output_path: Path) -> Path:
    """Temporary sibling of ``output_path`` used while writing."""
    return output_path.parent / f"poster_{uuid.uuid4().hex}.tmp.png"


def save_png_atomic(image: Image.Image, output_path: Path) -> Path:
    """
    Save an image as PNG, replacing ``output_path`` only once fully written.

    The temporary file is removed if anything fails, then the error is
    re-raised.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = temp_path_for(output_path)

    try:
        image.save(temp_path, 'PNG')
        os.replace(temp_path, output_path)
    except BaseException:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as cleanup_error:
            logger.debug(f"TEMP_CLEANUP_FAILED path={temp_path} error={cleanup_error}")
        raise

    logger.debug(f"POSTER_WRITTEN path={output_path}")
    return output_path
