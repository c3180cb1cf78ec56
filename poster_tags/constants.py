"""
Constants and configuration for Poster Tags.

This module contains the shared logger, environment-based settings and the
fixed rendering constants used throughout the badge compositor.
"""

import logging
import os
import sys

logger = logging.getLogger('PosterTags')


def configure_logging(level: int = logging.INFO) -> None:
    """Install the stdout handler used by the command line tools."""
    logging.basicConfig(
        level=level,
        format='| %(levelname)-8s | %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


# ============================================================================
# Environment Configuration
# ============================================================================

# External ratings lookup timeout in seconds
RATINGS_TIMEOUT = float(os.environ.get('POSTER_TAGS_RATINGS_TIMEOUT', '15'))

# Base URL of the MDBList API (overridable for testing against a local stub)
MDBLIST_API_URL = os.environ.get('MDBLIST_API_URL', 'https://api.mdblist.com').rstrip('/')

USER_AGENT = 'PosterTags/1.0'

# Parallel item processing in batch mode
MAX_COMPOSITE_WORKERS = max(1, int(os.environ.get('POSTER_TAGS_MAX_WORKERS', '4')))

# ============================================================================
# Font Configuration
# ============================================================================

# Optional explicit font file, tried after the bold family candidates
FALLBACK_FONT = os.environ.get('POSTER_TAGS_FALLBACK_FONT', '')

COMMON_FONT_PATHS = [
    path for path in os.environ.get('POSTER_TAGS_FONT_DIRS', '').split(os.pathsep) if path
] + [
    '/config/fonts',
    '/fonts',
    '/usr/share/fonts',
    '/usr/local/share/fonts',
    '/Library/Fonts',
    'C:/Windows/Fonts',
]

# Bold sans-serif families in preference order, with the file names they ship as
BOLD_FONT_CANDIDATES = [
    ('Arial', ['arialbd.ttf', 'Arial Bold.ttf', 'Arial-Bold.ttf']),
    ('Segoe UI', ['segoeuib.ttf']),
    ('Helvetica', ['Helvetica-Bold.ttf', 'Helvetica Bold.ttf']),
    ('Liberation Sans', ['LiberationSans-Bold.ttf']),
    ('DejaVu Sans', ['DejaVuSans-Bold.ttf']),
]

FONT_EXTENSIONS = ('.ttf', '.otf', '.ttc')

# ============================================================================
# Badge Rendering
# ============================================================================

MIN_TAG_SIZE = 12
MAX_TAG_SIZE = 28
DEFAULT_TAG_SIZE = 18

MIN_CURVATURE = 0
MAX_CURVATURE = 100

# Black at ~70% opacity behind white text
BADGE_FILL = (0, 0, 0, 180)
BADGE_TEXT_COLOR = (255, 255, 255, 255)

# Linear segments per quarter-circle corner
ARC_STEPS = 8

# At most this many audio language flags per badge
MAX_LANGUAGE_FLAGS = 4
