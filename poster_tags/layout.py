"""
Badge positioning for Poster Tags.

Computes the pixel box of every badge from its anchor, the measured text
width and the badge padding. Badges sharing an anchor are each placed at the
anchor's base offset; there is no stacking between them.
"""

import math
from dataclasses import dataclass, field
from typing import Any, List, Sequence, Tuple

from .badges import Badge
from .config import BadgePosition
from .shapes import Point, build_outline

_RIGHT_POSITIONS = (BadgePosition.TOP_RIGHT, BadgePosition.BOTTOM_RIGHT)
_CENTER_POSITIONS = (BadgePosition.TOP_CENTER, BadgePosition.BOTTOM_CENTER)
_TOP_POSITIONS = (BadgePosition.TOP_LEFT, BadgePosition.TOP_RIGHT, BadgePosition.TOP_CENTER)


@dataclass(frozen=True)
class PlacedBadge:
    """A badge with its resolved box and background outline."""
    badge: Badge
    x: int
    y: int
    width: int
    height: int
    outline: Tuple[Point, ...] = field(default=(), compare=False)

    @property
    def rect(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)


def badge_metrics(font_size: int) -> Tuple[int, int]:
    """Return (padding, line_height) for a font size."""
    padding = max(4, font_size // 2)
    line_height = font_size + 10
    return padding, line_height


def calculate_anchor_position(
    position: BadgePosition,
    image_width: int,
    image_height: int,
    box_width: int,
    box_height: int,
    padding: int
) -> Tuple[int, int]:
    """
    Calculate the top-left (x, y) of a badge box for an anchor.

    Top anchors sit ``padding`` below the top edge and bottom anchors
    ``padding`` above the bottom edge; left and right anchors keep ``padding``
    from their side and center anchors are centred but never closer than
    ``padding`` to the left edge. The result is clamped so the box stays on
    the image, pinning oversized boxes to the near edge.
    """
    if position in _RIGHT_POSITIONS:
        x = image_width - box_width - padding
    elif position in _CENTER_POSITIONS:
        x = max(padding, (image_width - box_width) // 2)
    else:
        x = padding

    if position in _TOP_POSITIONS:
        y = padding
    else:
        y = image_height - box_height - padding

    # Ensure position is within poster bounds
    x = max(0, min(x, image_width - box_width))
    y = max(0, min(y, image_height - box_height))

    return (x, y)


def measure_text(font: Any, text: str) -> float:
    """Advance width of a single line of text in pixels."""
    return float(font.getlength(text))


def place_badges(
    image_width: int,
    image_height: int,
    font: Any,
    badges: Sequence[Badge],
    padding: int,
    line_height: int,
    curvature: int = 0
) -> List[PlacedBadge]:
    """Lay out badges on an image of the given size, in builder order."""
    placed = []
    for badge in badges:
        if not badge.text or not badge.text.strip():
            continue

        box_width = int(math.ceil(measure_text(font, badge.text))) + padding * 2
        box_height = line_height + padding * 2
        x, y = calculate_anchor_position(
            badge.position, image_width, image_height, box_width, box_height, padding
        )
        outline = build_outline((x, y, box_width, box_height), curvature)
        placed.append(PlacedBadge(badge, x, y, box_width, box_height, tuple(outline)))

    return placed
