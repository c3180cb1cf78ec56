"""
Media fact extraction for Poster Tags.

Turns an item's raw stream and rating metadata into the typed attributes the
badge builder consumes. Extraction never fails: missing or unreadable data
yields the "unknown" value for the affected field.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .constants import logger


class HdrSignal(Enum):
    """Detected high dynamic range technology. Values are the badge texts."""
    NONE = ''
    HDR = 'HDR'
    HDR10 = 'HDR10'
    HDR10_PLUS = 'HDR10+'
    HLG = 'HLG'
    DOLBY_VISION = 'Dolby Vision'


@dataclass(frozen=True)
class MediaStream:
    """A single media stream as reported by the host library."""
    type: str
    height: Optional[int] = None
    video_range_type: str = ''
    dovi_title: str = ''
    profile: str = ''
    language: str = ''

    @property
    def is_video(self) -> bool:
        return self.type.lower() == 'video'

    @property
    def is_audio(self) -> bool:
        return self.type.lower() == 'audio'


@dataclass(frozen=True)
class RatingKey:
    """External ratings lookup key: media kind ('movie' or 'show') and TMDb id."""
    media_kind: str
    external_id: str


@dataclass(frozen=True)
class MediaItem:
    """Host library item snapshot."""
    item_id: str
    name: str = ''
    kind: str = 'movie'
    height: int = 0
    community_rating: Optional[float] = None
    critic_rating: Optional[float] = None
    image_path: Optional[str] = None
    rating_key: Optional[RatingKey] = None
    library_id: Optional[str] = None


@dataclass(frozen=True)
class MediaFacts:
    """Immutable per-item snapshot of everything the badges are derived from."""
    resolution_height: int = 0
    hdr_signal: HdrSignal = HdrSignal.NONE
    audio_languages: Tuple[str, ...] = ()
    has_dolby_atmos: bool = False
    has_dts_x: bool = False
    community_rating: Optional[float] = None
    critic_rating: Optional[float] = None
    external_ratings: Optional[Dict[str, float]] = field(default=None, hash=False)


StreamSource = Callable[[str], Optional[Sequence[MediaStream]]]


def read_streams(item: MediaItem, stream_source: Optional[StreamSource]) -> Optional[List[MediaStream]]:
    """Fetch the item's streams, or None when they cannot be read."""
    if stream_source is None:
        return None
    try:
        streams = stream_source(item.item_id)
    except Exception as e:
        logger.debug(f"STREAMS_UNAVAILABLE item={item.item_id} error={e}")
        return None
    if streams is None:
        return None
    return list(streams)


def detect_resolution(item: MediaItem, streams: Optional[List[MediaStream]]) -> Optional[int]:
    """Prefer the item's own height, then the first video stream with a height."""
    if item.height and item.height > 0:
        return item.height
    for stream in streams or []:
        if stream.is_video and stream.height and stream.height > 0:
            return stream.height
    return None


def detect_hdr_signal(streams: Optional[List[MediaStream]]) -> Optional[HdrSignal]:
    """
    Detect the HDR technology across all video streams.

    Dolby Vision wins outright as soon as a stream reports it. Otherwise
    HDR10+ may replace an earlier weaker result, while HDR10, HLG and generic
    HDR only fill an empty slot.
    """
    best: Optional[HdrSignal] = None
    for stream in streams or []:
        if not stream.is_video:
            continue

        range_type = (stream.video_range_type or '').lower()
        dovi_title = (stream.dovi_title or '').lower()

        if 'dolby vision' in dovi_title:
            return HdrSignal.DOLBY_VISION
        if 'dovi' in range_type or 'dolby' in range_type:
            return HdrSignal.DOLBY_VISION

        if 'hdr10plus' in range_type:
            best = HdrSignal.HDR10_PLUS
        elif best is not None:
            continue
        elif 'hdr10' in range_type:
            best = HdrSignal.HDR10
        elif 'hlg' in range_type:
            best = HdrSignal.HLG
        elif 'hdr' in range_type:
            best = HdrSignal.HDR
    return best


def detect_audio_languages(streams: Optional[List[MediaStream]]) -> Optional[Tuple[str, ...]]:
    """Audio stream languages in stream order, deduplicated case-insensitively."""
    if streams is None:
        return None
    languages: List[str] = []
    seen = set()
    for stream in streams:
        if not stream.is_audio:
            continue
        lang = (stream.language or '').strip()
        if len(lang) < 2 or lang.lower() in seen:
            continue
        seen.add(lang.lower())
        languages.append(lang)
    return tuple(languages)


def detect_premium_audio(streams: Optional[List[MediaStream]]) -> Optional[Tuple[bool, bool]]:
    """Return (has_dolby_atmos, has_dts_x) from audio stream profiles."""
    if streams is None:
        return None
    has_atmos = False
    has_dts_x = False
    for stream in streams:
        if not stream.is_audio:
            continue
        profile = (stream.profile or '').lower()
        if 'dolby atmos' in profile:
            has_atmos = True
        if 'dts:x' in profile:
            has_dts_x = True
        if has_atmos and has_dts_x:
            break
    return has_atmos, has_dts_x


def audio_languages(item: MediaItem, stream_source: Optional[StreamSource]) -> Tuple[str, ...]:
    """Audio languages only, for evaluating the skip rule before any image I/O."""
    return detect_audio_languages(read_streams(item, stream_source)) or ()


def extract_facts(
    item: MediaItem,
    stream_source: Optional[StreamSource],
    external_ratings: Optional[Dict[str, float]] = None
) -> MediaFacts:
    """Build the MediaFacts snapshot for an item."""
    streams = read_streams(item, stream_source)

    height = detect_resolution(item, streams)
    hdr = detect_hdr_signal(streams)
    languages = detect_audio_languages(streams)
    premium = detect_premium_audio(streams)
    has_atmos, has_dts_x = premium if premium is not None else (False, False)

    return MediaFacts(
        resolution_height=height if height is not None else 0,
        hdr_signal=hdr if hdr is not None else HdrSignal.NONE,
        audio_languages=languages if languages is not None else (),
        has_dolby_atmos=has_atmos,
        has_dts_x=has_dts_x,
        community_rating=item.community_rating,
        critic_rating=item.critic_rating,
        external_ratings=dict(external_ratings) if external_ratings else None,
    )
