"""
Item manifests for Poster Tags.

A manifest is a YAML file describing the library items to tag, standing in
for a media server's library:

    items:
      - id: tt0133093
        name: The Matrix
        type: movie
        image: posters/matrix.jpg
        tmdb_id: 603
        library_id: movies
        streams:
          - {type: video, height: 2160, video_range_type: DOVIWithHDR10}
          - {type: audio, language: eng, profile: Dolby TrueHD + Dolby Atmos}

Relative image paths resolve against the manifest's directory.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import load_yaml_file
from .constants import logger
from .media_facts import MediaItem, MediaStream, RatingKey

MOVIE_KINDS = ('movie',)
SHOW_KINDS = ('series', 'show')
EPISODE_KINDS = ('episode',)
SUPPORTED_KINDS = ('movie', 'series', 'show', 'episode', 'video', 'musicvideo')


class ManifestStreamSource:
    """Stream lookup backed by the ``streams`` lists of a manifest."""

    def __init__(self, streams: Optional[Dict[str, Tuple[MediaStream, ...]]] = None):
        self._streams = dict(streams or {})

    def __call__(self, item_id: str) -> Optional[Sequence[MediaStream]]:
        return self._streams.get(item_id)

    def __len__(self) -> int:
        return len(self._streams)


@dataclass
class Manifest:
    path: Path
    items: List[MediaItem] = field(default_factory=list)
    stream_source: ManifestStreamSource = field(default_factory=ManifestStreamSource)

    def find(self, item_id: str) -> Optional[MediaItem]:
        for item in self.items:
            if item.item_id == item_id:
                return item
        return None


def resolve_rating_key(kind: str, tmdb_id: Any, series_tmdb_id: Any = None) -> Optional[RatingKey]:
    """
    External ratings key for an item.

    Movies use their own TMDb id, series theirs as a show, and episodes the
    TMDb id of their series. Other item kinds have no key.
    """
    kind = (kind or '').lower()
    if kind in MOVIE_KINDS:
        media_kind, external_id = 'movie', tmdb_id
    elif kind in SHOW_KINDS:
        media_kind, external_id = 'show', tmdb_id
    elif kind in EPISODE_KINDS:
        media_kind, external_id = 'show', series_tmdb_id
    else:
        return None

    if external_id is None or not str(external_id).strip():
        return None
    return RatingKey(media_kind, str(external_id).strip())


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_stream(data: Dict[str, Any]) -> Optional[MediaStream]:
    stream_type = data.get('type')
    if not isinstance(stream_type, str) or not stream_type.strip():
        return None
    return MediaStream(
        type=stream_type.strip().lower(),
        height=_optional_int(data.get('height')),
        video_range_type=str(data.get('video_range_type') or ''),
        dovi_title=str(data.get('dovi_title') or ''),
        profile=str(data.get('profile') or ''),
        language=str(data.get('language') or ''),
    )


def parse_item(data: Dict[str, Any], base_dir: Path,
               default_library: Optional[str] = None) -> Optional[MediaItem]:
    """Build a MediaItem from one manifest entry, or None when it has no id."""
    item_id = data.get('id')
    if item_id is None or not str(item_id).strip():
        return None

    kind = str(data.get('type') or 'movie').strip().lower()
    if kind not in SUPPORTED_KINDS:
        logger.warning(f"MANIFEST_UNKNOWN_TYPE item={item_id} type={kind}")

    image = data.get('image')
    image_path = None
    if isinstance(image, str) and image.strip():
        image_path = Path(image.strip())
        if not image_path.is_absolute():
            image_path = base_dir / image_path

    library_id = data.get('library_id', default_library)

    return MediaItem(
        item_id=str(item_id).strip(),
        name=str(data.get('name') or ''),
        kind=kind,
        height=_optional_int(data.get('height')) or 0,
        community_rating=_optional_float(data.get('community_rating')),
        critic_rating=_optional_float(data.get('critic_rating')),
        image_path=str(image_path) if image_path else None,
        rating_key=resolve_rating_key(kind, data.get('tmdb_id'), data.get('series_tmdb_id')),
        library_id=str(library_id) if library_id is not None else None,
    )


def load_manifest(path: Path) -> Manifest:
    """
    Load an item manifest.

    Raises:
        FileNotFoundError: the manifest does not exist
        RuntimeError: the manifest is not valid YAML or has no ``items`` list
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Item manifest not found: {path}")

    data = load_yaml_file(path)
    entries = data.get('items')
    if not isinstance(entries, list):
        raise RuntimeError(f"Item manifest {path} has no 'items' list")

    base_dir = path.parent
    default_library = data.get('library_id')
    manifest = Manifest(path=path)
    streams: Dict[str, Tuple[MediaStream, ...]] = {}

    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            logger.warning(f"MANIFEST_ENTRY_INVALID index={index}")
            continue
        item = parse_item(entry, base_dir, default_library)
        if item is None:
            logger.warning(f"MANIFEST_ENTRY_MISSING_ID index={index}")
            continue

        raw_streams = entry.get('streams')
        if isinstance(raw_streams, list):
            parsed = [parse_stream(s) for s in raw_streams if isinstance(s, dict)]
            streams[item.item_id] = tuple(s for s in parsed if s is not None)

        manifest.items.append(item)

    manifest.stream_source = ManifestStreamSource(streams)
    logger.debug(f"MANIFEST_LOADED path={path} items={len(manifest.items)}")
    return manifest


def select_items(items: Sequence[MediaItem], library_ids: Sequence[str]) -> List[MediaItem]:
    """Items in the selected libraries; an empty selection keeps everything."""
    wanted = {str(lib) for lib in library_ids if lib}
    if not wanted:
        return list(items)
    return [item for item in items if item.library_id in wanted]
