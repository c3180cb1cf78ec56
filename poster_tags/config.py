"""
Configuration management for Poster Tags.

This module provides the badge configuration snapshot together with the
functions for loading, parsing, redacting and writing configuration files.
"""

import re
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

from .constants import (
    logger,
    DEFAULT_TAG_SIZE,
    MIN_TAG_SIZE,
    MAX_TAG_SIZE,
    MIN_CURVATURE,
    MAX_CURVATURE,
)


class BadgePosition(Enum):
    """Anchor of a badge on the poster."""
    TOP_LEFT = 'TopLeft'
    TOP_RIGHT = 'TopRight'
    TOP_CENTER = 'TopCenter'
    BOTTOM_LEFT = 'BottomLeft'
    BOTTOM_RIGHT = 'BottomRight'
    BOTTOM_CENTER = 'BottomCenter'


class ResolutionFormat(Enum):
    """Resolution display format: letters (SD/HD/FHD/UHD), numbers (480p/720p/1080p/4K) or both."""
    LETTERS = 'Letters'
    NUMBERS = 'Numbers'
    BOTH = 'Both'


@dataclass(frozen=True)
class BadgeConfig:
    """
    User-controlled badge settings.

    A config is a read-only snapshot for the duration of a badge build;
    concurrent builds may each use a different snapshot.
    """
    selected_library_ids: Tuple[str, ...] = ()
    show_4k: bool = True
    show_hd: bool = True
    show_quality: bool = True
    show_audio_language_flags: bool = True
    show_imdb_rating: bool = True
    show_rotten_tomatoes: bool = True
    show_hdr: bool = True
    show_dolby_atmos: bool = True
    show_dts_x: bool = True
    skip_items_with_no_audio_language: bool = True
    use_external_ratings: bool = False
    mdblist_api_key: str = ''
    # Plugin settings carried through load and write; no badge code reads them
    tmdb_api_key: str = ''
    custom_tag_enabled: bool = False
    custom_tag_text: str = ''
    custom_tag_position: BadgePosition = BadgePosition.TOP_LEFT
    tag_curvature: int = 0
    tag_size: int = DEFAULT_TAG_SIZE
    resolution_format: ResolutionFormat = ResolutionFormat.LETTERS
    resolution_position: BadgePosition = BadgePosition.BOTTOM_LEFT
    imdb_position: BadgePosition = BadgePosition.BOTTOM_LEFT
    rotten_tomatoes_position: BadgePosition = BadgePosition.BOTTOM_LEFT
    hdr_position: BadgePosition = BadgePosition.BOTTOM_LEFT
    audio_position: BadgePosition = BadgePosition.BOTTOM_LEFT
    audio_flags_position: BadgePosition = BadgePosition.BOTTOM_LEFT
    # Plugin setting carried through load and write; nothing reads it
    auto_apply_on_library_scan: bool = True

    @property
    def font_size(self) -> int:
        return clamp(self.tag_size, MIN_TAG_SIZE, MAX_TAG_SIZE)

    @property
    def curvature(self) -> int:
        return clamp(self.tag_curvature, MIN_CURVATURE, MAX_CURVATURE)


# PascalCase keys written by the Jellyfin plugin settings page
LEGACY_KEY_ALIASES = {
    'SelectedLibraryIds': 'selected_library_ids',
    'Show4K': 'show_4k',
    'ShowHD': 'show_hd',
    'ShowQuality': 'show_quality',
    'ShowAudioLanguageFlags': 'show_audio_language_flags',
    'ShowImdbRating': 'show_imdb_rating',
    'ShowRottenTomatoes': 'show_rotten_tomatoes',
    'ShowHDR': 'show_hdr',
    'ShowDolbyAtmos': 'show_dolby_atmos',
    'ShowDtsX': 'show_dts_x',
    'SkipItemsWithNoAudioLanguage': 'skip_items_with_no_audio_language',
    'UseExternalRatings': 'use_external_ratings',
    'MdbListApiKey': 'mdblist_api_key',
    'TmdbApiKey': 'tmdb_api_key',
    'CustomTagEnabled': 'custom_tag_enabled',
    'CustomTagText': 'custom_tag_text',
    'CustomTagPosition': 'custom_tag_position',
    'TagCurvature': 'tag_curvature',
    'TagSize': 'tag_size',
    'ResolutionFormat': 'resolution_format',
    'ResolutionPosition': 'resolution_position',
    'ImdbPosition': 'imdb_position',
    'RottenTomatoesPosition': 'rotten_tomatoes_position',
    'HdrPosition': 'hdr_position',
    'AudioPosition': 'audio_position',
    'AudioFlagsPosition': 'audio_flags_position',
    'AutoApplyOnLibraryScan': 'auto_apply_on_library_scan',
}

SECRET_KEYS = ('mdblist_api_key', 'tmdb_api_key')

_TRUE_STRINGS = {'true', 'yes', 'on', '1'}
_FALSE_STRINGS = {'false', 'no', 'off', '0', ''}

E = TypeVar('E', bound=Enum)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def _parse_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return default


def _parse_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_enum(enum_type: Type[E], value: Any, default: E) -> E:
    """Parse an enum by value or member name, ignoring case, separators and whitespace."""
    if isinstance(value, enum_type):
        return value
    if not isinstance(value, str):
        return default
    wanted = re.sub(r'[\s_\-]', '', value).lower()
    for member in enum_type:
        if wanted in (member.value.lower(), member.name.replace('_', '').lower()):
            return member
    return default


def _normalize_key(key: Any) -> str:
    key = str(key)
    return LEGACY_KEY_ALIASES.get(key, key)


def badge_config_from_dict(data: Dict[str, Any]) -> BadgeConfig:
    """
    Build a BadgeConfig from a mapping of settings.

    Accepts snake_case keys as well as the PascalCase keys of the Jellyfin
    plugin configuration. Unknown keys are ignored and unparseable values keep
    their defaults. Tag size and curvature are clamped to their valid ranges.
    """
    defaults = BadgeConfig()
    if not isinstance(data, dict):
        return defaults

    values: Dict[str, Any] = {}
    normalized = {_normalize_key(k): v for k, v in data.items()}

    for f in fields(BadgeConfig):
        if f.name not in normalized:
            continue
        raw = normalized[f.name]
        default = getattr(defaults, f.name)

        if isinstance(default, bool):
            values[f.name] = _parse_bool(raw, default)
        elif isinstance(default, int):
            values[f.name] = _parse_int(raw, default)
        elif isinstance(default, Enum):
            values[f.name] = parse_enum(type(default), raw, default)
        elif isinstance(default, tuple):
            if isinstance(raw, (list, tuple)):
                values[f.name] = tuple(str(v) for v in raw if v)
            elif isinstance(raw, str) and raw.strip():
                values[f.name] = (raw.strip(),)
        else:
            values[f.name] = '' if raw is None else str(raw)

    config = replace(defaults, **values)
    return replace(
        config,
        tag_size=clamp(config.tag_size, MIN_TAG_SIZE, MAX_TAG_SIZE),
        tag_curvature=clamp(config.tag_curvature, MIN_CURVATURE, MAX_CURVATURE),
    )


def badge_config_to_dict(config: BadgeConfig) -> Dict[str, Any]:
    """Convert a BadgeConfig to plain YAML/JSON-friendly values."""
    data = asdict(config)
    for key, value in data.items():
        if isinstance(value, Enum):
            data[key] = value.value
        elif isinstance(value, tuple):
            data[key] = list(value)
    return data


def redact_config(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of config data with API keys redacted for logging."""
    redacted = dict(data)
    for key in SECRET_KEYS:
        if redacted.get(key):
            redacted[key] = '[REDACTED]'
    return redacted


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping from disk."""
    import yaml
    with path.open('r') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise RuntimeError(f"Failed to parse YAML {path}: {e}")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError(f"Expected a mapping at the top of {path}, got {type(data).__name__}")
    return data


def _write_yaml(path: Path, data: Dict[str, Any]) -> None:
    """Write data to a YAML file."""
    from ruamel.yaml import YAML
    yaml_parser = YAML()
    yaml_parser.default_flow_style = False
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open('w') as f:
        yaml_parser.dump(data, f)


def load_badge_config(path: Path, section: Optional[str] = 'poster_tags') -> BadgeConfig:
    """
    Load the badge configuration from a YAML file.

    The settings may live at the top level or below a ``poster_tags`` key.
    """
    if not path.exists():
        raise FileNotFoundError(f"Badge config not found: {path}")

    data = load_yaml_file(path)
    if section and isinstance(data.get(section), dict):
        data = data[section]

    config = badge_config_from_dict(data)
    logger.debug(f"CONFIG_LOADED path={path} values={redact_config(badge_config_to_dict(config))}")
    return config


def write_badge_config(path: Path, config: Optional[BadgeConfig] = None) -> Path:
    """Write a badge configuration (defaults when omitted) as YAML."""
    _write_yaml(path, {'poster_tags': badge_config_to_dict(config or BadgeConfig())})
    logger.info(f"Wrote badge config: {path}")
    return path
