"""
Badge content building for Poster Tags.

Turns typed media facts plus the user's badge configuration into an ordered
list of (text, position) badges. The order is fixed and decides drawing
precedence when badges share a position:

  resolution, audio language flags, IMDb, Rotten Tomatoes, HDR,
  Dolby Atmos, DTS:X, then the custom tag last.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import BadgeConfig, BadgePosition, ResolutionFormat
from .constants import MAX_LANGUAGE_FLAGS
from .media_facts import HdrSignal, MediaFacts


@dataclass(frozen=True)
class Badge:
    """A short text label drawn in a filled box at one of the six anchors."""
    text: str
    position: BadgePosition


# ISO 639-1/639-2 language code -> ISO 3166 country code used for the flag
LANGUAGE_COUNTRY_CODES = {
    'eng': 'US', 'en': 'US',
    'spa': 'ES', 'es': 'ES',
    'fra': 'FR', 'fre': 'FR', 'fr': 'FR',
    'deu': 'DE', 'ger': 'DE', 'de': 'DE',
    'ita': 'IT', 'it': 'IT',
    'por': 'PT', 'pt': 'PT',
    'jpn': 'JP', 'ja': 'JP',
    'kor': 'KR', 'ko': 'KR',
    'zho': 'CN', 'chi': 'CN', 'zh': 'CN',
    'rus': 'RU', 'ru': 'RU',
    'ara': 'SA', 'ar': 'SA',
    'hin': 'IN', 'hi': 'IN',
    'nld': 'NL', 'dut': 'NL', 'nl': 'NL',
    'pol': 'PL', 'pl': 'PL',
    'tur': 'TR', 'tr': 'TR',
    'vie': 'VN', 'vi': 'VN',
    'tha': 'TH', 'th': 'TH',
    'ind': 'ID', 'id': 'ID',
    'ces': 'CZ', 'cze': 'CZ', 'cs': 'CZ',
    'swe': 'SE', 'sv': 'SE',
    'dan': 'DK', 'da': 'DK',
    'nor': 'NO', 'no': 'NO',
    'fin': 'FI', 'fi': 'FI',
    'ell': 'GR', 'gre': 'GR', 'el': 'GR',
    'heb': 'IL', 'he': 'IL',
}

# First regional indicator symbol (U+1F1E6, "A")
_REGIONAL_INDICATOR_A = 0x1F1E6


# ============================================================================
# Resolution
# ============================================================================

def format_resolution_number(height: int) -> str:
    """Bucket a pixel height into the usual 'NNNp' label."""
    if height >= 2160:
        return '2160p'
    if height >= 1080:
        return '1080p'
    if height >= 720:
        return '720p'
    if height >= 576:
        return '576p'
    if height >= 480:
        return '480p'
    return f"{height}p" if height > 0 else ''


def resolution_labels(height: int, config: BadgeConfig) -> Tuple[Optional[str], Optional[str]]:
    """Return (letter, number) labels for a height, honouring the 4K/HD toggles."""
    if height >= 2160 and config.show_4k:
        return 'UHD', '4K'
    if height >= 1080 and config.show_hd:
        return 'FHD', '1080p'
    if height >= 720 and config.show_hd:
        return 'HD', '720p'
    if height > 0:
        return 'SD', format_resolution_number(height)
    return None, None


def resolution_text(height: int, config: BadgeConfig) -> str:
    """Resolution badge text in the configured format, or '' when unknown."""
    letter, number = resolution_labels(height, config)
    if not letter and not number:
        return ''

    if config.resolution_format == ResolutionFormat.NUMBERS:
        return number or letter or ''
    if config.resolution_format == ResolutionFormat.BOTH:
        if letter and number:
            return f"{number} {letter}"
        return number or letter or ''
    return letter or number or ''


# ============================================================================
# Audio language flags
# ============================================================================

def language_to_country_code(language: str) -> Optional[str]:
    """Map an ISO 639 language code to a country code for its flag."""
    if not language:
        return None
    language = language.strip()
    if len(language) < 2:
        return None

    key = language[:3].lower()
    country = LANGUAGE_COUNTRY_CODES.get(key)
    if country is None:
        # Best effort: treat the first two letters as a country code
        country = language[:2].upper()

    if len(country) != 2 or not country.isascii() or not country.isalpha():
        return None
    return country


def country_code_to_flag(code: str) -> str:
    """Convert a two-letter country code to its regional-indicator flag (US -> 🇺🇸)."""
    if not code or len(code) != 2:
        return ''
    code = code.upper()
    return ''.join(chr(_REGIONAL_INDICATOR_A + ord(ch) - ord('A')) for ch in code)


def language_flags(languages: Sequence[str]) -> List[str]:
    """Distinct flags for the first few audio languages, in stream order."""
    flags: List[str] = []
    for language in list(languages)[:MAX_LANGUAGE_FLAGS]:
        country = language_to_country_code(language)
        if not country:
            continue
        flag = country_code_to_flag(country)
        if flag and flag not in flags:
            flags.append(flag)
    return flags[:MAX_LANGUAGE_FLAGS]


# ============================================================================
# Ratings
# ============================================================================

def _external_rating(facts: MediaFacts, source: str) -> Optional[float]:
    if not facts.external_ratings:
        return None
    value = facts.external_ratings.get(source)
    if value is None or value <= 0:
        return None
    return float(value)


def imdb_text(facts: MediaFacts) -> str:
    """IMDb badge text, preferring the external rating over the community rating."""
    value = _external_rating(facts, 'imdb')
    if value is None and facts.community_rating and facts.community_rating > 0:
        value = float(facts.community_rating)
    if value is None:
        return ''
    return f"IMDB {value:.1f}"


def rotten_tomatoes_text(facts: MediaFacts) -> str:
    """
    Rotten Tomatoes badge text.

    An external value of 1 or less is a fraction, anything larger is already a
    percentage. The item's own critic rating is on a 0-10 scale.
    """
    value = _external_rating(facts, 'rotten_tomatoes')
    if value is not None:
        percent = round(value * 100) if value <= 1 else round(value)
    elif facts.critic_rating and facts.critic_rating > 0:
        percent = round(facts.critic_rating * 10)
    else:
        return ''
    percent = max(0, min(percent, 100))
    return f"RT {percent}%"


# ============================================================================
# Badge list
# ============================================================================

def has_custom_tag(config: BadgeConfig) -> bool:
    return config.custom_tag_enabled and bool((config.custom_tag_text or '').strip())


def should_skip_item(languages: Iterable[str], config: BadgeConfig) -> bool:
    """Skip items with no known audio language when flags are on and the skip rule is set."""
    if config.show_audio_language_flags and config.skip_items_with_no_audio_language:
        return not any(True for _ in languages)
    return False


def build_badges(facts: MediaFacts, config: BadgeConfig) -> List[Badge]:
    """Build the ordered badge list for an item. Blank texts never make it out."""
    candidates: List[Tuple[str, BadgePosition]] = []

    if config.show_quality and facts.resolution_height > 0:
        candidates.append((resolution_text(facts.resolution_height, config), config.resolution_position))

    if config.show_audio_language_flags:
        flags = language_flags(facts.audio_languages)
        if flags:
            candidates.append((' '.join(flags), config.audio_flags_position))

    if config.show_imdb_rating:
        candidates.append((imdb_text(facts), config.imdb_position))

    if config.show_rotten_tomatoes:
        candidates.append((rotten_tomatoes_text(facts), config.rotten_tomatoes_position))

    if config.show_hdr and facts.hdr_signal != HdrSignal.NONE:
        candidates.append((facts.hdr_signal.value, config.hdr_position))

    if config.show_dolby_atmos and facts.has_dolby_atmos:
        candidates.append(('Dolby Atmos', config.audio_position))

    if config.show_dts_x and facts.has_dts_x:
        candidates.append(('DTS:X', config.audio_position))

    if has_custom_tag(config):
        candidates.append((config.custom_tag_text.strip(), config.custom_tag_position))

    return [Badge(text, position) for text, position in candidates if text and text.strip()]
