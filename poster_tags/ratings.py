"""
External ratings for Poster Tags.

Fetches IMDb, Rotten Tomatoes, TMDb and Letterboxd ratings from MDBList
(https://api.mdblist.com) over aiohttp. Any failure short of cancellation
means "no external ratings" and the badges fall back to the item's own
community and critic ratings.
"""

import asyncio
from typing import Any, Dict, Optional, Protocol

import aiohttp

from .config import BadgeConfig
from .constants import logger, MDBLIST_API_URL, RATINGS_TIMEOUT, USER_AGENT
from .media_facts import MediaItem, RatingKey


class RatingsSource(Protocol):
    """Anything that can look up external ratings for a rating key."""

    async def __call__(self, rating_key: RatingKey) -> Optional[Dict[str, float]]:
        ...


def _rating_name(source: str) -> Optional[str]:
    lowered = source.lower()
    if 'imdb' in lowered:
        return 'imdb'
    if 'rotten tomatoes' in lowered and 'audience' not in lowered:
        return 'rotten_tomatoes'
    if 'movie database' in lowered or lowered == 'tmdb':
        return 'tmdb'
    if 'letterboxd' in lowered:
        return 'letterboxd'
    return None


def parse_mdblist_ratings(payload: Any) -> Optional[Dict[str, float]]:
    """
    Extract ratings from an MDBList response body.

    Args:
        payload: decoded JSON, expected to hold a ``ratings`` list of
            ``{"source": ..., "value": ...}`` objects

    Returns:
        Mapping of rating name to positive value, or None when nothing usable
        was found.
    """
    if not isinstance(payload, dict):
        return None
    entries = payload.get('ratings')
    if not isinstance(entries, list):
        return None

    result: Dict[str, float] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        source = entry.get('source')
        if not isinstance(source, str) or not source.strip():
            continue
        value = entry.get('value')
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            continue
        name = _rating_name(source.strip())
        if name:
            result[name] = float(value)

    return result or None


class MdbListRatingsSource:
    """
    MDBList ratings client.

    Pass an existing ``aiohttp.ClientSession`` to share connections; otherwise
    a session is opened on first use and closed by ``close()``.
    """

    def __init__(
        self,
        api_key: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = RATINGS_TIMEOUT,
        base_url: str = MDBLIST_API_URL
    ):
        self.api_key = (api_key or '').strip()
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.base_url = base_url.rstrip('/')
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers={'User-Agent': USER_AGENT, 'accept': 'application/json'},
                timeout=self.timeout,
            )
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> 'MdbListRatingsSource':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def url_for(self, rating_key: RatingKey) -> str:
        return f"{self.base_url}/tmdb/{rating_key.media_kind}/{rating_key.external_id}"

    async def __call__(self, rating_key: RatingKey) -> Optional[Dict[str, float]]:
        if not self.api_key or not rating_key.external_id:
            return None

        url = self.url_for(rating_key)
        session = await self._get_session()
        try:
            async with session.get(
                url,
                params={'apikey': self.api_key},
                headers={'User-Agent': USER_AGENT},
                timeout=self.timeout,
            ) as response:
                if response.status < 200 or response.status >= 300:
                    logger.debug(f"RATINGS_HTTP_STATUS url={url} status={response.status}")
                    return None
                payload = await response.json(content_type=None)
        except asyncio.CancelledError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug(f"RATINGS_REQUEST_FAILED url={url} error={type(e).__name__}: {e}")
            return None

        return parse_mdblist_ratings(payload)


def ratings_enabled(config: BadgeConfig) -> bool:
    return config.use_external_ratings and bool((config.mdblist_api_key or '').strip())


async def fetch_external_ratings(
    item: MediaItem,
    config: BadgeConfig,
    source: Optional[RatingsSource]
) -> Optional[Dict[str, float]]:
    """
    Look up external ratings for an item when the configuration asks for them.

    Returns None when lookups are disabled, the item has no rating key, or the
    source yields nothing. Cancellation propagates.
    """
    if source is None or not ratings_enabled(config) or item.rating_key is None:
        return None
    try:
        return await source(item.rating_key)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.debug(f"RATINGS_UNAVAILABLE item={item.item_id} error={e}")
        return None
