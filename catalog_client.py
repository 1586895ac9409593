"""HTTP helpers for the primary catalog site API and the Jikan ranking API."""

from __future__ import annotations

import logging
import os
import random
import re
from dataclasses import dataclass
from typing import Any

import requests

from errors import MalformedResponseError, TransientFetchError
from models import AiringItem, CatalogItem, RankedEntry, Session

DEFAULT_BASE_URL = "https://animepahe.ru"
JIKAN_API_URL = "https://api.jikan.moe/v4"
REQUEST_TIMEOUT_SECONDS = 30

# Shared with the browser harvest; cleared sessions only work under the same UA.
CATALOG_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
_USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)

_MAL_META_RE = re.compile(r'meta name="myanimelist" content="(\d+)"')

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApiResponse:
    status: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def base_url() -> str:
    """Primary catalog base URL, overridable with the TARGET env var."""
    return os.getenv("TARGET", DEFAULT_BASE_URL).rstrip("/")


def get(url: str, session: Session | None = None, params: dict[str, Any] | None = None) -> ApiResponse:
    """GET `url`, sending the session's cookies when one is given.

    Non-2xx statuses are returned to the caller rather than raised.

    Raises:
        TransientFetchError: the request failed before a response arrived.
    """
    if session is not None:
        headers = {
            "User-Agent": CATALOG_USER_AGENT,
            "Referer": base_url(),
            "Cookie": session.cookie_header(),
        }
    else:
        headers = {"User-Agent": random.choice(_USER_AGENTS)}

    try:
        response = requests.get(url, headers=headers, params=params, timeout=REQUEST_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        raise TransientFetchError(f"GET {url} failed: {exc}") from exc

    try:
        body: Any = response.json()
    except ValueError:
        body = response.text
    return ApiResponse(status=response.status_code, body=body)


def extract_data(body: Any) -> list[dict[str, Any]]:
    """Return the list under `data`, or raise MalformedResponseError."""
    data = body.get("data") if isinstance(body, dict) else None
    if not isinstance(data, list):
        raise MalformedResponseError("Response body has no list-valued 'data' field")
    return [row for row in data if isinstance(row, dict)]


def fetch_airing_page(page: int, session: Session) -> list[AiringItem]:
    """One page of the primary catalog's airing feed."""
    rows = _fetch_rows(f"{base_url()}/api", session, {"m": "airing", "page": page}, f"airing page {page}")
    items = [item for item in (_parse_airing_item(row) for row in rows) if item is not None]
    LOGGER.info("Airing page %s: raw_count=%s parsed=%s", page, len(rows), len(items))
    return items


def search_catalog(query: str, session: Session) -> list[CatalogItem]:
    """Free-text search against the primary catalog, in endpoint order."""
    rows = _fetch_rows(f"{base_url()}/api", session, {"m": "search", "q": query}, f"search {query!r}")
    return [item for item in (_parse_catalog_item(row) for row in rows) if item is not None]


def fetch_mal_id(anime_session: str, session: Session) -> str | None:
    """Read the MyAnimeList id from the anime's page meta tag, or None."""
    url = f"{base_url()}/anime/{anime_session}"
    try:
        response = get(url, session)
    except TransientFetchError as exc:
        LOGGER.warning("MAL id lookup failed for session=%s: %s", anime_session, exc)
        return None

    if not response.ok or not isinstance(response.body, str):
        LOGGER.warning("MAL id lookup for session=%s returned status %s", anime_session, response.status)
        return None

    match = _MAL_META_RE.search(response.body)
    return match.group(1) if match else None


def fetch_top_anime(
    page: int,
    list_filter: str | None = None,
    type_filter: str | None = None,
) -> list[RankedEntry]:
    """One page of Jikan's top anime ranking (unauthenticated)."""
    params: dict[str, Any] = {"page": page}
    if list_filter:
        params["filter"] = list_filter
    if type_filter:
        params["type"] = type_filter

    rows = _fetch_rows(f"{JIKAN_API_URL}/top/anime", None, params, f"Jikan top page {page}")
    return [entry for entry in (_parse_ranked_entry(row) for row in rows) if entry is not None]


def fetch_top_movies(page: int) -> list[RankedEntry]:
    return fetch_top_anime(page, type_filter="movie")


def _fetch_rows(
    url: str,
    session: Session | None,
    params: dict[str, Any],
    label: str,
) -> list[dict[str, Any]]:
    response = get(url, session, params)
    if not response.ok:
        LOGGER.warning("%s returned status %s", label, response.status)
        return []

    try:
        return extract_data(response.body)
    except MalformedResponseError as exc:
        LOGGER.warning("%s: %s", label, exc)
        return []


def _parse_airing_item(row: dict[str, Any]) -> AiringItem | None:
    title = _as_str(row.get("anime_title"))
    anime_session = _as_str(row.get("anime_session"))
    if not title or not anime_session:
        return None

    return AiringItem(
        anime_title=title,
        anime_session=anime_session,
        anime_id=_as_int(row.get("anime_id")),
        episode=row.get("episode") if isinstance(row.get("episode"), (int, float)) else None,
        snapshot=_as_str(row.get("snapshot")),
        fansub=_as_str(row.get("fansub")),
        created_at=_as_str(row.get("created_at")),
    )


def _parse_catalog_item(row: dict[str, Any]) -> CatalogItem | None:
    title = _as_str(row.get("title"))
    anime_session = _as_str(row.get("session"))
    if not title or not anime_session:
        return None

    return CatalogItem(
        title=title,
        session=anime_session,
        id=_as_int(row.get("id")),
        type=_as_str(row.get("type")),
        episodes=_as_int(row.get("episodes")),
        status=_as_str(row.get("status")),
        season=_as_str(row.get("season")),
        year=_as_int(row.get("year")),
        score=_as_float(row.get("score")),
        poster=_as_str(row.get("poster")),
        slug=_as_str(row.get("slug")),
    )


def _parse_ranked_entry(row: dict[str, Any]) -> RankedEntry | None:
    mal_id = _as_int(row.get("mal_id"))
    title = _as_str(row.get("title"))
    if mal_id is None or not title:
        return None

    synonyms = row.get("title_synonyms") if isinstance(row.get("title_synonyms"), list) else []
    alternates = [row.get("title_english"), row.get("title_japanese"), *synonyms]

    return RankedEntry(
        mal_id=mal_id,
        title=title,
        alternate_titles=tuple(t for t in (_as_str(a) for a in alternates) if t),
        type=_as_str(row.get("type")),
        episodes=_as_int(row.get("episodes")),
        status=_as_str(row.get("status")),
        season=_as_str(row.get("season")),
        year=_as_int(row.get("year")),
        score=_as_float(row.get("score")),
        rank=_as_int(row.get("rank")),
        popularity=_as_int(row.get("popularity")),
        poster=_poster_url(row.get("images")),
        synopsis=_as_str(row.get("synopsis")),
        duration=_as_str(row.get("duration")),
        rating=_as_str(row.get("rating")),
        favorites=_as_int(row.get("favorites")),
        scored_by=_as_int(row.get("scored_by")),
    )


def _poster_url(images: Any) -> str | None:
    if not isinstance(images, dict):
        return None
    webp = images.get("webp") if isinstance(images.get("webp"), dict) else {}
    jpg = images.get("jpg") if isinstance(images.get("jpg"), dict) else {}
    return _as_str(webp.get("large_image_url")) or _as_str(jpg.get("image_url"))


def _as_str(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) and value.strip() else None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
