"""Shared typed models for the pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Cookie:
    """One browser cookie, in the shape Playwright and Puppeteer emit."""

    name: str
    value: str
    domain: str = ""
    path: str = "/"
    expires: float | None = None
    http_only: bool = False
    secure: bool = False
    same_site: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Cookie:
        expires = raw.get("expires")
        return cls(
            name=str(raw["name"]),
            value=str(raw.get("value", "")),
            domain=str(raw.get("domain") or ""),
            path=str(raw.get("path") or "/"),
            expires=float(expires) if isinstance(expires, (int, float)) else None,
            http_only=bool(raw.get("httpOnly", False)),
            secure=bool(raw.get("secure", False)),
            same_site=raw.get("sameSite"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "expires": self.expires,
            "httpOnly": self.http_only,
            "secure": self.secure,
            "sameSite": self.same_site,
        }


@dataclass(frozen=True, slots=True)
class Session:
    """Cookies harvested from a browser run plus the page snapshot, if kept."""

    cookies: tuple[Cookie, ...]
    content: str | None = None

    def cookie_header(self) -> str:
        return "; ".join(f"{cookie.name}={cookie.value}" for cookie in self.cookies)


@dataclass(frozen=True, slots=True)
class AiringItem:
    """One row of the primary catalog's airing feed."""

    anime_title: str
    anime_session: str
    anime_id: int | None = None
    episode: int | float | None = None
    snapshot: str | None = None
    fansub: str | None = None
    created_at: str | None = None


@dataclass(frozen=True, slots=True)
class CatalogItem:
    """Primary catalog search result. `session` is the catalog's natural key."""

    title: str
    session: str
    id: int | None = None
    type: str | None = None
    episodes: int | None = None
    status: str | None = None
    season: str | None = None
    year: int | None = None
    score: float | None = None
    poster: str | None = None
    slug: str | None = None


@dataclass(frozen=True, slots=True)
class RankedEntry:
    """Secondary catalog (Jikan top list) entry."""

    mal_id: int
    title: str
    alternate_titles: tuple[str, ...] = ()
    type: str | None = None
    episodes: int | None = None
    status: str | None = None
    season: str | None = None
    year: int | None = None
    score: float | None = None
    rank: int | None = None
    popularity: int | None = None
    poster: str | None = None
    synopsis: str | None = None
    duration: str | None = None
    rating: str | None = None
    favorites: int | None = None
    scored_by: int | None = None


_AIRING_KEYS: tuple[str, ...] = (
    "latest_episode",
    "latest_snapshot",
    "latest_fansub",
    "last_updated",
)


@dataclass(frozen=True, slots=True)
class ResolvedRecord:
    """Merged output record written to the collection files."""

    title: str
    source: str
    scanned_at: str
    id: int | None = None
    mal_id: str | None = None
    type: str | None = None
    episodes: int | None = None
    status: str | None = None
    season: str | None = None
    year: int | None = None
    score: float | None = None
    poster: str | None = None
    synopsis: str | None = None
    session: str | None = None
    slug: str | None = None
    duration: str | None = None
    rating: str | None = None
    rank: int | None = None
    popularity: int | None = None
    favorites: int | None = None
    scored_by: int | None = None
    # Airing scan only
    latest_episode: int | float | None = None
    latest_snapshot: str | None = None
    latest_fansub: str | None = None
    last_updated: str | None = None

    @property
    def is_airing(self) -> bool:
        return any(getattr(self, key) is not None for key in _AIRING_KEYS)

    def to_dict(self) -> dict[str, Any]:
        """Render the persisted JSON object (`malid` key, airing keys only when set)."""
        data = asdict(self)
        data["malid"] = data.pop("mal_id")
        if not self.is_airing:
            for key in _AIRING_KEYS:
                data.pop(key)
        return data
