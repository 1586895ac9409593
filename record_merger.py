"""Field-level merge of primary catalog matches with secondary ranking entries."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from models import AiringItem, CatalogItem, RankedEntry, ResolvedRecord

SOURCE_PRIMARY = "primary"
SOURCE_SECONDARY = "secondary"

# Fields present in both catalogs; the primary value wins unless empty.
SHARED_FIELDS: tuple[str, ...] = (
    "title",
    "type",
    "episodes",
    "status",
    "season",
    "year",
    "score",
    "poster",
)

# The primary catalog reports 0 episodes for shows still airing.
ZERO_MEANS_UNKNOWN = frozenset({"episodes"})


def merge(
    primary_match: CatalogItem | None,
    secondary: RankedEntry,
    now: datetime | None = None,
) -> ResolvedRecord:
    """Combine an optional catalog match with its ranking entry."""
    shared = {
        field: _prefer(
            field,
            getattr(primary_match, field) if primary_match is not None else None,
            getattr(secondary, field),
        )
        for field in SHARED_FIELDS
    }

    return ResolvedRecord(
        **shared,
        source=SOURCE_PRIMARY if primary_match is not None else SOURCE_SECONDARY,
        scanned_at=_timestamp(now),
        id=primary_match.id if primary_match is not None else None,
        mal_id=str(secondary.mal_id),
        session=primary_match.session if primary_match is not None else None,
        slug=primary_match.slug if primary_match is not None else None,
        synopsis=secondary.synopsis,
        duration=secondary.duration,
        rating=secondary.rating,
        rank=secondary.rank,
        popularity=secondary.popularity,
        favorites=secondary.favorites,
        scored_by=secondary.scored_by,
    )


def merge_airing(
    match: CatalogItem,
    airing_item: AiringItem,
    mal_id: str | None,
    now: datetime | None = None,
) -> ResolvedRecord:
    """Build an airing record from the matched catalog item and feed row."""
    return ResolvedRecord(
        title=match.title,
        source=SOURCE_PRIMARY,
        scanned_at=_timestamp(now),
        id=match.id,
        mal_id=mal_id,
        type=match.type,
        episodes=match.episodes,
        status=match.status,
        season=match.season,
        year=match.year,
        score=match.score,
        poster=match.poster,
        session=match.session,
        slug=match.slug,
        latest_episode=airing_item.episode,
        latest_snapshot=airing_item.snapshot,
        latest_fansub=airing_item.fansub,
        last_updated=airing_item.created_at,
    )


def _prefer(field: str, primary: Any, fallback: Any) -> Any:
    """Primary value unless it is None or "" (or 0 for fields where 0 means unknown)."""
    if primary is None or primary == "":
        return fallback
    if primary == 0 and field in ZERO_MEANS_UNKNOWN:
        return fallback
    return primary


def _timestamp(now: datetime | None) -> str:
    return (now or datetime.now(UTC)).isoformat()
