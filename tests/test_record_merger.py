from __future__ import annotations

from datetime import UTC, datetime

from models import AiringItem, CatalogItem, RankedEntry
from record_merger import merge, merge_airing

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=UTC)

SECONDARY = RankedEntry(
    mal_id=5114,
    title="Fullmetal Alchemist: Brotherhood",
    type="TV",
    episodes=64,
    status="Finished Airing",
    season="spring",
    year=2009,
    score=9.1,
    rank=2,
    popularity=3,
    poster="https://cdn.myanimelist.net/fmab.webp",
    synopsis="Two brothers...",
    duration="24 min per ep",
    rating="R - 17+",
    favorites=230000,
    scored_by=2100000,
)

PRIMARY = CatalogItem(
    title="Fullmetal Alchemist: Brotherhood",
    session="fmab-session",
    id=77,
    type="TV",
    episodes=None,
    status="Finished Airing",
    season="",
    year=2009,
    score=9.05,
    poster="https://i.animepahe.ru/posters/fmab.jpg",
    slug="fullmetal-alchemist-brotherhood",
)


def test_merge_without_primary_uses_secondary_values() -> None:
    secondary = RankedEntry(mal_id=9, title="Y", score=8.1)

    record = merge(None, secondary, now=NOW)

    assert record.source == "secondary"
    assert record.title == "Y"
    assert record.score == 8.1
    assert record.mal_id == "9"
    assert record.session is None
    assert record.id is None
    assert record.scanned_at == NOW.isoformat()


def test_merge_prefers_primary_non_empty_fields() -> None:
    record = merge(PRIMARY, SECONDARY, now=NOW)

    assert record.source == "primary"
    assert record.score == 9.05
    assert record.poster == "https://i.animepahe.ru/posters/fmab.jpg"
    assert record.session == "fmab-session"
    assert record.slug == "fullmetal-alchemist-brotherhood"
    assert record.id == 77


def test_merge_falls_back_for_empty_primary_fields() -> None:
    record = merge(PRIMARY, SECONDARY, now=NOW)

    assert record.episodes == 64       # primary None
    assert record.season == "spring"   # primary ""


def test_merge_passes_secondary_only_fields_through() -> None:
    record = merge(PRIMARY, SECONDARY, now=NOW)

    assert record.synopsis == "Two brothers..."
    assert record.duration == "24 min per ep"
    assert record.rating == "R - 17+"
    assert record.rank == 2
    assert record.popularity == 3
    assert record.favorites == 230000
    assert record.scored_by == 2100000
    assert record.mal_id == "5114"


def test_merge_stamps_current_time_by_default() -> None:
    before = datetime.now(UTC)
    record = merge(None, SECONDARY)

    assert datetime.fromisoformat(record.scanned_at) >= before


def test_merge_airing_carries_feed_fields() -> None:
    airing = AiringItem(
        anime_title="Fullmetal Alchemist: Brotherhood",
        anime_session="fmab-session",
        episode=64,
        snapshot="https://i.animepahe.ru/snapshots/64.jpg",
        fansub="HorribleSubs",
        created_at="2026-10-17 10:00:00",
    )

    record = merge_airing(PRIMARY, airing, "5114", now=NOW)

    assert record.source == "primary"
    assert record.mal_id == "5114"
    assert record.latest_episode == 64
    assert record.latest_fansub == "HorribleSubs"
    assert record.last_updated == "2026-10-17 10:00:00"
    data = record.to_dict()
    assert data["malid"] == "5114"
    assert data["latest_snapshot"] == "https://i.animepahe.ru/snapshots/64.jpg"


def test_to_dict_omits_airing_keys_for_ranked_records() -> None:
    data = merge(PRIMARY, SECONDARY, now=NOW).to_dict()

    assert "latest_episode" not in data
    assert "mal_id" not in data
    assert data["source"] == "primary"
    assert data["scanned_at"] == NOW.isoformat()


def test_merge_treats_zero_episodes_as_unknown() -> None:
    ongoing = CatalogItem(title="One Piece", session="op", episodes=0, score=0.0)
    secondary = RankedEntry(mal_id=21, title="One Piece", episodes=1100, score=8.7)

    record = merge(ongoing, secondary, now=NOW)

    assert record.episodes == 1100
    assert record.score == 0.0


def test_merge_airing_without_mal_id_leaves_it_empty() -> None:
    airing = AiringItem(anime_title="Fullmetal Alchemist: Brotherhood", anime_session="fmab-session", episode=1)

    record = merge_airing(PRIMARY, airing, None, now=NOW)

    assert record.mal_id is None
    assert record.to_dict()["malid"] is None
