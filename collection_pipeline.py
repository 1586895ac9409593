"""The three catalog scans: airing, popular, and top movies.

Every scan walks its source page by page, strictly sequentially, with fixed
pauses between requests. A failure on one item or page is logged and skipped
so the rest of the scan still produces output.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from pathlib import Path

from catalog_client import (
    fetch_airing_page,
    fetch_mal_id,
    fetch_top_anime,
    fetch_top_movies,
    search_catalog,
)
from catalog_sink import POPULAR_ANIME_PATH, RECENT_ANIME_PATH, TOP_MOVIES_PATH, write_collection
from entity_resolver import resolve, title_variants
from models import CatalogItem, RankedEntry, ResolvedRecord, Session
from record_merger import merge, merge_airing

AIRING_PAGES = 5
POPULAR_PAGES = 2
MOVIE_PAGES = 3

AIRING_ITEM_DELAY = 0.1
RANKED_ITEM_DELAY = 0.15
VARIANT_DELAY = 0.1
AIRING_PAGE_DELAY = 0.2
POPULAR_PAGE_DELAY = 0.2
MOVIE_PAGE_DELAY = 0.3
SCAN_DELAY = 1.0

LOGGER = logging.getLogger(__name__)


def scan_airing(session: Session) -> list[ResolvedRecord]:
    """Resolve the airing feed against catalog search, deduplicated by session."""
    LOGGER.info("Scanning airing anime (%s pages)", AIRING_PAGES)
    records: list[ResolvedRecord] = []

    for page in range(1, AIRING_PAGES + 1):
        if page > 1:
            time.sleep(AIRING_PAGE_DELAY)

        try:
            items = fetch_airing_page(page, session)
        except Exception as exc:
            LOGGER.warning("Airing page %s skipped: %s", page, exc)
            continue

        if not items:
            LOGGER.warning("No data found on airing page %s", page)
            continue

        for item in items:
            try:
                # Airing rows carry the catalog's own session id, so match on it exactly.
                candidates = search_catalog(item.anime_title, session)
                match = next((c for c in candidates if c.session == item.anime_session), None)
                if match is None:
                    LOGGER.info("No catalog match for airing item %r", item.anime_title)
                else:
                    mal_id = fetch_mal_id(match.session, session)
                    records.append(merge_airing(match, item, mal_id))
                    LOGGER.info("Found: %s (episode %s)", item.anime_title, item.episode)
            except Exception as exc:  # broad by design to keep the scan going
                LOGGER.exception("Error processing airing item %r: %s", item.anime_title, exc)

            time.sleep(AIRING_ITEM_DELAY)

    unique = dedupe_by_session(records)
    LOGGER.info("Airing scan: resolved=%s unique=%s", len(records), len(unique))
    return sort_by_scanned_at(unique)


def scan_popular(session: Session) -> list[ResolvedRecord]:
    """Currently-airing Jikan ranking, matched onto the primary catalog."""
    LOGGER.info("Scanning popular anime (%s pages)", POPULAR_PAGES)
    records = _scan_ranked(
        session,
        fetch_page=lambda page: fetch_top_anime(page, list_filter="airing"),
        pages=POPULAR_PAGES,
        page_delay=POPULAR_PAGE_DELAY,
        label="popular",
    )
    return sort_by_score(records)


def scan_top_movies(session: Session) -> list[ResolvedRecord]:
    """Top-ranked Jikan movies, preferring Movie-typed catalog matches."""
    LOGGER.info("Scanning top anime movies (%s pages)", MOVIE_PAGES)
    records = _scan_ranked(
        session,
        fetch_page=fetch_top_movies,
        pages=MOVIE_PAGES,
        page_delay=MOVIE_PAGE_DELAY,
        label="movies",
        prefer_type="Movie",
    )
    return sort_by_score_then_rank(records)


def run_all(session: Session, output_dir: str | Path = ".") -> dict[str, int]:
    """Run airing, popular and movie scans in order and persist each collection.

    A scan that fails outright is written as an empty collection so every run
    produces all three files. Returns a mapping of file name to record count.
    """
    scans: list[tuple[str, str, Callable[[Session], list[ResolvedRecord]]]] = [
        ("Airing anime", RECENT_ANIME_PATH, scan_airing),
        ("Popular anime", POPULAR_ANIME_PATH, scan_popular),
        ("Top movies", TOP_MOVIES_PATH, scan_top_movies),
    ]
    summary: dict[str, int] = {}

    for index, (label, file_name, scan) in enumerate(scans):
        if index:
            time.sleep(SCAN_DELAY)

        try:
            records = scan(session)
        except Exception as exc:
            LOGGER.exception("%s scan failed: %s", label, exc)
            records = []

        try:
            document = write_collection(records, Path(output_dir) / file_name)
        except Exception as exc:
            LOGGER.exception("Could not write %s: %s", file_name, exc)
            summary[file_name] = 0
            continue

        summary[file_name] = document["total"]
        LOGGER.info("%s scan complete: %s items", label, document["total"])

    return summary


def dedupe_by_session(records: Iterable[ResolvedRecord]) -> list[ResolvedRecord]:
    """Keep the first record seen for each catalog session."""
    seen: set[str | None] = set()
    unique: list[ResolvedRecord] = []
    for record in records:
        if record.session in seen:
            continue
        seen.add(record.session)
        unique.append(record)
    return unique


def sort_by_scanned_at(records: Sequence[ResolvedRecord]) -> list[ResolvedRecord]:
    """Newest scan first; ties keep scan order."""
    return sorted(records, key=lambda r: datetime.fromisoformat(r.scanned_at), reverse=True)


def sort_by_score(records: Sequence[ResolvedRecord]) -> list[ResolvedRecord]:
    """Highest score first; a missing score counts as 0."""
    return sorted(records, key=lambda r: r.score or 0, reverse=True)


def sort_by_score_then_rank(records: Sequence[ResolvedRecord]) -> list[ResolvedRecord]:
    """Highest score first, then best (lowest) rank; a missing rank sorts last."""
    return sorted(records, key=lambda r: (-(r.score or 0), r.rank if r.rank else math.inf))


def _scan_ranked(
    session: Session,
    fetch_page: Callable[[int], list[RankedEntry]],
    pages: int,
    page_delay: float,
    label: str,
    prefer_type: str | None = None,
) -> list[ResolvedRecord]:
    records: list[ResolvedRecord] = []

    for page in range(1, pages + 1):
        LOGGER.info("Scanning Jikan %s page %s", label, page)
        try:
            entries = fetch_page(page)
        except Exception as exc:
            LOGGER.warning("Jikan %s page %s skipped: %s", label, page, exc)
            entries = []

        if not entries:
            LOGGER.warning("Jikan %s page %s returned no entries", label, page)

        for entry in entries:
            try:
                match = _find_catalog_match(entry, session, prefer_type)
                records.append(merge(match, entry))
                LOGGER.info(
                    "Found: %s (%s)%s",
                    entry.title,
                    entry.score if entry.score is not None else "N/A",
                    " (matched on catalog)" if match else " (ranking only)",
                )
            except Exception as exc:  # broad by design to keep the scan going
                LOGGER.exception("Error processing %r: %s", entry.title, exc)

            time.sleep(RANKED_ITEM_DELAY)

        time.sleep(page_delay)

    LOGGER.info("Jikan %s scan: resolved=%s", label, len(records))
    return records


def _find_catalog_match(
    entry: RankedEntry,
    session: Session,
    prefer_type: str | None,
) -> CatalogItem | None:
    """Try each title variant in order; stop at the first resolved match."""
    for title in title_variants(entry):
        try:
            match = resolve(search_catalog(title, session), title, prefer_type=prefer_type)
        except Exception as exc:
            LOGGER.debug("Catalog search failed for %r: %s", title, exc)
            match = None

        if match is not None:
            return match
        time.sleep(VARIANT_DELAY)
    return None
