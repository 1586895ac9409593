"""Title-based matching of ranking entries against primary catalog search results."""

from __future__ import annotations

from collections.abc import Sequence

from models import CatalogItem, RankedEntry


def title_matches(candidate_title: str, title: str) -> bool:
    """Case-insensitive equality, or either title containing the other."""
    candidate = candidate_title.strip().lower()
    query = title.strip().lower()
    if not candidate or not query:
        return False
    return candidate == query or query in candidate or candidate in query


def resolve(
    candidates: Sequence[CatalogItem],
    title: str,
    prefer_type: str | None = None,
) -> CatalogItem | None:
    """Return the first candidate whose title matches `title`, or None.

    Candidate order is the search endpoint's order and is never re-ranked:
    "Naruto" queried against ["Naruto Shippuden", "Naruto"] returns the
    Shippuden entry because it comes first.

    With prefer_type, candidates of that type (case-insensitive) are tried
    first; when none of them match, the unrestricted pass runs.
    """
    if prefer_type:
        wanted = prefer_type.lower()
        for candidate in candidates:
            if (candidate.type or "").lower() == wanted and title_matches(candidate.title, title):
                return candidate

    for candidate in candidates:
        if title_matches(candidate.title, title):
            return candidate
    return None


def title_variants(entry: RankedEntry) -> list[str]:
    """Canonical title, then English, native and synonyms, without repeats."""
    variants: list[str] = []
    seen: set[str] = set()
    for raw in (entry.title, *entry.alternate_titles):
        title = raw.strip() if raw else ""
        if not title or title.lower() in seen:
            continue
        seen.add(title.lower())
        variants.append(title)
    return variants
