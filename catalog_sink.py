"""JSON file sink for scanned anime collections."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from models import ResolvedRecord

RECENT_ANIME_PATH = "recent-anime.json"
POPULAR_ANIME_PATH = "popular-anime.json"
TOP_MOVIES_PATH = "top-movies.json"

LOGGER = logging.getLogger(__name__)


def build_collection(records: Sequence[ResolvedRecord], now: datetime | None = None) -> dict[str, Any]:
    """Wrap records as `{timestamp: epoch-ms, total, data}`."""
    moment = now or datetime.now(UTC)
    return {
        "timestamp": int(moment.timestamp() * 1000),
        "total": len(records),
        "data": [record.to_dict() for record in records],
    }


def write_collection(records: Sequence[ResolvedRecord], path: str | Path) -> dict[str, Any]:
    """Write the collection document to `path`, replacing any previous run."""
    document = build_collection(records)
    output = Path(path)
    output.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
    LOGGER.info("Saved %s records to %s", document["total"], output)
    return document
