"""CLI entrypoint: harvest a browser session, then scan the anime catalogs."""

from __future__ import annotations

import argparse
import logging

from dotenv import load_dotenv

from catalog_client import base_url
from collection_pipeline import run_all
from errors import SessionAcquisitionError, SessionLoadError
from models import Session
from session_harvester import acquire_session
from session_store import COOKIES_JSON_PATH, load_session, save_session

EXIT_OK = 0
EXIT_FAILURE = 1


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Harvest catalog cookies and build anime collections")
    parser.add_argument(
        "--mode",
        choices=["harvest", "scan", "all"],
        default="all",
        help=(
            "'harvest': acquire and save cookies only. "
            "'scan': load saved cookies and run the airing, popular and movie scans. "
            "'all' (default): harvest, save, then scan with the fresh session."
        ),
    )
    parser.add_argument(
        "--session-file",
        default=COOKIES_JSON_PATH,
        help="Cookie JSON to load in scan mode (default: %(default)s)",
    )
    return parser.parse_args(argv)


def run_harvest() -> Session:
    """Acquire a session against the target site and persist its cookies."""
    url = base_url()
    session = acquire_session(url)
    save_session(session)
    logging.info("Page content length: %s", len(session.content or ""))
    return session


def run_scan(session: Session) -> dict[str, int]:
    """Run all three scans and log a per-file summary."""
    logging.info("Starting anime scanning against %s", base_url())
    summary = run_all(session)
    for file_name, total in summary.items():
        logging.info("  - %s (%s records)", file_name, total)
    return summary


def main(argv: list[str] | None = None) -> int:
    """Initialize config and execute the requested mode. Returns an exit code."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args(argv)

    try:
        if args.mode == "scan":
            session = load_session(args.session_file)
        else:
            session = run_harvest()

        if args.mode in ("scan", "all"):
            run_scan(session)
    except SessionAcquisitionError as exc:
        logging.error("Harvest failed: %s", exc)
        return EXIT_FAILURE
    except SessionLoadError as exc:
        logging.error("Failed to load cookies: %s", exc)
        return EXIT_FAILURE
    except Exception as exc:
        logging.exception("Run failed: %s", exc)
        return EXIT_FAILURE

    logging.info("Run finished successfully")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
