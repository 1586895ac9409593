"""Headless-browser session harvesting for the challenge-protected catalog site.

Each attempt launches a fresh Chromium instance, navigates to the target,
waits out the anti-bot JavaScript challenge, and reads back the cookie jar.
Attempts are retried with linear backoff; the browser is always torn down
before control returns.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from playwright.sync_api import sync_playwright

from catalog_client import CATALOG_USER_AGENT
from errors import SessionAcquisitionError
from models import Cookie, Session

MAX_ATTEMPTS = 3
BASE_RETRY_DELAY_SECONDS = 3.0
NAVIGATION_TIMEOUT_MS = 30_000
CHALLENGE_SETTLE_MS = 7_000
READY_TIMEOUT_MS = 15_000
VIEWPORT = {"width": 1280, "height": 800}

BROWSER_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-features=site-per-process",
]

LOGGER = logging.getLogger(__name__)


def acquire_session(url: str, max_attempts: int = MAX_ATTEMPTS) -> Session:
    """Harvest cookies from `url`, retrying up to `max_attempts` times.

    Raises:
        ValueError: if max_attempts is below 1.
        SessionAcquisitionError: when every attempt failed; chained from the
            last attempt's error.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        LOGGER.info("Harvest attempt %s/%s: launching Chromium for %s", attempt, max_attempts, url)
        try:
            session = _harvest_once(url)
        except Exception as exc:  # broad: any browser failure counts as a failed attempt
            last_error = exc
            LOGGER.warning("Harvest attempt %s/%s failed: %s", attempt, max_attempts, exc)
            if attempt < max_attempts:
                delay = backoff_delay(attempt)
                LOGGER.info("Retrying harvest in %.1fs", delay)
                time.sleep(delay)
            continue

        LOGGER.info("Harvest succeeded with %s cookies", len(session.cookies))
        return session

    raise SessionAcquisitionError(
        f"Session harvest failed after {max_attempts} attempts: {last_error}"
    ) from last_error


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after failed attempt number `attempt` (1-based)."""
    return BASE_RETRY_DELAY_SECONDS * attempt


def _harvest_once(url: str) -> Session:
    with sync_playwright() as playwright:
        browser = None
        page = None
        try:
            browser = playwright.chromium.launch(headless=True, args=BROWSER_ARGS)
            # Clearance cookies are bound to the UA, so the API calls reuse this one.
            page = browser.new_page(viewport=VIEWPORT, user_agent=CATALOG_USER_AGENT)

            LOGGER.info("Navigating to %s", url)
            page.goto(url, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)

            _await_challenge(page)

            LOGGER.info("Waiting for <body> to be visible")
            page.wait_for_selector("body", state="visible", timeout=READY_TIMEOUT_MS)

            raw_cookies = page.context.cookies()
            content = page.content()
        finally:
            _release(page, browser)

    cookies = tuple(Cookie.from_dict(dict(raw)) for raw in raw_cookies)
    LOGGER.debug("Page content length: %s", len(content or ""))
    return Session(cookies=cookies, content=content)


def _await_challenge(page: Any) -> None:
    # Challenge completion is not observable from outside the page; wait a fixed window.
    LOGGER.info("Waiting %ss for the JS challenge to settle", CHALLENGE_SETTLE_MS // 1000)
    page.wait_for_timeout(CHALLENGE_SETTLE_MS)


def _release(page: Any, browser: Any) -> None:
    """Close page and browser, swallowing close errors."""
    for resource in (page, browser):
        if resource is None:
            continue
        try:
            resource.close()
        except Exception as exc:
            LOGGER.debug("Ignoring error while closing %s: %s", type(resource).__name__, exc)
