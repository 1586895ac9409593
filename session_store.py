"""Cookie file persistence for harvested sessions."""

from __future__ import annotations

import json
import logging
from json import JSONDecodeError
from pathlib import Path
from typing import Any

from errors import SessionLoadError
from models import Cookie, Session

COOKIES_JSON_PATH = "cookies.json"
COOKIES_TXT_PATH = "cookies.txt"

LOGGER = logging.getLogger(__name__)


def save_session(
    session: Session,
    json_path: str | Path = COOKIES_JSON_PATH,
    txt_path: str | Path = COOKIES_TXT_PATH,
) -> None:
    """Write the cookie array as JSON and the `name=value; ...` header as text."""
    json_file = Path(json_path)
    txt_file = Path(txt_path)

    cookies = [cookie.to_dict() for cookie in session.cookies]
    json_file.write_text(json.dumps(cookies, indent=2), encoding="utf-8")
    txt_file.write_text(session.cookie_header(), encoding="utf-8")

    LOGGER.info("Saved %s cookies to %s and %s", len(cookies), json_file, txt_file)


def load_session(path: str | Path = COOKIES_JSON_PATH) -> Session:
    """Load a saved session, tolerating several cookie file shapes.

    Accepted JSON payloads:
    - a raw array of cookie objects (what save_session writes);
    - an object with a `cookies` array (browser-extension exports);
    - a string holding a `name=value; ...` cookie header.

    Raises:
        SessionLoadError: file missing, not JSON, or none of the shapes above.
    """
    cookie_file = Path(path)
    if not cookie_file.exists():
        raise SessionLoadError(f"{cookie_file} not found")

    try:
        payload = json.loads(cookie_file.read_text(encoding="utf-8"))
    except (OSError, JSONDecodeError) as exc:
        raise SessionLoadError(f"Could not read {cookie_file}: {exc}") from exc

    cookies = _cookies_from_payload(payload)
    LOGGER.info("Loaded %s cookies from %s", len(cookies), cookie_file)
    return Session(cookies=cookies)


def parse_cookie_header(header: str) -> tuple[Cookie, ...]:
    """Split a `name=value; name2=value2` header into Cookie records."""
    cookies: list[Cookie] = []
    for part in header.split(";"):
        name, sep, value = part.strip().partition("=")
        if not sep or not name:
            continue
        cookies.append(Cookie(name=name.strip(), value=value.strip()))
    return tuple(cookies)


def _cookies_from_payload(payload: Any) -> tuple[Cookie, ...]:
    if isinstance(payload, dict) and "cookies" in payload:
        payload = payload["cookies"]

    if isinstance(payload, str):
        return parse_cookie_header(payload)

    if not isinstance(payload, list):
        raise SessionLoadError(
            f"Unexpected cookie file shape: {type(payload).__name__}"
        )

    cookies: list[Cookie] = []
    for raw in payload:
        if not isinstance(raw, dict) or not raw.get("name"):
            LOGGER.warning("Skipping malformed cookie entry: %r", raw)
            continue
        cookies.append(Cookie.from_dict(raw))
    return tuple(cookies)
