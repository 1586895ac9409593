"""Tests for the CLI entrypoint's mode dispatch and exit codes."""

from __future__ import annotations

from unittest.mock import patch

import main
from errors import SessionAcquisitionError, SessionLoadError
from models import Cookie, Session

SESSION = Session(cookies=(Cookie(name="cf_clearance", value="abc"),), content="<html></html>")


def test_parse_args_defaults_to_all() -> None:
    args = main.parse_args([])

    assert args.mode == "all"
    assert args.session_file == "cookies.json"


def test_main_harvest_mode_saves_without_scanning() -> None:
    with patch("main.load_dotenv"), \
         patch("main.acquire_session", return_value=SESSION) as mock_acquire, \
         patch("main.save_session") as mock_save, \
         patch("main.run_all") as mock_run_all:
        code = main.main(["--mode", "harvest"])

    assert code == 0
    mock_acquire.assert_called_once()
    mock_save.assert_called_once_with(SESSION)
    mock_run_all.assert_not_called()


def test_main_all_mode_scans_with_fresh_session() -> None:
    with patch("main.load_dotenv"), \
         patch("main.acquire_session", return_value=SESSION), \
         patch("main.save_session"), \
         patch("main.load_session") as mock_load, \
         patch("main.run_all", return_value={"recent-anime.json": 3}) as mock_run_all:
        code = main.main([])

    assert code == 0
    mock_load.assert_not_called()
    mock_run_all.assert_called_once_with(SESSION)


def test_main_scan_mode_loads_session_file() -> None:
    with patch("main.load_dotenv"), \
         patch("main.acquire_session") as mock_acquire, \
         patch("main.load_session", return_value=SESSION) as mock_load, \
         patch("main.run_all", return_value={}) as mock_run_all:
        code = main.main(["--mode", "scan", "--session-file", "saved.json"])

    assert code == 0
    mock_acquire.assert_not_called()
    mock_load.assert_called_once_with("saved.json")
    mock_run_all.assert_called_once_with(SESSION)


def test_main_returns_nonzero_when_harvest_fails() -> None:
    with patch("main.load_dotenv"), \
         patch("main.acquire_session", side_effect=SessionAcquisitionError("gave up")), \
         patch("main.save_session") as mock_save, \
         patch("main.run_all") as mock_run_all:
        code = main.main(["--mode", "all"])

    assert code == 1
    mock_save.assert_not_called()
    mock_run_all.assert_not_called()


def test_main_returns_nonzero_when_session_file_missing() -> None:
    with patch("main.load_dotenv"), \
         patch("main.load_session", side_effect=SessionLoadError("cookies.json not found")), \
         patch("main.run_all") as mock_run_all:
        code = main.main(["--mode", "scan"])

    assert code == 1
    mock_run_all.assert_not_called()


def test_main_returns_nonzero_on_unexpected_error() -> None:
    with patch("main.load_dotenv"), \
         patch("main.load_session", return_value=SESSION), \
         patch("main.run_all", side_effect=OSError("disk full")):
        code = main.main(["--mode", "scan"])

    assert code == 1
