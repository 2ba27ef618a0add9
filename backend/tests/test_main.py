"""
Tests for the server entry point's port selection.

Run with:
    pytest backend/tests/test_main.py -v
"""

from unittest.mock import patch

from main import find_free_port, resolve_port, serve
from spaced_review.config import Settings


def test_configured_port_is_used():
    assert resolve_port(Settings(port=8765)) == 8765


def test_unset_port_picks_a_free_one():
    port = resolve_port(Settings(port=0))

    assert 0 < port < 65536


def test_free_port_binds_on_configured_host():
    assert find_free_port("127.0.0.1") > 0


def test_serve_announces_port(capsys):
    cfg = Settings(port=8765, host="0.0.0.0", log_level="info")
    with patch("main.uvicorn.run") as run:
        serve(cfg)

    assert capsys.readouterr().out == "PORT=8765\n"
    run.assert_called_once()
    assert run.call_args.kwargs == {"host": "0.0.0.0", "port": 8765, "log_level": "info"}


def test_port_from_environment(monkeypatch):
    monkeypatch.setenv("SPACED_REVIEW_PORT", "9001")

    assert resolve_port(Settings()) == 9001
