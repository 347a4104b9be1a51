"""Shared fixtures for dm_stats tests."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from helpers import at, make_call, make_export, make_text


# ── Sample export ──


def _sample_messages() -> list[dict]:
    return [
        make_text(1, "alice", at(0, 3)),
        make_text(2, "bob", at(0, 4)),
        make_call(3, "alice", at(0, 5), at(0, 17)),
        make_text(4, "alice", at(9, 30, day=1)),
        make_call(5, "bob", at(23, 50, day=1), at(0, 10, day=2)),
        make_call(6, "bob", at(12, 0, day=2), at(12, 0, 5, day=2)),  # too short
        {"id": "7", "type": "ChannelPinnedMessage", "timestamp": at(13).isoformat(),
         "author": {"id": "id-carol", "name": "carol", "nickname": "Carol"}},
    ]


@pytest.fixture()
def sample_export_data() -> dict:
    return make_export(_sample_messages())


@pytest.fixture()
def export_file(tmp_path, sample_export_data) -> Path:
    path = tmp_path / "dm_export.json"
    path.write_text(json.dumps(sample_export_data), encoding="utf-8")
    return path


# ── Minimal report payload for app.py tests ──


def _minimal_report_payload() -> dict:
    """Return a minimal payload matching build_report_payload() shape."""
    return {
        "generated_at": "2024-01-15T12:00:00",
        "channel": {
            "id": "42",
            "name": "alice & bob",
            "authors": ["alice", "bob"],
            "messages": 3,
            "calls": 3,
        },
        "reports": {
            "total-calls": {
                "title": "Total Call Lengths",
                "header": None,
                "text": "total length = 32m05s000ms",
            },
            "call-graph": {
                "title": "Call Graph (10m groupings, min = 15s)",
                "header": "sum = 32m00s000ms, mean = 13s333ms, sd = 01m21s950ms, "
                          "bucket = 10m, min = 000ms, max = 10m00s000ms",
                "text": "Legend:\nalice\nbob",
            },
        },
    }


@pytest.fixture()
def mock_payload():
    """Return the minimal report payload dict."""
    return _minimal_report_payload()


@pytest.fixture()
def client(mock_payload):
    """TestClient for app.py with mocked report data.

    Patches build_report_payload and the PNG renderer so no export file is
    needed.  Resets the module-level cache between tests.
    """
    import app as app_module

    with patch.object(
        app_module, "_cache", {"data": None, "image": None, "built_at": 0.0}
    ):
        with patch("app.build_report_payload", return_value=mock_payload):
            with patch("app._render_png", return_value=b"\x89PNG\r\n\x1a\nfake"):
                with TestClient(app_module.app) as tc:
                    yield tc
