from __future__ import annotations

import json

import httpx
import pytest
from click.testing import CliRunner

import cli as remindctl
from cli import cli
from storage import Storage
from sync import HttpPersister


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "reminders.db")


def run(db_path: str, *args: str):
    return CliRunner().invoke(cli, ["--db", db_path, *args])


def test_add_then_due(db_path: str) -> None:
    result = run(db_path, "add", "Water plants", "2")
    assert result.exit_code == 0, result.output
    assert "Job 0 added" in result.output

    result = run(db_path, "due")
    assert "0 | Water plants | every 2d | never done" in result.output


def test_add_rejects_invalid_days(db_path: str) -> None:
    result = run(db_path, "add", "Water plants", "zero")
    assert result.exit_code == 1
    assert "Invalid job" in result.output
    assert Storage(db_path).load_snapshot() is None


def test_done_hides_job_from_due_list(db_path: str) -> None:
    run(db_path, "add", "Feed cat", "1")
    result = run(db_path, "done", "0")
    assert "marked done" in result.output
    assert "Nothing is due." in run(db_path, "due").output
    assert "| ok" in run(db_path, "list").output


def test_delete_unknown_job_is_harmless(db_path: str) -> None:
    run(db_path, "add", "Feed cat", "1")
    result = run(db_path, "delete", "99")
    assert result.exit_code == 0
    assert "not found" in result.output
    assert len(json.loads(Storage(db_path).load_snapshot())["jobs"]) == 1


def test_show(db_path: str) -> None:
    run(db_path, "add", "Feed cat", "3")
    result = run(db_path, "show", "0")
    assert "Title: Feed cat" in result.output
    assert "Every: 3 days" in result.output
    assert "never done" in result.output


def test_config_set_get_list(db_path: str) -> None:
    assert "not set" in run(db_path, "config", "get", "tick_minutes").output
    run(db_path, "config", "set", "tick_minutes", "30")
    assert "tick_minutes=30" in run(db_path, "config", "get", "tick_minutes").output
    assert "tick_minutes=30" in run(db_path, "config", "list").output


def test_remote_bootstrap_failure_stops_before_any_write(db_path: str, monkeypatch) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(503)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    monkeypatch.setattr(remindctl, "HttpPersister", lambda url: HttpPersister(url, client=client))

    result = run(db_path, "--remote", "http://reminders.test", "delete", "99")
    assert result.exit_code == 1
    assert "❌ Could not load jobs" in result.output
    assert [r.method for r in seen] == ["GET"]


def test_watch_reuses_session_storage(db_path: str, monkeypatch) -> None:
    run(db_path, "config", "set", "tick_minutes", "30")
    opened = []

    class CountingStorage(Storage):
        def __init__(self, *args, **kwargs):
            opened.append(args)
            super().__init__(*args, **kwargs)

    def stop(seconds):
        raise KeyboardInterrupt

    monkeypatch.setattr(remindctl, "Storage", CountingStorage)
    monkeypatch.setattr(remindctl.time, "sleep", stop)

    result = run(db_path, "watch")
    assert result.exit_code == 0, result.output
    assert "every 30 min" in result.output
    assert "Nothing is due." in result.output
    assert "Stopped." in result.output
    assert len(opened) == 1
