from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from taskpilot import cli
from taskpilot.config import Settings
from taskpilot.history import HistoryStore
from taskpilot.schemas import FinalReport, SubtaskResult, TaskPlan


class StubCoordinator:
    """Stands in for Coordinator; `outcome` is a report to return or an exception to raise."""

    outcome = None

    def __init__(self, api_key=None, settings=None):
        self.api_key = api_key

    async def process_task(self, task, on_event=None):
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


@pytest.fixture()
def repl(monkeypatch, settings):
    """Run the REPL against scripted input lines and a stub coordinator."""

    def _run(lines, outcome):
        inputs = iter(lines)

        def fake_input(prompt=""):
            try:
                return next(inputs)
            except StopIteration:
                raise EOFError

        monkeypatch.setattr("builtins.input", fake_input)
        monkeypatch.setattr(cli, "Settings", SimpleNamespace(from_env=lambda: settings))
        monkeypatch.setattr(StubCoordinator, "outcome", outcome)
        monkeypatch.setattr(cli, "Coordinator", StubCoordinator)
        return asyncio.run(cli.main())

    return _run


def _report(task):
    result = SubtaskResult(task_id="t1", status="completed", results={"main_findings": "Checklist drafted"})
    plan = TaskPlan.model_validate({"subtasks": [{"id": "t1", "description": "Draft checklist"}]})
    return FinalReport(original_task=task, plan=plan, results=[result], summary="Task 1: completed\nChecklist drafted")


def test_completed_task_is_saved(repl, settings, capsys):
    task = "Write a product launch checklist"
    repl([task, "exit"], _report(task))

    entry = HistoryStore(settings.history_path).get_history()[0]
    assert entry.task == task
    assert entry.status == "completed"
    assert entry.results[0]["task_id"] == "t1"
    assert "Checklist drafted" in capsys.readouterr().out


def test_failed_task_is_saved_and_loop_continues(repl, settings):
    repl(["broken", "history", "exit"], RuntimeError("boom"))

    entries = HistoryStore(settings.history_path).get_history()
    assert [(e.task, e.status) for e in entries] == [("broken", "failed")]


def test_interrupted_task_is_saved_as_failed(repl, settings):
    with pytest.raises(asyncio.CancelledError):
        repl(["long running task"], asyncio.CancelledError())

    entries = HistoryStore(settings.history_path).get_history()
    assert [(e.task, e.status) for e in entries] == [("long running task", "failed")]


def test_missing_key_exits_early(monkeypatch, tmp_path, capsys):
    no_key = Settings(history_path=str(tmp_path / "h.jsonl"))
    monkeypatch.setattr(cli, "Settings", SimpleNamespace(from_env=lambda: no_key))
    monkeypatch.setattr("builtins.input", lambda prompt="": pytest.fail("prompted without a key"))
    asyncio.run(cli.main())
    assert "API key is required" in capsys.readouterr().out
