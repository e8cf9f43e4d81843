"""Shared test fixtures."""

from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest

from taskpilot.agents import build_executor_agent, build_planner_agent
from taskpilot.config import Settings
from taskpilot.coordinator import Coordinator


class ScriptedClient:
    """Completion client stub: replays canned replies and records every call."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.calls: List[List[Dict[str, str]]] = []

    async def complete(self, messages):
        self.calls.append([dict(m) for m in messages])
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def plan_json(*subtasks: Dict[str, Any], execution_order=None) -> str:
    order = execution_order if execution_order is not None else [s["id"] for s in subtasks]
    return json.dumps({"subtasks": list(subtasks), "execution_order": order})


def result_json(task_id: str, status: str = "completed", findings: Any = "done") -> str:
    return json.dumps(
        {
            "task_id": task_id,
            "status": status,
            "results": {
                "main_findings": findings,
                "supporting_data": "n/a",
                "recommendations": "ship it",
            },
            "execution_time": "1h",
            "issues": [],
        }
    )


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(openai_api_key="sk-test", history_path=str(tmp_path / "history.jsonl"))


@pytest.fixture()
def make_coordinator(settings):
    """Build a coordinator whose agents talk to scripted clients."""

    def _make(planner_responses, executor_responses):
        planner_client = ScriptedClient(planner_responses)
        executor_client = ScriptedClient(executor_responses)
        coordinator = Coordinator(
            settings=settings,
            planner=build_planner_agent(planner_client),
            executor=build_executor_agent(executor_client),
        )
        return coordinator, planner_client, executor_client

    return _make
