from __future__ import annotations

import pytest

from taskpilot.decoding import decode_as, decode_response, strip_code_fences
from taskpilot.errors import MalformedResponseError
from taskpilot.schemas import SubtaskResult, TaskPlan

PLAN_TEXT = '{"subtasks": [{"id": "t1", "description": "Draft checklist"}], "execution_order": ["t1"]}'


@pytest.mark.parametrize(
    "text",
    [
        f"```json\n{PLAN_TEXT}\n```",
        f"```\n{PLAN_TEXT}\n```",
        f"  \n```JSON\n{PLAN_TEXT}\n```\n\n",
        f"```json{PLAN_TEXT}```",
    ],
)
def test_fenced_response_decodes_like_unfenced(text: str) -> None:
    assert strip_code_fences(text) == PLAN_TEXT
    assert decode_response(text) == decode_response(PLAN_TEXT)


def test_text_without_fences_is_only_trimmed() -> None:
    assert strip_code_fences(f"\n  {PLAN_TEXT}  \n") == PLAN_TEXT


def test_backticks_inside_strings_are_kept() -> None:
    text = '{"main_findings": "run ```make``` first"}'
    assert decode_response(text) == {"main_findings": "run ```make``` first"}


def test_decoding_is_repeatable() -> None:
    first = decode_response(PLAN_TEXT)
    second = decode_response(PLAN_TEXT)
    assert first == second
    assert first is not second

    first["subtasks"].append({"id": "t2"})
    assert decode_response(PLAN_TEXT) == second


def test_unparseable_response_keeps_raw_text() -> None:
    raw = "Sure! Here is your plan: step 1, step 2"
    with pytest.raises(MalformedResponseError) as exc_info:
        decode_response(raw)

    err = exc_info.value
    assert err.raw == raw
    assert err.detail
    assert str(err) == "Invalid JSON response from agent"
    assert raw not in str(err)


def test_decode_as_validates_shape() -> None:
    plan = decode_as(TaskPlan, f"```json\n{PLAN_TEXT}\n```")
    assert isinstance(plan, TaskPlan)
    assert plan.subtasks[0].id == "t1"


def test_shape_mismatch_is_malformed() -> None:
    raw = '{"task_id": "t1", "status": "finished"}'
    with pytest.raises(MalformedResponseError) as exc_info:
        decode_as(SubtaskResult, raw)
    assert exc_info.value.raw == raw
    assert "status" in exc_info.value.detail


def test_json_array_is_not_a_plan() -> None:
    with pytest.raises(MalformedResponseError):
        decode_as(TaskPlan, '[{"id": "t1"}]')
