from __future__ import annotations

import json
from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


SubtaskStatus = Literal["completed", "in_progress", "failed"]


def _as_id(value: Any) -> Any:
    # models often emit numeric ids (1, 2, ...) for what we treat as strings
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _as_text(value: Any) -> Any:
    # advisory free-text fields: keep whatever the model said, as text
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float, bool)):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


class Subtask(BaseModel):
    id: str = Field(..., description="Identifier, unique within the plan")
    description: str = Field(..., description="What needs to be done")
    dependencies: List[str] = Field(default_factory=list, description="Ids of subtasks that should come first")
    estimated_time: Optional[str] = Field(None, description="Advisory effort estimate")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return _as_id(value)

    @field_validator("estimated_time", mode="before")
    @classmethod
    def _coerce_estimate(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("dependencies", mode="before")
    @classmethod
    def _coerce_dependencies(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [_as_id(v) for v in value]
        return value


class TaskPlan(BaseModel):
    subtasks: List[Subtask] = Field(..., min_length=1)
    execution_order: List[str] = Field(default_factory=list)

    @field_validator("execution_order", mode="before")
    @classmethod
    def _coerce_order(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [_as_id(v) for v in value]
        return value

    @model_validator(mode="after")
    def _check_ids(self) -> "TaskPlan":
        ids = [s.id for s in self.subtasks]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"duplicate subtask ids: {duplicates}")
        unknown = [i for i in self.execution_order if i not in ids]
        if unknown:
            raise ValueError(f"execution_order references unknown subtasks: {unknown}")
        return self


class ResultBundle(BaseModel):
    main_findings: Any = ""
    supporting_data: Any = ""
    recommendations: Any = ""


class SubtaskResult(BaseModel):
    task_id: str
    status: SubtaskStatus
    results: ResultBundle = Field(default_factory=ResultBundle)
    execution_time: Optional[str] = None
    issues: List[str] = Field(default_factory=list)

    @field_validator("task_id", mode="before")
    @classmethod
    def _coerce_task_id(cls, value: Any) -> Any:
        return _as_id(value)

    @field_validator("execution_time", mode="before")
    @classmethod
    def _coerce_execution_time(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("issues", mode="before")
    @classmethod
    def _coerce_issues(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [_as_text(v) for v in value]
        return value


class FinalReport(BaseModel):
    original_task: str
    plan: TaskPlan
    results: List[SubtaskResult]
    summary: str


def findings_text(result: SubtaskResult) -> str:
    findings = result.results.main_findings
    if isinstance(findings, str):
        return findings
    return json.dumps(findings, ensure_ascii=False)


def build_summary(results: List[SubtaskResult]) -> str:
    """One "Task k: status" section per result, in execution order."""
    return "\n\n".join(
        f"Task {index}: {result.status}\n{findings_text(result)}"
        for index, result in enumerate(results, start=1)
    )


# ============================================================================
# PROGRESS EVENTS
# ============================================================================

class ConnectionEvent(BaseModel):
    type: Literal["connection"] = "connection"
    message: str = "Connected to agent system"


class PlanningStartedEvent(BaseModel):
    type: Literal["planning_start"] = "planning_start"
    message: str = "Starting task planning..."


class PlanningCompletedEvent(BaseModel):
    type: Literal["planning_complete"] = "planning_complete"
    plan: TaskPlan


class ExecutionStartedEvent(BaseModel):
    type: Literal["execution_start"] = "execution_start"
    task_id: str
    subtask: str = Field(..., description="Description of the subtask being executed")


class ExecutionCompletedEvent(BaseModel):
    type: Literal["execution_complete"] = "execution_complete"
    result: SubtaskResult


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: str


class FinalEvent(BaseModel):
    type: Literal["final"] = "final"
    result: FinalReport


ProgressEvent = Annotated[
    Union[
        ConnectionEvent,
        PlanningStartedEvent,
        PlanningCompletedEvent,
        ExecutionStartedEvent,
        ExecutionCompletedEvent,
        ErrorEvent,
        FinalEvent,
    ],
    Field(discriminator="type"),
]

TERMINAL_EVENT_TYPES = frozenset({"final", "error"})


class ExecutionRecord(BaseModel):
    """One line of the coordinator's execution log."""
    task_id: str
    status: str
    result: str
    timestamp: datetime = Field(default_factory=datetime.now)
