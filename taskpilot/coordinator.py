from __future__ import annotations

import time
from enum import Enum
from typing import Callable, List, Optional

from pydantic import BaseModel

from .agents import Agent, build_executor_agent, build_planner_agent
from .config import Settings
from .errors import RequestValidationError
from .llm import build_completion_client
from .logger import logger
from .schemas import (
    ConnectionEvent,
    ErrorEvent,
    ExecutionCompletedEvent,
    ExecutionRecord,
    ExecutionStartedEvent,
    FinalEvent,
    FinalReport,
    PlanningCompletedEvent,
    PlanningStartedEvent,
    SubtaskResult,
    TaskPlan,
    build_summary,
    findings_text,
)

EventCallback = Callable[[BaseModel], None]


class PipelineState(str, Enum):
    IDLE = "idle"
    PLANNING = "planning"
    EXECUTING = "executing"
    AGGREGATING = "aggregating"
    DONE = "done"
    ERRORED = "errored"


class Coordinator:
    """
    Drives one task through plan -> execute -> aggregate.

    Subtasks run one at a time in the order the plan lists them; the plan's
    `execution_order` and per-subtask `dependencies` are reported but not used
    for scheduling. The first failure aborts the run.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        settings: Optional[Settings] = None,
        planner: Optional[Agent] = None,
        executor: Optional[Agent] = None,
    ):
        self.settings = settings or Settings.from_env()
        # each agent gets its own client
        self.planner = planner or build_planner_agent(build_completion_client(self.settings, api_key))
        self.executor = executor or build_executor_agent(build_completion_client(self.settings, api_key))
        self.state = PipelineState.IDLE
        self.current_index: Optional[int] = None
        self._execution_history: List[ExecutionRecord] = []

    def get_execution_history(self) -> List[ExecutionRecord]:
        return list(self._execution_history)

    async def process_task(self, task: str, on_event: Optional[EventCallback] = None) -> FinalReport:
        if not task or not task.strip():
            raise RequestValidationError("Task is required")

        def emit(event: BaseModel) -> None:
            if on_event is not None:
                on_event(event)

        start_time = time.time()
        self.state = PipelineState.IDLE
        self.current_index = None
        subtask_id: Optional[str] = None

        try:
            emit(ConnectionEvent())

            # ----------------------------
            # 1. PLAN
            # ----------------------------
            self.state = PipelineState.PLANNING
            emit(PlanningStartedEvent())
            plan: TaskPlan = await self.planner.plan(task)
            self._warn_unknown_dependencies(plan)
            logger.info(f"Plan ready: {len(plan.subtasks)} subtasks")
            emit(PlanningCompletedEvent(plan=plan))

            # ----------------------------
            # 2. EXECUTE, strictly in listed order
            # ----------------------------
            self.state = PipelineState.EXECUTING
            results: List[SubtaskResult] = []
            for index, subtask in enumerate(plan.subtasks):
                self.current_index = index
                subtask_id = subtask.id
                emit(ExecutionStartedEvent(task_id=subtask.id, subtask=subtask.description))

                result: SubtaskResult = await self.executor.execute(subtask)
                results.append(result)
                self._record(subtask.id, result.status, findings_text(result))
                emit(ExecutionCompletedEvent(result=result))
            subtask_id = None

            # ----------------------------
            # 3. AGGREGATE
            # ----------------------------
            self.state = PipelineState.AGGREGATING
            report = FinalReport(
                original_task=task,
                plan=plan,
                results=results,
                summary=build_summary(results),
            )
        except Exception as e:
            self.state = PipelineState.ERRORED
            if subtask_id is not None:
                self._record(subtask_id, "failed", str(e))
            logger.error(f"Task failed after {time.time() - start_time:.2f}s: {e}")
            emit(ErrorEvent(error=str(e) or "An error occurred"))
            raise

        self.state = PipelineState.DONE
        logger.info(f"Task finished in {time.time() - start_time:.2f}s")
        emit(FinalEvent(result=report))
        return report

    def _record(self, task_id: str, status: str, result: str) -> None:
        self._execution_history.append(ExecutionRecord(task_id=task_id, status=status, result=result))

    @staticmethod
    def _warn_unknown_dependencies(plan: TaskPlan) -> None:
        ids = {s.id for s in plan.subtasks}
        for subtask in plan.subtasks:
            missing = [d for d in subtask.dependencies if d not in ids]
            if missing:
                logger.warning(f"Subtask {subtask.id} depends on unknown subtasks {missing}")
