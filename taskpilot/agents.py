from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol, Sequence, Type

from pydantic import BaseModel

from .decoding import decode_as
from .llm import Message, messages_for
from .logger import logger
from .schemas import Subtask, SubtaskResult, TaskPlan


class SupportsComplete(Protocol):
    async def complete(self, messages: Sequence[Message]) -> str: ...


@dataclass(frozen=True)
class AgentRole:
    name: str
    role: str
    instructions: str
    output_model: Type[BaseModel]


PLANNER_ROLE = AgentRole(
    name="TaskPlanner",
    role="Breaks down complex tasks into manageable subtasks",
    instructions=(
        "You are a task planning expert. Your role is to:\n"
        "1. Analyze complex tasks\n"
        "2. Break them down into clear, actionable subtasks\n"
        "3. Identify dependencies between subtasks\n"
        "4. Suggest an optimal execution order\n\n"
        "IMPORTANT: Return ONLY a valid JSON object with the following structure, "
        "no markdown formatting or additional text:\n"
        "{\n"
        '    "subtasks": [\n'
        "        {\n"
        '            "id": "unique_id",\n'
        '            "description": "clear description",\n'
        '            "dependencies": ["other_task_ids"],\n'
        '            "estimated_time": "time estimate"\n'
        "        }\n"
        "    ],\n"
        '    "execution_order": ["task_id1", "task_id2"]\n'
        "}"
    ),
    output_model=TaskPlan,
)

EXECUTOR_ROLE = AgentRole(
    name="ExecutionAgent",
    role="Executes specific tasks and provides detailed results",
    instructions=(
        "You are an execution expert. Your role is to:\n"
        "1. Execute specific tasks with attention to detail\n"
        "2. Provide comprehensive results\n"
        "3. Include relevant data and insights\n"
        "4. Focus on actionable solutions and recommendations\n\n"
        "IMPORTANT: Return ONLY a valid JSON object with the following structure, "
        "no markdown formatting or additional text.\n"
        "Focus on providing solutions and actionable steps rather than listing limitations.\n"
        "If you encounter limitations, provide alternative approaches or next steps instead.\n\n"
        "{\n"
        '    "task_id": "id_of_the_task",\n'
        '    "status": "completed|in_progress|failed",\n'
        '    "results": {\n'
        '        "main_findings": "detailed results and actionable steps",\n'
        '        "supporting_data": "relevant data points and considerations",\n'
        '        "recommendations": "specific next steps and implementation suggestions"\n'
        "    },\n"
        '    "execution_time": "time estimate",\n'
        '    "issues": ["only include critical issues that need immediate attention"]\n'
        "}"
    ),
    output_model=SubtaskResult,
)


class Agent:
    """
    One completion call per `process`: the role's instructions as the system
    message, the input as the user message, the reply decoded into the role's
    output model.
    """

    def __init__(self, role: AgentRole, client: SupportsComplete):
        self.role = role
        self.client = client

    @property
    def name(self) -> str:
        return self.role.name

    async def process(self, user_input: str) -> Any:
        logger.info(f"[{self.name}] Received input ({len(user_input)} chars)")
        raw = await self.client.complete(messages_for(self.role.instructions, user_input))
        decoded = decode_as(self.role.output_model, raw)
        logger.info(f"[{self.name}] Completed")
        return decoded

    # Role-specific entry points. Both are thin wrappers over `process`.

    async def plan(self, task: str) -> TaskPlan:
        return await self.process(task)

    async def execute(self, subtask: Subtask) -> SubtaskResult:
        return await self.process(json.dumps(subtask.model_dump(), ensure_ascii=False))


def build_planner_agent(client: SupportsComplete) -> Agent:
    return Agent(PLANNER_ROLE, client)


def build_executor_agent(client: SupportsComplete) -> Agent:
    return Agent(EXECUTOR_ROLE, client)
