from __future__ import annotations

import json
from typing import Any, List, Literal, Optional, Sequence, TypedDict

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from .config import Settings
from .errors import CompletionFailure
from .logger import logger


class Message(TypedDict):
    role: Literal["system", "user"]
    content: str


def to_langchain_messages(messages: Sequence[Message]) -> List[BaseMessage]:
    converted: List[BaseMessage] = []
    for m in messages:
        if m["role"] == "system":
            converted.append(SystemMessage(content=m["content"]))
        elif m["role"] == "user":
            converted.append(HumanMessage(content=m["content"]))
        else:
            raise ValueError(f"Unsupported message role: {m['role']!r}")
    return converted


def content_to_text(content: Any) -> str:
    """Flatten a chat message's content (plain string or list of parts)."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and isinstance(item.get("text"), str):
                parts.append(item["text"])
            else:
                parts.append(json.dumps(item))
        return "".join(parts)
    return json.dumps(content)


class CompletionClient:
    """Sends role-tagged messages to the chat model and returns the text."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4-turbo-preview",
        temperature: float = 0.7,
        timeout: Optional[float] = None,
        max_retries: int = 0,
        llm: Optional[ChatOpenAI] = None,
    ):
        self.model = model
        self.temperature = temperature
        self.llm = llm or ChatOpenAI(
            model=model,
            temperature=temperature,
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
        )

    async def complete(self, messages: Sequence[Message]) -> str:
        lc_messages = to_langchain_messages(messages)
        try:
            response = await self.llm.ainvoke(lc_messages)
        except Exception as e:
            raise CompletionFailure(f"Completion request to {self.model} failed: {e}") from e

        text = content_to_text(response.content)
        if not text.strip():
            raise CompletionFailure(f"Completion from {self.model} returned no content")
        logger.debug(f"{self.model} returned {len(text)} characters")
        return text


def build_completion_client(settings: Settings, api_key: Optional[str] = None) -> CompletionClient:
    return CompletionClient(
        api_key=settings.resolve_api_key(api_key),
        model=settings.model,
        temperature=settings.temperature,
        timeout=settings.timeout,
        max_retries=settings.max_retries,
    )


def messages_for(system: str, user: str) -> List[Message]:
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]
