from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .errors import RequestValidationError


class Settings(BaseModel):
    """
    Runtime configuration, read from the environment (and `.env`).
    """

    openai_api_key: Optional[str] = None
    model: str = "gpt-4-turbo-preview"
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    timeout: float = Field(120.0, gt=0, description="Per-completion timeout in seconds")
    max_retries: int = Field(0, ge=0)
    history_path: str = "data/history.jsonl"
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        values = {
            "openai_api_key": os.getenv("OPENAI_API_KEY") or None,
            "model": os.getenv("OPENAI_MODEL"),
            "temperature": os.getenv("TASKPILOT_TEMPERATURE"),
            "timeout": os.getenv("TASKPILOT_TIMEOUT"),
            "max_retries": os.getenv("TASKPILOT_MAX_RETRIES"),
            "history_path": os.getenv("TASKPILOT_HISTORY_PATH"),
            "log_level": os.getenv("TASKPILOT_LOG_LEVEL"),
            "host": os.getenv("TASKPILOT_HOST"),
            "port": os.getenv("TASKPILOT_PORT"),
        }
        # unset variables fall back to the field defaults
        return cls(**{k: v for k, v in values.items() if v is not None})

    def resolve_api_key(self, explicit: Optional[str] = None) -> str:
        api_key = explicit or self.openai_api_key
        if not api_key:
            raise RequestValidationError("OpenAI API key is required")
        return api_key
