"""
HTTP boundary: POST a task, receive its progress as server-sent events.

    curl -N -X POST localhost:8000/api/process \
         -H 'Content-Type: application/json' \
         -d '{"task": "Write a product launch checklist"}'
"""
from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Callable, Optional, Set, Tuple

import uvicorn
from pydantic import BaseModel
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, StreamingResponse
from starlette.routing import Route

from .config import Settings
from .coordinator import Coordinator
from .errors import RequestValidationError
from .logger import configure_logger, logger
from .schemas import TERMINAL_EVENT_TYPES, ErrorEvent

CoordinatorFactory = Callable[[str, Settings], Coordinator]

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

# runs whose consumer went away are kept alive until they finish
_background_runs: Set[asyncio.Task] = set()


def format_sse(event: BaseModel) -> str:
    return f"data: {event.model_dump_json()}\n\n"


def validate_request(payload: Any, settings: Settings) -> Tuple[str, str]:
    if not isinstance(payload, dict):
        raise RequestValidationError("Request body must be a JSON object")
    task = payload.get("task")
    if not isinstance(task, str) or not task.strip():
        raise RequestValidationError("Task is required")
    api_key = settings.resolve_api_key(payload.get("apiKey"))
    return task, api_key


def _log_outcome(run: asyncio.Task) -> None:
    _background_runs.discard(run)
    if run.cancelled():
        logger.warning("Task run was cancelled")
        return
    exc = run.exception()
    if exc is not None:
        logger.error(f"Task run ended with {type(exc).__name__}: {exc}")


async def stream_task_events(coordinator: Coordinator, task: str) -> AsyncIterator[str]:
    """Yield one SSE frame per progress event, ending after `final` or `error`."""
    queue: asyncio.Queue = asyncio.Queue()

    async def _run() -> None:
        try:
            await coordinator.process_task(task, on_event=queue.put_nowait)
        finally:
            queue.put_nowait(None)

    run = asyncio.create_task(_run())
    _background_runs.add(run)
    run.add_done_callback(_log_outcome)

    while True:
        event = await queue.get()
        if event is None:
            # the run stopped before it could report a terminal event
            yield format_sse(ErrorEvent(error="An error occurred"))
            break
        yield format_sse(event)
        if event.type in TERMINAL_EVENT_TYPES:
            break


def _default_factory(api_key: str, settings: Settings) -> Coordinator:
    return Coordinator(api_key=api_key, settings=settings)


async def process(request: Request):
    settings: Settings = request.app.state.settings
    try:
        payload = await request.json()
    except ValueError:
        # JSONDecodeError, or UnicodeDecodeError for a body that is not UTF-8
        return JSONResponse({"error": "Request body must be valid JSON"}, status_code=400)

    try:
        task, api_key = validate_request(payload, settings)
    except RequestValidationError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    coordinator = request.app.state.coordinator_factory(api_key, settings)
    return StreamingResponse(
        stream_task_events(coordinator, task),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


async def health(request: Request):
    return JSONResponse({"status": "ok"})


def create_app(
    settings: Optional[Settings] = None,
    coordinator_factory: Optional[CoordinatorFactory] = None,
) -> Starlette:
    app = Starlette(
        routes=[
            Route("/api/process", process, methods=["POST"]),
            Route("/health", health, methods=["GET"]),
        ]
    )
    app.state.settings = settings or Settings.from_env()
    app.state.coordinator_factory = coordinator_factory or _default_factory
    return app


def main() -> None:
    settings = Settings.from_env()
    configure_logger(settings.log_level)
    logger.info(f"Serving on http://{settings.host}:{settings.port}")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
