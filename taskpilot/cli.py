from __future__ import annotations

import asyncio
from datetime import datetime

from pydantic import BaseModel

from .config import Settings
from .coordinator import Coordinator
from .errors import RequestValidationError
from .history import HistoryStore
from .logger import configure_logger


def print_banner():
    """Display startup banner"""
    print("\n" + "=" * 60)
    print("TASKPILOT - Plan & Execute Agent System")
    print("=" * 60)


def print_help():
    """Display usage examples and commands"""
    print("\nExamples:")
    print("      - Write a product launch checklist")
    print("      - Plan a migration from MySQL to Postgres")
    print("      - Draft an onboarding guide for new engineers")
    print()
    print("Commands:")
    print("   history       - View task history")
    print("   history 5     - View last 5 tasks")
    print("   help          - Show this help message")
    print("   clear         - Clear screen")
    print("   exit          - Quit the application")
    print("\n" + "-" * 60)


def print_event(event: BaseModel) -> None:
    """Render one progress event as a log line"""
    kind = event.type
    if kind == "connection":
        print(f"🔌 {event.message}")
    elif kind == "planning_start":
        print(f"🧭 {event.message}")
    elif kind == "planning_complete":
        print(f"📋 Plan ready: {len(event.plan.subtasks)} subtasks")
        for s in event.plan.subtasks:
            deps = f" (after {', '.join(s.dependencies)})" if s.dependencies else ""
            print(f"   - [{s.id}] {s.description}{deps}")
    elif kind == "execution_start":
        print(f"\n🔧 Executing [{event.task_id}]: {event.subtask}")
    elif kind == "execution_complete":
        print(f"   {event.result.status}")
    elif kind == "error":
        print(f"\n❌ Error: {event.error}\n")


async def main():
    settings = Settings.from_env()
    configure_logger(settings.log_level)

    print_banner()

    try:
        api_key = settings.resolve_api_key()
    except RequestValidationError as e:
        print(f"❌ {e} (set OPENAI_API_KEY in the environment or .env)")
        return

    history = HistoryStore(settings.history_path)
    print_help()

    while True:
        try:
            prompt = f"\n💬 You [{datetime.now().strftime('%H:%M')}]: "
            user_input = input(prompt).strip()

            if not user_input:
                continue

            cmd = user_input.lower()

            if cmd == "exit":
                print("\n👋 Goodbye!\n")
                break

            elif cmd == "help":
                print_help()
                continue

            elif cmd == "clear":
                print("\033[2J\033[H")  # ANSI clear screen
                print_banner()
                continue

            elif cmd.startswith("history"):
                parts = user_input.split()
                last_n = int(parts[1]) if len(parts) > 1 and parts[1].isdigit() else None
                history.print_summary(last_n)
                continue

            print(f"\n{'='*60}")
            print(f"🤖 Processing: {user_input}")
            print(f"{'='*60}")

            # a fresh coordinator per task, like one request per run on the server
            coordinator = Coordinator(api_key=api_key, settings=settings)
            try:
                report = await coordinator.process_task(user_input, on_event=print_event)
            except (KeyboardInterrupt, asyncio.CancelledError):
                # Ctrl-C cancels the running task under asyncio.run; record it, then stop
                print("\n\n⚠️  Task cancelled by user\n")
                history.save_task(user_input, [], "failed")
                raise
            except Exception:
                # already reported through the error event
                history.save_task(user_input, [], "failed")
                continue

            history.save_task(user_input, [r.model_dump() for r in report.results], "completed")

            print(f"\n{'─'*60}")
            print("✅ SUMMARY")
            print(f"{'─'*60}")
            print(report.summary)
            print(f"{'─'*60}\n")

        except KeyboardInterrupt:
            print("\n\n👋 Goodbye!\n")
            break
        except EOFError:
            print("\n\n👋 Goodbye!\n")
            break


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n\n👋 Goodbye!\n")


if __name__ == "__main__":
    run()
