from __future__ import annotations

from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class HistoryEntry(BaseModel):
    """A finished (or failed) task as seen by the client."""
    task: str
    results: List[Dict[str, Any]] = Field(default_factory=list)
    status: Literal["completed", "failed"]
    timestamp: datetime = Field(default_factory=datetime.now)


class HistoryStore:
    """Append-only task history kept as JSON lines. Nothing is ever evicted."""

    def __init__(self, storage_path: str = "data/history.jsonl"):
        self.storage_path = Path(storage_path)
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)

    def save_task(
        self,
        task: str,
        results: List[Dict[str, Any]],
        status: Literal["completed", "failed"],
    ) -> HistoryEntry:
        entry = HistoryEntry(task=task, results=results, status=status)
        with open(self.storage_path, "a", encoding="utf-8") as f:
            f.write(entry.model_dump_json() + "\n")
        return entry

    def get_history(self, last_n: Optional[int] = None) -> List[HistoryEntry]:
        """Entries newest first, optionally only the `last_n` most recent."""
        if not self.storage_path.exists():
            return []

        entries = []
        with open(self.storage_path, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    entries.append(HistoryEntry.model_validate_json(line))
        entries.reverse()
        if last_n:
            entries = entries[:last_n]
        return entries

    def clear_history(self) -> None:
        self.storage_path.unlink(missing_ok=True)

    def print_summary(self, last_n: Optional[int] = None) -> None:
        entries = self.get_history(last_n)
        if not entries:
            print("\n📜 History: no tasks yet")
            return

        counts = Counter(e.status for e in entries)
        print("\n" + "=" * 60)
        print("📜 TASK HISTORY")
        print("=" * 60)
        print(f"Total Tasks:   {len(entries)}")
        print(f"Completed:     {counts['completed']}")
        print(f"Failed:        {counts['failed']}")
        print("-" * 60)
        for entry in entries[:10]:
            status = "✅" if entry.status == "completed" else "❌"
            print(
                f"{status} {entry.timestamp.isoformat()[:19]} | "
                f"Subtasks: {len(entry.results)} | "
                f"Task: {entry.task[:50]}"
            )
        print("=" * 60 + "\n")
