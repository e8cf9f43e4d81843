from __future__ import annotations

from taskpilot.history import HistoryStore


def test_empty_store(tmp_path):
    store = HistoryStore(str(tmp_path / "nested" / "history.jsonl"))
    assert store.get_history() == []
    assert (tmp_path / "nested").is_dir()


def test_entries_newest_first(tmp_path):
    store = HistoryStore(str(tmp_path / "history.jsonl"))
    store.save_task("first", [{"task_id": "t1", "status": "completed"}], "completed")
    store.save_task("second", [], "failed")
    store.save_task("third", [], "completed")

    history = store.get_history()
    assert [h.task for h in history] == ["third", "second", "first"]
    assert history[2].results == [{"task_id": "t1", "status": "completed"}]
    assert [h.task for h in store.get_history(last_n=2)] == ["third", "second"]


def test_history_survives_reopen(tmp_path):
    path = str(tmp_path / "history.jsonl")
    HistoryStore(path).save_task("persisted", [], "completed")
    entry = HistoryStore(path).get_history()[0]
    assert entry.task == "persisted"
    assert entry.status == "completed"


def test_clear_history(tmp_path):
    store = HistoryStore(str(tmp_path / "history.jsonl"))
    store.save_task("a", [], "completed")
    store.clear_history()
    assert store.get_history() == []
    store.clear_history()


def test_print_summary(tmp_path, capsys):
    store = HistoryStore(str(tmp_path / "history.jsonl"))
    store.print_summary()
    assert "no tasks yet" in capsys.readouterr().out

    store.save_task("Write a product launch checklist", [{}, {}], "completed")
    store.save_task("Broken task", [], "failed")
    store.print_summary()
    out = capsys.readouterr().out
    assert "Total Tasks:   2" in out
    assert "Failed:        1" in out
    assert "Write a product launch checklist" in out
