"""Tests for the leaf state holders: Conversation, ReadTracker, MemoStore, TodoStore, SubAgentTracker."""

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from codeAgent.core.conversation import Conversation
from codeAgent.core.memo_store import MAX_CONTENT_LENGTH, MemoStore
from codeAgent.core.read_tracker import ReadTracker
from codeAgent.core.sub_agent_tracker import SubAgentTracker
from codeAgent.core.todo_store import TodoStore


# ========== Conversation ==========

def test_conversation_prepends_system_prompt_to_fresh_list():
    conversation = Conversation("be brief")
    conversation.add_user_message("hi")

    messages = conversation.get_messages()
    assert isinstance(messages[0], SystemMessage)
    assert messages[0].content == "be brief"
    assert isinstance(messages[1], HumanMessage)

    messages.append(HumanMessage(content="not stored"))
    assert len(conversation) == 1


def test_conversation_clear_keeps_system_prompt():
    conversation = Conversation("sys")
    conversation.add_user_message("hi")
    conversation.add_assistant_message(AIMessage(content="hello"))
    conversation.add_tool_result("call-1", "result", name="read-file")

    history = conversation.get_history()
    assert isinstance(history[-1], ToolMessage)
    assert history[-1].tool_call_id == "call-1"

    conversation.clear()
    assert len(conversation) == 0
    assert conversation.get_messages()[0].content == "sys"


def test_conversation_without_system_prompt():
    conversation = Conversation()
    conversation.add_user_message("hi")
    assert len(conversation.get_messages()) == 1

    conversation.set_system_prompt("new")
    assert conversation.get_messages()[0].content == "new"


def test_clear_reasoning_content_keeps_the_rest_of_the_message():
    conversation = Conversation("sys")
    conversation.add_user_message("hi")
    conversation.add_assistant_message(
        AIMessage(content="hello", additional_kwargs={"reasoning_content": "greet back", "refusal": None})
    )
    conversation.add_assistant_message(AIMessage(content="plain"))

    assert conversation.clear_reasoning_content() == 1
    assert conversation.clear_reasoning_content() == 0

    history = conversation.get_history()
    assert history[1].content == "hello"
    assert history[1].additional_kwargs == {"refusal": None}
    assert history[2].content == "plain"


# ========== ReadTracker ==========

def test_read_tracker_normalizes_paths():
    tracker = ReadTracker()
    tracker.mark_read(".\\src\\app.py")

    assert tracker.has_read("src/app.py")
    assert tracker.has_read("./src/app.py")


def test_edit_requires_read_or_write():
    tracker = ReadTracker()
    refusal = tracker.check_edit("a.txt")
    assert refusal is not None
    assert 'read-file "a.txt"' in refusal

    tracker.mark_written("a.txt")
    assert tracker.check_edit("a.txt") is None


def test_overwrite_guard(workspace):
    (workspace / "exists.txt").write_text("x")
    tracker = ReadTracker()

    assert tracker.check_write_overwrite("new.txt") is None
    assert "already exists" in tracker.check_write_overwrite("exists.txt")
    assert tracker.check_write_overwrite("exists.txt", overwrite=True) is None

    # Reading first does not lift the guard
    tracker.mark_read("exists.txt")
    assert tracker.check_write_overwrite("exists.txt") is not None


# ========== MemoStore ==========

def test_memo_default_summary_flattens_newlines():
    store = MemoStore()
    entry = store.write("plan", "line one\nline two" + "x" * 100)

    assert "\n" not in entry.summary
    assert len(entry.summary) == 80
    assert entry.author == "agent"


def test_memo_truncates_content():
    store = MemoStore()
    entry = store.write("big", "y" * (MAX_CONTENT_LENGTH + 50))
    assert len(entry.content) == MAX_CONTENT_LENGTH


def test_memo_31st_key_evicts_oldest():
    store = MemoStore()
    for i in range(30):
        store.write(f"k{i}", "v")
    # Refresh k0 so k1 becomes the oldest
    store.write("k0", "v2")

    store.write("k30", "v")

    assert len(store) == 30
    assert "k1" not in store
    assert "k0" in store
    assert "k30" in store


def test_memo_overwrite_existing_key_at_capacity_evicts_nothing():
    store = MemoStore(max_entries=2)
    store.write("a", "1")
    store.write("b", "2")
    store.write("a", "3")

    assert len(store) == 2
    assert store.read("a").content == "3"


def test_memo_index_and_delete():
    store = MemoStore()
    assert store.build_index() is None

    store.write("file:a.py", "content", "auto", "read 3 lines")
    store.write("plan:api", "use REST", summary="REST plan")
    assert store.build_index() == "[file:a.py] read 3 lines\n[plan:api] REST plan"

    assert store.delete("plan:api") is True
    assert store.delete("plan:api") is False
    assert [item.key for item in store.list()] == ["file:a.py"]

    store.clear()
    assert len(store) == 0


# ========== TodoStore ==========

def test_todo_create_replaces_plan_and_notifies():
    store = TodoStore()
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.create([{"id": "1", "title": "first"}])
    plan = store.create([{"id": "a", "title": "A"}, {"id": "b", "title": "B"}])

    assert [item.id for item in plan.items] == ["a", "b"]
    assert all(item.status == "pending" for item in plan.items)
    assert len(seen) == 2

    unsubscribe()
    store.clear()
    assert len(seen) == 2


def test_todo_update_and_snapshots_are_copies():
    store = TodoStore()
    store.create([{"id": "a", "title": "A"}])

    item = store.update("a", "in-progress")
    assert item.status == "in-progress"

    snapshot = store.list()
    snapshot.items[0].status = "completed"
    assert store.list().items[0].status == "in-progress"

    assert store.update("missing", "completed") is None
    with pytest.raises(ValueError):
        store.update("a", "done")


def test_todo_list_without_plan():
    store = TodoStore()
    assert store.list() is None
    assert store.update("a", "completed") is None


# ========== SubAgentTracker ==========

def test_tracker_lifecycle():
    tracker = SubAgentTracker()
    seen = []
    tracker.subscribe(seen.append)

    tracker.start(["a", "b", "c"])
    tracker.mark_completed()
    tracker.mark_failed()
    tracker.add_tokens(120)
    tracker.add_tokens(0)

    progress = tracker.current
    assert (progress.total, progress.completed, progress.failed, progress.tokens) == (3, 1, 1, 120)
    assert progress.descriptions == ["a", "b", "c"]

    tracker.finish()
    assert tracker.current is None
    assert seen[-1] is None
    # start, completed, failed, tokens, finish
    assert len(seen) == 5


def test_tracker_ignores_updates_without_batch():
    tracker = SubAgentTracker()
    seen = []
    tracker.subscribe(seen.append)

    tracker.mark_completed()
    tracker.mark_failed()
    tracker.add_tokens(5)

    assert seen == []
    assert tracker.current is None
