"""Scenario tests for the sequential tool loop, driven through Agent."""

import asyncio

import pytest
from langchain_core.messages import AIMessage, ToolMessage
from langchain_core.messages.tool import invalid_tool_call, tool_call

from codeAgent.core.agent import Agent
from codeAgent.core.callbacks import AgentCallbacks
from codeAgent.core.loop import INTERRUPTED_MESSAGE, POLICY_DENIED_MESSAGE, USER_DENIED_MESSAGE
from codeAgent.core.memo_store import MemoStore
from codeAgent.hitl.gate import ConfirmResult
from codeAgent.tools.builtin import bash
from tests.conftest import RecordingGate, Recorder, Slow, ai, call


def make_agent(client, registry, gate, **kwargs):
    return Agent(client, registry, gate, "You are a test agent.", **kwargs)


def tool_messages(agent):
    return [m for m in agent.get_conversation().get_history() if isinstance(m, ToolMessage)]


def assert_tool_calls_paired(history):
    """Every persisted tool call is answered by exactly one tool message before the next assistant turn."""
    for position, message in enumerate(history):
        if not isinstance(message, AIMessage) or not message.tool_calls:
            continue
        following = []
        for later in history[position + 1:]:
            if isinstance(later, AIMessage):
                break
            if isinstance(later, ToolMessage):
                following.append(later.tool_call_id)
        assert sorted(following) == sorted(c["id"] for c in message.tool_calls)


def callbacks_for(recorder):
    return AgentCallbacks(
        on_tool_executing=recorder.on_tool_executing,
        on_tool_result=recorder.on_tool_result,
        on_denied=recorder.on_denied,
    )


# ========== read before edit ==========

@pytest.mark.asyncio
async def test_edit_scenario(workspace, model, client, registry, gate):
    (workspace / "a.txt").write_text("hello world\n")
    model.responses = [
        ai("", call("read-file", "c1", path="a.txt")),
        ai("", call("edit-file", "c2", path="a.txt", old_string="hello", new_string="goodbye")),
        ai("", call("edit-file", "c3", path="a.txt", old_string="hello", new_string="goodbye")),
        ai("finished"),
    ]
    agent = make_agent(client, registry, gate)

    result = await agent.run("change the greeting")

    assert result == "finished"
    assert (workspace / "a.txt").read_text() == "goodbye world\n"

    results = {m.tool_call_id: m.content for m in tool_messages(agent)}
    assert "1\thello world" in results["c1"]
    assert results["c2"] == "File edited: a.txt"
    assert results["c3"].startswith("Error")
    assert "not found" in results["c3"]
    assert [name for name, _ in gate.requests] == ["edit-file", "edit-file"]
    assert_tool_calls_paired(agent.get_conversation().get_history())


@pytest.mark.asyncio
async def test_edit_before_read_is_refused_without_confirmation(workspace, model, client, registry, gate):
    (workspace / "a.txt").write_text("hello\n")
    model.responses = [
        ai("", call("edit-file", "c1", path="a.txt", old_string="hello", new_string="bye")),
        ai("ok"),
    ]
    agent = make_agent(client, registry, gate)

    await agent.run("edit")

    assert gate.requests == []
    assert (workspace / "a.txt").read_text() == "hello\n"
    assert 'read-file "a.txt"' in tool_messages(agent)[0].content


@pytest.mark.asyncio
async def test_written_file_can_be_edited_without_read(workspace, model, client, registry, gate):
    model.responses = [
        ai("", call("write-file", "c1", path="new.py", content="x = 1\n")),
        ai("", call("edit-file", "c2", path="new.py", old_string="x = 1", new_string="x = 2")),
        ai("ok"),
    ]
    agent = make_agent(client, registry, gate)

    await agent.run("create and edit")

    assert (workspace / "new.py").read_text() == "x = 2\n"


@pytest.mark.asyncio
async def test_read_tracker_is_reset_with_the_session(workspace, model, client, registry, gate):
    (workspace / "a.txt").write_text("hello\n")
    model.responses = [ai("", call("read-file", "c1", path="a.txt")), ai("read")]
    agent = make_agent(client, registry, gate)
    await agent.run("read")
    assert agent.read_tracker.has_read("a.txt")

    agent.reset()

    assert not agent.read_tracker.has_read("a.txt")
    assert len(agent.get_conversation()) == 0


# ========== overwrite guard ==========

@pytest.mark.asyncio
async def test_overwrite_guard(workspace, model, client, registry, gate):
    (workspace / "exists.txt").write_text("original")
    model.responses = [
        ai("", call("write-file", "c1", path="exists.txt", content="replaced")),
        ai("", call("write-file", "c2", path="exists.txt", content="replaced", overwrite=True)),
        ai("ok"),
    ]
    agent = make_agent(client, registry, gate)

    await agent.run("rewrite")

    first, second = tool_messages(agent)
    assert "already exists" in first.content
    assert second.content.startswith("File written")
    assert [name for name, _ in gate.requests] == ["write-file"]
    assert (workspace / "exists.txt").read_text() == "replaced"


# ========== permissions ==========

@pytest.mark.asyncio
async def test_policy_deny(workspace, model, client, registry, gate):
    registry.register(bash, "deny")
    recorder = Recorder()
    model.responses = [ai("", call("bash", "c1", command="rm -rf build")), ai("understood")]
    agent = make_agent(client, registry, gate)

    result = await agent.run("clean up", callbacks_for(recorder))

    assert result == "understood"
    assert tool_messages(agent)[0].content == POLICY_DENIED_MESSAGE.format(name="bash")
    assert gate.requests == []
    assert recorder.of("on_denied") == [("bash", None)]
    assert recorder.of("on_tool_result") == []


@pytest.mark.asyncio
async def test_user_denial_with_feedback(workspace, model, client, registry):
    gate = RecordingGate(ConfirmResult(approved=False, feedback="use git clean instead"))
    recorder = Recorder()
    model.responses = [ai("", call("bash", "c1", command="rm -rf build")), ai("ok")]
    agent = make_agent(client, registry, gate)

    await agent.run("clean up", callbacks_for(recorder))

    content = tool_messages(agent)[0].content
    assert content.startswith(USER_DENIED_MESSAGE)
    assert "use git clean instead" in content
    assert recorder.of("on_denied") == [("bash", "use git clean instead")]


@pytest.mark.asyncio
async def test_always_promotes_tool_to_auto(workspace, model, client, registry):
    gate = RecordingGate(ConfirmResult(approved=True, always=True))
    recorder = Recorder()
    model.responses = [
        ai("", call("write-file", "c1", path="one.txt", content="1")),
        ai("", call("write-file", "c2", path="two.txt", content="2")),
        ai("ok"),
    ]
    agent = make_agent(client, registry, gate)

    await agent.run("write two files", callbacks_for(recorder))

    assert len(gate.requests) == 1
    assert registry.get_permission_level("write-file") == "auto"
    assert recorder.of("on_tool_executing") == [("write-file", {"path": "two.txt", "content": "2"})]
    assert (workspace / "two.txt").read_text() == "2"


@pytest.mark.asyncio
async def test_auto_tools_report_executing_and_result(workspace, model, client, registry, gate):
    (workspace / "a.txt").write_text("one\n")
    recorder = Recorder()
    model.responses = [ai("", call("read-file", "c1", path="a.txt")), ai("done")]
    agent = make_agent(client, registry, gate)

    await agent.run("read", callbacks_for(recorder))

    assert recorder.of("on_tool_executing") == [("read-file", {"path": "a.txt"})]
    (name, content, truncated), = recorder.of("on_tool_result")
    assert name == "read-file"
    assert "1\tone" in content
    assert truncated is False


# ========== tool-call integrity ==========

@pytest.mark.asyncio
async def test_invalid_calls_are_dropped_from_history(workspace, model, client, registry, gate):
    (workspace / "a.txt").write_text("x\n")
    recorder = Recorder()
    model.responses = [
        AIMessage(
            content="",
            tool_calls=[tool_call(name="read-file", args={"path": "a.txt"}, id="good")],
            invalid_tool_calls=[invalid_tool_call(name="bash", args='{"command": ', id="bad", error=None)],
        ),
        ai("done"),
    ]
    agent = make_agent(client, registry, gate)

    await agent.run("go", callbacks_for(recorder))

    assistant = agent.get_conversation().get_history()[1]
    assert [c["id"] for c in assistant.tool_calls] == ["good"]
    assert assistant.invalid_tool_calls == []
    assert [m.tool_call_id for m in tool_messages(agent)] == ["good"]

    invalid_reports = [r for r in recorder.of("on_tool_result") if r[0] == "bash"]
    assert len(invalid_reports) == 1
    assert invalid_reports[0][1].startswith("Error")

    # The follow-up request carries only the cleaned assistant message
    resent = [m for m in model.requests[1] if isinstance(m, AIMessage)][0]
    assert [c["id"] for c in resent.tool_calls] == ["good"]


@pytest.mark.asyncio
async def test_batch_results_keep_call_order(workspace, model, client, registry, gate):
    (workspace / "a.txt").write_text("a\n")
    (workspace / "b.txt").write_text("b\n")
    model.responses = [
        ai(
            "",
            call("read-file", "c1", path="a.txt"),
            call("read-file", "c2", path="missing.txt"),
            call("glob", "c3", pattern="*.txt"),
        ),
        ai("done"),
    ]
    agent = make_agent(client, registry, gate)

    await agent.run("look around")

    messages = tool_messages(agent)
    assert [m.tool_call_id for m in messages] == ["c1", "c2", "c3"]
    assert messages[1].content.startswith("Error: File not found")
    assert messages[2].content == "a.txt\nb.txt"
    assert_tool_calls_paired(agent.get_conversation().get_history())


@pytest.mark.asyncio
async def test_unknown_tool_gets_an_error_result(workspace, model, client, registry):
    gate = RecordingGate()
    model.responses = [ai("", call("teleport", "c1", to="mars")), ai("ok")]
    agent = make_agent(client, registry, gate)

    await agent.run("go")

    # Unknown tools resolve to confirm, then fail at execution
    assert gate.requests == [("teleport", {"to": "mars"})]
    assert "not found" in tool_messages(agent)[0].content


# ========== interrupt ==========

@pytest.mark.asyncio
async def test_interrupt_during_model_stream(workspace, model, client, registry, gate):
    model.stream_started = asyncio.Event()
    model.responses = [Slow(5, ai("too late"))]
    agent = make_agent(client, registry, gate)

    task = asyncio.create_task(agent.run("hi"))
    await model.stream_started.wait()
    agent.interrupt()
    result = await task

    assert result == ""
    assert len(agent.get_conversation()) == 1

    # The next turn starts clean
    model.stream_started = None
    model.responses = [ai("back again")]
    assert await agent.run("hello?") == "back again"


@pytest.mark.asyncio
async def test_interrupt_mid_batch_fills_remaining_results(workspace, model, client, registry):
    model.responses = [
        ai(
            "",
            call("write-file", "c1", path="one.txt", content="1"),
            call("write-file", "c2", path="two.txt", content="2"),
        ),
        ai("never requested"),
    ]
    agent = None

    class InterruptingGate(RecordingGate):
        async def confirm(self, tool_name, params):
            agent.interrupt()
            return await super().confirm(tool_name, params)

    agent = make_agent(client, registry, InterruptingGate())

    await agent.run("write")

    messages = tool_messages(agent)
    assert messages[0].content.startswith("File written")
    assert messages[1].content == INTERRUPTED_MESSAGE
    assert not (workspace / "two.txt").exists()
    assert len(model.requests) == 1
    assert_tool_calls_paired(agent.get_conversation().get_history())


# ========== auto memo ==========

@pytest.mark.asyncio
async def test_auto_memo_after_successful_file_tools(workspace, model, client, registry, gate):
    (workspace / "a.txt").write_text("alpha\n")
    memo_store = MemoStore()
    model.responses = [
        ai("", call("read-file", "c1", path="a.txt"), call("read-file", "c2", path="nope.txt")),
        ai("", call("write-file", "c3", path="b.txt", content="one\ntwo")),
        ai("done"),
    ]
    agent = make_agent(client, registry, gate, memo_store=memo_store)

    await agent.run("go")

    assert memo_store.read("file:a.txt").summary == "read 2 lines"
    assert memo_store.read("file:a.txt").author == "auto"
    assert memo_store.read("file:b.txt").content == "one\ntwo"
    assert memo_store.read("file:b.txt").summary == "written 2 lines"
    assert "file:nope.txt" not in memo_store


@pytest.mark.asyncio
async def test_tools_are_snapshotted_per_turn(workspace, model, client, registry, gate):
    model.responses = [ai("", call("glob", "c1", pattern="*")), ai("done")]
    agent = make_agent(client, registry, gate)

    original_execute = registry.execute

    # Remove a tool between the two model calls
    async def execute(name, params, max_output):
        registry.unregister("bash")
        return await original_execute(name, params, max_output)

    registry.execute = execute
    await agent.run("go")

    first, second = ([t["function"]["name"] for t in tools] for tools in model.bound_tools)
    assert "bash" in first
    assert "bash" not in second


# ========== reasoning content ==========

@pytest.mark.asyncio
async def test_reasoning_is_kept_within_a_turn_and_cleared_on_the_next(workspace, model, client, registry, gate):
    model.responses = [
        ai("", call("glob", "c1", pattern="*.py"), reasoning="look for python files"),
        ai("none found", reasoning="nothing matched"),
        ai("hello again"),
    ]
    agent = make_agent(client, registry, gate)

    await agent.run("find python files")
    within_turn = [m for m in model.requests[1] if isinstance(m, AIMessage)]
    assert within_turn[0].additional_kwargs["reasoning_content"] == "look for python files"

    await agent.run("hi")
    next_turn = [m for m in model.requests[2] if isinstance(m, AIMessage)]
    assert len(next_turn) == 2
    assert all("reasoning_content" not in m.additional_kwargs for m in next_turn)
