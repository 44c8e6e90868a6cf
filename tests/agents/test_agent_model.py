from __future__ import annotations

from agentforge.agents import (
    A2AContext,
    Agent,
    AgentRun,
    AgentStep,
    Message,
    RunStepRecord,
    ToolCallRecord,
)


def test_agent_round_trips_camel_case_json():
    agent = Agent(
        name="Summarizer",
        engine="litellm",
        model="gpt-4.1-mini",
        model_opts={"temperature": 0.2},
        disable_streaming=True,
        steps=[AgentStep(prompt="Summarize {{text}}", tools=None, docrepo="kb")],
        webhook_token="abc12345",
    )
    payload = agent.to_json_dict()

    assert payload["disableStreaming"] is True
    assert payload["modelOpts"] == {"temperature": 0.2}
    assert payload["webhookToken"] == "abc12345"
    assert payload["steps"][0]["tools"] is None
    assert "createdAt" in payload and "lastRunId" in payload

    loaded = Agent.from_json_dict(payload)
    assert loaded == agent


def test_unknown_keys_survive_load_and_save():
    payload = Agent(name="x").to_json_dict()
    payload["futureField"] = {"kept": True}

    loaded = Agent.model_validate(payload)
    assert loaded.to_json_dict()["futureField"] == {"kept": True}


def test_a2a_context_uses_explicit_aliases():
    run = AgentRun(
        agent_id="a1",
        trigger="manual",
        a2a_context=A2AContext(current_task_id="t1", current_context_id="c1"),
    )
    payload = run.to_json_dict()

    assert payload["a2aContext"] == {"currentTaskId": "t1", "currentContextId": "c1"}
    assert AgentRun.model_validate(payload).a2a_context.current_task_id == "t1"


def test_run_step_record_and_tool_calls_serialize():
    message = Message(
        role="assistant",
        content="done",
        tool_calls=[ToolCallRecord(id="c1", name="add", params={"a": 1}, result=3)],
    )
    run = AgentRun(
        agent_id="a1",
        trigger="workflow",
        messages=[message],
        steps=[RunStepRecord(index=0, user_message_index=1, assistant_message_index=2)],
    )
    payload = run.to_json_dict()

    assert payload["messages"][0]["toolCalls"][0]["name"] == "add"
    assert payload["steps"][0]["assistantMessageIndex"] == 2


def test_duplicate_gets_fresh_identity():
    agent = Agent(name="Original", last_run_id="r1", steps=[AgentStep(prompt="hi")])
    copy = agent.duplicate()

    assert copy.uuid != agent.uuid
    assert copy.name == "Original - Copy"
    assert copy.last_run_id is None
    assert copy.steps == agent.steps
    copy.steps[0].prompt = "changed"
    assert agent.steps[0].prompt == "hi"


def test_snapshot_is_independent_of_later_edits():
    agent = Agent(name="A", steps=[AgentStep(prompt="one")])
    info = agent.snapshot()
    agent.steps[0].prompt = "two"
    agent.name = "B"

    assert info.name == "A"
    assert info.steps[0].prompt == "one"


def test_run_helpers():
    run = AgentRun(agent_id="a1", trigger="manual")
    assert not run.is_terminal
    assert run.output_text() == ""

    run.messages.append(Message(role="user", content="q"))
    run.messages.append(Message(role="assistant", content="answer"))
    run.messages.append(Message(role="user", content="follow-up"))
    assert run.output_text() == "answer"

    run.status = "canceled"
    assert run.is_terminal


def test_agent_without_steps_is_not_runnable():
    assert Agent().is_runnable()
    assert not Agent(steps=[]).is_runnable()
