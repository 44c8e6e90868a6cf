from __future__ import annotations

import json

import pytest

from agentforge.agents import Agent, AgentRun, AgentStep, Message
from agentforge.store import FileAgentStore, InMemoryAgentStore, create_agent_store_from_env


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryAgentStore()
    return FileAgentStore(tmp_path)


def _run(agent_id: str, updated_at: int, status: str = "success") -> AgentRun:
    return AgentRun(agent_id=agent_id, trigger="manual", status=status, updated_at=updated_at)


def test_save_and_load_agent(store):
    agent = Agent(name="Writer", steps=[AgentStep(prompt="Write {{topic}}")])

    assert store.save_agent("ws", agent) is True
    loaded = store.load_agent("ws", agent.uuid)

    assert loaded == agent
    assert [a.uuid for a in store.list_agents("ws")] == [agent.uuid]
    assert store.list_workspaces() == ["ws"]


def test_missing_records_read_as_empty(store):
    assert store.load_agent("ws", "nope") is None
    assert store.list_agents("unknown") == []
    assert store.get_agent_runs("ws", "nope") == []
    assert store.get_agent_run("ws", "nope", "run") is None


def test_records_are_copies(store):
    agent = Agent(name="A")
    store.save_agent("ws", agent)
    agent.name = "changed after save"

    loaded = store.load_agent("ws", agent.uuid)
    loaded.name = "changed after load"

    assert store.load_agent("ws", agent.uuid).name == "A"


def test_runs_are_listed_most_recent_first(store):
    agent = Agent(name="A")
    store.save_agent("ws", agent)
    old, new, middle = _run(agent.uuid, 1), _run(agent.uuid, 3), _run(agent.uuid, 2)
    for run in (old, new, middle):
        assert store.save_agent_run("ws", run)

    assert [r.uuid for r in store.get_agent_runs("ws", agent.uuid)] == [
        new.uuid,
        middle.uuid,
        old.uuid,
    ]
    assert store.get_agent_run("ws", agent.uuid, old.uuid) == old


def test_save_run_overwrites_whole_record(store):
    run = AgentRun(agent_id="a1", trigger="manual")
    store.save_agent_run("ws", run)
    run.messages.append(Message(role="assistant", content="hi"))
    run.status = "success"
    store.save_agent_run("ws", run)

    loaded = store.get_agent_run("ws", "a1", run.uuid)
    assert loaded.status == "success"
    assert loaded.messages[0].content == "hi"


def test_delete_run_and_agent(store):
    agent = Agent(name="A")
    store.save_agent("ws", agent)
    first, second = _run(agent.uuid, 1), _run(agent.uuid, 2)
    store.save_agent_run("ws", first)
    store.save_agent_run("ws", second)

    assert store.delete_agent_run("ws", agent.uuid, first.uuid) is True
    assert store.delete_agent_run("ws", agent.uuid, first.uuid) is False
    assert [r.uuid for r in store.get_agent_runs("ws", agent.uuid)] == [second.uuid]

    assert store.delete_agent("ws", agent.uuid) is True
    assert store.load_agent("ws", agent.uuid) is None
    assert store.get_agent_runs("ws", agent.uuid) == []
    assert store.delete_agent("ws", agent.uuid) is False


def test_agents_with_runs_include_runs_without_agent_record(store):
    agent = Agent(name="A")
    store.save_agent("ws", agent)
    store.save_agent_run("ws", _run(agent.uuid, 1))
    store.save_agent_run("ws", _run("orphan", 1))

    assert store.list_agents_with_runs("ws") == sorted([agent.uuid, "orphan"])
    assert store.list_agents_with_runs("other") == []


def test_workspaces_are_isolated(store):
    agent = Agent(name="A")
    store.save_agent("one", agent)

    assert store.load_agent("two", agent.uuid) is None
    assert store.list_agents("two") == []


def test_file_layout_is_camel_case_json(tmp_path):
    store = FileAgentStore(tmp_path)
    agent = Agent(name="A", webhook_token="tok12345")
    run = AgentRun(agent_id=agent.uuid, trigger="webhook")
    store.save_agent("ws", agent)
    store.save_agent_run("ws", run)

    agent_file = tmp_path / "workspaces" / "ws" / "agents" / f"{agent.uuid}.json"
    run_file = tmp_path / "workspaces" / "ws" / "agents" / agent.uuid / f"{run.uuid}.json"
    assert json.loads(agent_file.read_text())["webhookToken"] == "tok12345"
    assert json.loads(run_file.read_text())["agentId"] == agent.uuid
    assert "\n  " in agent_file.read_text()


def test_file_store_leaves_no_temp_files(tmp_path):
    store = FileAgentStore(tmp_path)
    agent = Agent(name="A")
    for _ in range(3):
        store.save_agent("ws", agent)

    files = sorted(p.name for p in store.agents_dir("ws").iterdir())
    assert files == [f"{agent.uuid}.json"]


def test_file_store_skips_unreadable_records(tmp_path):
    store = FileAgentStore(tmp_path)
    good = Agent(name="good")
    store.save_agent("ws", good)
    (store.agents_dir("ws") / "broken.json").write_text("{not json", encoding="utf-8")

    assert [a.uuid for a in store.list_agents("ws")] == [good.uuid]
    assert store.load_agent("ws", "broken") is None


def test_file_store_rejects_path_like_ids(tmp_path):
    store = FileAgentStore(tmp_path)

    assert store.save_agent("../escape", Agent(name="x")) is False
    assert store.save_agent("ws", Agent(uuid="../x", name="x")) is False
    assert store.load_agent("ws", "..") is None
    assert not (tmp_path.parent / "escape").exists()


def test_factory_selects_backend(monkeypatch, tmp_path):
    monkeypatch.setenv("AGENTFORGE_STORE_BACKEND", "memory")
    assert isinstance(create_agent_store_from_env(), InMemoryAgentStore)

    monkeypatch.setenv("AGENTFORGE_STORE_BACKEND", "file")
    monkeypatch.setenv("AGENTFORGE_DATA_DIR", str(tmp_path))
    store = create_agent_store_from_env()
    assert isinstance(store, FileAgentStore)
    assert store.root == tmp_path

    monkeypatch.setenv("AGENTFORGE_STORE_BACKEND", "redis")
    with pytest.raises(ValueError):
        create_agent_store_from_env()
