from __future__ import annotations

from agentforge.core import (
    AGENT_RUN_UPDATE,
    CallbackBroadcastSink,
    CancellationToken,
    InMemoryBroadcastSink,
    RunTracker,
)


def test_add_and_remove_broadcast_full_snapshot():
    sink = InMemoryBroadcastSink()
    tracker = RunTracker(broadcast=sink)

    tracker.add_running_run("a1", "r1", start_time=100)
    tracker.add_running_run("a1", "r2", start_time=200)
    tracker.remove_running_run("a1", "r1")

    payloads = sink.payloads(AGENT_RUN_UPDATE)
    assert len(payloads) == 3
    assert payloads[1] == {
        "agentId": "a1",
        "runId": "r2",
        "runningAgentRuns": {
            "a1": [{"runId": "r1", "startTime": 100}, {"runId": "r2", "startTime": 200}]
        },
    }
    assert payloads[2]["runningAgentRuns"] == {"a1": [{"runId": "r2", "startTime": 200}]}


def test_re_adding_keeps_original_entry():
    sink = InMemoryBroadcastSink()
    tracker = RunTracker(broadcast=sink)
    tracker.add_running_run("a1", "r1", start_time=1)
    tracker.add_running_run("a1", "r1", start_time=2)

    runs = tracker.get_running_agent_runs()["a1"]
    assert len(runs) == 1
    assert runs[0].start_time == 1
    payloads = sink.payloads(AGENT_RUN_UPDATE)
    assert len(payloads) == 2
    assert payloads[1]["runningAgentRuns"] == {"a1": [{"runId": "r1", "startTime": 1}]}


def test_removing_last_run_drops_agent_key():
    tracker = RunTracker()
    tracker.add_running_run("a1", "r1")
    tracker.remove_running_run("a1", "r1")

    assert tracker.get_running_agent_runs() == {}
    assert not tracker.is_running("a1", "r1")


def test_remove_all_for_agent_broadcasts_without_run_id():
    sink = InMemoryBroadcastSink()
    tracker = RunTracker(broadcast=sink)
    token = CancellationToken()
    tracker.add_running_run("a1", "r1")
    tracker.register_abort_controller("a1", "r1", token)
    tracker.add_running_run("a2", "r9")

    tracker.remove_all_running_runs_for_agent("a1")

    last = sink.payloads()[-1]
    assert last["agentId"] == "a1"
    assert last["runId"] is None
    assert list(last["runningAgentRuns"]) == ["a2"]
    assert tracker.abort_run("a1", "r1") is False


def test_abort_run_cancels_once():
    tracker = RunTracker()
    token = CancellationToken()
    tracker.register_abort_controller("a1", "r1", token)

    assert tracker.abort_run("a1", "r1") is True
    assert token.cancelled
    assert tracker.abort_run("a1", "r1") is False
    assert tracker.abort_run("a1", "unknown") is False


def test_removing_a_run_drops_its_abort_handle():
    tracker = RunTracker()
    token = CancellationToken()
    tracker.register_abort_controller("a1", "r1", token)
    tracker.add_running_run("a1", "r1")
    tracker.remove_running_run("a1", "r1")

    assert tracker.abort_run("a1", "r1") is False
    assert not token.cancelled


def test_snapshot_is_a_copy():
    tracker = RunTracker()
    tracker.add_running_run("a1", "r1")
    snapshot = tracker.get_running_agent_runs()
    snapshot["a1"].clear()

    assert tracker.is_running("a1", "r1")


def test_broken_listener_does_not_break_tracker():
    def listener(event, payload):
        raise RuntimeError("listener down")

    tracker = RunTracker(broadcast=CallbackBroadcastSink(listener))
    tracker.add_running_run("a1", "r1")

    assert tracker.is_running("a1", "r1")
