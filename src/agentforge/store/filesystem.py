from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module provides the filesystem agent store: one JSON file per agent and
one JSON file per run, laid out per workspace.

    <root>/workspaces/<workspace>/agents/<agent>.json
    <root>/workspaces/<workspace>/agents/<agent>/<run>.json
"""

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..agents.types import Agent, AgentRun
from .base import AgentStore

logger = logging.getLogger(__name__)


def _is_safe_id(value: str) -> bool:
    return bool(value) and value not in (".", "..") and "/" not in value and "\\" not in value


class FileAgentStore(AgentStore):
    """Durable agent store backed by pretty-printed JSON files."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def workspace_dir(self, workspace_id: str) -> Path:
        return self.root / "workspaces" / workspace_id

    def agents_dir(self, workspace_id: str) -> Path:
        return self.workspace_dir(workspace_id) / "agents"

    def agent_path(self, workspace_id: str, agent_id: str) -> Path:
        return self.agents_dir(workspace_id) / f"{agent_id}.json"

    def runs_dir(self, workspace_id: str, agent_id: str) -> Path:
        return self.agents_dir(workspace_id) / agent_id

    def run_path(self, workspace_id: str, agent_id: str, run_id: str) -> Path:
        return self.runs_dir(workspace_id, agent_id) / f"{run_id}.json"

    def list_workspaces(self) -> list[str]:
        base = self.root / "workspaces"
        try:
            return sorted(entry.name for entry in base.iterdir() if entry.is_dir())
        except FileNotFoundError:
            return []
        except OSError:
            logger.exception("Error listing workspaces under %s", base)
            return []

    def list_agents(self, workspace_id: str) -> list[Agent]:
        if not _is_safe_id(workspace_id):
            return []
        agents: list[Agent] = []
        for path in self._json_files(self.agents_dir(workspace_id)):
            agent = self._read_model(path, Agent)
            if agent is not None:
                agents.append(agent)
        return agents

    def load_agent(self, workspace_id: str, agent_id: str) -> Agent | None:
        if not (_is_safe_id(workspace_id) and _is_safe_id(agent_id)):
            return None
        path = self.agent_path(workspace_id, agent_id)
        if not path.is_file():
            return None
        return self._read_model(path, Agent)

    def save_agent(self, workspace_id: str, agent: Agent) -> bool:
        if not (_is_safe_id(workspace_id) and _is_safe_id(agent.uuid)):
            logger.warning("Refusing to save agent with invalid id %r", agent.uuid)
            return False
        path = self.agent_path(workspace_id, agent.uuid)
        return self._write_json(path, agent.to_json_dict(), what="agent")

    def delete_agent(self, workspace_id: str, agent_id: str) -> bool:
        if not (_is_safe_id(workspace_id) and _is_safe_id(agent_id)):
            return False
        path = self.agent_path(workspace_id, agent_id)
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Error deleting agent %s: %s", path, exc)
            return False
        return self.delete_agent_runs(workspace_id, agent_id)

    def list_agents_with_runs(self, workspace_id: str) -> list[str]:
        if not _is_safe_id(workspace_id):
            return []
        base = self.agents_dir(workspace_id)
        try:
            return sorted(entry.name for entry in base.iterdir() if entry.is_dir())
        except FileNotFoundError:
            return []
        except OSError:
            logger.exception("Error listing run directories under %s", base)
            return []

    def get_agent_runs(self, workspace_id: str, agent_id: str) -> list[AgentRun]:
        if not (_is_safe_id(workspace_id) and _is_safe_id(agent_id)):
            return []
        runs: list[AgentRun] = []
        for path in self._json_files(self.runs_dir(workspace_id, agent_id)):
            run = self._read_model(path, AgentRun)
            if run is not None:
                runs.append(run)
        return self._sort_runs(runs)

    def get_agent_run(
        self, workspace_id: str, agent_id: str, run_id: str
    ) -> AgentRun | None:
        if not all(_is_safe_id(v) for v in (workspace_id, agent_id, run_id)):
            return None
        path = self.run_path(workspace_id, agent_id, run_id)
        if not path.is_file():
            return None
        return self._read_model(path, AgentRun)

    def save_agent_run(self, workspace_id: str, run: AgentRun) -> bool:
        if not all(_is_safe_id(v) for v in (workspace_id, run.agent_id, run.uuid)):
            logger.warning("Refusing to save run with invalid id %r", run.uuid)
            return False
        path = self.run_path(workspace_id, run.agent_id, run.uuid)
        return self._write_json(path, run.to_json_dict(), what="agent run")

    def delete_agent_run(self, workspace_id: str, agent_id: str, run_id: str) -> bool:
        if not all(_is_safe_id(v) for v in (workspace_id, agent_id, run_id)):
            return False
        path = self.run_path(workspace_id, agent_id, run_id)
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Error deleting agent run %s: %s", path, exc)
            return False
        return True

    def delete_agent_runs(self, workspace_id: str, agent_id: str) -> bool:
        if not (_is_safe_id(workspace_id) and _is_safe_id(agent_id)):
            return False
        path = self.runs_dir(workspace_id, agent_id)
        try:
            if path.exists():
                shutil.rmtree(path)
        except OSError as exc:
            logger.warning("Error deleting agent run directory %s: %s", path, exc)
            return False
        return True

    @staticmethod
    def _json_files(directory: Path) -> list[Path]:
        try:
            entries = sorted(directory.iterdir())
        except FileNotFoundError:
            return []
        except OSError:
            logger.exception("Error listing %s", directory)
            return []
        return [entry for entry in entries if entry.suffix == ".json" and entry.is_file()]

    @staticmethod
    def _read_model(path: Path, model: type[Agent] | type[AgentRun]) -> Any:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            return model.model_validate(payload)
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Error reading %s: %s", path, exc)
            return None

    @staticmethod
    def _write_json(path: Path, payload: dict[str, Any], *, what: str) -> bool:
        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.stem}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                json.dump(payload, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
            return True
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Error saving %s %s: %s", what, path, exc)
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            return False
