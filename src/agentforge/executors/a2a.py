"""
Executor delegating a run to a remote agent over the A2A protocol.
"""

from __future__ import annotations

import logging
from typing import Any

from ..a2a.http_client import HttpA2AClient
from ..a2a.types import A2AArtifactChunk, A2AContentChunk, A2ARequest, A2AStatusChunk
from ..agents.prompt import MESSAGE_VAR, render_prompt
from ..agents.types import A2AContext, AgentRun, Message
from ..core.cancellation import CancellationToken
from ..llms.utils import race_cancellation
from .base import Executor, ExecutorOptions

logger = logging.getLogger(__name__)


def render_artifact(name: str, content: str) -> str:
    return f'\n\n<artifact title="{name}">\n```\n{content}\n```\n</artifact>\n\n'


class A2AExecutor(Executor):
    """
    Runs one turn against the remote agent whose URL is stored in the
    agent's `instructions`.

    The transcript is always system (empty), user, assistant; the assistant
    message accumulates streamed text and artifacts.
    """

    kind = "a2a"

    async def _execute(
        self,
        run: AgentRun,
        values: dict[str, Any],
        options: ExecutorOptions,
        token: CancellationToken,
    ) -> None:
        prompt = values.get(MESSAGE_VAR)
        if not isinstance(prompt, str) or not prompt:
            template = self.agent.steps[0].prompt if self.agent.steps else ""
            prompt = render_prompt(template, values)
        run.prompt = prompt

        run.messages.append(Message(role="system", content=""))
        user = Message(role="user", content=prompt)
        run.messages.append(user)

        chat = options.chat
        if chat is not None:
            chat.add_message(user)
            chat.add_message(
                Message(role="assistant", agent_id=self.agent.uuid, agent_run_id=run.uuid)
            )
            assistant = chat.last_message()
        else:
            assistant = Message(role="assistant")
        run.messages.append(assistant)
        self._persist(run, options)

        client = self.env.a2a_client or HttpA2AClient()
        logger.info("Delegating run %s to remote agent %s", run.uuid, self.agent.instructions)
        stream = client.execute(
            A2ARequest(
                endpoint=self.agent.instructions,
                prompt=prompt,
                context=options.a2a_context,
                abort_signal=token,
            )
        )
        try:
            while True:
                try:
                    chunk = await race_cancellation(stream.__anext__(), token)
                except StopAsyncIteration:
                    break
                token.raise_if_cancelled()

                if isinstance(chunk, A2AContentChunk):
                    assistant.append_text(chunk.text)
                    await self._emit(options, chunk)

                elif isinstance(chunk, A2AStatusChunk):
                    if chunk.task_id:
                        context = A2AContext(
                            current_task_id=chunk.task_id,
                            current_context_id=chunk.context_id,
                        )
                        assistant.a2a_context = context
                        run.a2a_context = context.model_copy()
                    else:
                        assistant.a2a_context = None
                    if chunk.status:
                        assistant.status = chunk.status

                elif isinstance(chunk, A2AArtifactChunk):
                    text = render_artifact(chunk.name, chunk.content)
                    assistant.append_text(text)
                    await self._emit(options, A2AContentChunk(text=text))
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
