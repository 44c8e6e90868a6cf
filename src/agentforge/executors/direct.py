"""
Direct step-loop executor: runs each agent step against an LLM.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import Any

from ..agents.errors import (
    AgentCancelledError,
    AgentConfigurationError,
    AgentExecutionError,
    SubagentExecutionError,
    SubagentRoutingError,
)
from ..agents.prompt import MESSAGE_VAR, render_prompt, step_output_values
from ..agents.types import AgentRun, AgentStep, Message, RunStepRecord, SubRunRef, ToolCallRecord
from ..core.cancellation import CancellationToken
from ..docrepo import format_context
from ..llms.errors import LLMCapabilityError
from ..llms.llm import LLM
from ..llms.types import (
    LLMOptions,
    LLMResponse,
    StreamCompletedEvent,
    StreamTextDeltaEvent,
    ToolDefinition,
)
from ..llms.types import Message as LLMMessage
from ..tools.base import ToolContext
from ..tools.errors import ToolError
from .base import Executor, ExecutorOptions

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _StepPlan:
    prompt: str
    tool_names: list[str]
    tools: list[ToolDefinition]
    sub_runs: list[SubRunRef]


class DirectExecutor(Executor):
    """
    Executes an agent's steps in order.

    Each step renders its prompt from the run inputs and the outputs of the
    previous steps (`{{output.N}}`), optionally enriches it with docrepo
    context and sub-agent outputs, then asks the LLM, running tool calls
    until the model answers in text.
    """

    kind = "direct"

    async def _execute(
        self,
        run: AgentRun,
        values: dict[str, Any],
        options: ExecutorOptions,
        token: CancellationToken,
    ) -> None:
        agent = self.agent
        config = self.env.config
        engine = agent.engine or config.default_engine
        model = agent.model or config.default_model
        llm = self.env.llm_for(engine)
        streaming = not agent.disable_streaming
        chat = options.chat

        system = Message(
            role="system",
            content="\n\n".join(
                part for part in (config.system_instructions, agent.instructions) if part
            ),
        )
        run.messages.append(system)

        missing = [
            param.name for param in agent.parameters if param.required and param.name not in values
        ]
        if missing:
            raise AgentConfigurationError(
                f"Missing required parameter(s): {', '.join(missing)}"
            )

        if chat is not None:
            chat.set_engine_model(engine, model)
            chat.locale = agent.locale or chat.locale
            chat.model_opts = agent.model_opts or None

        outputs: list[str] = []
        step_count = len(agent.steps)
        for index, step in enumerate(agent.steps):
            token.raise_if_cancelled()
            plan = await self._plan_step(run, index, step, values, outputs, options, token)
            if index == 0:
                run.prompt = plan.prompt

            user = Message(role="user", content=plan.prompt, engine=engine, model=model)
            run.messages.append(user)

            response: Message | None = None
            if chat is not None:
                if index == 0:
                    if not chat.messages:
                        chat.add_message(Message(role="system", content=config.system_instructions))
                    chat.add_message(user)
                    chat.add_message(
                        Message(role="assistant", agent_id=agent.uuid, agent_run_id=run.uuid)
                    )
                response = chat.last_message()

            if response is not None and index == step_count - 1:
                assistant = response
            else:
                assistant = Message(role="assistant")
            assistant.engine = engine
            assistant.model = model
            run.messages.append(assistant)

            if response is not None and (step_count > 1 or (step.description or "").strip()):
                response.status = (step.description or "").strip() or (
                    f"Step {index + 1} of {step_count} in progress"
                )

            run.steps.append(
                RunStepRecord(
                    index=index,
                    user_message_index=len(run.messages) - 2,
                    assistant_message_index=len(run.messages) - 1,
                    sub_runs=plan.sub_runs,
                )
            )
            self._persist(run, options)

            streaming = await self._generate(
                llm,
                [
                    LLMMessage(role="system", content=system.content),
                    LLMMessage(role="user", content=plan.prompt),
                ],
                LLMOptions(
                    model=model,
                    streaming=streaming,
                    abort_signal=token,
                    tools=plan.tools or None,
                    model_opts=dict(agent.model_opts),
                ),
                assistant,
                plan.tool_names,
                run,
                options,
            )
            outputs.append(assistant.content)
            self._persist(run, options)

        if chat is not None and chat.last_message() is not None:
            chat.last_message().status = None

    async def _plan_step(
        self,
        run: AgentRun,
        index: int,
        step: AgentStep,
        values: dict[str, Any],
        outputs: list[str],
        options: ExecutorOptions,
        token: CancellationToken,
    ) -> _StepPlan:
        prompt = render_prompt(step.prompt, {**values, **step_output_values(outputs)})
        if not prompt.strip():
            raise AgentExecutionError(
                f"Step {index + 1} has an empty prompt after variable substitution"
            )

        if step.docrepo and self.env.docrepo is not None:
            token.raise_if_cancelled()
            results = await self.env.docrepo.query(step.docrepo, prompt)
            context = format_context(results)
            if context:
                prompt += "\n\n" + self.env.config.docquery_template.format(context=context)

        sub_runs: list[SubRunRef] = []
        if step.agents:
            prompt = await self._run_subagents(step.agents, prompt, sub_runs, options, token)

        token.raise_if_cancelled()
        tool_names: list[str] = []
        tools: list[ToolDefinition] = []
        registry = self.env.tools
        if registry is not None and (step.tools is None or step.tools):
            resolved = registry.resolve(step.tools)
            tool_names = [tool.spec.name for tool in resolved]
            tools = registry.definitions(tool_names)

        return _StepPlan(prompt=prompt, tool_names=tool_names, tools=tools, sub_runs=sub_runs)

    async def _run_subagents(
        self,
        agent_ids: list[str],
        prompt: str,
        sub_runs: list[SubRunRef],
        options: ExecutorOptions,
        token: CancellationToken,
    ) -> str:
        from .factory import create_executor

        lineage = (*options.lineage, self.agent.uuid)
        for agent_id in agent_ids:
            token.raise_if_cancelled()
            if agent_id in lineage:
                raise SubagentRoutingError(
                    f"Sub-agent cycle detected: {' -> '.join((*lineage, agent_id))}"
                )
            if len(lineage) > self.env.config.max_subagent_depth:
                raise SubagentRoutingError(
                    f"Sub-agent depth limit of {self.env.config.max_subagent_depth} exceeded"
                )
            sub_agent = self.env.store.load_agent(self.env.workspace_id, agent_id)
            if sub_agent is None:
                logger.warning("Skipping unknown sub-agent %s of agent %s", agent_id, self.agent.uuid)
                continue

            sub_run = await create_executor(self.env, sub_agent).run(
                "workflow",
                {MESSAGE_VAR: prompt},
                ExecutorOptions(
                    ephemeral=options.ephemeral,
                    abort_signal=token,
                    lineage=lineage,
                ),
            )
            sub_runs.append(SubRunRef(agent_id=agent_id, run_id=sub_run.uuid))
            if sub_run.status == "canceled":
                raise AgentCancelledError(f"Sub-agent '{sub_agent.name}' was canceled")
            if sub_run.status == "error":
                raise SubagentExecutionError(
                    f"Sub-agent '{sub_agent.name}' failed: {sub_run.error}"
                )
            prompt = self.env.config.subagent_output_template.format(
                prompt=prompt, name=sub_agent.name, output=sub_run.output_text()
            )
        return prompt

    async def _generate(
        self,
        llm: LLM,
        history: list[LLMMessage],
        opts: LLMOptions,
        assistant: Message,
        tool_names: list[str],
        run: AgentRun,
        options: ExecutorOptions,
    ) -> bool:
        """
        Run one step's LLM exchange, including tool rounds.

        Returns:
            Whether streaming is still enabled (it is dropped for the rest of
            the run once the adapter reports it cannot stream).
        """
        max_rounds = self.env.config.max_tool_rounds
        for round_index in range(max_rounds + 1):
            response, streaming = await self._call_llm(llm, history, opts, assistant, options)
            opts = replace(opts, streaming=streaming)
            if not response.tool_calls:
                return streaming
            if round_index == max_rounds:
                raise AgentExecutionError(f"Exceeded {max_rounds} tool call rounds")

            history.append(
                LLMMessage(role="assistant", content=response.text, tool_calls=list(response.tool_calls))
            )
            for call in response.tool_calls:
                if opts.abort_signal is not None:
                    opts.abort_signal.raise_if_cancelled()
                result = await self._call_tool(call.tool_name, call.arguments, call.id, tool_names, run, opts)
                assistant.tool_calls.append(
                    ToolCallRecord(
                        id=call.id,
                        name=call.tool_name,
                        params=dict(call.arguments),
                        result=result,
                        done=True,
                    )
                )
                history.append(
                    LLMMessage(
                        role="tool",
                        content=json.dumps(result, ensure_ascii=False, default=str),
                        name=call.tool_name,
                        tool_call_id=call.id,
                    )
                )
        return opts.streaming

    async def _call_llm(
        self,
        llm: LLM,
        history: list[LLMMessage],
        opts: LLMOptions,
        assistant: Message,
        options: ExecutorOptions,
    ) -> tuple[LLMResponse, bool]:
        if opts.streaming:
            streamed_from = len(assistant.content)
            try:
                return await self._stream(llm, history, opts, assistant, options), True
            except LLMCapabilityError:
                logger.info("Streaming not supported by %s, retrying without it", llm.provider_id)
                assistant.content = assistant.content[:streamed_from]
        response = await llm.complete(history, replace(opts, streaming=False))
        assistant.append_text(response.text)
        await self._emit(options, StreamCompletedEvent(response=response))
        return response, False

    async def _stream(
        self,
        llm: LLM,
        history: list[LLMMessage],
        opts: LLMOptions,
        assistant: Message,
        options: ExecutorOptions,
    ) -> LLMResponse:
        final: LLMResponse | None = None
        async for event in llm.generate(history, opts):
            if isinstance(event, StreamTextDeltaEvent):
                assistant.append_text(event.delta)
            elif isinstance(event, StreamCompletedEvent):
                final = event.response
            await self._emit(options, event)
        if final is None:
            raise AgentExecutionError("LLM stream ended without a response")
        return final

    async def _call_tool(
        self,
        name: str,
        arguments: dict[str, Any],
        call_id: str | None,
        tool_names: list[str],
        run: AgentRun,
        opts: LLMOptions,
    ) -> Any:
        registry = self.env.tools
        if registry is None or name not in tool_names:
            logger.warning("Model requested unavailable tool %r", name)
            return {"error": f"Unknown tool: {name}"}
        ctx = ToolContext(agent_id=self.agent.uuid, run_id=run.uuid, abort_signal=opts.abort_signal)
        try:
            result = await registry.call(name, arguments, ctx=ctx, tool_call_id=call_id)
        except ToolError as e:
            return {"error": str(e)}
        return result.to_model_content()
