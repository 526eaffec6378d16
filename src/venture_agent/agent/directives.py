"""Inline tool directives: `[TOOL:<tool-id>:<json-object>]`."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Collection
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any

from venture_agent.agent.registry import ToolRegistry
from venture_agent.errors import ToolExecutionError
from venture_agent.types import ToolCall, ToolInvocation

logger = logging.getLogger(__name__)

_HEAD = re.compile(r"\[TOOL:([A-Za-z0-9_.\-]+):")
_DECODER = json.JSONDecoder()

DIRECTIVE_INSTRUCTIONS = (
    "When you need to use a tool, indicate it in your response with "
    "[TOOL:tool-id:parameters] where parameters is a JSON object.\n"
    'For example: [TOOL:market-analysis:{"industry":"fintech","region":"US"}]'
)


@dataclass(slots=True)
class Directive:
    """One directive occurrence; `call` is None when it could not be parsed."""

    tool_id: str
    start: int
    end: int
    call: ToolCall | None = None
    error: str | None = None


@dataclass(slots=True)
class DirectiveOutcome:
    text: str
    invocations: list[ToolInvocation] = field(default_factory=list)

    @property
    def tools_used(self) -> list[str]:
        return [item.tool_id for item in self.invocations if item.succeeded]


def parse_directives(text: str) -> list[Directive]:
    """Locate every directive in order of appearance.

    Parameters are read with a real JSON decoder, so string values may contain
    `]`. A directive whose JSON cannot be decoded spans up to the next `]` and
    carries an error; an unterminated one is not treated as a directive.
    """
    directives: list[Directive] = []
    pos = 0
    while True:
        head = _HEAD.search(text, pos)
        if head is None:
            break
        tool_id = head.group(1)
        body_start = _skip_ws(text, head.end())
        try:
            params, json_end = _DECODER.raw_decode(text, body_start)
        except json.JSONDecodeError as exc:
            close = text.find("]", body_start)
            if close == -1:
                pos = head.end()
                continue
            directives.append(
                Directive(tool_id, head.start(), close + 1, error=f"malformed JSON parameters ({exc.msg})")
            )
            pos = close + 1
            continue

        close = _skip_ws(text, json_end)
        if close >= len(text) or text[close] != "]":
            directives.append(
                Directive(tool_id, head.start(), json_end, error="directive is missing its closing ']'")
            )
            pos = json_end
            continue
        if not isinstance(params, dict):
            directives.append(
                Directive(tool_id, head.start(), close + 1, error="parameters must be a JSON object")
            )
        else:
            directives.append(
                Directive(tool_id, head.start(), close + 1, call=ToolCall(tool_id, params))
            )
        pos = close + 1
    return directives


class ToolDirectiveExecutor:
    """Runs the directives found in model output and splices in their results.

    Every directive is handled independently. Failures of any kind are
    rendered inline as `*Tool execution failed: <reason>*`, so `execute`
    never raises for a tool problem.
    """

    def __init__(self, registry: ToolRegistry, *, timeout_seconds: float = 10.0) -> None:
        self.registry = registry
        self.timeout_seconds = timeout_seconds

    async def execute(self, text: str, allowed_tool_ids: Collection[str]) -> DirectiveOutcome:
        directives = parse_directives(text)
        if not directives:
            return DirectiveOutcome(text=text)

        pieces: list[str] = []
        invocations: list[ToolInvocation] = []
        cursor = 0
        for directive in directives:
            pieces.append(text[cursor : directive.start])
            invocation = await self._run(directive, allowed_tool_ids)
            invocations.append(invocation)
            pieces.append(self._render(invocation))
            cursor = directive.end
        pieces.append(text[cursor:])
        return DirectiveOutcome(text="".join(pieces), invocations=invocations)

    async def _run(self, directive: Directive, allowed_tool_ids: Collection[str]) -> ToolInvocation:
        if directive.call is None:
            return self._failed(directive.tool_id, None, directive.error or "invalid directive")

        call = directive.call
        if call.tool_id not in allowed_tool_ids:
            return self._failed(call.tool_id, call.params, f"tool '{call.tool_id}' is not available to this agent")
        if call.tool_id not in self.registry:
            return self._failed(call.tool_id, call.params, f"unknown tool '{call.tool_id}'")

        start = perf_counter()
        try:
            result = await asyncio.wait_for(
                self.registry.execute(call.tool_id, call.params), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            return self._failed(
                call.tool_id, call.params, f"timed out after {self.timeout_seconds:g}s", start
            )
        except ToolExecutionError as exc:
            return self._failed(call.tool_id, call.params, exc.reason, start)
        except Exception as exc:
            logger.exception("Tool %s raised outside its handler", call.tool_id)
            return self._failed(call.tool_id, call.params, str(exc) or type(exc).__name__, start)

        latency_ms = (perf_counter() - start) * 1000.0
        logger.info("Tool %s executed in %.1fms", call.tool_id, latency_ms)
        return ToolInvocation(
            tool_id=call.tool_id, parameters=call.params, result=result, latency_ms=latency_ms
        )

    def _render(self, invocation: ToolInvocation) -> str:
        if not invocation.succeeded:
            return f"\n\n*Tool execution failed: {invocation.error}*\n"
        name = self.registry.get(invocation.tool_id).name
        return f"\n\n**{name} Result:**\n{format_tool_result(invocation.result)}\n"

    @staticmethod
    def _failed(
        tool_id: str,
        params: dict[str, Any] | None,
        reason: str,
        start: float | None = None,
    ) -> ToolInvocation:
        logger.warning("Tool directive %s failed: %s", tool_id, reason)
        latency_ms = (perf_counter() - start) * 1000.0 if start is not None else 0.0
        return ToolInvocation(tool_id=tool_id, parameters=params, error=reason, latency_ms=latency_ms)


def format_tool_result(result: Any) -> str:
    if isinstance(result, (dict, list)):
        return "```json\n" + json.dumps(result, indent=2, default=str) + "\n```"
    return str(result)


def _skip_ws(text: str, index: int) -> int:
    while index < len(text) and text[index].isspace():
        index += 1
    return index
