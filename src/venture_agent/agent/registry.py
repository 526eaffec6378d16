"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

import inspect
import json
from collections.abc import Callable
from time import perf_counter
from typing import Any

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from venture_agent.errors import ToolExecutionError
from venture_agent.types import ToolTrace


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and validation.

    `handler` receives the validated args model and may return a plain value
    or an awaitable.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(min_length=1)
    name: str
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[BaseModel], Any]
    tags: list[str] = Field(default_factory=list)

    def validate_payload(self, payload: dict[str, Any]) -> BaseModel:
        try:
            return self.args_schema.model_validate(payload)
        except ValidationError as exc:
            raise ToolExecutionError(self.id, _validation_message(exc)) from exc

    async def invoke(self, payload: dict[str, Any]) -> Any:
        data = self.validate_payload(payload)
        try:
            result = self.handler(data)
            if inspect.isawaitable(result):
                result = await result
        except ToolExecutionError:
            raise
        except Exception as exc:
            raise ToolExecutionError(self.id, str(exc) or type(exc).__name__) from exc
        return result


class ToolRegistry:
    """Stores tool specs and exports LangChain-compatible tool objects."""

    def __init__(self, *, preview_chars: int = 320) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._observer: Callable[[ToolTrace], None] | None = None
        self.preview_chars = preview_chars

    def register(self, spec: ToolSpec) -> None:
        if spec.id in self._tools:
            raise ValueError(f"Tool already registered: {spec.id}")
        self._tools[spec.id] = spec

    def set_observer(self, observer: Callable[[ToolTrace], None] | None) -> None:
        """Set an optional callback invoked after each tool execution."""
        self._observer = observer

    def get(self, tool_id: str) -> ToolSpec:
        spec = self._tools.get(tool_id)
        if spec is None:
            raise KeyError(f"Unknown tool: {tool_id}")
        return spec

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    async def execute(self, tool_id: str, payload: dict[str, Any]) -> Any:
        return await self._execute_spec(self.get(tool_id), payload)

    def as_langchain_tools(self, tool_ids: list[str] | None = None) -> list[StructuredTool]:
        tools: list[StructuredTool] = []
        for spec in self.specs(tool_ids):
            tools.append(
                StructuredTool.from_function(
                    coroutine=self._build_coroutine(spec),
                    name=spec.id,
                    description=spec.description,
                    args_schema=spec.args_schema,
                )
            )
        return tools

    def specs(self, tool_ids: list[str] | None = None) -> list[ToolSpec]:
        if tool_ids is None:
            return list(self._tools.values())
        return [self._tools[tool_id] for tool_id in tool_ids if tool_id in self._tools]

    def _build_coroutine(self, spec: ToolSpec) -> Callable[..., Any]:
        async def _callable(**kwargs: Any) -> str:
            return render_preview(await self._execute_spec(spec, kwargs), limit=None)

        return _callable

    async def _execute_spec(self, spec: ToolSpec, payload: dict[str, Any]) -> Any:
        start = perf_counter()
        try:
            output = await spec.invoke(payload)
        except ToolExecutionError as exc:
            self._notify(spec, payload, f"ERROR: {exc.reason}", start)
            raise
        self._notify(spec, payload, render_preview(output, limit=self.preview_chars), start)
        return output

    def _notify(self, spec: ToolSpec, payload: dict[str, Any], preview: str, start: float) -> None:
        if self._observer is None:
            return
        self._observer(
            ToolTrace(
                name=spec.id,
                input_payload=payload,
                output_preview=preview,
                latency_ms=(perf_counter() - start) * 1000.0,
            )
        )


def render_preview(value: Any, limit: int | None = 320) -> str:
    if isinstance(value, (dict, list)):
        text = json.dumps(value, default=str)
    else:
        text = str(value)
    if limit is None:
        return text
    return text[:limit]


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "payload"
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    return "invalid parameters (" + "; ".join(parts) + ")"
