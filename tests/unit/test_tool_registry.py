import pytest
from pydantic import BaseModel, Field

from venture_agent.agent.registry import ToolRegistry, ToolSpec
from venture_agent.errors import ToolExecutionError


class EchoInput(BaseModel):
    value: int = Field(ge=1)


def _echo_spec(tool_id: str = "echo") -> ToolSpec:
    def _handler(data: EchoInput) -> str:
        return str(data.value)

    return ToolSpec(
        id=tool_id,
        name="Echo",
        description="echo positive int",
        args_schema=EchoInput,
        handler=_handler,
    )


async def test_tool_registry_validation() -> None:
    registry = ToolRegistry()
    registry.register(_echo_spec())

    assert await registry.execute("echo", {"value": 3}) == "3"

    with pytest.raises(ToolExecutionError) as excinfo:
        await registry.execute("echo", {"value": 0})
    assert "invalid parameters" in excinfo.value.reason


def test_duplicate_tool_registration_rejected() -> None:
    registry = ToolRegistry()
    registry.register(_echo_spec())

    with pytest.raises(ValueError):
        registry.register(_echo_spec())


async def test_unknown_tool_raises_key_error() -> None:
    registry = ToolRegistry()

    with pytest.raises(KeyError):
        await registry.execute("missing", {})
    assert "missing" not in registry


async def test_async_handler_and_handler_failure() -> None:
    registry = ToolRegistry()

    async def _double(data: EchoInput) -> int:
        return data.value * 2

    def _explode(data: EchoInput) -> int:
        raise RuntimeError("backend down")

    registry.register(ToolSpec(id="double", name="Double", description="x2", args_schema=EchoInput, handler=_double))
    registry.register(ToolSpec(id="explode", name="Explode", description="fails", args_schema=EchoInput, handler=_explode))

    assert await registry.execute("double", {"value": 4}) == 8
    with pytest.raises(ToolExecutionError) as excinfo:
        await registry.execute("explode", {"value": 1})
    assert excinfo.value.reason == "backend down"


async def test_langchain_export_runs_through_registry() -> None:
    registry = ToolRegistry()
    registry.register(_echo_spec("echo"))
    registry.register(_echo_spec("echo-two"))

    tools = registry.as_langchain_tools(["echo"])

    assert [tool.name for tool in tools] == ["echo"]
    assert await tools[0].ainvoke({"value": 7}) == "7"
