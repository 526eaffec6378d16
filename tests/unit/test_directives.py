import asyncio

from pydantic import BaseModel

from venture_agent.agent.directives import ToolDirectiveExecutor, parse_directives
from venture_agent.agent.registry import ToolRegistry, ToolSpec


class LookupInput(BaseModel):
    industry: str
    region: str = "global"


def _registry() -> ToolRegistry:
    registry = ToolRegistry()

    def _lookup(data: LookupInput) -> dict[str, str]:
        return {"industry": data.industry, "region": data.region}

    async def _slow(data: LookupInput) -> str:
        await asyncio.sleep(1)
        return "late"

    registry.register(
        ToolSpec(id="market-analysis", name="Market Analysis", description="lookup", args_schema=LookupInput, handler=_lookup)
    )
    registry.register(
        ToolSpec(id="slow-tool", name="Slow Tool", description="sleeps", args_schema=LookupInput, handler=_slow)
    )
    return registry


def test_parse_reads_json_with_brackets_inside_strings() -> None:
    text = 'Start [TOOL:market-analysis:{"industry":"ai [gen]","region":"US"}] end'

    directives = parse_directives(text)

    assert len(directives) == 1
    assert directives[0].call.params == {"industry": "ai [gen]", "region": "US"}
    assert text[directives[0].end :] == " end"


def test_parse_flags_malformed_and_non_object_parameters() -> None:
    directives = parse_directives(
        "[TOOL:market-analysis:{industry: fintech}] and [TOOL:market-analysis:[1, 2]]"
    )

    assert [item.call for item in directives] == [None, None]
    assert "malformed JSON" in directives[0].error
    assert "JSON object" in directives[1].error


def test_unterminated_directive_is_left_alone() -> None:
    assert parse_directives('Text [TOOL:market-analysis:{"industry": "ai"') == []


async def test_valid_directive_is_replaced_by_result_block() -> None:
    executor = ToolDirectiveExecutor(_registry())
    text = 'Here you go. [TOOL:market-analysis:{"industry":"fintech","region":"US"}] Done.'

    outcome = await executor.execute(text, ["market-analysis"])

    assert "[TOOL:" not in outcome.text
    assert outcome.text.startswith("Here you go. ")
    assert "**Market Analysis Result:**" in outcome.text
    assert '"industry": "fintech"' in outcome.text
    assert outcome.text.endswith(" Done.")
    assert outcome.tools_used == ["market-analysis"]


async def test_each_directive_fails_independently() -> None:
    executor = ToolDirectiveExecutor(_registry())
    text = (
        "[TOOL:nope:{}] "
        "[TOOL:market-analysis:{bad json}] "
        '[TOOL:market-analysis:{"region":"EU"}] '
        '[TOOL:market-analysis:{"industry":"ai"}]'
    )

    outcome = await executor.execute(text, ["market-analysis", "nope"])

    assert outcome.text.count("*Tool execution failed:") == 3
    assert "unknown tool 'nope'" in outcome.text
    assert "malformed JSON" in outcome.text
    assert "invalid parameters" in outcome.text
    assert outcome.tools_used == ["market-analysis"]


async def test_disallowed_and_slow_tools_fail_inline() -> None:
    executor = ToolDirectiveExecutor(_registry(), timeout_seconds=0.05)

    disallowed = await executor.execute('[TOOL:market-analysis:{"industry":"ai"}]', [])
    slow = await executor.execute('[TOOL:slow-tool:{"industry":"ai"}]', ["slow-tool"])

    assert "not available to this agent" in disallowed.text
    assert "timed out" in slow.text
    assert not slow.invocations[0].succeeded


async def test_text_without_directives_is_unchanged() -> None:
    executor = ToolDirectiveExecutor(_registry())

    outcome = await executor.execute("Plain answer [with brackets].", ["market-analysis"])

    assert outcome.text == "Plain answer [with brackets]."
    assert outcome.invocations == []
