import pytest

from venture_agent.agent.registry import ToolRegistry
from venture_agent.agent.tools import (
    FundingCalculatorInput,
    MarketAnalysisInput,
    ValuationInput,
    analyze_market,
    calculate_funding,
    estimate_valuation,
    register_builtin_tools,
)
from venture_agent.errors import ToolExecutionError
from venture_agent.ingest.embedder import HashingEmbedder
from venture_agent.ingest.seed import seed_index
from venture_agent.retrieval.service import KnowledgeService
from venture_agent.retrieval.vector_store import InMemoryDocumentIndex


def test_valuation_uses_industry_growth_and_stage() -> None:
    result = estimate_valuation(ValuationInput(industry="SaaS", revenue=2.0, growth=0.5, stage="seed"))

    # 11 x 1.5 x 0.6
    assert result["methodology"]["final_multiple"] == pytest.approx(9.9)
    assert result["base_valuation"] == pytest.approx(19.8)
    assert result["valuation_range"] == {"low": pytest.approx(15.84), "high": pytest.approx(23.76)}


def test_valuation_falls_back_to_default_multiple() -> None:
    result = estimate_valuation(ValuationInput(industry="robotics", revenue=1.0, growth=0.0))

    assert result["methodology"]["industry_multiple"] == 8
    assert "Low growth rate - valuation may be challenged" in result["insights"]


def test_funding_calculator_burn_and_runway() -> None:
    result = calculate_funding(
        FundingCalculatorInput(
            team_size=4,
            avg_salary=120_000,
            operational_costs=24_000,
            marketing_budget=12_000,
            timeline_months=12,
        )
    )

    assert result["burn_analysis"]["monthly_burn"] == 43_000
    assert result["funding_requirements"]["total_needed"] == 516_000
    assert result["funding_requirements"]["recommended_raise"] == pytest.approx(619_200)
    assert result["valuation"]["pre_money"] == 1_000_000
    assert len(result["monthly_projections"]) == 12
    assert result["monthly_projections"][-1]["runway_months"] == 0


def test_market_analysis_known_and_unknown_industry() -> None:
    result = analyze_market(MarketAnalysisInput(industry="Blockchain", region="EU"))

    assert result["market_trend"] == "High Growth"
    assert result["region"] == "EU"
    assert result["projected_size_5y"] > result["current_size"]

    with pytest.raises(ValueError, match="No market data"):
        analyze_market(MarketAnalysisInput(industry="mars"))


async def test_builtin_tools_are_registered_and_searchable() -> None:
    index = InMemoryDocumentIndex(HashingEmbedder())
    seed_index(index)
    registry = ToolRegistry()
    register_builtin_tools(registry, KnowledgeService(index))

    assert [spec.id for spec in registry.specs()] == [
        "knowledge-search",
        "valuation-estimator",
        "funding-calculator",
        "market-analysis",
    ]
    found = await registry.execute("knowledge-search", {"query": "startup funding stages", "top_k": 3})
    assert "doc-3" in [item["id"] for item in found["results"]]

    scoped = await registry.execute(
        "knowledge-search", {"query": "startup funding stages", "category": "funding"}
    )
    assert scoped["results"][0]["id"] == "doc-3"

    with pytest.raises(ToolExecutionError):
        await registry.execute("market-analysis", {"industry": "mars"})
