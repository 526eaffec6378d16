"""Built-in tool implementations for the venture agents."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from venture_agent.agent.registry import ToolRegistry, ToolSpec
from venture_agent.retrieval.service import KnowledgeService

VALUATION_MULTIPLES: dict[str, float] = {
    "ai": 10,
    "fintech": 12,
    "healthcare": 8,
    "gaming": 7,
    "blockchain": 15,
    "saas": 11,
    "ecommerce": 6,
    "cybersecurity": 9,
    "edtech": 8,
    "cleantech": 13,
    "default": 8,
}

STAGE_MULTIPLIERS: dict[str, float] = {
    "seed": 0.6,
    "series-a": 1.0,
    "series-b": 1.2,
    "series-c": 1.4,
    "growth": 1.1,
    "late-stage": 1.3,
}

# size in billions USD (ecommerce and cleantech in trillions), growth as CAGR
MARKET_DATA: dict[str, dict[str, Any]] = {
    "ai": {"size": 207, "growth": 0.2, "currency": "USD"},
    "fintech": {"size": 162, "growth": 0.16, "currency": "USD"},
    "healthcare": {"size": 125, "growth": 0.12, "currency": "USD"},
    "gaming": {"size": 185, "growth": 0.09, "currency": "USD"},
    "blockchain": {"size": 19, "growth": 0.58, "currency": "USD"},
    "saas": {"size": 195, "growth": 0.18, "currency": "USD"},
    "ecommerce": {"size": 4.9, "growth": 0.11, "currency": "USD"},
    "cybersecurity": {"size": 155, "growth": 0.13, "currency": "USD"},
    "edtech": {"size": 89, "growth": 0.15, "currency": "USD"},
    "cleantech": {"size": 1.4, "growth": 0.25, "currency": "USD"},
}

FUNDING_STAGES: dict[str, dict[str, Any]] = {
    "pre-seed": {
        "description": "Initial funding to validate idea and build MVP",
        "typical_range": "$50K - $500K",
        "time_to_raise": "2-4 months",
        "dilution": 0.15,
        "valuation_factor": 0.5,
    },
    "seed": {
        "description": "Product-market fit and initial traction funding",
        "typical_range": "$500K - $3M",
        "time_to_raise": "3-6 months",
        "dilution": 0.20,
        "valuation_factor": 0.7,
    },
    "series-a": {
        "description": "Scale proven business model with significant growth",
        "typical_range": "$3M - $15M",
        "time_to_raise": "4-8 months",
        "dilution": 0.25,
        "valuation_factor": 1.0,
    },
    "series-b": {
        "description": "Aggressive expansion and market leadership",
        "typical_range": "$15M - $50M",
        "time_to_raise": "6-12 months",
        "dilution": 0.20,
        "valuation_factor": 1.2,
    },
}

MIN_PRE_MONEY_VALUATION = 1_000_000.0


class KnowledgeSearchInput(BaseModel):
    query: str = Field(min_length=1)
    top_k: int = Field(default=3, ge=1, le=10)
    category: str | None = None


class ValuationInput(BaseModel):
    industry: str = Field(min_length=1)
    revenue: float = Field(ge=0, description="Annual revenue in millions USD")
    growth: float = Field(ge=-1, description="Year-over-year growth rate (0.2 = 20%)")
    stage: str = "series-a"


class FundingCalculatorInput(BaseModel):
    company_name: str = "Your startup"
    stage: str = "seed"
    team_size: int = Field(default=5, ge=1)
    avg_salary: float = Field(default=120_000, ge=0)
    operational_costs: float = Field(default=60_000, ge=0, description="Annual operating costs")
    marketing_budget: float = Field(default=50_000, ge=0, description="Annual marketing budget")
    current_revenue: float = Field(default=0, ge=0)
    growth_rate: float = Field(default=50, description="Annual growth in percent")
    industry_multiple: float = Field(default=8, gt=0)
    timeline_months: int = Field(default=18, ge=1, le=60)


class MarketAnalysisInput(BaseModel):
    industry: str = Field(min_length=1)
    region: str = "global"


def estimate_valuation(params: ValuationInput) -> dict[str, Any]:
    industry = params.industry.lower()
    multiple = VALUATION_MULTIPLES.get(industry, VALUATION_MULTIPLES["default"])
    stage_multiplier = STAGE_MULTIPLIERS.get(params.stage.lower(), 1.0)
    final_multiple = multiple * (1 + params.growth) * stage_multiplier
    base = params.revenue * final_multiple

    insights: list[str] = []
    if final_multiple > 15:
        insights.append("Very high valuation multiple - consider market conditions and competitive landscape")
    elif final_multiple > 10:
        insights.append("High valuation multiple - strong growth prospects expected")
    elif final_multiple < 5:
        insights.append("Conservative valuation multiple - may indicate market challenges or early stage")
    if params.growth > 0.5:
        insights.append("Exceptional growth rate - premium valuation justified")
    elif params.growth < 0.1:
        insights.append("Low growth rate - valuation may be challenged")

    return {
        "industry": industry,
        "revenue": params.revenue,
        "growth_percent": params.growth * 100,
        "stage": params.stage,
        "base_valuation": round(base, 2),
        "valuation_range": {"low": round(base * 0.8, 2), "high": round(base * 1.2, 2)},
        "methodology": {
            "industry_multiple": multiple,
            "growth_adjustment": params.growth,
            "stage_adjustment": stage_multiplier,
            "final_multiple": round(final_multiple, 4),
        },
        "insights": insights,
    }


def calculate_funding(params: FundingCalculatorInput) -> dict[str, Any]:
    """Burn, runway and raise sizing for a given team and cost base."""
    team_cost = params.team_size * params.avg_salary / 12
    operational_cost = params.operational_costs / 12
    marketing_cost = params.marketing_budget / 12
    monthly_burn = team_cost + operational_cost + marketing_cost
    total_needed = monthly_burn * params.timeline_months

    stage_key = params.stage.lower()
    stage = FUNDING_STAGES.get(stage_key, FUNDING_STAGES["seed"])

    factor = params.industry_multiple * stage["valuation_factor"]
    if params.growth_rate > 100:
        factor *= 1.5
    elif params.growth_rate > 50:
        factor *= 1.2
    elif params.growth_rate < 20:
        factor *= 0.8
    pre_money = max(params.current_revenue * factor, MIN_PRE_MONEY_VALUATION)
    post_money = pre_money / (1 - stage["dilution"])

    def share(part: float) -> str:
        return f"{(part / monthly_burn) * 100:.1f}%" if monthly_burn else "0.0%"

    projections = []
    cumulative = 0.0
    for month in range(1, min(12, params.timeline_months) + 1):
        cumulative += monthly_burn
        projections.append(
            {
                "month": month,
                "total_burn": round(monthly_burn, 2),
                "cumulative_burn": round(cumulative, 2),
                "runway_months": params.timeline_months - month,
            }
        )

    return {
        "company_name": params.company_name,
        "stage": stage_key,
        "burn_analysis": {
            "monthly_burn": round(monthly_burn, 2),
            "annual_burn": round(monthly_burn * 12, 2),
            "breakdown": {
                "team": share(team_cost),
                "operations": share(operational_cost),
                "marketing": share(marketing_cost),
            },
        },
        "funding_requirements": {
            "total_needed": round(total_needed, 2),
            "runway_months": params.timeline_months,
            "safety_buffer": round(total_needed * 0.2, 2),
            "recommended_raise": round(total_needed * 1.2, 2),
        },
        "valuation": {
            "pre_money": round(pre_money, 2),
            "post_money": round(post_money, 2),
            "equity_dilution": f"{stage['dilution'] * 100:.1f}%",
        },
        "stage_guidance": {
            "description": stage["description"],
            "typical_range": stage["typical_range"],
            "time_to_raise": stage["time_to_raise"],
        },
        "monthly_projections": projections,
    }


def analyze_market(params: MarketAnalysisInput) -> dict[str, Any]:
    key = params.industry.lower()
    data = MARKET_DATA.get(key)
    if data is None:
        available = ", ".join(MARKET_DATA)
        raise ValueError(f"No market data available for industry '{params.industry}'. Available industries: {available}")

    growth = data["growth"]
    if growth > 0.2:
        trend = "High Growth"
    elif growth > 0.1:
        trend = "Moderate Growth"
    else:
        trend = "Stable"

    insights: list[str] = []
    if growth > 0.2:
        insights.append("High growth sector with significant investment opportunities")
    if data["size"] > 100:
        insights.append("Large market size indicates strong demand and competition")

    return {
        "industry": key,
        "region": params.region,
        "current_size": data["size"],
        "growth_rate": growth,
        "currency": data["currency"],
        "projected_size_5y": round(data["size"] * (1 + growth) ** 5, 2),
        "market_trend": trend,
        "key_insights": insights,
    }


def register_builtin_tools(registry: ToolRegistry, knowledge: KnowledgeService) -> None:
    """Register the default tool set.

    Tools:
    - `knowledge-search`: retrieval over the knowledge index.
    - `valuation-estimator`: industry multiple x growth x stage.
    - `funding-calculator`: burn, runway and raise sizing.
    - `market-analysis`: static market size table lookup.
    """

    def _search(params: KnowledgeSearchInput) -> dict[str, Any]:
        hits = knowledge.search(params.query, top_k=params.top_k, category=params.category)
        return {
            "query": params.query,
            "results": [
                {
                    "id": hit.document.id,
                    "title": hit.document.metadata.title,
                    "category": hit.document.metadata.category,
                    "similarity": round(hit.similarity, 4),
                    "excerpt": _truncate(hit.document.content, 220),
                }
                for hit in hits
            ],
        }

    registry.register(
        ToolSpec(
            id="knowledge-search",
            name="Knowledge Search",
            description="Search the venture knowledge base and return the most relevant documents.",
            args_schema=KnowledgeSearchInput,
            handler=_search,
            tags=["retrieval"],
        )
    )
    registry.register(
        ToolSpec(
            id="valuation-estimator",
            name="Valuation Estimator",
            description="Estimates company valuation based on revenue, growth and industry multiples.",
            args_schema=ValuationInput,
            handler=estimate_valuation,
            tags=["finance"],
        )
    )
    registry.register(
        ToolSpec(
            id="funding-calculator",
            name="Funding Calculator",
            description="Calculates burn rate, runway and recommended raise for a startup.",
            args_schema=FundingCalculatorInput,
            handler=calculate_funding,
            tags=["finance"],
        )
    )
    registry.register(
        ToolSpec(
            id="market-analysis",
            name="Market Analysis",
            description="Returns estimated market size and growth for a given industry.",
            args_schema=MarketAnalysisInput,
            handler=analyze_market,
            tags=["analysis"],
        )
    )


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."
