"""Agent personas: system prompt, allowed tools and provider preferences."""

from __future__ import annotations

from pydantic import BaseModel, Field


class AgentProfile(BaseModel):
    id: str = Field(min_length=1)
    name: str
    description: str
    system_prompt: str
    tools: list[str] = Field(default_factory=list)
    preferred_model: str | None = None
    preferred_provider: str | None = None
    knowledge_categories: list[str] = Field(default_factory=list)


GENERAL_CONVERSATION = AgentProfile(
    id="general-conversation",
    name="General Conversation Assistant",
    description="Handles greetings, basic queries and general conversation with natural flow.",
    system_prompt=(
        "You are Meta3's friendly AI assistant. You provide natural, conversational responses. "
        "Answer the user's question directly and concisely (1-3 sentences). If relevant, offer "
        "to help with next steps."
    ),
    tools=["knowledge-search"],
)

META3_INVESTMENT = AgentProfile(
    id="meta3-investment",
    name="Meta3 Investment Specialist",
    description=(
        "Expert in investment analysis, funding processes, market trends and portfolio strategy."
    ),
    system_prompt=(
        "You are Meta3 Investment Specialist, a senior investment analyst and strategic advisor "
        "for Meta3Ventures, a premier venture capital firm.\n\n"
        "EXPERTISE:\n"
        "- Investment analysis and due diligence\n"
        "- Funding strategies and capital raising\n"
        "- Startup valuation and financial modeling\n"
        "- Risk assessment and mitigation\n\n"
        "FOCUS AREAS:\n"
        "- Early-stage venture capital (Pre-seed, Seed, Series A)\n"
        "- Technology startups: AI/ML, SaaS, FinTech, Blockchain\n\n"
        "Be professional and data-driven. Include specific investment criteria, metrics and "
        "strategic recommendations with clear action items."
    ),
    tools=["knowledge-search", "valuation-estimator", "funding-calculator", "market-analysis"],
    preferred_model="qwen2.5:latest",
    preferred_provider="ollama",
    knowledge_categories=["investment", "funding", "valuation"],
)

VENTURE_LAUNCH = AgentProfile(
    id="venture-launch",
    name="Venture Launch Builder",
    description="Specializes in venture creation, business planning and startup development.",
    system_prompt=(
        "You are the M3VC Venture Launch Builder, Meta3Ventures' specialized AI agent for "
        "startup development and venture creation. Help founders with business planning, "
        "market validation, pitch decks, MVP scoping and fundraising preparation. Give "
        "structured, actionable guidance."
    ),
    tools=["knowledge-search", "funding-calculator", "market-analysis"],
    preferred_model="qwen2.5:latest",
    preferred_provider="ollama",
    knowledge_categories=["business-planning", "pitch-deck", "validation", "business-model"],
)

META3_RESEARCH = AgentProfile(
    id="meta3-research",
    name="Meta3 Research Specialist",
    description=(
        "Expert market researcher providing industry analysis, competitive intelligence and "
        "strategic market insights."
    ),
    system_prompt=(
        "You are Meta3 Research Specialist, an expert market researcher and strategic analyst "
        "for Meta3Ventures, a leading venture capital firm.\n\n"
        "EXPERTISE:\n"
        "- Market research and competitive analysis\n"
        "- Industry trends and strategic intelligence\n"
        "- Market sizing (TAM/SAM/SOM analysis)\n\n"
        "Be analytical and data-driven. Use bullet points and structured formatting, and "
        "include relevant market data and actionable recommendations."
    ),
    tools=["knowledge-search", "market-analysis", "valuation-estimator"],
    preferred_model="qwen2.5:latest",
    preferred_provider="ollama",
    knowledge_categories=["market-research", "metrics"],
)

DEFAULT_PROFILES: tuple[AgentProfile, ...] = (
    GENERAL_CONVERSATION,
    META3_INVESTMENT,
    VENTURE_LAUNCH,
    META3_RESEARCH,
)


class AgentProfileRegistry:
    def __init__(self, profiles: tuple[AgentProfile, ...] | list[AgentProfile] = DEFAULT_PROFILES) -> None:
        self._profiles: dict[str, AgentProfile] = {}
        for profile in profiles:
            if profile.id in self._profiles:
                raise ValueError(f"Agent already registered: {profile.id}")
            self._profiles[profile.id] = profile

    def get(self, agent_id: str) -> AgentProfile:
        profile = self._profiles.get(agent_id)
        if profile is None:
            raise KeyError(f"Unknown agent: {agent_id}")
        return profile

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._profiles

    def all(self) -> list[AgentProfile]:
        return list(self._profiles.values())
