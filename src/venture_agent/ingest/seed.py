"""Static seed knowledge loaded into the index at startup."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from venture_agent.retrieval.vector_store import DocumentIndex
from venture_agent.types import Document, DocumentMetadata

logger = logging.getLogger(__name__)


def _ts(day: int) -> datetime:
    return datetime(2024, 1, day, tzinfo=timezone.utc)


SEED_DOCUMENTS: tuple[dict[str, Any], ...] = (
    {
        "title": "Meta3Ventures Investment Criteria",
        "category": "investment",
        "source": "meta3ventures",
        "timestamp": _ts(1),
        "tags": ["investment", "criteria", "ai", "blockchain", "funding", "startup"],
        "content": (
            "Meta3Ventures Investment Criteria: We focus on early-stage investments in AI, "
            "blockchain, and emerging technologies. Investment Range: $100K - $2M. Stage: "
            "Pre-seed to Series A. Sectors: AI/ML, Blockchain, FinTech, SaaS, HealthTech. "
            "We look for strong founding teams, innovative technology, and large addressable markets."
        ),
    },
    {
        "title": "AI Market Trends 2024",
        "category": "market-research",
        "source": "industry-reports",
        "timestamp": _ts(15),
        "tags": ["ai", "trends", "2024", "market", "generative", "enterprise"],
        "content": (
            "AI Market Trends 2024: Key trends include 1) Generative AI Enterprise Adoption - "
            "60% of enterprises implementing GenAI solutions. 2) AI Infrastructure Investment - "
            "$50B+ in AI infrastructure spending. 3) Regulatory Development - EU AI Act "
            "implementation. 4) Edge AI Computing - Moving AI processing closer to data sources. "
            "5) AI Ethics and Governance - Focus on responsible AI development."
        ),
    },
    {
        "title": "Startup Funding Stages Guide",
        "category": "funding",
        "source": "venture-capital",
        "timestamp": _ts(10),
        "tags": ["funding", "stages", "startup", "seed", "series-a", "investment"],
        "content": (
            "Startup Funding Stages Guide: PRE-SEED ($50K - $500K) - Validate product-market fit, "
            "build MVP, initial team. SEED ($500K - $3M) - Proven traction, initial revenue, "
            "product development. SERIES A ($3M - $15M) - Strong revenue growth, market "
            "validation, scaling. SERIES B ($15M - $50M) - Market expansion, team scaling, "
            "operational efficiency. SERIES C+ ($50M+) - Market leadership, international expansion."
        ),
    },
    {
        "title": "Business Plan Structure",
        "category": "business-planning",
        "source": "startup-guides",
        "timestamp": _ts(5),
        "tags": ["business", "plan", "structure", "executive", "summary", "market"],
        "content": (
            "Business Plan Structure: A comprehensive business plan should include: 1) Executive "
            "Summary - Company overview and key highlights. 2) Market Analysis - Industry size, "
            "growth, competition, target customers. 3) Business Model - Revenue streams, pricing, "
            "unit economics. 4) Product/Service Description - Features, benefits, competitive "
            "advantages. 5) Team - Founders, advisors, organizational structure. 6) Financial "
            "Projections - Revenue, expenses, funding requirements. 7) Go-to-Market Strategy - "
            "Marketing, sales, customer acquisition."
        ),
    },
    {
        "title": "Pitch Deck Essentials",
        "category": "pitch-deck",
        "source": "investor-guides",
        "timestamp": _ts(8),
        "tags": ["pitch", "deck", "slides", "presentation", "investor", "funding"],
        "content": (
            "Pitch Deck Essentials: Essential slides include: 1) Title Slide - Company name, "
            "tagline, contact info. 2) Problem - Market pain point being solved. 3) Solution - "
            "Your product/service offering. 4) Market Opportunity - TAM, SAM, SOM analysis. "
            "5) Traction - Key metrics, milestones, validation. 6) Business Model - How you make "
            "money. 7) Competition - Competitive landscape and differentiation. 8) Team - "
            "Founders and key team members. 9) Financials - Revenue projections, funding ask. "
            "10) Ask - What you need from investors."
        ),
    },
    {
        "title": "Startup Valuation Methods",
        "category": "valuation",
        "source": "financial-analysis",
        "timestamp": _ts(12),
        "tags": ["valuation", "methods", "revenue", "multiples", "dcf", "startup"],
        "content": (
            "Startup Valuation Methods: Common methods include: 1) Revenue Multiples - 3-15x "
            "depending on industry and growth. 2) DCF Analysis - Discounted cash flow based on "
            "future projections. 3) Comparable Company Analysis - Similar companies' valuations. "
            "4) Risk-Adjusted NPV - Net present value with risk adjustments. 5) Scorecard Method - "
            "Weighted factors for startup stage. Consider growth rate, market size, competitive "
            "position, team strength, and technology differentiation."
        ),
    },
    {
        "title": "Key Startup Metrics",
        "category": "metrics",
        "source": "startup-analytics",
        "timestamp": _ts(14),
        "tags": ["kpi", "metrics", "arr", "mrr", "cac", "ltv", "churn"],
        "content": (
            "Key Startup Metrics: Important metrics include: ARR (Annual Recurring Revenue) - "
            "Annualized subscription revenue. MRR (Monthly Recurring Revenue) - Monthly "
            "subscription revenue. CAC (Customer Acquisition Cost) - Cost to acquire one customer. "
            "LTV (Lifetime Value) - Total revenue from a customer over their lifetime. Churn Rate - "
            "Percentage of customers lost over time. Runway - Months of operation with current "
            "cash. Monitor these regularly for business health and investor reporting."
        ),
    },
    {
        "title": "Market Validation Strategies",
        "category": "validation",
        "source": "startup-methodology",
        "timestamp": _ts(16),
        "tags": ["market", "validation", "customer", "interviews", "mvp", "testing"],
        "content": (
            "Market Validation Strategies: Effective strategies include: 1) Customer Interviews - "
            "30-50 minimum, structured questions. 2) Landing Page Validation - Test demand before "
            "building. 3) Pre-order Campaigns - Validate willingness to pay. 4) Pilot Programs - "
            "Limited release to test market fit. 5) A/B Testing - Compare different approaches. "
            "6) MVP Testing - Minimum viable product with core features. Focus on real customer "
            "feedback and data-driven decisions."
        ),
    },
    {
        "title": "Fintech Market Analysis",
        "category": "market-research",
        "source": "industry-reports",
        "timestamp": _ts(18),
        "tags": ["fintech", "market", "analysis", "payments", "banking", "regulatory"],
        "content": (
            "Fintech Market Analysis: The fintech market is valued at $162B globally with 16% "
            "annual growth. Key segments include: Digital Payments ($89B), Digital Banking ($44B), "
            "InsurTech ($15B), RegTech ($8B), and WealthTech ($6B). Major trends: Open Banking, "
            "Embedded Finance, DeFi, CBDCs, and AI-powered financial services. Regulatory "
            "environment is evolving with PSD2, Open Banking, and digital asset regulations."
        ),
    },
    {
        "title": "SaaS Business Model",
        "category": "business-model",
        "source": "saas-guides",
        "timestamp": _ts(20),
        "tags": ["saas", "business-model", "subscription", "freemium", "enterprise"],
        "content": (
            "SaaS Business Model: Software as a Service model features: 1) Subscription Revenue - "
            "Recurring monthly/annual payments. 2) Freemium Strategy - Free tier with premium "
            "features. 3) Usage-Based Pricing - Pay per use or per seat. 4) Enterprise Sales - "
            "Custom solutions for large customers. 5) Channel Partnerships - Reseller and "
            "integration partners. Key metrics: ARR, MRR, Churn Rate, CAC, LTV, Net Revenue "
            "Retention. Focus on product-market fit and customer success."
        ),
    },
)


def seed_index(index: DocumentIndex) -> list[str]:
    """Load the seed documents as `doc-1` .. `doc-N`."""
    ids: list[str] = []
    for position, item in enumerate(SEED_DOCUMENTS, start=1):
        document = Document(
            id=f"doc-{position}",
            content=item["content"],
            metadata=DocumentMetadata(
                title=item["title"],
                category=item["category"],
                source=item["source"],
                timestamp=item["timestamp"],
                tags=list(item["tags"]),
            ),
        )
        ids.append(index.add_document(document))
    logger.info("Seeded knowledge index with %d documents", len(ids))
    return ids
