"""FastAPI entrypoint for chat, knowledge, provider, session and trace endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from venture_agent.context import AppContext, build_context
from venture_agent.errors import RetrievalError


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    user_id: str = Field(default="anonymous", min_length=1)
    session_id: str | None = None
    agent_id: str | None = None


class KnowledgeRequest(BaseModel):
    content: str = Field(min_length=1)
    title: str = Field(min_length=1)
    category: str = Field(min_length=1)
    source: str = "user"
    tags: list[str] = Field(default_factory=list)


class KnowledgeSearchRequest(BaseModel):
    query: str = Field(min_length=1)
    top_k: int = Field(default=5, ge=1, le=20)
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    category: str | None = None
    categories: list[str] = Field(default_factory=list)
    context: str | None = None


def create_app(context: AppContext | None = None) -> FastAPI:
    """Build the app; the context is created on startup unless one is given."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "context", None) is None:
            app.state.context = build_context()
        try:
            yield
        finally:
            await app.state.context.aclose()

    app = FastAPI(title="Venture Agent", version="0.1.0", lifespan=lifespan)
    app.state.context = context

    def _ctx(request: Request) -> AppContext:
        return request.app.state.context

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        ctx = _ctx(request)
        descriptors = await ctx.orchestrator.providers()
        return {
            "status": "ok",
            "available_providers": [item.id for item in descriptors if item.available],
            "knowledge_documents": len(ctx.index),
            "trace_count": len(ctx.traces.list_recent(limit=ctx.traces.max_records)),
        }

    @app.get("/providers")
    async def providers(request: Request, refresh: bool = False) -> dict[str, Any]:
        ctx = _ctx(request)
        descriptors = await ctx.orchestrator.providers(force_refresh=refresh)
        return {
            "items": [asdict(item) for item in descriptors],
            "stats": ctx.orchestrator.stats(),
        }

    @app.post("/providers/{provider_id}/test")
    async def test_provider(request: Request, provider_id: str) -> dict[str, Any]:
        return await _ctx(request).orchestrator.test_provider(provider_id)

    @app.get("/agents")
    def agents(request: Request) -> dict[str, Any]:
        return {
            "items": [
                profile.model_dump(exclude={"system_prompt"})
                for profile in _ctx(request).profiles.all()
            ]
        }

    @app.post("/chat")
    async def chat(request: Request, body: ChatRequest) -> dict[str, Any]:
        try:
            reply = await _ctx(request).pipeline.respond(
                body.message,
                user_id=body.user_id,
                session_id=body.session_id,
                agent_id=body.agent_id,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return asdict(reply)

    @app.get("/sessions/{session_id}")
    def session_detail(request: Request, session_id: str) -> dict[str, Any]:
        try:
            return _ctx(request).sessions.export_session(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.get("/users/{user_id}/sessions")
    def user_sessions(request: Request, user_id: str) -> dict[str, Any]:
        sessions = _ctx(request).sessions.get_user_sessions(user_id)
        return {
            "items": [
                {
                    "session_id": item.session_id,
                    "agent_id": item.agent_id,
                    "title": item.title,
                    "status": item.status,
                    "message_count": len(item.messages),
                    "last_activity": item.last_activity,
                }
                for item in sessions
            ]
        }

    @app.post("/sessions/archive")
    def archive_sessions(request: Request, days_inactive: int | None = None) -> dict[str, Any]:
        return {"archived": _ctx(request).sessions.archive_inactive_sessions(days_inactive)}

    @app.post("/knowledge")
    def add_knowledge(request: Request, body: KnowledgeRequest) -> dict[str, Any]:
        try:
            document_id = _ctx(request).knowledge.add_knowledge(
                body.content,
                title=body.title,
                category=body.category,
                source=body.source,
                tags=body.tags,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except RetrievalError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return {"id": document_id}

    @app.post("/knowledge/search")
    def search_knowledge(request: Request, body: KnowledgeSearchRequest) -> dict[str, Any]:
        knowledge = _ctx(request).knowledge
        try:
            if body.categories:
                results = knowledge.multi_category_search(body.query, body.categories, top_k=body.top_k)
            elif body.context:
                results = knowledge.contextual_search(body.query, body.context, top_k=body.top_k)
            else:
                results = knowledge.search(
                    body.query, top_k=body.top_k, threshold=body.threshold, category=body.category
                )
        except RetrievalError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return {
            "items": [
                {
                    "id": item.document.id,
                    "rank": item.rank,
                    "similarity": item.similarity,
                    "title": item.document.metadata.title,
                    "category": item.document.metadata.category,
                    "content": item.document.content,
                }
                for item in results
            ]
        }

    @app.get("/knowledge/stats")
    def knowledge_stats(request: Request) -> dict[str, Any]:
        return _ctx(request).knowledge.get_stats()

    @app.get("/knowledge/{document_id}")
    def knowledge_detail(request: Request, document_id: str) -> dict[str, Any]:
        document = _ctx(request).knowledge.get_knowledge(document_id)
        if document is None:
            raise HTTPException(status_code=404, detail=f"Document not found: {document_id}")
        data = asdict(document)
        data.pop("embedding")
        return data

    @app.get("/traces")
    def traces(request: Request, limit: int = 20) -> dict[str, Any]:
        records = [asdict(record) for record in _ctx(request).traces.list_recent(limit=limit)]
        return {"items": records}

    @app.get("/traces/{trace_id}")
    def trace_detail(request: Request, trace_id: str) -> dict[str, Any]:
        try:
            record = _ctx(request).traces.get(trace_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return asdict(record)

    @app.get("/metrics")
    def metrics(request: Request) -> dict[str, Any]:
        return _ctx(request).traces.summary()

    return app


app = create_app()
