from fastapi.testclient import TestClient

from venture_agent.api.main import create_app
from venture_agent.config import Settings
from venture_agent.context import build_context


def test_api_chat_knowledge_trace_metrics(make_adapter) -> None:
    context = build_context(
        Settings(log_level="WARNING"),
        adapters=[make_adapter("primary", priority=90), make_adapter("offline", available=False)],
    )

    with TestClient(create_app(context)) as client:
        health_resp = client.get("/health")
        assert health_resp.status_code == 200
        assert health_resp.json()["available_providers"] == ["primary", "fallback"]
        assert health_resp.json()["knowledge_documents"] == 10

        providers_resp = client.get("/providers")
        assert providers_resp.status_code == 200
        by_id = {item["id"]: item for item in providers_resp.json()["items"]}
        assert not by_id["offline"]["available"]

        add_resp = client.post(
            "/knowledge",
            json={
                "content": "Our accelerator cohort accepts robotics founders every spring.",
                "title": "Accelerator Cohorts",
                "category": "programs",
                "tags": ["accelerator"],
            },
        )
        assert add_resp.status_code == 200
        doc_id = add_resp.json()["id"]
        assert client.get(f"/knowledge/{doc_id}").json()["metadata"]["category"] == "programs"

        search_resp = client.post(
            "/knowledge/search",
            json={"query": "accepts robotics founders every spring", "top_k": 5, "threshold": 0.1},
        )
        assert search_resp.status_code == 200
        assert search_resp.json()["items"][0]["id"] == doc_id

        stats_resp = client.get("/knowledge/stats")
        assert stats_resp.json()["total_documents"] == 11
        assert stats_resp.json()["categories"]["programs"] == 1

        chat_resp = client.post(
            "/chat",
            json={"message": "When does the accelerator cohort start?", "user_id": "founder-9"},
        )
        assert chat_resp.status_code == 200
        payload = chat_resp.json()
        assert payload["provider"] == "primary"
        assert payload["trace_id"]

        session_resp = client.get(f"/sessions/{payload['session_id']}")
        assert session_resp.status_code == 200
        assert session_resp.json()["message_count"] == 2

        trace_resp = client.get(f"/traces/{payload['trace_id']}")
        assert trace_resp.status_code == 200
        assert trace_resp.json()["provider"] == "primary"
        assert client.get("/traces", params={"limit": 0}).json()["items"] == []
        assert len(client.get("/traces").json()["items"]) == 1

        metrics_resp = client.get("/metrics")
        assert metrics_resp.status_code == 200
        assert metrics_resp.json()["total_requests"] == 1
        assert metrics_resp.json()["requests_by_provider"] == {"primary": 1}


def test_api_error_mapping(make_adapter) -> None:
    context = build_context(Settings(seed_knowledge=False, log_level="WARNING"), adapters=[make_adapter("primary")])

    with TestClient(create_app(context)) as client:
        assert client.post("/chat", json={"message": "   "}).status_code == 400
        assert client.post("/chat", json={"message": "hi", "agent_id": "nobody"}).status_code == 400
        assert client.post("/chat", json={"message": ""}).status_code == 422
        assert client.get("/sessions/missing").status_code == 404
        assert client.get("/traces/missing").status_code == 404
        assert client.get("/knowledge/missing").status_code == 404
        assert client.post(
            "/knowledge", json={"content": "   ", "title": "Blank", "category": "misc"}
        ).status_code == 400
        assert client.post("/providers/missing/test").json()["success"] is False
