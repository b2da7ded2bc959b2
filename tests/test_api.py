"""HTTP surface tests."""
import json

import pytest
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from seqthink.main import create_app
from tests.fakes import FakeBackend


@pytest.fixture
def app(templates, pacing_factory, clock):
    backends = [
        FakeBackend("gemini", "Gemini", default="Gemini thought", clock=clock),
        FakeBackend("deepseek", "DeepSeek", default="DeepSeek thought", clock=clock),
    ]
    return create_app(templates=templates, backends=backends, pacing_factory=pacing_factory)


@pytest.fixture
async def client(app):
    async with LifespanManager(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client


def payload(**overrides):
    body = {
        "currentThinking": "Plan a database migration",
        "thoughtNumber": 1,
        "totalThoughts": 2,
        "nextThoughtNeeded": True,
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["backends"] == ["gemini", "deepseek"]


@pytest.mark.asyncio
async def test_tools_list(client):
    response = await client.get("/v1/tools")
    assert response.status_code == 200
    names = [tool["name"] for tool in response.json()["tools"]]
    assert names == [
        "gemini-sequential-thinking",
        "gemini-thinker",
        "deepseek-sequential-thinking",
        "deepseek-thinker",
        "combined-sequential-thinking",
    ]
    assert "inputSchema" in response.json()["tools"][0]


@pytest.mark.asyncio
async def test_call_tool(client):
    response = await client.post("/v1/tools/deepseek-sequential-thinking", json=payload())
    assert response.status_code == 200
    data = response.json()
    assert data["isError"] is False
    assert data["content"][0]["type"] == "text"
    assert json.loads(data["content"][0]["text"])["thought"] == "DeepSeek thought"


@pytest.mark.asyncio
async def test_call_combined_tool(client):
    response = await client.post("/v1/tools/combined-sequential-thinking", json=payload(modelType="all"))
    data = response.json()
    assert data["isError"] is False
    assert [block["text"].splitlines()[0] for block in data["content"]] == [
        "=== GEMINI (THOUGHT #1) ===",
        "=== DEEPSEEK (THOUGHT #1) ===",
    ]


@pytest.mark.asyncio
async def test_call_thinker_tool(client):
    response = await client.post(
        "/v1/tools/gemini-thinker",
        json={"originPrompt": "Compare REST and gRPC", "mode": "compare_contrast"},
    )
    assert response.status_code == 200
    assert response.json() == {
        "content": [{"type": "text", "text": "Gemini thought"}],
        "isError": False,
    }


@pytest.mark.asyncio
async def test_tool_errors_are_reported_in_body(client):
    unknown = await client.post("/v1/tools/nope", json=payload())
    assert unknown.status_code == 200
    assert unknown.json() == {
        "content": [{"type": "text", "text": "Unknown tool: nope"}],
        "isError": True,
    }

    invalid = await client.post("/v1/tools/gemini-sequential-thinking", json={"thoughtNumber": 1})
    assert invalid.json()["isError"] is True
    assert invalid.json()["content"][0]["text"].startswith("Invalid arguments: ")


@pytest.mark.asyncio
async def test_reset_session(client):
    await client.post("/v1/tools/gemini-sequential-thinking", json=payload())

    response = await client.delete("/v1/tools/gemini-sequential-thinking/session")
    assert response.status_code == 200
    assert response.json() == {"status": "reset", "tool": "gemini-sequential-thinking"}

    again = await client.post("/v1/tools/gemini-sequential-thinking", json=payload())
    assert again.json()["isError"] is False

    missing = await client.delete("/v1/tools/nope/session")
    assert missing.status_code == 404
