"""Integration tests verifying overlapping requests on one event loop."""

from __future__ import annotations

import asyncio

import pytest

httpx = pytest.importorskip("httpx")

from scenariolab.services.app import create_app
from scenariolab.services.models.advice import AdviceProviderName
from scenariolab.services.provider_gateway import SimulatedProvider

pytestmark = pytest.mark.anyio("asyncio")

OWNER = {"x-user-id": "writer-1"}


@pytest.fixture()
def anyio_backend() -> str:
    """Ensure AnyIO uses the asyncio event loop backend."""

    return "asyncio"


async def test_overlapping_updates_both_land(async_client: httpx.AsyncClient) -> None:
    created = await async_client.post(
        "/api/documents",
        json={"title": "Pilot", "authorName": "Ana", "settings": {"lineLength": 20, "pageCount": 5}},
        headers=OWNER,
    )
    document_id = created.json()["id"]

    responses = await asyncio.gather(
        async_client.patch(f"/api/documents/{document_id}", json={"synopsis": "one"}, headers=OWNER),
        async_client.patch(f"/api/documents/{document_id}", json={"content": "two"}, headers=OWNER),
    )

    assert [response.status_code for response in responses] == [200, 200]
    assert sorted(response.json()["version"] for response in responses) == [2, 3]
    final = (await async_client.get(f"/api/documents/{document_id}", headers=OWNER)).json()
    assert final["version"] == 3
    assert (final["synopsis"], final["content"]) == ("one", "two")


async def test_slow_advice_does_not_block_health(service_settings, provider_credentials) -> None:
    slow = {name: SimulatedProvider(name, latency_seconds=0.3) for name in AdviceProviderName}
    app = create_app(service_settings, credentials=provider_credentials, providers=slow)
    transport = httpx.ASGITransport(app=app)

    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        advice_task = asyncio.create_task(
            client.post(
                "/api/advice/generate",
                json={"documentId": "doc_12345678", "content": "INT. DINER"},
                headers=OWNER,
            )
        )
        await asyncio.sleep(0.05)
        assert not advice_task.done()

        health = await client.get("/health")
        assert health.status_code == 200
        assert not advice_task.done()

        advice = await advice_task

    assert advice.status_code == 200
    assert advice.json()["panelA"]["provider"] == "gemini"
