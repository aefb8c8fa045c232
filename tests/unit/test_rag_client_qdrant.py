"""Unit tests for RAGClientQdrant: wire payloads and failure mapping via httpx.MockTransport."""

import httpx
import pytest

from shared.clients.rag.models.VectorPoint import VectorPayload, VectorPoint
from shared.clients.rag.qdrant.RAGClientQdrant import RAGClientQdrant
from shared.errors import ConfigurationError, IndexUnavailable
from shared.helper.HelperConfig import HelperConfig

BASE = "http://localhost:6333/collections/company_data"


def _point(point_id: str, index: int = 0) -> VectorPoint:
    return VectorPoint(
        id=point_id,
        vector=[0.1, 0.2, 0.3],
        payload=VectorPayload(source_id="doc-1", source_type="file", chunk_index=index, chunk_text="Acme sells robots"),
    )


async def _client(helper_config: HelperConfig, transport: httpx.MockTransport) -> RAGClientQdrant:
    client = RAGClientQdrant(helper_config=helper_config)
    await client.boot(transport=transport)
    return client


class TestCollectionLifecycle:
    @pytest.mark.asyncio
    async def test_creates_missing_collection(self, helper_config: HelperConfig, recording_transport) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/exists"):
                return httpx.Response(200, json={"result": {"exists": False}})
            return httpx.Response(200, json={"result": True})

        recorder = recording_transport(handler)
        client = await _client(helper_config, recorder.transport)

        assert await client.do_ensure_collection(1536, "Cosine") is True
        create = recorder.requests[-1]
        assert create.method == "PUT"
        assert str(create.url) == BASE
        assert recorder.json_body() == {
            "vectors": {"size": 1536, "distance": "Cosine"},
            "optimizers_config": {"default_segment_number": 2},
            "replication_factor": 1,
        }
        assert client.is_collection_ready()
        await client.close()

    @pytest.mark.asyncio
    async def test_existing_collection_with_other_size_is_configuration_error(self, helper_config: HelperConfig, recording_transport) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/exists"):
                return httpx.Response(200, json={"result": {"exists": True}})
            return httpx.Response(200, json={"result": {"status": "green", "points_count": 3, "config": {"params": {"vectors": {"size": 768, "distance": "Cosine"}}}}})

        client = await _client(helper_config, recording_transport(handler).transport)
        with pytest.raises(ConfigurationError):
            await client.do_ensure_collection(1536, "Cosine")

    @pytest.mark.asyncio
    async def test_upsert_ensures_collection_lazily(self, helper_config: HelperConfig, recording_transport) -> None:
        calls = {"exists": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/exists"):
                calls["exists"] += 1
                if calls["exists"] == 1:
                    return httpx.Response(503, text="starting")
                return httpx.Response(200, json={"result": {"exists": False}})
            return httpx.Response(200, json={"result": {"status": "completed"}})

        recorder = recording_transport(handler)
        client = await _client(helper_config, recorder.transport)
        with pytest.raises(IndexUnavailable):
            await client.do_ensure_collection(3, "Cosine")

        assert await client.do_upsert_points([_point("p1")]) == 1
        methods = [(request.method, request.url.path) for request in recorder.requests]
        assert ("PUT", "/collections/company_data") in methods
        assert methods[-1] == ("PUT", "/collections/company_data/points")


class TestPoints:
    @pytest.mark.asyncio
    async def test_upsert_payload(self, helper_config: HelperConfig, recording_transport) -> None:
        recorder = recording_transport(lambda request: httpx.Response(200, json={"result": {"status": "completed"}}))
        client = await _client(helper_config, recorder.transport)

        await client.do_upsert_points([_point("p1"), _point("p2", 1)])
        request = recorder.requests[-1]
        assert request.method == "PUT"
        assert request.url.params["wait"] == "true"
        body = recorder.json_body()
        assert [point["id"] for point in body["points"]] == ["p1", "p2"]
        assert body["points"][1]["payload"]["chunk_index"] == 1

    @pytest.mark.asyncio
    async def test_empty_upsert_sends_nothing(self, helper_config: HelperConfig, recording_transport) -> None:
        recorder = recording_transport(lambda request: httpx.Response(200, json={}))
        client = await _client(helper_config, recorder.transport)
        assert await client.do_upsert_points([]) == 0
        await client.do_delete_points([])
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_delete_points_and_clear(self, helper_config: HelperConfig, recording_transport) -> None:
        recorder = recording_transport(lambda request: httpx.Response(200, json={"result": {"status": "completed"}}))
        client = await _client(helper_config, recorder.transport)

        await client.do_delete_points(["p1", "p2"])
        assert recorder.requests[-1].url.path == "/collections/company_data/points/delete"
        assert recorder.json_body() == {"points": ["p1", "p2"]}

        await client.do_clear()
        assert recorder.json_body() == {"filter": {"must": []}}

    @pytest.mark.asyncio
    async def test_delete_and_clear_on_missing_collection_succeed(self, helper_config: HelperConfig, recording_transport) -> None:
        recorder = recording_transport(lambda request: httpx.Response(404, json={"status": {"error": "Not found: Collection `company_data` doesn't exist!"}}))
        client = await _client(helper_config, recorder.transport)

        await client.do_delete_points(["p1"])
        await client.do_clear()
        assert len(recorder.requests) == 2

    @pytest.mark.asyncio
    async def test_delete_server_error_is_index_unavailable(self, helper_config: HelperConfig, recording_transport) -> None:
        client = await _client(helper_config, recording_transport(lambda request: httpx.Response(500, text="boom")).transport)
        with pytest.raises(IndexUnavailable):
            await client.do_clear()
        with pytest.raises(IndexUnavailable):
            await client.do_delete_points(["p1"])

    @pytest.mark.asyncio
    async def test_search_filters_sorts_and_truncates(self, helper_config: HelperConfig, recording_transport) -> None:
        hits = [
            {"id": "a", "score": 0.75, "payload": {"chunk_text": "a"}},
            {"id": "b", "score": 0.95, "payload": {"chunk_text": "b"}},
            {"id": "c", "score": 0.5, "payload": {"chunk_text": "c"}},
            {"id": "d", "score": 0.85, "payload": {"chunk_text": "d"}},
        ]
        recorder = recording_transport(lambda request: httpx.Response(200, json={"result": hits}))
        client = await _client(helper_config, recorder.transport)

        result = await client.do_search([0.1, 0.2], top_k=2, score_threshold=0.7)
        assert [hit.id for hit in result] == ["b", "d"]
        assert recorder.json_body() == {"vector": [0.1, 0.2], "limit": 2, "score_threshold": 0.7, "with_payload": True}

    @pytest.mark.asyncio
    async def test_api_key_header(self, helper_config: HelperConfig, recording_transport, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RAG_QDRANT_API_KEY", "secret")
        recorder = recording_transport(lambda request: httpx.Response(200, json={"result": []}))
        client = await _client(helper_config, recorder.transport)
        await client.do_search([0.1], top_k=1, score_threshold=0.0)
        assert recorder.requests[-1].headers["api-key"] == "secret"


class TestInfoAndFailures:
    @pytest.mark.asyncio
    async def test_info_parses_counts(self, helper_config: HelperConfig, recording_transport) -> None:
        body = {"result": {"status": "green", "points_count": 12, "indexed_vectors_count": 10,
                           "config": {"params": {"vectors": {"size": 1536, "distance": "Cosine"}}}}}
        client = await _client(helper_config, recording_transport(lambda request: httpx.Response(200, json=body)).transport)
        info = await client.do_info()
        assert (info.exists, info.point_count, info.vector_count, info.vector_size) == (True, 12, 10, 1536)

    @pytest.mark.asyncio
    async def test_info_missing_collection(self, helper_config: HelperConfig, recording_transport) -> None:
        client = await _client(helper_config, recording_transport(lambda request: httpx.Response(404, json={})).transport)
        assert (await client.do_info()).exists is False

    @pytest.mark.asyncio
    async def test_connection_error_is_index_unavailable(self, helper_config: HelperConfig, recording_transport) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = await _client(helper_config, recording_transport(handler).transport)
        with pytest.raises(IndexUnavailable):
            await client.do_info()
        with pytest.raises(IndexUnavailable):
            await client.do_delete_points(["p1"])

    @pytest.mark.asyncio
    async def test_server_error_on_upsert_is_index_unavailable(self, helper_config: HelperConfig, recording_transport) -> None:
        client = await _client(helper_config, recording_transport(lambda request: httpx.Response(500, text="boom")).transport)
        with pytest.raises(IndexUnavailable):
            await client.do_upsert_points([_point("p1")])

    @pytest.mark.asyncio
    async def test_healthcheck(self, helper_config: HelperConfig, recording_transport) -> None:
        recorder = recording_transport(lambda request: httpx.Response(200, text="healthz check passed"))
        client = await _client(helper_config, recorder.transport)
        assert (await client.do_healthcheck()).status_code == 200
        assert recorder.requests[0].url.path == "/healthz"

    @pytest.mark.asyncio
    async def test_request_before_boot_raises(self, helper_config: HelperConfig) -> None:
        client = RAGClientQdrant(helper_config=helper_config)
        with pytest.raises(RuntimeError):
            await client.do_info()
