"""Unit tests for embedding clients: OpenAI-compatible and Ollama."""

import json

import httpx
import pytest

from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.embed.ollama.EmbedClientOllama import EmbedClientOllama
from shared.clients.embed.openai.EmbedClientOpenai import EmbedClientOpenai
from shared.errors import ConfigurationError, ProviderUnavailable
from shared.helper.HelperConfig import HelperConfig


def _openai_body(vectors: list[list[float]], reverse: bool = False) -> dict:
    data = [{"object": "embedding", "index": i, "embedding": vector} for i, vector in enumerate(vectors)]
    return {"data": list(reversed(data)) if reverse else data}


class TestOpenAIEmbedClient:
    @pytest.mark.asyncio
    async def test_empty_input_makes_no_call(self, helper_config: HelperConfig, recording_transport) -> None:
        recorder = recording_transport(lambda request: httpx.Response(200, json=_openai_body([])))
        client = EmbedClientOpenai(helper_config=helper_config)
        await client.boot(transport=recorder.transport)

        assert await client.do_embed([]) == []
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_preserves_input_order(self, helper_config: HelperConfig, recording_transport) -> None:
        recorder = recording_transport(lambda request: httpx.Response(200, json=_openai_body([[1.0], [2.0], [3.0]], reverse=True)))
        client = EmbedClientOpenai(helper_config=helper_config)
        await client.boot(transport=recorder.transport)

        assert await client.do_embed(["a", "b", "c"]) == [[1.0], [2.0], [3.0]]
        request = recorder.requests[0]
        assert request.url.path.endswith("/embeddings")
        assert recorder.json_body() == {"model": "text-embedding-3-small", "input": ["a", "b", "c"]}

    @pytest.mark.asyncio
    async def test_batches_large_inputs(self, helper_config: HelperConfig, recording_transport, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMBED_BATCH_SIZE", "2")

        def handler(request: httpx.Request) -> httpx.Response:
            count = len(json.loads(request.content)["input"])
            return httpx.Response(200, json=_openai_body([[float(i)] for i in range(count)]))

        recorder = recording_transport(handler)
        client = EmbedClientOpenai(helper_config=helper_config)
        await client.boot(transport=recorder.transport)

        vectors = await client.do_embed(["a", "b", "c", "d", "e"])
        assert len(vectors) == 5
        assert len(recorder.requests) == 3

    @pytest.mark.asyncio
    async def test_count_mismatch_is_provider_unavailable(self, helper_config: HelperConfig, recording_transport) -> None:
        recorder = recording_transport(lambda request: httpx.Response(200, json=_openai_body([[1.0]])))
        client = EmbedClientOpenai(helper_config=helper_config)
        await client.boot(transport=recorder.transport)
        with pytest.raises(ProviderUnavailable):
            await client.do_embed(["a", "b"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{"data": [[0.1, 0.2]]}, {"data": [{"index": 0}]}, {"data": None}, {"unexpected": True}, ["not", "an", "object"]],
    )
    async def test_malformed_body_is_provider_unavailable(self, helper_config: HelperConfig, recording_transport, body: object) -> None:
        recorder = recording_transport(lambda request: httpx.Response(200, json=body))
        client = EmbedClientOpenai(helper_config=helper_config)
        await client.boot(transport=recorder.transport)
        with pytest.raises(ProviderUnavailable):
            await client.do_embed(["a"])

    @pytest.mark.asyncio
    async def test_http_error_is_provider_unavailable(self, helper_config: HelperConfig, recording_transport) -> None:
        recorder = recording_transport(lambda request: httpx.Response(429, text="rate limited"))
        client = EmbedClientOpenai(helper_config=helper_config)
        await client.boot(transport=recorder.transport)
        with pytest.raises(ProviderUnavailable):
            await client.do_embed(["a"])

    @pytest.mark.asyncio
    async def test_dimension_validation(self, helper_config: HelperConfig, recording_transport, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMBED_DIMENSION", "3")
        recorder = recording_transport(lambda request: httpx.Response(200, json=_openai_body([[0.1, 0.2, 0.3]])))
        client = EmbedClientOpenai(helper_config=helper_config)
        await client.boot(transport=recorder.transport)
        assert await client.do_validate_dimension() == 3

        monkeypatch.setenv("EMBED_DIMENSION", "1536")
        mismatched = EmbedClientOpenai(helper_config=helper_config)
        await mismatched.boot(transport=recorder.transport)
        with pytest.raises(ConfigurationError):
            await mismatched.do_validate_dimension()


class TestOllamaEmbedClient:
    @pytest.mark.asyncio
    async def test_embed(self, helper_config: HelperConfig, recording_transport) -> None:
        recorder = recording_transport(lambda request: httpx.Response(200, json={"embeddings": [[0.5, 0.5], [0.1, 0.9]]}))
        client = EmbedClientOllama(helper_config=helper_config)
        await client.boot(transport=recorder.transport)

        assert await client.do_embed(["a", "b"]) == [[0.5, 0.5], [0.1, 0.9]]
        assert recorder.requests[0].url.path == "/api/embed"
        assert recorder.json_body()["model"] == "nomic-embed-text"


class TestEmbedClientManager:
    def test_default_engine_is_openai(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("EMBED_ENGINE", raising=False)
        assert isinstance(EmbedClientManager(helper_config=helper_config).get_client(), EmbedClientOpenai)

    def test_selects_configured_engine(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMBED_ENGINE", "ollama")
        assert isinstance(EmbedClientManager(helper_config=helper_config).get_client(), EmbedClientOllama)

    def test_unknown_engine_raises(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMBED_ENGINE", "carrier-pigeon")
        with pytest.raises(ValueError, match="Unsupported"):
            EmbedClientManager(helper_config=helper_config)
