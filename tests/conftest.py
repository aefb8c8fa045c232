"""Shared pytest fixtures and in-memory backend fakes for the content RAG test suite."""

import json
import logging
import os
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

os.environ.setdefault("LOG_TO_FILE", "false")

import httpx
import pytest

from services.content_rag.CatalogStore import CatalogStore
from services.content_rag.ChunkExtractor import ChunkExtractor
from services.content_rag.DocumentCatalog import DocumentCatalog
from shared.clients.rag.models.Search import CollectionInfo, SearchHit
from shared.clients.rag.models.VectorPoint import VectorPoint
from shared.errors import IndexUnavailable, ProviderUnavailable
from shared.extractors.FileTextExtractor import FileTextExtractor
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@pytest.fixture
def logger() -> ColorLogger:
    return ColorLogger(logging.getLogger("content_rag.tests"))


@pytest.fixture
def helper_config(logger: ColorLogger) -> HelperConfig:
    return HelperConfig(logger=logger)


# ---------------------------------------------------------------------------
# Backend fakes
# ---------------------------------------------------------------------------


class FakeEmbedClient:
    """Deterministic embedder: one small vector per text, no network."""

    def __init__(self, dimension: int = 4) -> None:
        self.dimension = dimension
        self.fail = False
        self.calls: list[list[str]] = []

    def get_engine_name(self) -> str:
        return "fake"

    def get_vector_size(self) -> int:
        return self.dimension

    def get_distance(self) -> str:
        return "Cosine"

    async def do_embed(self, texts: list[str]) -> list[list[float]]:
        texts = list(texts)
        if not texts:
            return []
        self.calls.append(texts)
        if self.fail:
            raise ProviderUnavailable("embedding provider down")
        return [[float(len(text)), 1.0, 0.0, 0.0][: self.dimension] for text in texts]


class FakeRAGClient:
    """In-memory vector index with switchable failures."""

    def __init__(self) -> None:
        self.points: dict[str, VectorPoint] = {}
        self.search_hits: list[SearchHit] | None = None
        self.fail_upsert = False
        self.fail_delete = False
        self.fail_clear = False
        self.fail_info = False
        self.fail_search = False
        self.upserts: list[list[str]] = []
        self.deletes: list[list[str]] = []
        self.clears = 0

    def get_engine_name(self) -> str:
        return "fake"

    def get_collection_name(self) -> str:
        return "company_data"

    def mutation_count(self) -> int:
        return len(self.upserts) + len(self.deletes) + self.clears

    async def do_upsert_points(self, points: list[VectorPoint]) -> int:
        if not points:
            return 0
        self.upserts.append([point.id for point in points])
        if self.fail_upsert:
            raise IndexUnavailable("index down")
        for point in points:
            self.points[point.id] = point
        return len(points)

    async def do_delete_points(self, point_ids: list[str]) -> None:
        if not point_ids:
            return
        self.deletes.append(list(point_ids))
        if self.fail_delete:
            raise IndexUnavailable("index down")
        for point_id in point_ids:
            self.points.pop(point_id, None)

    async def do_clear(self) -> None:
        self.clears += 1
        if self.fail_clear:
            raise IndexUnavailable("index down")
        self.points = {}

    async def do_search(self, vector: list[float], top_k: int = 5, score_threshold: float = 0.7) -> list[SearchHit]:
        if self.fail_search:
            raise IndexUnavailable("index down")
        if self.search_hits is not None:
            return self.search_hits[:top_k]
        return [
            SearchHit(id=point.id, score=0.9, payload=point.payload.model_dump())
            for point in list(self.points.values())[:top_k]
        ]

    async def do_info(self) -> CollectionInfo:
        if self.fail_info:
            raise IndexUnavailable("index down")
        return CollectionInfo(status="green", point_count=len(self.points), vector_count=len(self.points), vector_size=4, distance="Cosine")


@pytest.fixture
def embed_client() -> FakeEmbedClient:
    return FakeEmbedClient()


@pytest.fixture
def rag_client() -> FakeRAGClient:
    return FakeRAGClient()


@pytest.fixture
def llm_gateway() -> MagicMock:
    gateway = MagicMock()
    gateway.do_generate = AsyncMock(return_value="generated answer")
    gateway.get_active_engine.return_value = "openai"
    gateway.get_engines.return_value = ["openai", "foundation"]
    return gateway


@pytest.fixture
def url_extractor() -> MagicMock:
    extractor = MagicMock()
    extractor.extract = AsyncMock()
    return extractor


@pytest.fixture
def store() -> CatalogStore:
    return CatalogStore()


@pytest.fixture
def catalog(
    helper_config: HelperConfig,
    store: CatalogStore,
    embed_client: FakeEmbedClient,
    rag_client: FakeRAGClient,
    url_extractor: MagicMock,
) -> DocumentCatalog:
    return DocumentCatalog(
        helper_config=helper_config,
        store=store,
        chunk_extractor=ChunkExtractor(helper_config=helper_config, chunk_size=200, overlap=20),
        embed_client=embed_client,
        rag_client=rag_client,
        file_extractor=FileTextExtractor(helper_config=helper_config),
        url_extractor=url_extractor,
    )


@pytest.fixture
def acme_profile() -> dict[str, Any]:
    return {"description": "Acme sells robots", "goals": ["grow"], "targets": ["SMBs"]}


# ---------------------------------------------------------------------------
# Wire-level helpers
# ---------------------------------------------------------------------------


class RecordingTransport:
    """Builds an httpx.MockTransport and records every request it serves."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []
        self._handler = handler
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    def json_body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


@pytest.fixture
def recording_transport() -> Callable[[Callable[[httpx.Request], httpx.Response]], RecordingTransport]:
    return RecordingTransport
