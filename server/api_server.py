"""FastAPI application entry point for the content RAG backend."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from services.content_rag.CatalogStore import CatalogStore
from services.content_rag.ChunkExtractor import ChunkExtractor
from services.content_rag.ContentGenerator import ContentGenerator
from services.content_rag.DocumentCatalog import DocumentCatalog
from services.content_rag.RAGQueryEngine import RAGQueryEngine
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.llm.LLMGateway import LLMGateway
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.errors import BackendUnavailable, ContentRagError, ValidationError
from shared.extractors.FileTextExtractor import FileTextExtractor
from shared.extractors.UrlTextExtractor import UrlTextExtractor
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from server.routers.ContentRouter import router as content_router
from server.routers.DataRouter import router as data_router
from server.routers.HealthRouter import router as health_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


def wire_services(
    app: FastAPI,
    helper_config: HelperConfig,
    rag_client: RAGClientInterface,
    embed_client: EmbedClientInterface,
    llm_gateway: LLMGateway,
    file_extractor: FileTextExtractor,
    url_extractor: UrlTextExtractor,
    store: CatalogStore | None = None,
) -> None:
    """Build the catalog, query engine and content generator and attach everything to app.state.

    The store's lifetime is the lifetime of the app; pass one in to share or inspect it.
    """
    app.state.logging = helper_config.get_logger()
    app.state.helper_config = helper_config
    app.state.app_version = app_version
    app.state.rag_client = rag_client
    app.state.embed_client = embed_client
    app.state.llm_gateway = llm_gateway
    app.state.url_extractor = url_extractor
    app.state.store = store if store is not None else CatalogStore()

    app.state.catalog = DocumentCatalog(
        helper_config=helper_config,
        store=app.state.store,
        chunk_extractor=ChunkExtractor(helper_config=helper_config),
        embed_client=embed_client,
        rag_client=rag_client,
        file_extractor=file_extractor,
        url_extractor=url_extractor,
    )
    app.state.query_engine = RAGQueryEngine(
        helper_config=helper_config,
        embed_client=embed_client,
        rag_client=rag_client,
        llm_gateway=llm_gateway,
    )
    app.state.content_generator = ContentGenerator(
        helper_config=helper_config,
        catalog=app.state.catalog,
        query_engine=app.state.query_engine,
        llm_gateway=llm_gateway,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    helper_config = HelperConfig(logger=logging)

    rag_client = RAGClientManager(helper_config=helper_config).get_client()
    embed_client = EmbedClientManager(helper_config=helper_config).get_client()
    llm_gateway = LLMGateway(helper_config=helper_config, clients=LLMClientManager(helper_config=helper_config).get_clients())
    file_extractor = FileTextExtractor(helper_config=helper_config)
    url_extractor = UrlTextExtractor(helper_config=helper_config)

    logging.info("Booting all clients...")
    await rag_client.boot()
    await embed_client.boot()
    await llm_gateway.boot()
    await url_extractor.boot()
    logging.info("All clients booted successfully.")

    wire_services(app, helper_config, rag_client, embed_client, llm_gateway, file_extractor, url_extractor)

    await check_connections(rag_client, embed_client, llm_gateway)

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    await rag_client.close()
    await embed_client.close()
    await llm_gateway.close()
    await url_extractor.close()
    logging.info("All clients closed.")


async def check_connections(
    rag_client: RAGClientInterface,
    embed_client: EmbedClientInterface,
    llm_gateway: LLMGateway,
) -> None:
    """Validate configuration and connectivity of all backends on startup.

    Unreachable backends are non-fatal: ingestion degrades to storing text without
    vectors and the collection is created lazily on the next upsert.

    Raises:
        ConfigurationError: If the embedding model and the collection disagree on the vector size.
    """
    try:
        created = await rag_client.do_ensure_collection(embed_client.get_vector_size(), embed_client.get_distance())
        if created:
            logging.info("Vector collection '%s' created.", rag_client.get_collection_name())
    except BackendUnavailable as e:
        logging.warning("Vector index '%s' is not reachable: %s. Indexing will be retried lazily.", rag_client.get_engine_name(), e.message)

    try:
        await embed_client.do_validate_dimension()
    except BackendUnavailable as e:
        logging.warning("Embedding provider '%s' is not reachable: %s. Documents will be stored without vectors.", embed_client.get_engine_name(), e.message)

    if await llm_gateway.do_select_client() is None:
        logging.warning("No generation engine is reachable. Queries will fail until one recovers.")


app = FastAPI(
    title="content_rag",
    description=(
        "Backend for a content-generation assistant. Company profile, files and web links are "
        "chunked, embedded and indexed in a vector database; questions and content suggestions "
        "are answered by an LLM grounded in that knowledge."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(data_router)
app.include_router(content_router)
app.include_router(health_router)


##########################################
############ ERROR HANDLERS ##############
##########################################

@app.exception_handler(ContentRagError)
async def handle_content_rag_error(request: Request, exc: ContentRagError) -> JSONResponse:
    if exc.status_code >= 500:
        logging.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    else:
        logging.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(part) for part in error["loc"] if part != "body") for error in exc.errors()]
    details = [f"{field or 'body'}: {error['msg']}" for field, error in zip(fields, exc.errors())]
    error = ValidationError("Invalid request", details=details, fields=fields)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logging.error("%s %s failed unexpectedly: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "details": str(exc)},
    )


# Server Start
if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting content_rag API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
