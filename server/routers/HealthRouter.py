from fastapi import APIRouter, Request

from server.models.responses import HealthStatus, SuccessResponse
from shared.errors import BackendUnavailable

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health(request: Request) -> SuccessResponse:
    """Report the active generation engine, vector index reachability and app version."""
    state = request.app.state
    try:
        await state.rag_client.do_info()
        qdrant_status = "connected"
    except BackendUnavailable as e:
        state.logging.warning("Health check: vector index not reachable: %s", e.message)
        qdrant_status = "disconnected"

    status = HealthStatus(
        status="ok" if qdrant_status == "connected" else "degraded",
        version=state.app_version,
        llm_engine=state.llm_gateway.get_active_engine(),
        llm_engines=state.llm_gateway.get_engines(),
        embed_engine=state.embed_client.get_engine_name(),
        rag_engine=state.rag_client.get_engine_name(),
        qdrant_status=qdrant_status,
    )
    return SuccessResponse(data=status.to_api())
