from fastapi import APIRouter, Request

from server.models.responses import SuccessResponse
from shared.models.search import GenerateRequest, QueryRequest

router = APIRouter(prefix="/api/content", tags=["content"])


@router.post("/rag")
async def rag_query(request: Request, body: QueryRequest) -> SuccessResponse:
    """Answer a free-text question grounded in the indexed company knowledge.

    Args:
        request (Request): FastAPI request (provides app.state.query_engine).
        body (QueryRequest): JSON body with query, topK and scoreThreshold.

    Returns:
        SuccessResponse: The generated response and the context it was conditioned on.
    """
    request.app.state.logging.info("RAG query received: %r", body.query[:80])
    result = await request.app.state.query_engine.query(
        body.query, top_k=body.top_k, score_threshold=body.score_threshold
    )
    return SuccessResponse(data=result.to_api())


@router.post("/generate")
async def generate_content(request: Request, body: GenerateRequest) -> SuccessResponse:
    suggestions = await request.app.state.content_generator.generate_suggestions(body.content_type, body.goals)
    return SuccessResponse(data=suggestions.to_api())


@router.post("/analyze")
async def analyze_company(request: Request) -> SuccessResponse:
    analysis = await request.app.state.content_generator.analyze_profile()
    return SuccessResponse(data=analysis)
