from typing import Any

from pydantic import BaseModel

from shared.models.base import ApiModel


class SuccessResponse(BaseModel):
    """Envelope of every successful API response. Failures use ContentRagError.to_dict()."""

    success: bool = True
    data: Any = None
    metadata: dict[str, Any] | None = None


class HealthStatus(ApiModel):
    status: str
    version: str
    llm_engine: str | None = None
    llm_engines: list[str] = []
    embed_engine: str
    rag_engine: str
    qdrant_status: str
