"""Pydantic models for RAG queries and content generation."""

from typing import Any

from pydantic import Field

from shared.models.base import ApiModel


class QueryRequest(ApiModel):
    """Incoming RAG query from the frontend."""

    query: str = Field(min_length=1)
    top_k: int = Field(default=5, ge=1, le=50)
    score_threshold: float = Field(default=0.7, ge=0.0, le=1.0)


class RetrievedContext(ApiModel):
    """A chunk retrieved at query time. Never persisted.

    Attributes:
        text:        The chunk text.
        score:       Similarity score in [0, 1].
        source_type: "profile", "file" or "url".
        source_ref:  Title, file name or URL to cite.
        source_id:   Id of the owning document or profile.
        chunk_index: Position of the chunk within its source.
    """

    text: str
    score: float
    source_type: str
    source_ref: str | None = None
    source_id: str | None = None
    chunk_index: int | None = None


class QueryResult(ApiModel):
    """Generated answer annotated with the context it was conditioned on.

    retrieval is "degraded" when the embedding provider or the vector index failed
    and the answer was generated without context.
    """

    query: str
    response: str
    context: list[RetrievedContext] = []
    retrieval: str = "ok"


class GenerateRequest(ApiModel):
    content_type: str = "articles"
    goals: str | list[str] | None = None


class ContentSuggestions(ApiModel):
    """Best-effort decoded generation output.

    success tells whether structured JSON could be recovered from the model output;
    otherwise data holds the raw-text fallback items.
    """

    success: bool
    content_type: str
    data: Any
    raw_response: str
    context: list[RetrievedContext] = []
