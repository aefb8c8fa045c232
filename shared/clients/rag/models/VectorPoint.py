"""VectorPoint models: what the catalog writes into and reads back from a RAG backend."""

from pydantic import BaseModel


class VectorPayload(BaseModel):
    """Metadata stored alongside each vector, mirroring the chunk it was built from.

    Attributes:
        source_id:    Id of the owning Document or CompanyProfile (lookup only).
        source_type:  "profile", "file" or "url".
        chunk_index:  Zero-based position of the chunk within its source text.
        chunk_text:   Raw text content of the chunk.
        title:        Human-readable title used for citations.
        file_name:    Original file name for file sources.
        url:          Source URL for url sources.
        created:      ISO-8601 timestamp of the ingest that produced the chunk.
    """

    source_id: str
    source_type: str
    chunk_index: int
    chunk_text: str
    title: str | None = None
    file_name: str | None = None
    url: str | None = None
    created: str | None = None


class VectorPoint(BaseModel):
    """A single (id, vector, payload) point of the vector collection."""

    id: str
    vector: list[float]
    payload: VectorPayload
