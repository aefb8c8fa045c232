from pydantic import BaseModel


class SearchHit(BaseModel):
    """One similarity search result, as returned by the RAG backend.

    Attributes:
        id:      Point id.
        score:   Similarity score, higher is closer.
        payload: Raw payload dict stored with the point.
    """

    id: str
    score: float
    payload: dict = {}


class CollectionInfo(BaseModel):
    """Introspection snapshot of the collection.

    Attributes:
        exists:       False when the backend is reachable but the collection is missing.
        status:       Backend status string (e.g. "green").
        point_count:  Number of points stored.
        vector_count: Number of vectors stored (equals point_count for single-vector collections).
        vector_size:  Configured dimensionality, if known.
        distance:     Configured distance metric, if known.
    """

    exists: bool = True
    status: str | None = None
    point_count: int = 0
    vector_count: int = 0
    vector_size: int | None = None
    distance: str | None = None
