"""Pydantic models for the document catalog.

Hierarchy:
  CompanyProfile  - singleton profile of the operating company.
  Document        - one ingested file or URL.
  Chunk           - bounded slice of a profile's or document's text.
  IngestResult    - per-batch outcome of file or URL ingestion.
  CatalogStats    - read-only snapshot of catalog and index counts.
  FileUpload      - raw uploaded file handed to ingestion.
"""

from typing import Literal

from pydantic import ConfigDict, Field

from shared.models.base import ApiModel


class CompanyProfile(ApiModel):
    """The company profile. Unknown input fields (e.g. a company name) are kept as-is.

    point_ids holds the ids of the vector points last upserted for this profile and
    is never serialised to the API.
    """

    model_config = ConfigDict(extra="allow")

    description: str
    goals: list[str]
    targets: list[str]
    products: list[str] = []
    industry: str | None = None
    values: list[str] = []

    id: str
    uploaded_at: str
    updated_at: str | None = None
    vector_count: int = 0
    point_ids: list[str] = Field(default=[], exclude=True)


class Document(ApiModel):
    """One ingested file or URL.

    A document with error set was never embedded and is only reported back in the
    ingestion result, never stored in the catalog.
    """

    id: str
    source_type: Literal["file", "url"]
    title: str | None = None
    file_name: str | None = None
    url: str | None = None
    extracted_text: str = ""
    word_count: int = 0
    size_bytes: int | None = None
    timestamp: str
    chunk_count: int = 0
    vector_count: int = 0
    error: str | None = None
    point_ids: list[str] = Field(default=[], exclude=True)

    def get_display_name(self) -> str:
        return self.title or self.file_name or self.url or self.id


class Chunk(ApiModel):
    """A bounded slice of source text, the unit of embedding and retrieval.

    Attributes:
        id:             Deterministic point id derived from source_id and sequence_index.
        source_id:      Id of the owning Document or CompanyProfile (lookup only).
        text:           The chunk text.
        sequence_index: Zero-based position in the source text.
        metadata:       Citation fields (source_type, title, file_name, url, ...).
    """

    id: str
    source_id: str
    text: str
    sequence_index: int
    metadata: dict = {}


class ExtractedText(ApiModel):
    """Plain text produced by a file or URL extractor."""

    text: str
    title: str | None = None


class FailedItem(ApiModel):
    file_name: str | None = None
    url: str | None = None
    error: str


class IngestResult(ApiModel):
    """Outcome of one file or URL batch.

    indexed is False when the batch's embedding or upsert failed and the documents
    were stored without vectors.
    """

    message: str
    documents: list[Document] = []
    failed: list[FailedItem] = []
    successful_count: int = 0
    failed_count: int = 0
    total_chunks: int = 0
    vector_count: int = 0
    indexed: bool = True


class ProfileResult(ApiModel):
    message: str
    vector_count: int
    indexed: bool
    company_data: CompanyProfile


class CatalogStats(ApiModel):
    has_company_data: bool
    has_documents: bool
    document_count: int
    total_words: int
    vector_count: int
    collection_size: int
    last_upload: str | None = None
    last_update: str | None = None
    pending_retractions: int = 0
    qdrant_status: Literal["connected", "disconnected"]


class FileUpload(ApiModel):
    """A raw uploaded file handed over by the HTTP layer."""

    file_name: str
    content: bytes
