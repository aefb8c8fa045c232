"""Document catalog: the authoritative record of the company profile and ingested documents.

Keeps the in-memory catalog and the external vector index eventually consistent:

- Text is never lost because of the index. If embedding or upserting fails, the
  profile or documents are stored with vector_count=0 and the operation reports
  indexed=False instead of failing.
- Every profile and document remembers the point ids last upserted for it, and
  exactly those ids are deleted on update or removal.
- Point ids whose deletion failed, and ids of an upsert whose outcome is unknown,
  are queued as pending retractions and deleted before the next index mutation.

There is no lock around mutations: concurrent writers race with last-write-wins.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Any

import pytz

from services.content_rag.CatalogStore import CatalogStore
from services.content_rag.ChunkExtractor import ChunkExtractor
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.VectorPoint import VectorPayload, VectorPoint
from shared.errors import BackendUnavailable, ExtractionFailed, InvalidUrl, NotFoundError, UnsupportedType, ValidationError
from shared.extractors.FileTextExtractor import FileTextExtractor
from shared.extractors.UrlTextExtractor import UrlTextExtractor, validate_url
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import (
    CatalogStats,
    Chunk,
    CompanyProfile,
    Document,
    FailedItem,
    FileUpload,
    IngestResult,
    ProfileResult,
)

REQUIRED_PROFILE_FIELDS = ("description", "goals", "targets")
ARRAY_PROFILE_FIELDS = ("goals", "targets", "products", "values")
# server-managed keys a client cannot set
_RESERVED_PROFILE_KEYS = {"id", "uploaded_at", "uploadedAt", "updated_at", "updatedAt", "vector_count", "vectorCount", "point_ids", "pointIds"}


def _now() -> str:
    return datetime.now(pytz.utc).isoformat()


def validate_profile(data: Any) -> tuple[list[str], list[str]]:
    """Check the shape of raw profile data.

    Returns:
        tuple[list[str], list[str]]: Violated field names and the matching error messages.
            Both are empty when the data is valid.
    """
    if not isinstance(data, dict):
        return ["companyData"], ["Company data must be an object"]

    fields: list[str] = []
    errors: list[str] = []
    for field in REQUIRED_PROFILE_FIELDS:
        if not data.get(field):
            fields.append(field)
            errors.append(f"Missing required field: {field}")

    if data.get("description") and not isinstance(data["description"], str):
        fields.append("description")
        errors.append("Description must be a string")

    for field in ARRAY_PROFILE_FIELDS:
        value = data.get(field)
        if value is not None and not isinstance(value, list):
            fields.append(field)
            errors.append(f"{field.capitalize()} must be an array")

    return fields, errors


class DocumentCatalog:
    def __init__(
        self,
        helper_config: HelperConfig,
        store: CatalogStore,
        chunk_extractor: ChunkExtractor,
        embed_client: EmbedClientInterface,
        rag_client: RAGClientInterface,
        file_extractor: FileTextExtractor,
        url_extractor: UrlTextExtractor,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store
        self._chunker = chunk_extractor
        self._embed = embed_client
        self._rag = rag_client
        self._files = file_extractor
        self._urls = url_extractor

    ##########################################
    ################ PROFILE #################
    ##########################################

    def get_profile(self) -> CompanyProfile:
        """
        Raises:
            NotFoundError: If no profile has been uploaded.
        """
        if self._store.profile is None:
            raise NotFoundError("No company data found")
        return self._store.profile

    async def upload_profile(self, data: dict) -> ProfileResult:
        """Validate, store and index a new company profile, replacing any previous one wholesale.

        Raises:
            ValidationError: If required fields are missing or array fields are not arrays.
                The stored profile is left untouched.
        """
        self._validate_or_raise(data)
        profile = self._build_profile(data, profile_id=str(uuid.uuid4()), uploaded_at=_now())

        await self._flush_retractions()
        previous = self._store.profile
        if previous is not None:
            await self._retract(previous.point_ids)

        indexed = await self._index_profile(profile)
        self._store.profile = profile
        self.logging.info("Company profile %s uploaded with %d vectors.", profile.id, profile.vector_count)
        return ProfileResult(
            message="Company data uploaded successfully",
            vector_count=profile.vector_count,
            indexed=indexed,
            company_data=profile,
        )

    async def update_profile(self, data: dict) -> ProfileResult:
        """Replace the stored profile, keeping its id and upload time.

        The previous version's points are deleted before the new version is indexed.

        Raises:
            NotFoundError: If no profile exists. Nothing is touched in that case.
            ValidationError: If the new data is invalid.
        """
        current = self.get_profile()
        self._validate_or_raise(data)
        profile = self._build_profile(
            data,
            profile_id=current.id,
            uploaded_at=current.uploaded_at,
            updated_at=_now(),
        )

        await self._flush_retractions()
        await self._retract(current.point_ids)
        indexed = await self._index_profile(profile)
        self._store.profile = profile
        self.logging.info("Company profile %s updated with %d vectors.", profile.id, profile.vector_count)
        return ProfileResult(
            message="Company data updated successfully",
            vector_count=profile.vector_count,
            indexed=indexed,
            company_data=profile,
        )

    async def delete_profile(self) -> CompanyProfile:
        """Remove the profile and its points.

        Returns:
            CompanyProfile: The deleted profile snapshot.

        Raises:
            NotFoundError: If no profile exists.
        """
        profile = self._store.profile
        if profile is None:
            raise NotFoundError("No company data to delete")

        await self._flush_retractions()
        await self._retract(profile.point_ids)
        self._store.profile = None
        self.logging.info("Company profile %s deleted.", profile.id)
        return profile

    def _validate_or_raise(self, data: Any) -> None:
        fields, errors = validate_profile(data)
        if errors:
            raise ValidationError("Invalid company data structure", details=errors, fields=fields)

    def _build_profile(self, data: dict, profile_id: str, uploaded_at: str, updated_at: str | None = None) -> CompanyProfile:
        fields = {key: value for key, value in data.items() if key not in _RESERVED_PROFILE_KEYS}
        for field in ARRAY_PROFILE_FIELDS:
            if field in fields:
                fields[field] = [str(item) for item in fields[field] or []]
        return CompanyProfile(
            **fields,
            id=profile_id,
            uploaded_at=uploaded_at,
            updated_at=updated_at,
        )

    async def _index_profile(self, profile: CompanyProfile) -> bool:
        chunks = self._chunker.chunk_profile(profile)
        point_ids = await self._index_chunks(chunks, created=profile.updated_at or profile.uploaded_at)
        profile.point_ids = point_ids or []
        profile.vector_count = len(profile.point_ids)
        return point_ids is not None

    ##########################################
    ############### DOCUMENTS ################
    ##########################################

    def list_documents(self) -> list[Document]:
        return list(self._store.documents)

    def get_document(self, id_or_name: str) -> Document:
        """Look a document up by id, file name or URL. The first match wins.

        Raises:
            NotFoundError: If nothing matches.
        """
        document = self._store.find_document(id_or_name)
        if document is None:
            raise NotFoundError(f"Document not found: {id_or_name}")
        return document

    async def delete_document(self, id_or_name: str) -> Document:
        """Remove a document from the catalog and delete its points.

        If the index is unreachable, the points are queued for later retraction and
        stay searchable until a later operation succeeds in deleting them.

        Raises:
            NotFoundError: If no document matches by id, file name or URL.
        """
        document = self.get_document(id_or_name)
        self._store.remove_document(document)
        await self._flush_retractions()
        await self._retract(document.point_ids)
        self.logging.info("Document %s ('%s') deleted.", document.id, document.get_display_name())
        return document

    async def ingest_files(self, files: list[FileUpload]) -> IngestResult:
        """Extract, chunk and index a batch of uploaded files.

        Files are validated and extracted one by one; a bad file is reported in
        `failed` and never aborts the batch. The successful subset is embedded and
        upserted as one batch.

        Raises:
            ValidationError: If the batch is empty.
        """
        if not files:
            raise ValidationError("No files provided", details=["At least one file is required"], fields=["files"])

        succeeded: list[Document] = []
        rejected: list[Document] = []
        failed: list[FailedItem] = []
        for upload in files:
            timestamp = _now()
            try:
                extracted = await asyncio.to_thread(self._files.extract, upload.file_name, upload.content)
            except (UnsupportedType, ExtractionFailed) as e:
                self.logging.warning("Skipping file %s: %s", upload.file_name, e.message)
                failed.append(FailedItem(file_name=upload.file_name, error=e.message))
                rejected.append(Document(
                    id=str(uuid.uuid4()),
                    source_type="file",
                    file_name=upload.file_name,
                    size_bytes=len(upload.content),
                    timestamp=timestamp,
                    error=e.message,
                ))
                continue

            succeeded.append(Document(
                id=str(uuid.uuid4()),
                source_type="file",
                title=extracted.title,
                file_name=upload.file_name,
                extracted_text=extracted.text,
                word_count=len(extracted.text.split()),
                size_bytes=len(upload.content),
                timestamp=timestamp,
            ))

        return await self._store_documents(succeeded, rejected, failed, noun="file")

    async def ingest_urls(self, urls: list[str]) -> IngestResult:
        """Fetch, chunk and index a batch of web links.

        Each URL's syntax is validated before it is fetched; invalid or unreachable
        URLs are reported in `failed` and never abort the batch.

        Raises:
            ValidationError: If the batch is empty.
        """
        if not urls:
            raise ValidationError("No URLs provided", details=["At least one URL is required"], fields=["urls"])

        succeeded: list[Document] = []
        rejected: list[Document] = []
        failed: list[FailedItem] = []
        for raw_url in urls:
            timestamp = _now()
            try:
                url = validate_url(raw_url)
                extracted = await self._urls.extract(url)
            except (InvalidUrl, ExtractionFailed) as e:
                self.logging.warning("Skipping URL %s: %s", raw_url, e.message)
                failed.append(FailedItem(url=str(raw_url), error=e.message))
                rejected.append(Document(
                    id=str(uuid.uuid4()),
                    source_type="url",
                    url=str(raw_url),
                    timestamp=timestamp,
                    error=e.message,
                ))
                continue

            succeeded.append(Document(
                id=str(uuid.uuid4()),
                source_type="url",
                title=extracted.title,
                url=url,
                extracted_text=extracted.text,
                word_count=len(extracted.text.split()),
                timestamp=timestamp,
            ))

        return await self._store_documents(succeeded, rejected, failed, noun="link")

    async def _store_documents(
        self,
        succeeded: list[Document],
        rejected: list[Document],
        failed: list[FailedItem],
        noun: str,
    ) -> IngestResult:
        chunks_by_document = {document.id: self._chunker.chunk_document(document) for document in succeeded}
        all_chunks = [chunk for chunks in chunks_by_document.values() for chunk in chunks]

        point_ids: list[str] | None = []
        if all_chunks:
            await self._flush_retractions()
            point_ids = await self._index_chunks(all_chunks)
        indexed = point_ids is not None

        for document in succeeded:
            chunks = chunks_by_document[document.id]
            document.chunk_count = len(chunks)
            document.point_ids = [chunk.id for chunk in chunks] if indexed else []
            document.vector_count = len(document.point_ids)

        self._store.documents.extend(succeeded)

        vector_count = sum(document.vector_count for document in succeeded)
        message = f"Processed {len(succeeded)} {noun}(s) successfully"
        if failed:
            message += f", {len(failed)} failed"
        if succeeded and not indexed:
            message += " (stored without vectors)"
        self.logging.info(
            "Ingested %d %s(s): %d failed, %d chunks, %d vectors.",
            len(succeeded), noun, len(failed), len(all_chunks), vector_count,
        )
        return IngestResult(
            message=message,
            documents=succeeded + rejected,
            failed=failed,
            successful_count=len(succeeded),
            failed_count=len(failed),
            total_chunks=len(all_chunks),
            vector_count=vector_count,
            indexed=indexed,
        )

    async def reset(self) -> dict:
        """Drop every document and the profile, and clear the whole collection.

        If the index cannot be cleared now, the clear is repeated before the next
        index mutation.
        """
        removed = len(self._store.documents)
        had_profile = self._store.profile is not None
        self._store.reset()
        try:
            await self._rag.do_clear()
            cleared = True
        except BackendUnavailable as e:
            self.logging.error("Could not clear the vector index, retrying later: %s", e.message)
            self._store.clear_pending = True
            cleared = False
        return {"documentsRemoved": removed, "profileRemoved": had_profile, "indexCleared": cleared}

    ##########################################
    ################# STATS ##################
    ##########################################

    async def stats(self) -> CatalogStats:
        """Snapshot of catalog counts plus a best-effort look at the index.

        An unreachable index degrades to catalog-only numbers with qdrant_status="disconnected".
        """
        profile = self._store.profile
        documents = self._store.documents
        tracked = self._store.tracked_vector_count()

        try:
            info = await self._rag.do_info()
            status = "connected"
            vector_count, collection_size = info.point_count, info.vector_count
        except BackendUnavailable as e:
            self.logging.warning("Vector index not available for stats: %s", e.message)
            status = "disconnected"
            vector_count = collection_size = tracked

        return CatalogStats(
            has_company_data=profile is not None,
            has_documents=bool(documents),
            document_count=len(documents),
            total_words=sum(document.word_count for document in documents),
            vector_count=vector_count,
            collection_size=collection_size,
            last_upload=profile.uploaded_at if profile else None,
            last_update=profile.updated_at if profile else None,
            pending_retractions=len(self._store.pending_retractions),
            qdrant_status=status,
        )

    ##########################################
    ################ INDEXING ################
    ##########################################

    async def _index_chunks(self, chunks: list[Chunk], created: str | None = None) -> list[str] | None:
        """Embed and upsert chunks as one batch.

        Returns:
            list[str] | None: The upserted point ids, or None if embedding or upserting failed.
        """
        if not chunks:
            return []
        if self._store.clear_pending:
            # points written now would be wiped by the outstanding clear
            self.logging.warning("Index clear still pending, storing %d chunks without vectors.", len(chunks))
            return None

        try:
            vectors = await self._embed.do_embed([chunk.text for chunk in chunks])
        except BackendUnavailable as e:
            self.logging.warning("Embedding failed, storing %d chunks without vectors: %s", len(chunks), e.message)
            return None

        points = [
            VectorPoint(id=chunk.id, vector=vector, payload=self._build_payload(chunk, created))
            for chunk, vector in zip(chunks, vectors)
        ]
        point_ids = [point.id for point in points]
        try:
            await self._rag.do_upsert_points(points)
        except BackendUnavailable as e:
            # outcome unknown, some points may have been written
            self.logging.error("Upsert of %d points failed, storing without vectors: %s", len(points), e.message)
            self._store.queue_retractions(point_ids)
            return None

        self._store.discard_retractions(point_ids)
        return point_ids

    def _build_payload(self, chunk: Chunk, created: str | None) -> VectorPayload:
        metadata = chunk.metadata
        return VectorPayload(
            source_id=chunk.source_id,
            source_type=metadata.get("source_type", "file"),
            chunk_index=chunk.sequence_index,
            chunk_text=chunk.text,
            title=metadata.get("title"),
            file_name=metadata.get("file_name"),
            url=metadata.get("url"),
            created=created or _now(),
        )

    async def _retract(self, point_ids: list[str]) -> None:
        if not point_ids:
            return
        try:
            await self._rag.do_delete_points(point_ids)
            self._store.discard_retractions(point_ids)
        except BackendUnavailable as e:
            self.logging.warning("Could not delete %d points, queued for retraction: %s", len(point_ids), e.message)
            self._store.queue_retractions(point_ids)

    async def _flush_retractions(self) -> None:
        """Best-effort replay of a failed clear and of queued point deletions."""
        try:
            if self._store.clear_pending:
                await self._rag.do_clear()
                self._store.clear_pending = False
                self._store.pending_retractions = set()
            if self._store.pending_retractions:
                pending = sorted(self._store.pending_retractions)
                await self._rag.do_delete_points(pending)
                self._store.discard_retractions(pending)
                self.logging.info("Retracted %d stale points.", len(pending))
        except BackendUnavailable as e:
            self.logging.debug("Pending retractions not flushed: %s", e.message)
