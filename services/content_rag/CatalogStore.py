"""In-memory state of the document catalog.

The host process creates one store at startup and passes it to DocumentCatalog;
nothing here is persisted across restarts.
"""

from shared.models.document import CompanyProfile, Document


class CatalogStore:
    def __init__(self) -> None:
        self.profile: CompanyProfile | None = None
        self.documents: list[Document] = []
        # point ids that may still be in the index but belong to nothing in the catalog
        self.pending_retractions: set[str] = set()
        # set when a full clear of the index failed and must be repeated
        self.clear_pending: bool = False

    def find_document(self, id_or_name: str) -> Document | None:
        """Return the first document whose id, file name or URL equals id_or_name."""
        for document in self.documents:
            if id_or_name in (document.id, document.file_name, document.url):
                return document
        return None

    def remove_document(self, document: Document) -> None:
        self.documents = [d for d in self.documents if d.id != document.id]

    def queue_retractions(self, point_ids: list[str]) -> None:
        self.pending_retractions.update(point_ids)

    def discard_retractions(self, point_ids: list[str]) -> None:
        self.pending_retractions.difference_update(point_ids)

    def tracked_vector_count(self) -> int:
        count = sum(document.vector_count for document in self.documents)
        if self.profile:
            count += self.profile.vector_count
        return count

    def reset(self) -> None:
        self.profile = None
        self.documents = []
        self.pending_retractions = set()
        self.clear_pending = False
