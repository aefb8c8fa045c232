from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.clients.rag.models.Search import CollectionInfo, SearchHit
from shared.clients.rag.models.VectorPoint import VectorPoint
from shared.errors import BackendUnavailable, ConfigurationError, IndexUnavailable
from shared.helper.HelperConfig import HelperConfig


class RAGClientInterface(ClientInterface):
    """A single named vector collection behind a REST backend.

    The collection must be ensured once with do_ensure_collection() before any other
    operation. If the backend was unreachable at that time, the next upsert retries it.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._collection_ready = False
        self._vector_size: int | None = None
        self._distance: str = "Cosine"

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "rag"

    def _get_unavailable_error(self) -> type[BackendUnavailable]:
        return IndexUnavailable

    @abstractmethod
    def get_collection_name(self) -> str:
        """Returns the name of the collection all operations target."""
        pass

    def is_collection_ready(self) -> bool:
        return self._collection_ready

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_collection(self) -> str:
        """Returns the endpoint path of the collection itself (create / info)."""
        pass

    @abstractmethod
    def _get_endpoint_check_collection_existence(self) -> str:
        """Returns the endpoint path for collection existence checks."""
        pass

    @abstractmethod
    def _get_endpoint_points(self) -> str:
        """Returns the endpoint path for points upsert requests."""
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        """Returns the endpoint path for similarity search requests."""
        pass

    @abstractmethod
    def _get_endpoint_delete_points(self) -> str:
        """Returns the endpoint path for deleting points by id or filter."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        """Builds the backend-specific request body for creating the collection."""
        pass

    @abstractmethod
    def get_upsert_payload(self, points: list[VectorPoint]) -> dict:
        """Builds the backend-specific request body for an upsert."""
        pass

    @abstractmethod
    def get_search_payload(self, vector: list[float], top_k: int, score_threshold: float) -> dict:
        """Builds the backend-specific request body for a similarity search."""
        pass

    @abstractmethod
    def get_delete_points_payload(self, point_ids: list[str]) -> dict:
        """Builds the backend-specific request body for deleting points by id."""
        pass

    @abstractmethod
    def get_clear_payload(self) -> dict:
        """Builds the backend-specific request body for deleting every point of the collection."""
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_existence(self, raw_response: dict) -> bool:
        """Extracts the existence flag from a raw existence check response."""
        pass

    @abstractmethod
    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        """Extracts the search hits from a raw search response, ordered by descending score."""
        pass

    @abstractmethod
    def extract_collection_info(self, raw_response: dict) -> CollectionInfo:
        """Extracts counts and vector config from a raw collection info response."""
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_existence_check(self) -> bool:
        """Check if the collection exists in the rag backend."""
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_check_collection_existence(),
            raise_on_error=True,
        )
        return self.extract_existence(resp.json())

    async def do_create_collection(self, vector_size: int, distance: str = "Cosine") -> None:
        """Create the collection in the rag backend."""
        await self.do_request(
            method="PUT",
            json=self.get_create_collection_payload(vector_size, distance),
            endpoint=self._get_endpoint_collection(),
            raise_on_error=True,
        )
        self.logging.info(
            "Created collection '%s' (size=%d, distance=%s) on %s.",
            self.get_collection_name(), vector_size, distance, self.get_engine_name(),
        )

    async def do_ensure_collection(self, vector_size: int, distance: str = "Cosine") -> bool:
        """Create the collection if it is absent. Safe to call repeatedly.

        Args:
            vector_size (int): Dimensionality of the vectors the collection must hold.
            distance (str): Distance metric (e.g. "Cosine").

        Returns:
            bool: True if the collection was created by this call.

        Raises:
            ConfigurationError: If the existing collection was created with a different vector size.
            IndexUnavailable: If the backend cannot be reached.
        """
        self._vector_size = vector_size
        self._distance = distance

        if await self.do_existence_check():
            info = await self.do_info()
            if info.vector_size is not None and info.vector_size != vector_size:
                raise ConfigurationError(
                    f"Collection '{self.get_collection_name()}' holds vectors of size {info.vector_size}, "
                    f"but the embedding model produces {vector_size}.",
                    details={"collection": info.vector_size, "expected": vector_size},
                )
            self.logging.debug("Collection '%s' already exists.", self.get_collection_name())
            self._collection_ready = True
            return False

        await self.do_create_collection(vector_size, distance)
        self._collection_ready = True
        return True

    async def do_upsert_points(self, points: list[VectorPoint]) -> int:
        """Insert new points or replace existing ones with the same id.

        A raised error means the write state is unknown: the caller must not assume
        that none or all of the points were written.

        Args:
            points (list[VectorPoint]): The points to upsert.

        Returns:
            int: The number of points sent to the backend.

        Raises:
            IndexUnavailable: If the backend cannot be reached or rejects the write.
        """
        if not points:
            return 0
        if not self._collection_ready and self._vector_size:
            await self.do_ensure_collection(self._vector_size, self._distance)

        await self.do_request(
            method="PUT",
            json=self.get_upsert_payload(points),
            params={"wait": "true"},
            endpoint=self._get_endpoint_points(),
            raise_on_error=True,
        )
        self.logging.debug("Upserted %d points into '%s'.", len(points), self.get_collection_name())
        return len(points)

    async def do_search(self, vector: list[float], top_k: int = 5, score_threshold: float = 0.7) -> list[SearchHit]:
        """Similarity search against the collection.

        Returns fewer than top_k hits when fewer points score above the threshold.

        Returns:
            list[SearchHit]: Hits sorted by descending score, each with score >= score_threshold.
        """
        resp = await self.do_request(
            method="POST",
            json=self.get_search_payload(vector, top_k, score_threshold),
            endpoint=self._get_endpoint_search(),
            raise_on_error=True,
        )
        hits = [hit for hit in self.extract_search_hits(resp.json()) if hit.score >= score_threshold]
        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits[:top_k]

    async def _do_delete(self, payload: dict) -> bool:
        """Send a point deletion. A missing collection holds no points, so a 404 counts as done.

        Returns:
            bool: False if the collection does not exist.
        """
        resp = await self.do_request(
            method="POST",
            json=payload,
            params={"wait": "true"},
            endpoint=self._get_endpoint_delete_points(),
        )
        if resp.status_code == 404:
            self.logging.debug("Collection '%s' does not exist, nothing to delete.", self.get_collection_name())
            return False
        if resp.status_code >= 300:
            raise IndexUnavailable(
                f"Point deletion failed with status {resp.status_code}",
                details=resp.text[:300],
            )
        return True

    async def do_delete_points(self, point_ids: list[str]) -> None:
        """Delete specific points by id. Deleting unknown ids is not an error."""
        if not point_ids:
            return
        if await self._do_delete(self.get_delete_points_payload(point_ids)):
            self.logging.debug("Deleted %d points from '%s'.", len(point_ids), self.get_collection_name())

    async def do_clear(self) -> None:
        """Delete every point in the collection, keeping the collection itself."""
        if await self._do_delete(self.get_clear_payload()):
            self.logging.info("Cleared collection '%s'.", self.get_collection_name())

    async def do_info(self) -> CollectionInfo:
        """Introspect the collection.

        A reachable backend without the collection yields CollectionInfo(exists=False).

        Raises:
            IndexUnavailable: Only if the backend cannot be reached or fails.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_collection())
        if resp.status_code == 404:
            return CollectionInfo(exists=False)
        if resp.status_code >= 300:
            raise IndexUnavailable(
                f"Collection info request failed with status {resp.status_code}",
                details=resp.text[:300],
            )
        return self.extract_collection_info(resp.json())
