from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.Search import CollectionInfo, SearchHit
from shared.clients.rag.models.VectorPoint import VectorPoint
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class RAGClientQdrant(RAGClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="http://localhost:6333", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._collection_name = self.get_config_val("COLLECTION", default="company_data", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    def get_collection_name(self) -> str:
        return self._collection_name

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="http://localhost:6333"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="COLLECTION", val_type="string", default="company_data"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": self._api_key}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_collection(self) -> str:
        return f"/collections/{self._collection_name}"

    def _get_endpoint_check_collection_existence(self) -> str:
        return f"/collections/{self._collection_name}/exists"

    def _get_endpoint_points(self) -> str:
        return f"/collections/{self._collection_name}/points"

    def _get_endpoint_search(self) -> str:
        return f"/collections/{self._collection_name}/points/search"

    def _get_endpoint_delete_points(self) -> str:
        return f"/collections/{self._collection_name}/points/delete"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        return {
            "vectors": {"size": vector_size, "distance": distance},
            "optimizers_config": {"default_segment_number": 2},
            "replication_factor": 1,
        }

    def get_upsert_payload(self, points: list[VectorPoint]) -> dict:
        return {
            "points": [
                {"id": point.id, "vector": point.vector, "payload": point.payload.model_dump()}
                for point in points
            ]
        }

    def get_search_payload(self, vector: list[float], top_k: int, score_threshold: float) -> dict:
        return {
            "vector": vector,
            "limit": top_k,
            "score_threshold": score_threshold,
            "with_payload": True,
        }

    def get_delete_points_payload(self, point_ids: list[str]) -> dict:
        return {"points": list(point_ids)}

    def get_clear_payload(self) -> dict:
        # an empty filter matches every point
        return {"filter": {"must": []}}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_existence(self, raw_response: dict) -> bool:
        return bool((raw_response.get("result") or {}).get("exists"))

    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        return [
            SearchHit(
                id=str(hit.get("id")),
                score=float(hit.get("score", 0.0)),
                payload=hit.get("payload") or {},
            )
            for hit in raw_response.get("result") or []
        ]

    def extract_collection_info(self, raw_response: dict) -> CollectionInfo:
        result = raw_response.get("result") or {}
        points_count = result.get("points_count") or 0
        # newer Qdrant versions dropped vectors_count
        vectors_count = result.get("vectors_count")
        if vectors_count is None:
            vectors_count = result.get("indexed_vectors_count") or points_count

        vectors_config = ((result.get("config") or {}).get("params") or {}).get("vectors") or {}
        return CollectionInfo(
            exists=True,
            status=result.get("status"),
            point_count=points_count,
            vector_count=vectors_count,
            vector_size=vectors_config.get("size"),
            distance=vectors_config.get("distance"),
        )
