from shared.clients.ClientManager import ClientManager
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.helper.HelperConfig import HelperConfig


class RAGClientManager(ClientManager):
    """Instantiates the vector index client configured by RAG_ENGINE."""

    client_type = "rag"
    class_prefix = "RAG"

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.client: RAGClientInterface = self._instantiate(
            self.helper_config.get_string_val("RAG_ENGINE", default="qdrant")
        )

    def get_client(self) -> RAGClientInterface:
        return self.client
