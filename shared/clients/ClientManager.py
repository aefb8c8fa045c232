from importlib import import_module

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class ClientManager:
    """
    Instantiates client engines by name.

    An engine "qdrant" of client type "rag" resolves to the class RAGClientQdrant in the
    module shared.clients.rag.qdrant.RAGClientQdrant.
    """

    # e.g. "rag", "embed", "llm"
    client_type: str = ""
    # e.g. "RAG", "Embed", "LLM"
    class_prefix: str = ""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()

    def _normalize_engine(self, engine: str) -> str:
        return engine.strip().lower().capitalize()

    def _instantiate(self, engine: str) -> ClientInterface:
        """
        Imports and instantiates the client class for the given engine.

        Args:
            engine (str): Engine name in any case, e.g. "qdrant".

        Returns:
            ClientInterface: The client instance (not yet booted).

        Raises:
            ValueError: If the engine is unsupported or its configuration is invalid.
        """
        engine = self._normalize_engine(engine)
        class_name = f"{self.class_prefix}Client{engine}"
        try:
            module = import_module(f"shared.clients.{self.client_type}.{engine.lower()}.{class_name}")
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {self.client_type.upper()} engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated %s client for engine: %s", self.client_type.upper(), engine)
        return client
