from shared.clients.ClientManager import ClientManager
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig


class LLMClientManager(ClientManager):
    """Instantiates every generation engine listed in LLM_ENGINES, in failover order."""

    client_type = "llm"
    class_prefix = "LLM"

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.clients = self._initialize_clients()

    def _initialize_clients(self) -> list[LLMClientInterface]:
        """
        Raises:
            ValueError: If LLM_ENGINES is empty or names an unsupported engine.
        """
        engines = self.helper_config.get_list_val("LLM_ENGINES", default=["openai", "foundation"])
        if not engines:
            raise ValueError("No LLM engines specified in configuration (LLM_ENGINES).")
        return [self._instantiate(engine) for engine in engines]

    def get_clients(self) -> list[LLMClientInterface]:
        return self.clients
