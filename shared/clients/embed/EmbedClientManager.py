from shared.clients.ClientManager import ClientManager
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig


class EmbedClientManager(ClientManager):
    """Instantiates the embedding client configured by EMBED_ENGINE."""

    client_type = "embed"
    class_prefix = "Embed"

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.client: EmbedClientInterface = self._instantiate(
            self.helper_config.get_string_val("EMBED_ENGINE", default="openai")
        )

    def get_client(self) -> EmbedClientInterface:
        return self.client
