"""Single logical generation capability over an ordered list of LLM engines.

At boot, each engine is probed in order and the first one that answers becomes
active. Generation calls go to the active engine first; if it fails, the remaining
engines are tried in order and the first one that succeeds becomes the new active
engine. Callers only ever see success or GenerationFailed.
"""

import httpx

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.errors import GenerationFailed, ProviderUnavailable
from shared.helper.HelperConfig import HelperConfig


class LLMGateway:
    def __init__(self, helper_config: HelperConfig, clients: list[LLMClientInterface]) -> None:
        if not clients:
            raise ValueError("LLMGateway needs at least one LLM client.")
        self.logging = helper_config.get_logger()
        self._clients = clients
        self._active_index = 0

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_active_client(self) -> LLMClientInterface:
        return self._clients[self._active_index]

    def get_active_engine(self) -> str:
        return self.get_active_client().get_engine_name()

    def get_engines(self) -> list[str]:
        return [client.get_engine_name() for client in self._clients]

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        for client in self._clients:
            await client.boot(transport=transport)

    async def close(self) -> None:
        for client in self._clients:
            await client.close()

    async def do_select_client(self) -> str | None:
        """Probe the engines in order and activate the first one that answers.

        Returns:
            str | None: The selected engine name, or None if no engine answered.
                The active engine is left unchanged in that case.
        """
        for index, client in enumerate(self._clients):
            if await client.do_probe():
                self._active_index = index
                self.logging.info("Generation engine '%s' selected.", client.get_engine_name(), color="green")
                return client.get_engine_name()
        self.logging.error("No generation engine answered its probe. Engines: %s", self.get_engines())
        return None

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_generate(self, prompt: str, system_prompt: str | None = None, max_tokens: int = 1000) -> str:
        """Generate text, failing over between engines.

        Raises:
            GenerationFailed: If every engine failed. Details map engine names to their errors.
        """
        failures: dict[str, str] = {}
        order = list(range(self._active_index, len(self._clients))) + list(range(0, self._active_index))
        for index in order:
            client = self._clients[index]
            try:
                text = await client.do_generate(prompt, system_prompt=system_prompt, max_tokens=max_tokens)
            except ProviderUnavailable as e:
                failures[client.get_engine_name()] = e.message
                self.logging.warning("Generation engine '%s' failed: %s", client.get_engine_name(), e.message)
                continue

            if index != self._active_index:
                self.logging.warning(
                    "Falling back from generation engine '%s' to '%s'.",
                    self.get_active_engine(), client.get_engine_name(),
                )
                self._active_index = index
            return text

        raise GenerationFailed("Failed to generate text", details=failures)
