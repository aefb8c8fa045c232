from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.errors import ProviderUnavailable
from shared.helper.HelperConfig import HelperConfig


DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant that generates high-quality content suggestions "
    "based on company data and goals."
)


class LLMClientInterface(ClientInterface):
    """One concrete shape of the generation capability: system instruction + prompt + token budget in, text out."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # chat / completion config
        prefix = self.get_client_type().upper()
        self.chat_model = helper_config.get_string_val(f"{prefix}_CHAT_MODEL", default="meta-llama/Llama-3.3-70B-Instruct")
        self.temperature = float(helper_config.get_number_val(f"{prefix}_TEMPERATURE", default=0.6))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "llm"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_generate(self) -> str:
        """Returns the endpoint path for generation requests (e.g. "/chat/completions")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_generate_payload(self, system_prompt: str, prompt: str, max_tokens: int) -> dict:
        """Build the backend-specific request body for a generation request.

        Args:
            system_prompt (str): The system instruction.
            prompt (str): The user prompt.
            max_tokens (int): Upper bound for generated tokens.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_generated_text(self, response_data: dict) -> str:
        """Extract the generated text from a raw response.

        Raises:
            ValueError: If the response does not contain generated text.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_generate(self, prompt: str, system_prompt: str | None = None, max_tokens: int = 1000) -> str:
        """Send a generation request and return the generated text.

        Raises:
            ProviderUnavailable: If the request fails, times out or the reply has no text.
        """
        body = self.get_generate_payload(system_prompt or DEFAULT_SYSTEM_PROMPT, prompt, max_tokens)
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_generate(),
            json=body,
            raise_on_error=True,
        )
        try:
            return self.extract_generated_text(response.json())
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise ProviderUnavailable(
                f"{self.get_engine_name()} returned an unexpected response shape", details=str(e)
            ) from e

    async def do_probe(self) -> bool:
        """Check whether this engine can currently generate text.

        Returns:
            bool: True if a minimal generation request succeeded.
        """
        try:
            await self.do_generate("Hello", max_tokens=5)
            return True
        except ProviderUnavailable as e:
            self.logging.warning("LLM engine '%s' failed its probe: %s", self.get_engine_name(), e.message)
            return False
