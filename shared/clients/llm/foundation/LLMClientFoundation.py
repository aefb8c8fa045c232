from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.errors import ProviderUnavailable
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LLMClientFoundation(LLMClientInterface):
    """Legacy foundation-models completion engine.

    Addresses the model by URI ("gpt://{folder_id}/{model}") and authenticates with an
    "Api-Key" header instead of a bearer token.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api.nebius.cloud", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._folder_id = self.get_config_val("FOLDER_ID", default="", val_type="string")
        self._model = self.get_config_val("MODEL", default="yandexgpt-lite", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Foundation"

    def get_model_uri(self) -> str:
        return f"gpt://{self._folder_id}/{self._model}"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.nebius.cloud"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="FOLDER_ID", val_type="string", default=""),
            EnvConfig(env_key="MODEL", val_type="string", default="yandexgpt-lite"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Api-Key {self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return ""

    def _get_endpoint_generate(self) -> str:
        return "/foundationModels/v1/completion"

    ################ PAYLOAD BUILDER ##################
    def get_generate_payload(self, system_prompt: str, prompt: str, max_tokens: int) -> dict:
        return {
            "modelUri": self.get_model_uri(),
            "completionOptions": {
                "maxTokens": max_tokens,
                "temperature": self.temperature,
                "stream": False,
            },
            "messages": [
                {"role": "system", "text": system_prompt},
                {"role": "user", "text": prompt},
            ],
        }

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_generated_text(self, response_data: dict) -> str:
        alternatives = (response_data.get("result") or {}).get("alternatives") or []
        if not alternatives:
            raise ValueError(f"Completion response has no alternatives. Response keys: {list(response_data.keys())}")
        text = (alternatives[0].get("message") or {}).get("text")
        if text is None:
            raise ValueError("Completion alternative has no message text.")
        return text

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_generate(self, prompt: str, system_prompt: str | None = None, max_tokens: int = 1000) -> str:
        if not self._folder_id:
            raise ProviderUnavailable("LLM_FOUNDATION_FOLDER_ID is required for the foundation models API")
        return await super().do_generate(prompt, system_prompt=system_prompt, max_tokens=max_tokens)
