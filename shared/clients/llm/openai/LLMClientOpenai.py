from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LLMClientOpenai(LLMClientInterface):
    """OpenAI-style chat-completions engine (e.g. Nebius AI Studio)."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api.studio.nebius.com/v1", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        if not self._api_key:
            self.logging.warning("LLM_OPENAI_API_KEY not set. The chat-completions engine will likely be rejected.")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Openai"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.studio.nebius.com/v1"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/models"

    def _get_endpoint_generate(self) -> str:
        return "/chat/completions"

    ################ PAYLOAD BUILDER ##################
    def get_generate_payload(self, system_prompt: str, prompt: str, max_tokens: int) -> dict:
        return {
            "model": self.chat_model,
            "max_tokens": max_tokens,
            "temperature": self.temperature,
            "top_p": 0.9,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
        }

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_generated_text(self, response_data: dict) -> str:
        choices = response_data.get("choices") or []
        if not choices:
            raise ValueError(f"Chat completion response has no choices. Response keys: {list(response_data.keys())}")
        content = (choices[0].get("message") or {}).get("content")
        if content is None:
            raise ValueError("Chat completion choice has no message content.")
        return content
