from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.errors import ConfigurationError, ProviderUnavailable
from shared.helper.HelperConfig import HelperConfig


class EmbedClientInterface(ClientInterface):
    """Maps ordered texts to fixed-dimension vectors via an external embedding provider.

    No retries happen inside a call; callers decide how to react to ProviderUnavailable.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config
        prefix = self.get_client_type().upper()
        self.embed_model = helper_config.get_string_val(f"{prefix}_MODEL", default=self._get_default_model())
        self.embed_dimension = int(helper_config.get_number_val(f"{prefix}_DIMENSION", default=1536))
        self.embed_distance = helper_config.get_string_val(f"{prefix}_DISTANCE", default="Cosine")
        self.embed_batch_size = max(1, int(helper_config.get_number_val(f"{prefix}_BATCH_SIZE", default=64)))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "embed"

    @abstractmethod
    def _get_default_model(self) -> str:
        """Returns the model used when EMBED_MODEL is not set."""
        pass

    def get_vector_size(self) -> int:
        """Returns the fixed dimensionality every vector of this client must have."""
        return self.embed_dimension

    def get_distance(self) -> str:
        return self.embed_distance

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """Returns the endpoint path for embedding requests (e.g. "/embeddings")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            dict: JSON-serialisable request body (e.g. {"model": "...", "input": [...]}).
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response.

        Response format differs by backend:
        - Ollama /api/embed: {"embeddings": [[...], [...]]}, already ordered
        - OpenAI-compatible: {"data": [{"embedding": [...], "index": 0}]}, needs sorting

        Returns:
            list[list[float]]: Embedding vectors in the same order as the input texts.

        Raises:
            ValueError: If the response does not contain valid embeddings.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        """Embed one or more texts, preserving order.

        Large inputs are sent in batches of EMBED_BATCH_SIZE. An empty input returns
        an empty list without contacting the provider.

        Args:
            texts (list[str] | str): One or more texts to embed.

        Returns:
            list[list[float]]: One vector per input text, in input order.

        Raises:
            ProviderUnavailable: If a request fails, times out or returns an unusable body.
        """
        texts = [texts] if isinstance(texts, str) else list(texts)
        if not texts:
            return []

        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.embed_batch_size):
            batch = texts[start:start + self.embed_batch_size]
            response = await self.do_request(
                method="POST",
                endpoint=self.get_endpoint_embedding(),
                json=self.get_embed_payload(batch),
                raise_on_error=True,
            )
            try:
                batch_vectors = self.extract_embeddings_from_response(response.json())
            except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
                raise ProviderUnavailable("Embedding response could not be parsed", details=str(e)) from e
            if len(batch_vectors) != len(batch):
                raise ProviderUnavailable(
                    "Embedding provider returned %d vectors for %d texts" % (len(batch_vectors), len(batch))
                )
            vectors.extend(batch_vectors)

        self.logging.debug("Embedded %d texts with model '%s'.", len(texts), self.embed_model)
        return vectors

    async def do_validate_dimension(self) -> int:
        """Embed a probe text and check its size against EMBED_DIMENSION.

        Meant for startup validation only.

        Returns:
            int: The observed dimensionality.

        Raises:
            ConfigurationError: If the model produces vectors of a different size.
            ProviderUnavailable: If the provider cannot be reached.
        """
        vector = (await self.do_embed(["dimension probe"]))[0]
        if len(vector) != self.embed_dimension:
            raise ConfigurationError(
                "Embedding model '%s' produces %d-dimensional vectors, but EMBED_DIMENSION is %d."
                % (self.embed_model, len(vector), self.embed_dimension),
                details={"observed": len(vector), "expected": self.embed_dimension},
            )
        return len(vector)
