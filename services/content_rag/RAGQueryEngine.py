"""Answers free-text questions grounded in the indexed company knowledge.

Pipeline: embed the query, search the vector index, render the hits as a tagged
context block and hand query and context to the generation gateway.
"""

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.llm.LLMGateway import LLMGateway
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.Search import SearchHit
from shared.errors import BackendUnavailable
from shared.helper.HelperConfig import HelperConfig
from shared.models.search import QueryResult, RetrievedContext

RAG_SYSTEM_PROMPT = (
    "You are a knowledgeable assistant for a company's content team. "
    "Answer using only the provided context. If the context is empty or does not "
    "contain the answer, say so explicitly instead of guessing."
)


def build_context_block(context: list[RetrievedContext]) -> str:
    """Render retrieved chunks, each tagged with its source type, reference and score."""
    if not context:
        return "(no relevant context found)"
    blocks = []
    for position, item in enumerate(context, start=1):
        reference = f" | {item.source_ref}" if item.source_ref else ""
        blocks.append(f"[{position}] ({item.source_type}{reference} | score {item.score:.2f})\n{item.text}")
    return "\n\n".join(blocks)


def build_rag_prompt(query: str, context: list[RetrievedContext]) -> str:
    return (
        "Based on the following context and query, provide a comprehensive and relevant response.\n\n"
        f"Context:\n{build_context_block(context)}\n\n"
        f"Query: {query}\n\n"
        "Please provide a detailed response that:\n"
        "1. Directly addresses the query\n"
        "2. Uses only information from the provided context\n"
        "3. States explicitly when the context does not cover the query\n"
        "4. Is well-structured and professional\n"
        "5. Includes actionable insights when applicable\n\n"
        "Response:"
    )


class RAGQueryEngine:
    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        rag_client: RAGClientInterface,
        llm_gateway: LLMGateway,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed = embed_client
        self._rag = rag_client
        self._llm = llm_gateway
        self.default_top_k = int(helper_config.get_number_val("RAG_TOP_K", default=5))
        self.default_score_threshold = float(helper_config.get_number_val("RAG_SCORE_THRESHOLD", default=0.7))
        self.max_tokens = int(helper_config.get_number_val("RAG_MAX_TOKENS", default=2000))

    async def retrieve(self, text: str, top_k: int | None = None, score_threshold: float | None = None) -> list[RetrievedContext]:
        """Embed the text and return the matching chunks, best first.

        Raises:
            ProviderUnavailable: If the query cannot be embedded.
            IndexUnavailable: If the vector index cannot be searched.
        """
        top_k = self.default_top_k if top_k is None else top_k
        score_threshold = self.default_score_threshold if score_threshold is None else score_threshold

        vector = (await self._embed.do_embed([text]))[0]
        hits = await self._rag.do_search(vector, top_k=top_k, score_threshold=score_threshold)
        return [self._to_context(hit) for hit in hits]

    async def query(self, text: str, top_k: int | None = None, score_threshold: float | None = None) -> QueryResult:
        """Answer a question using the indexed knowledge.

        If retrieval fails the answer is generated without context and the result is
        flagged with retrieval="degraded".

        Raises:
            GenerationFailed: If no generation engine produced an answer.
        """
        retrieval = "ok"
        try:
            context = await self.retrieve(text, top_k=top_k, score_threshold=score_threshold)
        except BackendUnavailable as e:
            self.logging.warning("Retrieval failed, answering without context: %s", e.message)
            context = []
            retrieval = "degraded"

        self.logging.info("Query answered from %d context chunks.", len(context))
        response = await self._llm.do_generate(
            build_rag_prompt(text, context),
            system_prompt=RAG_SYSTEM_PROMPT,
            max_tokens=self.max_tokens,
        )
        return QueryResult(query=text, response=response, context=context, retrieval=retrieval)

    @staticmethod
    def _to_context(hit: SearchHit) -> RetrievedContext:
        payload = hit.payload or {}
        return RetrievedContext(
            text=payload.get("chunk_text", ""),
            score=hit.score,
            source_type=payload.get("source_type", "unknown"),
            source_ref=payload.get("title") or payload.get("file_name") or payload.get("url"),
            source_id=payload.get("source_id"),
            chunk_index=payload.get("chunk_index"),
        )
