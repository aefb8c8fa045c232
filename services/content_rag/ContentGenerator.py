"""Content suggestions and profile analysis on top of the stored company profile.

Both operations send the profile (plus, for suggestions, retrieved context) to the
generation gateway and decode the reply as best-effort JSON.
"""

import json

from services.content_rag.DocumentCatalog import DocumentCatalog
from services.content_rag.RAGQueryEngine import RAGQueryEngine, build_context_block
from services.content_rag.ResponseParser import extract_json, format_text_response
from shared.clients.llm.LLMGateway import LLMGateway
from shared.errors import BackendUnavailable
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import CompanyProfile
from shared.models.search import ContentSuggestions, RetrievedContext

CONTENT_TYPES = {
    "articles": (
        "suggest 3 article ideas that align with the company's goals",
        ["Article title", "Brief description (2-3 sentences)", "Key points to cover", "Target audience", "Estimated reading time"],
        "title, description, keyPoints, targetAudience, readingTime",
    ),
    "demos": (
        "suggest 3 demo ideas that showcase the company's capabilities",
        ["Demo title", "Demo description", "Key features to highlight", "Target audience", "Estimated demo duration"],
        "title, description, keyFeatures, targetAudience, duration",
    ),
    "socialMedia": (
        "suggest 5 social media post ideas",
        ["Post title/headline", "Post content (2-3 sentences)", "Suggested hashtags",
         "Best platform (LinkedIn, Twitter, Instagram, etc.)", "Engagement strategy"],
        "title, content, hashtags, platform, engagementStrategy",
    ),
}
DEFAULT_CONTENT_TYPE = "articles"

ANALYSIS_SECTIONS = [
    "Key strengths and opportunities",
    "Potential content themes",
    "Target audience analysis",
    "Recommended content strategy",
    "Competitive advantages to highlight",
]


def _profile_json(profile: CompanyProfile) -> str:
    return json.dumps(profile.to_api(), ensure_ascii=False)


def _goals_text(goals: str | list[str] | None, profile: CompanyProfile) -> str:
    if not goals:
        goals = profile.goals
    if isinstance(goals, list):
        return ", ".join(str(goal) for goal in goals)
    return str(goals)


def build_suggestions_prompt(content_type: str, profile: CompanyProfile, goals: str, context: list[RetrievedContext]) -> str:
    task, items, keys = CONTENT_TYPES[content_type]
    numbered = "\n".join(f"{number}. {item}" for number, item in enumerate(items, start=1))
    return (
        f"Based on the following company information, {task}:\n\n"
        f"Company Data: {_profile_json(profile)}\n"
        f"Company Goals: {goals}\n\n"
        f"Related knowledge:\n{build_context_block(context)}\n\n"
        f"Please provide:\n{numbered}\n\n"
        f"Format as JSON array with objects containing: {keys}."
    )


class ContentGenerator:
    def __init__(
        self,
        helper_config: HelperConfig,
        catalog: DocumentCatalog,
        query_engine: RAGQueryEngine,
        llm_gateway: LLMGateway,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._catalog = catalog
        self._query_engine = query_engine
        self._llm = llm_gateway
        self.max_tokens = int(helper_config.get_number_val("CONTENT_MAX_TOKENS", default=1500))

    async def generate_suggestions(self, content_type: str | None = None, goals: str | list[str] | None = None) -> ContentSuggestions:
        """Suggest articles, demos or social media posts for the stored company.

        Unknown content types fall back to articles.

        Raises:
            NotFoundError: If no company profile is stored.
            GenerationFailed: If no generation engine produced an answer.
        """
        profile = self._catalog.get_profile()
        if content_type not in CONTENT_TYPES:
            if content_type:
                self.logging.warning("Unknown content type '%s', falling back to %s.", content_type, DEFAULT_CONTENT_TYPE)
            content_type = DEFAULT_CONTENT_TYPE

        goals_text = _goals_text(goals, profile)
        try:
            context = await self._query_engine.retrieve(f"{content_type} ideas for: {goals_text}")
        except BackendUnavailable as e:
            self.logging.warning("Retrieval for %s suggestions failed, using the profile only: %s", content_type, e.message)
            context = []

        prompt = build_suggestions_prompt(content_type, profile, goals_text, context)
        response = await self._llm.do_generate(prompt, max_tokens=self.max_tokens)

        parsed = extract_json(response, prefer="array")
        if parsed is not None:
            return ContentSuggestions(success=True, content_type=content_type, data=parsed, raw_response=response, context=context)

        self.logging.warning("Could not decode %s suggestions as JSON, returning text items.", content_type)
        return ContentSuggestions(
            success=False,
            content_type=content_type,
            data=format_text_response(response),
            raw_response=response,
            context=context,
        )

    async def analyze_profile(self) -> dict:
        """Ask the model for a content-strategy analysis of the stored profile.

        Returns:
            dict: {"success", "analysis", "rawResponse"}. analysis is the decoded JSON
                object, or the raw text if the reply was not JSON.

        Raises:
            NotFoundError: If no company profile is stored.
            GenerationFailed: If no generation engine produced an answer.
        """
        profile = self._catalog.get_profile()
        numbered = "\n".join(f"{number}. {item}" for number, item in enumerate(ANALYSIS_SECTIONS, start=1))
        prompt = (
            "Analyze the following company data and provide insights:\n\n"
            f"Company Data: {_profile_json(profile)}\n\n"
            f"Please provide:\n{numbered}\n\n"
            "Format as JSON with these sections."
        )
        response = await self._llm.do_generate(prompt, max_tokens=self.max_tokens)

        parsed = extract_json(response, prefer="object")
        if parsed is None:
            self.logging.warning("Could not decode the profile analysis as JSON, returning text.")
        return {"success": parsed is not None, "analysis": parsed if parsed is not None else response, "rawResponse": response}
