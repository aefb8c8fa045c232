"""Unit tests for content suggestions, profile analysis and model output decoding."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from services.content_rag.ContentGenerator import ContentGenerator
from services.content_rag.DocumentCatalog import DocumentCatalog
from services.content_rag.RAGQueryEngine import RAGQueryEngine
from services.content_rag.ResponseParser import extract_json, format_text_response
from shared.errors import NotFoundError
from shared.helper.HelperConfig import HelperConfig


@pytest.fixture
def generator(helper_config: HelperConfig, catalog: DocumentCatalog, embed_client: Any, rag_client: Any, llm_gateway: MagicMock) -> ContentGenerator:
    query_engine = RAGQueryEngine(helper_config=helper_config, embed_client=embed_client, rag_client=rag_client, llm_gateway=llm_gateway)
    return ContentGenerator(helper_config=helper_config, catalog=catalog, query_engine=query_engine, llm_gateway=llm_gateway)


class TestExtractJson:
    def test_fenced_block(self) -> None:
        response = 'Here you go:\n```json\n[{"title": "Robots 101"}]\n```\nEnjoy!'
        assert extract_json(response) == [{"title": "Robots 101"}]

    def test_array_inside_prose(self) -> None:
        assert extract_json('Ideas: [{"title": "A"}, {"title": "B"}] hope this helps') == [{"title": "A"}, {"title": "B"}]

    def test_object_preferred(self) -> None:
        assert extract_json('Analysis: {"themes": ["automation"]}', prefer="object") == {"themes": ["automation"]}

    @pytest.mark.parametrize("response", ["", "No JSON here at all.", "[{broken json"])
    def test_returns_none_on_garbage(self, response: str) -> None:
        assert extract_json(response) is None


class TestFormatTextResponse:
    def test_splits_objects_and_keeps_unparsable_parts(self) -> None:
        response = '```json\n[{"title": "A"}, {"title": "B", oops}]\n```'
        assert format_text_response(response) == [{"title": "A"}, {"content": '{"title": "B", oops}', "type": "text"}]

    def test_plain_text(self) -> None:
        assert format_text_response("Write about robots.") == [{"content": "Write about robots.", "type": "text"}]


class TestGenerateSuggestions:
    @pytest.mark.asyncio
    async def test_requires_profile(self, generator: ContentGenerator) -> None:
        with pytest.raises(NotFoundError):
            await generator.generate_suggestions("articles")

    @pytest.mark.asyncio
    async def test_decodes_json(self, generator: ContentGenerator, catalog: DocumentCatalog, llm_gateway: MagicMock, acme_profile: dict[str, Any]) -> None:
        await catalog.upload_profile(acme_profile)
        llm_gateway.do_generate.return_value = '```json\n[{"title": "Demo day", "duration": "15 min"}]\n```'

        result = await generator.generate_suggestions("demos", goals=["win SMB customers"])
        assert result.success is True
        assert result.content_type == "demos"
        assert result.data == [{"title": "Demo day", "duration": "15 min"}]

        prompt = llm_gateway.do_generate.await_args.args[0]
        assert "suggest 3 demo ideas" in prompt
        assert "Company Goals: win SMB customers" in prompt
        assert "Acme sells robots" in prompt
        assert llm_gateway.do_generate.await_args.kwargs["max_tokens"] == 1500

    @pytest.mark.asyncio
    async def test_text_fallback(self, generator: ContentGenerator, catalog: DocumentCatalog, llm_gateway: MagicMock, acme_profile: dict[str, Any]) -> None:
        await catalog.upload_profile(acme_profile)
        llm_gateway.do_generate.return_value = "Post about robots on LinkedIn."

        result = await generator.generate_suggestions("socialMedia")
        assert result.success is False
        assert result.data == [{"content": "Post about robots on LinkedIn.", "type": "text"}]
        assert result.raw_response == "Post about robots on LinkedIn."
        assert result.to_api()["rawResponse"] == "Post about robots on LinkedIn."

    @pytest.mark.asyncio
    async def test_unknown_type_falls_back_to_articles(self, generator: ContentGenerator, catalog: DocumentCatalog, llm_gateway: MagicMock, acme_profile: dict[str, Any]) -> None:
        await catalog.upload_profile(acme_profile)
        llm_gateway.do_generate.return_value = "[]"

        result = await generator.generate_suggestions("podcasts")
        assert result.content_type == "articles"
        assert "Company Goals: grow" in llm_gateway.do_generate.await_args.args[0]

    @pytest.mark.asyncio
    async def test_retrieval_failure_uses_profile_only(self, generator: ContentGenerator, catalog: DocumentCatalog, rag_client: Any, llm_gateway: MagicMock, acme_profile: dict[str, Any]) -> None:
        await catalog.upload_profile(acme_profile)
        rag_client.fail_search = True
        llm_gateway.do_generate.return_value = "[]"

        result = await generator.generate_suggestions("articles")
        assert result.success is True
        assert result.context == []


class TestAnalyzeProfile:
    @pytest.mark.asyncio
    async def test_json_analysis(self, generator: ContentGenerator, catalog: DocumentCatalog, llm_gateway: MagicMock, acme_profile: dict[str, Any]) -> None:
        await catalog.upload_profile(acme_profile)
        llm_gateway.do_generate.return_value = '{"strengths": ["robots"]}'

        result = await generator.analyze_profile()
        assert result["success"] is True
        assert result["analysis"] == {"strengths": ["robots"]}

    @pytest.mark.asyncio
    async def test_text_analysis(self, generator: ContentGenerator, catalog: DocumentCatalog, llm_gateway: MagicMock, acme_profile: dict[str, Any]) -> None:
        await catalog.upload_profile(acme_profile)
        llm_gateway.do_generate.return_value = "Acme is strong in robotics."

        result = await generator.analyze_profile()
        assert result == {"success": False, "analysis": "Acme is strong in robotics.", "rawResponse": "Acme is strong in robotics."}
