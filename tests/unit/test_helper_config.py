"""Unit tests for HelperConfig: environment parsing and defaults."""

import pytest

from shared.helper.HelperConfig import HelperConfig


class TestStringValues:
    def test_reads_value(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RAG_ENGINE", " qdrant ")
        assert helper_config.get_string_val("RAG_ENGINE") == "qdrant"

    def test_key_is_case_insensitive(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RAG_ENGINE", "qdrant")
        assert helper_config.get_string_val("rag_engine") == "qdrant"

    def test_empty_value_uses_default(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMBED_MODEL", "   ")
        assert helper_config.get_string_val("EMBED_MODEL", default="text-embedding-3-small") == "text-embedding-3-small"

    def test_missing_without_default_raises(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SOME_UNSET_KEY", raising=False)
        with pytest.raises(ValueError, match="SOME_UNSET_KEY"):
            helper_config.get_string_val("SOME_UNSET_KEY")


class TestNumberValues:
    def test_integer_stays_integer(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHUNK_SIZE", "800")
        value = helper_config.get_number_val("CHUNK_SIZE")
        assert value == 800
        assert isinstance(value, int)

    def test_float(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RAG_SCORE_THRESHOLD", "0.55")
        assert helper_config.get_number_val("RAG_SCORE_THRESHOLD") == pytest.approx(0.55)

    def test_invalid_number_raises(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHUNK_SIZE", "large")
        with pytest.raises(ValueError, match="not a valid number"):
            helper_config.get_number_val("CHUNK_SIZE")


class TestBoolAndListValues:
    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("Yes", True), ("off", False), ("no", False)])
    def test_bool(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
        monkeypatch.setenv("LOG_TO_FILE", raw)
        assert helper_config.get_bool_val("LOG_TO_FILE") is expected

    def test_list_with_brackets(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LLM_ENGINES", "[openai, foundation]")
        assert helper_config.get_list_val("LLM_ENGINES") == ["openai", "foundation"]

    def test_list_without_brackets_drops_empty_items(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INGEST_SUPPORTED_EXTENSIONS", ".txt,,.pdf ,")
        assert helper_config.get_list_val("INGEST_SUPPORTED_EXTENSIONS") == [".txt", ".pdf"]

    def test_list_default_is_copied(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("LLM_ENGINES", raising=False)
        default = ["openai"]
        result = helper_config.get_list_val("LLM_ENGINES", default=default)
        result.append("foundation")
        assert default == ["openai"]
