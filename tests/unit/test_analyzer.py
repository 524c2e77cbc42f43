"""Unit tests for LLM enrichment."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from asd_news.enrichment.analyzer import ArticleAnalyzer, extract_json_object, parse_response
from asd_news.enrichment.interfaces import EnrichmentStatus
from asd_news.enrichment.llm_client import LLMClient


VALID_RESPONSE = {
    "titleJa": "睡眠と自閉症の新研究",
    "bullets": ["一文目です。", "二文目です。", "三文目です。"],
    "country": "US",
    "category": "研究",
    "reliability": "★★★",
    "parentMeaning": "睡眠習慣を見直すきっかけになります。",
    "todayAction": "寝る前のルーティンを一つ決めてみましょう。",
}


def mock_llm(response=None, error=None):
    client = MagicMock()
    client.complete = AsyncMock(return_value=response, side_effect=error)
    return client


def assert_fully_populated(result):
    assert result.summary_text
    for value in (result.country, result.category, result.reliability,
                  result.parent_meaning, result.today_action):
        assert isinstance(value, str) and value


class TestExtractJsonObject:
    """Tests for balanced JSON extraction."""

    def test_plain_object(self):
        assert extract_json_object('{"a": 1}') == '{"a": 1}'

    def test_preamble_and_trailer(self):
        text = 'Sure, here you go: {"titleJa": "X"} Hope this helps!'
        assert extract_json_object(text) == '{"titleJa": "X"}'

    def test_code_fence(self):
        text = '```json\n{"a": {"b": 2}}\n```'
        assert json.loads(extract_json_object(text)) == {"a": {"b": 2}}

    def test_braces_inside_strings(self):
        text = 'x {"a": "curly } brace { and \\" quote", "b": 1} y'
        assert json.loads(extract_json_object(text)) == {"a": 'curly } brace { and " quote', "b": 1}

    def test_no_object(self):
        assert extract_json_object("no json here") is None

    def test_unbalanced(self):
        assert extract_json_object('{"a": 1') is None


class TestParseResponse:
    """Tests for response parsing."""

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError):
            parse_response("{not valid json}")

    def test_missing_object_raises(self):
        with pytest.raises(ValueError):
            parse_response("I cannot help with that.")


@pytest.mark.asyncio
class TestArticleAnalyzer:
    """Tests for ArticleAnalyzer with a mocked LLM client."""

    async def test_no_credentials_fallback(self, settings):
        analyzer = ArticleAnalyzer(settings)
        assert analyzer.llm_client is None

        result = await analyzer.analyze("Autism news", "", "CDC")

        assert result.status == EnrichmentStatus.NO_CREDENTIALS
        assert result.summary_text.startswith("TITLE: Autism news\n")
        assert "APIキー" in result.summary_text
        assert result.reliability == "★★"
        assert_fully_populated(result)

    async def test_client_created_when_key_configured(self, settings):
        settings = settings.model_copy(update={"gemini_api_key": "test-key"})
        analyzer = ArticleAnalyzer(settings)
        assert isinstance(analyzer.llm_client, LLMClient)

    async def test_success_builds_summary(self, settings):
        llm = mock_llm("Sure, here you go: " + json.dumps(VALID_RESPONSE, ensure_ascii=False))
        analyzer = ArticleAnalyzer(settings, llm_client=llm)

        result = await analyzer.analyze("Sleep and autism", "A study on sleep", "ScienceDaily")

        assert result.status == EnrichmentStatus.OK
        assert not result.is_fallback
        assert result.summary_text == (
            "TITLE: 睡眠と自閉症の新研究\n- 一文目です。\n- 二文目です。\n- 三文目です。"
        )
        assert result.country == "US"
        assert result.category == "研究"
        assert result.reliability == "★★★"
        assert result.parent_meaning == VALID_RESPONSE["parentMeaning"]
        assert result.today_action == VALID_RESPONSE["todayAction"]
        llm.complete.assert_awaited_once()

    async def test_prompt_carries_article(self, settings):
        llm = mock_llm(json.dumps(VALID_RESPONSE))
        analyzer = ArticleAnalyzer(settings, llm_client=llm)

        await analyzer.analyze("Sleep and autism", "A study on sleep", "ScienceDaily")

        prompt = llm.complete.call_args.kwargs["prompt"]
        assert "ソース: ScienceDaily" in prompt
        assert "タイトル: Sleep and autism" in prompt
        assert "内容: A study on sleep" in prompt
        assert '"titleJa"' in prompt

    async def test_missing_fields_defaulted_individually(self, settings):
        llm = mock_llm(json.dumps({"country": "UK", "bullets": ["a", " ", "b", "c", "d"]}))
        analyzer = ArticleAnalyzer(settings, llm_client=llm)

        result = await analyzer.analyze("Original title", "", "NAS")

        assert result.summary_text == "TITLE: Original title\n- a\n- b\n- c"
        assert result.country == "UK"
        assert result.category == "研究"
        assert result.reliability == "★★"
        assert_fully_populated(result)

    async def test_unknown_labels_fall_back_to_defaults(self, settings):
        response = dict(VALID_RESPONSE, category="Science", reliability="5 stars")
        analyzer = ArticleAnalyzer(settings, llm_client=mock_llm(json.dumps(response, ensure_ascii=False)))

        result = await analyzer.analyze("Title", "", "Source")

        assert result.category == "研究"
        assert result.reliability == "★★"
        assert result.country == "US"

    async def test_parse_failure_fallback(self, settings):
        analyzer = ArticleAnalyzer(settings, llm_client=mock_llm("not json at all"))

        result = await analyzer.analyze("Title", "", "Source")

        assert result.status == EnrichmentStatus.PARSE_ERROR
        assert "翻訳・要約処理" in result.summary_text
        assert_fully_populated(result)

    async def test_call_failure_fallback(self, settings):
        analyzer = ArticleAnalyzer(settings, llm_client=mock_llm(error=RuntimeError("quota exceeded")))

        result = await analyzer.analyze("Title", "", "Source")

        assert result.status == EnrichmentStatus.PROVIDER_ERROR
        assert result.is_fallback
        assert "翻訳・要約処理" in result.summary_text
        assert_fully_populated(result)

    async def test_empty_response_fallback(self, settings):
        analyzer = ArticleAnalyzer(settings, llm_client=mock_llm(""))

        result = await analyzer.analyze("Title", "", "Source")

        assert result.status == EnrichmentStatus.PARSE_ERROR


@pytest.mark.asyncio
class TestLLMClient:
    """Tests for LLMClient without network access."""

    async def test_missing_key_raises(self, settings):
        with pytest.raises(ValueError):
            await LLMClient(settings).complete("hello")
