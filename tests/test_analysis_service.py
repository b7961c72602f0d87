"""Unit tests for AnalysisService and its helpers."""

from unittest.mock import AsyncMock

import pytest

from app.core.errors import AnalysisAppError, ValidationAppError
from app.schemas.analysis import ArticleInput, SEOAnalysisResult
from app.services.analysis_service import (
    ANALYSIS_FAILED_MESSAGE,
    SYSTEM_PROMPT,
    AnalysisService,
    Article,
    _truncate,
    build_prompt,
    validate_article,
)


@pytest.fixture
def article() -> Article:
    return Article(
        title="Best running shoes for beginners",
        headings="## Cushioning\n## Fit\n### Sizing tips",
        content="Running shoes matter. " * 50,
    )


class TestHelperFunctions:
    """Test module-level helper functions."""

    def test_truncate_no_truncation_needed(self) -> None:
        result, was_truncated = _truncate("Short text", max_chars=100)

        assert result == "Short text"
        assert was_truncated is False

    def test_truncate_exact_limit(self) -> None:
        result, was_truncated = _truncate("X" * 500, max_chars=500)

        assert len(result) == 500
        assert was_truncated is False

    def test_truncate_exceeds_limit(self) -> None:
        result, was_truncated = _truncate("X" * 501, max_chars=500)

        assert result == "X" * 500
        assert was_truncated is True

    def test_build_prompt_embeds_fields_and_output_contract(self) -> None:
        prompt = build_prompt("My title", "## H2 one", "Opening paragraph")

        assert "My title" in prompt
        assert "## H2 one" in prompt
        assert "Opening paragraph" in prompt
        for key in ('"score"', '"analysis"', '"improvements"'):
            assert key in prompt
        assert "JSON" in prompt


class TestValidateArticle:
    def test_valid_article(self) -> None:
        article = validate_article(ArticleInput(title="t", headings="h", content="c"))

        assert article == Article(title="t", headings="h", content="c")

    @pytest.mark.parametrize("missing", ["title", "headings", "content"])
    def test_missing_field(self, missing: str) -> None:
        fields = {"title": "t", "headings": "h", "content": "c"}
        fields.pop(missing)

        with pytest.raises(ValidationAppError) as exc_info:
            validate_article(ArticleInput(**fields))

        assert exc_info.value.code == "invalid_input"
        assert exc_info.value.details == {"missing_fields": [missing]}

    def test_blank_fields_are_reported_together(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            validate_article(ArticleInput(title="", headings="   ", content="body"))

        assert exc_info.value.details == {"missing_fields": ["title", "headings"]}


class TestAnalysisService:
    @pytest.mark.asyncio
    async def test_analyze_returns_parsed_result(
        self, mock_llm: AsyncMock, article: Article, sample_llm_output: dict
    ) -> None:
        service = AnalysisService(llm=mock_llm, excerpt_chars=500, temperature=0.7)

        result = await service.analyze(article)

        assert isinstance(result, SEOAnalysisResult)
        assert result.score == sample_llm_output["score"]
        assert result.improvements == sample_llm_output["improvements"]

    @pytest.mark.asyncio
    async def test_only_content_excerpt_is_sent(self, mock_llm: AsyncMock) -> None:
        service = AnalysisService(llm=mock_llm, excerpt_chars=500)
        content = "A" * 500 + "TAIL_SHOULD_NOT_BE_SENT"

        await service.analyze(Article(title="t", headings="h", content=content))

        prompt = mock_llm.generate_json.await_args.args[0]
        assert "A" * 500 in prompt
        assert "TAIL_SHOULD_NOT_BE_SENT" not in prompt

    @pytest.mark.asyncio
    async def test_llm_called_in_json_mode_with_system_prompt(
        self, mock_llm: AsyncMock, article: Article
    ) -> None:
        service = AnalysisService(llm=mock_llm, temperature=0.7)

        await service.analyze(article)

        kwargs = mock_llm.generate_json.await_args.kwargs
        assert kwargs["system_prompt"] == SYSTEM_PROMPT
        assert kwargs["json_mode"] is True
        assert kwargs["temperature"] == 0.7

    def test_defaults_come_from_settings(self, mock_llm: AsyncMock) -> None:
        service = AnalysisService(llm=mock_llm)

        assert service.excerpt_chars == 500
        assert service.temperature == 0.7

    @pytest.mark.asyncio
    async def test_llm_failure_becomes_generic_analysis_error(
        self, mock_llm: AsyncMock, article: Article
    ) -> None:
        mock_llm.generate_json.side_effect = RuntimeError("OpenAI API error: 401 invalid key sk-abc")
        service = AnalysisService(llm=mock_llm)

        with pytest.raises(AnalysisAppError) as exc_info:
            await service.analyze(article)

        assert exc_info.value.code == "analysis_failed"
        assert exc_info.value.message == ANALYSIS_FAILED_MESSAGE
        assert "sk-abc" not in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [TimeoutError("upstream"), KeyError("choices"), OSError("reset")])
    async def test_any_llm_exception_becomes_analysis_error(
        self, mock_llm: AsyncMock, article: Article, error: Exception
    ) -> None:
        mock_llm.generate_json.side_effect = error
        service = AnalysisService(llm=mock_llm)

        with pytest.raises(AnalysisAppError) as exc_info:
            await service.analyze(article)

        assert exc_info.value.code == "analysis_failed"
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "raw",
        [
            {},
            {"score": 150, "analysis": "x", "improvements": []},
            {"score": -1, "analysis": "x", "improvements": []},
            {"score": "high", "analysis": "x", "improvements": []},
            {"score": 50, "analysis": "x"},
            {"score": 50, "analysis": "x", "improvements": "do better"},
            {"score": 50, "analysis": None, "improvements": []},
        ],
    )
    async def test_malformed_model_output_is_analysis_failure(
        self, mock_llm: AsyncMock, article: Article, raw: dict
    ) -> None:
        mock_llm.generate_json.return_value = raw
        service = AnalysisService(llm=mock_llm)

        with pytest.raises(AnalysisAppError) as exc_info:
            await service.analyze(article)

        assert exc_info.value.details is None

    @pytest.mark.asyncio
    async def test_extra_model_keys_are_dropped(self, mock_llm: AsyncMock, article: Article) -> None:
        mock_llm.generate_json.return_value = {
            "score": 90,
            "analysis": "Great",
            "improvements": ["None"],
            "confidence": "high",
        }
        service = AnalysisService(llm=mock_llm)

        result = await service.analyze(article)

        assert result.model_dump() == {"score": 90, "analysis": "Great", "improvements": ["None"]}
