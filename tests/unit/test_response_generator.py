"""Unit tests for LLMResponseGenerator."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage

from chat_sync.core.exceptions import GenerationError
from chat_sync.services.response_generator import LLMResponseGenerator


def _llm(content: str = "", error: Exception | None = None) -> MagicMock:
    mock = MagicMock(spec=BaseChatModel)
    if error is not None:
        mock.ainvoke = AsyncMock(side_effect=error)
    else:
        mock.ainvoke = AsyncMock(return_value=AIMessage(content=content))
    return mock


class TestLLMResponseGenerator:
    """Tests for LLMResponseGenerator.generate."""

    @pytest.mark.asyncio
    async def test_returns_model_reply(self, mock_llm: MagicMock) -> None:
        generator = LLMResponseGenerator(mock_llm)

        assert await generator.generate("hello") == "Test response"
        mock_llm.ainvoke.assert_called_once_with("hello")

    @pytest.mark.asyncio
    async def test_strips_whitespace(self) -> None:
        generator = LLMResponseGenerator(_llm("  hi there \n"))

        assert await generator.generate("hello") == "hi there"

    @pytest.mark.asyncio
    async def test_empty_reply_is_failure(self) -> None:
        generator = LLMResponseGenerator(_llm("   "))

        with pytest.raises(GenerationError) as exc_info:
            await generator.generate("hello")
        assert exc_info.value.code == "GENERATION_ERROR"

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self) -> None:
        cause = RuntimeError("rate limited")
        generator = LLMResponseGenerator(_llm(error=cause))

        with pytest.raises(GenerationError) as exc_info:
            await generator.generate("hello")
        assert exc_info.value.__cause__ is cause
        assert "rate limited" in exc_info.value.message
