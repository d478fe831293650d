"""Reply generation backed by a LangChain chat model."""

from langchain_core.language_models import BaseChatModel

from chat_sync.core.exceptions import GenerationError


class LLMResponseGenerator:
    """Generates the ai reply for a user message."""

    def __init__(self, llm: BaseChatModel) -> None:
        self._llm = llm

    async def generate(self, prompt: str) -> str:
        """Return the model's reply text; empty output counts as a failure."""
        try:
            response = await self._llm.ainvoke(prompt)
        except Exception as exc:
            raise GenerationError(f"Model invocation failed: {exc}") from exc

        text = str(response.content).strip()
        if not text:
            raise GenerationError("Model returned an empty reply")
        return text
