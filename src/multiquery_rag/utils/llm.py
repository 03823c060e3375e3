"""Chat model helpers shared by query expansion and answer generation."""

import os
from typing import Any

from langchain_groq import ChatGroq


DEFAULT_LLM_MODEL = "llama-3.3-70b-versatile"


class LLMHelper:
    """Helper for creating the chat model and reading its replies."""

    @classmethod
    def create_llm(cls, config: dict[str, Any]) -> ChatGroq:
        """Create ChatGroq LLM from the ``llm`` config section.

        Args:
            config: Configuration dictionary.

        Returns:
            ChatGroq instance.
        """
        llm_config = config.get("llm") or {}

        model = llm_config.get("model", DEFAULT_LLM_MODEL)
        api_key = llm_config.get("api_key") or os.environ.get("GROQ_API_KEY")
        temperature = llm_config.get("temperature", 0.0)
        max_tokens = llm_config.get("max_tokens", 1024)

        return ChatGroq(
            model=model,
            api_key=api_key,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    @staticmethod
    def message_text(response: Any) -> str:
        """Extract plain text from a chat model reply.

        LangChain messages carry either a string or a list of content blocks
        in ``content``; text blocks are concatenated in order.

        Args:
            response: Message returned by ``llm.invoke`` (or a bare string).

        Returns:
            Reply text.
        """
        content = getattr(response, "content", response)
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts = []
            for block in content:
                if isinstance(block, str):
                    parts.append(block)
                elif isinstance(block, dict) and block.get("type", "text") == "text":
                    parts.append(str(block.get("text", "")))
            return "".join(parts)
        return str(content)
