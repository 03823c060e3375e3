"""Grounded answer generation from assembled context."""

import logging
from typing import Any

from langchain_core.prompts import ChatPromptTemplate

from multiquery_rag.types import GenerationError, GenerationRequest, GenerationResult
from multiquery_rag.utils.llm import LLMHelper


logger = logging.getLogger(__name__)


class AnswerGenerator:
    """Answer the original question from retrieved context with one model call.

    The system message is the only guard against missing information: it tells
    the model to answer from the context alone and to say it does not know
    otherwise. There is no separate "not found" check, and an empty context is
    passed through unchanged.
    """

    PROMPT = ChatPromptTemplate.from_messages(
        [
            (
                "system",
                "You are a helpful assistant that answers questions based on the "
                "provided context.\n"
                "If the information cannot be found in the context, say you "
                "don't know.\n\n"
                "Context: {context}",
            ),
            ("human", "{question}"),
        ]
    )

    def __init__(self, llm: Any, prompt: ChatPromptTemplate | None = None) -> None:
        """Initialize the generator.

        Args:
            llm: Chat model exposing ``invoke(messages)``.
            prompt: Optional replacement template; must take ``context`` and
                ``question`` variables.
        """
        self.llm = llm
        self.prompt = prompt if prompt is not None else self.PROMPT

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Render the prompt once and invoke the model once.

        Raises:
            GenerationError: If the model call fails.
        """
        messages = self.prompt.invoke(
            {"question": request.question, "context": request.context}
        )
        try:
            response = self.llm.invoke(messages)
        except Exception as e:
            logger.error("Answer generation failed: %s", e)
            raise GenerationError(request.question, stage="generation", cause=e) from e

        return GenerationResult(
            question=request.question,
            answer=LLMHelper.message_text(response),
        )
