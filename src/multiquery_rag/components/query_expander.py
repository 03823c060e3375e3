"""Query expansion component for multi-query retrieval.

A single user question often retrieves poorly on its own: compound questions
mix several information needs, and the user's wording may not match the
vocabulary of the indexed passages. This component asks the chat model to
rewrite the question into a small set of search queries before retrieval.

Expansion Modes:
    1. Decompose: Break a compound question into 2-4 simpler sub-questions
       that together answer it. Only the sub-questions are searched; the
       original question is used again at generation time.

    2. Paraphrase: Generate 2-4 alternative phrasings of the question to
       broaden recall. The original question is always searched first.

Output Handling:
    The model is told to answer with a JSON array only. Replies are cleaned of
    markdown code fences and parsed leniently (see
    ``multiquery_rag.utils.json_array``). Any reply that does not yield a
    non-empty array of strings degrades to searching the original question
    alone; the reason is logged and kept on the result. No upper bound is
    placed on how many queries the model returns.

Usage:
    >>> from langchain_groq import ChatGroq
    >>> from multiquery_rag.components import QueryExpander
    >>> expander = QueryExpander(ChatGroq(model="llama-3.3-70b-versatile"))
    >>> result = expander.expand("What is Node.js and how do I deploy it?")
    >>> result.query_set.texts
    ['What is Node.js?', 'How do I deploy a Node.js application?']
"""

import logging
from typing import Any

from langchain_core.prompts import ChatPromptTemplate

from multiquery_rag.types import (
    ExpansionMode,
    ExpansionResult,
    GenerationError,
    QuerySet,
)
from multiquery_rag.utils.json_array import (
    ParsedQueries,
    parse_query_array,
)
from multiquery_rag.utils.llm import LLMHelper


logger = logging.getLogger(__name__)


class QueryExpander:
    """Turn one question into a QuerySet with a single chat model call.

    Attributes:
        llm: LangChain chat model used for expansion.
        DECOMPOSE_PROMPT: Prompt asking for sub-questions as a JSON array.
        PARAPHRASE_PROMPT: Prompt asking for alternative phrasings as a JSON
            array.
    """

    DECOMPOSE_PROMPT = ChatPromptTemplate.from_messages(
        [
            (
                "system",
                "You are an AI assistant that helps break down complex questions "
                "into simpler sub-questions. Return only an array of 2-4 "
                "sub-questions in JSON format.",
            ),
            (
                "human",
                "Break down this complex query into simple sub-queries that "
                'together help answer the original question: "{question}".\n'
                "Format your response as a valid JSON array of strings. For "
                'example: ["sub-question 1", "sub-question 2", "sub-question 3"]',
            ),
        ]
    )

    PARAPHRASE_PROMPT = ChatPromptTemplate.from_messages(
        [
            (
                "system",
                "You are an AI assistant that rewrites search questions. Return "
                "only an array of 2-4 alternative phrasings in JSON format.",
            ),
            (
                "human",
                "Generate different versions of the following question that "
                "would help retrieve relevant documents from a vector database: "
                '"{question}".\n'
                "Use different wording and terminology but keep the meaning. "
                "Format your response as a valid JSON array of strings. For "
                'example: ["version 1", "version 2", "version 3"]',
            ),
        ]
    )

    def __init__(self, llm: Any) -> None:
        """Initialize QueryExpander with a LangChain chat model.

        Args:
            llm: Chat model exposing ``invoke(messages)``. A low temperature
                keeps the JSON format stable.
        """
        self.llm = llm

    def _prompt_for(self, mode: ExpansionMode) -> ChatPromptTemplate:
        if mode is ExpansionMode.DECOMPOSE:
            return self.DECOMPOSE_PROMPT
        return self.PARAPHRASE_PROMPT

    def expand(
        self,
        question: str,
        mode: ExpansionMode | str = ExpansionMode.DECOMPOSE,
    ) -> ExpansionResult:
        """Expand a question into search queries.

        Args:
            question: The original user question.
            mode: ``decompose`` or ``paraphrase``.

        Returns:
            ExpansionResult with the QuerySet, the raw and fence-stripped
            reply, and the fallback reason if the reply was unusable.

        Raises:
            ValueError: If mode is not recognized.
            GenerationError: If the chat model call fails.
        """
        mode = ExpansionMode.parse(mode)
        messages = self._prompt_for(mode).invoke({"question": question})

        try:
            response = self.llm.invoke(messages)
        except Exception as e:
            logger.error("Query expansion call failed (%s): %s", mode.value, e)
            raise GenerationError(question, stage="expansion", cause=e) from e

        raw_output = LLMHelper.message_text(response)
        logger.debug("Expansion reply (%s): %s", mode.value, raw_output)

        parsed = parse_query_array(raw_output)
        cleaned_output = parsed.text
        if isinstance(parsed, ParsedQueries):
            query_set = QuerySet.from_expansion(question, parsed.queries, mode)
            logger.info(
                "Expanded question into %d queries (mode=%s)",
                len(query_set),
                mode.value,
            )
            return ExpansionResult(
                query_set=query_set,
                raw_output=raw_output,
                cleaned_output=cleaned_output,
            )

        logger.warning(
            "Could not parse expansion output (%s), using original question",
            parsed.reason,
        )
        return ExpansionResult(
            query_set=QuerySet.original_only(question),
            raw_output=raw_output,
            cleaned_output=cleaned_output,
            fallback_reason=parsed.reason,
        )
