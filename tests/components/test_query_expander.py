"""Tests for QueryExpander.

QueryExpander turns one question into a QuerySet with a single chat model
call, in decompose or paraphrase mode, falling back to the original question
when the reply cannot be parsed.

Test Coverage:
    - Prompt templates for both modes
    - Decompose mode: sub-questions only, original excluded
    - Paraphrase mode: original first, then variants
    - Code-fenced replies
    - Fallback on malformed replies, with the reason recorded and logged
    - Model failures raising GenerationError
    - No cap on the number of generated queries

All tests mock the LLM to avoid external API calls.
"""

import logging
from unittest.mock import MagicMock

import pytest
from langchain_core.messages import AIMessage
from langchain_core.prompt_values import ChatPromptValue

from multiquery_rag.components.query_expander import QueryExpander
from multiquery_rag.types import ExpansionMode, GenerationError, QueryRole


NODE_QUESTION = (
    "What are the key features of Node.js and how do you build a weather "
    "application with it?"
)


class TestQueryExpanderPrompts:
    """Tests for the class-level prompt templates."""

    def test_decompose_prompt_variables(self):
        assert QueryExpander.DECOMPOSE_PROMPT.input_variables == ["question"]

    def test_paraphrase_prompt_variables(self):
        assert QueryExpander.PARAPHRASE_PROMPT.input_variables == ["question"]

    def test_decompose_prompt_renders_question(self):
        messages = QueryExpander.DECOMPOSE_PROMPT.format_messages(question="Why?")

        assert [m.type for m in messages] == ["system", "human"]
        assert "JSON" in messages[0].content
        assert '"Why?"' in messages[1].content

    def test_question_with_braces_is_not_a_template(self, scripted_llm):
        llm = scripted_llm('["a"]')
        expander = QueryExpander(llm)

        expander.expand("What does {x} mean in f-strings?")

        rendered = llm.invoke.call_args.args[0]
        assert isinstance(rendered, ChatPromptValue)
        assert "{x}" in rendered.to_messages()[1].content


class TestDecomposeMode:
    """Tests for decomposition into sub-questions."""

    def test_sub_questions_only(self, scripted_llm):
        llm = scripted_llm(
            '["Node.js key features", "Building a weather app with Node.js"]'
        )
        expander = QueryExpander(llm)

        result = expander.expand(NODE_QUESTION, ExpansionMode.DECOMPOSE)

        assert result.query_set.texts == [
            "Node.js key features",
            "Building a weather app with Node.js",
        ]
        assert NODE_QUESTION not in result.query_set.texts
        assert all(q.role is QueryRole.DECOMPOSED for q in result.query_set)
        assert not result.used_fallback
        llm.invoke.assert_called_once()

    def test_mode_accepts_string(self, scripted_llm):
        expander = QueryExpander(scripted_llm('["a", "b"]'))

        result = expander.expand("q", "decompose")

        assert result.query_set.texts == ["a", "b"]

    def test_no_upper_bound_on_queries(self, scripted_llm):
        reply = '["q1", "q2", "q3", "q4", "q5", "q6"]'
        expander = QueryExpander(scripted_llm(reply))

        result = expander.expand("question", ExpansionMode.DECOMPOSE)

        assert len(result.query_set) == 6

    def test_single_query_accepted(self, scripted_llm):
        expander = QueryExpander(scripted_llm('["only"]'))

        result = expander.expand("question")

        assert result.query_set.texts == ["only"]


class TestParaphraseMode:
    """Tests for paraphrase generation."""

    def test_original_prepended(self, scripted_llm):
        expander = QueryExpander(scripted_llm('["variant one", "variant two"]'))

        result = expander.expand("original?", ExpansionMode.PARAPHRASE)

        assert result.query_set.texts == ["original?", "variant one", "variant two"]
        roles = [q.role for q in result.query_set]
        assert roles == [QueryRole.ORIGINAL, QueryRole.PARAPHRASE, QueryRole.PARAPHRASE]

    def test_fenced_reply(self, scripted_llm):
        raw = '```json\n["a","b"]\n```'
        expander = QueryExpander(scripted_llm(raw))

        result = expander.expand("original?", ExpansionMode.PARAPHRASE)

        assert result.query_set.texts == ["original?", "a", "b"]
        assert result.raw_output == raw
        assert result.cleaned_output == '["a","b"]'

    def test_uses_paraphrase_prompt(self, scripted_llm):
        llm = scripted_llm('["a"]')
        expander = QueryExpander(llm)

        expander.expand("original?", ExpansionMode.PARAPHRASE)

        rendered = llm.invoke.call_args.args[0].to_messages()
        assert "alternative phrasings" in rendered[0].content


class TestExpansionFallback:
    """Tests for recovery from unusable replies."""

    @pytest.mark.parametrize("mode", list(ExpansionMode))
    @pytest.mark.parametrize(
        "reply",
        [
            "I cannot do that.",
            '{"questions": ["a", "b"]}',
            '["a", 1]',
            "[]",
            "[broken",
        ],
    )
    def test_malformed_reply_gives_original_only(self, scripted_llm, mode, reply):
        expander = QueryExpander(scripted_llm(reply))

        result = expander.expand("original?", mode)

        assert result.query_set.texts == ["original?"]
        assert result.query_set[0].role is QueryRole.ORIGINAL
        assert result.used_fallback
        assert result.raw_output == reply

    def test_fallback_is_logged(self, scripted_llm, caplog):
        expander = QueryExpander(scripted_llm("no array here"))

        with caplog.at_level(logging.WARNING):
            expander.expand("original?")

        assert "using original question" in caplog.text

    def test_fallback_reason_recorded(self, scripted_llm):
        expander = QueryExpander(scripted_llm("[]"))

        result = expander.expand("original?")

        assert result.fallback_reason == "JSON array is empty"

    def test_deeply_nested_reply_falls_back(self, scripted_llm):
        expander = QueryExpander(scripted_llm("[" * 100000))

        result = expander.expand("original?")

        assert result.query_set.texts == ["original?"]
        assert result.used_fallback

    def test_array_before_unrelated_fence(self, scripted_llm):
        raw = '["a", "b"]\n\nYou can use them like:\n```\nsearch(q)\n```'
        expander = QueryExpander(scripted_llm(raw))

        result = expander.expand("original?", ExpansionMode.PARAPHRASE)

        assert result.query_set.texts == ["original?", "a", "b"]
        assert not result.used_fallback
        # Reported cleaned output is the text the queries came from
        assert result.cleaned_output == raw


class TestExpansionErrors:
    """Tests for failures that are not recoverable."""

    def test_model_failure_raises_generation_error(self):
        llm = MagicMock()
        llm.invoke.side_effect = ConnectionError("groq unavailable")
        expander = QueryExpander(llm)

        with pytest.raises(GenerationError) as exc_info:
            expander.expand("original?")

        assert exc_info.value.stage == "expansion"
        assert exc_info.value.question == "original?"
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_unknown_mode(self):
        llm = MagicMock()
        llm.invoke.return_value = AIMessage(content='["a"]')
        expander = QueryExpander(llm)

        with pytest.raises(ValueError, match="Unknown expansion mode"):
            expander.expand("original?", "hyde")
        llm.invoke.assert_not_called()
