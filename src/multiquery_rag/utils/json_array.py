"""Tolerant parsing of JSON string arrays out of free-form model replies.

Chat models asked for "a JSON array and nothing else" still wrap the array in
markdown code fences, prepend a sentence of prose, or return an object
instead. This module turns such replies into a tagged result:

    - ``ParsedQueries``: a non-empty list of strings was recovered.
    - ``ParseFallback``: nothing usable was found; ``reason`` says why.

``parse_query_array`` never raises. The strict parser underneath raises
``ExpansionParseError`` and the tolerant wrapper converts it.

Usage:
    >>> from multiquery_rag.utils.json_array import parse_query_array
    >>> parse_query_array('```json\\n["a", "b"]\\n```')
    ParsedQueries(queries=('a', 'b'))
    >>> parse_query_array("I cannot help with that.")
    ParseFallback(reason='no JSON array found')
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Union

from multiquery_rag.types import ExpansionParseError


# Fenced block, optionally tagged json/javascript. The body is captured lazily
# so the first closing fence ends it.
_CODE_FENCE_PATTERN = re.compile(
    r"```[ \t]*(?:json|javascript)?[ \t]*\r?\n?(.*?)```",
    re.DOTALL | re.IGNORECASE,
)

# Outermost bracketed span: first "[" through last "]".
_ARRAY_SPAN_PATTERN = re.compile(r"\[.*\]", re.DOTALL)


@dataclass(frozen=True)
class ParsedQueries:
    """Queries recovered from a reply; ``text`` is the span they were parsed from."""

    queries: tuple[str, ...]
    text: str = field(default="", compare=False, repr=False)


@dataclass(frozen=True)
class ParseFallback:
    reason: str
    text: str = field(default="", compare=False, repr=False)


ParseResult = Union[ParsedQueries, ParseFallback]


def strip_code_fence(text: str) -> str:
    """Return the body of the first markdown code fence, or the text itself.

    Args:
        text: Raw model reply.

    Returns:
        Fence body (or the whole text when there is no complete fence),
        with surrounding whitespace removed.
    """
    match = _CODE_FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def _validate_array(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        msg = f"expected a JSON array, got {type(value).__name__}"
        raise ExpansionParseError(msg)
    if not value:
        msg = "JSON array is empty"
        raise ExpansionParseError(msg)
    for index, item in enumerate(value):
        if not isinstance(item, str):
            msg = f"array element {index} is {type(item).__name__}, not a string"
            raise ExpansionParseError(msg)
    return tuple(value)


def parse_strict(text: str) -> tuple[str, ...]:
    """Parse text into a non-empty tuple of strings.

    A reply that is valid JSON as a whole must be the array itself. Anything
    else is searched for a bracketed span, which is then parsed on its own.

    Raises:
        ExpansionParseError: If no valid non-empty string array is found.
    """
    try:
        whole = json.loads(text)
    except (ValueError, RecursionError):
        pass
    else:
        return _validate_array(whole)

    match = _ARRAY_SPAN_PATTERN.search(text)
    if match is None:
        msg = "no JSON array found"
        raise ExpansionParseError(msg)

    try:
        value = json.loads(match.group(0))
    except (ValueError, RecursionError) as e:
        msg = f"invalid JSON array: {e}"
        raise ExpansionParseError(msg) from e
    return _validate_array(value)


def parse_query_array(text: str) -> ParseResult:
    """Strip code fences and parse a JSON array of query strings.

    A fence that does not hold the array (an example snippet after the
    answer, say) is ignored and the whole reply is parsed instead. Either
    result carries the text that was parsed in ``text``.

    Args:
        text: Raw model reply.

    Returns:
        ``ParsedQueries`` on success, ``ParseFallback`` otherwise.
    """
    cleaned = strip_code_fence(text)
    try:
        return ParsedQueries(parse_strict(cleaned), text=cleaned)
    except ExpansionParseError as e:
        error = e

    unfenced = text.strip()
    if unfenced != cleaned:
        try:
            return ParsedQueries(parse_strict(unfenced), text=unfenced)
        except ExpansionParseError:
            pass
    return ParseFallback(str(error), text=cleaned)
