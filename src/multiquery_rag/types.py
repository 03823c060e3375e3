"""Shared pipeline types and exceptions.

Every object here is created and consumed within a single pipeline
invocation. Index and model handles live in ``PipelineConfig`` instead.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from langchain_core.documents import Document


class QueryRole(str, Enum):
    """Where a search query came from."""

    ORIGINAL = "original"
    DECOMPOSED = "decomposed"
    PARAPHRASE = "paraphrase"


class ExpansionMode(str, Enum):
    """How the question is turned into search queries."""

    DECOMPOSE = "decompose"
    PARAPHRASE = "paraphrase"

    @classmethod
    def parse(cls, value: ExpansionMode | str) -> ExpansionMode:
        """Resolve a mode from an enum member or a case-insensitive name.

        Raises:
            ValueError: If the name is not a known mode.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        choices = ", ".join(mode.value for mode in cls)
        msg = f"Unknown expansion mode: {value!r}. Must be one of: {choices}"
        raise ValueError(msg)


class PipelineState(str, Enum):
    """Stages of a single pipeline invocation."""

    START = "start"
    EXPANDING = "expanding"
    RETRIEVING = "retrieving"
    AGGREGATING = "aggregating"
    GENERATING = "generating"
    DONE = "done"
    FAILED = "failed"


class ExpansionParseError(ValueError):
    """Raised when expansion output is not a non-empty JSON array of strings.

    Recovered inside the query expander; callers never see it.
    """


class PipelineError(Exception):
    """Base class for fatal pipeline failures.

    Attributes:
        state: Terminal state of the invocation once the error has left the
            pipeline (``PipelineState.FAILED``).
        failed_stage: Stage that was active when the failure happened.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.state: PipelineState | None = None
        self.failed_stage: PipelineState | None = None


class RetrievalError(PipelineError):
    """Raised when a similarity search call fails."""

    def __init__(self, query: Query, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Search failed for query {query.text!r}{detail}")
        self.query = query


class GenerationError(PipelineError):
    """Raised when a chat model call fails.

    Attributes:
        question: The original user question, kept for caller-side retry.
        stage: ``"expansion"`` or ``"generation"``.
    """

    def __init__(
        self,
        question: str,
        stage: str = "generation",
        cause: BaseException | None = None,
    ) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Model call failed during {stage}{detail}")
        self.question = question
        self.stage = stage


class PipelineTimeoutError(PipelineError):
    """Raised when a request exceeds the configured pipeline timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Pipeline did not finish within {timeout} seconds")
        self.timeout = timeout


@dataclass(frozen=True, slots=True)
class Query:
    """A search string tagged with its origin."""

    text: str
    role: QueryRole


@dataclass(frozen=True)
class QuerySet(Sequence):
    """Ordered, non-empty sequence of queries to retrieve for."""

    queries: tuple[Query, ...]

    def __post_init__(self) -> None:
        if not self.queries:
            msg = "QuerySet requires at least one query"
            raise ValueError(msg)

    @classmethod
    def original_only(cls, question: str) -> QuerySet:
        """QuerySet holding just the user's question."""
        return cls((Query(question, QueryRole.ORIGINAL),))

    @classmethod
    def from_expansion(
        cls,
        question: str,
        queries: Sequence[str],
        mode: ExpansionMode,
    ) -> QuerySet:
        """Build the QuerySet for successfully parsed expansion output.

        Decomposition keeps the sub-questions as-is; paraphrasing puts the
        original question first.
        """
        if mode is ExpansionMode.DECOMPOSE:
            return cls(tuple(Query(q, QueryRole.DECOMPOSED) for q in queries))
        return cls(
            (Query(question, QueryRole.ORIGINAL),)
            + tuple(Query(q, QueryRole.PARAPHRASE) for q in queries)
        )

    @property
    def texts(self) -> list[str]:
        return [query.text for query in self.queries]

    def __getitem__(self, index):
        return self.queries[index]

    def __len__(self) -> int:
        return len(self.queries)

    def __iter__(self) -> Iterator[Query]:
        return iter(self.queries)


@dataclass(frozen=True, slots=True)
class RetrievedDocument:
    """A retrieved passage and the query that found it.

    Attributes:
        content: Passage text.
        metadata: Source metadata as stored in the index.
        query: Query whose search returned this passage.
    """

    content: str
    metadata: dict[str, Any]
    query: Query

    @classmethod
    def from_langchain(cls, document: Document, query: Query) -> RetrievedDocument:
        return cls(
            content=document.page_content,
            metadata=dict(document.metadata or {}),
            query=query,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "metadata": self.metadata,
            "query": self.query.text,
            "role": self.query.role.value,
        }


@dataclass(frozen=True)
class DocumentPool:
    """Ordered documents with pairwise distinct content."""

    documents: tuple[RetrievedDocument, ...] = ()

    def __post_init__(self) -> None:
        contents = [doc.content for doc in self.documents]
        if len(set(contents)) != len(contents):
            msg = "DocumentPool contents must be unique"
            raise ValueError(msg)

    @property
    def contents(self) -> list[str]:
        return [doc.content for doc in self.documents]

    def __len__(self) -> int:
        return len(self.documents)

    def __iter__(self) -> Iterator[RetrievedDocument]:
        return iter(self.documents)


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    question: str
    context: str


@dataclass(frozen=True, slots=True)
class GenerationResult:
    question: str
    answer: str


@dataclass(frozen=True)
class ExpansionResult:
    """Outcome of query expansion.

    Attributes:
        query_set: Queries to retrieve for.
        raw_output: Model reply exactly as received.
        cleaned_output: Text the queries were parsed from, normally the
            reply after code-fence stripping.
        fallback_reason: Why the reply was rejected, or None if it parsed.
    """

    query_set: QuerySet
    raw_output: str = ""
    cleaned_output: str = ""
    fallback_reason: str | None = None

    @property
    def used_fallback(self) -> bool:
        return self.fallback_reason is not None


@dataclass(frozen=True)
class FanoutResult:
    """Concatenated search results plus per-query hit counts.

    ``counts[i]`` is the number of documents returned for ``query_set[i]``.
    """

    documents: tuple[RetrievedDocument, ...] = ()
    counts: tuple[int, ...] = ()

    @property
    def total(self) -> int:
        return len(self.documents)


@dataclass(frozen=True)
class PipelineResult:
    """Everything produced by one successful pipeline invocation."""

    question: str
    mode: ExpansionMode
    expansion: ExpansionResult
    fanout: FanoutResult
    pool: DocumentPool
    context: str
    generation: GenerationResult
    state: PipelineState = field(default=PipelineState.DONE)

    @property
    def answer(self) -> str:
        return self.generation.answer

    def to_dict(self) -> dict[str, Any]:
        query_set = self.expansion.query_set
        return {
            "question": self.question,
            "mode": self.mode.value,
            "state": self.state.value,
            "expansion": {
                "raw_output": self.expansion.raw_output,
                "cleaned_output": self.expansion.cleaned_output,
                "fallback_reason": self.expansion.fallback_reason,
            },
            "queries": [
                {"text": query.text, "role": query.role.value, "retrieved": count}
                for query, count in zip(query_set, self.fanout.counts)
            ],
            "total_retrieved": self.fanout.total,
            "unique_documents": len(self.pool),
            "documents": [doc.to_dict() for doc in self.pool],
            "answer": self.answer,
        }
