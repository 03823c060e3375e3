"""Concurrent similarity search for every query in a QuerySet.

Searches for different queries have no data dependency on each other, so they
are issued on a bounded thread pool. Results are always re-joined in QuerySet
order, each call keeping the index's relevance order, so the concatenation
never depends on which search finished first.

The index is a single critical dependency: the first failing search (in
QuerySet order) aborts the whole fan-out with a RetrievalError naming the
query. There is no partial-results mode and no retry.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Protocol

from langchain_core.documents import Document

from multiquery_rag.types import (
    FanoutResult,
    Query,
    QuerySet,
    RetrievalError,
    RetrievedDocument,
)


logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3
DEFAULT_MAX_CONCURRENCY = 8


class SearchIndex(Protocol):
    """Similarity search capability backing the fan-out."""

    def search(self, query: str, k: int) -> list[Document]:
        """Return up to ``k`` documents ranked by descending similarity."""
        ...


class RetrievalFanout:
    """Run one search per query with bounded concurrency.

    Attributes:
        index: Object exposing ``search(query, k)``.
        top_k: Default number of documents requested per query.
        max_concurrency: Upper bound on simultaneous searches.
    """

    def __init__(
        self,
        index: Any,
        top_k: int = DEFAULT_TOP_K,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        if top_k < 1:
            raise ValueError(f"top_k must be >= 1, got {top_k}")
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.index = index
        self.top_k = top_k
        self.max_concurrency = max_concurrency

    def _search(self, query: Query, k: int) -> list[RetrievedDocument]:
        documents = self.index.search(query.text, k)
        return [RetrievedDocument.from_langchain(doc, query) for doc in documents]

    def retrieve(self, query_set: QuerySet, top_k: int | None = None) -> FanoutResult:
        """Search every query and concatenate the results in QuerySet order.

        Args:
            query_set: Queries to search for.
            top_k: Per-query result count; defaults to ``self.top_k``.

        Returns:
            FanoutResult with the tagged documents and per-query counts.

        Raises:
            ValueError: If top_k is smaller than 1.
            RetrievalError: If any search call fails.
        """
        k = self.top_k if top_k is None else top_k
        if k < 1:
            raise ValueError(f"top_k must be >= 1, got {k}")

        max_workers = min(len(query_set), self.max_concurrency)
        logger.info(
            "Searching %d queries (top_k=%d, max_workers=%d)",
            len(query_set),
            k,
            max_workers,
        )

        documents: list[RetrievedDocument] = []
        counts: list[int] = []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures: list[tuple[Query, Future]] = [
                (query, executor.submit(self._search, query, k)) for query in query_set
            ]
            for query, future in futures:
                try:
                    results = future.result()
                except Exception as e:
                    for _, pending in futures:
                        pending.cancel()
                    logger.error("Search failed for %r: %s", query.text, e)
                    raise RetrievalError(query, cause=e) from e

                logger.info(
                    "Retrieved %d documents for query: %s", len(results), query.text
                )
                documents.extend(results)
                counts.append(len(results))

        return FanoutResult(documents=tuple(documents), counts=tuple(counts))
