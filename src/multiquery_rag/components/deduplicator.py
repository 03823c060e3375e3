"""Order-preserving content deduplication of fan-out results."""

from collections.abc import Iterable

from multiquery_rag.types import DocumentPool, RetrievedDocument


def deduplicate(documents: Iterable[RetrievedDocument]) -> DocumentPool:
    """Keep the first document for each distinct content string.

    Later duplicates are dropped together with the query that found them, so a
    pooled document only remembers the first query that retrieved it.

    Args:
        documents: Fan-out results in concatenation order.

    Returns:
        DocumentPool in first-occurrence order.
    """
    seen_contents: set[str] = set()
    unique_docs: list[RetrievedDocument] = []

    for doc in documents:
        if doc.content not in seen_contents:
            seen_contents.add(doc.content)
            unique_docs.append(doc)

    return DocumentPool(tuple(unique_docs))
