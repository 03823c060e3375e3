"""Context assembly for answer generation."""

from multiquery_rag.types import DocumentPool


CONTEXT_SEPARATOR = "\n"


def assemble_context(pool: DocumentPool, separator: str = CONTEXT_SEPARATOR) -> str:
    """Join pooled document contents in pool order.

    The result is not truncated; a large pool can exceed the model's input
    window. An empty pool gives an empty string.
    """
    return separator.join(doc.content for doc in pool)
