"""Pipeline components for multi-query retrieval-augmented generation.

Components, in pipeline order:
    QueryExpander: One chat model call turning the question into a QuerySet,
        by decomposition into sub-questions or by paraphrasing.
    RetrievalFanout: One similarity search per query on a bounded thread
        pool, re-joined in QuerySet order.
    deduplicate: First-occurrence content deduplication into a DocumentPool.
    assemble_context: Newline-joined pool contents.
    AnswerGenerator: One grounded chat model call over the assembled context.
"""

from multiquery_rag.components.answer_generator import AnswerGenerator
from multiquery_rag.components.context_assembler import assemble_context
from multiquery_rag.components.deduplicator import deduplicate
from multiquery_rag.components.query_expander import QueryExpander
from multiquery_rag.components.retrieval_fanout import RetrievalFanout, SearchIndex


__all__ = [
    "AnswerGenerator",
    "QueryExpander",
    "RetrievalFanout",
    "SearchIndex",
    "assemble_context",
    "deduplicate",
]
