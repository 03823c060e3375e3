"""Multi-query retrieval-augmented generation over a Qdrant index.

This package answers a question by expanding it into several search queries
(sub-question decomposition or paraphrasing), searching a pre-built Qdrant
collection for each, de-duplicating the merged results and asking a chat
model for an answer grounded in them.
"""

from multiquery_rag.pipeline import MultiQueryRAGPipeline, PipelineConfig
from multiquery_rag.types import (
    DocumentPool,
    ExpansionMode,
    ExpansionParseError,
    ExpansionResult,
    FanoutResult,
    GenerationError,
    GenerationRequest,
    GenerationResult,
    PipelineError,
    PipelineResult,
    PipelineState,
    PipelineTimeoutError,
    Query,
    QueryRole,
    QuerySet,
    RetrievalError,
    RetrievedDocument,
)


__all__ = [
    "DocumentPool",
    "ExpansionMode",
    "ExpansionParseError",
    "ExpansionResult",
    "FanoutResult",
    "GenerationError",
    "GenerationRequest",
    "GenerationResult",
    "MultiQueryRAGPipeline",
    "PipelineConfig",
    "PipelineError",
    "PipelineResult",
    "PipelineState",
    "PipelineTimeoutError",
    "Query",
    "QueryRole",
    "QuerySet",
    "RetrievalError",
    "RetrievedDocument",
]
