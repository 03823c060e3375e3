"""Shared utilities for the multi-query RAG pipeline.

Utilities Provided:
    - ConfigLoader: YAML/dict configuration with ${VAR} substitution
    - EmbedderHelper: HuggingFace query embedder factory
    - LLMHelper: ChatGroq factory and reply text extraction
    - LoggerFactory / setup_logger: process-wide logging setup
    - parse_query_array / strip_code_fence: tolerant JSON array parsing
"""

from multiquery_rag.utils.config_loader import ConfigLoader
from multiquery_rag.utils.embeddings import EmbedderHelper, resolve_embedding_model
from multiquery_rag.utils.json_array import (
    ParsedQueries,
    ParseFallback,
    ParseResult,
    parse_query_array,
    parse_strict,
    strip_code_fence,
)
from multiquery_rag.utils.llm import LLMHelper
from multiquery_rag.utils.logging import LoggerFactory, setup_logger


__all__ = [
    # Config
    "ConfigLoader",
    # Embeddings
    "EmbedderHelper",
    "resolve_embedding_model",
    # JSON arrays
    "ParseFallback",
    "ParseResult",
    "ParsedQueries",
    "parse_query_array",
    "parse_strict",
    "strip_code_fence",
    # LLM
    "LLMHelper",
    # Logging
    "LoggerFactory",
    "setup_logger",
]
