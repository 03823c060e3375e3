"""Shared fixtures for multiquery_rag tests.

Fixtures:
    make_document: Factory for LangChain Documents.
    fake_index: In-memory search index with per-query results, optional
        per-query delays and failures.
    scripted_llm: MagicMock chat model replying with a fixed sequence of
        AIMessages.
    pipeline_config_dict: Complete configuration dictionary.

All tests run without network access; ChatGroq, QdrantClient,
QdrantVectorStore and HuggingFaceEmbeddings are patched where constructed.
"""

import threading
import time
from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
from langchain_core.documents import Document
from langchain_core.messages import AIMessage


class FakeSearchIndex:
    """Search index returning canned documents per query text.

    Attributes:
        results: Mapping of query text to ranked documents.
        delays: Mapping of query text to seconds slept before answering.
        failures: Mapping of query text to the exception to raise.
        calls: (query, k) pairs in the order searches started.
    """

    def __init__(
        self,
        results: dict[str, list[Document]] | None = None,
        delays: dict[str, float] | None = None,
        failures: dict[str, Exception] | None = None,
    ) -> None:
        self.results = results or {}
        self.delays = delays or {}
        self.failures = failures or {}
        self.calls: list[tuple[str, int]] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def search(self, query: str, k: int) -> list[Document]:
        with self._lock:
            self.calls.append((query, k))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            delay = self.delays.get(query)
            if delay:
                time.sleep(delay)
            if query in self.failures:
                raise self.failures[query]
            return list(self.results.get(query, []))[:k]
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture
def make_document() -> Callable[..., Document]:
    """Create LangChain documents with optional metadata."""

    def _make(content: str, **metadata) -> Document:
        return Document(page_content=content, metadata=metadata)

    return _make


@pytest.fixture
def fake_index() -> Callable[..., FakeSearchIndex]:
    """Factory for FakeSearchIndex instances."""
    return FakeSearchIndex


@pytest.fixture
def scripted_llm() -> Callable[..., MagicMock]:
    """Factory for a mock chat model replying with the given texts in order."""

    def _make(*replies: str) -> MagicMock:
        llm = MagicMock()
        llm.invoke.side_effect = [AIMessage(content=reply) for reply in replies]
        return llm

    return _make


@pytest.fixture
def pipeline_config_dict() -> dict:
    """Complete pipeline configuration for tests."""
    return {
        "qdrant": {
            "url": "http://localhost:6333",
            "api_key": "",
            "collection_name": "test_multiquery",
        },
        "embeddings": {"model": "test-model", "device": "cpu"},
        "llm": {"model": "test-llm", "api_key": "test-key", "temperature": 0.0},
        "expansion": {"mode": "paraphrase"},
        "retrieval": {"top_k": 2, "max_concurrency": 4},
        "pipeline": {"timeout": 30},
        "logging": {"name": "multiquery_rag_test", "level": "DEBUG"},
    }
