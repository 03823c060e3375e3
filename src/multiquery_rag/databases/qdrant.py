"""Qdrant-backed similarity search for the multi-query pipeline.

The collection is populated by a separate ingestion process; this module only
reads from it. Queries are embedded with the configured HuggingFace model and
searched through LangChain's ``QdrantVectorStore``, which returns
``langchain_core`` Documents ranked by descending similarity.

Example:
    Initialize from a config dictionary::

        index = QdrantSearchIndex(
            config={
                "qdrant": {
                    "url": "http://localhost:6333",
                    "collection_name": "documents",
                },
                "embeddings": {"model": "mpnet"},
            }
        )
        docs = index.search("Node.js event loop", k=3)

Note:
    Connection settings fall back to the ``QDRANT_URL`` and ``QDRANT_API_KEY``
    environment variables. The client is shared read-only by concurrent
    searches.
"""

import logging
import os
from typing import Any

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_qdrant import QdrantVectorStore
from qdrant_client import QdrantClient

from multiquery_rag.utils.config_loader import ConfigLoader
from multiquery_rag.utils.embeddings import EmbedderHelper


logger = logging.getLogger(__name__)

DEFAULT_QDRANT_URL = "http://localhost:6333"
DEFAULT_COLLECTION_NAME = "documents"


class QdrantSearchIndex:
    """Read-only similarity search over an existing Qdrant collection.

    Attributes:
        config: Resolved configuration dictionary.
        url: Qdrant server URL.
        api_key: Authentication token for cloud deployments, if any.
        collection_name: Collection searched by every query.
        client: QdrantClient instance.
        vector_store: LangChain vector store wrapping the collection.
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        config_path: str | None = None,
        embedder: Embeddings | None = None,
    ) -> None:
        """Connect to Qdrant and bind the collection.

        Configuration priority: config_path > config > empty dict.

        Args:
            config: Configuration dictionary with ``qdrant`` and ``embeddings``
                sections.
            config_path: Path to a YAML file with the same sections.
            embedder: Optional embedding model; created from the
                ``embeddings`` section when omitted.
        """
        if config_path:
            self.config = ConfigLoader.load(config_path)
        elif config:
            self.config = ConfigLoader.load(config)
        else:
            self.config = {}

        qdrant_config = self.config.get("qdrant") or {}

        self.url = qdrant_config.get("url") or os.environ.get(
            "QDRANT_URL", DEFAULT_QDRANT_URL
        )
        self.api_key = qdrant_config.get("api_key") or os.environ.get("QDRANT_API_KEY")
        self.collection_name = qdrant_config.get(
            "collection_name", DEFAULT_COLLECTION_NAME
        )

        self.client = QdrantClient(
            url=self.url,
            api_key=self.api_key or None,
            timeout=qdrant_config.get("timeout", 60.0),
            prefer_grpc=qdrant_config.get("prefer_grpc", False),
        )

        if embedder is None:
            embedder = EmbedderHelper.create_embedder(self.config)
        self.vector_store = QdrantVectorStore(
            client=self.client,
            collection_name=self.collection_name,
            embedding=embedder,
        )

        logger.info(
            "Initialized QdrantSearchIndex on collection '%s' at %s",
            self.collection_name,
            self.url,
        )

    def search(self, query: str, k: int) -> list[Document]:
        """Return up to ``k`` documents most similar to the query.

        Args:
            query: Search text; embedded by the vector store.
            k: Number of documents to return.

        Returns:
            Documents ordered by descending similarity.
        """
        documents = self.vector_store.similarity_search(query, k=k)
        logger.debug("Qdrant returned %d documents for: %s", len(documents), query)
        return documents
