"""Embedding model factory for query-time similarity search.

The Qdrant collection is populated out-of-band, so the embedding model named
here must be the one the collection was built with. Only query embedding
happens inside this package.

Configuration:
    .. code-block:: yaml

        embeddings:
          model: sentence-transformers/all-mpnet-base-v2
          device: cpu  # or cuda
          batch_size: 32

Usage:
    >>> from multiquery_rag.utils.embeddings import EmbedderHelper
    >>> embedder = EmbedderHelper.create_embedder({"embeddings": {"model": "mpnet"}})
"""

from typing import Any

from langchain_huggingface import HuggingFaceEmbeddings


# Short names accepted in place of full HuggingFace model paths
EMBEDDING_MODEL_ALIASES: dict[str, str] = {
    "minilm": "sentence-transformers/all-MiniLM-L6-v2",
    "mpnet": "sentence-transformers/all-mpnet-base-v2",
}

DEFAULT_EMBEDDING_MODEL = "sentence-transformers/all-mpnet-base-v2"


def resolve_embedding_model(model_name: str) -> str:
    """Resolve embedding model name from alias or return as-is."""
    return EMBEDDING_MODEL_ALIASES.get(model_name.lower(), model_name)


class EmbedderHelper:
    """Helper class for HuggingFace embedding model operations."""

    @classmethod
    def create_embedder(cls, config: dict[str, Any]) -> HuggingFaceEmbeddings:
        """Create HuggingFaceEmbeddings from config.

        Args:
            config: Configuration dictionary with embeddings section.

        Returns:
            HuggingFaceEmbeddings instance.
        """
        embeddings_config = config.get("embeddings") or {}
        model = resolve_embedding_model(
            embeddings_config.get("model", DEFAULT_EMBEDDING_MODEL)
        )
        device = embeddings_config.get("device", "cpu")
        batch_size = embeddings_config.get("batch_size", 32)

        return HuggingFaceEmbeddings(
            model_name=model,
            model_kwargs={"device": device},
            encode_kwargs={"batch_size": batch_size},
        )

