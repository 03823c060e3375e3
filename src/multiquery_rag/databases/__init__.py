"""Vector index backends for the multi-query pipeline."""

from multiquery_rag.databases.qdrant import QdrantSearchIndex


__all__ = ["QdrantSearchIndex"]
