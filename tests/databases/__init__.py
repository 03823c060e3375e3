"""Tests for the Qdrant search index.

QdrantClient, QdrantVectorStore and the embedder factory are patched, so the
tests cover configuration handling and delegation to the vector store only.
"""
