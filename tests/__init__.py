"""Test suite for the multiquery_rag package.

The test suite is organized into the following modules:
- tests/components: Tests for expansion, fan-out, deduplication and generation
- tests/databases: Tests for the Qdrant search index
- tests/utils: Tests for configuration, logging, LLM and parsing helpers
- tests/test_pipeline.py: End-to-end pipeline runs against in-memory fakes
- tests/test_cli.py: Command-line output and exit codes

No test needs a running Qdrant server or a Groq API key.
"""
