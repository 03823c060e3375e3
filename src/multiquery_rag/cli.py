"""Command-line entry point for the multi-query RAG pipeline.

Runs one question through the pipeline and prints each step: the raw and
cleaned expansion output, the resolved queries, per-query retrieval counts,
total vs de-duplicated document counts, and the final answer.

Usage:
    multiquery-rag --config config.yaml --mode paraphrase \
        --question "How does the Node.js event loop work?"
"""

import argparse
import dataclasses
import json
import os
import sys
from typing import Any

from multiquery_rag.pipeline import MultiQueryRAGPipeline, PipelineConfig
from multiquery_rag.types import ExpansionMode, PipelineError, PipelineResult
from multiquery_rag.utils.config_loader import ConfigLoader
from multiquery_rag.utils.logging import setup_logger


DEFAULT_QUESTION = (
    "What are the key features of Node.js and how do you build a weather "
    "application with it?"
)

CONFIG_ENV_VAR = "MULTIQUERY_RAG_CONFIG"

# Used when neither --config nor MULTIQUERY_RAG_CONFIG is given
DEFAULT_CONFIG: dict[str, Any] = {
    "qdrant": {
        "url": "${QDRANT_URL:-http://localhost:6333}",
        "api_key": "${QDRANT_API_KEY:-}",
        "collection_name": "${QDRANT_COLLECTION:-documents}",
    },
    "embeddings": {"model": "${EMBEDDING_MODEL:-mpnet}", "device": "cpu"},
    "llm": {
        "model": "${GROQ_MODEL:-llama-3.3-70b-versatile}",
        "api_key": "${GROQ_API_KEY:-}",
        "temperature": 0.0,
    },
    "logging": {"level": "${LOG_LEVEL:-INFO}"},
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multiquery-rag",
        description="Answer a question with multi-query retrieval over Qdrant.",
    )
    parser.add_argument(
        "--config",
        default=os.environ.get(CONFIG_ENV_VAR),
        help=f"YAML config path (default: ${CONFIG_ENV_VAR} or built-in).",
    )
    parser.add_argument(
        "--question", default=DEFAULT_QUESTION, help="Question to answer."
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ExpansionMode],
        help="Query expansion mode (default: from config).",
    )
    parser.add_argument("--top-k", type=int, help="Documents retrieved per query.")
    parser.add_argument(
        "--max-concurrency", type=int, help="Maximum simultaneous searches."
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Request timeout in seconds; 0 disables the timeout.",
    )
    parser.add_argument(
        "--json", action="store_true", help="Print the result as JSON."
    )
    return parser


def format_result(result: PipelineResult) -> str:
    """Render a pipeline result as the step-by-step console report."""
    expansion = result.expansion
    lines = [
        "Raw expansion output:",
        expansion.raw_output,
        "",
        "Cleaned expansion output:",
        expansion.cleaned_output,
        "",
    ]
    if expansion.used_fallback:
        lines.append(
            f"Could not parse queries ({expansion.fallback_reason}), "
            "using original question"
        )
    lines.append(f"Queries ({result.mode.value}): {expansion.query_set.texts}")
    for query, count in zip(expansion.query_set, result.fanout.counts):
        lines.append(f'Searching for: "{query.text}" -> {count} documents')
    lines.append(
        f"Retrieved {result.fanout.total} total docs, "
        f"{len(result.pool)} after deduplication"
    )
    lines.extend(["", "FINAL ANSWER:", result.answer])
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = ConfigLoader.load(args.config or DEFAULT_CONFIG)
    except (OSError, ValueError) as e:
        print(f"Could not load configuration: {e}", file=sys.stderr)
        return 2
    logger = setup_logger(config)

    try:
        pipeline_config = PipelineConfig.from_config(config).with_overrides(
            mode=args.mode,
            top_k=args.top_k,
            max_concurrency=args.max_concurrency,
        )
        if args.timeout is not None:
            pipeline_config = dataclasses.replace(
                pipeline_config, timeout=args.timeout if args.timeout > 0 else None
            )
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    pipeline = MultiQueryRAGPipeline(pipeline_config)
    try:
        result = pipeline.run(args.question)
    except PipelineError as e:
        print(f"Pipeline failed: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_result(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
