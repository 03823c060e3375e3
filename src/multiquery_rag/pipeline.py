"""Multi-query retrieval-augmented generation pipeline.

One invocation answers one question:

    START -> EXPANDING -> RETRIEVING -> AGGREGATING -> GENERATING -> DONE

    - EXPANDING: QueryExpander turns the question into a QuerySet. Unusable
      model output falls back to the original question and the pipeline
      carries on.
    - RETRIEVING: RetrievalFanout searches every query concurrently and
      re-joins results in QuerySet order.
    - AGGREGATING: results are de-duplicated by content and joined into one
      context string. An empty pool is allowed.
    - GENERATING: AnswerGenerator answers the original question from the
      context.

A failing search or model call moves the invocation to FAILED and the typed
error (RetrievalError, GenerationError) propagates to the caller with
``failed_stage`` set. An optional request timeout bounds the whole invocation
and raises PipelineTimeoutError when exceeded.

Index and model handles are held by an immutable PipelineConfig built once
and shared; the pipeline keeps no per-request state, so concurrent ``run``
calls on one instance are safe.

Usage:
    >>> from multiquery_rag.pipeline import MultiQueryRAGPipeline, PipelineConfig
    >>> config = PipelineConfig.from_config("config.yaml")
    >>> pipeline = MultiQueryRAGPipeline(config)
    >>> result = pipeline.run("What are the key features of Node.js?")
    >>> print(result.answer)
"""

import dataclasses
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from multiquery_rag.components import (
    AnswerGenerator,
    QueryExpander,
    RetrievalFanout,
    assemble_context,
    deduplicate,
)
from multiquery_rag.components.retrieval_fanout import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_TOP_K,
)
from multiquery_rag.types import (
    ExpansionMode,
    GenerationRequest,
    PipelineError,
    PipelineResult,
    PipelineState,
    PipelineTimeoutError,
)
from multiquery_rag.utils.config_loader import ConfigLoader
from multiquery_rag.utils.llm import LLMHelper


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable configuration shared by all pipeline invocations.

    Attributes:
        index: Search capability exposing ``search(query, k)``.
        llm: Chat model exposing ``invoke(messages)``; used for both
            expansion and generation.
        mode: Default expansion mode.
        top_k: Default number of documents per query.
        max_concurrency: Upper bound on simultaneous searches.
        timeout: Request timeout in seconds, or None for no limit.
    """

    index: Any
    llm: Any
    mode: ExpansionMode = ExpansionMode.DECOMPOSE
    top_k: int = DEFAULT_TOP_K
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    timeout: float | None = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", ExpansionMode.parse(self.mode))
        if self.top_k < 1:
            raise ValueError(f"top_k must be >= 1, got {self.top_k}")
        if self.max_concurrency < 1:
            raise ValueError(
                f"max_concurrency must be >= 1, got {self.max_concurrency}"
            )
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    @classmethod
    def from_config(
        cls,
        config_or_path: dict[str, Any] | str | Path,
        index: Any | None = None,
        llm: Any | None = None,
    ) -> "PipelineConfig":
        """Build the configuration from a dict or YAML file.

        Args:
            config_or_path: Configuration dictionary or path to YAML file.
            index: Optional prebuilt search index; a QdrantSearchIndex is
                created from the ``qdrant`` section otherwise.
            llm: Optional prebuilt chat model; ChatGroq is created from the
                ``llm`` section otherwise.

        Returns:
            PipelineConfig instance.

        Raises:
            ValueError: If required sections are missing or values are invalid.
        """
        config = ConfigLoader.load(config_or_path)
        ConfigLoader.validate(config)

        if index is None:
            from multiquery_rag.databases.qdrant import QdrantSearchIndex

            index = QdrantSearchIndex(config=config)
        if llm is None:
            llm = LLMHelper.create_llm(config)

        expansion_config = config.get("expansion") or {}
        retrieval_config = config.get("retrieval") or {}
        pipeline_config = config.get("pipeline") or {}

        timeout = pipeline_config.get("timeout", DEFAULT_TIMEOUT)
        return cls(
            index=index,
            llm=llm,
            mode=expansion_config.get("mode", ExpansionMode.DECOMPOSE),
            top_k=int(retrieval_config.get("top_k", DEFAULT_TOP_K)),
            max_concurrency=int(
                retrieval_config.get("max_concurrency", DEFAULT_MAX_CONCURRENCY)
            ),
            timeout=float(timeout) if timeout not in (None, "") else None,
        )

    def with_overrides(self, **changes: Any) -> "PipelineConfig":
        """Return a copy with the given fields replaced; None values are ignored."""
        changes = {key: value for key, value in changes.items() if value is not None}
        return dataclasses.replace(self, **changes)


class MultiQueryRAGPipeline:
    """Expand, fan out, de-duplicate, assemble and generate.

    Attributes:
        config: Shared immutable configuration.
        expander: QueryExpander bound to the configured chat model.
        fanout: RetrievalFanout bound to the configured index.
        generator: AnswerGenerator bound to the configured chat model.
    """

    def __init__(self, config: PipelineConfig) -> None:
        self.config = config
        self.expander = QueryExpander(config.llm)
        self.fanout = RetrievalFanout(
            config.index,
            top_k=config.top_k,
            max_concurrency=config.max_concurrency,
        )
        self.generator = AnswerGenerator(config.llm)
        logger.info(
            "Initialized %s (mode=%s, top_k=%d, max_concurrency=%d, timeout=%s)",
            self.__class__.__name__,
            config.mode.value,
            config.top_k,
            config.max_concurrency,
            config.timeout,
        )

    def run(
        self,
        question: str,
        mode: ExpansionMode | str | None = None,
        top_k: int | None = None,
    ) -> PipelineResult:
        """Answer a question.

        Args:
            question: The user's question.
            mode: Expansion mode; defaults to the configured mode.
            top_k: Documents per query; defaults to the configured value.

        Returns:
            PipelineResult in state DONE.

        Raises:
            ValueError: If mode or top_k is invalid.
            RetrievalError: If a search call fails.
            GenerationError: If a chat model call fails.
            PipelineTimeoutError: If the configured timeout is exceeded.
        """
        resolved_mode = ExpansionMode.parse(mode or self.config.mode)
        timeout = self.config.timeout
        # Written by the worker so a timeout can report the stage it cut off
        progress = {"state": PipelineState.START}
        if timeout is None:
            return self._execute(question, resolved_mode, top_k, progress)

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="multiquery")
        future = executor.submit(
            self._execute, question, resolved_mode, top_k, progress
        )
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError as e:
            future.cancel()
            error = PipelineTimeoutError(timeout)
            error.state = PipelineState.FAILED
            error.failed_stage = progress["state"]
            logger.error(
                "Pipeline timed out after %ss while %s: %s",
                timeout,
                error.failed_stage.value,
                question,
            )
            raise error from e
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _execute(
        self,
        question: str,
        mode: ExpansionMode,
        top_k: int | None,
        progress: dict[str, PipelineState],
    ) -> PipelineResult:
        logger.info("Processing question (mode=%s): %s", mode.value, question)

        try:
            progress["state"] = PipelineState.EXPANDING
            expansion = self.expander.expand(question, mode)

            progress["state"] = PipelineState.RETRIEVING
            fanout = self.fanout.retrieve(expansion.query_set, top_k=top_k)

            progress["state"] = PipelineState.AGGREGATING
            pool = deduplicate(fanout.documents)
            logger.info(
                "Retrieved %d total docs, %d after deduplication",
                fanout.total,
                len(pool),
            )
            context = assemble_context(pool)
            if not pool:
                logger.info("No documents retrieved, generating with empty context")

            progress["state"] = PipelineState.GENERATING
            generation = self.generator.generate(GenerationRequest(question, context))
        except PipelineError as e:
            e.failed_stage = progress["state"]
            e.state = PipelineState.FAILED
            logger.error("Pipeline failed while %s: %s", e.failed_stage.value, e)
            raise

        return PipelineResult(
            question=question,
            mode=mode,
            expansion=expansion,
            fanout=fanout,
            pool=pool,
            context=context,
            generation=generation,
            state=PipelineState.DONE,
        )
