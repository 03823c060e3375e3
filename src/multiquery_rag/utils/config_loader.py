"""Configuration loading for the multi-query RAG pipeline.

Configurations come either from a YAML file or from an in-memory dictionary.
String values may reference environment variables so that secrets (Groq and
Qdrant API keys) and deployment-specific endpoints stay out of the file.

Environment Variable Syntax:
    - ${VAR}: Substitute with environment variable, empty string if unset
    - ${VAR:-default}: Use VAR if set, otherwise use the default value

Required Config Sections:
    - qdrant: url, collection_name (api_key optional)
    - embeddings: model used to embed queries for similarity search
    - llm: chat model used for query expansion and answer generation

Usage:
    >>> from multiquery_rag.utils.config_loader import ConfigLoader
    >>> config = ConfigLoader.load("pipeline_config.yaml")
    >>> ConfigLoader.validate(config)
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml


REQUIRED_SECTIONS = ("qdrant", "embeddings", "llm")

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


class ConfigLoader:
    """Handles loading and validating pipeline configurations.

    Supports environment variable substitution: ${VAR} or ${VAR:-default}
    """

    @classmethod
    def load(cls, config_or_path: dict[str, Any] | str | Path) -> dict[str, Any]:
        """Load and resolve configuration from dict or YAML file.

        Args:
            config_or_path: Configuration dict or path to YAML file.

        Returns:
            Resolved configuration dictionary.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ValueError: If the YAML document is not a mapping.
        """
        if isinstance(config_or_path, dict):
            return cls._resolve_env_vars(config_or_path)

        path = Path(config_or_path)
        with open(path) as f:
            config = yaml.safe_load(f)

        if config is None:
            config = {}
        if not isinstance(config, dict):
            msg = f"Configuration file {path} must contain a mapping"
            raise ValueError(msg)
        return cls._resolve_env_vars(config)

    @classmethod
    def validate(
        cls,
        config: dict[str, Any],
        required: tuple[str, ...] = REQUIRED_SECTIONS,
    ) -> None:
        """Validate required config sections exist.

        Args:
            config: Configuration dictionary.
            required: Section names that must be present.

        Raises:
            ValueError: If required sections are missing.
        """
        missing = [k for k in required if k not in config]
        if missing:
            msg = f"Missing required config sections: {missing}"
            raise ValueError(msg)

    @classmethod
    def _resolve_env_vars(cls, value: Any) -> Any:
        """Recursively resolve ${VAR} and ${VAR:-default} patterns."""
        if isinstance(value, str):

            def replacer(match: re.Match[str]) -> str:
                expr = match.group(1)
                if ":-" in expr:
                    var, default = expr.split(":-", 1)
                    return os.environ.get(var, default)
                return os.environ.get(expr, "")

            return _ENV_VAR_PATTERN.sub(replacer, value)
        if isinstance(value, dict):
            return {k: cls._resolve_env_vars(v) for k, v in value.items()}
        if isinstance(value, list):
            return [cls._resolve_env_vars(item) for item in value]
        return value
