"""Tests for utility modules.

Configuration management:
    - Config loading from dicts and YAML files
    - Environment variable substitution
    - Required section validation

Model helpers:
    - ChatGroq and HuggingFace embedder factories
    - Reply text extraction

Parsing:
    - Code fence stripping
    - Tolerant JSON string array parsing
"""
