"""Tests for the pipeline components."""
