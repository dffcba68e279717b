"""Prefect orchestration for advisory pipelines."""
