"""Deterministic reports over record snapshots."""

from bookkeeper.queries.executor import ReportExecutor

__all__ = ["ReportExecutor"]
