"""Data ingestion loaders for offline survey exports."""

from .workbook import load_responses_workbook

__all__ = [
    "load_responses_workbook",
]
