"""Summaries over the findings of a validation pass."""

from .finding_aggregator import FindingAggregator

__all__ = ["FindingAggregator"]
