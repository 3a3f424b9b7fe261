"""Analysis modules for campaign performance classification."""

from campaign_optimizer.analyzers.performance_analyzer import (
    PerformanceAnalyzer,
    Thresholds,
    classify,
)

__all__ = ["PerformanceAnalyzer", "Thresholds", "classify"]
