"""
Campaign Performance Optimizer

A time-boxed pipeline that pages through campaign performance reports,
converts micro-unit money fields to decimal currency, classifies campaigns
against performance thresholds, and pauses or down-bids the losers in
small batches before the host execution limit is reached.
"""

__version__ = "0.1.0"
