"""
Analysis module for Diagnostics Explorer.

This module provides the aggregation engine (numeric summaries, group
statistics, price histograms, top values) and the comparison set manager.
"""

# Aggregation
from .aggregation import (
    AggregationResult,
    GroupStat,
    HistogramBucket,
    ValueCount,
    aggregate,
    numeric_summary,
    group_statistics,
    price_histogram,
    top_values,
    round_half_up
)

# Comparison
from .comparison import (
    ComparisonSet,
    comparison_rows
)

__all__ = [
    # Aggregation
    'AggregationResult',
    'GroupStat',
    'HistogramBucket',
    'ValueCount',
    'aggregate',
    'numeric_summary',
    'group_statistics',
    'price_histogram',
    'top_values',
    'round_half_up',

    # Comparison
    'ComparisonSet',
    'comparison_rows',
]

# Version info
__version__ = "1.0.0"
