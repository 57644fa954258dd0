"""
Aggregation engine for Diagnostics Explorer.

Derives the statistics shown beside a filtered view:

- a numeric summary (avg/min/max) over valid prices,
- per-group counts and average prices for a categorical dimension,
- a fixed-width price histogram.

Prices that are missing, non-numeric or non-positive are excluded from every
numeric figure, while the record itself still counts towards its group.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from data_handling.records import UNKNOWN_GROUP, Record

logger = logging.getLogger(__name__)

DEFAULT_GROUP_DIMENSION = 'department'
DEFAULT_BUCKET_WIDTH = 500
DEFAULT_GROUP_LIMIT = 15


@dataclass(frozen=True)
class GroupStat:
    """Volume and average price of one group."""
    key: str
    avg: int
    count: int


@dataclass(frozen=True)
class HistogramBucket:
    """Count of prices in [bucket, bucket + width)."""
    bucket: int
    label: str
    count: int


@dataclass(frozen=True)
class ValueCount:
    """Occurrences of one categorical value."""
    value: str
    count: int


@dataclass(frozen=True)
class AggregationResult:
    """Read-only statistics for a non-empty filtered view."""
    avg: int
    min: float
    max: float
    group_stats: Tuple[GroupStat, ...] = field(default_factory=tuple)
    histogram: Tuple[HistogramBucket, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for the presentation layer."""
        return {
            'avg': self.avg,
            'min': self.min,
            'max': self.max,
            'group_stats': [
                {'key': stat.key, 'avg': stat.avg, 'count': stat.count}
                for stat in self.group_stats
            ],
            'histogram': [
                {'bucket': bucket.bucket, 'label': bucket.label, 'count': bucket.count}
                for bucket in self.histogram
            ],
        }


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _price_frame(records: Sequence[Record], dimension: Optional[str] = None) -> pd.DataFrame:
    """One row per record: group key (if requested) and price, NaN when unusable."""
    prices = pd.Series([record.price for record in records], dtype='float64')
    prices = prices.where(prices > 0)
    frame = pd.DataFrame({'price': prices})
    if dimension is not None:
        frame['group'] = [record.value(dimension) or UNKNOWN_GROUP for record in records]
    return frame


def valid_prices(records: Sequence[Record]) -> pd.Series:
    """Prices that count towards numeric aggregation, in record order."""
    return _price_frame(records)['price'].dropna().reset_index(drop=True)


def numeric_summary(records: Sequence[Record]) -> Dict[str, float]:
    """
    Average, minimum and maximum over valid prices.

    Args:
        records: Filtered records

    Returns:
        Dictionary with 'avg' (rounded half-up), 'min' and 'max'; all 0 when
        no record has a valid price
    """
    prices = valid_prices(records)
    if prices.empty:
        return {'avg': 0, 'min': 0, 'max': 0}
    return {
        'avg': round_half_up(prices.sum() / len(prices)),
        'min': float(prices.min()),
        'max': float(prices.max()),
    }


def group_statistics(
    records: Sequence[Record],
    dimension: str = DEFAULT_GROUP_DIMENSION,
    limit: int = DEFAULT_GROUP_LIMIT
) -> List[GroupStat]:
    """
    Partition records by a dimension and summarize each group.

    Groups are ordered by descending record count; ties keep the order in
    which the group key was first seen. Only the top ``limit`` groups are
    returned.

    Args:
        records: Filtered records
        dimension: Categorical dimension to group by
        limit: Maximum number of groups to keep

    Returns:
        List of GroupStat
    """
    if not records:
        return []

    frame = _price_frame(records, dimension)
    stats = (
        frame.groupby('group', sort=False)
        .agg(volume=('price', 'size'), mean_price=('price', 'mean'))
        .reset_index()
        .sort_values('volume', ascending=False, kind='stable')
        .head(limit)
    )

    return [
        GroupStat(
            key=str(row.group),
            avg=round_half_up(row.mean_price) if pd.notna(row.mean_price) else 0,
            count=int(row.volume),
        )
        for row in stats.itertuples(index=False)
    ]


def price_histogram(records: Sequence[Record], bucket_width: int = DEFAULT_BUCKET_WIDTH) -> List[HistogramBucket]:
    """
    Bucket valid prices into fixed-width ranges.

    The bucket key is floor(price / width) * width. Only non-empty buckets
    are emitted, in ascending key order.
    """
    prices = valid_prices(records)
    if prices.empty:
        return []

    keys = (np.floor(prices / bucket_width) * bucket_width).astype('int64')
    counts = keys.value_counts().sort_index()

    return [
        HistogramBucket(bucket=int(key), label=f"{int(key)}-{int(key) + bucket_width}", count=int(count))
        for key, count in counts.items()
    ]


def top_values(records: Sequence[Record], dimension: str, limit: int = 10) -> List[ValueCount]:
    """
    Most frequent values of a dimension over every record passed in.

    Missing values are counted under 'Unknown'. Ties keep first-seen order.
    A limit of 0 or less yields an empty list.
    """
    if not records or limit <= 0:
        return []
    frame = pd.DataFrame({'value': [record.value(dimension) or UNKNOWN_GROUP for record in records]})
    counts = (
        frame.groupby('value', sort=False)
        .size()
        .sort_values(ascending=False, kind='stable')
        .head(limit)
    )
    return [ValueCount(value=str(value), count=int(count)) for value, count in counts.items()]


def aggregate(
    records: Sequence[Record],
    dimension: str = DEFAULT_GROUP_DIMENSION,
    bucket_width: int = DEFAULT_BUCKET_WIDTH,
    group_limit: int = DEFAULT_GROUP_LIMIT
) -> Optional[AggregationResult]:
    """
    Compute every statistic for a filtered view.

    Args:
        records: Filtered records
        dimension: Dimension for group statistics
        bucket_width: Histogram bucket width in currency units
        group_limit: Maximum number of groups

    Returns:
        AggregationResult, or None for an empty view so the presentation
        layer can show its empty state
    """
    if not records:
        return None

    summary = numeric_summary(records)
    result = AggregationResult(
        avg=summary['avg'],
        min=summary['min'],
        max=summary['max'],
        group_stats=tuple(group_statistics(records, dimension, group_limit)),
        histogram=tuple(price_histogram(records, bucket_width)),
    )
    logger.debug(
        f"Aggregated {len(records)} records into {len(result.group_stats)} groups "
        f"and {len(result.histogram)} buckets"
    )
    return result
