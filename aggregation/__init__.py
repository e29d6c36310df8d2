"""
WatchGraph Compliance Aggregation

Pure computation of compliance metrics from requirement records:

  - aggregator.py: system, portfolio and batched compliance snapshots
  - filters.py: the shared search/status predicate for requirement lists
  - errors.py: InvalidStatusError and its base class

Usage:
    from aggregation import compute_system_compliance, compute_portfolio_compliance

    snapshot = compute_system_compliance(mappings, system_id="sys-1")
    portfolio = compute_portfolio_compliance({"sys-1": snapshot}, total_systems=3)
"""

from .aggregator import (
    ComplianceAggregator,
    aggregator,
    compute_many_compliance,
    compute_portfolio_compliance,
    compute_system_compliance,
    drop_invalid,
    percentage,
)
from .errors import ComplianceError, InvalidStatusError
from .filters import STATUS_FILTER_ALL, filter_mappings, matches_filter

__all__ = [
    "ComplianceAggregator",
    "aggregator",
    "compute_many_compliance",
    "compute_portfolio_compliance",
    "compute_system_compliance",
    "drop_invalid",
    "percentage",
    "ComplianceError",
    "InvalidStatusError",
    "STATUS_FILTER_ALL",
    "filter_mappings",
    "matches_filter",
]
