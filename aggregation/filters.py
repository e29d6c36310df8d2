"""
Requirement search and status filtering.

A mapping matches when BOTH hold:
  - the status filter is "all" or equals the mapping's status
  - the query is empty, or is a case-insensitive substring of the
    mapping's title, article code or description

Every list view (system detail, API search, MCP search) goes through
matches_filter so they all agree on what a search returns.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

from shared.models import MappingStatus

from .aggregator import RequirementRecord, record_field, record_status
from .errors import InvalidStatusError

STATUS_FILTER_ALL = "all"

SEARCHABLE_FIELDS = ("title", "article", "description")


def normalize_status_filter(
    status: Union[str, MappingStatus, None],
) -> Optional[MappingStatus]:
    """Return the status to filter on, or None for "all"."""
    if status is None or status == STATUS_FILTER_ALL:
        return None
    try:
        return MappingStatus(status)
    except ValueError:
        raise InvalidStatusError(status) from None


def matches_filter(
    mapping: RequirementRecord,
    query: str = "",
    status: Union[str, MappingStatus, None] = STATUS_FILTER_ALL,
) -> bool:
    """Check whether a mapping passes the status filter and text query."""
    wanted = normalize_status_filter(status)
    if wanted is not None and record_status(mapping) != wanted:
        return False

    needle = (query or "").lower()
    if not needle:
        return True
    return any(
        needle in str(record_field(mapping, field) or "").lower()
        for field in SEARCHABLE_FIELDS
    )


def filter_mappings(
    mappings: Sequence[RequirementRecord],
    query: str = "",
    status: Union[str, MappingStatus, None] = STATUS_FILTER_ALL,
) -> List[RequirementRecord]:
    """Return the mappings that match, in their original order."""
    normalize_status_filter(status)
    return [m for m in mappings if matches_filter(m, query, status)]
