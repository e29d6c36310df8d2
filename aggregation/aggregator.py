"""
Compliance Aggregator

Rolls per-requirement statuses up into system-level and portfolio-level
compliance metrics.

The aggregator is a pure function of its input: it keeps no state, does no
I/O and is safe to call concurrently. Records can be RequirementMapping
models or raw mappings decoded from JSON; both are read through the same
accessors.

RULES:

  - Only COMPLETED counts toward compliance. IN_PROGRESS and NON_COMPLIANT
    earn no partial credit.
  - Percentages are rounded to one decimal, half away from zero.
  - An empty record set is valid and yields 0%.
  - Portfolio percentages are requirement-weighted and computed from raw
    completed/total counts, never from already-rounded per-system values.
  - An unrecognized status raises InvalidStatusError; it is never counted.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from shared.models import (
    ComplianceSnapshot,
    MappingStatus,
    PortfolioSnapshot,
    RequirementMapping,
    empty_breakdown,
)

from .errors import InvalidStatusError

logger = logging.getLogger(__name__)

RequirementRecord = Union[RequirementMapping, Mapping[str, Any]]
SnapshotInput = Union[
    Mapping[str, ComplianceSnapshot],
    Iterable[Tuple[str, ComplianceSnapshot]],
]

_ONE_DECIMAL = Decimal("0.1")


def record_field(record: RequirementRecord, name: str, default: Any = None) -> Any:
    """Read a field from a model or a raw mapping."""
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def record_status(record: RequirementRecord) -> MappingStatus:
    """Return the record's status, raising InvalidStatusError if unrecognized."""
    raw = record_field(record, "status")
    try:
        return MappingStatus(raw)
    except (ValueError, TypeError):
        raise InvalidStatusError(raw, record_field(record, "mapping_id")) from None


def percentage(part: int, whole: int) -> float:
    """part / whole * 100 rounded half away from zero to one decimal; 0 if whole is 0."""
    if whole == 0:
        return 0.0
    value = Decimal(part) * 100 / Decimal(whole)
    return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


class ComplianceAggregator:
    """Computes compliance metrics from requirement records."""

    def compute_system_compliance(
        self,
        mappings: Iterable[RequirementRecord],
        system_id: Optional[str] = None,
    ) -> ComplianceSnapshot:
        """
        Compute compliance metrics for one system.

        All records are expected to belong to the same system; that is the
        caller's contract and is not checked here.

        Args:
            mappings: Requirement records for a single system. May be empty.
            system_id: Optional id stamped onto the snapshot.

        Returns:
            ComplianceSnapshot with total, per-status breakdown and percentage.

        Raises:
            InvalidStatusError: If any record has an unrecognized status. No
                snapshot is produced in that case.
        """
        breakdown = empty_breakdown()
        for record in mappings:
            breakdown[record_status(record).value] += 1

        total = sum(breakdown.values())
        return ComplianceSnapshot(
            system_id=system_id,
            total_requirements=total,
            status_breakdown=breakdown,
            compliance_percentage=percentage(
                breakdown[MappingStatus.COMPLETED.value], total
            ),
        )

    def compute_portfolio_compliance(
        self,
        snapshots: SnapshotInput,
        total_systems: Optional[int] = None,
        failed_systems: int = 0,
    ) -> PortfolioSnapshot:
        """
        Aggregate per-system snapshots into portfolio metrics.

        The overall percentage is sum(completed) / sum(total) * 100, so each
        system weighs in proportion to its requirement count. A system with
        zero requirements adds nothing to either side of the ratio.

        Args:
            snapshots: (system_id, snapshot) pairs or a mapping of id to snapshot.
            total_systems: Number of systems in the portfolio. Defaults to the
                number of snapshots plus failed_systems; may be larger when some systems were not
                snapshotted.
            failed_systems: How many of the unsnapshotted systems could not
                be fetched. They are reported as unavailable rather than as
                having no requirements.

        Raises:
            ValueError: If total_systems is smaller than the number of
                snapshots plus failed_systems, or a system id appears twice.
        """
        items = list(snapshots.items()) if isinstance(snapshots, Mapping) else list(snapshots)

        seen = set()
        for system_id, _ in items:
            if system_id in seen:
                raise ValueError(f"Duplicate snapshot for system {system_id}")
            seen.add(system_id)

        if failed_systems < 0:
            raise ValueError(f"failed_systems must be non-negative, got {failed_systems}")
        if total_systems is None:
            total_systems = len(items) + failed_systems
        elif total_systems < len(items) + failed_systems:
            raise ValueError(
                f"total_systems={total_systems} is less than the "
                f"{len(items)} snapshots plus {failed_systems} failed systems supplied"
            )

        breakdown = empty_breakdown()
        total_requirements = 0
        completed = 0
        empty_systems = total_systems - len(items) - failed_systems
        for _, snapshot in items:
            total_requirements += snapshot.total_requirements
            completed += snapshot.requirements_completed
            for status, count in snapshot.status_breakdown.items():
                breakdown[status] += count
            if snapshot.total_requirements == 0:
                empty_systems += 1

        return PortfolioSnapshot(
            total_systems=total_systems,
            total_requirements=total_requirements,
            completed_requirements=completed,
            overall_compliance_percentage=percentage(completed, total_requirements),
            status_breakdown=breakdown,
            systems_without_requirements=empty_systems,
            systems_unavailable=failed_systems,
        )

    def compute_many_compliance(
        self,
        system_ids: Iterable[str],
        mappings: Iterable[RequirementRecord],
    ) -> Dict[str, ComplianceSnapshot]:
        """
        Compute snapshots for several systems from one flat record set.

        Every requested id gets a snapshot; ids without records get the
        empty one. Records belonging to other systems are ignored.
        """
        wanted = list(dict.fromkeys(system_ids))
        grouped: Dict[str, List[RequirementRecord]] = defaultdict(list)
        wanted_set = set(wanted)
        for record in mappings:
            system_id = record_field(record, "system_id")
            if system_id in wanted_set:
                grouped[system_id].append(record)

        return {
            system_id: self.compute_system_compliance(grouped.get(system_id, ()), system_id)
            for system_id in wanted
        }

    def drop_invalid(
        self,
        mappings: Iterable[RequirementRecord],
    ) -> Tuple[List[RequirementRecord], List[InvalidStatusError]]:
        """
        Split records into valid ones and errors for the invalid ones.

        For callers that prefer excluding bad records over failing the view.
        Each dropped record is logged at WARNING.
        """
        valid: List[RequirementRecord] = []
        errors: List[InvalidStatusError] = []
        for record in mappings:
            try:
                record_status(record)
            except InvalidStatusError as e:
                logger.warning(f"Dropping requirement record: {e}")
                errors.append(e)
            else:
                valid.append(record)
        return valid, errors


# Module-level instance for callers that don't need their own
aggregator = ComplianceAggregator()


def compute_system_compliance(
    mappings: Iterable[RequirementRecord],
    system_id: Optional[str] = None,
) -> ComplianceSnapshot:
    return aggregator.compute_system_compliance(mappings, system_id)


def compute_portfolio_compliance(
    snapshots: SnapshotInput,
    total_systems: Optional[int] = None,
    failed_systems: int = 0,
) -> PortfolioSnapshot:
    return aggregator.compute_portfolio_compliance(snapshots, total_systems, failed_systems)


def compute_many_compliance(
    system_ids: Sequence[str],
    mappings: Iterable[RequirementRecord],
) -> Dict[str, ComplianceSnapshot]:
    return aggregator.compute_many_compliance(system_ids, mappings)


def drop_invalid(
    mappings: Iterable[RequirementRecord],
) -> Tuple[List[RequirementRecord], List[InvalidStatusError]]:
    return aggregator.drop_invalid(mappings)
