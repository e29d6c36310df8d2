"""
In-Memory Compliance Store

Holds registered AI systems, their requirement mappings and evidence
metadata for the API server. The store is the source of truth for
status mutations; the aggregator only ever reads snapshots taken from it.

State lives in memory (persistence is out of scope). All access goes
through an asyncio.Lock so concurrent requests see consistent snapshots.
"""

import asyncio
import logging
from typing import Optional

from shared.catalogue import requirements_for_risk_level
from shared.models import (
    AISystem,
    Evidence,
    EvidenceUpload,
    MappingStatus,
    RequirementMapping,
    SystemRegistration,
)

logger = logging.getLogger(__name__)


class ComplianceStore:
    """
    Manages AI systems, requirement mappings and evidence.

    Reads return copies so callers never hold references into the store.
    """

    def __init__(self):
        self.systems: dict[str, AISystem] = {}
        self.mappings: dict[str, RequirementMapping] = {}
        self.evidence: dict[str, Evidence] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Systems
    # ------------------------------------------------------------------

    async def register_system(self, registration: SystemRegistration) -> AISystem:
        """Register a new AI system. It starts with no requirement mappings."""
        async with self._lock:
            system = AISystem(**registration.model_dump())
            self.systems[system.id] = system
            logger.info(
                f"Registered system {system.id} ({system.name}, "
                f"risk={system.risk_category.value})"
            )
            if system.risk_category.is_prohibited:
                logger.warning(
                    f"System {system.id} is in a prohibited practice tier (Art. 5) "
                    f"and must be withdrawn"
                )
            return system.model_copy()

    async def list_systems(self) -> list[AISystem]:
        """All systems, oldest first."""
        async with self._lock:
            systems = sorted(self.systems.values(), key=lambda s: s.created_at)
            return [s.model_copy() for s in systems]

    async def get_system(self, system_id: str) -> Optional[AISystem]:
        async with self._lock:
            system = self.systems.get(system_id)
            return system.model_copy() if system else None

    # ------------------------------------------------------------------
    # Requirement mappings
    # ------------------------------------------------------------------

    async def assign_requirements(self, system_id: str) -> Optional[int]:
        """
        Map every catalogue requirement for the system's risk tier.

        Requirements the system already has are skipped, so calling this
        again is harmless. Returns the number of mappings created, or None
        if the system does not exist.
        """
        async with self._lock:
            system = self.systems.get(system_id)
            if system is None:
                logger.warning(f"System {system_id} not found for requirement assignment")
                return None

            existing = {
                m.requirement_id for m in self.mappings.values() if m.system_id == system_id
            }
            created = 0
            for req in requirements_for_risk_level(system.risk_category):
                if req.requirement_id in existing:
                    continue
                mapping = RequirementMapping(
                    system_id=system_id,
                    requirement_id=req.requirement_id,
                    article=req.article,
                    title=req.title,
                    description=req.description,
                )
                self.mappings[mapping.mapping_id] = mapping
                created += 1

            logger.info(f"Assigned {created} requirements to system {system_id}")
            return created

    async def list_mappings(self, system_id: str) -> list[RequirementMapping]:
        """Mappings for one system, in article order."""
        async with self._lock:
            return self._mappings_for({system_id})

    async def mappings_for_systems(self, system_ids: list[str]) -> list[RequirementMapping]:
        """Mappings for several systems in one pass."""
        async with self._lock:
            return self._mappings_for(set(system_ids))

    async def get_mapping(self, mapping_id: str) -> Optional[RequirementMapping]:
        async with self._lock:
            mapping = self.mappings.get(mapping_id)
            return mapping.model_copy() if mapping else None

    async def update_mapping(
        self,
        mapping_id: str,
        status: MappingStatus,
        notes: Optional[str] = None,
        updated_by: Optional[str] = None,
    ) -> Optional[RequirementMapping]:
        """Set a mapping's status (and notes). Returns None if not found."""
        async with self._lock:
            mapping = self.mappings.get(mapping_id)
            if mapping is None:
                logger.warning(f"Mapping {mapping_id} not found for status update")
                return None

            updated = mapping.apply_update(status, notes=notes, updated_by=updated_by)
            self.mappings[mapping_id] = updated
            logger.info(
                f"Mapping {mapping_id}: {mapping.status.value} -> {status.value}"
            )
            return updated.model_copy()

    def _mappings_for(self, system_ids: set[str]) -> list[RequirementMapping]:
        mappings = [m for m in self.mappings.values() if m.system_id in system_ids]
        mappings.sort(key=lambda m: (m.system_id, _article_sort_key(m.article)))
        return [m.model_copy() for m in mappings]

    # ------------------------------------------------------------------
    # Evidence
    # ------------------------------------------------------------------

    async def add_evidence(self, mapping_id: str, upload: EvidenceUpload) -> Optional[Evidence]:
        """Attach evidence metadata to a mapping. Returns None if the mapping is unknown."""
        async with self._lock:
            if mapping_id not in self.mappings:
                logger.warning(f"Mapping {mapping_id} not found for evidence upload")
                return None

            item = Evidence(
                mapping_id=mapping_id,
                file_type=upload.file_type,
                **upload.model_dump(),
            )
            self.evidence[item.id] = item
            logger.info(f"Added evidence {item.id} ({item.file_name}) to mapping {mapping_id}")
            return item.model_copy()

    async def list_evidence(self, mapping_id: str) -> list[Evidence]:
        """Evidence for a mapping, newest first."""
        async with self._lock:
            items = [e for e in self.evidence.values() if e.mapping_id == mapping_id]
            items.sort(key=lambda e: e.created_at, reverse=True)
            return [e.model_copy() for e in items]

    async def archive_evidence(self, evidence_id: str) -> Optional[Evidence]:
        """Mark evidence as archived. It stays listed but no longer counts as current."""
        async with self._lock:
            item = self.evidence.get(evidence_id)
            if item is None:
                return None
            archived = item.model_copy(update={"archived": True})
            self.evidence[evidence_id] = archived
            logger.info(f"Archived evidence {evidence_id}")
            return archived.model_copy()

    async def delete_evidence(self, evidence_id: str) -> bool:
        async with self._lock:
            removed = self.evidence.pop(evidence_id, None)
            if removed is None:
                return False
            logger.info(f"Deleted evidence {evidence_id}")
            return True


def _article_sort_key(article: str) -> tuple[int, str]:
    digits = "".join(ch for ch in article if ch.isdigit())
    return (int(digits) if digits else 0, article)


# Global store instance
compliance_store = ComplianceStore()
