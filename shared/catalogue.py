"""
EU AI Act Requirement Catalogue

The fixed list of regulatory obligations WatchGraph tracks. Each entry
names the risk tiers it applies to; assigning requirements to a system
maps every entry that applies to the system's tier.

COVERAGE:

  - All tiers: Article 4 (AI literacy)
  - UNACCEPTABLE: Article 5 (withdrawal of prohibited practices)
  - HIGH: Chapter III obligations (Articles 9-15, 17, 26, 27), conformity
    assessment (43), registration (49), post-market monitoring (72)
  - HIGH + LIMITED: Article 50 transparency obligations
  - MINIMAL: Article 95 voluntary codes of conduct
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple

from shared.models import RiskLevel

_ALL = frozenset(RiskLevel)
_HIGH = frozenset({RiskLevel.HIGH})


@dataclass(frozen=True)
class CatalogueRequirement:
    """One regulatory obligation from the EU AI Act."""

    requirement_id: str
    article_number: int
    title: str
    description: str
    applies_to: FrozenSet[RiskLevel]

    @property
    def article(self) -> str:
        return f"Art. {self.article_number}"

    def applies(self, level: RiskLevel) -> bool:
        return RiskLevel(level) in self.applies_to


CATALOGUE: Tuple[CatalogueRequirement, ...] = (
    CatalogueRequirement(
        "REQ-ART4", 4, "AI Literacy",
        "Take measures to ensure a sufficient level of AI literacy of staff "
        "and other persons dealing with the operation and use of AI systems.",
        _ALL,
    ),
    CatalogueRequirement(
        "REQ-ART5", 5, "Prohibited AI Practices",
        "Cease placing on the market, putting into service or using the AI "
        "system, as it falls under a practice prohibited by Article 5.",
        frozenset({RiskLevel.UNACCEPTABLE}),
    ),
    CatalogueRequirement(
        "REQ-ART9", 9, "Risk Management System",
        "Establish, implement, document and maintain a risk management system "
        "running through the entire lifecycle of the high-risk AI system.",
        _HIGH,
    ),
    CatalogueRequirement(
        "REQ-ART10", 10, "Data Governance",
        "Develop training, validation and testing data sets under appropriate "
        "data governance and management practices, including bias examination.",
        _HIGH,
    ),
    CatalogueRequirement(
        "REQ-ART11", 11, "Technical Documentation",
        "Draw up technical documentation before the system is placed on the "
        "market and keep it up to date, covering the elements in Annex IV.",
        _HIGH,
    ),
    CatalogueRequirement(
        "REQ-ART12", 12, "Record-Keeping",
        "Allow for the automatic recording of events (logs) over the lifetime "
        "of the system to ensure traceability of its functioning.",
        _HIGH,
    ),
    CatalogueRequirement(
        "REQ-ART13", 13, "Transparency and Information to Deployers",
        "Design the system so its operation is sufficiently transparent and "
        "accompany it with instructions for use for deployers.",
        _HIGH,
    ),
    CatalogueRequirement(
        "REQ-ART14", 14, "Human Oversight",
        "Design the system so it can be effectively overseen by natural "
        "persons during the period in which it is in use.",
        _HIGH,
    ),
    CatalogueRequirement(
        "REQ-ART15", 15, "Accuracy, Robustness and Cybersecurity",
        "Achieve an appropriate level of accuracy, robustness and "
        "cybersecurity, and perform consistently throughout the lifecycle.",
        _HIGH,
    ),
    CatalogueRequirement(
        "REQ-ART17", 17, "Quality Management System",
        "Put a quality management system in place that ensures compliance, "
        "documented in written policies, procedures and instructions.",
        _HIGH,
    ),
    CatalogueRequirement(
        "REQ-ART26", 26, "Obligations of Deployers",
        "Use the system in accordance with its instructions, assign human "
        "oversight to competent persons and monitor its operation.",
        _HIGH,
    ),
    CatalogueRequirement(
        "REQ-ART27", 27, "Fundamental Rights Impact Assessment",
        "Perform an assessment of the impact on fundamental rights that the "
        "use of the system may produce before deploying it.",
        _HIGH,
    ),
    CatalogueRequirement(
        "REQ-ART43", 43, "Conformity Assessment",
        "Ensure the system undergoes the relevant conformity assessment "
        "procedure before being placed on the market or put into service.",
        _HIGH,
    ),
    CatalogueRequirement(
        "REQ-ART49", 49, "Registration",
        "Register the provider and the system in the EU database before "
        "placing it on the market or putting it into service.",
        _HIGH,
    ),
    CatalogueRequirement(
        "REQ-ART50", 50, "Transparency Obligations",
        "Inform natural persons that they are interacting with an AI system "
        "and mark synthetic content as artificially generated.",
        frozenset({RiskLevel.HIGH, RiskLevel.LIMITED}),
    ),
    CatalogueRequirement(
        "REQ-ART72", 72, "Post-Market Monitoring",
        "Establish and document a post-market monitoring system proportionate "
        "to the nature of the AI technologies and the risks of the system.",
        _HIGH,
    ),
    CatalogueRequirement(
        "REQ-ART95", 95, "Voluntary Codes of Conduct",
        "Consider applying voluntary codes of conduct that adopt some or all "
        "high-risk requirements on a voluntary basis.",
        frozenset({RiskLevel.MINIMAL}),
    ),
)


def requirements_for_risk_level(level: RiskLevel) -> List[CatalogueRequirement]:
    """Return catalogue entries that apply to a risk tier, in article order."""
    return sorted(
        (req for req in CATALOGUE if req.applies(level)),
        key=lambda req: req.article_number,
    )


def get_catalogue_requirement(requirement_id: str) -> Optional[CatalogueRequirement]:
    """Look up a catalogue entry by its identifier."""
    for req in CATALOGUE:
        if req.requirement_id == requirement_id:
            return req
    return None
