"""
Risk Tiers

This module defines the EU AI Act risk tiers that every registered AI
system is filed under. The tier decides which catalogue requirements are
assigned to the system (see shared/catalogue.py).

ASSIGNED REQUIREMENTS:

  - UNACCEPTABLE: withdraw the system (Art. 5) and keep AI literacy (Art. 4)
  - HIGH: Chapter III obligations, conformity, registration, monitoring
  - LIMITED: AI literacy and transparency (Art. 50)
  - MINIMAL: AI literacy and voluntary codes of conduct (Art. 95)
"""

from __future__ import annotations

from enum import Enum


class RiskLevel(str, Enum):
    """Risk tier a system is registered under. Values are the API wire format."""

    UNACCEPTABLE = "unacceptable"
    HIGH = "high"
    LIMITED = "limited"
    MINIMAL = "minimal"

    @property
    def is_prohibited(self) -> bool:
        """Check if systems in this tier are prohibited under Article 5."""
        return self is RiskLevel.UNACCEPTABLE

    @property
    def requires_chapter_iii_compliance(self) -> bool:
        """Check if full Chapter III compliance is required."""
        return self is RiskLevel.HIGH
