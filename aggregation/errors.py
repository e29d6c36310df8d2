"""
Errors raised by the compliance aggregation core.

The core performs no I/O, so malformed input is its only failure mode.
These errors are recoverable: the caller decides whether to drop the
offending record, warn, or abort the view.
"""

from typing import Any, Optional


class ComplianceError(Exception):
    """Base class for aggregation errors."""


class InvalidStatusError(ComplianceError, ValueError):
    """A requirement record carries a status outside the four-value enum."""

    def __init__(self, status: Any, mapping_id: Optional[str] = None):
        self.status = status
        self.mapping_id = mapping_id
        where = f" on mapping {mapping_id}" if mapping_id else ""
        super().__init__(f"Invalid requirement status {status!r}{where}")
