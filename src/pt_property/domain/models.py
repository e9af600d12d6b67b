"""Domain models for pt_property — read-only view of tokenised properties."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class Property:
    id: str
    title: str
    expected_roi: Decimal   # percent, e.g. 8.5000
    status: str
