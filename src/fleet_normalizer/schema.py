"""Output layouts: the fixed 40-column vehicle schedule and a compact form."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Downstream importers read these positions; do not reorder.
SCHEDULE_HEADERS: tuple[str, ...] = (
    "Unit #",
    "Status",
    "Effective Date",
    "Expiration Date",
    "Year",  # E
    "Make",  # F
    "Model",
    "Body Type",
    "GVW",
    "VIN",  # J
    "Garage Address",
    "Garage City",
    "Garage State",
    "Garage Zip",
    "Radius",
    "Vehicle Class",
    "Use",
    "Liability",
    "Comp Deductible",
    "Coll Deductible",
    "Medical Payments",
    "Cost New",  # V
    "Stated Value",
    "Lienholder",
    "Lienholder Address",
    "Loss Payee",
    "Additional Insured",
    "Driver",
    "Plate #",
    "Plate State",
    "Odometer",
    "Fuel Type",
    "Seating Capacity",
    "Trailer Type",
    "Hired Auto",
    "Rental Reimbursement",
    "Premium",
    "Date Added",
    "Date Deleted",
    "Notes",
)

SCHEDULE_POSITIONS: dict[str, int] = {"year": 4, "make": 5, "vin": 9, "cost": 21}

COMPACT_HEADERS: tuple[str, ...] = ("Year", "Make", "VIN", "Cost")

COMPACT_POSITIONS: dict[str, int] = {"year": 0, "make": 1, "vin": 2, "cost": 3}


class OutputLayout(str, Enum):
    schedule = "schedule"
    compact = "compact"


@dataclass(frozen=True)
class LayoutSpec:
    name: str
    headers: tuple[str, ...]
    positions: dict[str, int]

    @property
    def width(self) -> int:
        return len(self.headers)


_LAYOUTS: dict[OutputLayout, LayoutSpec] = {
    OutputLayout.schedule: LayoutSpec("schedule", SCHEDULE_HEADERS, SCHEDULE_POSITIONS),
    OutputLayout.compact: LayoutSpec("compact", COMPACT_HEADERS, COMPACT_POSITIONS),
}


def get_layout(layout: OutputLayout | str) -> LayoutSpec:
    """Return the :class:`LayoutSpec` for *layout* (enum member or name)."""
    try:
        return _LAYOUTS[OutputLayout(layout)]
    except ValueError as exc:
        raise ValueError(
            f"Unknown output layout: {layout!r}. Use schedule or compact."
        ) from exc
