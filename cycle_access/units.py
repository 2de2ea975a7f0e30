"""
Unit-tagged quantities.

Edge attributes are stored as plain floats in fixed units (see EDGE_UNITS);
``Quantity`` is used at component boundaries so that a threshold in hours is
never silently compared to weights in minutes.
"""

from dataclasses import dataclass
from typing import Union

from .errors import UnitMismatchError

METRE = "m"
KILOMETRE = "km"
KMH = "km/h"
MINUTE = "min"
HOUR = "h"
SECOND = "s"

# Conversion factors to the canonical unit of each dimension
_LENGTH = {METRE: 1.0, KILOMETRE: 1000.0}
_TIME = {MINUTE: 1.0, HOUR: 60.0, SECOND: 1.0 / 60.0}
_SPEED = {KMH: 1.0, "m/s": 3.6}

# Units of the numeric edge attributes written by the attributer
EDGE_UNITS = {
    "length": METRE,
    "speed": KMH,
    "travel_time": MINUTE,
}


def _table_for(unit: str) -> dict:
    for table in (_LENGTH, _TIME, _SPEED):
        if unit in table:
            return table
    raise UnitMismatchError(expected="a known unit", got=unit)


@dataclass(frozen=True)
class Quantity:
    """A float tagged with its unit."""

    value: float
    unit: str

    def to(self, unit: str) -> "Quantity":
        """Convert to another unit of the same dimension."""
        if unit == self.unit:
            return self
        table = _table_for(self.unit)
        if unit not in table:
            raise UnitMismatchError(expected=self.unit, got=unit, what="conversion target")
        return Quantity(self.value * table[self.unit] / table[unit], unit)

    def require(self, unit: str, what: str = "value") -> float:
        """Return the raw value, refusing anything not already in ``unit``."""
        if self.unit != unit:
            raise UnitMismatchError(expected=unit, got=self.unit, what=what)
        return self.value

    def __float__(self) -> float:
        return float(self.value)


def minutes(value: float) -> Quantity:
    return Quantity(float(value), MINUTE)


def metres(value: float) -> Quantity:
    return Quantity(float(value), METRE)


def travel_minutes(length: Quantity, speed: Quantity) -> Quantity:
    """Time needed to cover ``length`` at ``speed``, in minutes."""
    km = length.to(KILOMETRE).value
    kmh = speed.to(KMH).value
    return Quantity(km / kmh * 60.0, MINUTE)


def strip_unit(value: Union[Quantity, float], unit: str, what: str = "value") -> float:
    """Accept a bare float (caller's responsibility) or a Quantity in ``unit``."""
    if isinstance(value, Quantity):
        return value.require(unit, what=what)
    return float(value)
