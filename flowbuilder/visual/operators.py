# flowbuilder/visual/operators.py
"""Condition operators for branching nodes and property type normalization."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


PROPERTY_TYPES = ("string", "number", "date", "boolean")


@dataclass(frozen=True)
class Operator:
    """A comparison operator offered for a property type."""
    id: str
    label: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "label": self.label}


OPERATORS_BY_TYPE: Dict[str, Tuple[Operator, ...]] = {
    "string": (
        Operator("eq", "Equals"),
        Operator("contains", "Contains"),
        Operator("ne", "Not equals"),
    ),
    "number": (
        Operator("eq", "="),
        Operator("gt", ">"),
        Operator("lt", "<"),
        Operator("gte", ">="),
    ),
    "date": (
        Operator("eq", "On"),
        Operator("before", "Before"),
        Operator("after", "After"),
    ),
    "boolean": (
        Operator("true", "Is true"),
        Operator("false", "Is false"),
    ),
}

# Checked in order; first match wins.
_NUMBER_MARKERS = (
    "int", "decimal", "double", "float", "byte", "long",
    "short", "single", "numeric", "number", "money",
)
_DATE_MARKERS = ("date", "time")
_BOOLEAN_MARKERS = ("bool",)


def operators_for(property_type: Optional[str]) -> List[Operator]:
    """Get the ordered operators for a property type.

    Unknown types yield an empty list.
    """
    return list(OPERATORS_BY_TYPE.get(property_type or "", ()))


def find_operator(property_type: Optional[str], operator_id: Optional[str]) -> Optional[Operator]:
    """Find an operator by ID within a property type."""
    return next(
        (op for op in operators_for(property_type) if op.id == operator_id),
        None
    )


def normalize_type(foreign_type: Optional[str]) -> str:
    """Map a foreign (ORM/CLR/SQL) type name onto string, number, date or boolean."""
    if not foreign_type:
        return "string"

    lowered = foreign_type.lower()

    if any(marker in lowered for marker in _NUMBER_MARKERS):
        return "number"
    if any(marker in lowered for marker in _DATE_MARKERS):
        return "date"
    if any(marker in lowered for marker in _BOOLEAN_MARKERS):
        return "boolean"
    return "string"
