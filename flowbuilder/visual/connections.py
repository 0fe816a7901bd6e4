# flowbuilder/visual/connections.py
"""Ports and the rule deciding whether a proposed connection is legal."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

if TYPE_CHECKING:
    from flowbuilder.visual.flow import FlowEdge


BRANCH_NODE_TYPE = "if"


class PortGroup(str, Enum):
    """Directional role of a port."""
    IN = "in"
    OUT = "out"
    TRUE_OUT = "trueOut"
    FALSE_OUT = "falseOut"


@dataclass(frozen=True)
class Port:
    """Connection point on a node. Port IDs are unique within their node."""
    id: str
    group: PortGroup

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "group": self.group.value}

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "Port":
        return cls(id=data["id"], group=PortGroup(data["group"]))


def default_ports(node_type: str) -> List[Port]:
    """Port set for a freshly created node of the given type."""
    if node_type == BRANCH_NODE_TYPE:
        groups = (PortGroup.IN, PortGroup.TRUE_OUT, PortGroup.FALSE_OUT)
    else:
        groups = (PortGroup.IN, PortGroup.OUT)
    return [Port(id=group.value, group=group) for group in groups]


@dataclass(frozen=True)
class ConnectionProposal:
    """An edge proposed by a drag-to-connect gesture.

    Ports are ``None`` when the gesture did not land on a resolvable port.
    """
    source_node: str
    source_port: Optional[Port]
    target_node: str
    target_port: Optional[Port]


def is_connection_allowed(
    proposal: ConnectionProposal,
    existing_edges: Iterable["FlowEdge"],
    allow_self_loops: bool = True
) -> bool:
    """Decide whether the proposed edge may be created.

    Only port groups are inspected, never node types.
    """
    if proposal.source_port is None or proposal.target_port is None:
        return False

    # Outputs feed inputs
    if proposal.source_port.group == PortGroup.IN:
        return False
    if proposal.target_port.group != PortGroup.IN:
        return False

    key = (
        proposal.source_node,
        proposal.source_port.id,
        proposal.target_node,
        proposal.target_port.id,
    )
    if any(edge.key == key for edge in existing_edges):
        return False

    if not allow_self_loops and proposal.source_node == proposal.target_node:
        return False

    return True
