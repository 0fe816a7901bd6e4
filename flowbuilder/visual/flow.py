# flowbuilder/visual/flow.py
"""Editable flow document: nodes, ports and edges."""

import random
import uuid
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import structlog

from flowbuilder.config import Settings, get_settings
from flowbuilder.visual.connections import (
    BRANCH_NODE_TYPE,
    ConnectionProposal,
    Port,
    PortGroup,
    default_ports,
    is_connection_allowed,
)

logger = structlog.get_logger(__name__)

CONDITION_KEY = "conditionData"

BRANCH_STYLE = {"fill": "#fffbe6", "stroke": "#faad14", "strokeWidth": 2, "rx": 6, "ry": 6}
STEP_STYLE = {
    "fill": "#ffffff", "stroke": "#ccc", "strokeWidth": 2,
    "strokeDasharray": "5,5", "rx": 6, "ry": 6,
}


class NodeNotFoundError(KeyError):
    """Raised when a node ID does not exist in the document."""
    pass


@dataclass
class FlowNode:
    """A step placed on the canvas."""
    id: str
    type: str
    position: Dict[str, float]
    label: str = ""
    text: str = ""
    width: Optional[float] = None
    height: Optional[float] = None
    ports: List[Port] = field(default_factory=list)
    config: Dict[str, Any] = field(default_factory=dict)
    style: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Set default dimensions and ports."""
        if self.width is None:
            self.width = 160
        if self.height is None:
            self.height = 70
        if not self.ports:
            self.ports = default_ports(self.type)

    def __setattr__(self, name, value):
        if name == "type" and "type" in self.__dict__:
            raise AttributeError("node type cannot change after creation")
        super().__setattr__(name, value)

    @property
    def is_branch(self) -> bool:
        return self.type == BRANCH_NODE_TYPE

    @property
    def condition_data(self) -> Optional[Dict[str, Any]]:
        """Stored branch condition; anything but a mapping counts as unset."""
        condition = self.config.get(CONDITION_KEY)
        return condition if isinstance(condition, dict) else None

    def get_port(self, port_id: Optional[str]) -> Optional[Port]:
        return next((port for port in self.ports if port.id == port_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "label": self.label,
            "text": self.text,
            "position": dict(self.position),
            "width": self.width,
            "height": self.height,
            "ports": [port.to_dict() for port in self.ports],
            "config": deepcopy(self.config),
            "style": dict(self.style),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlowNode":
        return cls(
            id=data["id"],
            type=data["type"],
            position=dict(data.get("position") or {"x": 0, "y": 0}),
            label=data.get("label") or "",
            text=data.get("text") or "",
            width=data.get("width"),
            height=data.get("height"),
            ports=[Port.from_dict(p) for p in data.get("ports") or []],
            config=deepcopy(data.get("config") or {}),
            style=dict(data.get("style") or {}),
        )


@dataclass
class FlowEdge:
    """Directed link from an output port to an input port."""
    id: str
    source: str
    source_port: str
    target: str
    target_port: str

    @property
    def key(self) -> Tuple[str, str, str, str]:
        return (self.source, self.source_port, self.target, self.target_port)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "sourcePort": self.source_port,
            "target": self.target,
            "targetPort": self.target_port,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlowEdge":
        return cls(
            id=data["id"],
            source=data["source"],
            source_port=data["sourcePort"],
            target=data["target"],
            target_port=data["targetPort"],
        )


class FlowDocument:
    """Authoritative node and edge collections of one editing session."""

    def __init__(
        self,
        nodes: Optional[List[FlowNode]] = None,
        edges: Optional[List[FlowEdge]] = None,
        viewport: Optional[Dict[str, float]] = None,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None
    ):
        self.nodes: List[FlowNode] = list(nodes or [])
        self.edges: List[FlowEdge] = list(edges or [])
        self.viewport: Dict[str, float] = viewport or {"x": 0, "y": 0, "zoom": 1}
        self.settings = settings or get_settings()
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        return len(self.nodes)

    # -- queries ------------------------------------------------------------

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        """Get node by ID."""
        return next((node for node in self.nodes if node.id == node_id), None)

    def require_node(self, node_id: str) -> FlowNode:
        node = self.get_node(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def get_edge(self, edge_id: str) -> Optional[FlowEdge]:
        return next((edge for edge in self.edges if edge.id == edge_id), None)

    def get_port(self, node_id: str, port_id: Optional[str]) -> Optional[Port]:
        node = self.get_node(node_id)
        return node.get_port(port_id) if node else None

    def port_group(self, edge: FlowEdge) -> Optional[PortGroup]:
        """Group of the source port an edge leaves from."""
        port = self.get_port(edge.source, edge.source_port)
        return port.group if port else None

    def outgoing_edges(self, node_id: str) -> List[FlowEdge]:
        return [edge for edge in self.edges if edge.source == node_id]

    def incoming_edges(self, node_id: str) -> List[FlowEdge]:
        return [edge for edge in self.edges if edge.target == node_id]

    def edges_for_node(self, node_id: str) -> List[FlowEdge]:
        """Get all edges connected to a node."""
        return [
            edge for edge in self.edges
            if edge.source == node_id or edge.target == node_id
        ]

    def root_nodes(self) -> List[FlowNode]:
        """Nodes no edge points at, in document order."""
        targets = {edge.target for edge in self.edges}
        return [node for node in self.nodes if node.id not in targets]

    # -- mutations ----------------------------------------------------------

    def add_node(
        self,
        node_type: str,
        label: Optional[str] = None,
        position: Optional[Dict[str, float]] = None
    ) -> str:
        """Add a node and return its ID.

        Without a position the node lands at a random spot; with one it is
        centered on that drop point.
        """
        width = self.settings.node_width
        height = self.settings.node_height

        if position is None:
            x = self.settings.random_origin + self._rng.random() * self.settings.random_spread
            y = self.settings.random_origin + self._rng.random() * self.settings.random_spread
        else:
            x = position["x"] - width / 2
            y = position["y"] - height / 2

        is_branch = node_type == BRANCH_NODE_TYPE
        text = label or ("IF" if is_branch else node_type)

        node = FlowNode(
            id=str(uuid.uuid4()),
            type=node_type,
            position={"x": x, "y": y},
            label="" if is_branch else text,
            text=text,
            width=width,
            height=height,
            style=dict(BRANCH_STYLE if is_branch else STEP_STYLE),
        )
        self.nodes.append(node)

        logger.debug("node_added", node_id=node.id, type=node_type)
        return node.id

    def update_node_data(
        self,
        node_id: str,
        config_patch: Dict[str, Any],
        label: Optional[str] = None
    ) -> FlowNode:
        """Merge a config patch into a node, optionally relabelling it.

        Top-level keys replace existing values wholesale.
        """
        node = self.require_node(node_id)
        node.config = {**node.config, **deepcopy(config_patch)}

        if label is not None:
            node.label = label
            node.text = label

        logger.debug("node_updated", node_id=node_id, keys=sorted(config_patch))
        return node

    def set_condition(self, node_id: str, condition: Dict[str, Any], text: str) -> FlowNode:
        """Store the branch condition of a node and its rendered summary."""
        node = self.require_node(node_id)
        node.config = {**node.config, CONDITION_KEY: dict(condition)}
        node.text = text
        return node

    def remove_node(self, node_id: str) -> None:
        """Remove node and connected edges."""
        self.nodes = [node for node in self.nodes if node.id != node_id]
        self.edges = [
            edge for edge in self.edges
            if edge.source != node_id and edge.target != node_id
        ]

    def remove_edge(self, edge_id: str) -> None:
        """Remove edge by ID."""
        self.edges = [edge for edge in self.edges if edge.id != edge_id]

    def connect(
        self,
        source_node_id: str,
        source_port_id: str,
        target_node_id: str,
        target_port_id: str
    ) -> Optional[FlowEdge]:
        """Create an edge if the connection rules allow it.

        Rejected proposals leave the document untouched and return ``None``.
        """
        proposal = ConnectionProposal(
            source_node=source_node_id,
            source_port=self.get_port(source_node_id, source_port_id),
            target_node=target_node_id,
            target_port=self.get_port(target_node_id, target_port_id),
        )

        if not is_connection_allowed(proposal, self.edges, self.settings.allow_self_loops):
            logger.debug(
                "connection_rejected",
                source=source_node_id, source_port=source_port_id,
                target=target_node_id, target_port=target_port_id
            )
            return None

        edge = FlowEdge(
            id=str(uuid.uuid4()),
            source=source_node_id,
            source_port=source_port_id,
            target=target_node_id,
            target_port=target_port_id,
        )
        self.edges.append(edge)
        return edge

    def clear(self) -> None:
        self.nodes = []
        self.edges = []

    def replace_with(self, other: "FlowDocument") -> None:
        """Take over the contents of another document in one step."""
        self.nodes, self.edges, self.viewport = other.nodes, other.edges, other.viewport

    # -- persistence --------------------------------------------------------

    def serialize(self) -> Dict[str, Any]:
        """Full visual document, enough to restore the editing session."""
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "viewport": dict(self.viewport),
        }

    @classmethod
    def deserialize(cls, doc: Dict[str, Any], settings: Optional[Settings] = None) -> "FlowDocument":
        return cls(
            nodes=[FlowNode.from_dict(n) for n in doc.get("nodes", [])],
            edges=[FlowEdge.from_dict(e) for e in doc.get("edges", [])],
            viewport=dict(doc.get("viewport") or {"x": 0, "y": 0, "zoom": 1}),
            settings=settings,
        )
