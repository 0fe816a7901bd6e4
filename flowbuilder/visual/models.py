"""Pydantic models for compiled logic and imported flow documents."""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from flowbuilder.visual.connections import BRANCH_NODE_TYPE, PortGroup, default_ports
from flowbuilder.visual.flow import CONDITION_KEY


class WorkflowNode(BaseModel):
    """Executor-facing step."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: str
    label: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    next: Optional[str] = None
    next_true: Optional[str] = Field(default=None, alias="nextTrue")
    next_false: Optional[str] = Field(default=None, alias="nextFalse")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class WorkflowDefinition(BaseModel):
    """Compiled workflow: entry point plus linked steps."""
    model_config = ConfigDict(populate_by_name=True)

    start_node_id: Optional[str] = Field(default=None, alias="startNodeId")
    nodes: List[WorkflowNode] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        return next((node for node in self.nodes if node.id == node_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startNodeId": self.start_node_id,
            "nodes": [node.to_dict() for node in self.nodes],
        }


class ExportData(BaseModel):
    """Compiled logic together with the full visual document."""
    logic: WorkflowDefinition
    graph: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"logic": self.logic.to_dict(), "graph": self.graph}


class PortPayload(BaseModel):
    id: str
    group: PortGroup


class NodePayload(BaseModel):
    id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    label: Optional[str] = ""
    text: Optional[str] = ""
    position: Dict[str, float] = Field(default_factory=lambda: {"x": 0, "y": 0})
    width: Optional[float] = None
    height: Optional[float] = None
    ports: List[PortPayload] = Field(default_factory=list)
    config: Dict[str, Any] = Field(default_factory=dict)
    style: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_condition_shape(self) -> "NodePayload":
        condition = self.config.get(CONDITION_KEY)
        if self.type == BRANCH_NODE_TYPE and condition is not None and not isinstance(condition, dict):
            raise ValueError(f"node {self.id}: {CONDITION_KEY} must be an object")
        return self

    def port_groups(self) -> Dict[str, PortGroup]:
        ports = self.ports or default_ports(self.type)
        return {port.id: port.group for port in ports}


class EdgePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    source: str
    source_port: str = Field(alias="sourcePort")
    target: str
    target_port: str = Field(alias="targetPort")

    @property
    def key(self) -> Tuple[str, str, str, str]:
        return (self.source, self.source_port, self.target, self.target_port)


class GraphPayload(BaseModel):
    """Structural shape a serialized flow document must have.

    Edges obey the same rules as interactive connections: they leave an
    output port, enter an input port and are never duplicated.
    """
    nodes: List[NodePayload]
    edges: List[EdgePayload] = Field(default_factory=list)
    viewport: Dict[str, float] = Field(default_factory=lambda: {"x": 0, "y": 0, "zoom": 1})

    @model_validator(mode="after")
    def check_references(self) -> "GraphPayload":
        ports: Dict[str, Dict[str, PortGroup]] = {}
        for node in self.nodes:
            if node.id in ports:
                raise ValueError(f"duplicate node id: {node.id}")
            ports[node.id] = node.port_groups()

        edge_ids = set()
        edge_keys = set()
        for edge in self.edges:
            if edge.id in edge_ids:
                raise ValueError(f"duplicate edge id: {edge.id}")
            edge_ids.add(edge.id)

            for node_id, port_id in ((edge.source, edge.source_port), (edge.target, edge.target_port)):
                if node_id not in ports:
                    raise ValueError(f"edge {edge.id} references unknown node: {node_id}")
                if port_id not in ports[node_id]:
                    raise ValueError(f"edge {edge.id} references unknown port: {node_id}.{port_id}")

            if ports[edge.source][edge.source_port] == PortGroup.IN:
                raise ValueError(f"edge {edge.id} leaves an input port: {edge.source}.{edge.source_port}")
            if ports[edge.target][edge.target_port] != PortGroup.IN:
                raise ValueError(f"edge {edge.id} enters an output port: {edge.target}.{edge.target_port}")

            if edge.key in edge_keys:
                raise ValueError(f"edge {edge.id} duplicates an existing connection")
            edge_keys.add(edge.key)

        return self

    def to_document_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
