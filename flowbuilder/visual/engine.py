# flowbuilder/visual/engine.py
"""Compiler between the editable flow document and executable workflow logic."""

import json
from copy import deepcopy
from typing import Any, Dict, Iterable, List, Optional, Union

import structlog
import yaml
from pydantic import ValidationError

from flowbuilder.config import Settings, get_settings
from flowbuilder.visual.connections import PortGroup
from flowbuilder.visual.flow import FlowDocument, FlowNode
from flowbuilder.visual.models import ExportData, GraphPayload, WorkflowDefinition, WorkflowNode
from flowbuilder.visual.nodes import PropertyOption, ToolSchema
from flowbuilder.visual.validation import ValidationResult, validate

logger = structlog.get_logger(__name__)


class DocumentFormatError(ValueError):
    """Raised when an imported document is not a usable flow graph."""
    pass


def _first_target(document: FlowDocument, node: FlowNode, group: PortGroup) -> Optional[str]:
    """Target of the first outgoing edge leaving through a port group."""
    for edge in document.outgoing_edges(node.id):
        if document.port_group(edge) == group:
            return edge.target
    return None


def compile_logic(document: FlowDocument) -> WorkflowDefinition:
    """Translate a document into workflow logic without validating it."""
    nodes: List[WorkflowNode] = []

    for node in document.nodes:
        if node.is_branch:
            workflow_node = WorkflowNode(
                id=node.id,
                type=node.type,
                label=node.label or None,
                config=dict(node.condition_data or {}),
                next_true=_first_target(document, node, PortGroup.TRUE_OUT),
                next_false=_first_target(document, node, PortGroup.FALSE_OUT),
            )
        else:
            workflow_node = WorkflowNode(
                id=node.id,
                type=node.type,
                label=node.label or None,
                config=deepcopy(node.config),
                next=_first_target(document, node, PortGroup.OUT),
            )
        nodes.append(workflow_node)

    roots = document.root_nodes()
    if len(roots) > 1:
        logger.warning("multiple_start_nodes", candidates=[n.id for n in roots])

    return WorkflowDefinition(
        start_node_id=roots[0].id if roots else None,
        nodes=nodes,
    )


def parse_payload(raw: Union[str, bytes, Dict[str, Any]]) -> GraphPayload:
    """Parse raw import input into a checked graph payload.

    Accepts a bare graph document or an export envelope with a ``graph`` member.
    """
    data: Any = raw
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DocumentFormatError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DocumentFormatError("Expected a JSON object")

    if "nodes" not in data and isinstance(data.get("graph"), dict):
        data = data["graph"]

    if "nodes" not in data:
        raise DocumentFormatError("Document has no nodes collection")

    try:
        return GraphPayload.model_validate(data)
    except ValidationError as e:
        raise DocumentFormatError(f"Invalid flow document: {e}") from e


class WorkflowCompiler:
    """Exports flow documents to workflow logic and imports saved documents."""

    def __init__(
        self,
        schemas: Optional[Iterable[ToolSchema]] = None,
        properties: Optional[Iterable[PropertyOption]] = None,
        settings: Optional[Settings] = None
    ):
        self.schemas = schemas if schemas is not None else []
        self.properties = properties if properties is not None else []
        self.settings = settings or get_settings()

    def validate(self, document: FlowDocument) -> ValidationResult:
        return validate(
            document,
            self.schemas,
            self.properties,
            start_type=self.settings.start_node_type,
            require_single_start=self.settings.strict_start_node,
        )

    def export_logic(self, document: FlowDocument) -> Optional[WorkflowDefinition]:
        """Validate and compile; ``None`` when the document is incomplete."""
        result = self.validate(document)
        if not result.ok:
            logger.warning("export_blocked", node_id=result.node_id, reason=result.message)
            return None

        definition = compile_logic(document)
        logger.info(
            "workflow_compiled",
            nodes=len(definition.nodes),
            start_node_id=definition.start_node_id
        )
        return definition

    def export_data(self, document: FlowDocument) -> Optional[ExportData]:
        """Compiled logic plus the serialized document for later re-import."""
        logic = self.export_logic(document)
        if logic is None:
            return None
        return ExportData(logic=logic, graph=document.serialize())

    def import_document(self, raw: Union[str, bytes, Dict[str, Any]]) -> FlowDocument:
        """Build a new document from saved data; raises ``DocumentFormatError``."""
        payload = parse_payload(raw)
        document = FlowDocument.deserialize(payload.to_document_dict(), settings=self.settings)

        logger.info("document_imported", nodes=len(document.nodes), edges=len(document.edges))
        return document

    def logic_to_yaml(self, definition: WorkflowDefinition) -> str:
        return yaml.dump(definition.to_dict(), default_flow_style=False, sort_keys=False)

    def export_workflow(self, document: FlowDocument, format: str = "json") -> Optional[str]:
        """Export compiled logic in the requested format."""
        if format not in ("json", "yaml"):
            raise ValueError(f"Unsupported export format: {format}")

        data = self.export_data(document)
        if data is None:
            return None

        if format == "json":
            return json.dumps(data.to_dict(), indent=2)
        return self.logic_to_yaml(data.logic)
