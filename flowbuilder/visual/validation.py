# flowbuilder/visual/validation.py
"""Completeness checks run before a flow document is compiled."""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

import structlog

from flowbuilder.visual.flow import FlowDocument, FlowNode
from flowbuilder.visual.nodes import PropertyOption, ToolSchema

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation pass. Failures name the offending node."""
    ok: bool
    node_id: Optional[str] = None
    message: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, node_id: Optional[str], message: str) -> "ValidationResult":
        return cls(ok=False, node_id=node_id, message=message)


def is_empty(value: Any) -> bool:
    """Blank values for required fields: missing, null, "" or []."""
    return value is None or value == "" or (isinstance(value, list) and not value)


def check_condition(
    node: FlowNode,
    properties: Optional[Iterable[PropertyOption]] = None
) -> Optional[str]:
    """Return a message when a branch node's condition is incomplete."""
    condition = node.condition_data or {}
    property_id = condition.get("propertyId")

    if not property_id or not condition.get("operator"):
        return "Configure the IF rule."

    prop = next((p for p in properties or [] if p.id == property_id), None)
    # Boolean operators carry the whole condition
    if prop is not None and prop.type != "boolean":
        value = condition.get("value")
        if value is None or value == "":
            return f'Enter a value to compare "{prop.label}" against.'

    return None


def check_required_fields(node: FlowNode, schemas: Iterable[ToolSchema]) -> Optional[str]:
    """Return a message for the first blank required field of a node."""
    schema = next((s for s in schemas if s.type == node.type), None)
    if schema is None:
        return None

    for tool_field in schema.required_fields():
        if is_empty(node.config.get(tool_field.key)):
            return f'Field "{tool_field.display_label}" is required.'

    return None


def validate(
    document: FlowDocument,
    schemas: Iterable[ToolSchema],
    properties: Optional[Iterable[PropertyOption]] = None,
    start_type: str = "start",
    require_single_start: bool = False
) -> ValidationResult:
    """Check every node and stop at the first violation."""
    schemas = list(schemas)
    properties = list(properties or [])

    for node in document.nodes:
        if node.type == start_type:
            continue

        if node.is_branch:
            message = check_condition(node, properties)
        else:
            message = check_required_fields(node, schemas)

        if message:
            logger.info("validation_failed", node_id=node.id, type=node.type, message=message)
            return ValidationResult.failure(node.id, message)

    if require_single_start and document.nodes:
        roots = document.root_nodes()
        if len(roots) != 1:
            message = (
                "The flow has no starting step."
                if not roots else
                f"The flow has {len(roots)} starting steps; connect them into one."
            )
            logger.info("validation_failed", node_id=None, message=message)
            return ValidationResult.failure(roots[1].id if len(roots) > 1 else None, message)

    return ValidationResult.success()
