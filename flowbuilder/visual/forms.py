# flowbuilder/visual/forms.py
"""Built-in edit forms: branch conditions and schema-driven step settings."""

from typing import Any, Dict, Iterable, List, Optional

import structlog

from flowbuilder.visual.flow import FlowDocument
from flowbuilder.visual.nodes import FieldType, PropertyOption, ToolSection
from flowbuilder.visual.operators import Operator, find_operator, operators_for
from flowbuilder.visual.relations import RelationLookup, RelationProvider

logger = structlog.get_logger(__name__)


class ConditionForm:
    """Edits the condition of an ``if`` node."""

    def __init__(self, document: FlowDocument, node_id: str, properties: Iterable[PropertyOption]):
        self.document = document
        self.node_id = node_id
        self.properties: List[PropertyOption] = list(properties)

        self.selected_property: Optional[PropertyOption] = None
        self.available_operators: List[Operator] = []
        self.operator = ""
        self.value: Any = ""

        condition = document.require_node(node_id).condition_data
        if condition:
            self.selected_property = self._find_property(condition.get("propertyId"))
            if self.selected_property:
                self._update_operators()
                self.operator = condition.get("operator") or ""
                self.value = condition.get("value", "")

    def _find_property(self, property_id: Optional[str]) -> Optional[PropertyOption]:
        return next((p for p in self.properties if p.id == property_id), None)

    def _update_operators(self) -> None:
        if self.selected_property:
            self.available_operators = operators_for(self.selected_property.type)

    def select_property(self, property_id: Optional[str]) -> None:
        """Choose the compared property; clears operator and value."""
        self.selected_property = self._find_property(property_id)
        self.operator = ""
        self.value = ""
        self.available_operators = []
        self._update_operators()

    def summary(self) -> str:
        """Text rendered on the node, e.g. ``"Total\\n> 100"``."""
        prop = self.selected_property
        op = find_operator(prop.type, self.operator) if prop else None
        text = f"{prop.label if prop else ''}\n{op.label if op else self.operator}"
        if prop and prop.type != "boolean":
            text += f" {self.value}"
        return text

    def save(self) -> bool:
        """Store the condition; incomplete forms leave the node unchanged."""
        if not self.selected_property or not self.operator:
            return False

        self.document.set_condition(
            self.node_id,
            {
                "propertyId": self.selected_property.id,
                "operator": self.operator,
                "value": self.value,
            },
            self.summary()
        )
        logger.debug("condition_saved", node_id=self.node_id, property_id=self.selected_property.id)
        return True


class NodeForm:
    """Edits the label and schema-declared settings of a step node."""

    def __init__(
        self,
        document: FlowDocument,
        node_id: str,
        sections: List[ToolSection],
        relation_provider: Optional[RelationProvider] = None,
        debounce: float = 0.5,
        scroll_threshold: float = 20.0
    ):
        node = document.require_node(node_id)

        self.document = document
        self.node_id = node_id
        self.sections = [section.model_copy(deep=True) for section in sections]
        self.label = node.text or node.label or ""
        self.values: Dict[str, Any] = dict(node.config)
        self.lookups: Dict[str, RelationLookup] = {
            f.key: RelationLookup(f, relation_provider, debounce, scroll_threshold)
            for section in self.sections
            for f in section.fields
            if f.type == FieldType.RELATION
        }

    async def load_saved_labels(self) -> Dict[str, Optional[str]]:
        """Resolve display labels for relation values already stored."""
        labels = {}
        for key, lookup in self.lookups.items():
            if self.values.get(key) not in (None, ""):
                labels[key] = await lookup.resolve_label(self.values[key])
        return labels

    def select_relation(self, key: str, item: Dict[str, Any]) -> None:
        self.values[key] = self.lookups[key].select(item)

    def toggle_section(self, title: str) -> None:
        for section in self.sections:
            if section.title == title:
                section.expanded = not section.expanded

    def save(self) -> bool:
        self.document.update_node_data(self.node_id, self.values, self.label)
        return True
