# flowbuilder/visual/nodes.py
"""Node type schemas, palette entries and branchable properties."""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field

from flowbuilder.visual.operators import normalize_type

logger = structlog.get_logger(__name__)

DEFAULT_SECTION_TITLE = "General"


class FieldType(str, Enum):
    """Primitive editor types for schema fields."""
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    BOOLEAN = "boolean"
    TEXTAREA = "textarea"
    DATE = "date"
    RELATION = "relation"  # server-backed lookup


class ToolField(BaseModel):
    """One editable configuration field of a node type."""
    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(alias="property")
    label: str = ""
    type: FieldType = FieldType.TEXT
    required: bool = False
    placeholder: str = ""
    options: Optional[List[Dict[str, Any]]] = None  # select choices
    relation_class: Optional[str] = Field(default=None, alias="class")
    filter: Dict[str, Any] = Field(default_factory=dict)

    @property
    def display_label(self) -> str:
        return self.label or self.key


class ToolSection(BaseModel):
    """Titled group of fields, expandable independently."""
    title: str
    fields: List[ToolField] = Field(default_factory=list)
    expanded: bool = False


class ToolSchema(BaseModel):
    """Declarative form description for one node type.

    A schema declares either a flat ``fields`` list or titled ``sections``.
    """
    type: str
    fields: Optional[List[ToolField]] = None
    sections: Optional[List[ToolSection]] = None

    def all_fields(self) -> List[ToolField]:
        """All fields across sections, in declaration order."""
        if self.sections is not None:
            return [f for section in self.sections for f in section.fields]
        return list(self.fields or [])

    def required_fields(self) -> List[ToolField]:
        return [f for f in self.all_fields() if f.required]


class FlowTool(BaseModel):
    """Palette entry for a draggable node type."""
    id: str
    label: str
    icon: Optional[str] = None
    color: Optional[str] = None


class PropertyOption(BaseModel):
    """Process variable usable in a branch condition."""
    id: str
    label: str
    type: str = "string"
    original_type: Optional[str] = None


def normalize_properties(raw: Iterable[Union[Dict[str, Any], PropertyOption]]) -> List[PropertyOption]:
    """Build property options, mapping foreign type names to internal ones."""
    properties = []
    for item in raw:
        data = item.model_dump() if isinstance(item, PropertyOption) else dict(item)
        foreign = data.get("original_type") or data.get("type")
        properties.append(PropertyOption(
            id=data["id"],
            label=data.get("label", data["id"]),
            type=normalize_type(foreign),
            original_type=foreign
        ))
    return properties


def resolve_sections(
    node_type: str,
    schemas: Iterable[ToolSchema],
    default_title: str = DEFAULT_SECTION_TITLE
) -> List[ToolSection]:
    """Resolve the edit form sections for a node type.

    Declared sections come back in order. A flat field list becomes a
    single expanded section. Unknown types resolve to no sections.
    """
    schema = next((s for s in schemas if s.type == node_type), None)
    if schema is None:
        return []
    if schema.sections is not None:
        return list(schema.sections)
    if schema.fields is not None:
        return [ToolSection(title=default_title, fields=list(schema.fields), expanded=True)]
    return []


class SchemaCatalog:
    """Lookup of node type schemas keyed by type."""

    def __init__(self, schemas: Optional[Iterable[ToolSchema]] = None):
        self._schemas: Dict[str, ToolSchema] = {}
        for schema in schemas or []:
            self.register(schema)

    def __iter__(self) -> Iterator[ToolSchema]:
        return iter(list(self._schemas.values()))

    def __len__(self) -> int:
        return len(self._schemas)

    def __contains__(self, node_type: str) -> bool:
        return node_type in self._schemas

    def register(self, schema: ToolSchema) -> None:
        """Register a schema, replacing any previous one for its type."""
        if schema.type in self._schemas:
            logger.debug("schema_replaced", type=schema.type)
        self._schemas[schema.type] = schema

    def get(self, node_type: str) -> Optional[ToolSchema]:
        return self._schemas.get(node_type)

    def resolve(self, node_type: str, default_title: str = DEFAULT_SECTION_TITLE) -> List[ToolSection]:
        return resolve_sections(node_type, self, default_title)

    def list_types(self) -> List[str]:
        return list(self._schemas)

    def search(self, query: str) -> List[ToolSchema]:
        """Search schemas by type or field label."""
        query_lower = query.lower()
        results = []

        for schema in self._schemas.values():
            if query_lower in schema.type.lower():
                results.append(schema)
                continue
            if any(query_lower in f.display_label.lower() for f in schema.all_fields()):
                results.append(schema)

        return results

    @classmethod
    def from_list(cls, data: Iterable[Dict[str, Any]]) -> "SchemaCatalog":
        return cls(ToolSchema.model_validate(item) for item in data)

    @classmethod
    def load_file(cls, path: Union[str, Path]) -> "SchemaCatalog":
        """Load schemas from a JSON or YAML file holding a list of schemas."""
        path = Path(path)
        content = path.read_text(encoding="utf-8")

        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)

        if isinstance(data, dict):
            data = data.get("schemas", [])

        catalog = cls.from_list(data or [])
        logger.info("schemas_loaded", path=str(path), count=len(catalog))
        return catalog
