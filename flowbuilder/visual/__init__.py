"""Visual flow editing and compilation."""

from flowbuilder.visual.operators import (
    Operator,
    OPERATORS_BY_TYPE,
    operators_for,
    find_operator,
    normalize_type
)
from flowbuilder.visual.connections import (
    PortGroup,
    Port,
    ConnectionProposal,
    default_ports,
    is_connection_allowed
)
from flowbuilder.visual.nodes import (
    FieldType,
    ToolField,
    ToolSection,
    ToolSchema,
    FlowTool,
    PropertyOption,
    SchemaCatalog,
    normalize_properties,
    resolve_sections
)
from flowbuilder.visual.flow import (
    FlowNode,
    FlowEdge,
    FlowDocument,
    NodeNotFoundError
)
from flowbuilder.visual.validation import (
    ValidationResult,
    validate
)
from flowbuilder.visual.models import (
    WorkflowNode,
    WorkflowDefinition,
    ExportData
)
from flowbuilder.visual.engine import (
    WorkflowCompiler,
    DocumentFormatError,
    compile_logic,
    parse_payload
)
from flowbuilder.visual.relations import (
    RelationProvider,
    HttpRelationProvider,
    RelationLookup,
    RelationLookupError
)
from flowbuilder.visual.bridge import (
    EditingProvider,
    Notice,
    NoticeLevel
)
from flowbuilder.visual.forms import (
    ConditionForm,
    NodeForm
)
from flowbuilder.visual.editor import FlowEditor

__all__ = [
    # Operators
    "Operator",
    "OPERATORS_BY_TYPE",
    "operators_for",
    "find_operator",
    "normalize_type",

    # Connections
    "PortGroup",
    "Port",
    "ConnectionProposal",
    "default_ports",
    "is_connection_allowed",

    # Schemas
    "FieldType",
    "ToolField",
    "ToolSection",
    "ToolSchema",
    "FlowTool",
    "PropertyOption",
    "SchemaCatalog",
    "normalize_properties",
    "resolve_sections",

    # Document
    "FlowNode",
    "FlowEdge",
    "FlowDocument",
    "NodeNotFoundError",

    # Validation
    "ValidationResult",
    "validate",

    # Compiler
    "WorkflowNode",
    "WorkflowDefinition",
    "ExportData",
    "WorkflowCompiler",
    "DocumentFormatError",
    "compile_logic",
    "parse_payload",

    # Relations
    "RelationProvider",
    "HttpRelationProvider",
    "RelationLookup",
    "RelationLookupError",

    # Editing
    "EditingProvider",
    "Notice",
    "NoticeLevel",
    "ConditionForm",
    "NodeForm",
    "FlowEditor",
]
