"""Flow Builder: visual workflow graphs compiled to executable logic."""

__version__ = "0.1.0"

from flowbuilder.config import Settings, get_settings
from flowbuilder.visual.editor import FlowEditor
from flowbuilder.visual.engine import WorkflowCompiler
from flowbuilder.visual.flow import FlowDocument
from flowbuilder.visual.models import WorkflowDefinition, WorkflowNode

__all__ = [
    "Settings",
    "get_settings",
    "FlowEditor",
    "WorkflowCompiler",
    "FlowDocument",
    "WorkflowDefinition",
    "WorkflowNode",
]
