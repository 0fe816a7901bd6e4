# flowbuilder/visual/editor.py
"""Editor control surface exposed to the host application."""

import json
import random
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import structlog

from flowbuilder.config import Settings, get_settings
from flowbuilder.visual.bridge import EditingProvider, Notice, NoticeLevel
from flowbuilder.visual.engine import DocumentFormatError, WorkflowCompiler, compile_logic
from flowbuilder.visual.files import read_json_file, write_json
from flowbuilder.visual.flow import FlowDocument, FlowEdge, NodeNotFoundError
from flowbuilder.visual.forms import ConditionForm, NodeForm
from flowbuilder.visual.models import ExportData
from flowbuilder.visual.nodes import (
    FlowTool,
    PropertyOption,
    SchemaCatalog,
    ToolSchema,
    normalize_properties,
)
from flowbuilder.visual.relations import HttpRelationProvider, RelationProvider

logger = structlog.get_logger(__name__)

FIT_PADDING = 20


class FlowEditor:
    """One editing session over a flow document.

    Non-branching nodes are edited by the registered ``EditingProvider``.
    With ``inline_forms`` enabled and no provider, schema-driven forms are
    used instead.
    """

    def __init__(
        self,
        tools: Optional[Iterable[Union[FlowTool, Dict[str, Any]]]] = None,
        properties: Optional[Iterable[Union[PropertyOption, Dict[str, Any]]]] = None,
        schemas: Optional[Union[SchemaCatalog, Iterable[Union[ToolSchema, Dict[str, Any]]]]] = None,
        provider: Optional[EditingProvider] = None,
        relation_provider: Optional[RelationProvider] = None,
        settings: Optional[Settings] = None,
        inline_forms: bool = False,
        rng: Optional[random.Random] = None
    ):
        self.settings = settings or get_settings()
        self.tools: List[FlowTool] = [
            t if isinstance(t, FlowTool) else FlowTool.model_validate(t)
            for t in tools or []
        ]
        self.properties: List[PropertyOption] = []
        self.schemas = self._build_catalog(schemas)
        self.provider = provider
        self.inline_forms = inline_forms

        if relation_provider is None and self.settings.relation_base_url:
            relation_provider = HttpRelationProvider(
                self.settings.relation_base_url,
                timeout=self.settings.relation_timeout
            )
        self.relation_provider = relation_provider

        self.document = FlowDocument(settings=self.settings, rng=rng)
        self.compiler = WorkflowCompiler(self.schemas, self.properties, self.settings)
        self.set_properties(properties or [])

    @staticmethod
    def _build_catalog(schemas) -> SchemaCatalog:
        if isinstance(schemas, SchemaCatalog):
            return schemas
        return SchemaCatalog(
            s if isinstance(s, ToolSchema) else ToolSchema.model_validate(s)
            for s in schemas or []
        )

    def set_properties(self, properties: Iterable[Union[PropertyOption, Dict[str, Any]]]) -> None:
        """Replace branchable properties, normalizing their types."""
        self.properties[:] = normalize_properties(properties)

    def attach(self, provider: Optional[EditingProvider]) -> None:
        self.provider = provider

    def _notify(self, title: str, message: str, level: NoticeLevel = NoticeLevel.INFO) -> None:
        notice = Notice(title=title, message=message, level=level)
        if self.provider is not None:
            self.provider.notify(notice)
        else:
            logger.info("editor_notice", title=title, message=message, level=level.value)

    # -- graph mutations ----------------------------------------------------

    def add_node(
        self,
        node_type: str,
        label: Optional[str] = None,
        position: Optional[Dict[str, float]] = None
    ) -> str:
        return self.document.add_node(node_type, label, position)

    def drop_tool(self, tool_id: str, position: Optional[Dict[str, float]] = None) -> str:
        """Add a node for a palette entry, labelled like the entry."""
        tool = next((t for t in self.tools if t.id == tool_id), None)
        return self.document.add_node(tool_id, tool.label if tool else None, position)

    def connect(
        self,
        source_node_id: str,
        source_port_id: str,
        target_node_id: str,
        target_port_id: str = "in"
    ) -> Optional[FlowEdge]:
        return self.document.connect(source_node_id, source_port_id, target_node_id, target_port_id)

    def remove_node(self, node_id: str) -> None:
        self.document.remove_node(node_id)

    def remove_edge(self, edge_id: str) -> None:
        self.document.remove_edge(edge_id)

    # -- editing ------------------------------------------------------------

    def edit_node(self, node_id: str) -> Optional[Union[ConditionForm, NodeForm]]:
        """Open the editor for a node.

        Returns a form for intrinsic editors, or ``None`` when editing was
        handed to the provider, no editor is available or the node is gone.
        """
        node = self.document.get_node(node_id)
        if node is None:
            logger.warning("edit_unknown_node", node_id=node_id)
            self._notify("Step not found", "The selected step no longer exists.", NoticeLevel.WARNING)
            return None

        if node.is_branch:
            return ConditionForm(self.document, node_id, self.properties)

        if self.provider is not None:
            logger.debug("edit_delegated", node_id=node_id, type=node.type)
            self.provider.on_edit_node(node_id, node.type, dict(node.config))
            return None

        if self.inline_forms:
            return NodeForm(
                self.document,
                node_id,
                self.schemas.resolve(node.type, self.settings.default_section_title),
                relation_provider=self.relation_provider,
                debounce=self.settings.relation_debounce_seconds,
                scroll_threshold=self.settings.relation_scroll_threshold,
            )

        logger.warning("editing_provider_missing", node_id=node_id, type=node.type)
        self._notify(
            "Editor unavailable",
            f'No editor is registered for "{node.type}" steps.',
            NoticeLevel.WARNING
        )
        return None

    def update_node_data(
        self,
        node_id: str,
        config: Dict[str, Any],
        label: Optional[str] = None
    ) -> bool:
        """Commit an edit coming back from the provider."""
        try:
            self.document.update_node_data(node_id, config, label)
        except NodeNotFoundError:
            logger.warning("update_unknown_node", node_id=node_id)
            self._notify("Step not found", "The edited step no longer exists.", NoticeLevel.WARNING)
            return False
        return True

    # -- import / export ----------------------------------------------------

    def get_export_data(self) -> Optional[Dict[str, Any]]:
        """Compiled logic plus the visual document; ``None`` if incomplete."""
        result = self.compiler.validate(self.document)
        if not result.ok:
            if result.node_id and self.provider is not None:
                self.provider.focus_node(result.node_id)
            self._notify("Attention", result.message or "Invalid flow.", NoticeLevel.WARNING)
            return None

        data = ExportData(logic=compile_logic(self.document), graph=self.document.serialize())
        return data.to_dict()

    def import_data(self, data: Union[str, bytes, Dict[str, Any]]) -> bool:
        """Replace the document with saved data; a bad payload changes nothing."""
        try:
            document = self.compiler.import_document(data)
        except DocumentFormatError as e:
            logger.warning("import_failed", error=str(e))
            self._notify("Error", "Invalid file.", NoticeLevel.WARNING)
            return False

        self.document.replace_with(document)
        self.fit_view()
        self._notify("Success", "Project imported!", NoticeLevel.SUCCESS)
        return True

    def clear_canvas(self, confirm: bool = True) -> bool:
        """Remove every node and edge, asking the provider first."""
        if confirm and self.provider is not None:
            if not self.provider.confirm("Clear", "Delete everything?"):
                return False
        self.document.clear()
        return True

    def fit_view(self, padding: float = FIT_PADDING) -> Dict[str, float]:
        """Move the viewport so every node is visible, never zooming in."""
        if not self.document.nodes:
            self.document.viewport = {"x": 0, "y": 0, "zoom": 1}
            return self.document.viewport

        min_x = min(n.position["x"] for n in self.document.nodes)
        min_y = min(n.position["y"] for n in self.document.nodes)
        self.document.viewport = {"x": padding - min_x, "y": padding - min_y, "zoom": 1}
        return self.document.viewport

    def save_project(self, directory: Union[str, Path]) -> Path:
        """Write the visual document to a timestamped JSON file."""
        path = write_json(self.document.serialize(), directory, self.settings.export_prefix)
        logger.info("project_saved", path=str(path))
        return path

    async def load_project(self, path: Union[str, Path]) -> bool:
        """Read a project file, then import it. Read errors change nothing."""
        try:
            data = await read_json_file(path)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("project_read_failed", path=str(path), error=str(e))
            self._notify("Error", "Could not read the file.", NoticeLevel.WARNING)
            return False
        return self.import_data(data)
