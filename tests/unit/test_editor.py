"""
Tests for flowbuilder.visual.editor: the editor session surface.
"""

import json
import random

import pytest

from flowbuilder.visual.bridge import NoticeLevel
from flowbuilder.visual.editor import FlowEditor
from flowbuilder.visual.files import export_filename
from flowbuilder.visual.forms import ConditionForm, NodeForm
from flowbuilder.visual.relations import HttpRelationProvider


TOOLS = [
    {"id": "send_email", "label": "Send e-mail", "icon": "mail"},
    {"id": "notify", "label": "Notify"},
]


@pytest.fixture
def make_editor(schema_list, settings):
    def factory(**kwargs):
        kwargs.setdefault("tools", TOOLS)
        kwargs.setdefault("schemas", schema_list)
        kwargs.setdefault("properties", [
            {"id": "total", "label": "Order total", "type": "decimal"},
            {"id": "approved", "label": "Approved?", "type": "Boolean"},
        ])
        kwargs.setdefault("settings", settings)
        kwargs.setdefault("rng", random.Random(3))
        return FlowEditor(**kwargs)
    return factory


@pytest.fixture
def editor(make_editor, provider):
    return make_editor(provider=provider)


# ============================================================================
# SETUP TESTS
# ============================================================================

class TestEditorSetup:
    """Test cases for editor construction."""

    def test_properties_are_normalized(self, editor):
        assert [p.type for p in editor.properties] == ["number", "boolean"]

    def test_compiler_sees_new_properties(self, editor):
        editor.set_properties([{"id": "when", "label": "When", "type": "datetime2"}])

        assert editor.compiler.properties is editor.properties
        assert editor.compiler.properties[0].type == "date"

    def test_http_relation_provider_from_settings(self, make_editor, settings):
        configured = settings.model_copy(update={"relation_base_url": "http://lookup.local"})
        editor = make_editor(settings=configured)

        assert isinstance(editor.relation_provider, HttpRelationProvider)
        assert editor.relation_provider.base_url == "http://lookup.local"

    def test_drop_tool_uses_palette_label(self, editor):
        node = editor.document.get_node(editor.drop_tool("send_email", {"x": 200, "y": 100}))

        assert node.text == "Send e-mail"
        assert node.position == {"x": 120, "y": 65}

    def test_drop_unknown_tool_uses_type(self, editor):
        node = editor.document.get_node(editor.drop_tool("api_request"))
        assert node.text == "api_request"


# ============================================================================
# EDIT ROUTING TESTS
# ============================================================================

class TestEditRouting:
    """Test cases for edit_node routing."""

    def test_branch_node_opens_condition_form(self, editor, provider):
        form = editor.edit_node(editor.add_node("if"))

        assert isinstance(form, ConditionForm)
        assert provider.edit_requests == []

    def test_step_node_is_delegated(self, editor, provider):
        node_id = editor.add_node("send_email")
        editor.update_node_data(node_id, {"to": "a@example.com"})

        assert editor.edit_node(node_id) is None

        assert provider.edit_requests == [(node_id, "send_email", {"to": "a@example.com"})]

    def test_delegated_config_is_a_copy(self, editor, provider):
        node_id = editor.add_node("send_email")
        editor.edit_node(node_id)

        provider.edit_requests[0][2]["to"] = "changed"

        assert editor.document.get_node(node_id).config == {}

    def test_provider_commit(self, editor, provider):
        node_id = editor.add_node("send_email")
        editor.edit_node(node_id)

        assert editor.update_node_data(node_id, {"to": "b@example.com"}, label="Mail B") is True

        node = editor.document.get_node(node_id)
        assert node.config == {"to": "b@example.com"}
        assert node.text == "Mail B"

    def test_commit_for_deleted_node(self, editor, provider):
        node_id = editor.add_node("send_email")
        editor.edit_node(node_id)
        editor.remove_node(node_id)

        assert editor.update_node_data(node_id, {"to": "x"}) is False
        assert provider.notices[-1].level == NoticeLevel.WARNING

    def test_unknown_node_reports_instead_of_raising(self, editor, provider):
        assert editor.edit_node("missing") is None

        assert provider.edit_requests == []
        assert provider.notices[-1].title == "Step not found"
        assert provider.notices[-1].level == NoticeLevel.WARNING

    def test_no_provider_leaves_node_untouched(self, make_editor):
        editor = make_editor()
        node_id = editor.add_node("send_email")

        assert editor.edit_node(node_id) is None
        assert editor.document.get_node(node_id).config == {}

    def test_attach_provider_later(self, make_editor, provider):
        editor = make_editor()
        node_id = editor.add_node("send_email")

        editor.edit_node(node_id)
        editor.attach(provider)
        editor.edit_node(node_id)

        assert len(provider.edit_requests) == 1

    def test_inline_forms_without_provider(self, make_editor):
        editor = make_editor(inline_forms=True)
        node_id = editor.add_node("notify")

        form = editor.edit_node(node_id)

        assert isinstance(form, NodeForm)
        assert [s.title for s in form.sections] == ["Delivery", "Audience"]

    def test_inline_forms_default_section(self, make_editor):
        editor = make_editor(inline_forms=True)
        form = editor.edit_node(editor.add_node("send_email"))

        assert form.sections[0].title == "General"

    def test_condition_form_round_trip(self, editor):
        node_id = editor.add_node("if")
        form = editor.edit_node(node_id)
        form.select_property("total")
        form.operator = "gte"
        form.value = "500"
        form.save()

        reopened = editor.edit_node(node_id)

        assert reopened.operator == "gte"
        assert reopened.value == "500"
        assert editor.document.get_node(node_id).text == "Order total\n>= 500"


# ============================================================================
# EXPORT TESTS
# ============================================================================

class TestEditorExport:
    """Test cases for get_export_data."""

    def test_incomplete_step_is_focused(self, editor, provider):
        node_id = editor.add_node("send_email")

        assert editor.get_export_data() is None

        assert provider.focused == [node_id]
        notice = provider.notices[-1]
        assert notice.title == "Attention"
        assert notice.message == 'Field "Recipient" is required.'

    def test_unconfigured_branch(self, editor, provider):
        node_id = editor.add_node("if")

        assert editor.get_export_data() is None
        assert provider.focused == [node_id]
        assert provider.notices[-1].message == "Configure the IF rule."

    def test_export_linear_flow(self, editor):
        start = editor.add_node("start")
        mail = editor.add_node("send_email")
        editor.update_node_data(mail, {"to": "a@example.com"})
        editor.connect(start, "out", mail)

        data = editor.get_export_data()

        assert data["logic"]["startNodeId"] == start
        start_step = next(n for n in data["logic"]["nodes"] if n["id"] == start)
        assert start_step["next"] == mail
        assert len(data["graph"]["nodes"]) == 2

    def test_export_is_json_serializable(self, editor):
        editor.add_node("start")
        json.dumps(editor.get_export_data())


# ============================================================================
# IMPORT TESTS
# ============================================================================

class TestEditorImport:
    """Test cases for import_data and clear_canvas."""

    def test_import_replaces_document(self, editor, make_editor, provider):
        source = make_editor()
        a = source.add_node("start", position={"x": 500, "y": 400})
        b = source.add_node("api_request", position={"x": 700, "y": 400})
        source.connect(a, "out", b)

        editor.add_node("notify")
        assert editor.import_data(json.dumps(source.document.serialize())) is True

        assert [n.id for n in editor.document.nodes] == [a, b]
        assert len(editor.document.edges) == 1
        assert editor.document.viewport == {"x": 20 - 420, "y": 20 - 365, "zoom": 1}
        assert provider.notices[-1].level == NoticeLevel.SUCCESS

    @pytest.mark.parametrize("raw", [
        "not json",
        "{}",
        {"nodes": "nope"},
        b'\xff\xfe{"nodes": []}',
        {"nodes": [{"id": "a", "type": "if", "config": {"conditionData": "oops"}}]},
    ])
    def test_failed_import_changes_nothing(self, editor, provider, raw):
        a = editor.add_node("start")
        b = editor.add_node("api_request")
        editor.connect(a, "out", b)
        before = editor.document.serialize()

        assert editor.import_data(raw) is False

        assert editor.document.serialize() == before
        assert (provider.notices[-1].title, provider.notices[-1].message) == ("Error", "Invalid file.")

    def test_clear_asks_for_confirmation(self, make_editor, make_provider):
        declining = make_provider(confirm_result=False)
        editor = make_editor(provider=declining)
        editor.add_node("start")

        assert editor.clear_canvas() is False
        assert len(editor.document) == 1

        editor.attach(make_provider(confirm_result=True))
        assert editor.clear_canvas() is True
        assert len(editor.document) == 0

    def test_clear_without_confirmation(self, make_editor, make_provider):
        editor = make_editor(provider=make_provider(confirm_result=False))
        editor.add_node("start")

        assert editor.clear_canvas(confirm=False) is True
        assert editor.document.nodes == []

    def test_fit_view_empty(self, editor):
        assert editor.fit_view() == {"x": 0, "y": 0, "zoom": 1}


# ============================================================================
# PROJECT FILE TESTS
# ============================================================================

class TestProjectFiles:
    """Test cases for saving and loading project files."""

    def test_export_filename(self):
        assert export_filename("flow", 1700000000000) == "flow-1700000000000.json"

    def test_save_project(self, editor, tmp_path):
        editor.add_node("start")

        path = editor.save_project(tmp_path)

        assert path.parent == tmp_path
        assert path.name.startswith("flow-")
        assert path.suffix == ".json"
        assert json.loads(path.read_text())["nodes"][0]["type"] == "start"

    @pytest.mark.asyncio
    async def test_load_project(self, editor, make_editor, tmp_path):
        source = make_editor()
        source.add_node("start")
        source.add_node("if")
        path = source.save_project(tmp_path)

        assert await editor.load_project(path) is True
        assert [n.type for n in editor.document.nodes] == ["start", "if"]

    @pytest.mark.asyncio
    async def test_load_missing_file(self, editor, provider, tmp_path):
        editor.add_node("start")

        assert await editor.load_project(tmp_path / "missing.json") is False
        assert len(editor.document) == 1
        assert provider.notices[-1].title == "Error"

    @pytest.mark.asyncio
    async def test_load_invalid_json(self, editor, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{ nope")

        assert await editor.load_project(path) is False
