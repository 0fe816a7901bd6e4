"""
Tests for flowbuilder.visual.forms: condition and step edit forms.
"""

import pytest

from flowbuilder.visual.forms import ConditionForm, NodeForm


# ============================================================================
# CONDITION FORM TESTS
# ============================================================================

class TestConditionForm:
    """Test cases for editing branch conditions."""

    def test_new_form_is_blank(self, document, properties):
        form = ConditionForm(document, document.add_node("if"), properties)

        assert form.selected_property is None
        assert form.available_operators == []
        assert form.operator == ""

    def test_select_property_offers_operators(self, document, properties):
        form = ConditionForm(document, document.add_node("if"), properties)

        form.select_property("created")

        assert [op.id for op in form.available_operators] == ["eq", "before", "after"]

    def test_changing_property_resets_operator_and_value(self, document, properties):
        form = ConditionForm(document, document.add_node("if"), properties)
        form.select_property("total")
        form.operator = "gt"
        form.value = "100"

        form.select_property("role")

        assert form.operator == ""
        assert form.value == ""
        assert [op.id for op in form.available_operators] == ["eq", "contains", "ne"]

    def test_save_number_condition(self, document, properties):
        node_id = document.add_node("if")
        form = ConditionForm(document, node_id, properties)
        form.select_property("total")
        form.operator = "gt"
        form.value = "100"

        assert form.save() is True

        node = document.get_node(node_id)
        assert node.condition_data == {"propertyId": "total", "operator": "gt", "value": "100"}
        assert node.text == "Order total\n> 100"

    def test_boolean_summary_omits_value(self, document, properties):
        node_id = document.add_node("if")
        form = ConditionForm(document, node_id, properties)
        form.select_property("approved")
        form.operator = "true"

        form.save()

        assert document.get_node(node_id).text == "Approved by HR?\nIs true"

    def test_incomplete_form_is_not_saved(self, document, properties):
        node_id = document.add_node("if")
        form = ConditionForm(document, node_id, properties)
        form.select_property("total")

        assert form.save() is False
        assert document.get_node(node_id).condition_data is None
        assert document.get_node(node_id).text == "IF"

    def test_existing_condition_is_loaded(self, document, properties):
        node_id = document.add_node("if")
        document.set_condition(node_id, {"propertyId": "role", "operator": "ne", "value": "guest"}, "x")

        form = ConditionForm(document, node_id, properties)

        assert form.selected_property.id == "role"
        assert form.operator == "ne"
        assert form.value == "guest"
        assert len(form.available_operators) == 3


# ============================================================================
# NODE FORM TESTS
# ============================================================================

class TestNodeForm:
    """Test cases for schema-driven step forms."""

    def test_initial_values(self, document, schemas):
        node_id = document.add_node("notify", label="Alert")
        document.update_node_data(node_id, {"channel": "sms"})

        form = NodeForm(document, node_id, schemas.resolve("notify"))

        assert form.label == "Alert"
        assert form.values == {"channel": "sms"}
        assert list(form.lookups) == ["recipients"]

    def test_save_commits_values_and_label(self, document, schemas):
        node_id = document.add_node("send_email")
        form = NodeForm(document, node_id, schemas.resolve("send_email"))
        form.values["to"] = "ops@example.com"
        form.label = "Mail ops"

        form.save()

        node = document.get_node(node_id)
        assert node.config == {"to": "ops@example.com"}
        assert (node.label, node.text) == ("Mail ops", "Mail ops")

    def test_edits_stay_local_until_save(self, document, schemas):
        node_id = document.add_node("send_email")
        form = NodeForm(document, node_id, schemas.resolve("send_email"))

        form.values["to"] = "ops@example.com"

        assert document.get_node(node_id).config == {}

    def test_toggle_section_does_not_touch_schema(self, document, schemas):
        node_id = document.add_node("notify")
        form = NodeForm(document, node_id, schemas.resolve("notify"))

        form.toggle_section("Audience")

        assert form.sections[1].expanded is True
        assert schemas.get("notify").sections[1].expanded is False

    def test_select_relation(self, document, schemas, relation_provider):
        node_id = document.add_node("notify")
        form = NodeForm(document, node_id, schemas.resolve("notify"), relation_provider)

        form.select_relation("recipients", {"id": "u3", "label": "User 3"})

        assert form.values["recipients"] == "u3"
        assert form.lookups["recipients"].selected_label == "User 3"

    @pytest.mark.asyncio
    async def test_load_saved_labels(self, document, schemas, make_relation_provider):
        node_id = document.add_node("notify")
        document.update_node_data(node_id, {"recipients": "u2"})
        backend = make_relation_provider(labels={"u2": "Maria"})

        form = NodeForm(document, node_id, schemas.resolve("notify"), backend)
        labels = await form.load_saved_labels()

        assert labels == {"recipients": "Maria"}
        assert backend.label_requests == [("User", "u2")]
