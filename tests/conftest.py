"""
Pytest configuration and fixtures for the flow-builder project.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import random
import pytest

from flowbuilder.config import Settings
from flowbuilder.visual.bridge import EditingProvider
from flowbuilder.visual.flow import FlowDocument
from flowbuilder.visual.nodes import SchemaCatalog, normalize_properties
from flowbuilder.visual.relations import RelationLookupError, RelationProvider


class RecordingProvider(EditingProvider):
    """Editing provider that records every call made by the editor."""

    def __init__(self, confirm_result=True):
        self.edit_requests = []
        self.notices = []
        self.focused = []
        self.confirm_result = confirm_result

    def on_edit_node(self, node_id, node_type, current_config):
        self.edit_requests.append((node_id, node_type, current_config))

    def notify(self, notice):
        self.notices.append(notice)

    def focus_node(self, node_id):
        self.focused.append(node_id)

    def confirm(self, title, message):
        return self.confirm_result


class FakeRelationProvider(RelationProvider):
    """In-memory relation backend with 2 items per page."""

    def __init__(self, items=None, page_size=2, labels=None, fail=False):
        self.items = items if items is not None else [
            {"id": f"u{i}", "label": f"User {i}"} for i in range(1, 6)
        ]
        self.page_size = page_size
        self.labels = labels or {}
        self.fail = fail
        self.searches = []
        self.label_requests = []

    async def search_relation(self, relation_class, search, page, filters):
        self.searches.append((relation_class, search, page, filters))
        if self.fail:
            raise RelationLookupError("backend down")
        matching = [i for i in self.items if search.lower() in i["label"].lower()]
        start = (page - 1) * self.page_size
        chunk = matching[start:start + self.page_size]
        return {"items": chunk, "hasMore": start + self.page_size < len(matching)}

    async def get_relation_label(self, relation_class, value):
        self.label_requests.append((relation_class, value))
        if self.fail:
            raise RelationLookupError("backend down")
        return {"label": self.labels.get(value, f"Label of {value}")}


@pytest.fixture
def settings():
    """Settings isolated from the environment."""
    return Settings(relation_debounce_seconds=0.0, relation_base_url=None, _env_file=None)


@pytest.fixture
def schema_list():
    return [
        {
            "type": "send_email",
            "fields": [
                {"property": "to", "label": "Recipient", "type": "text", "required": True},
                {"property": "subject", "label": "Subject", "type": "text"},
            ],
        },
        {
            "type": "notify",
            "sections": [
                {
                    "title": "Delivery",
                    "expanded": True,
                    "fields": [
                        {"property": "channel", "label": "Channel", "type": "select",
                         "required": True, "options": [{"value": "sms", "label": "SMS"}]},
                    ],
                },
                {
                    "title": "Audience",
                    "fields": [
                        {"property": "recipients", "label": "Recipients", "type": "relation",
                         "class": "User", "required": True, "filter": {"active": True}},
                    ],
                },
            ],
        },
    ]


@pytest.fixture
def schemas(schema_list):
    return SchemaCatalog.from_list(schema_list)


@pytest.fixture
def properties():
    return normalize_properties([
        {"id": "total", "label": "Order total", "type": "decimal"},
        {"id": "role", "label": "Requester role", "type": "String"},
        {"id": "created", "label": "Created at", "type": "DateTime"},
        {"id": "approved", "label": "Approved by HR?", "type": "bool"},
    ])


@pytest.fixture
def document(settings):
    return FlowDocument(settings=settings, rng=random.Random(7))


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def make_provider():
    """Factory for providers with custom confirm answers."""
    return RecordingProvider


@pytest.fixture
def relation_provider():
    return FakeRelationProvider()


@pytest.fixture
def make_relation_provider():
    """Factory for relation backends with custom data."""
    return FakeRelationProvider
