# cli/commands/schema.py
"""Schema and condition operator commands."""

import sys
from pathlib import Path
from typing import Tuple

import click

from flowbuilder.config import get_settings
from flowbuilder.visual.nodes import SchemaCatalog
from flowbuilder.visual.operators import PROPERTY_TYPES, normalize_type, operators_for


@click.group()
def schema():
    """Inspect node type schemas and condition operators."""
    pass


@schema.command()
@click.argument('node_type')
@click.option('--schemas', '-s', type=click.Path(exists=True, path_type=Path),
              required=True, help='JSON/YAML file with node type schemas')
def sections(node_type: str, schemas: Path):
    """Show the edit form sections of a node type."""
    catalog = SchemaCatalog.load_file(schemas)
    resolved = catalog.resolve(node_type, get_settings().default_section_title)

    if not resolved:
        click.echo(f"📭 No schema for node type '{node_type}'")
        sys.exit(1)

    for section in resolved:
        marker = "▼" if section.expanded else "▶"
        click.echo(f"{marker} {section.title}")
        for field in section.fields:
            required = " *" if field.required else ""
            click.echo(f"    {field.key} ({field.type.value}){required} - {field.display_label}")


@schema.command()
@click.argument('property_type', type=click.Choice(list(PROPERTY_TYPES)))
def operators(property_type: str):
    """List condition operators for a property type."""
    for operator in operators_for(property_type):
        click.echo(f"{operator.id}\t{operator.label}")


@schema.command()
@click.argument('foreign_types', nargs=-1, required=True)
def normalize(foreign_types: Tuple[str, ...]):
    """Show how foreign type names map to property types."""
    for foreign_type in foreign_types:
        click.echo(f"{foreign_type} -> {normalize_type(foreign_type)}")
