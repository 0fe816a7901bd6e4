# cli/commands/workflow.py
"""Flow document commands: validate, compile and inspect saved projects."""

import json
import sys
from collections import Counter
from pathlib import Path
from typing import Any, List, Optional

import click
import yaml

from flowbuilder.visual.engine import DocumentFormatError, WorkflowCompiler
from flowbuilder.visual.flow import FlowDocument
from flowbuilder.visual.nodes import PropertyOption, SchemaCatalog, normalize_properties


def load_data_file(path: Path) -> Any:
    """Load a JSON or YAML file."""
    content = path.read_text(encoding="utf-8")
    if path.suffix.lower() in ('.yaml', '.yml'):
        return yaml.safe_load(content)
    return json.loads(content)


def build_compiler(schemas: Optional[Path], properties: Optional[Path]) -> WorkflowCompiler:
    catalog = SchemaCatalog.load_file(schemas) if schemas else SchemaCatalog()
    property_options: List[PropertyOption] = []
    if properties:
        data = load_data_file(properties)
        if isinstance(data, dict):
            data = data.get('properties', [])
        property_options = normalize_properties(data or [])
    return WorkflowCompiler(catalog, property_options)


def load_document(compiler: WorkflowCompiler, document_file: Path) -> FlowDocument:
    try:
        return compiler.import_document(document_file.read_text(encoding="utf-8"))
    except DocumentFormatError as e:
        click.echo(f"❌ Invalid flow document {document_file}: {e}", err=True)
        sys.exit(1)


schema_option = click.option(
    '--schemas', '-s', type=click.Path(exists=True, path_type=Path),
    help='JSON/YAML file with node type schemas'
)
properties_option = click.option(
    '--properties', '-p', type=click.Path(exists=True, path_type=Path),
    help='JSON/YAML file with branchable properties'
)


@click.group()
def workflow():
    """Validate, compile and inspect flow documents."""
    pass


@workflow.command()
@click.argument('document_file', type=click.Path(exists=True, path_type=Path))
@schema_option
@properties_option
def validate(document_file: Path, schemas: Optional[Path], properties: Optional[Path]):
    """Check that every step of a flow document is fully configured."""
    compiler = build_compiler(schemas, properties)
    document = load_document(compiler, document_file)

    result = compiler.validate(document)
    if not result.ok:
        node = document.get_node(result.node_id) if result.node_id else None
        where = f" [{node.type} {node.id}]" if node else ""
        click.echo(f"❌ Validation failed{where}: {result.message}", err=True)
        sys.exit(1)

    click.echo(f"✅ {document_file} is valid ({len(document.nodes)} steps)")


@workflow.command()
@click.argument('document_file', type=click.Path(exists=True, path_type=Path))
@click.option('--output', '-o', type=click.Path(path_type=Path), help='Output file (default: stdout)')
@click.option('--format', '-f', 'output_format', type=click.Choice(['json', 'yaml']),
              default='json', help='Output format')
@click.option('--with-graph', is_flag=True, help='Include the visual document (JSON only)')
@schema_option
@properties_option
def compile(
    document_file: Path,
    output: Optional[Path],
    output_format: str,
    with_graph: bool,
    schemas: Optional[Path],
    properties: Optional[Path]
):
    """Compile a flow document into workflow logic."""
    compiler = build_compiler(schemas, properties)
    document = load_document(compiler, document_file)

    if with_graph and output_format == 'json':
        content = compiler.export_workflow(document, 'json')
    else:
        logic = compiler.export_logic(document)
        if logic is None:
            content = None
        elif output_format == 'yaml':
            content = compiler.logic_to_yaml(logic)
        else:
            content = json.dumps(logic.to_dict(), indent=2)

    if content is None:
        result = compiler.validate(document)
        click.echo(f"❌ Export blocked at step {result.node_id}: {result.message}", err=True)
        sys.exit(1)

    if output:
        output.write_text(content, encoding="utf-8")
        click.echo(f"✅ Compiled logic written to {output}")
    else:
        click.echo(content)


@workflow.command()
@click.argument('document_file', type=click.Path(exists=True, path_type=Path))
def inspect(document_file: Path):
    """Show the structure of a flow document."""
    compiler = WorkflowCompiler()
    document = load_document(compiler, document_file)

    click.echo(f"📊 {document_file}")
    click.echo(f"   Steps: {len(document.nodes)}")
    click.echo(f"   Connections: {len(document.edges)}")

    for node_type, count in sorted(Counter(n.type for n in document.nodes).items()):
        click.echo(f"   - {node_type}: {count}")

    roots = document.root_nodes()
    if len(roots) == 1:
        click.echo(f"   Start: {roots[0].text or roots[0].id}")
    elif roots:
        click.echo(f"⚠️  {len(roots)} possible starting steps: {', '.join(n.id for n in roots)}")
    else:
        click.echo("⚠️  No starting step (every step has an incoming connection)")
