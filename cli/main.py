# cli/main.py
"""Main CLI entry point for Flow Builder."""

import click

from flowbuilder import __version__
from flowbuilder.config import get_settings
from flowbuilder.utils.logging import setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
def cli(verbose: bool):
    """Flow Builder CLI - validate and compile visual workflow documents."""
    setup_logging("INFO" if verbose else get_settings().log_level)


# Import and register command groups
def register_commands():
    """Register all CLI command groups."""
    # Workflow commands
    from cli.commands.workflow import workflow
    cli.add_command(workflow)

    # Schema commands
    from cli.commands.schema import schema
    cli.add_command(schema)


# Register all commands
register_commands()


if __name__ == '__main__':
    cli()
