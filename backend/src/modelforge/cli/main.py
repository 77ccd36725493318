"""ModelForge CLI entry point."""

import logging

import click

from modelforge.config import EngineSettings


@click.group()
def cli():
    """ModelForge: model lifecycle engine CLI."""
    settings = EngineSettings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register subcommand groups
from modelforge.cli.schema_cmd import schema  # noqa: E402

cli.add_command(schema)
