"""tagrules CLI entry point."""

import logging

import click

from tagrules.config import EngineConfig


@click.group()
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (defaults to TAGRULES_LOG_LEVEL or WARNING).",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None):
    """tagrules: declarative field validation CLI."""
    config = EngineConfig.from_env()
    if log_level:
        config.log_level = log_level.upper()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


# Register subcommand groups
from tagrules.cli.check_cmd import check  # noqa: E402
from tagrules.cli.rules_cmd import rules  # noqa: E402
from tagrules.cli.schemas_cmd import schemas  # noqa: E402

cli.add_command(rules)
cli.add_command(schemas)
cli.add_command(check)
