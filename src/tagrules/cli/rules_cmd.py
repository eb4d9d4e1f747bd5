"""Rule catalog commands."""

import json

import click

from tagrules.validation.registry import default_registry


@click.group()
def rules():
    """Rule registry commands."""
    pass


@rules.command("list")
@click.option("--json", "as_json", is_flag=True, default=False, help="Emit JSON.")
def list_cmd(as_json: bool):
    """List registered rules and their parameters."""
    registry = default_registry()
    if as_json:
        click.echo(json.dumps(registry.export_documentation(), indent=2))
        return

    definitions = registry.list_all()
    for definition in definitions:
        params = ", ".join(f"{p.name}: {p.kind.value}" for p in definition.parameters)
        click.echo(f"  {click.style(definition.name, bold=True)}({params})")
    click.echo(f"\n{len(definitions)} rule(s) registered.")
