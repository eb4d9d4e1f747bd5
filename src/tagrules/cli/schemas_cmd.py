"""Schema file commands."""

from pathlib import Path

import click

from tagrules.schemas.loader import SchemaError, SchemaLoader
from tagrules.schemas.validator import validate_schema_dir
from tagrules.validation.registry import default_registry


@click.group()
def schemas():
    """Record schema commands."""
    pass


@schemas.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--strict", is_flag=True, default=False, help="Treat warnings as errors.")
def validate(path: Path, strict: bool):
    """Validate record schema YAML files in PATH."""
    issues = validate_schema_dir(path, strict=strict)
    errors = [i for i in issues if i.severity == "error"]
    warnings = [i for i in issues if i.severity == "warning"]

    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} schema error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    # ── Semantic validation: references and tags ─────────────────────────────
    loader = SchemaLoader(path)
    try:
        loader.load_all()
        loader.check_rules(default_registry())
    except SchemaError as e:
        click.echo(click.style(f"\nSemantic validation failed: {e}", fg="red"), err=True)
        raise SystemExit(1)

    names = loader.list_schemas()
    click.echo(f"Loaded {len(names)} record(s):")
    for name in names:
        schema = loader.get_schema(name)
        click.echo(f"  ✓ {name} ({len(schema.fields)} fields)")

    click.echo(click.style("\nAll schemas are valid.", fg="green", bold=True))
