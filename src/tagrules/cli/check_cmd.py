"""Validate a data file against a record schema."""

import json
from pathlib import Path

import click
import yaml

from tagrules.config import EngineConfig
from tagrules.schemas.loader import SchemaLoader
from tagrules.validation.errors import RuleEngineError
from tagrules.validation.schema import Record


def _load_data(data_path: Path):
    with data_path.open() as fh:
        if data_path.suffix == ".json":
            return json.load(fh)
        return yaml.safe_load(fh)


@click.command()
@click.option(
    "--schemas",
    "schemas_path",
    required=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory of record schema YAML files.",
)
@click.option("--record", "record_name", required=True, help="Record schema to validate against.")
@click.option("--recursive", is_flag=True, default=False, help="Also validate nested records.")
@click.option(
    "--except",
    "exceptions",
    multiple=True,
    help="Rule name to skip (repeatable, case-insensitive).",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Emit the result as JSON.")
@click.argument("data", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def check(
    config: EngineConfig | None,
    schemas_path: Path,
    record_name: str,
    recursive: bool,
    exceptions: tuple[str, ...],
    as_json: bool,
    data: Path,
):
    """Validate DATA (YAML or JSON, one mapping or a list) against a record schema.

    Exits 1 when validation fails and 2 on a schema or tag problem.
    """
    config = config or EngineConfig.from_env()
    try:
        config.apply_messages()
        schemas = SchemaLoader(schemas_path).load_all()
    except ValueError as e:  # SchemaError or a malformed messages file
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(2)

    schema = schemas.get(record_name)
    if schema is None:
        click.echo(click.style(f"Error: Unknown record '{record_name}'", fg="red"), err=True)
        raise SystemExit(2)

    try:
        payload = _load_data(data)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        click.echo(click.style(f"Error: {data}: {e}", fg="red"), err=True)
        raise SystemExit(2)
    items = payload if isinstance(payload, list) else [payload]
    if not items or not all(isinstance(item, dict) for item in items):
        click.echo(
            click.style(f"Error: {data} must contain a mapping or a list of mappings", fg="red"),
            err=True,
        )
        raise SystemExit(2)

    results = []
    failed = 0
    for index, item in enumerate(items):
        validation = config.create_validation(schemas=schemas)
        record = Record(schema, item)
        try:
            if recursive:
                ok = validation.recursive_valid_with_exception(record, exceptions)
            else:
                ok = validation.valid_with_exception(record, exceptions)
        except RuleEngineError as e:
            click.echo(click.style(f"Error: {e}", fg="red"), err=True)
            raise SystemExit(2)

        results.append(validation.to_dict())
        if ok:
            continue
        failed += 1
        if not as_json:
            prefix = f"[{index}] " if isinstance(payload, list) else ""
            for error in validation.errors:
                label = error.field or error.key
                click.echo(click.style(f"  ✗ {prefix}{label}: {error.message}", fg="red"))

    if as_json:
        click.echo(json.dumps(results if isinstance(payload, list) else results[0], indent=2))

    if failed:
        if not as_json:
            click.echo(
                click.style(
                    f"\n{failed} of {len(items)} record(s) failed validation.",
                    fg="red",
                    bold=True,
                )
            )
        raise SystemExit(1)

    if not as_json:
        click.echo(click.style(f"{record_name} is valid.", fg="green", bold=True))
