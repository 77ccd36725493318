"""Schema CLI commands: validate, show and init."""

import json
from pathlib import Path

import click

from modelforge.model.registry import ModelRegistry
from modelforge.persistence.config import DatabaseConfig, create_source
from modelforge.schema.loader import SchemaLoader
from modelforge.schema.validator import validate_schema_dir, validate_schema_file


def _resolve_schema_path(schema_dir: Path | None) -> Path:
    """Resolve the schema directory from the option or cwd."""
    if schema_dir is not None:
        return schema_dir
    cwd = Path.cwd()
    base_path = cwd.parent if cwd.name == "backend" else cwd
    return base_path / "schema"


def _load_models(schema_path: Path) -> SchemaLoader:
    """Load, build and instantiate every model so setup errors surface."""
    loader = SchemaLoader(schema_path)
    loader.load_all()
    loader.build_all()
    for name in loader.list_models():
        model = ModelRegistry.resolve(name)()
        for relationship in loader.get(name).relationships:
            ModelRegistry.resolve(relationship.model)
        for reference in model.fields.references():
            if reference.reference.model is not None:
                ModelRegistry.resolve(reference.reference.model)
    return loader


@click.group()
def schema():
    """Model schema commands."""
    pass


@schema.command()
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Validate a single YAML file instead of the whole schema directory.",
)
@click.option(
    "--dir",
    "schema_dir",
    default=None,
    type=click.Path(path_type=Path),
    help="Schema directory (contains models/). Defaults to ./schema.",
)
def validate(target_path: Path | None, schema_dir: Path | None):
    """Validate model YAML files against the JSON Schema."""
    schema_path = _resolve_schema_path(schema_dir)

    # ── Schema (JSON Schema) validation ─────────────────────────────────────
    if target_path is not None:
        issues = validate_schema_file(target_path)
    else:
        if not schema_path.exists():
            click.echo(f"Error: Schema directory not found at {schema_path}", err=True)
            raise SystemExit(1)
        issues = validate_schema_dir(schema_path)

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

    # ── Semantic (loader) validation ─────────────────────────────────────────
    # Only runs when validating the full directory (target_path is None)
    if target_path is None:
        try:
            loader = _load_models(schema_path)
        except Exception as e:
            click.echo(click.style(f"\nSemantic validation failed: {e}", fg="red"), err=True)
            raise SystemExit(1)

        models = loader.list_models()
        click.echo(f"\nLoaded {len(models)} models:")
        for name in sorted(models):
            model_schema = loader.get(name)
            click.echo(
                f"  ✓ {name} ({len(model_schema.fields)} fields, "
                f"collection: {model_schema.collection})"
            )

    click.echo(click.style("\nAll schemas are valid.", fg="green", bold=True))


@schema.command()
@click.argument("model_name")
@click.option(
    "--dir",
    "schema_dir",
    default=None,
    type=click.Path(path_type=Path),
    help="Schema directory (contains models/). Defaults to ./schema.",
)
def show(model_name: str, schema_dir: Path | None):
    """Print a model's fields as JSON."""
    schema_path = _resolve_schema_path(schema_dir)

    try:
        loader = _load_models(schema_path)
    except Exception as e:
        click.echo(click.style(f"Failed to load schemas: {e}", fg="red"), err=True)
        raise SystemExit(1)

    if loader.get(model_name) is None:
        click.echo(f"Error: Model '{model_name}' not found", err=True)
        raise SystemExit(1)

    model = ModelRegistry.resolve(model_name)()
    click.echo(json.dumps(model.to_json(), indent=2, default=str))


@schema.command()
@click.option(
    "--dir",
    "schema_dir",
    default=None,
    type=click.Path(path_type=Path),
    help="Schema directory (contains models/). Defaults to ./schema.",
)
def init(schema_dir: Path | None):
    """Create the tables of every model in the configured database.

    The database comes from DATABASE_URL or MODELFORGE_DB_PATH, falling back
    to data/modelforge.db next to the schema directory.
    """
    schema_path = _resolve_schema_path(schema_dir)

    try:
        loader = _load_models(schema_path)
    except Exception as e:
        click.echo(click.style(f"Failed to load schemas: {e}", fg="red"), err=True)
        raise SystemExit(1)

    config = DatabaseConfig.from_env(schema_path.parent)
    if config.is_sqlite and config.sqlite_path != ":memory:":
        Path(config.sqlite_path).parent.mkdir(parents=True, exist_ok=True)

    source = create_source(config, connect=True)
    try:
        for name in sorted(loader.list_models()):
            model = ModelRegistry.resolve(name)(source=source)
            source.initialize(model)
            click.echo(f"  ✓ {name} (collection: {model.get_collection()})")
    finally:
        source.close()

    click.echo(click.style(f"\nInitialized {config.scheme} database.", fg="green", bold=True))
