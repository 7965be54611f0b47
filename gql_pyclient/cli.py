"""Command-line interface for gql-pyclient."""

import json
import shutil
import tarfile
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path

import click

from .core.errors import SchemaError
from .core.loader import load_document
from .core.parser import SchemaParser
from .core.tracker import TypeTracker

ARCHIVE_SUFFIXES = (".zip", ".tar.gz", ".tgz")


def extract_archive(archive_path: Path) -> str:
    """Extract archive to temp directory. Returns path to extracted content."""
    temp_dir = tempfile.mkdtemp()
    if archive_path.suffix == ".zip":
        with zipfile.ZipFile(archive_path, "r") as zip_ref:
            zip_ref.extractall(temp_dir)
    elif archive_path.name.endswith((".tar.gz", ".tgz")):
        with tarfile.open(archive_path, "r:gz") as tar_ref:
            tar_ref.extractall(temp_dir, filter="data")
    else:
        shutil.rmtree(temp_dir)
        raise ValueError(f"Unsupported archive format: {archive_path.suffix}")
    return temp_dir


@contextmanager
def schema_source(schema: str, verbose: bool):
    """Yield a schema file or directory path, extracting archives first."""
    schema_path = Path(schema).resolve()
    temp_dir = None
    try:
        if schema_path.is_file() and schema_path.name.lower().endswith(ARCHIVE_SUFFIXES):
            click.echo(f"Extracting archive {schema_path.name}...", err=True)
            temp_dir = extract_archive(schema_path)
            schema_path = Path(temp_dir)
            if verbose:
                click.echo(f"  Extracted to: {temp_dir}", err=True)
        yield schema_path
    finally:
        if temp_dir:
            shutil.rmtree(temp_dir)


schema_option = click.option(
    "--schema",
    "-s",
    required=True,
    type=click.Path(exists=True),
    help="Path to GraphQL schema file, directory, or archive (.zip, .tar.gz, .tgz).",
)
verbose_option = click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)


@click.group()
@click.version_option(package_name="gql-pyclient")
def main():
    """Schema-validated GraphQL query building for Python.

    Build queries against a type bundle, send them, and decode paginated
    responses into models.
    """
    pass


@main.command()
@schema_option
@click.option(
    "--output",
    "-o",
    required=True,
    type=click.Path(),
    help="Output file for the JSON type bundle.",
)
@verbose_option
def bundle(schema: str, output: str, verbose: bool):
    """Convert an SDL schema into a JSON type bundle.

    Examples:

        gql-pyclient bundle --schema ./schema.graphqls --output ./types.json

        gql-pyclient bundle -s ./schema.tgz -o ./types.json -v
    """
    output_path = Path(output).resolve()
    with schema_source(schema, verbose) as schema_path:
        if verbose:
            click.echo(f"Schema: {schema_path}", err=True)
            click.echo(f"Output: {output_path}", err=True)

        click.echo("Parsing schema...", err=True)
        type_bundle = SchemaParser(str(schema_path)).parse_all()

    if verbose:
        click.echo(f"  Types: {len(type_bundle)}", err=True)
        click.echo(f"  Query root: {type_bundle.query_type}", err=True)
        click.echo(f"  Mutation root: {type_bundle.mutation_type or '-'}", err=True)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(type_bundle.to_dict(), f, indent=2, sort_keys=True)
    click.echo(f"Done! Wrote {len(type_bundle)} types to {output_path}", err=True)


@main.command()
@schema_option
@click.option(
    "--query",
    "-q",
    "query_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="File containing the GraphQL query document.",
)
@verbose_option
def types(schema: str, query_file: str, verbose: bool):
    """List the schema types a query document depends on.

    Examples:

        gql-pyclient types -s ./schema.graphqls -q ./products.graphql
    """
    with schema_source(schema, verbose) as schema_path:
        type_bundle = SchemaParser(str(schema_path)).parse_all()

    tracker = TypeTracker()
    tracker.start()
    try:
        document = load_document(type_bundle, Path(query_file).read_text(), tracker=tracker)
    except SchemaError as e:
        raise click.ClickException(str(e)) from e

    if verbose:
        click.echo(f"Operations: {len(document.operations)}", err=True)
        click.echo(f"Fragments: {len(document.fragments)}", err=True)
    click.echo(",".join(tracker.tracked_types()))


if __name__ == "__main__":
    main()
