"""Command-line interface for inspecting the default version chain.

Example:
    >>> # From terminal:
    >>> # versionchain --version
    >>> # versionchain versions
    >>> # versionchain resolve v3 format_validation_errors
    >>> # versionchain table v2 --json
"""

import json
from typing import Annotated, Optional

import typer

from versionchain import __version__
from versionchain.contracts import create_default_resolver
from versionchain.errors import VersionChainError

app = typer.Typer(help="Inspect API version chains.")

_verbose: bool = False


def _version_callback(value: bool) -> None:
    """Print the version and exit when requested."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


VERSION_OPTION = typer.Option(
    False,
    "--version",
    help="Show versionchain version and exit.",
    callback=_version_callback,
    is_eager=True,
)


@app.callback()
def cli(
    version: bool = VERSION_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output."),
) -> None:
    """versionchain CLI entrypoint."""
    global _verbose
    _verbose = verbose


@app.command("versions")
def versions() -> None:
    """List registered versions from the root to the newest."""
    resolver = create_default_resolver(freeze=True)
    for tag in resolver.versions():
        layer = resolver.get_layer(tag)
        if _verbose:
            extends = layer.predecessor or "-"
            typer.echo(f"{tag}\textends={extends}\toverrides={len(layer.overrides)}")
        else:
            typer.echo(tag)


@app.command("resolve")
def resolve(
    version: Annotated[str, typer.Argument(help="Version tag, e.g. v3.")],
    operation: Annotated[str, typer.Argument(help="Operation name, e.g. format_response.")],
) -> None:
    """Print which version supplies an operation."""
    resolver = create_default_resolver(freeze=True)
    try:
        record = resolver.override_record(version, operation)
        source = resolver.resolve_source(version, operation)
    except VersionChainError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(1) from e
    status = "overridden" if record.overridden else "inherited"
    typer.echo(f"{operation}@{record.version} -> {source} ({status})")


@app.command("table")
def table(
    version: Annotated[
        Optional[str],
        typer.Argument(help="Version tag; defaults to the newest version."),
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON.")] = False,
) -> None:
    """Print the resolution table (operation -> supplying version)."""
    resolver = create_default_resolver(freeze=True)
    target = version or resolver.head or ""
    try:
        resolution = resolver.resolution_table(target)
    except VersionChainError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(1) from e
    if as_json:
        typer.echo(json.dumps({"version": target, "operations": resolution}, indent=2))
        return
    width = max((len(name) for name in resolution), default=0)
    for name, source in resolution.items():
        typer.echo(f"{name.ljust(width)}  {source}")


def main() -> None:
    """Run the versionchain CLI."""
    app()


if __name__ == "__main__":
    main()
