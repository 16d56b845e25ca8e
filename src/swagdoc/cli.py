from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from swagdoc.config import Settings, load_settings
from swagdoc.errors import SwagdocError
from swagdoc.log import configure_logging
from swagdoc.orchestrator.pipeline import DocumentResult, run_document
from swagdoc.render.swagger import dump_document, render_listing, render_resource_listing

app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()

_EXTENSIONS = {"json": "json", "yaml": "yaml"}


def _resolve_repo(repo: str) -> Path:
    repo_path = Path(repo).expanduser().resolve()
    if not repo_path.exists():
        raise typer.BadParameter(f"Repo path does not exist: {repo_path}")
    if not repo_path.is_dir():
        raise typer.BadParameter(f"Repo path is not a directory: {repo_path}")
    return repo_path


def _document(
    repo_path: Path,
    config: Optional[str],
    api_version: Optional[str],
    base_path: Optional[str],
    ordering: Optional[str],
    max_files: Optional[int],
) -> tuple[Settings, DocumentResult]:
    try:
        settings = load_settings(
            repo_path,
            config_path=Path(config).expanduser() if config else None,
            overrides={
                "api_version": api_version,
                "base_path": base_path,
                "ordering": ordering,
                "max_files": max_files,
            },
        )
        return settings, run_document(repo_path, settings)
    except SwagdocError as exc:
        console.print(f"[bold red]error:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc


@app.command()
def listings(
    repo: str = typer.Argument(..., help="Path to the repo to document"),
    config: Optional[str] = typer.Option(None, help="Path to a swagdoc.toml"),
    api_version: Optional[str] = typer.Option(None, help="Override the documented API version"),
    base_path: Optional[str] = typer.Option(None, help="Override the base path"),
    ordering: Optional[str] = typer.Option(None, help="Endpoint ordering: path|position"),
    max_files: Optional[int] = typer.Option(None, help="Limit scanned files (debug)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    configure_logging(verbose)
    repo_path = _resolve_repo(repo)
    settings, result = _document(repo_path, config, api_version, base_path, ordering, max_files)

    console.print(f"[bold green]swagdoc[/bold green] listings: {repo_path}")
    console.print(
        f"Detected framework: [bold]{result.framework}[/bold] (confidence={result.confidence:.2f})"
    )
    console.print(f"Python files scanned: {result.files_scanned}")
    console.print(f"Routes found: [bold]{len(result.routes)}[/bold]")
    console.print("")

    table = Table(show_header=True, header_style="bold")
    table.add_column("POS", no_wrap=True, justify="right")
    table.add_column("RESOURCE")
    table.add_column("APIS", justify="right")
    table.add_column("OPERATIONS", justify="right")
    table.add_column("MODELS", justify="right")
    table.add_column("AUTH")

    for listing in result.listings:
        table.add_row(
            str(listing.position),
            listing.resource_path or "-",
            str(len(listing.apis)),
            str(listing.operation_count),
            str(len(listing.models)),
            ", ".join(a.type for a in listing.authorizations) or "-",
        )

    console.print(table)
    console.print(f"API version: {settings.api_version}  base path: {settings.base_path}")


@app.command()
def export(
    repo: str = typer.Argument(..., help="Path to the repo to document"),
    format: str = typer.Option("json", help="Output format: json|yaml"),
    out: Optional[str] = typer.Option(None, help="Output directory (default: print to stdout)"),
    config: Optional[str] = typer.Option(None, help="Path to a swagdoc.toml"),
    api_version: Optional[str] = typer.Option(None, help="Override the documented API version"),
    base_path: Optional[str] = typer.Option(None, help="Override the base path"),
    ordering: Optional[str] = typer.Option(None, help="Endpoint ordering: path|position"),
    max_files: Optional[int] = typer.Option(None, help="Limit scanned files (debug)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    configure_logging(verbose)
    fmt = format.lower().strip()
    if fmt not in _EXTENSIONS:
        raise typer.BadParameter("format must be one of: json, yaml")

    repo_path = _resolve_repo(repo)
    settings, result = _document(repo_path, config, api_version, base_path, ordering, max_files)

    index = render_resource_listing(result.listings, api_version=settings.api_version)
    declarations = [render_listing(listing) for listing in result.listings]

    if not out:
        payload = {
            "resourceListing": index.model_dump(by_alias=True, exclude_none=True),
            "apiDeclarations": [d.model_dump(by_alias=True, exclude_none=True) for d in declarations],
        }
        # raw echo: rich markup would eat "[...]" in the document
        typer.echo(dump_document(payload, fmt))
        return

    out_dir = Path(out).expanduser()
    out_dir.mkdir(parents=True, exist_ok=True)
    ext = _EXTENSIONS[fmt]

    # api-docs.<ext> index, declarations under api-docs/<resource>.<ext>
    (out_dir / f"api-docs.{ext}").write_text(dump_document(index, fmt), encoding="utf-8")
    decl_dir = out_dir / "api-docs"
    decl_dir.mkdir(exist_ok=True)
    for decl in declarations:
        name = (decl.resource_path or "/default").strip("/") or "default"
        (decl_dir / f"{name}.{ext}").write_text(dump_document(decl, fmt), encoding="utf-8")

    console.print(
        f"[bold green]Wrote[/bold green] {len(declarations)} {fmt} declarations + index to: {out_dir}"
    )


@app.command()
def ping() -> None:
    console.print("pong")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
