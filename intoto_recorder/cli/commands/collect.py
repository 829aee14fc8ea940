"""``intoto-recorder collect ROOT`` — print a directory's artifact set."""

from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.table import Table

from intoto_recorder.core.collector import ArtifactCollector
from intoto_recorder.errors import IOFailure

console = Console()


def collect_cmd(
    root: str = typer.Argument(".", help="Directory (or file) to collect."),
    as_json: bool = typer.Option(
        False, "--json", help="Print the artifact set as JSON."
    ),
    exclude: list[str] = typer.Option(
        [],
        "--exclude",
        "-e",
        help="fnmatch pattern to skip (repeatable).",
    ),
    follow_symlinks: bool = typer.Option(
        False, "--follow-symlinks", help="Resolve symlinks instead of skipping them."
    ),
) -> None:
    """Hash every regular file under ROOT and print the result."""
    collector = ArtifactCollector(
        exclude_patterns=exclude, follow_symlinks=follow_symlinks
    )
    try:
        artifacts = collector.collect(root)
    except IOFailure as exc:
        console.print(f"[bold red]Collection failed:[/bold red] {exc}")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(artifacts, sort_keys=True, indent=2))
        return

    if not artifacts:
        console.print("[dim]No artifacts found.[/dim]")
        return

    table = Table(title=f"Artifacts under {root}")
    table.add_column("Artifact", style="cyan")
    table.add_column("sha256", style="green")
    for identity in sorted(artifacts):
        table.add_row(identity, artifacts[identity].get("sha256", ""))
    console.print(table)
