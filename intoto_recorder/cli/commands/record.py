"""``intoto-recorder record -- CMD...`` — record a link for one build step.

Collects materials, runs the wrapped command, collects products, signs
the link, writes it locally and submits it to the configured transport.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from intoto_recorder.config import RecorderSettings
from intoto_recorder.core.recorder import LinkRecorder, run_command
from intoto_recorder.errors import RecorderError

console = Console()


def record_cmd(
    command: list[str] = typer.Argument(
        ...,
        help="The build command to run (put it after --).",
    ),
    step_name: str = typer.Option(
        None,
        "--step-name",
        "-n",
        help="Link name (defaults to 'step').",
    ),
    key_path: str = typer.Option(
        None,
        "--key",
        "-k",
        help="Ed25519 seed file used to sign the link.",
    ),
    transport: str = typer.Option(
        None,
        "--transport",
        "-t",
        help="Submission URI: http(s)://... or grafeas+https://...?noteName=...&resourceUri=...",
    ),
    root: str = typer.Option(
        ".",
        "--root",
        "-r",
        help="Workspace whose artifacts are recorded.",
    ),
    link_dir: str = typer.Option(
        None,
        "--link-dir",
        help="Directory for the local .link file (defaults to the workspace).",
    ),
) -> None:
    """Record a link for a wrapped build command.

    The wrapped command's exit code is propagated after the link has been
    written.
    """
    settings = RecorderSettings()
    config = settings.to_step_config(
        step_name=step_name,
        key_path=key_path,
        transport=transport,
        link_dir=link_dir,
    )

    try:
        recorder = LinkRecorder(config)
        recorder.prebuild(Path(root), command=command)
        byproducts = run_command(command, cwd=root)
        result = recorder.perform(byproducts=byproducts)
    except RecorderError as exc:
        console.print(f"[bold red]Recording failed:[/bold red] {exc}")
        raise typer.Exit(code=1)

    link = result.document.signed
    table = Table(title="Submissions")
    table.add_column("Transport", style="cyan")
    table.add_column("Target")
    table.add_column("Delivered", justify="center")
    for outcome in result.outcomes:
        delivered = "[green]Yes[/green]" if outcome.delivered else "[red]No[/red]"
        table.add_row(outcome.transport, outcome.target, delivered)

    signed = (
        f"[green]{result.document.signatures[0].keyid}[/green]"
        if result.document.is_signed
        else "[yellow]unsigned[/yellow]"
    )
    console.print(
        Panel(
            "\n".join([
                f"[bold]Step:[/bold]      {link.name}",
                f"[bold]Materials:[/bold] {len(link.materials)}",
                f"[bold]Products:[/bold]  {len(link.products)}",
                f"[bold]Signed:[/bold]    {signed}",
                f"[bold]Link file:[/bold] {result.local_path}",
            ]),
            title="[bold]Link recorded[/bold]",
            border_style="green" if result.delivered else "yellow",
            padding=(1, 2),
        )
    )
    console.print(table)

    return_value = byproducts["return-value"]
    if return_value != 0:
        raise typer.Exit(code=return_value)
