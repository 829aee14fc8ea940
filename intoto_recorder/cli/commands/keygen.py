"""``intoto-recorder keygen PATH`` — write a new Ed25519 signing key."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from intoto_recorder.core.signer import generate_key, write_key

console = Console()


def keygen_cmd(
    path: str = typer.Argument(..., help="Where to write the hex-encoded seed."),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing key file."
    ),
) -> None:
    """Generate an Ed25519 key and print its key id and public key."""
    key_path = Path(path)
    if key_path.exists() and not force:
        console.print(
            f"[bold red]Refusing to overwrite existing key:[/bold red] {key_path}"
        )
        raise typer.Exit(code=1)

    key = generate_key()
    write_key(key, key_path)
    console.print(f"[bold green]Key written to[/bold green] {key_path}")
    console.print(f"[bold]Key id:[/bold]     {key.key_id()}")
    console.print(f"[bold]Public key:[/bold] {key.public_hex()}")
