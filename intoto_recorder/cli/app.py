"""Main Typer application — imports and registers all CLI commands.

Entry point: ``intoto-recorder`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from intoto_recorder.cli.commands.collect import collect_cmd
from intoto_recorder.cli.commands.keygen import keygen_cmd
from intoto_recorder.cli.commands.record import record_cmd
from intoto_recorder.config import RecorderSettings

app = typer.Typer(
    name="intoto-recorder",
    help="intoto-recorder: signed link metadata for build steps.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="record", help="Record a link for a wrapped build command.")(record_cmd)
app.command(name="collect", help="Show the artifact set of a directory.")(collect_cmd)
app.command(name="keygen", help="Generate an Ed25519 signing key.")(keygen_cmd)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to INTOTO_RECORDER_LOG_LEVEL or INFO).",
    ),
) -> None:
    """Configure logging for every subcommand."""
    level = (log_level or RecorderSettings().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
