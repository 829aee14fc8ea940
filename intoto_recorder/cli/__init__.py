"""intoto-recorder CLI — Typer-based command-line interface.

Provides the ``intoto-recorder`` command with subcommands for recording a
wrapped build step, inspecting a workspace's artifact set, and generating
signing keys.

All output uses Rich for formatted terminal display.
"""
