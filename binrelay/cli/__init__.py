"""binrelay CLI: Typer-based command-line interface.

Provides the ``binrelay`` command with subcommands for fingerprinting the
build inputs, previewing the release plan, publishing, and inspecting the
binary map.

All output uses Rich for formatted terminal display.
"""
