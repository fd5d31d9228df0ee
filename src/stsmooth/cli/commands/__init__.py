"""
CLI command modules.

Subcommands for the stsmooth CLI.
"""

from stsmooth.cli.commands.smooth import run
from stsmooth.cli.commands.select import select

__all__ = ["run", "select"]
