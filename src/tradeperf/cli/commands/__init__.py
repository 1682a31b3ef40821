"""Commands __init__ - exports all commands."""

from tradeperf.cli.commands.analyze import analyze_command

__all__ = ["analyze_command"]
