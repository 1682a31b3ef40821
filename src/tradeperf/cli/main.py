"""tradeperf CLI main entry point."""

import click

from tradeperf import __version__
from tradeperf.cli.commands import analyze_command


@click.group()
@click.version_option(version=__version__)
def main():
    """tradeperf - Round-trip performance analysis for trading runs"""
    pass


# Register commands
main.add_command(analyze_command)


if __name__ == "__main__":
    main()
