"""
StatusCore CLI - evaluate service health and report incidents.

Commands:
    statuscore serve         Run the HTTP API
    statuscore report        Run the reporting workflow
    statuscore check-config  Validate monitoring definitions
    statuscore health        One-shot health query
"""

import click

from statuscore import __version__

from .core import check_config, health, serve
from .report import report as report_command


@click.group()
@click.version_option(version=__version__)
def main():
    """StatusCore - service health from metrics to the status dashboard."""
    pass


main.add_command(serve)
main.add_command(report_command)
main.add_command(check_config, name="check-config")
main.add_command(health)


if __name__ == "__main__":
    main()
