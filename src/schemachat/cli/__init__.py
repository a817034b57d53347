"""schemachat CLI -- terminal interface for schema-validated completions.

This module is NEVER imported from schemachat/__init__.py.
It is only loaded via the ``schemachat`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import logging

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install schemachat[cli]"
    ) from None


@click.group()
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Log requests, responses and autoheal activity to stderr.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """schemachat: schema-validated chat completions."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


# Register subcommands after cli group is defined
from schemachat.cli.commands.complete import complete  # noqa: E402

cli.add_command(complete)
