"""CLI entry point for revlens.

Commands:
  review-commit     - review the files changed by a commit
  review-pr         - review a branch diff or a GitHub pull request
  review-files      - review specific files (default: uncommitted changes)
  review-directory  - review every file under a directory
  configure         - set the default provider and model
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from revlens_cli.commands.configure import configure_cmd
from revlens_cli.commands.review import (
    review_commit_cmd,
    review_directory_cmd,
    review_files_cmd,
    review_pr_cmd,
)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose, rich_tracebacks=verbose)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("revlens"),
    prog_name="revlens",
)
@click.option(
    "--config",
    "config_path",
    default=".revlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVLENS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """AI-assisted code review for commits, branches, files and directories."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(review_commit_cmd)
main.add_command(review_pr_cmd)
main.add_command(review_files_cmd)
main.add_command(review_directory_cmd)
main.add_command(configure_cmd)
