"""CLI entry point for cisummary.

Commands:
  report   initialize the CI summary comment, or merge one job's result into it
  show     print the parsed summary of a pull request
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from cisummary_cli.commands.report import report_cmd
from cisummary_cli.commands.show import show_cmd


def _configure_logging(verbose: bool) -> None:
    """Route library logging through rich on stderr.

    INFO shows the update protocol's progress (delays, conflicts, retries);
    DEBUG adds the parsed and merged state.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    # PyGithub logs every request at DEBUG.
    logging.getLogger("github").setLevel(logging.INFO if verbose else logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("cisummary"),
    prog_name="cisummary",
)
@click.option(
    "--config",
    "config_path",
    default=".ci-summary.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="CI_SUMMARY_CONFIG",
)
@click.option(
    "--token",
    default=None,
    envvar="INPUT_REPO-TOKEN",
    help="GitHub token. Defaults to GITHUB_TOKEN, then the gh CLI session.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output, including parsed summary state.")
@click.pass_context
def main(ctx: click.Context, config_path: str, token: str | None, verbose: bool):
    """Maintain one CI summary comment per pull request, updated by many jobs."""
    from cisummary_core.config import load_config
    from cisummary_core.errors import ConfigurationError
    from cisummary_cli.auth import resolve_github_token

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    # Resolve token early so all subcommands share the same resolution.
    resolved = resolve_github_token(token)
    if resolved:
        config["github_token"] = resolved

    ctx.obj["config"] = config


main.add_command(report_cmd)
main.add_command(show_cmd)
