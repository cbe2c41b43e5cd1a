"""show command: display the parsed CI summary of a pull request."""

from __future__ import annotations

import click
from github import GithubException
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cisummary_core.errors import CISummaryError
from cisummary_core.gh.comments import get_issue, get_repo
from cisummary_core.models import Status
from cisummary_core.parser import parse_summary
from cisummary_store.github import PullRequestCommentResource

console = Console()

_STATUS_STYLE = {
    Status.SUCCESS: "green",
    Status.FAILURE: "red",
    Status.CANCELLED: "magenta",
    Status.SKIPPED: "dim",
    Status.PENDING: "yellow",
    Status.UNKNOWN: "white",
}


@click.command("show")
@click.option("--repo", required=True, envvar="GITHUB_REPOSITORY", help="GitHub repository (owner/name).")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option("--errors", "show_errors", is_flag=True, help="Also list every error entry.")
@click.pass_context
def show_cmd(ctx, repo: str, pr_number: int, show_errors: bool):
    """Show the jobs recorded in a pull request's CI summary comment."""
    config = ctx.obj["config"]
    if not config.get("github_token"):
        raise click.UsageError("No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.")

    try:
        resource = PullRequestCommentResource(get_issue(get_repo(repo, token=config["github_token"]), pr_number))
        snapshot = resource.read()
    except CISummaryError as e:
        raise click.ClickException(str(e))
    except GithubException as e:
        raise click.ClickException(f"GitHub API returned {e.status}: {e.data}")

    summary = parse_summary(snapshot.body)
    if not summary.items:
        console.print("[yellow]The CI summary has no jobs yet.[/yellow]")
    else:
        table = Table(title=f"CI Summary: {repo}#{pr_number}", show_header=True, header_style="bold cyan")
        table.add_column("Job", style="bold")
        table.add_column("Section", width=9)
        table.add_column("Status", width=10)
        table.add_column("Errors", justify="right", width=7)
        table.add_column("Reference")

        for item in summary.items:
            style = _STATUS_STYLE[item.status]
            table.add_row(
                escape(item.name),
                "required" if item.required else "optional",
                f"[{style}]{item.status.value}[/{style}]",
                str(len(item.errors or [])),
                item.reference or "",
            )
        console.print(table)

    if show_errors:
        for item in summary.items:
            for error in item.errors or []:
                path = error.location.path if error.location else "-"
                details = escape(f"{error.severity}  {error.code.value or '-'}  {path}")
                console.print(f"[bold]{escape(item.name)}[/bold]  {details}")
                console.print(f"  {error.message}", markup=False)
                if error.approvals:
                    console.print(f"  [dim]approvals: {escape(', '.join(error.approvals))}[/dim]")

    if summary.datetime:
        console.print(f"[dim]Last updated: {summary.datetime}[/dim]")
