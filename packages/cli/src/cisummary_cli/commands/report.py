"""report command: initialize the summary comment or merge one job into it.

The two modes are mutually exclusive:

  initialize  --init-json-file-path initial-state.json
  update      --name build --required true --status success --html-url <run url> [--errors '<json>']

Every option also reads the matching GitHub Action input from the
environment (INPUT_NAME, INPUT_HTML-URL, ...) so the command runs unchanged
as an action step.
"""

from __future__ import annotations

from dataclasses import dataclass

import click
from github import GithubException
from rich.console import Console

from cisummary_core.coordinator import UpdateCoordinator, initialize_summary
from cisummary_core.errors import CISummaryError, ConfigurationError
from cisummary_core.gh.comments import get_issue, get_repo
from cisummary_core.loader import coerce_bool, job_from_inputs, load_initial_summary
from cisummary_core.models import JobResult, Summary
from cisummary_store.base import VersionedTextResource
from cisummary_store.github import PullRequestCommentResource
from cisummary_store.memory import InMemoryResource

console = Console()


@dataclass
class ReportInputs:
    init_json_file_path: str | None
    name: str | None
    required: str | None
    status: str | None
    html_url: str | None
    errors: str | None

    def workflow_inputs(self) -> dict[str, str | None]:
        return {
            "name": self.name,
            "required": self.required,
            "status": self.status,
            "html-url": self.html_url,
            "errors": self.errors,
        }


def _provided(value: str | None) -> bool:
    # Actions exposes inputs that were not set as empty strings.
    return value is not None and value.strip() != ""


def _conflicts_with_init(key: str, value: str | None) -> bool:
    if not _provided(value):
        return False
    if key == "required":
        # Workflows often pass required through unconditionally; only true counts.
        try:
            return coerce_bool(value)
        except ConfigurationError:
            return True
    return True


def validate_inputs(inputs: ReportInputs) -> Summary | JobResult:
    """Check the mode rules and convert inputs to typed models.

    Returns the initial Summary in initialize mode, the JobResult in update
    mode. Raises ConfigurationError for any violation.
    """
    workflow = inputs.workflow_inputs()

    if _provided(inputs.init_json_file_path):
        conflicting = [key for key, value in workflow.items() if _conflicts_with_init(key, value)]
        if conflicting:
            raise ConfigurationError(
                "When providing init-json-file-path, do not provide any workflow-related inputs "
                f"(got: {', '.join(conflicting)})"
            )
        return load_initial_summary(inputs.init_json_file_path)

    missing = [key for key in ("name", "status", "html-url") if not _provided(workflow[key])]
    if missing:
        raise ConfigurationError(f"Missing required workflow inputs: {', '.join(missing)}")

    return job_from_inputs(
        name=inputs.name,
        required=inputs.required or "false",
        status=inputs.status,
        url=inputs.html_url,
        errors=inputs.errors,
    )


def _github_resource(config: dict, repo: str, pr_number: int) -> PullRequestCommentResource:
    issue = get_issue(get_repo(repo, token=config["github_token"]), pr_number)
    return PullRequestCommentResource(issue)


@click.command("report")
@click.option(
    "--init-json-file-path",
    default=None,
    envvar="INPUT_INIT-JSON-FILE-PATH",
    help="Initialize mode: JSON file with the initial items.",
)
@click.option("--name", default=None, envvar="INPUT_NAME", help="Update mode: job name (the item key).")
@click.option(
    "--required",
    default=None,
    envvar="INPUT_REQUIRED",
    help="Update mode: 'true' to list the job under Required.",
)
@click.option(
    "--status",
    default=None,
    envvar="INPUT_STATUS",
    help="Update mode: success, failure, cancelled, skipped, pending or unknown.",
)
@click.option("--html-url", default=None, envvar="INPUT_HTML-URL", help="Update mode: link to the job run.")
@click.option(
    "--errors",
    default=None,
    envvar="INPUT_ERRORS",
    help="Update mode: JSON array of error objects reported by the job.",
)
@click.option(
    "--repo",
    default=None,
    envvar="GITHUB_REPOSITORY",
    help="GitHub repository in owner/name format.",
)
@click.option(
    "--pr",
    "pr_number",
    type=int,
    default=None,
    envvar="INPUT_PULL-REQUEST",
    help="Pull request number. Defaults to the triggering pull_request event.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print the comment body that would be written instead of writing it.",
)
@click.pass_context
def report_cmd(
    ctx,
    init_json_file_path: str | None,
    name: str | None,
    required: str | None,
    status: str | None,
    html_url: str | None,
    errors: str | None,
    repo: str | None,
    pr_number: int | None,
    dry_run: bool,
):
    """Create or update the CI summary comment on a pull request."""
    from cisummary_cli.actions_env import resolve_pull_request_number

    config = ctx.obj["config"]
    inputs = ReportInputs(init_json_file_path, name, required, status, html_url, errors)

    # Validate every input before touching the network.
    try:
        parsed = validate_inputs(inputs)
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    repo = repo or config.get("repository")
    if pr_number is None:
        pr_number = resolve_pull_request_number()

    try:
        if isinstance(parsed, Summary):
            _initialize(config, parsed, repo, pr_number, dry_run)
        else:
            _update(config, parsed, repo, pr_number, dry_run)
    except CISummaryError as e:
        raise click.ClickException(f"Action failed with error: {e}")
    except GithubException as e:
        raise click.ClickException(f"Action failed with error: GitHub API returned {e.status}: {e.data}")


def _require_target(config: dict, repo: str | None) -> None:
    if not repo:
        raise click.UsageError("No repository given. Pass --repo or set GITHUB_REPOSITORY.")
    if not config.get("github_token"):
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN, pass --token, or run `gh auth login` first."
        )


def _initialize(config: dict, summary: Summary, repo: str | None, pr_number: int | None, dry_run: bool) -> None:
    if dry_run:
        resource = InMemoryResource()
        body = initialize_summary(resource, summary, title=config["title"])
        console.print(body, markup=False, highlight=False, soft_wrap=True)
        return

    if pr_number is None:
        console.print("[yellow]Not running for a pull request. Nothing to do.[/yellow]")
        return
    _require_target(config, repo)

    resource = _github_resource(config, repo, pr_number)
    initialize_summary(resource, summary, title=config["title"])
    console.print(f"[green]Initialized CI Summary on {repo}#{pr_number} with {len(summary.items)} item(s).[/green]")


def _update(config: dict, job: JobResult, repo: str | None, pr_number: int | None, dry_run: bool) -> None:
    if pr_number is None:
        console.print("[yellow]Not running for a pull request. Nothing to do.[/yellow]")
        return
    _require_target(config, repo)

    resource: VersionedTextResource = _github_resource(config, repo, pr_number)
    if dry_run:
        # Read the live comment once, then run the protocol against a copy.
        resource = InMemoryResource(body=resource.read().body)

    coordinator = UpdateCoordinator(
        resource,
        max_attempts=config["max_attempts"],
        retry_delay=config["retry_delay"],
        max_jitter=0.0 if dry_run else config["max_jitter"],
        title=config["title"],
    )
    result = coordinator.run(job)

    if dry_run:
        console.print(result.body, markup=False, highlight=False, soft_wrap=True)
        return
    console.print(
        f"[green]Updated {job.name} ({job.status.value}) in the CI Summary on {repo}#{pr_number} "
        f"after {result.attempts} attempt(s).[/green]"
    )
