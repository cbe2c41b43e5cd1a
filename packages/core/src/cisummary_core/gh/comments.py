from __future__ import annotations

import logging

from github import Github

logger = logging.getLogger(__name__)


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_issue(repo, pr_number: int):
    # Pull request conversation comments live on the issue side of the API.
    return repo.get_issue(pr_number)


def find_comment_by_marker(issue, marker: str):
    """Return the first issue comment whose body contains ``marker``, or None."""
    for comment in issue.get_comments():
        if marker in (comment.body or ""):
            logger.debug("Found marked comment %s on #%s", comment.id, issue.number)
            return comment
    return None


def get_comment_by_id(issue, comment_id: int):
    return issue.get_comment(comment_id)


def create_comment(issue, body: str):
    return issue.create_comment(body)


def update_comment(comment, body: str) -> None:
    comment.edit(body)
