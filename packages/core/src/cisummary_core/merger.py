"""Upsert one job's result into a Summary."""

from __future__ import annotations

from dataclasses import replace

from cisummary_core.models import JobResult, Summary, SummaryItem


def item_from_job(job: JobResult) -> SummaryItem:
    return SummaryItem(
        name=job.name,
        required=job.required,
        status=job.status,
        reference=job.url or None,
        errors=list(job.errors) if job.errors else None,
    )


def merge_job(summary: Summary, job: JobResult) -> Summary:
    """Return a new Summary with ``job`` replacing the item of the same name.

    An existing item keeps its position; a new one is appended. The datetime
    is carried over untouched: the caller stamps a fresh one when rendering.
    """
    new_item = item_from_job(job)
    items = list(summary.items)
    for index, item in enumerate(items):
        if item.name == job.name:
            items[index] = new_item
            break
    else:
        items.append(new_item)
    return replace(summary, items=items)
