"""Tests for the optimistic-concurrency update protocol."""

from datetime import datetime, timedelta, timezone
from itertools import count
from unittest.mock import MagicMock

import pytest

from cisummary_core.coordinator import UpdateCoordinator, initialize_summary
from cisummary_core.errors import ConcurrentUpdateError, SummaryNotFoundError
from cisummary_core.markup import OPTIONAL_HEADER, REQUIRED_HEADER, SENTINEL_MARKER
from cisummary_core.models import JobResult, Status, Summary, SummaryItem
from cisummary_core.parser import parse_summary
from cisummary_core.render import render_summary
from cisummary_store.base import VersionedTextResource
from cisummary_store.memory import InMemoryResource
from cisummary_store.models import Snapshot

INITIAL = render_summary(
    Summary(
        items=[
            SummaryItem(name="build", required=True, status=Status.PENDING),
            SummaryItem(name="lint", required=False, status=Status.PENDING),
        ]
    ),
    timestamp="2025-01-01T00:00:00.000000Z",
)


class _FakeRng:
    def __init__(self, *values):
        self.values = list(values)
        self.calls = []

    def uniform(self, low, high):
        self.calls.append((low, high))
        return self.values.pop(0)


def _ticking_clock(start=datetime(2025, 7, 6, 8, 0, tzinfo=timezone.utc)):
    ticks = count()
    return lambda: start + timedelta(seconds=next(ticks))


def _job(name="build", status=Status.FAILURE, required=True):
    return JobResult(name=name, required=required, status=status, url=f"https://x/{name}")


class TestHappyPath:
    def test_single_attempt(self):
        resource = InMemoryResource(body=INITIAL)
        rng = _FakeRng(7.0)
        sleeps = []
        coordinator = UpdateCoordinator(resource, sleep=sleeps.append, clock=_ticking_clock(), rng=rng)

        result = coordinator.run(_job())

        assert result.attempts == 1
        assert rng.calls == [(0, 30.0)]
        assert sleeps == [7.0]
        assert resource.writes == [result.body]
        summary = parse_summary(resource.body)
        assert summary.get("build").status == Status.FAILURE
        assert summary.get("build").reference == "https://x/build"
        assert summary.get("lint").status == Status.PENDING
        assert summary.datetime == "2025-07-06T08:00:00.000000Z"

    def test_written_body_is_the_rendered_merge(self):
        resource = InMemoryResource(body=INITIAL)
        coordinator = UpdateCoordinator(resource, max_jitter=0, sleep=lambda s: None, title="Checks")

        result = coordinator.run(_job(name="e2e", status=Status.SUCCESS, required=False))

        assert result.body == render_summary(result.summary, title="Checks")
        assert [i.name for i in result.summary.items] == ["build", "lint", "e2e"]

    def test_zero_jitter_skips_rng(self):
        rng = _FakeRng()
        sleeps = []
        UpdateCoordinator(InMemoryResource(body=INITIAL), max_jitter=0, sleep=sleeps.append, rng=rng).run(_job())
        assert rng.calls == []
        assert sleeps == [0.0]

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            UpdateCoordinator(InMemoryResource(body=INITIAL), max_attempts=0)


class TestMissingSummary:
    def test_not_found_is_not_retried(self):
        resource = InMemoryResource()
        sleeps = []
        with pytest.raises(SummaryNotFoundError, match="init-json-file-path"):
            UpdateCoordinator(resource, sleep=sleeps.append).run(_job())
        assert sleeps == []
        assert resource.writes == []

    def test_comment_without_marker_counts_as_missing(self):
        with pytest.raises(SummaryNotFoundError):
            UpdateCoordinator(InMemoryResource(body="LGTM!"), sleep=lambda s: None).run(_job())


class TestConcurrentWriters:
    def test_loser_retries_from_newer_state(self):
        resource = InMemoryResource(body=INITIAL)
        sleeps = []

        def sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) == 1:
                # Another job commits while this one waits out its jitter.
                other = UpdateCoordinator(
                    resource,
                    max_jitter=0,
                    sleep=lambda s: None,
                    clock=lambda: datetime(2025, 7, 6, 9, 0, tzinfo=timezone.utc),
                )
                other.run(_job(name="lint", status=Status.SUCCESS, required=False))

        coordinator = UpdateCoordinator(resource, sleep=sleep, clock=_ticking_clock(), rng=_FakeRng(1.5, 2.5))
        result = coordinator.run(_job())

        assert result.attempts == 2
        assert sleeps == [1.5, 5.0, 2.5]
        assert len(resource.writes) == 2
        summary = parse_summary(resource.body)
        assert summary.get("build").status == Status.FAILURE
        assert summary.get("lint").status == Status.SUCCESS

    def test_gives_up_after_max_attempts(self):
        resource = MagicMock(spec=VersionedTextResource)
        resource.read.return_value = Snapshot(body=INITIAL, version="2025-01-01T00:00:00.000000Z")
        resource.write_if_version.return_value = False
        sleeps = []
        coordinator = UpdateCoordinator(
            resource,
            max_attempts=3,
            retry_delay=2.0,
            sleep=sleeps.append,
            rng=_FakeRng(0.1, 0.2, 0.3),
        )

        with pytest.raises(ConcurrentUpdateError) as exc_info:
            coordinator.run(_job())

        assert exc_info.value.attempts == 3
        assert "3 attempts" in str(exc_info.value)
        assert sleeps == [0.1, 2.0, 0.2, 4.0, 0.3]
        assert resource.read.call_count == 3

    def test_checks_against_version_read_at_fetch(self):
        resource = MagicMock(spec=VersionedTextResource)
        resource.read.return_value = Snapshot(body=INITIAL, version="v1")
        resource.write_if_version.return_value = True

        UpdateCoordinator(resource, max_jitter=0, sleep=lambda s: None).run(_job())

        body, expected = resource.write_if_version.call_args.args
        assert expected == "v1"
        assert parse_summary(body).datetime != "v1"


class TestInitialize:
    def test_empty_initialize_then_append_then_replace(self):
        resource = InMemoryResource()
        clock = _ticking_clock()

        body = initialize_summary(resource, Summary(), clock=clock)

        assert body.startswith(SENTINEL_MARKER)
        assert f"{REQUIRED_HEADER}\n<ul>\n</ul>" in body
        assert f"{OPTIONAL_HEADER}\n<ul>\n</ul>" in body
        assert parse_summary(body) == Summary(datetime="2025-07-06T08:00:00.000000Z")

        coordinator = UpdateCoordinator(resource, max_jitter=0, sleep=lambda s: None, clock=clock)
        coordinator.run(JobResult(name="build", required=True, status=Status.SUCCESS, url="https://x/1"))

        summary = parse_summary(resource.body)
        assert summary.items == [
            SummaryItem(name="build", required=True, status=Status.SUCCESS, reference="https://x/1")
        ]
        required_at = resource.body.index(REQUIRED_HEADER)
        assert required_at < resource.body.index("✅ <strong>Success</strong>") < resource.body.index(OPTIONAL_HEADER)
        assert '<a href="https://x/1">Ref</a>' in resource.body

        coordinator.run(JobResult(name="build", required=True, status=Status.FAILURE, url="https://x/1"))

        summary = parse_summary(resource.body)
        assert [(i.name, i.status) for i in summary.items] == [("build", Status.FAILURE)]
        assert "✅" not in resource.body
        assert summary.datetime == "2025-07-06T08:00:02.000000Z"

    def test_initialize_then_updates(self):
        resource = InMemoryResource()
        clock = _ticking_clock()
        initial = Summary(
            items=[
                SummaryItem(name="build", required=True, status=Status.PENDING),
                SummaryItem(name="test", required=True, status=Status.PENDING),
                SummaryItem(name="lint", required=False, status=Status.PENDING),
            ]
        )

        initialize_summary(resource, initial, clock=clock)
        coordinator = UpdateCoordinator(resource, max_jitter=0, sleep=lambda s: None, clock=clock)
        coordinator.run(_job(name="build", status=Status.FAILURE))
        coordinator.run(_job(name="test", status=Status.SUCCESS))
        coordinator.run(_job(name="build", status=Status.SUCCESS))

        summary = parse_summary(resource.body)
        assert [(i.name, i.status) for i in summary.items] == [
            ("build", Status.SUCCESS),
            ("test", Status.SUCCESS),
            ("lint", Status.PENDING),
        ]
        assert summary.datetime == "2025-07-06T08:00:03.000000Z"
        assert len(resource.writes) == 4

    def test_initialize_stamps_and_returns_body(self):
        resource = InMemoryResource()
        body = initialize_summary(resource, Summary(), title="Checks", clock=_ticking_clock())
        assert resource.body == body
        assert "<h1>Checks</h1>" in body
        assert parse_summary(body).datetime == "2025-07-06T08:00:00.000000Z"
