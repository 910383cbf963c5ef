"""Tests for the concurrent batch updater."""

from __future__ import annotations

import asyncio

import pytest

from repoconform.conformance import (
    BatchUpdater,
    BatchUpdateResult,
    RepositoryUpdateOutcome,
    evaluate,
    update_repositories,
)
from repoconform.github import GitHubAPIError, GitHubTransportError
from repoconform.observability import ErrorCategory
from repoconform.preferences import PreferenceSet
from tests.helpers.github_fakes import (
    FakeRepositoryClient,
    make_snapshot,
    make_snapshots,
)

_PREFERENCES = PreferenceSet(has_wiki_enabled=False, squash_merge_allowed=True)


@pytest.mark.asyncio
async def test_failure_for_one_repository_does_not_affect_others() -> None:
    """A failed write is reported without stopping its siblings."""
    repositories = [
        make_snapshot("a", "A"),
        make_snapshot("b", "B"),
        make_snapshot("c", "C"),
    ]
    forbidden = GitHubAPIError.http_error(403, message="Must have admin rights")
    client = FakeRepositoryClient(repositories, failures={"B": forbidden})

    result = await update_repositories(client, "octocat", repositories, _PREFERENCES)

    assert [outcome.name for outcome in result.outcomes] == ["A", "B", "C"]
    assert [outcome.succeeded for outcome in result.outcomes] == [True, False, True]
    failed = result.failed[0]
    assert failed.category is ErrorCategory.FORBIDDEN
    assert "Must have admin rights" in (failed.error or "")
    assert result.failed_names == ("B",)
    assert not result.all_succeeded
    assert sorted(name for _, name, _ in client.updates) == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_writes_only_enforced_settings() -> None:
    """The payload never coerces unenforced settings to false."""
    client = FakeRepositoryClient([make_snapshot("a", "A")])
    await update_repositories(
        client, "octocat", [make_snapshot("a", "A")], _PREFERENCES
    )
    assert client.updates == [
        ("octocat", "A", {"has_wiki": False, "allow_squash_merge": True})
    ]


@pytest.mark.asyncio
async def test_empty_preferences_send_no_requests() -> None:
    """With nothing enforced the batch is empty."""
    client = FakeRepositoryClient([make_snapshot("a", "A")])
    result = await update_repositories(
        client, "octocat", [make_snapshot("a", "A")], PreferenceSet()
    )
    assert result == BatchUpdateResult(outcomes=())
    assert client.updates == []


@pytest.mark.asyncio
async def test_update_then_evaluate_is_conforming() -> None:
    """After a successful update the repository no longer differs."""
    repositories = [make_snapshot("a", "A", squash_merge_allowed=False)]
    client = FakeRepositoryClient(repositories)
    flagged = evaluate(client.repositories, _PREFERENCES)
    assert len(flagged) == 1

    result = await update_repositories(client, "octocat", flagged, _PREFERENCES)

    assert result.all_succeeded
    assert evaluate(client.repositories, _PREFERENCES) == ()


@pytest.mark.asyncio
async def test_concurrency_is_bounded() -> None:
    """No more than max_concurrency writes are in flight at once."""
    repositories = make_snapshots(12)
    client = FakeRepositoryClient(repositories, write_delay=0.01)
    updater = BatchUpdater(client, "octocat", max_concurrency=3)

    result = await updater.update(repositories, _PREFERENCES)

    assert len(result.succeeded) == 12
    assert client.max_in_flight == 3


@pytest.mark.asyncio
async def test_rate_limits_and_transport_errors_are_per_repository() -> None:
    """Rate limits and transport failures are recorded, not raised."""
    repositories = [make_snapshot("a", "A"), make_snapshot("b", "B")]
    client = FakeRepositoryClient(
        repositories,
        failures={
            "A": GitHubAPIError.http_error(429, rate_limited=True),
            "B": GitHubTransportError("GitHub request failed: ReadTimeout"),
        },
    )
    result = await update_repositories(client, "octocat", repositories, _PREFERENCES)
    assert [outcome.category for outcome in result.outcomes] == [
        ErrorCategory.RATE_LIMITED,
        ErrorCategory.TRANSPORT,
    ]


@pytest.mark.asyncio
async def test_cancellation_is_not_swallowed() -> None:
    """Cancelling the batch propagates instead of becoming an outcome."""
    client = FakeRepositoryClient(make_snapshots(2), write_delay=10)
    task = asyncio.create_task(
        update_repositories(client, "octocat", make_snapshots(2), _PREFERENCES)
    )
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


def test_max_concurrency_must_be_positive() -> None:
    """A zero concurrency bound is rejected."""
    with pytest.raises(ValueError, match="positive"):
        BatchUpdater(FakeRepositoryClient(), "octocat", max_concurrency=0)


def test_outcome_failure_falls_back_to_exception_type() -> None:
    """Exceptions without a message are described by their type."""
    outcome = RepositoryUpdateOutcome.failure("A", RuntimeError())
    assert outcome.error == "RuntimeError"
    assert outcome.category is ErrorCategory.UNKNOWN
