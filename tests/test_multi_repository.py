import asyncio
import pytest
from unittest.mock import Mock, AsyncMock
from datetime import datetime, timedelta, timezone

from analyzers.multi_repository import StaleReportAggregator
from analyzers.models import StaleReport
from miners.base import FetchError
from miners.models import PullRequestSummary, RepositoryReference

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
THRESHOLD = timedelta(hours=48)


def make_pr(repo: str, number: int, age_hours: int, url=True) -> PullRequestSummary:
    return PullRequestSummary(
        id=number,
        created_at=NOW - timedelta(hours=age_hours),
        url=f"https://github.com/{repo}/pull/{number}" if url else None,
        repository=repo,
    )


@pytest.fixture
def repo_a():
    return RepositoryReference.parse("test/repo1")


@pytest.fixture
def repo_b():
    return RepositoryReference.parse("test/repo2")


@pytest.fixture
def mock_source():
    """Mock pull request source."""
    source = Mock()
    source.list_open_pull_requests = AsyncMock()
    source.list_open_pull_requests.return_value = []
    return source


@pytest.mark.asyncio
async def test_run_collects_stale_urls_in_repository_order(
    mock_source, repo_a, repo_b
):
    """Test that all of A's stale URLs precede B's, in source order."""
    mock_source.list_open_pull_requests.side_effect = [
        [
            make_pr("test/repo1", 7, 100),
            make_pr("test/repo1", 3, 1),
            make_pr("test/repo1", 2, 60),
        ],
        [make_pr("test/repo2", 1, 72)],
    ]

    aggregator = StaleReportAggregator(mock_source, THRESHOLD)
    report = await aggregator.run([repo_a, repo_b], now=NOW)

    assert report.stale_urls == [
        "https://github.com/test/repo1/pull/7",
        "https://github.com/test/repo1/pull/2",
        "https://github.com/test/repo2/pull/1",
    ]
    assert report.stale_count == 3
    assert report.failed_repositories == []
    assert mock_source.list_open_pull_requests.call_count == 2


@pytest.mark.asyncio
async def test_run_tolerates_failing_repository(mock_source, repo_a, repo_b):
    """Test that one failing repository doesn't prevent the others from reporting."""
    mock_source.list_open_pull_requests.side_effect = [
        FetchError(repo_a, Exception("Bad credentials")),
        [make_pr("test/repo2", 5, 49)],
    ]

    aggregator = StaleReportAggregator(mock_source, THRESHOLD)
    report = await aggregator.run([repo_a, repo_b], now=NOW)

    assert report.stale_count == 1
    assert report.stale_urls == ["https://github.com/test/repo2/pull/5"]
    assert report.failed_repositories == ["test/repo1"]


@pytest.mark.asyncio
async def test_run_all_repositories_failing(mock_source, repo_a, repo_b):
    mock_source.list_open_pull_requests.side_effect = [
        FetchError(repo_a, Exception("boom")),
        FetchError(repo_b, Exception("boom")),
    ]

    aggregator = StaleReportAggregator(mock_source, THRESHOLD)
    report = await aggregator.run([repo_a, repo_b], now=NOW)

    assert report.stale_count == 0
    assert report.stale_urls == []
    assert report.failed_repositories == ["test/repo1", "test/repo2"]


@pytest.mark.asyncio
async def test_run_with_no_repositories(mock_source):
    aggregator = StaleReportAggregator(mock_source, THRESHOLD)
    report = await aggregator.run([], now=NOW)

    assert report.stale_count == 0
    assert report.stale_urls == []
    assert report.representative_url is None
    mock_source.list_open_pull_requests.assert_not_called()


@pytest.mark.asyncio
async def test_run_skips_pull_requests_without_url(mock_source, repo_a):
    mock_source.list_open_pull_requests.return_value = [
        make_pr("test/repo1", 1, 100, url=False),
        make_pr("test/repo1", 2, 100),
    ]

    aggregator = StaleReportAggregator(mock_source, THRESHOLD)
    report = await aggregator.run([repo_a], now=NOW)

    assert report.stale_urls == ["https://github.com/test/repo1/pull/2"]
    assert report.stale_count == 1


@pytest.mark.asyncio
async def test_run_preserves_order_when_queries_finish_out_of_order(repo_a, repo_b):
    """Test that concurrent queries are merged back in watch-list order."""
    repo_c = RepositoryReference.parse("test/repo3")
    delays = {"test/repo1": 0.05, "test/repo2": 0.0, "test/repo3": 0.02}

    async def list_open_pull_requests(ref):
        await asyncio.sleep(delays[ref.full_name])
        return [make_pr(ref.full_name, 1, 100), make_pr(ref.full_name, 2, 100)]

    source = Mock()
    source.list_open_pull_requests = list_open_pull_requests

    aggregator = StaleReportAggregator(source, THRESHOLD, max_workers=3)
    report = await aggregator.run([repo_a, repo_b, repo_c], now=NOW)

    assert report.stale_urls == [
        f"https://github.com/test/repo{repo}/pull/{number}"
        for repo in (1, 2, 3)
        for number in (1, 2)
    ]


@pytest.mark.asyncio
async def test_run_respects_max_workers():
    refs = [RepositoryReference.parse(f"test/repo{i}") for i in range(6)]
    in_flight = 0
    peak = 0

    async def list_open_pull_requests(ref):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return []

    source = Mock()
    source.list_open_pull_requests = list_open_pull_requests

    aggregator = StaleReportAggregator(source, THRESHOLD, max_workers=2)
    await aggregator.run(refs, now=NOW)

    assert peak == 2


@pytest.mark.asyncio
async def test_run_defaults_now_to_current_time(mock_source, repo_a):
    mock_source.list_open_pull_requests.return_value = [
        PullRequestSummary(
            id=1,
            created_at=datetime.now(timezone.utc) - timedelta(days=10),
            url="https://github.com/test/repo1/pull/1",
        ),
        PullRequestSummary(
            id=2,
            created_at=datetime.now(timezone.utc),
            url="https://github.com/test/repo1/pull/2",
        ),
    ]

    aggregator = StaleReportAggregator(mock_source)
    report = await aggregator.run([repo_a])

    assert report.stale_urls == ["https://github.com/test/repo1/pull/1"]


def test_invalid_max_workers(mock_source):
    with pytest.raises(ValueError):
        StaleReportAggregator(mock_source, THRESHOLD, max_workers=0)


def test_report_count_must_match_urls():
    with pytest.raises(ValueError):
        StaleReport(stale_count=2, stale_urls=["https://github.com/o/r/pull/1"])


def test_report_representative_url():
    report = StaleReport(
        stale_count=2,
        stale_urls=["https://github.com/o/r/pull/1", "https://github.com/o/r/pull/2"],
    )

    assert report.representative_url == "https://github.com/o/r/pull/1"
    assert not report.is_empty


@pytest.mark.asyncio
async def test_run_tolerates_unexpected_errors(mock_source, repo_a, repo_b):
    """Test that an error other than FetchError only skips its repository."""
    mock_source.list_open_pull_requests.side_effect = [
        RuntimeError("unexpected"),
        [make_pr("test/repo2", 1, 100)],
    ]

    aggregator = StaleReportAggregator(mock_source, THRESHOLD)
    report = await aggregator.run([repo_a, repo_b], now=NOW)

    assert report.stale_urls == ["https://github.com/test/repo2/pull/1"]
    assert report.stale_count == 1
    assert report.failed_repositories == ["test/repo1"]
