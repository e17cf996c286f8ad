"""RepositoryAPI against an httpx mock transport."""

import httpx
import pytest

from gitboss_ai.errors import APIError
from gitboss_ai.repositories import RepositoryAPI
from gitboss_ai.transport.http import HttpClient

METRIC = {"metric": "Commits", "count": 42, "change": "+12.5%"}

RESPONSES = {
    "/repo/stats": {"commits": METRIC, "prs": METRIC, "issues": METRIC, "reviews": METRIC},
    "/repo/contributor-stats": {"contributors": [{"username": "octocat", "commits": 9, "prs": 2, "reviews": 4}]},
    "/repo/team-activity": {"timeline": [{"label": "2024-W01", "commits": 3, "prs": 1, "reviews": 0}]},
    "/repo/recent-activity": {"activity": [
        {"url": f"https://github.com/o/r/commit/{i}", "type": "commit", "username": "octocat",
         "message": f"commit {i}", "timestamp": "2024-01-01T00:00:00Z"}
        for i in range(8)
    ]},
    "/analyze-pr/": {"prSummary": "Adds X", "contributionAnalysis": "Solid", "discussionSummary": "None"},
    "/repository-prs/": [{"number": 7, "title": "Fix", "state": "open",
                          "url": "https://github.com/o/r/pull/7", "created_at": "2024-01-02T00:00:00Z"}],
    "/repository-contributors/": [{"username": "octocat", "contributions": 120,
                                   "profile_url": "https://github.com/octocat"}],
    "/contributor-activity/": {"total_commits": 1, "total_lines_changed": 10, "commits": [
        {"sha": "abc", "message": "init", "html_url": "https://github.com/o/r/commit/abc", "date": "2024-01-01"}
    ]},
}


@pytest.fixture
def recorded():
    return []


@pytest.fixture
def repos(recorded):
    def handler(request: httpx.Request) -> httpx.Response:
        recorded.append(request)
        if request.url.params.get("repo") == "missing" or request.url.params.get("repo_name") == "missing":
            return httpx.Response(404, json={"detail": "Repository not found"})
        if request.url.params.get("repo") == "broken":
            return httpx.Response(502, text="Bad gateway")
        return httpx.Response(200, json=RESPONSES[request.url.path])

    return RepositoryAPI(HttpClient("http://api.test", transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_monthly_stats(repos, recorded):
    stats = await repos.monthly_stats("o", "r", time_range="week")
    assert stats.commits.count == 42
    assert dict(recorded[0].url.params) == {"owner": "o", "repo": "r", "range": "week"}


@pytest.mark.asyncio
async def test_invalid_range_rejected_before_request(repos, recorded):
    with pytest.raises(ValueError, match="time_range must be one of week, month, quarter"):
        await repos.monthly_stats("o", "r", "year")
    assert recorded == []


@pytest.mark.asyncio
async def test_top_contributors_and_timeline(repos, recorded):
    contributors = await repos.top_contributors("o", "r", "month")
    timeline = await repos.team_activity("o", "r", "quarter")
    assert contributors[0].username == "octocat"
    assert timeline[0].label == "2024-W01"
    assert recorded[1].url.params["time_range"] == "quarter"


@pytest.mark.asyncio
async def test_recent_activity_limited_to_five(repos):
    items = await repos.recent_activity("o", "r")
    assert [i.message for i in items] == [f"commit {i}" for i in range(5)]


@pytest.mark.asyncio
async def test_pull_requests_skips_missing_dates(repos, recorded):
    prs = await repos.pull_requests("o", "r", start_date="2024-01-01")
    assert prs[0].number == 7
    assert dict(recorded[0].url.params) == {
        "repo_owner": "o", "repo_name": "r", "start_date": "2024-01-01", "state": "all",
    }


@pytest.mark.asyncio
async def test_analyze_and_contributors(repos, recorded):
    analysis = await repos.analyze_pull_request(7, "o", "r")
    assert analysis.linkedIssuesSummary is None
    assert recorded[0].url.params["pr_number"] == "7"
    people = await repos.contributors("o", "r")
    assert people[0].avatar_url is None


@pytest.mark.asyncio
async def test_contributor_activity_defaults(repos):
    activity = await repos.contributor_activity("o", "r", "octocat", "2024-01-01", "2024-01-07")
    assert activity.total_commits == 1
    assert activity.authored_prs == []
    assert activity.commits[0].changed_files is None


@pytest.mark.asyncio
async def test_error_uses_detail(repos):
    with pytest.raises(APIError, match="Repository not found") as exc:
        await repos.contributors("o", "missing")
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_error_without_json_body(repos):
    with pytest.raises(APIError, match="HTTP 502: Bad Gateway"):
        await repos.recent_activity("o", "broken")
