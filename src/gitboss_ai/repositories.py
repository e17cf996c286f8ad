"""
Repository analytics REST API.
"""

from typing import Optional

from gitboss_ai.models.repository import (
    ContributorActivityResponse,
    ContributorListItem,
    ContributorStats,
    PRAnalysisResponse,
    PRListItem,
    RecentActivityItem,
    RepoStatsResponse,
    TimelineEntry,
)
from gitboss_ai.transport.http import HttpClient

TIME_RANGES = ("week", "month", "quarter")
RECENT_ACTIVITY_LIMIT = 5


def _check_range(time_range: str) -> None:
    if time_range not in TIME_RANGES:
        raise ValueError(f"time_range must be one of {', '.join(TIME_RANGES)}, got {time_range!r}")


class RepositoryAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def monthly_stats(self, owner: str, repo: str, time_range: str = "month") -> RepoStatsResponse:
        """Commit / PR / issue / review counts with change vs. the previous period."""
        _check_range(time_range)
        data = await self._http.get("/repo/stats", {"owner": owner, "repo": repo, "range": time_range})
        return RepoStatsResponse.model_validate(data)

    async def top_contributors(self, owner: str, repo: str, time_range: str = "month") -> list[ContributorStats]:
        _check_range(time_range)
        data = await self._http.get("/repo/contributor-stats", {"owner": owner, "repo": repo, "range": time_range})
        return [ContributorStats.model_validate(c) for c in data.get("contributors", [])]

    async def team_activity(self, owner: str, repo: str, time_range: str = "month") -> list[TimelineEntry]:
        _check_range(time_range)
        data = await self._http.get("/repo/team-activity", {"owner": owner, "repo": repo, "time_range": time_range})
        return [TimelineEntry.model_validate(t) for t in data.get("timeline", [])]

    async def recent_activity(self, owner: str, repo: str) -> list[RecentActivityItem]:
        data = await self._http.get("/repo/recent-activity", {"owner": owner, "repo": repo})
        items = data.get("activity", [])[:RECENT_ACTIVITY_LIMIT]
        return [RecentActivityItem.model_validate(a) for a in items]

    async def analyze_pull_request(self, pr_number: int, repo_owner: str, repo_name: str) -> PRAnalysisResponse:
        data = await self._http.get("/analyze-pr/", {
            "pr_number": pr_number,
            "repo_owner": repo_owner,
            "repo_name": repo_name,
        })
        return PRAnalysisResponse.model_validate(data)

    async def pull_requests(
        self,
        repo_owner: str,
        repo_name: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        state: str = "all",
    ) -> list[PRListItem]:
        """List PRs; dates are YYYY-MM-DD and optional."""
        data = await self._http.get("/repository-prs/", {
            "repo_owner": repo_owner,
            "repo_name": repo_name,
            "start_date": start_date,
            "end_date": end_date,
            "state": state,
        })
        return [PRListItem.model_validate(p) for p in data]

    async def contributors(self, repo_owner: str, repo_name: str) -> list[ContributorListItem]:
        data = await self._http.get("/repository-contributors/", {"repo_owner": repo_owner, "repo_name": repo_name})
        return [ContributorListItem.model_validate(c) for c in data]

    async def contributor_activity(
        self, repo_owner: str, repo_name: str, username: str, start_date: str, end_date: str,
    ) -> ContributorActivityResponse:
        data = await self._http.get("/contributor-activity/", {
            "repo_owner": repo_owner,
            "repo_name": repo_name,
            "username": username,
            "start_date": start_date,
            "end_date": end_date,
        })
        return ContributorActivityResponse.model_validate(data)
