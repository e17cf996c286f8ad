"""
Repository analytics resources returned by the GitBoss REST API.
"""

from typing import Literal, Optional

from pydantic import BaseModel

TimeRange = Literal["week", "month", "quarter"]


class RepoStatMetric(BaseModel):
    metric: str
    count: int
    change: str  # e.g. "+12.5%"


class RepoStatsResponse(BaseModel):
    commits: RepoStatMetric
    prs: RepoStatMetric
    issues: RepoStatMetric
    reviews: RepoStatMetric


class ContributorStats(BaseModel):
    username: str
    commits: int
    prs: int
    reviews: int


class TimelineEntry(BaseModel):
    label: str
    commits: int
    prs: int
    reviews: int


class RecentActivityItem(BaseModel):
    url: str
    type: Literal["commit", "pr", "review"]
    username: str
    message: str
    timestamp: str


class PRAnalysisResponse(BaseModel):
    prSummary: str
    contributionAnalysis: str
    linkedIssuesSummary: Optional[str] = None
    discussionSummary: str


class PRListItem(BaseModel):
    number: int
    title: str
    state: str
    url: str
    created_at: str


class ContributorListItem(BaseModel):
    username: str
    contributions: int
    avatar_url: Optional[str] = None
    profile_url: str


class CommitInfo(BaseModel):
    sha: str
    message: str
    html_url: str
    date: str
    additions: Optional[int] = None
    deletions: Optional[int] = None
    changed_files: Optional[list[str]] = None


class PRInfo(BaseModel):
    number: int
    title: str
    description: Optional[str] = None
    state: str
    html_url: str
    created_at: str
    closed_at: Optional[str] = None
    merged_at: Optional[str] = None


class PRActivityDetail(BaseModel):
    type: str  # "review" | "review_comment"
    state: Optional[str] = None
    body: Optional[str] = None
    submitted_at: Optional[str] = None
    created_at: Optional[str] = None
    html_url: str
    path: Optional[str] = None
    line: Optional[int] = None


class PRWithReviewActivity(BaseModel):
    pr_number: int
    pr_title: str
    pr_html_url: str
    pr_description: Optional[str] = None
    activities: list[PRActivityDetail] = []


class GeneralPRComment(BaseModel):
    body: str
    created_at: str
    html_url: str


class PRWithGeneralComments(BaseModel):
    pr_number: int
    pr_title: str
    pr_html_url: str
    pr_description: Optional[str] = None
    comments: list[GeneralPRComment] = []


class IssueInfo(BaseModel):
    number: int
    title: str
    description: Optional[str] = None
    state: str
    html_url: str
    created_at: str
    closed_at: Optional[str] = None
    updated_at: Optional[str] = None


class ContributorActivityResponse(BaseModel):
    total_commits: int
    commits: list[CommitInfo] = []
    total_lines_changed: int
    unique_files_changed_in_commits: list[str] = []
    authored_prs: list[PRInfo] = []
    assigned_prs: list[PRInfo] = []
    reviews_and_review_comments: list[PRWithReviewActivity] = []
    general_pr_comments: list[PRWithGeneralComments] = []
    created_issues: list[IssueInfo] = []
    assigned_issues: list[IssueInfo] = []
    closed_issues_by_user: list[IssueInfo] = []
