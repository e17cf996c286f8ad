"""CLI: gitboss repo stats|contributors|activity|prs|analyze-pr|timeline|contributor"""

import json
from datetime import date, datetime
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from gitboss_ai.repositories import TIME_RANGES
from gitboss_ai.utils.dates import iso_week, week_bounds

console = Console()
ISO_DATE = click.DateTime(formats=["%Y-%m-%d"])


def _get_client():
    from gitboss_ai.cli.main import _get_client
    return _get_client()


def _run(coro):
    from gitboss_ai.cli.main import _run
    return _run(coro)


def _echo_json(models) -> None:
    if isinstance(models, list):
        click.echo(json.dumps([m.model_dump() for m in models], indent=2))
    else:
        click.echo(json.dumps(models.model_dump(), indent=2))


@click.group()
def repo():
    """Repository analytics."""


@repo.command("stats")
@click.argument("owner")
@click.argument("name")
@click.option("--range", "time_range", type=click.Choice(TIME_RANGES), default="month", show_default=True)
@click.option("--json-output", "--json", is_flag=True)
def repo_stats(owner, name, time_range, json_output):
    """Commit, PR, issue and review counts."""

    async def _stats():
        client = _get_client()
        try:
            stats = await client.repos.monthly_stats(owner, name, time_range)
        finally:
            await client.close()
        if json_output:
            _echo_json(stats)
            return
        table = Table(title=f"{owner}/{name} ({time_range})")
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right")
        table.add_column("Change", justify="right")
        for metric in (stats.commits, stats.prs, stats.issues, stats.reviews):
            table.add_row(metric.metric, str(metric.count), metric.change)
        console.print(table)

    _run(_stats())


@repo.command("contributors")
@click.argument("owner")
@click.argument("name")
@click.option("--range", "time_range", type=click.Choice(TIME_RANGES), default=None,
              help="Show commit/PR/review stats for a period instead of all-time contributions")
@click.option("--json-output", "--json", is_flag=True)
def repo_contributors(owner, name, time_range, json_output):
    """List contributors."""

    async def _contributors():
        client = _get_client()
        try:
            if time_range:
                rows = await client.repos.top_contributors(owner, name, time_range)
            else:
                rows = await client.repos.contributors(owner, name)
        finally:
            await client.close()
        if json_output:
            _echo_json(rows)
            return
        table = Table(title=f"Contributors of {owner}/{name}")
        table.add_column("Username", style="bold")
        if time_range:
            table.add_column("Commits", justify="right")
            table.add_column("PRs", justify="right")
            table.add_column("Reviews", justify="right")
            for c in rows:
                table.add_row(c.username, str(c.commits), str(c.prs), str(c.reviews))
        else:
            table.add_column("Contributions", justify="right")
            table.add_column("Profile")
            for c in rows:
                table.add_row(c.username, str(c.contributions), c.profile_url)
        console.print(table)

    _run(_contributors())


@repo.command("activity")
@click.argument("owner")
@click.argument("name")
@click.option("--json-output", "--json", is_flag=True)
def repo_activity(owner, name, json_output):
    """Latest commits, PRs and reviews."""

    async def _activity():
        client = _get_client()
        try:
            items = await client.repos.recent_activity(owner, name)
        finally:
            await client.close()
        if json_output:
            _echo_json(items)
            return
        for item in items:
            console.print(f"[dim]{item.timestamp}[/dim] [bold]{item.type}[/bold] {item.username}: {item.message}")

    _run(_activity())


@repo.command("prs")
@click.argument("owner")
@click.argument("name")
@click.option("--state", default="all", show_default=True)
@click.option("--start", "start_date", type=ISO_DATE, default=None, help="YYYY-MM-DD")
@click.option("--end", "end_date", type=ISO_DATE, default=None, help="YYYY-MM-DD")
@click.option("--json-output", "--json", is_flag=True)
def repo_prs(owner, name, state, start_date: Optional[datetime], end_date: Optional[datetime], json_output):
    """List pull requests."""
    start = start_date.date().isoformat() if start_date else None
    end = end_date.date().isoformat() if end_date else None

    async def _prs():
        client = _get_client()
        try:
            prs = await client.repos.pull_requests(owner, name, start, end, state)
        finally:
            await client.close()
        if json_output:
            _echo_json(prs)
            return
        table = Table(title=f"Pull requests ({len(prs)})")
        table.add_column("#", justify="right", style="bold")
        table.add_column("State")
        table.add_column("Title")
        table.add_column("Created")
        for pr in prs:
            table.add_row(str(pr.number), pr.state, pr.title, pr.created_at)
        console.print(table)

    _run(_prs())


@repo.command("analyze-pr")
@click.argument("owner")
@click.argument("name")
@click.argument("number", type=int)
def repo_analyze_pr(owner, name, number):
    """AI summary of a pull request."""

    async def _analyze():
        client = _get_client()
        try:
            with console.status(f"Analyzing PR #{number}..."):
                analysis = await client.repos.analyze_pull_request(number, owner, name)
        finally:
            await client.close()
        console.print("[bold]Summary[/bold]")
        console.print(analysis.prSummary)
        console.print("\n[bold]Contribution[/bold]")
        console.print(analysis.contributionAnalysis)
        if analysis.linkedIssuesSummary:
            console.print("\n[bold]Linked issues[/bold]")
            console.print(analysis.linkedIssuesSummary)
        console.print("\n[bold]Discussion[/bold]")
        console.print(analysis.discussionSummary)

    _run(_analyze())


@repo.command("timeline")
@click.argument("owner")
@click.argument("name")
@click.option("--range", "time_range", type=click.Choice(TIME_RANGES), default="month", show_default=True)
def repo_timeline(owner, name, time_range):
    """Team activity per period."""

    async def _timeline():
        client = _get_client()
        try:
            entries = await client.repos.team_activity(owner, name, time_range)
        finally:
            await client.close()
        table = Table(title=f"Team activity ({time_range})")
        table.add_column("Period", style="bold")
        table.add_column("Commits", justify="right")
        table.add_column("PRs", justify="right")
        table.add_column("Reviews", justify="right")
        for e in entries:
            table.add_row(e.label, str(e.commits), str(e.prs), str(e.reviews))
        console.print(table)

    _run(_timeline())


@repo.command("contributor")
@click.argument("owner")
@click.argument("name")
@click.argument("username")
@click.option("--start", "start_date", type=ISO_DATE, default=None, help="YYYY-MM-DD (default: Monday of this ISO week)")
@click.option("--end", "end_date", type=ISO_DATE, default=None, help="YYYY-MM-DD (default: Sunday of this ISO week)")
@click.option("--json-output", "--json", is_flag=True)
def repo_contributor(owner, name, username, start_date, end_date, json_output):
    """One contributor's commits, PRs, reviews and issues."""
    monday, sunday = week_bounds(date.today())
    first = start_date.date() if start_date else monday
    start = first.isoformat()
    end = (end_date.date() if end_date else sunday).isoformat()

    async def _contributor():
        client = _get_client()
        try:
            activity = await client.repos.contributor_activity(owner, name, username, start, end)
        finally:
            await client.close()
        if json_output:
            _echo_json(activity)
            return
        label = iso_week(first)
        console.print(f"[bold]{username}[/bold] in {owner}/{name}, {start} to {end} ({label})")
        console.print(f"  Commits: {activity.total_commits} ({activity.total_lines_changed} lines changed)")
        console.print(f"  PRs authored: {len(activity.authored_prs)}")
        console.print(f"  PRs reviewed: {len(activity.reviews_and_review_comments)}")
        console.print(f"  Issues opened: {len(activity.created_issues)}, closed: {len(activity.closed_issues_by_user)}")

    _run(_contributor())
