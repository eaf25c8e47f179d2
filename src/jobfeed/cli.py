# src/jobfeed/cli.py
"""
Command-line interface for the job feed.

This module provides CLI commands to:
- List cached jobs with filters and paging
- Pick a few random featured jobs
- Show one job by id
- Search job titles (optionally fuzzy)
- List research-opportunity (REU) sites
"""

from dotenv import load_dotenv
load_dotenv()  # picks up a .env file in the project root

import asyncio
import json
from typing import Awaitable, Callable, List, Optional, TypeVar

import typer

from jobfeed.cache import JobDataCache
from jobfeed.clients.listing import ListingClient
from jobfeed.config import Settings
from jobfeed.errors import JobFeedError, NotFoundError
from jobfeed.logging_config import configure_logging
from jobfeed.pipeline.filter import JobFilters, filter_jobs, filter_sites, paginate, search_titles

T = TypeVar("T")

# Typer app instance for CLI commands
app = typer.Typer(help="Job feed: cached job listings from the listing gateway")


def build_client(settings: Settings) -> ListingClient:
    return ListingClient(
        settings.listing_url,
        sites_url=settings.sites_url,
        timeout=settings.http_timeout,
        retries=settings.http_retries,
    )


def _run(action: Callable[[ListingClient, JobDataCache], Awaitable[T]]) -> T:
    """
    Load settings, open a client, hand it and a fresh cache to `action`.
    Known failures become a message on stderr and exit code 1.
    """
    try:
        settings = Settings()
    except ValueError as e:
        typer.echo(f"Bad configuration: {e}", err=True)
        raise typer.Exit(code=1)
    configure_logging(settings.log_level)

    async def main() -> T:
        async with build_client(settings) as client:
            cache = JobDataCache(client, ttl=settings.cache_ttl, fetch_timeout=settings.fetch_timeout)
            return await action(client, cache)

    try:
        return asyncio.run(main())
    except NotFoundError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    except JobFeedError as e:
        typer.echo(f"Fetching jobs failed: {e}", err=True)
        raise typer.Exit(code=1)


def _echo_json(data) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


@app.command("list")
def list_jobs(
    refresh: bool = typer.Option(False, "--refresh", help="Ignore the cache and refetch"),
    page: int = typer.Option(1, "--page", min=1, help="1-based page number"),
    per_page: int = typer.Option(10, "--per-page", min=1, help="Jobs per page"),
    company: str = typer.Option("", "--company", help="Company name contains"),
    location: Optional[List[str]] = typer.Option(None, "--location", help="Location contains (repeatable)"),
    work_type: str = typer.Option("", "--work-type", help="e.g. Full-time"),
    experience: str = typer.Option("", "--experience", help="e.g. Entry level"),
    min_salary: Optional[float] = typer.Option(None, "--min-salary"),
    max_salary: Optional[float] = typer.Option(None, "--max-salary"),
):
    """
    Fetch jobs → filter → print one page as JSON.
    """
    filters: JobFilters = {
        "locations": list(location or []),
        "company": company,
        "work_type": work_type,
        "experience_level": experience,
    }
    if min_salary is not None:
        filters["min_salary"] = min_salary
    if max_salary is not None:
        filters["max_salary"] = max_salary

    jobs = _run(lambda client, cache: cache.fetch_all_jobs(force_refresh=refresh))
    matched = filter_jobs(jobs, filters)
    items, total_pages = paginate(matched, page, per_page)
    _echo_json({
        "total": len(matched),
        "page": page,
        "total_pages": total_pages,
        "jobs": items,
    })


@app.command()
def featured(count: int = typer.Option(3, "--count", help="How many random jobs")):
    """
    Print a few random jobs. Prints an empty list if the gateway is down.
    """
    _echo_json(_run(lambda client, cache: cache.get_featured_jobs(count)))


@app.command()
def show(
    job_id: str,
    refresh: bool = typer.Option(False, "--refresh", help="Skip the cache and ask the gateway"),
):
    """
    Print one job by id.
    """
    _echo_json(_run(lambda client, cache: cache.fetch_job_details(job_id, force_refresh=refresh)))


@app.command()
def search(
    query: str,
    fuzzy: Optional[int] = typer.Option(
        None, "--fuzzy", min=0, max=100, help="Also match titles with a RapidFuzz score >= this"
    ),
):
    """
    Search job titles (case-insensitive substring; --fuzzy tolerates typos).
    """
    jobs = _run(lambda client, cache: cache.fetch_all_jobs())
    hits = search_titles(jobs, query, fuzzy_threshold=fuzzy)
    _echo_json({"query": query, "total": len(hits), "jobs": hits})


@app.command()
def sites(
    query: str = typer.Option("", "--query", help="Title contains"),
    state: Optional[List[str]] = typer.Option(None, "--state", help="State/territory contains (repeatable)"),
    institution: str = typer.Option("", "--institution", help="Institution name contains"),
    discipline: str = typer.Option("", "--discipline", help="Research area contains"),
    page: int = typer.Option(1, "--page", min=1, help="1-based page number"),
    per_page: int = typer.Option(10, "--per-page", min=1, help="Sites per page"),
):
    """
    Fetch research-opportunity sites → filter → print one page as JSON.
    """
    all_sites = _run(lambda client, cache: client.fetch_sites())
    matched = filter_sites(all_sites, states=state, institution=institution, discipline=discipline)
    matched = search_titles(matched, query)
    items, total_pages = paginate(matched, page, per_page)
    _echo_json({
        "total": len(matched),
        "page": page,
        "total_pages": total_pages,
        "sites": items,
    })


if __name__ == "__main__":
    app()
