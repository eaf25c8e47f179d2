# src/jobfeed/pipeline/filter.py
from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypedDict
import math

from rapidfuzz import fuzz


class JobFilters(TypedDict, total=False):
    locations: List[str]  # any of these substrings in job["location"]
    company: str
    work_type: str
    experience_level: str
    min_salary: float
    max_salary: float


def _contains(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle.lower() in str(value).lower()


def _as_number(value) -> Optional[float]:
    # the gateway sends salaries as numbers or numeric strings
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _matches(job: Dict, filters: JobFilters) -> bool:
    locations = [loc for loc in filters.get("locations") or [] if loc]
    if locations:
        where = job.get("location") or ""
        if not any(loc in where for loc in locations):
            return False

    for key, field in (
        ("company", "company_name"),
        ("work_type", "formatted_work_type"),
        ("experience_level", "formatted_experience_level"),
    ):
        wanted = filters.get(key)
        if wanted and not _contains(job.get(field), wanted):
            return False

    min_salary = filters.get("min_salary")
    if min_salary is not None:
        have = _as_number(job.get("min_salary"))
        if have is None or have < min_salary:
            return False

    max_salary = filters.get("max_salary")
    if max_salary is not None:
        have = _as_number(job.get("max_salary"))
        if have is None or have > max_salary:
            return False

    return True


def filter_jobs(jobs: Iterable[Dict], filters: JobFilters) -> List[Dict]:
    """
    Keep only jobs that satisfy every criterion set in `filters`.
    Unset or empty criteria are ignored; a salary criterion drops jobs with no salary.
    """
    return [j for j in jobs if _matches(j, filters)]


def search_titles(
    jobs: Iterable[Dict],
    query: str,
    *,
    fuzzy_threshold: Optional[float] = None,
) -> List[Dict]:
    """
    Case-insensitive title search.

    Plain substring match by default. With `fuzzy_threshold` (0-100), titles whose
    RapidFuzz partial_ratio against the query reaches the threshold match too,
    which catches typos like "enginer".
    """
    q = (query or "").strip().lower()
    if not q:
        return list(jobs)

    out: List[Dict] = []
    for j in jobs:
        title = str(j.get("title") or "").lower()
        if q in title:
            out.append(j)
        elif fuzzy_threshold is not None and title:
            if fuzz.partial_ratio(q, title) >= fuzzy_threshold:
                out.append(j)
    return out


def paginate(jobs: Sequence[Dict], page: int, per_page: int = 10) -> Tuple[List[Dict], int]:
    """
    Return (items on `page`, total page count). Pages are 1-based.
    """
    if per_page < 1:
        raise ValueError("per_page must be >= 1")
    total_pages = math.ceil(len(jobs) / per_page)
    if page < 1:
        return [], total_pages
    start = (page - 1) * per_page
    return list(jobs[start:start + per_page]), total_pages


def filter_sites(
    sites: Iterable[Dict],
    *,
    states: Optional[List[str]] = None,
    institution: str = "",
    discipline: str = "",
) -> List[Dict]:
    """
    Filter research-opportunity sites.
    - states: any of these substrings in site["state"]
    - institution / discipline: case-insensitive substring
    """
    states = [s for s in states or [] if s]
    out: List[Dict] = []
    for site in sites:
        if states and not any(s in (site.get("state") or "") for s in states):
            continue
        if institution and not _contains(site.get("institution"), institution):
            continue
        if discipline and not _contains(site.get("discipline"), discipline):
            continue
        out.append(site)
    return out
