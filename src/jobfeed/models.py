# src/jobfeed/models.py
"""
Typed dictionaries for job records as the listing gateway returns them.

Everything is a plain dict with type hints. The cache treats a record as
opaque: the only key it reads is `job_id`, and the only key it writes is
`creation_date`.
"""

from typing import Optional, TypedDict


class JobRecord(TypedDict, total=False):
    """
    One job posting from the listing gateway.

    Notes:
    - `total=False`: the gateway omits keys freely, so none are required.
    - No validation is enforced (min_salary <= max_salary is the gateway's job).
    """

    # Unique identifier (string; numeric ids are compared via str())
    job_id: str

    title: str
    company_name: Optional[str]
    location: Optional[str]
    description: Optional[str]

    # Salary bounds and how to read them
    min_salary: Optional[float]
    max_salary: Optional[float]
    currency: Optional[str]
    pay_period: Optional[str]  # e.g. "YEARLY", "HOURLY"

    formatted_work_type: Optional[str]  # e.g. "Full-time"
    formatted_experience_level: Optional[str]  # e.g. "Entry level"

    job_posting_url: Optional[str]
    application_url: Optional[str]

    # Non-negative view counter maintained by the gateway
    views: int

    # Listing timestamp as sent by the source
    listed_time: Optional[str]

    # Local "cached at" date, MM/DD/YYYY, stamped when the collection is cached
    creation_date: str


class ResearchSite(TypedDict, total=False):
    """
    One research-opportunity (REU) site, after renaming the gateway's
    spreadsheet-style column headers (see pipeline.normalize.normalize_site).
    """

    id: str
    title: str
    institution: Optional[str]
    city: Optional[str]
    state: Optional[str]  # "Institution State/Territory"
    department: Optional[str]
    discipline: Optional[str]  # "Research Areas"
    keywords: Optional[str]
    url: Optional[str]
    contact_name: Optional[str]
    contact_email: Optional[str]
