# src/jobfeed/pipeline/normalize.py
"""
Turn the listing gateway's raw JSON into the list of job dicts the cache stores.

The gateway sits behind an API-gateway proxy, so the records live under a
"body" field that is either a JSON array or a string holding one.
"""
from __future__ import annotations
from typing import Dict, List, Optional
import datetime as dt
import json

BODY_FIELD = "body"
CACHED_AT_FIELD = "creation_date"


def extract_records(payload: Dict) -> List[dict]:
    """
    Return the record array from a gateway payload.

    - Missing or non-array body -> [] (the gateway sends a message string when
      the table is empty).
    - Non-dict entries inside the array are dropped.
    Raises ValueError if the payload itself is not a JSON object, or if a
    string body is not valid JSON.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")

    body = payload.get(BODY_FIELD)
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            # plain message string, e.g. "No items found"
            return []

    if not isinstance(body, list):
        return []
    return [x for x in body if isinstance(x, dict)]


def format_cached_at(day: dt.date) -> str:
    # "MM/DD/YYYY", matching what the job board displays
    return day.strftime("%m/%d/%Y")


def stamp_cached_at(records: List[dict], today: Optional[dt.date] = None) -> List[dict]:
    """
    Return copies of `records` with the local "cached at" date set.
    The input dicts are left untouched.
    """
    stamp = format_cached_at(today or dt.date.today())
    return [{**r, CACHED_AT_FIELD: stamp} for r in records]


# gateway column header -> ResearchSite key
SITE_FIELDS = {
    "Id": "id",
    "Title": "title",
    "Institution": "institution",
    "Institution City": "city",
    "Institution State/Territory": "state",
    "Institution Department": "department",
    "Research Areas": "discipline",
    "Research Topics/Keywords": "keywords",
    "Site Website": "url",
    "Primary Contact Name": "contact_name",
    "Primary Contact Email": "contact_email",
}


def normalize_site(raw: Dict) -> Dict:
    """Rename one research-site row to ResearchSite keys; unknown columns are dropped."""
    site = {key: raw.get(column) for column, key in SITE_FIELDS.items()}
    if site["id"] is not None:
        site["id"] = str(site["id"])
    return site
