# =============================================================================
# fintrack_core/records.py
# Record id and cache key derivation
# =============================================================================

from __future__ import annotations
from datetime import datetime
from typing import Any, Optional, Union

from fintrack_core.errors import RecordKeyError
from fintrack_core.models import ReportKind, ReportRecord

DATE_FORMAT = "%Y-%m-%d"

KindLike = Union[ReportKind, str]


def parse_kind(kind: KindLike) -> ReportKind:
    """Accept a ReportKind or its string value."""
    if isinstance(kind, ReportKind):
        return kind
    try:
        return ReportKind(str(kind).lower())
    except ValueError:
        valid = ", ".join(k.value for k in ReportKind)
        raise RecordKeyError(f"Unknown report kind '{kind}' (expected one of: {valid})", kind=str(kind))


def normalize_date(date: Optional[str]) -> Optional[str]:
    """Validate a ``YYYY-MM-DD`` string; empty values mean 'no date'."""
    if not date:
        return None
    try:
        return datetime.strptime(str(date), DATE_FORMAT).strftime(DATE_FORMAT)
    except ValueError:
        raise RecordKeyError(f"Report date must be YYYY-MM-DD, got '{date}'", date=str(date))


def build_record_id(kind: KindLike, year: Union[int, str], date: Optional[str] = None) -> str:
    """
    Deterministic record id: ``{kind}_{date}`` when a date is given,
    otherwise ``{kind}_{year}``.

    >>> build_record_id("daily", 2025, "2025-01-01")
    'daily_2025-01-01'
    >>> build_record_id("npf", 2025)
    'npf_2025'
    """
    report_kind = parse_kind(kind)
    day = normalize_date(date)
    return f"{report_kind.value}_{day or int(year)}"


def cache_key(kind: KindLike, year: Union[int, str], date: Optional[str] = None) -> str:
    """
    Local cache key for a report.

    Date-keyed reports share the ``report_full_{date}`` namespace, year-keyed
    reports use ``{kind}_data_{year}``. These are the keys existing browser
    caches were written with.
    """
    report_kind = parse_kind(kind)
    day = normalize_date(date)
    if day:
        return f"report_full_{day}"
    return f"{report_kind.value}_data_{int(year)}"


def make_record(
    kind: KindLike,
    year: Union[int, str],
    payload: Any = None,
    date: Optional[str] = None,
) -> ReportRecord:
    report_kind = parse_kind(kind)
    day = normalize_date(date)
    return ReportRecord(
        id=build_record_id(report_kind, year, day),
        kind=report_kind,
        year=int(year),
        date=day,
        payload=payload,
    )
