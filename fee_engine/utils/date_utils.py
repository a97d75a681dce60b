"""Date manipulation utilities"""

import re
from datetime import date, datetime, timedelta
from typing import Any, Dict, List

from dateutil.relativedelta import relativedelta

ADMISSION_SLOT = "admission"

_FLAT_UI_KEY = re.compile(r"^semester-(\d+)-instalment-(\d+)$")
_SLOT_KEY = re.compile(r"^(\d+)-(\d+)$")
_DAY_FIRST = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def slot_key(semester_number: int, installment_number: int) -> str:
    """Key identifying one schedule slot, e.g. "2-3" for semester 2, installment 3"""
    return f"{semester_number}-{installment_number}"


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping to the end of shorter months"""
    return from_date + relativedelta(months=months)


def spread_dates(start: date, end: date, count: int) -> List[date]:
    """
    Evenly space `count` dates across [start, end), starting on `start`.

    Example:
        2026-01-01 → 2026-07-01 (181 days), 3 dates → Jan 1, Mar 2, May 1
    """
    span_days = (end - start).days
    return [start + timedelta(days=span_days * i // count) for i in range(count)]


def days_past(due_date: date, today: date) -> int:
    """Days elapsed since the due date (negative while still in the future)"""
    return (today - due_date).days


def parse_date(value: Any) -> date:
    """Parse ISO (YYYY-MM-DD) or day-first (DD/MM/YYYY) dates"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    match = _DAY_FIRST.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return date(year, month, day)
    return date.fromisoformat(text[:10])


def normalize_custom_due_dates(raw: Dict[str, Any] | None) -> Dict[str, date]:
    """
    Normalise stored custom due dates into slot keys.

    Accepted shapes (all may be mixed):
    - slot keys: {"admission": ..., "1-2": ...}
    - flat UI keys with 0-based installment index: {"semester-1-instalment-0": ...}
    - one-shot keys: {"one-shot": ...} or {"program_fee_due_date": ...}
    - nested: {"semesters": {"semester_1": {"due_date": ...}}}
              {"semesters": {"semester_1": {"installments": {"installment_1": ...}}}}
    """
    if not raw:
        return {}

    dates: Dict[str, date] = {}

    for key, value in raw.items():
        if value in (None, ""):
            continue

        if key in (ADMISSION_SLOT, "admission_date"):
            dates[ADMISSION_SLOT] = parse_date(value)
        elif key in ("one-shot", "one_shot", "program_fee_due_date"):
            if isinstance(value, dict):
                if value.get("program_fee_due_date"):
                    dates[slot_key(1, 1)] = parse_date(value["program_fee_due_date"])
            else:
                dates[slot_key(1, 1)] = parse_date(value)
        elif key == "semesters" and isinstance(value, dict):
            dates.update(_normalize_nested_semesters(value))
        elif _SLOT_KEY.match(key):
            dates[key] = parse_date(value)
        elif _FLAT_UI_KEY.match(key):
            semester, index = (int(part) for part in _FLAT_UI_KEY.match(key).groups())
            dates[slot_key(semester, index + 1)] = parse_date(value)

    return dates


def _normalize_nested_semesters(semesters: Dict[str, Any]) -> Dict[str, date]:
    dates: Dict[str, date] = {}
    for semester_key, semester_data in semesters.items():
        semester = int(semester_key.replace("semester_", ""))

        if isinstance(semester_data, str):
            dates[slot_key(semester, 1)] = parse_date(semester_data)
            continue
        if not isinstance(semester_data, dict):
            continue

        if semester_data.get("due_date"):
            dates[slot_key(semester, 1)] = parse_date(semester_data["due_date"])

        for installment_key, value in (semester_data.get("installments") or {}).items():
            if value:
                installment = int(str(installment_key).replace("installment_", ""))
                dates[slot_key(semester, installment)] = parse_date(value)

    return dates
