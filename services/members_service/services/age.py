"""
Calendar-accurate age computation.

Every screen and rule that needs an age goes through ``compute_age`` so that a
member's age never disagrees between eligibility checks, display, and renewal
previews.
"""

from datetime import date, datetime
from typing import Optional, Union

from libs.common.datetime_utils import parse_date, utc_today
from services.members_service.errors import UnknownAge

DateLike = Union[date, datetime, str, None]

UNKNOWN_AGE_LABEL = "unknown"


def compute_age(date_of_birth: DateLike, reference_date: DateLike = None) -> Optional[int]:
    """
    Whole years between ``date_of_birth`` and ``reference_date``.

    The birthday counts as reached on the day itself. Missing or unparseable
    dates of birth, and births after the reference date, return None.

    Args:
        date_of_birth: date, datetime or ISO string
        reference_date: defaults to today (UTC)

    Returns:
        Age in years, or None when unknown
    """
    dob = parse_date(date_of_birth)
    ref = parse_date(reference_date) if reference_date is not None else utc_today()
    if dob is None or ref is None or dob > ref:
        return None

    years = ref.year - dob.year
    if (ref.month, ref.day) < (dob.month, dob.day):
        years -= 1
    return years


def require_age(
    date_of_birth: DateLike,
    reference_date: DateLike = None,
    member_id: Optional[str] = None,
) -> int:
    """Like ``compute_age`` but raises ``UnknownAge`` instead of returning None."""
    age = compute_age(date_of_birth, reference_date)
    if age is None:
        raise UnknownAge(member_id)
    return age


def age_label(date_of_birth: DateLike, reference_date: DateLike = None) -> str:
    age = compute_age(date_of_birth, reference_date)
    return UNKNOWN_AGE_LABEL if age is None else str(age)
