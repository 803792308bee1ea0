"""
Eligibility rules.

Pure predicates deciding whether an applicant or officer may start a
workflow. Nothing here mutates its arguments.
"""

from datetime import date

from bto.core.models import (
    Project,
    RoomType,
    User,
    is_valid_age,
    is_valid_nric,
)
from bto.utils.constants import (
    MARRIED_MIN_AGE,
    SINGLE_MIN_AGE,
    MIN_OFFICER_SLOTS,
    MAX_OFFICER_SLOTS,
)

__all__ = [
    'can_applicant_apply',
    'can_officer_join',
    'is_valid_officer_slot_count',
    'is_valid_application_window',
    'is_valid_nric',
    'is_valid_age',
]


def can_applicant_apply(user: User, project: Project) -> bool:
    """
    Married applicants from 21 may apply for any room type; single
    applicants from 35 may apply for 2-Room flats only.
    """
    if user.is_married and user.age >= MARRIED_MIN_AGE:
        return True
    return (not user.is_married
            and user.age >= SINGLE_MIN_AGE
            and project.room_type is RoomType.TWO_ROOM)


def _strictly_inside(day: date, start: date, end: date) -> bool:
    return start < day < end


def can_officer_join(officer: User, project: Project) -> bool:
    """
    An officer may not take on a project whose application window overlaps
    one they already administer.

    A joined project conflicts when its start or its end date falls strictly
    inside the candidate's window. Windows sharing exactly one endpoint do
    not conflict.
    """
    if officer.officer is None:
        return False
    start, end = project.application_start, project.application_end
    for joined in officer.officer.joined_projects:
        if (_strictly_inside(joined.application_start, start, end)
                or _strictly_inside(joined.application_end, start, end)):
            return False
    return True


def is_valid_officer_slot_count(slots: int) -> bool:
    return MIN_OFFICER_SLOTS <= slots <= MAX_OFFICER_SLOTS


def is_valid_application_window(start: date, end: date) -> bool:
    return start < end
