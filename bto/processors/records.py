"""
================================================================================
RECORDS - Flat Record Codecs
================================================================================

Parses and formats the comma-separated lines stored in the data files.
Parsing produces *records*: scalar fields plus bare identifier strings for
every cross-entity link. Turning records into linked entities is the job of
bto.processors.loader.

Line Layouts (fields written joined by ', ', lists joined by '; '):
    Applicant   (11) id, name, password, age, maritalStatus, appliedProjectId,
                     projectApplicationId, withdrawalApplicationId, canApply,
                     isWithdrawing, receiptReady
    Officer     (14) applicant fields + joinedProjectIds, registeredProjectIds,
                     projectRegistrationIds
    Manager      (5) id, name, password, age, maritalStatus
    Project     (12) id, name, unitCount, neighbourhood, roomType, sellingPrice,
                     startDate, endDate, managerId, officerSlotCount,
                     officerIds, visible
    Application  (5) id, userId, projectId, kind, status
    Enquiry      (5) id, filerId, projectId, question, reply

Parsing Rules:
    - Lines are split on ',' keeping empty tokens, then trimmed
    - Blank tokens are absent (None)
    - Wrong field counts and unparsable scalars raise RecordError
    - Booleans are true only for 'true' (any case)
================================================================================
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from bto.core.models import (
    Application,
    ApplicationKind,
    ApplicationStatus,
    Enquiry,
    MaritalStatus,
    Project,
    RoomType,
    User,
)
from bto.utils.constants import (
    FIELD_SEPARATOR,
    LIST_SEPARATOR,
    APPLICANT_FIELDS,
    OFFICER_FIELDS,
    MANAGER_FIELDS,
    PROJECT_FIELDS,
    APPLICATION_FIELDS,
    ENQUIRY_FIELDS,
)
from bto.utils.dates import format_date, parse_date

logger = logging.getLogger("bto_tracker")

# Older data files spell room types the way the first release did
LEGACY_ROOM_TYPES = {
    '_2Room': RoomType.TWO_ROOM,
    '_3Room': RoomType.THREE_ROOM,
    '2-Room': RoomType.TWO_ROOM,
    '3-Room': RoomType.THREE_ROOM,
}


class RecordError(ValueError):
    """A line that cannot be turned into a record."""


# ==========================================
# 1. RECORD TYPES
# ==========================================

@dataclass
class UserRecord:
    user_id: str
    name: str
    password: Optional[str]
    age: int
    marital_status: MaritalStatus
    applied_project_id: Optional[str] = None
    project_application_id: Optional[str] = None
    withdrawal_application_id: Optional[str] = None
    can_apply: bool = True
    is_withdrawing: bool = False
    receipt_ready: bool = False
    # None means the field was blank in the file
    joined_project_ids: Optional[List[str]] = None
    registered_project_ids: Optional[List[str]] = None
    registration_ids: Optional[List[str]] = None


@dataclass
class ProjectRecord:
    project_id: str
    name: str
    unit_count: int
    neighbourhood: str
    room_type: RoomType
    selling_price: float
    application_start: date
    application_end: date
    manager_id: Optional[str]
    officer_slots: int
    officer_ids: List[str] = field(default_factory=list)
    visible: bool = False


@dataclass
class ApplicationRecord:
    application_id: str
    user_id: Optional[str]
    project_id: Optional[str]
    kind: ApplicationKind
    status: ApplicationStatus


@dataclass
class EnquiryRecord:
    enquiry_id: str
    filer_id: Optional[str]
    project_id: Optional[str]
    question: str
    reply: str


# ==========================================
# 2. TOKEN HELPERS
# ==========================================

def split_record(line: str, expected: int) -> List[Optional[str]]:
    """Split a line into exactly `expected` trimmed tokens (blank -> None)."""
    tokens = line.strip().split(',')
    if len(tokens) != expected:
        raise RecordError(f"expected {expected} fields, found {len(tokens)}")
    return [token.strip() or None for token in tokens]


def split_ids(token: Optional[str]) -> List[str]:
    if not token:
        return []
    return [part.strip() for part in token.split(';') if part.strip()]


def join_ids(ids: List[str]) -> str:
    return LIST_SEPARATOR.join(ids)


def parse_bool(token: Optional[str], default: bool) -> bool:
    if token is None:
        return default
    return token.lower() == 'true'


def format_bool(value: bool) -> str:
    return 'true' if value else 'false'


def _required(token: Optional[str], label: str) -> str:
    if token is None:
        raise RecordError(f"missing {label}")
    return token


def _parse_int(token: Optional[str], label: str) -> int:
    try:
        return int(_required(token, label))
    except ValueError:
        raise RecordError(f"invalid {label}: {token!r}") from None


def _parse_float(token: Optional[str], label: str) -> float:
    try:
        return float(_required(token, label))
    except ValueError:
        raise RecordError(f"invalid {label}: {token!r}") from None


def _parse_enum(enum_cls, token: Optional[str], label: str):
    try:
        return enum_cls(_required(token, label))
    except ValueError:
        raise RecordError(f"invalid {label}: {token!r}") from None


def _parse_date(token: Optional[str], label: str) -> date:
    try:
        return parse_date(_required(token, label))
    except ValueError:
        raise RecordError(f"invalid {label}: {token!r}") from None


def parse_room_type(token: Optional[str]) -> RoomType:
    if token in LEGACY_ROOM_TYPES:
        return LEGACY_ROOM_TYPES[token]
    return _parse_enum(RoomType, token, 'room type')


def _clean_text(value: Optional[str], label: str) -> str:
    """Keep free text from breaking the record layout."""
    value = value or ''
    if ',' in value or '\n' in value:
        logger.warning(f"Replacing separators in {label} before saving")
        value = value.replace(',', ' ').replace('\n', ' ')
    return value


# ==========================================
# 3. PARSERS
# ==========================================

def _parse_identity(tokens: List[Optional[str]]) -> dict:
    return {
        'user_id': _required(tokens[0], 'user id'),
        'name': _required(tokens[1], 'name'),
        'password': tokens[2],
        'age': _parse_int(tokens[3], 'age'),
        'marital_status': _parse_enum(MaritalStatus, tokens[4], 'marital status'),
    }


def _parse_applicant_fields(tokens: List[Optional[str]]) -> dict:
    fields = _parse_identity(tokens)
    fields.update({
        'applied_project_id': tokens[5],
        'project_application_id': tokens[6],
        'withdrawal_application_id': tokens[7],
        'can_apply': parse_bool(tokens[8], True),
        'is_withdrawing': parse_bool(tokens[9], False),
        'receipt_ready': parse_bool(tokens[10], False),
    })
    return fields


def parse_applicant(line: str) -> UserRecord:
    return UserRecord(**_parse_applicant_fields(split_record(line, APPLICANT_FIELDS)))


def parse_officer(line: str) -> UserRecord:
    tokens = split_record(line, OFFICER_FIELDS)
    record = UserRecord(**_parse_applicant_fields(tokens))
    record.joined_project_ids = split_ids(tokens[11]) if tokens[11] is not None else None
    record.registered_project_ids = split_ids(tokens[12]) if tokens[12] is not None else None
    record.registration_ids = split_ids(tokens[13]) if tokens[13] is not None else None
    return record


def parse_manager(line: str) -> UserRecord:
    return UserRecord(**_parse_identity(split_record(line, MANAGER_FIELDS)))


def parse_project(line: str) -> ProjectRecord:
    tokens = split_record(line, PROJECT_FIELDS)
    unit_count = _parse_int(tokens[2], 'unit count')
    if unit_count < 0:
        raise RecordError(f"negative unit count: {unit_count}")
    return ProjectRecord(
        project_id=_required(tokens[0], 'project id'),
        name=_required(tokens[1], 'project name'),
        unit_count=unit_count,
        neighbourhood=tokens[3] or '',
        room_type=parse_room_type(tokens[4]),
        selling_price=_parse_float(tokens[5], 'selling price'),
        application_start=_parse_date(tokens[6], 'start date'),
        application_end=_parse_date(tokens[7], 'end date'),
        manager_id=tokens[8],
        officer_slots=_parse_int(tokens[9], 'officer slot count'),
        officer_ids=split_ids(tokens[10]),
        visible=parse_bool(tokens[11], False),
    )


def parse_application(line: str) -> ApplicationRecord:
    tokens = split_record(line, APPLICATION_FIELDS)
    return ApplicationRecord(
        application_id=_required(tokens[0], 'application id'),
        user_id=tokens[1],
        project_id=tokens[2],
        kind=_parse_enum(ApplicationKind, tokens[3], 'application kind'),
        status=_parse_enum(ApplicationStatus, tokens[4], 'application status'),
    )


def parse_enquiry(line: str) -> EnquiryRecord:
    tokens = split_record(line, ENQUIRY_FIELDS)
    return EnquiryRecord(
        enquiry_id=_required(tokens[0], 'enquiry id'),
        filer_id=tokens[1],
        project_id=tokens[2],
        question=tokens[3] or '',
        reply=tokens[4] or '',
    )


# ==========================================
# 4. FORMATTERS
# ==========================================

def _id_or_blank(entity, attribute: str) -> str:
    return getattr(entity, attribute) if entity is not None else ''


def _identity_fields(user: User) -> List[str]:
    return [
        user.user_id,
        _clean_text(user.name, 'user name'),
        user.password,
        str(user.age),
        user.marital_status.value,
    ]


def _applicant_fields(user: User) -> List[str]:
    profile = user.applicant
    return _identity_fields(user) + [
        _id_or_blank(profile.applied_project, 'project_id'),
        _id_or_blank(profile.project_application, 'application_id'),
        _id_or_blank(profile.withdrawal_application, 'application_id'),
        format_bool(profile.can_apply),
        format_bool(profile.is_withdrawing),
        format_bool(profile.receipt_ready),
    ]


def format_applicant(user: User) -> str:
    return FIELD_SEPARATOR.join(_applicant_fields(user))


def format_officer(user: User) -> str:
    profile = user.officer
    return FIELD_SEPARATOR.join(_applicant_fields(user) + [
        join_ids([project.project_id for project in profile.joined_projects]),
        join_ids([project.project_id for project in profile.registered_projects]),
        join_ids([application.application_id for application in profile.project_registrations]),
    ])


def format_manager(user: User) -> str:
    return FIELD_SEPARATOR.join(_identity_fields(user))


def format_project(project: Project) -> str:
    return FIELD_SEPARATOR.join([
        project.project_id,
        _clean_text(project.name, 'project name'),
        str(project.unit_count),
        _clean_text(project.neighbourhood, 'neighbourhood'),
        project.room_type.value,
        str(float(project.selling_price)),
        format_date(project.application_start),
        format_date(project.application_end),
        _id_or_blank(project.manager, 'user_id'),
        str(project.officer_slots),
        join_ids([officer.user_id for officer in project.officers]),
        format_bool(project.visible),
    ])


def format_application(application: Application) -> str:
    return FIELD_SEPARATOR.join([
        application.application_id,
        application.user.user_id,
        application.project.project_id,
        application.kind.value,
        application.status.value,
    ])


def format_enquiry(enquiry: Enquiry) -> str:
    return FIELD_SEPARATOR.join([
        enquiry.enquiry_id,
        enquiry.filer.user_id,
        enquiry.project.project_id,
        _clean_text(enquiry.question, 'enquiry question'),
        _clean_text(enquiry.reply, 'enquiry reply'),
    ])
