"""
================================================================================
MODELS - Entity Records for Users, Projects, Applications and Enquiries
================================================================================

Plain records shared by every other module. Entities compare by identity:
the DatabaseManager owns exactly one object per id and every cross
reference points at that object.

User Roles:
    APPLICANT - carries an ApplicantProfile
    OFFICER   - carries an ApplicantProfile AND an OfficerProfile
                (officers may also apply for flats as applicants)
    MANAGER   - identity only

Role dispatch goes through is_applicant / is_officer / is_manager and
applicant_profile_of, never through isinstance checks.

Applications are a single record tagged with an ApplicationKind; the
kind-specific transition rules live in bto.core.lifecycle.
================================================================================
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional

from bto.utils.constants import (
    DEFAULT_PASSWORD,
    NRIC_LENGTH,
    NRIC_PREFIXES,
)
from bto.utils.ids import new_id


# ==========================================
# 1. ENUMERATIONS
# ==========================================

class MaritalStatus(Enum):
    SINGLE = "SINGLE"
    MARRIED = "MARRIED"


class Role(Enum):
    APPLICANT = "APPLICANT"
    OFFICER = "OFFICER"
    MANAGER = "MANAGER"


class RoomType(Enum):
    TWO_ROOM = "TWO_ROOM"
    THREE_ROOM = "THREE_ROOM"


class ApplicationStatus(Enum):
    """Lifecycle of an application; every application starts PENDING"""
    PENDING = "PENDING"
    SUCCESSFUL = "SUCCESSFUL"
    UNSUCCESSFUL = "UNSUCCESSFUL"
    BOOKED = "BOOKED"
    WITHDRAWN = "WITHDRAWN"


class ApplicationKind(Enum):
    """Fixed at creation, never changes"""
    BTO_APPLICATION = "BTO_APPLICATION"
    PROJECT_REGISTRATION = "PROJECT_REGISTRATION"
    WITHDRAWAL_APPLICATION = "WITHDRAWAL_APPLICATION"


def _add_unique(items: list, item) -> None:
    if item is not None and not any(existing is item for existing in items):
        items.append(item)


def _remove(items: list, item) -> None:
    items[:] = [existing for existing in items if existing is not item]


# ==========================================
# 2. USER RECORDS
# ==========================================

@dataclass(eq=False)
class ApplicantProfile:
    """Application state of a user who may apply for flats."""

    applied_project: Optional['Project'] = None
    project_application: Optional['Application'] = None
    withdrawal_application: Optional['Application'] = None
    can_apply: bool = True
    is_withdrawing: bool = False
    receipt_ready: bool = False
    receipt: Optional[str] = None

    def set_applied_project(self, project: Optional['Project']) -> None:
        self.applied_project = project
        if project is not None:
            self.can_apply = False
            self.is_withdrawing = False

    def set_project_application(self, application: Optional['Application']) -> None:
        self.project_application = application
        if application is not None:
            self.can_apply = False
            self.is_withdrawing = False

    def set_withdrawal_application(self, application: Optional['Application']) -> None:
        self.withdrawal_application = application
        self.is_withdrawing = True


@dataclass(eq=False)
class OfficerProfile:
    """Administration state of an officer.

    prohibited_projects always covers joined and registered projects; the
    helpers below keep it that way.
    """

    joined_projects: List['Project'] = field(default_factory=list)
    registered_projects: List['Project'] = field(default_factory=list)
    prohibited_projects: List['Project'] = field(default_factory=list)
    project_registrations: List['Application'] = field(default_factory=list)

    def register(self, project: 'Project', registration: 'Application') -> None:
        _add_unique(self.registered_projects, project)
        _add_unique(self.prohibited_projects, project)
        _add_unique(self.project_registrations, registration)

    def join(self, project: 'Project') -> None:
        _add_unique(self.joined_projects, project)
        _remove(self.registered_projects, project)
        _add_unique(self.prohibited_projects, project)

    def prohibit(self, project: 'Project') -> None:
        _add_unique(self.prohibited_projects, project)

    def rebuild_prohibited(self) -> None:
        prohibited: List['Project'] = []
        for project in self.joined_projects + self.registered_projects:
            _add_unique(prohibited, project)
        self.prohibited_projects = prohibited

    def has_joined(self, project: 'Project') -> bool:
        return any(joined is project for joined in self.joined_projects)

    def is_prohibited(self, project: 'Project') -> bool:
        return any(p is project for p in self.prohibited_projects)


@dataclass(eq=False)
class User:
    user_id: str
    name: str
    age: int
    marital_status: MaritalStatus
    role: Role
    password: str = DEFAULT_PASSWORD
    applicant: Optional[ApplicantProfile] = None
    officer: Optional[OfficerProfile] = None

    @property
    def is_married(self) -> bool:
        return self.marital_status is MaritalStatus.MARRIED

    def __repr__(self):
        return f"User({self.user_id!r}, {self.role.value})"


def is_applicant(user: Optional[User]) -> bool:
    """True only for plain applicants (officers are not applicants here)."""
    return user is not None and user.role is Role.APPLICANT


def is_officer(user: Optional[User]) -> bool:
    return user is not None and user.role is Role.OFFICER


def is_manager(user: Optional[User]) -> bool:
    return user is not None and user.role is Role.MANAGER


def applicant_profile_of(user: Optional[User]) -> Optional[ApplicantProfile]:
    """Applicant state for applicants and officers, None for managers."""
    if user is None:
        return None
    return user.applicant


# ==========================================
# 3. PROJECT / APPLICATION / ENQUIRY
# ==========================================

@dataclass(eq=False)
class Project:
    project_id: str
    name: str
    neighbourhood: str
    unit_count: int
    room_type: RoomType
    selling_price: float
    application_start: date
    application_end: date
    manager: Optional[User] = None
    officer_slots: int = 0
    officers: List[User] = field(default_factory=list)
    visible: bool = True

    def add_officer(self, officer: User) -> None:
        _add_unique(self.officers, officer)

    def __repr__(self):
        return f"Project({self.project_id!r}, {self.name!r})"


@dataclass(eq=False)
class Application:
    application_id: str
    user: User
    project: Project
    kind: ApplicationKind
    status: ApplicationStatus = ApplicationStatus.PENDING

    def __repr__(self):
        return (f"Application({self.application_id!r}, {self.kind.value}, "
                f"{self.status.value})")


@dataclass(eq=False)
class Enquiry:
    enquiry_id: str
    filer: User
    project: Project
    project_manager: Optional[User]
    project_officers: List[User]
    question: str = ''
    reply: str = ''

    @property
    def is_replied(self) -> bool:
        return bool(self.reply and self.reply.strip())


# ==========================================
# 4. VALIDATION & FACTORIES
# ==========================================

def is_valid_nric(nric: Optional[str]) -> bool:
    """S/T prefix, seven digits, trailing letter (e.g. S1234567A)."""
    if not nric or len(nric) != NRIC_LENGTH:
        return False
    if not nric.startswith(NRIC_PREFIXES):
        return False
    if not nric[-1].isalpha():
        return False
    return nric[1:8].isdigit()


def is_valid_age(age: int) -> bool:
    return age > 0


def _new_user(user_id, name, age, marital_status, role, password):
    if not (is_valid_nric(user_id) and is_valid_age(age)):
        return None
    return User(
        user_id=user_id,
        name=name,
        age=age,
        marital_status=marital_status,
        role=role,
        password=password or DEFAULT_PASSWORD,
    )


def new_applicant(user_id: str, name: str, age: int, marital_status: MaritalStatus,
                  password: Optional[str] = None, can_apply: bool = True,
                  is_withdrawing: bool = False, receipt_ready: bool = False) -> Optional[User]:
    """Build an applicant; None when the NRIC or age is invalid."""
    user = _new_user(user_id, name, age, marital_status, Role.APPLICANT, password)
    if user is not None:
        user.applicant = ApplicantProfile(
            can_apply=can_apply,
            is_withdrawing=is_withdrawing,
            receipt_ready=receipt_ready,
        )
    return user


def new_officer(user_id: str, name: str, age: int, marital_status: MaritalStatus,
                password: Optional[str] = None, can_apply: bool = True,
                is_withdrawing: bool = False, receipt_ready: bool = False) -> Optional[User]:
    """Build an officer (applicant profile plus officer profile)."""
    user = _new_user(user_id, name, age, marital_status, Role.OFFICER, password)
    if user is not None:
        user.applicant = ApplicantProfile(
            can_apply=can_apply,
            is_withdrawing=is_withdrawing,
            receipt_ready=receipt_ready,
        )
        user.officer = OfficerProfile()
    return user


def new_manager(user_id: str, name: str, age: int, marital_status: MaritalStatus,
                password: Optional[str] = None) -> Optional[User]:
    return _new_user(user_id, name, age, marital_status, Role.MANAGER, password)


def new_project(name: str, unit_count: int, neighbourhood: str, room_type: RoomType,
                selling_price: float, application_start: date, application_end: date,
                officer_slots: int, officers: List[User], visible: bool,
                manager: Optional[User], project_id: Optional[str] = None) -> Project:
    """Build a project and attach it to each listed officer's joined projects."""
    project = Project(
        project_id=project_id or new_id('project'),
        name=name,
        neighbourhood=neighbourhood,
        unit_count=unit_count,
        room_type=room_type,
        selling_price=selling_price,
        application_start=application_start,
        application_end=application_end,
        manager=manager,
        officer_slots=officer_slots,
        visible=visible,
    )
    for officer in officers:
        project.add_officer(officer)
        if officer.officer is not None:
            officer.officer.join(project)
    return project


def new_application(user: User, project: Project, kind: ApplicationKind,
                    application_id: Optional[str] = None) -> Application:
    if not isinstance(kind, ApplicationKind):
        raise ValueError(f"Invalid application kind: {kind}")
    return Application(
        application_id=application_id or new_id('application'),
        user=user,
        project=project,
        kind=kind,
    )


def new_enquiry(filer: User, project: Project, question: str, reply: str = '',
                enquiry_id: Optional[str] = None) -> Enquiry:
    """Build an enquiry; the officer list is a snapshot, not a live link."""
    return Enquiry(
        enquiry_id=enquiry_id or new_id('enquiry'),
        filer=filer,
        project=project,
        project_manager=project.manager,
        project_officers=list(project.officers),
        question=question,
        reply=reply,
    )
