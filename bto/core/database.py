"""
Database Management Module

Provides the in-memory referential store for the tracker:
- One collection per entity type (users, projects, applications, enquiries)
- Append, full scan and lookup-by-id for each collection
- Role-scoped read-only views used by the workflows
- Project filtering/sorting and receipt-ready applicant queries

The store is the sole owner of every entity. It is built once per session
(by bto.processors.loader.DataLoader) and passed explicitly to every
component that needs it.
"""

import logging
from typing import Iterable, List, Optional

from bto.core.models import (
    Application,
    ApplicationKind,
    ApplicationStatus,
    Enquiry,
    Project,
    Role,
    RoomType,
    User,
    is_applicant,
    is_manager,
    is_officer,
)

logger = logging.getLogger("bto_tracker")


def _find(items: Iterable, attribute: str, value):
    for item in items:
        if getattr(item, attribute) == value:
            return item
    return None


def _append(items: list, item, label: str) -> bool:
    if item is None:
        logger.warning(f"Refusing to add empty {label}")
        return False
    items.append(item)
    return True


# ====================================================================================
# DATABASE MANAGER
# ====================================================================================

class DatabaseManager:
    """
    Referential store for users, projects, applications and enquiries.

    Lookups are linear scans; data sets are small.
    """

    def __init__(self):
        self.users: List[User] = []
        self.projects: List[Project] = []
        self.applications: List[Application] = []
        self.enquiries: List[Enquiry] = []

    # ------------------------------------------------------------------
    # Append
    # ------------------------------------------------------------------
    def add_user(self, user: Optional[User]) -> bool:
        return _append(self.users, user, 'user')

    def add_project(self, project: Optional[Project]) -> bool:
        return _append(self.projects, project, 'project')

    def add_application(self, application: Optional[Application]) -> bool:
        return _append(self.applications, application, 'application')

    def add_enquiry(self, enquiry: Optional[Enquiry]) -> bool:
        return _append(self.enquiries, enquiry, 'enquiry')

    def remove_enquiry(self, enquiry: Enquiry) -> bool:
        for i, existing in enumerate(self.enquiries):
            if existing is enquiry:
                del self.enquiries[i]
                return True
        return False

    # ------------------------------------------------------------------
    # Lookup by id
    # ------------------------------------------------------------------
    def get_user(self, user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None
        return _find(self.users, 'user_id', user_id)

    def get_project(self, project_id: Optional[str]) -> Optional[Project]:
        if not project_id:
            return None
        return _find(self.projects, 'project_id', project_id)

    def get_application(self, application_id: Optional[str]) -> Optional[Application]:
        if not application_id:
            return None
        return _find(self.applications, 'application_id', application_id)

    def get_enquiry(self, enquiry_id: Optional[str]) -> Optional[Enquiry]:
        if not enquiry_id:
            return None
        return _find(self.enquiries, 'enquiry_id', enquiry_id)

    def users_by_role(self, role: Role) -> List[User]:
        return [user for user in self.users if user.role is role]

    # ------------------------------------------------------------------
    # Role-scoped views
    # ------------------------------------------------------------------
    def projects_for(self, user: User) -> List[Project]:
        """
        Managers see every project, officers see visible projects they are
        not prohibited from, applicants see visible projects.
        """
        if is_manager(user):
            return list(self.projects)
        if is_officer(user):
            return [project for project in self.projects
                    if project.visible and not user.officer.is_prohibited(project)]
        if is_applicant(user):
            return [project for project in self.projects if project.visible]
        return []

    def applications_for(self, user: User, as_applicant: bool = False) -> List[Application]:
        """
        Managers see PENDING applications of the projects they manage.
        Officers administering projects see BTO applications of their joined
        projects that are not yet booked. Everything else sees nothing.
        """
        if is_manager(user):
            return [application for application in self.applications
                    if application.project.manager is user
                    and application.status is ApplicationStatus.PENDING]
        if is_officer(user) and not as_applicant:
            return [application for application in self.applications
                    if user.officer.has_joined(application.project)
                    and application.kind is ApplicationKind.BTO_APPLICATION
                    and application.status is not ApplicationStatus.BOOKED]
        return []

    def enquiries_for(self, user: User, as_applicant: bool = False) -> List[Enquiry]:
        """
        Managers see all enquiries (or only their own projects' enquiries when
        as_applicant is set), officers see enquiries about projects they have
        joined, applicants see what they filed.
        """
        if is_manager(user) and not as_applicant:
            return list(self.enquiries)
        if is_manager(user):
            return [enquiry for enquiry in self.enquiries
                    if enquiry.project_manager is user]
        if is_officer(user) and not as_applicant:
            return [enquiry for enquiry in self.enquiries
                    if user.officer.has_joined(enquiry.project)]
        return [enquiry for enquiry in self.enquiries if enquiry.filer is user]

    def own_projects(self, manager: User) -> List[Project]:
        return [project for project in self.projects if project.manager is manager]

    def receipt_ready_applicants(self, filter_by: Optional[str] = None,
                                 value=None) -> Optional[List[User]]:
        """
        Applicants and officers whose flat is booked.

        Args:
            filter_by: None, 'RoomType' or 'Marital Status'
            value: RoomType / MaritalStatus to match

        Returns:
            list, or None when filter_by is not recognized
        """
        ready = [user for user in self.users
                 if user.applicant is not None and user.applicant.receipt_ready]
        if filter_by is None:
            return ready
        if filter_by.lower() == 'roomtype':
            return [user for user in ready
                    if user.applicant.applied_project is not None
                    and user.applicant.applied_project.room_type is value]
        if filter_by.lower() == 'marital status':
            return [user for user in ready if user.marital_status is value]
        return None

    def __repr__(self):
        return (f"DatabaseManager(users={len(self.users)}, projects={len(self.projects)}, "
                f"applications={len(self.applications)}, enquiries={len(self.enquiries)})")


# ====================================================================================
# PROJECT LIST HELPERS
# ====================================================================================

def filter_projects(projects: List[Project], attribute: str, value) -> List[Project]:
    """
    Filter by 'Name', 'Neighbourhood' or 'RoomType'; other attributes leave
    the list as is.
    """
    if attribute == 'Name':
        return [project for project in projects if project.name == value]
    if attribute == 'Neighbourhood':
        return [project for project in projects if project.neighbourhood == value]
    if attribute.lower() == 'roomtype':
        if isinstance(value, str):
            value = RoomType(value)
        return [project for project in projects if project.room_type is value]
    return list(projects)


def sort_projects(projects: List[Project], ascending: bool = True) -> List[Project]:
    return sorted(projects, key=lambda project: project.name, reverse=not ascending)


__all__ = [
    'DatabaseManager',
    'filter_projects',
    'sort_projects',
]
