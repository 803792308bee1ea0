"""
================================================================================
ENGINE - Role Workflows over the Referential Store
================================================================================

BTOEngine is the single entry point the CLI (and any other front end) uses
to act on the store. Every method validates the acting user's role and
state, mutates entities through the lifecycle engine, and reports refusals
as False / None instead of raising.

Workflows by Role:
    Applicant (and officer acting as applicant):
        apply_for_project, submit_withdrawal, get_receipt,
        add_enquiry / edit_enquiry / delete_enquiry
    Officer:
        register_for_project, book_flat, reply_to_enquiry
    Manager:
        create_project, edit_project, toggle_visibility,
        update_status (approve / reject), reply_to_enquiry

Any user:
    authenticate, change_password

The engine never persists anything itself; callers save the store with
bto.processors.writer.DataWriter after a successful action.
================================================================================
"""

import logging
from datetime import date
from typing import Iterable, Optional

from bto.core import lifecycle
from bto.core.database import DatabaseManager
from bto.core.eligibility import (
    can_applicant_apply,
    can_officer_join,
    is_valid_application_window,
    is_valid_officer_slot_count,
)
from bto.core.models import (
    Application,
    ApplicationKind,
    ApplicationStatus,
    Enquiry,
    Project,
    RoomType,
    User,
    applicant_profile_of,
    is_manager,
    is_officer,
    new_application,
    new_enquiry,
    new_project,
)

logger = logging.getLogger("bto_tracker")

EDITABLE_PROJECT_FIELDS = {
    'name',
    'neighbourhood',
    'unit_count',
    'room_type',
    'selling_price',
    'application_start',
    'application_end',
    'officer_slots',
    'visible',
}


def _sanitize(text: str) -> str:
    return text.replace(',', ' ').replace('\n', ' ')


class BTOEngine:
    def __init__(self, database: DatabaseManager):
        self.db = database

    # ==========================================
    # ACCOUNTS
    # ==========================================
    def authenticate(self, user_id: str, password: str) -> Optional[User]:
        user = self.db.get_user(user_id)
        if user is None or user.password != password:
            logger.info(f"Failed login for {user_id}")
            return None
        return user

    def change_password(self, user: User, old_password: str, new_password: str) -> bool:
        if user.password != old_password:
            return False
        if not new_password or not new_password.strip() or ',' in new_password:
            return False
        user.password = new_password
        logger.info(f"Password changed for {user.user_id}")
        return True

    # ==========================================
    # APPLICANT WORKFLOWS
    # ==========================================
    def apply_for_project(self, user: User, project: Project) -> Optional[Application]:
        """
        File a BTO application.

        Requires an applicant profile that may still apply, a project the
        user can see, and eligibility for the project's room type. Officers
        may never apply for a project they administer or registered for.
        """
        profile = applicant_profile_of(user)
        if profile is None or not profile.can_apply:
            return None
        if not any(visible is project for visible in self.db.projects_for(user)):
            logger.info(f"{user.user_id} cannot see {project.name}")
            return None
        if not can_applicant_apply(user, project):
            logger.info(f"{user.user_id} is not eligible for {project.name}")
            return None

        application = new_application(user, project, ApplicationKind.BTO_APPLICATION)
        self.db.add_application(application)
        profile.set_applied_project(project)
        profile.set_project_application(application)
        if is_officer(user):
            user.officer.prohibit(project)
        logger.info(f"{user.user_id} applied for {project.name} ({application.application_id})")
        return application

    def submit_withdrawal(self, user: User) -> Optional[Application]:
        profile = applicant_profile_of(user)
        if profile is None or profile.applied_project is None or profile.is_withdrawing:
            return None
        application = new_application(user, profile.applied_project,
                                      ApplicationKind.WITHDRAWAL_APPLICATION)
        self.db.add_application(application)
        profile.set_withdrawal_application(application)
        logger.info(f"{user.user_id} requested withdrawal from {profile.applied_project.name}")
        return application

    def get_receipt(self, user: User) -> Optional[str]:
        return lifecycle.get_receipt(user)

    # ==========================================
    # OFFICER WORKFLOWS
    # ==========================================
    def register_for_project(self, officer: User, project: Project) -> Optional[Application]:
        """Ask to administer a project; the manager decides on the registration."""
        if not is_officer(officer):
            return None
        if officer.officer.is_prohibited(project):
            logger.info(f"{officer.user_id} may not register for {project.name}")
            return None
        if not can_officer_join(officer, project):
            logger.info(f"{project.name} overlaps a project {officer.user_id} administers")
            return None

        registration = new_application(officer, project, ApplicationKind.PROJECT_REGISTRATION)
        self.db.add_application(registration)
        officer.officer.register(project, registration)
        logger.info(f"{officer.user_id} registered for {project.name}")
        return registration

    def book_flat(self, officer: User, application: Application) -> bool:
        """
        Book a flat for an approved BTO application.

        Only applications in the officer's administering view qualify, and
        only once the manager has marked them SUCCESSFUL.
        """
        if not is_officer(officer) or not any(
                bookable is application for bookable in self.db.applications_for(officer)):
            logger.info(f"{application.application_id} is not bookable by {officer.user_id}")
            return False
        if application.status is not ApplicationStatus.SUCCESSFUL:
            logger.info(f"{application.application_id} is {application.status.value}, "
                        f"not SUCCESSFUL; booking refused")
            return False
        return lifecycle.book_flat(officer, application)

    # ==========================================
    # MANAGER WORKFLOWS
    # ==========================================
    def update_status(self, manager: User, application: Application,
                      status: ApplicationStatus) -> bool:
        """Decide on a PENDING application of a project the manager owns."""
        if not is_manager(manager) or not any(
                pending is application for pending in self.db.applications_for(manager)):
            logger.info(f"{manager.user_id} cannot decide on {application.application_id}")
            return False
        return lifecycle.update_status(application, status)

    def create_project(self, manager: User, name: str, unit_count: int, neighbourhood: str,
                       room_type: RoomType, selling_price: float, application_start: date,
                       application_end: date, officer_slots: int,
                       officers: Iterable[User] = (), visible: bool = True) -> Optional[Project]:
        """Create and store a project; None when the inputs are invalid."""
        officers = list(officers)
        if not is_manager(manager):
            return None
        if unit_count < 0 or not is_valid_officer_slot_count(officer_slots):
            logger.info(f"Invalid unit count or officer slots for {name}")
            return None
        if len(officers) > officer_slots or not all(is_officer(o) for o in officers):
            logger.info(f"Invalid officer list for {name}")
            return None
        if not is_valid_application_window(application_start, application_end):
            logger.info(f"Application window of {name} ends before it starts")
            return None

        project = new_project(_sanitize(name), unit_count, _sanitize(neighbourhood), room_type,
                              selling_price, application_start, application_end,
                              officer_slots, officers, visible, manager)
        self.db.add_project(project)
        logger.info(f"{manager.user_id} created project {project.name} ({project.project_id})")
        return project

    def toggle_visibility(self, project: Project) -> bool:
        project.visible = not project.visible
        return project.visible

    def edit_project(self, project: Project, **fields) -> bool:
        """
        Change editable project attributes.

        Raises:
            ValueError: a field that cannot be edited
        Returns:
            bool: False (and no change) when the new values are invalid
        """
        unknown = set(fields) - EDITABLE_PROJECT_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit project fields: {', '.join(sorted(unknown))}")

        start = fields.get('application_start', project.application_start)
        end = fields.get('application_end', project.application_end)
        if not is_valid_application_window(start, end):
            return False
        if 'officer_slots' in fields and not is_valid_officer_slot_count(fields['officer_slots']):
            return False
        if fields.get('unit_count', 0) < 0:
            return False

        for key in ('name', 'neighbourhood'):
            if key in fields:
                fields[key] = _sanitize(fields[key])
        for key, value in fields.items():
            setattr(project, key, value)
        logger.info(f"Edited project {project.project_id}: {', '.join(sorted(fields))}")
        return True

    # ==========================================
    # ENQUIRIES
    # ==========================================
    def add_enquiry(self, user: User, project: Project, question: str) -> Optional[Enquiry]:
        if applicant_profile_of(user) is None or not question.strip():
            return None
        enquiry = new_enquiry(user, project, _sanitize(question))
        self.db.add_enquiry(enquiry)
        return enquiry

    def edit_enquiry(self, enquiry: Enquiry, question: str) -> bool:
        if enquiry.is_replied or not question.strip():
            return False
        enquiry.question = _sanitize(question)
        return True

    def delete_enquiry(self, enquiry: Enquiry) -> bool:
        if enquiry.is_replied:
            return False
        return self.db.remove_enquiry(enquiry)

    def reply_to_enquiry(self, replier: User, enquiry: Enquiry, reply: str) -> bool:
        """Managers reply to any enquiry, officers to those about projects they joined."""
        if not (is_manager(replier) or is_officer(replier)) or not reply.strip():
            return False
        if not any(enquiry is visible for visible in self.db.enquiries_for(replier)):
            return False
        enquiry.reply = _sanitize(reply)
        logger.info(f"{replier.user_id} replied to enquiry {enquiry.enquiry_id}")
        return True
