"""
================================================================================
LIFECYCLE - Application State Machine and Cascades
================================================================================

Every application starts PENDING. A status change is a two step affair:

    1. Guard   - TRANSITION_GUARDS[kind] decides whether the new status is
                 allowed for that kind of application. Refusals are reported
                 as False and leave the application untouched.
    2. Cascade - CASCADES[(kind, status)] applies the side effects the change
                 has on the submitting user and the project.

Transition Guards:
    BTO_APPLICATION         - every status
    PROJECT_REGISTRATION    - never BOOKED or WITHDRAWN
    WITHDRAWAL_APPLICATION  - never BOOKED or WITHDRAWN

Cascades:
    (PROJECT_REGISTRATION, SUCCESSFUL)   officer joins the project
    (WITHDRAWAL_APPLICATION, SUCCESSFUL) applicant released from project
    (WITHDRAWAL_APPLICATION, other)      withdrawal attempt released only
    (BTO_APPLICATION, UNSUCCESSFUL)      applicant released from project
    (BTO_APPLICATION, BOOKED)            receipt becomes available

Booking (book_flat) consumes one unit of the project and generates the
applicant's receipt.
================================================================================
"""

import logging
from typing import Callable, Dict, Optional, Tuple

from bto.core.models import (
    Application,
    ApplicationKind,
    ApplicationStatus,
    User,
    applicant_profile_of,
)

logger = logging.getLogger("bto_tracker")


# ==========================================
# 1. TRANSITION GUARDS
# ==========================================

_RESERVED_FOR_BTO = {ApplicationStatus.BOOKED, ApplicationStatus.WITHDRAWN}


def _allow_any(status: ApplicationStatus) -> bool:
    return True


def _allow_decisions_only(status: ApplicationStatus) -> bool:
    return status not in _RESERVED_FOR_BTO


TRANSITION_GUARDS: Dict[ApplicationKind, Callable[[ApplicationStatus], bool]] = {
    ApplicationKind.BTO_APPLICATION: _allow_any,
    ApplicationKind.PROJECT_REGISTRATION: _allow_decisions_only,
    ApplicationKind.WITHDRAWAL_APPLICATION: _allow_decisions_only,
}


def is_transition_allowed(application: Application, status: ApplicationStatus) -> bool:
    return TRANSITION_GUARDS[application.kind](status)


# ==========================================
# 2. CASCADES
# ==========================================

def _registration_approved(application: Application) -> None:
    officer = application.user
    if officer.officer is None:
        logger.warning(f"Registration {application.application_id} was filed by "
                       f"non-officer {officer.user_id}; nothing to join")
        return
    officer.officer.join(application.project)
    application.project.add_officer(officer)


def _withdrawal_approved(application: Application) -> None:
    profile = applicant_profile_of(application.user)
    if profile is None:
        return
    profile.applied_project = None
    profile.can_apply = True
    profile.is_withdrawing = False
    profile.receipt_ready = False


def _withdrawal_settled(application: Application) -> None:
    # The applied project is deliberately left as it was
    profile = applicant_profile_of(application.user)
    if profile is None:
        return
    profile.can_apply = True
    profile.is_withdrawing = False


def _application_rejected(application: Application) -> None:
    profile = applicant_profile_of(application.user)
    if profile is None:
        return
    profile.applied_project = None
    profile.can_apply = True
    profile.receipt_ready = False


def _flat_booked(application: Application) -> None:
    profile = applicant_profile_of(application.user)
    if profile is None:
        return
    profile.can_apply = False
    profile.receipt_ready = True


_W = ApplicationKind.WITHDRAWAL_APPLICATION

CASCADES: Dict[Tuple[ApplicationKind, ApplicationStatus], Callable[[Application], None]] = {
    (ApplicationKind.PROJECT_REGISTRATION, ApplicationStatus.SUCCESSFUL): _registration_approved,
    (_W, ApplicationStatus.SUCCESSFUL): _withdrawal_approved,
    (_W, ApplicationStatus.PENDING): _withdrawal_settled,
    (_W, ApplicationStatus.UNSUCCESSFUL): _withdrawal_settled,
    (ApplicationKind.BTO_APPLICATION, ApplicationStatus.UNSUCCESSFUL): _application_rejected,
    (ApplicationKind.BTO_APPLICATION, ApplicationStatus.BOOKED): _flat_booked,
}


# ==========================================
# 3. STATUS UPDATES
# ==========================================

def set_status(application: Application, status: ApplicationStatus) -> bool:
    """
    Apply the kind guard and set the status without any cascade.

    Used when restoring persisted applications, whose side effects are
    already reflected in the persisted user and project records.
    """
    if not is_transition_allowed(application, status):
        return False
    application.status = status
    return True


def update_status(application: Application, status: ApplicationStatus) -> bool:
    """
    Change an application's status and run the matching cascade.

    Returns:
        bool: False when the kind guard refuses the status (nothing changes)
    """
    if not set_status(application, status):
        logger.info(f"Refused {application.kind.value} {application.application_id} "
                    f"-> {status.value}")
        return False
    cascade = CASCADES.get((application.kind, status))
    if cascade is not None:
        cascade(application)
    return True


# ==========================================
# 4. BOOKING & RECEIPTS
# ==========================================

def generate_receipt(user: User) -> Optional[str]:
    """Fixed-format receipt for the user's applied project."""
    profile = applicant_profile_of(user)
    if profile is None or profile.applied_project is None:
        return None
    return ("Name: " + user.name + "\n"
            + "NRIC: " + user.user_id + "\n"
            + "Age: " + str(user.age) + "\n"
            + "Marital Status:" + ("Married" if user.is_married else "Single") + "\n"
            + "Project: " + profile.applied_project.name)


def book_flat(officer: User, application: Application) -> bool:
    """
    Book a flat for a BTO application.

    Fails without mutating anything when the project has no units left or
    the application kind cannot be booked.
    """
    project = application.project
    if project.unit_count <= 0:
        logger.info(f"No units left in {project.name}; booking refused for "
                    f"{application.application_id}")
        return False
    if not is_transition_allowed(application, ApplicationStatus.BOOKED):
        return False

    project.unit_count -= 1
    update_status(application, ApplicationStatus.BOOKED)

    profile = applicant_profile_of(application.user)
    if profile is not None:
        profile.receipt_ready = True
        profile.receipt = generate_receipt(application.user)
    logger.info(f"Officer {officer.user_id} booked {project.name} for "
                f"{application.user.user_id}; {project.unit_count} units left")
    return True


def get_receipt(user: User) -> Optional[str]:
    """Regenerate and return the receipt while it is ready, else None."""
    profile = applicant_profile_of(user)
    if profile is None or not profile.receipt_ready:
        return None
    profile.receipt = generate_receipt(user)
    return profile.receipt
