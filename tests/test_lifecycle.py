"""
================================================================================
TEST: Application Lifecycle
================================================================================

Validates the per-kind transition guards, the status cascades, flat
booking and receipts.

Test Coverage:
    - Guard table (registrations/withdrawals never BOOKED or WITHDRAWN)
    - Refused transitions leave everything untouched
    - Registration approval joins the officer to the project
    - Withdrawal approval / rejection cascades
    - BTO rejection releases the applicant
    - Booking at 0 and 1 remaining units
    - Receipt text
================================================================================
"""
import pytest

from bto.core import lifecycle
from bto.core.models import ApplicationKind, ApplicationStatus, new_application

ALL_STATUSES = list(ApplicationStatus)


@pytest.mark.parametrize("kind", [ApplicationKind.PROJECT_REGISTRATION,
                                  ApplicationKind.WITHDRAWAL_APPLICATION])
@pytest.mark.parametrize("status", ALL_STATUSES)
def test_decision_only_kinds(world, kind, status):
    application = new_application(world.officer, world.three_room, kind)
    expected = status not in (ApplicationStatus.BOOKED, ApplicationStatus.WITHDRAWN)
    assert lifecycle.is_transition_allowed(application, status) is expected


@pytest.mark.parametrize("status", ALL_STATUSES)
def test_bto_application_accepts_every_status(world, status):
    application = new_application(world.married, world.two_room, ApplicationKind.BTO_APPLICATION)
    assert lifecycle.is_transition_allowed(application, status)


def test_refused_transition_changes_nothing(world):
    registration = world.engine.register_for_project(world.officer, world.three_room)
    units = world.three_room.unit_count

    assert lifecycle.update_status(registration, ApplicationStatus.BOOKED) is False
    assert registration.status is ApplicationStatus.PENDING
    assert not world.officer.officer.has_joined(world.three_room)
    assert world.three_room.unit_count == units


def test_unknown_kind_rejected_by_factory(world):
    with pytest.raises(ValueError):
        new_application(world.married, world.two_room, 'BTO_APPLICATION')


class TestRegistrationCascade:
    def test_approval_joins_project(self, world):
        registration = world.engine.register_for_project(world.officer, world.three_room)
        officer = world.officer.officer
        assert any(p is world.three_room for p in officer.registered_projects)

        assert lifecycle.update_status(registration, ApplicationStatus.SUCCESSFUL)

        assert officer.has_joined(world.three_room)
        assert not any(p is world.three_room for p in officer.registered_projects)
        assert officer.is_prohibited(world.three_room)
        assert any(o is world.officer for o in world.three_room.officers)

    def test_rejection_keeps_registration(self, world):
        registration = world.engine.register_for_project(world.officer, world.three_room)

        assert lifecycle.update_status(registration, ApplicationStatus.UNSUCCESSFUL)

        assert not world.officer.officer.has_joined(world.three_room)
        assert world.officer.officer.is_prohibited(world.three_room)
        assert world.three_room.officers == []


class TestWithdrawalCascade:
    def _applied(self, world):
        world.engine.apply_for_project(world.married, world.two_room)
        return world.engine.submit_withdrawal(world.married)

    def test_approval_releases_applicant(self, world):
        withdrawal = self._applied(world)
        profile = world.married.applicant
        profile.receipt_ready = True

        assert lifecycle.update_status(withdrawal, ApplicationStatus.SUCCESSFUL)

        assert profile.applied_project is None
        assert profile.can_apply is True
        assert profile.is_withdrawing is False
        assert profile.receipt_ready is False

    @pytest.mark.parametrize("status", [ApplicationStatus.UNSUCCESSFUL, ApplicationStatus.PENDING])
    def test_other_decisions_keep_applied_project(self, world, status):
        withdrawal = self._applied(world)
        profile = world.married.applicant

        assert lifecycle.update_status(withdrawal, status)

        assert profile.applied_project is world.two_room
        assert profile.can_apply is True
        assert profile.is_withdrawing is False


def test_bto_rejection_releases_applicant(world):
    application = world.engine.apply_for_project(world.married, world.two_room)
    profile = world.married.applicant
    assert profile.can_apply is False

    assert lifecycle.update_status(application, ApplicationStatus.UNSUCCESSFUL)

    assert profile.applied_project is None
    assert profile.can_apply is True
    assert profile.receipt_ready is False


def test_set_status_runs_no_cascade(world):
    application = world.engine.apply_for_project(world.married, world.two_room)

    assert lifecycle.set_status(application, ApplicationStatus.UNSUCCESSFUL)

    assert application.status is ApplicationStatus.UNSUCCESSFUL
    assert world.married.applicant.applied_project is world.two_room


class TestBooking:
    def test_booking_last_unit(self, world):
        world.two_room.unit_count = 1
        application = world.engine.apply_for_project(world.married, world.two_room)
        lifecycle.update_status(application, ApplicationStatus.SUCCESSFUL)

        assert lifecycle.book_flat(world.officer, application) is True

        assert world.two_room.unit_count == 0
        assert application.status is ApplicationStatus.BOOKED
        profile = world.married.applicant
        assert profile.receipt_ready is True
        assert profile.can_apply is False
        assert profile.receipt == ("Name: Alice\n"
                                   "NRIC: S1111111A\n"
                                   "Age: 25\n"
                                   "Marital Status:Married\n"
                                   "Project: Acacia Breeze")

    def test_booking_with_no_units_changes_nothing(self, world):
        world.two_room.unit_count = 0
        application = world.engine.apply_for_project(world.married, world.two_room)
        lifecycle.update_status(application, ApplicationStatus.SUCCESSFUL)

        assert lifecycle.book_flat(world.officer, application) is False

        assert world.two_room.unit_count == 0
        assert application.status is ApplicationStatus.SUCCESSFUL
        assert world.married.applicant.receipt_ready is False

    def test_registration_cannot_be_booked(self, world):
        registration = world.engine.register_for_project(world.officer, world.three_room)

        assert lifecycle.book_flat(world.officer, registration) is False
        assert world.three_room.unit_count == 1
        assert registration.status is ApplicationStatus.PENDING


def test_receipt_for_single_applicant(world):
    application = world.engine.apply_for_project(world.single, world.two_room)
    lifecycle.book_flat(world.officer, application)

    receipt = lifecycle.get_receipt(world.single)

    assert "Marital Status:Single" in receipt
    assert receipt.splitlines()[0] == "Name: Ben"


def test_receipt_unavailable_until_booked(world):
    world.engine.apply_for_project(world.married, world.two_room)
    assert lifecycle.get_receipt(world.married) is None
    assert lifecycle.get_receipt(world.manager) is None
