"""
================================================================================
TEST: Two-Phase Loader/Linker
================================================================================

Test Coverage:
    - Missing vs empty data files
    - Save/load round trip of a store after real workflows
    - Officer joined / registered / registration lists survive a reload
    - Persisted flags restored verbatim
    - Malformed records skipped, dangling references left absent
    - Records with missing required links dropped
================================================================================
"""
from bto.core.models import ApplicationStatus
from bto.processors.loader import DataLoader, load_database, read_records
from bto.processors.writer import DataWriter
from bto.utils.constants import (
    APPLICANT_FILE,
    APPLICATION_FILE,
    DATA_FILES,
    ENQUIRY_FILE,
    MANAGER_FILE,
    OFFICER_FILE,
    PROJECT_FILE,
)


def _write(data_dir, name, *lines):
    (data_dir / name).write_text(''.join(line + '\n' for line in lines), encoding='utf-8')


def _ids(items, attribute):
    return sorted(getattr(item, attribute) for item in items)


def test_read_records_missing_vs_empty(data_dir):
    assert read_records(data_dir / 'nope.txt') is None
    _write(data_dir, PROJECT_FILE)
    assert read_records(data_dir / PROJECT_FILE) == []
    _write(data_dir, PROJECT_FILE, '', 'a, b', '   ')
    assert read_records(data_dir / PROJECT_FILE) == [(2, 'a, b')]


def test_empty_directory_reports_every_file_unavailable(data_dir):
    db, report = load_database(data_dir)
    assert db.users == [] and db.projects == []
    assert sorted(report.unavailable) == sorted(DATA_FILES)
    assert not report.clean


class TestRoundTrip:
    def _populate(self, world):
        e = world.engine
        booked = e.apply_for_project(world.married, world.two_room)
        e.update_status(world.manager, booked, ApplicationStatus.SUCCESSFUL)
        e.book_flat(world.officer, booked)

        e.apply_for_project(world.single, world.two_room)
        e.submit_withdrawal(world.single)

        e.register_for_project(world.officer, world.three_room)

        enquiry = e.add_enquiry(world.married, world.two_room, 'Is there parking?')
        e.reply_to_enquiry(world.officer, enquiry, 'Yes')
        return booked

    def test_round_trip(self, world, data_dir):
        booked = self._populate(world)
        DataWriter(data_dir).save(world.db)

        db, report = load_database(data_dir)

        assert report.clean, report
        assert report.loaded == {'users': 5, 'projects': 3, 'applications': 4, 'enquiries': 1}
        assert _ids(db.users, 'user_id') == _ids(world.db.users, 'user_id')

        project = db.get_project(world.two_room.project_id)
        assert project.unit_count == 1
        assert project.manager is db.get_user('T7654321B')
        assert [o.user_id for o in project.officers] == ['S2222222B']
        assert project.application_start == world.two_room.application_start

        alice = db.get_user('S1111111A')
        assert alice.applicant.applied_project is project
        assert alice.applicant.project_application.application_id == booked.application_id
        assert alice.applicant.project_application.status is ApplicationStatus.BOOKED
        assert alice.applicant.receipt_ready is True
        assert alice.applicant.can_apply is False

        ben = db.get_user('S3333333C')
        assert ben.applicant.is_withdrawing is True
        assert ben.applicant.withdrawal_application.status is ApplicationStatus.PENDING

        enquiry = db.enquiries[0]
        assert enquiry.filer is alice
        assert enquiry.reply == 'Yes'
        assert enquiry.project is project

    def test_officer_lists_survive_reload(self, world, data_dir):
        e = world.engine
        registration = e.register_for_project(world.officer, world.three_room)
        e.apply_for_project(world.officer, world.three_room)  # refused: already registered
        DataWriter(data_dir).save(world.db)

        db = DataLoader(data_dir).load()
        officer = db.get_user('S2222222B').officer

        assert _ids(officer.joined_projects, 'project_id') == [world.two_room.project_id]
        assert _ids(officer.registered_projects, 'project_id') == [world.three_room.project_id]
        assert _ids(officer.project_registrations, 'application_id') == [registration.application_id]
        assert _ids(officer.prohibited_projects, 'project_id') == sorted(
            [world.two_room.project_id, world.three_room.project_id])

    def test_officer_applied_project_stays_prohibited(self, world, data_dir):
        assert world.engine.apply_for_project(world.officer, world.three_room) is not None
        DataWriter(data_dir).save(world.db)

        db = DataLoader(data_dir).load()
        officer = db.get_user('S2222222B')

        assert officer.officer.is_prohibited(db.get_project(world.three_room.project_id))
        assert [p.name for p in db.projects_for(officer)] == []


def _minimal_files(data_dir):
    _write(data_dir, MANAGER_FILE, "T7654321B, Mary, password, 45, MARRIED")
    _write(data_dir, OFFICER_FILE,
           "S2222222B, Oscar, password, 30, MARRIED, , , , true, false, false, P1, , ")
    _write(data_dir, PROJECT_FILE,
           "P1, Acacia Breeze, 2, Yishun, TWO_ROOM, 350000.0, 01-01-2026, 31-12-2026, "
           "T7654321B, 3, S2222222B, true")
    _write(data_dir, APPLICATION_FILE)
    _write(data_dir, ENQUIRY_FILE)


def test_flags_restored_verbatim(data_dir):
    _minimal_files(data_dir)
    # applied project with can_apply still true: kept as persisted
    _write(data_dir, APPLICANT_FILE,
           "S1111111A, Alice, password, 25, MARRIED, P1, , , true, true, false")

    db = DataLoader(data_dir).load()
    alice = db.get_user('S1111111A').applicant

    assert alice.applied_project is db.get_project('P1')
    assert alice.can_apply is True
    assert alice.is_withdrawing is True


def test_malformed_lines_are_skipped(data_dir):
    _minimal_files(data_dir)
    _write(data_dir, APPLICANT_FILE,
           "S1111111A, Alice, password, 25, MARRIED, , , , true, false, false",
           "S3333333C, Ben, password, 36",
           "S4444444D, Cara, password, young, SINGLE, , , , true, false, false",
           "BADNRIC, Dan, password, 40, SINGLE, , , , true, false, false")

    loader = DataLoader(data_dir)
    db = loader.load()

    assert db.get_user('S1111111A') is not None
    assert db.get_user('S3333333C') is None
    assert db.get_user('S4444444D') is None
    assert len(loader.report.skipped) == 3


def test_dangling_references(data_dir):
    _minimal_files(data_dir)
    _write(data_dir, PROJECT_FILE,
           "P1, Acacia Breeze, 2, Yishun, TWO_ROOM, 350000.0, 01-01-2026, 31-12-2026, "
           "T0000000X, 3, S2222222B; S9999999Z, true")
    _write(data_dir, APPLICANT_FILE,
           "S1111111A, Alice, password, 25, MARRIED, P404, A404, , false, false, false")
    _write(data_dir, APPLICATION_FILE,
           "A1, S1111111A, P1, BTO_APPLICATION, PENDING",
           "A2, S0000000X, P1, BTO_APPLICATION, PENDING",
           "A3, S1111111A, P404, BTO_APPLICATION, PENDING")
    _write(data_dir, ENQUIRY_FILE,
           "E1, S1111111A, P1, Parking?, ",
           "E2, T7654321B, P1, Managers cannot file, ")

    loader = DataLoader(data_dir)
    db = loader.load()
    report = loader.report

    project = db.get_project('P1')
    assert project.manager is None
    assert [o.user_id for o in project.officers] == ['S2222222B']

    assert [a.application_id for a in db.applications] == ['A1']
    assert [e.enquiry_id for e in db.enquiries] == ['E1']

    alice = db.get_user('S1111111A').applicant
    assert alice.applied_project is None
    assert alice.project_application is None
    assert alice.can_apply is False

    joined = ' '.join(report.dangling)
    for ref in ('T0000000X', 'S9999999Z', 'S0000000X', 'P404', 'A404'):
        assert ref in joined


def test_invalid_persisted_status_falls_back_to_pending(data_dir):
    _minimal_files(data_dir)
    _write(data_dir, APPLICATION_FILE, "R1, S2222222B, P1, PROJECT_REGISTRATION, BOOKED")

    db = DataLoader(data_dir).load()

    assert db.get_application('R1').status is ApplicationStatus.PENDING
