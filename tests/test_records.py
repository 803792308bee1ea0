"""
================================================================================
TEST: Flat Record Codecs
================================================================================

Test Coverage:
    - Field counts and blank tokens
    - Boolean and room type parsing (including legacy spellings)
    - Officer list fields (blank vs empty)
    - Exact written layouts
    - Free text with separators
================================================================================
"""
from datetime import date

import pytest

from bto.core.models import ApplicationKind, ApplicationStatus, MaritalStatus, RoomType
from bto.processors import records
from bto.processors.records import RecordError


APPLICANT_LINE = "S1111111A, Alice, secret, 25, MARRIED, , , , true, false, false"
PROJECT_LINE = ("PRJ-1, Acacia Breeze, 2, Yishun, _2Room, 350000.0, 01-01-2026, "
                "31-12-2026, T7654321B, 3, S2222222B; S5555555E, true")


def test_parse_applicant():
    record = records.parse_applicant(APPLICANT_LINE)
    assert record.user_id == 'S1111111A'
    assert record.password == 'secret'
    assert record.age == 25
    assert record.marital_status is MaritalStatus.MARRIED
    assert record.applied_project_id is None
    assert record.can_apply is True
    assert record.is_withdrawing is False
    assert record.joined_project_ids is None


@pytest.mark.parametrize("line", [
    "S1111111A, Alice, secret, 25, MARRIED",
    APPLICANT_LINE + ", extra",
])
def test_wrong_field_count(line):
    with pytest.raises(RecordError):
        records.parse_applicant(line)


@pytest.mark.parametrize("line", [
    "S1111111A, Alice, secret, old, MARRIED, , , , true, false, false",
    "S1111111A, Alice, secret, 25, WIDOWED, , , , true, false, false",
    ", Alice, secret, 25, MARRIED, , , , true, false, false",
])
def test_unparsable_scalars(line):
    with pytest.raises(RecordError):
        records.parse_applicant(line)


def test_booleans_are_true_only_for_true():
    record = records.parse_applicant("S1111111A, Alice, , 25, MARRIED, , , , TRUE, yes, 1")
    assert record.can_apply is True
    assert record.is_withdrawing is False
    assert record.receipt_ready is False
    assert record.password is None


def test_officer_list_fields():
    line = "S2222222B, Oscar, password, 30, MARRIED, , , , true, false, false, P1; P2, , A1"
    record = records.parse_officer(line)
    assert record.joined_project_ids == ['P1', 'P2']
    assert record.registered_project_ids is None
    assert record.registration_ids == ['A1']


def test_parse_project_with_legacy_room_type():
    record = records.parse_project(PROJECT_LINE)
    assert record.room_type is RoomType.TWO_ROOM
    assert record.selling_price == 350000.0
    assert record.application_start == date(2026, 1, 1)
    assert record.application_end == date(2026, 12, 31)
    assert record.officer_ids == ['S2222222B', 'S5555555E']
    assert record.visible is True


@pytest.mark.parametrize("token,expected", [
    ('TWO_ROOM', RoomType.TWO_ROOM),
    ('_3Room', RoomType.THREE_ROOM),
    ('3-Room', RoomType.THREE_ROOM),
])
def test_room_type_spellings(token, expected):
    assert records.parse_room_type(token) is expected


def test_project_rejects_bad_values():
    with pytest.raises(RecordError):
        records.parse_project(PROJECT_LINE.replace('01-01-2026', '2026-01-01'))
    with pytest.raises(RecordError):
        records.parse_project(PROJECT_LINE.replace('Yishun, _2Room', 'Yishun, _4Room'))
    with pytest.raises(RecordError):
        records.parse_project(PROJECT_LINE.replace('Acacia Breeze, 2,', 'Acacia Breeze, -1,'))


def test_parse_application_and_enquiry():
    application = records.parse_application("A1, S1111111A, P1, BTO_APPLICATION, BOOKED")
    assert application.kind is ApplicationKind.BTO_APPLICATION
    assert application.status is ApplicationStatus.BOOKED

    enquiry = records.parse_enquiry("E1, S1111111A, P1, Is there parking?, ")
    assert enquiry.question == 'Is there parking?'
    assert enquiry.reply == ''

    with pytest.raises(RecordError):
        records.parse_application("A1, S1111111A, P1, LOAN, PENDING")


def test_format_officer_layout(world):
    line = records.format_officer(world.officer)
    assert line == ("S2222222B, Oscar, password, 30, MARRIED, , , , true, false, false, "
                    f"{world.two_room.project_id}, , ")
    assert len(line.split(',')) == 14


def test_format_project_layout(world):
    line = records.format_project(world.two_room)
    assert line == (f"{world.two_room.project_id}, Acacia Breeze, 2, Yishun, TWO_ROOM, "
                    "350000.0, 01-01-2026, 31-12-2026, T7654321B, 3, S2222222B, true")
    record = records.parse_project(line)
    assert record.officer_ids == ['S2222222B']


def test_format_manager_and_application(world):
    assert records.format_manager(world.manager) == "T7654321B, Mary, password, 45, MARRIED"
    application = world.engine.apply_for_project(world.married, world.two_room)
    assert records.format_application(application) == (
        f"{application.application_id}, S1111111A, {world.two_room.project_id}, "
        "BTO_APPLICATION, PENDING")
    assert records.format_applicant(world.married) == (
        f"S1111111A, Alice, password, 25, MARRIED, {world.two_room.project_id}, "
        f"{application.application_id}, , false, false, false")


def test_free_text_separators_replaced(world):
    enquiry = world.engine.add_enquiry(world.married, world.two_room, 'When')
    enquiry.reply = 'Soon, maybe\nnext year'
    line = records.format_enquiry(enquiry)
    assert len(line.split(',')) == 5
    assert line.endswith('Soon  maybe next year')
