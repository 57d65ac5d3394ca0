from __future__ import annotations

import logging
import threading
from datetime import date, datetime

import pytest

from class_attendance.attendance.model import MarkEntry
from class_attendance.core.enums import AttendanceStatus
from class_attendance.core.exceptions import AuthorizationError, NotFoundError, ValidationError

ALICE_ID, BRIAN_ID = 10, 11


def _mark(container, actor, cls, entries, when="2024-03-01"):
    return container.attendance_service.mark_batch(actor=actor, class_id=cls.class_id, date=when, entries=entries)


def test_mark_twice_is_idempotent(container, attendance_repo, faculty, algebra):
    entries = [{"studentId": ALICE_ID, "status": "present"}, {"studentId": BRIAN_ID, "status": "late"}]

    first = _mark(container, faculty, algebra, entries)
    second = _mark(container, faculty, algebra, entries)

    assert [r.attendance_id for r in first] == [r.attendance_id for r in second]
    assert len(attendance_repo.all()) == 2
    assert {r.student_id: r.status for r in attendance_repo.all()} == {
        ALICE_ID: AttendanceStatus.PRESENT,
        BRIAN_ID: AttendanceStatus.LATE,
    }


def test_remark_same_day_overwrites_status(container, attendance_repo, faculty, algebra):
    first = _mark(container, faculty, algebra, [{"studentId": ALICE_ID, "status": "absent", "remarks": "sick"}])
    second = _mark(
        container, faculty, algebra, [{"studentId": ALICE_ID, "status": "present"}], when="2024-03-01T16:45:00"
    )

    assert second[0].attendance_id == first[0].attendance_id
    assert second[0].status == AttendanceStatus.PRESENT
    assert second[0].remarks == ""
    assert len(attendance_repo.all()) == 1


def test_mark_normalizes_date_to_midnight(container, faculty, algebra):
    recs = _mark(container, faculty, algebra, [{"studentId": ALICE_ID, "status": "present"}], when="2024-03-01T15:30:00")
    assert recs[0].attend_date == datetime(2024, 3, 1)


def test_mark_then_query_by_day_ignores_time_of_day(container, faculty, alice, algebra):
    _mark(container, faculty, algebra, [{"studentId": ALICE_ID, "status": "present"}], when="2024-03-01T15:30:00")

    rows = container.attendance_service.get_by_class_and_date(actor=alice, class_id=algebra.class_id, date="2024-03-01")
    assert [r.student_id for r in rows] == [ALICE_ID]
    assert rows[0].student_name == "Alice"
    assert rows[0].class_code == "ALG101"

    assert container.attendance_service.get_by_class_and_date(
        actor=alice, class_id=algebra.class_id, date=date(2024, 3, 2)
    ) == []


def test_status_defaults_to_absent(container, faculty, algebra):
    recs = _mark(container, faculty, algebra, [MarkEntry(student_id=ALICE_ID)])
    assert recs[0].status == AttendanceStatus.ABSENT
    assert recs[0].remarks == ""
    assert recs[0].marked_by == faculty.user_id


def test_batch_skips_malformed_entries(container, faculty, algebra, caplog):
    entries = [
        {"studentId": ALICE_ID, "status": "present"},
        {"studentId": None},
        {"studentId": "abc", "status": "present"},
        {"studentId": ALICE_ID + 100, "status": "asleep"},
        "garbage",
        {"studentId": BRIAN_ID, "status": "late"},
    ]
    with caplog.at_level(logging.WARNING, logger="class_attendance"):
        recs = _mark(container, faculty, algebra, entries)

    assert [(r.student_id, r.status) for r in recs] == [
        (ALICE_ID, AttendanceStatus.PRESENT),
        (BRIAN_ID, AttendanceStatus.LATE),
    ]
    assert "invalid studentId" in caplog.text


def test_batch_continues_after_storage_failure(container, attendance_repo, faculty, algebra):
    attendance_repo.fail_for_students.add(ALICE_ID)
    recs = _mark(container, faculty, algebra, [{"studentId": ALICE_ID}, {"studentId": BRIAN_ID, "status": "present"}])
    assert [r.student_id for r in recs] == [BRIAN_ID]


def test_concurrent_marks_never_duplicate(container, attendance_repo, faculty, algebra):
    barrier = threading.Barrier(8)

    def worker(status: str):
        barrier.wait()
        _mark(container, faculty, algebra, [{"studentId": ALICE_ID, "status": status}])

    threads = [threading.Thread(target=worker, args=(s,)) for s in ["present", "late"] * 4]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    rows = attendance_repo.all()
    assert len(rows) == 1
    assert rows[0].status in {AttendanceStatus.PRESENT, AttendanceStatus.LATE}


def test_mark_requires_owning_faculty(container, other_faculty, alice, faculty, algebra):
    with pytest.raises(AuthorizationError):
        _mark(container, other_faculty, algebra, [{"studentId": ALICE_ID}])
    with pytest.raises(AuthorizationError):
        _mark(container, alice, algebra, [{"studentId": ALICE_ID}])
    with pytest.raises(AuthorizationError):
        container.attendance_service.mark_batch(actor=faculty, class_id=999, date="2024-03-01", entries=[])


@pytest.mark.parametrize(
    "class_id, when, entries",
    [(None, "2024-03-01", []), (1, None, []), (1, "2024-03-01", None), (1, "2024-03-01", {"a": 1}), (1, "nope", [])],
)
def test_mark_rejects_invalid_request(container, faculty, algebra, class_id, when, entries):
    with pytest.raises(ValidationError):
        container.attendance_service.mark_batch(actor=faculty, class_id=class_id, date=when, entries=entries)


def test_update_record_partial(container, faculty, algebra):
    rec = _mark(container, faculty, algebra, [{"studentId": ALICE_ID, "status": "absent", "remarks": "bus"}])[0]
    svc = container.attendance_service

    updated = svc.update_record(actor=faculty, attendance_id=rec.attendance_id, status="late")
    assert updated.status == AttendanceStatus.LATE
    assert updated.remarks == "bus"

    updated = svc.update_record(actor=faculty, attendance_id=rec.attendance_id, remarks="")
    assert updated.status == AttendanceStatus.LATE
    assert updated.remarks == ""

    with pytest.raises(ValidationError):
        svc.update_record(actor=faculty, attendance_id=rec.attendance_id, status="gone")


def test_update_and_delete_checks(container, faculty, other_faculty, algebra):
    rec = _mark(container, faculty, algebra, [{"studentId": ALICE_ID}])[0]
    svc = container.attendance_service

    with pytest.raises(NotFoundError):
        svc.update_record(actor=faculty, attendance_id=999, status="present")
    with pytest.raises(AuthorizationError):
        svc.update_record(actor=other_faculty, attendance_id=rec.attendance_id, status="present")
    with pytest.raises(NotFoundError):
        svc.delete_record(actor=faculty, attendance_id=999)
    with pytest.raises(AuthorizationError):
        svc.delete_record(actor=other_faculty, attendance_id=rec.attendance_id)

    svc.delete_record(actor=faculty, attendance_id=rec.attendance_id)
    assert container.attendance_repo.get_by_id(rec.attendance_id) is None


def test_student_sees_only_own_history(container, faculty, alice, algebra):
    _mark(container, faculty, algebra, [{"studentId": ALICE_ID, "status": "present"}, {"studentId": BRIAN_ID}])

    own = container.attendance_service.get_by_student(actor=alice, student_id=ALICE_ID)
    assert [r.student_id for r in own] == [ALICE_ID]

    with pytest.raises(AuthorizationError):
        container.attendance_service.get_by_student(actor=alice, student_id=BRIAN_ID)


def test_faculty_and_admin_may_query_any_student(container, faculty, admin, algebra):
    _mark(container, faculty, algebra, [{"studentId": BRIAN_ID, "status": "late"}])
    for actor in (faculty, admin):
        assert len(container.attendance_service.get_by_student(actor=actor, student_id=str(BRIAN_ID))) == 1

    with pytest.raises(ValidationError):
        container.attendance_service.get_by_student(actor=faculty, student_id="xyz")


def test_get_by_student_filters_range_and_class(container, faculty, algebra):
    other = container.class_service.create_class(actor=faculty, name="Geometry", code="GEO1")
    for day in ("2024-03-01", "2024-03-05", "2024-03-09"):
        _mark(container, faculty, algebra, [{"studentId": ALICE_ID, "status": "present"}], when=day)
    _mark(container, faculty, other, [{"studentId": ALICE_ID, "status": "late"}], when="2024-03-05")

    svc = container.attendance_service
    rows = svc.get_by_student(actor=faculty, student_id=ALICE_ID, start="2024-03-02", end="2024-03-09")
    assert [r.attend_date.day for r in rows] == [9, 5, 5]

    rows = svc.get_by_student(
        actor=faculty, student_id=ALICE_ID, start="2024-03-02", end="2024-03-09", class_id=str(algebra.class_id)
    )
    assert [r.attend_date.day for r in rows] == [9, 5]

    # One bound alone does not filter.
    assert len(svc.get_by_student(actor=faculty, student_id=ALICE_ID, start="2024-03-06")) == 4

    with pytest.raises(ValidationError):
        svc.get_by_student(actor=faculty, student_id=ALICE_ID, start="2024-03-09", end="2024-03-01")
    with pytest.raises(ValidationError):
        svc.get_by_student(actor=faculty, student_id=ALICE_ID, class_id="abc")


def test_batch_survives_ids_that_look_numeric(container, faculty, algebra):
    entries = [
        {"studentId": ALICE_ID, "status": "present"},
        {"studentId": "²"},
        {"studentId": "99999999999"},
        {"studentId": BRIAN_ID, "status": "late"},
    ]
    recs = _mark(container, faculty, algebra, entries)
    assert [r.student_id for r in recs] == [ALICE_ID, BRIAN_ID]


def test_batch_skips_remarks_longer_than_column(container, attendance_repo, faculty, algebra):
    entries = [{"studentId": ALICE_ID, "remarks": "r" * 501}, {"studentId": BRIAN_ID, "remarks": "r" * 500}]
    recs = _mark(container, faculty, algebra, entries)
    assert [r.student_id for r in recs] == [BRIAN_ID]
    assert len(attendance_repo.all()) == 1


def test_update_rejects_remarks_longer_than_column(container, faculty, algebra):
    rec = _mark(container, faculty, algebra, [{"studentId": ALICE_ID, "remarks": "ok"}])[0]
    with pytest.raises(ValidationError):
        container.attendance_service.update_record(actor=faculty, attendance_id=rec.attendance_id, remarks="r" * 501)
    assert container.attendance_repo.get_by_id(rec.attendance_id).remarks == "ok"
