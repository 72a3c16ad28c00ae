"""
Chronological redistribution tests.
- [1h, 1h, 1h] over rounds of 2h and 5h -> 2 + 1, nothing unassigned
- paid rounds keep their classes and count once in the running total
- teacher cancellations never fill a round and show counter 0
- overflow is unassigned with package cleared; waiting list shown separately
- a failed write rolls back every reassignment of the call
"""
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.db import DatabaseError
from django.db.models.query import QuerySet
from django.test import TestCase

from core.exceptions import TransactionError
from lessons.models import ClassRecord
from packages.models import Package
from packages.services.rounds import (
    get_student_packages_with_classes_by_rounds,
    plan_student_rounds,
)
from tests.helpers import make_class, make_package, make_student, make_teacher

ATTENDED = ClassRecord.STATUS_ATTENDED


def _section(sections, name, package=None):
    for section in sections:
        if section["section"] == name and (package is None or section["package"].id == package.id):
            return section
    return None


def _ids(section):
    return [entry["class"].id for entry in section["classes"]]


class RedistributionTests(TestCase):
    def setUp(self):
        self.student = make_student()
        self.teacher = make_teacher()

    def test_three_one_hour_classes_over_two_and_five_hour_rounds(self):
        r1 = make_package(self.student, round_number=1, total_hours="2")
        r2 = make_package(self.student, round_number=2, total_hours="5", status=Package.STATUS_FINISHED)
        c1 = make_class(self.student, self.teacher, 1, status=ATTENDED)
        c2 = make_class(self.student, self.teacher, 2, status=ATTENDED)
        c3 = make_class(self.student, self.teacher, 3, status=ATTENDED)

        sections = get_student_packages_with_classes_by_rounds(self.student.id)

        self.assertEqual([s["section"] for s in sections], ["active", "finished"])
        active = _section(sections, "active", r1)
        finished = _section(sections, "finished", r2)
        self.assertEqual(_ids(active), [c1.id, c2.id])
        self.assertEqual(active["total_hours_used"], Decimal("2.00"))
        self.assertEqual(_ids(finished), [c3.id])
        self.assertEqual(finished["total_hours_used"], Decimal("1.00"))
        self.assertEqual(
            [e["counter"] for e in active["classes"] + finished["classes"]],
            [Decimal("1.00"), Decimal("2.00"), Decimal("3.00")],
        )
        self.assertIsNone(_section(sections, "unassigned"))
        for c, package in ((c1, r1), (c2, r1), (c3, r2)):
            c.refresh_from_db()
            self.assertEqual(c.package_id, package.id)

    def test_paid_rounds_are_frozen_and_counted_once(self):
        paid = make_package(self.student, round_number=1, total_hours="1", status=Package.STATUS_PAID)
        current = make_package(self.student, round_number=2, total_hours="5")
        frozen_a = make_class(self.student, self.teacher, 1, status=ATTENDED, package=paid)
        loose = make_class(self.student, self.teacher, 2, status=ATTENDED)
        frozen_b = make_class(self.student, self.teacher, 3, status=ATTENDED, package=paid)

        for _ in range(2):
            sections = get_student_packages_with_classes_by_rounds(self.student.id)
            frozen_a.refresh_from_db()
            frozen_b.refresh_from_db()
            self.assertEqual(frozen_a.package_id, paid.id)
            self.assertEqual(frozen_b.package_id, paid.id)

        self.assertEqual(sections[-1]["section"], "paid")
        self.assertEqual(_ids(sections[-1]), [frozen_a.id, frozen_b.id])
        self.assertEqual(sections[-1]["total_hours_used"], Decimal("2.00"))
        active = _section(sections, "active", current)
        self.assertEqual(_ids(active), [loose.id])
        self.assertEqual(active["classes"][0]["counter"], Decimal("3.00"))
        loose.refresh_from_db()
        self.assertEqual(loose.package_id, current.id)

    def test_second_run_has_nothing_to_reassign(self):
        make_package(self.student, round_number=1, total_hours="2")
        for day in (1, 2, 3):
            make_class(self.student, self.teacher, day, status=ATTENDED)
        get_student_packages_with_classes_by_rounds(self.student.id)
        _, reassignments = plan_student_rounds(self.student.id)
        self.assertEqual(reassignments, [])

    def test_teacher_cancellation_never_fills_a_round(self):
        r1 = make_package(self.student, round_number=1, total_hours="2")
        r2 = make_package(self.student, round_number=2, total_hours="5", status=Package.STATUS_FINISHED)
        c1 = make_class(self.student, self.teacher, 1, status=ATTENDED)
        c2 = make_class(self.student, self.teacher, 2, status=ATTENDED)
        cancelled = make_class(self.student, self.teacher, 3, status=ClassRecord.STATUS_CANCELLED_BY_TEACHER)
        c4 = make_class(self.student, self.teacher, 4, status=ATTENDED)

        sections = get_student_packages_with_classes_by_rounds(self.student.id)

        active = _section(sections, "active", r1)
        self.assertEqual(_ids(active), [c1.id, c2.id, cancelled.id])
        self.assertEqual(active["total_hours_used"], Decimal("2.00"))
        entry = active["classes"][2]
        self.assertFalse(entry["counts_towards_limit"])
        self.assertEqual(entry["counter"], Decimal("0.00"))
        self.assertEqual(_ids(_section(sections, "finished", r2)), [c4.id])

    def test_teacher_cancellation_first_does_not_count_as_holding_a_class(self):
        r1 = make_package(self.student, round_number=1, total_hours="1")
        cancelled = make_class(self.student, self.teacher, 1, status=ClassRecord.STATUS_CANCELLED_BY_TEACHER)
        long_class = make_class(self.student, self.teacher, 2, duration=120, status=ATTENDED)
        sections = get_student_packages_with_classes_by_rounds(self.student.id)
        self.assertEqual(_ids(_section(sections, "active", r1)), [cancelled.id, long_class.id])

    def test_overflow_is_unassigned_with_zero_counter(self):
        r1 = make_package(self.student, round_number=1, total_hours="1")
        c1 = make_class(self.student, self.teacher, 1, status=ATTENDED, package=r1)
        c2 = make_class(self.student, self.teacher, 2, status=ATTENDED, package=r1)

        sections = get_student_packages_with_classes_by_rounds(self.student.id)

        unassigned = _section(sections, "unassigned")
        self.assertEqual(_ids(unassigned), [c2.id])
        self.assertEqual(unassigned["classes"][0]["counter"], Decimal("0.00"))
        self.assertIsNone(unassigned["package"])
        c1.refresh_from_db()
        c2.refresh_from_db()
        self.assertEqual(c1.package_id, r1.id)
        self.assertIsNone(c2.package_id)

    def test_section_order_and_waiting_list(self):
        paid = make_package(self.student, round_number=1, total_hours="1", status=Package.STATUS_PAID)
        finished = make_package(self.student, round_number=2, total_hours="1", status=Package.STATUS_FINISHED)
        active = make_package(self.student, round_number=3, total_hours="1")
        make_class(self.student, self.teacher, 1, status=ATTENDED, package=paid)
        for day in (2, 3, 4):
            make_class(self.student, self.teacher, day, status=ATTENDED)
        waiting = make_class(self.student, self.teacher, 5, status=ClassRecord.STATUS_WAITING_LIST)

        sections = get_student_packages_with_classes_by_rounds(self.student.id)

        self.assertEqual(
            [s["section"] for s in sections],
            ["active", "finished", "unassigned", "waiting_list", "paid"],
        )
        self.assertEqual(sections[0]["package"].id, active.id)
        self.assertEqual(sections[1]["package"].id, finished.id)
        waiting_section = _section(sections, "waiting_list")
        self.assertEqual(_ids(waiting_section), [waiting.id])
        self.assertEqual(waiting_section["classes"][0]["counter"], Decimal("0.00"))

    def test_absent_and_pending_classes_are_not_redistributed(self):
        r1 = make_package(self.student, round_number=1, total_hours="5")
        absent = make_class(self.student, self.teacher, 1, status=ClassRecord.STATUS_ABSENT_STUDENT)
        pending = make_class(self.student, self.teacher, 2)
        sections = get_student_packages_with_classes_by_rounds(self.student.id)
        self.assertEqual(_ids(_section(sections, "active", r1)), [])
        absent.refresh_from_db()
        pending.refresh_from_db()
        self.assertIsNone(absent.package_id)
        self.assertIsNone(pending.package_id)

    def test_legacy_round_filled_by_class_count(self):
        legacy = make_package(self.student, round_number=1, total_hours=None, total_classes=2, remaining_classes=0,
                              status=Package.STATUS_FINISHED)
        classes = [make_class(self.student, self.teacher, day, status=ATTENDED) for day in (1, 2, 3)]
        sections = get_student_packages_with_classes_by_rounds(self.student.id)
        self.assertEqual(_ids(_section(sections, "finished", legacy)), [c.id for c in classes[:2]])
        self.assertEqual(_ids(_section(sections, "unassigned")), [classes[2].id])

    def test_plan_does_not_persist(self):
        r1 = make_package(self.student, round_number=1, total_hours="5")
        c1 = make_class(self.student, self.teacher, 1, status=ATTENDED)
        _, reassignments = plan_student_rounds(self.student.id)
        self.assertEqual([(c.id, pid) for c, pid in reassignments], [(c1.id, r1.id)])
        c1.refresh_from_db()
        self.assertIsNone(c1.package_id)

    def test_failed_write_rolls_back_all_reassignments(self):
        make_package(self.student, round_number=1, total_hours="5")
        c1 = make_class(self.student, self.teacher, 1, status=ATTENDED)
        c2 = make_class(self.student, self.teacher, 2, status=ATTENDED)
        real_update = QuerySet.update
        calls = []

        def flaky_update(qs, **kwargs):
            calls.append(kwargs)
            if len(calls) == 2:
                raise DatabaseError("connection lost")
            return real_update(qs, **kwargs)

        with patch.object(QuerySet, "update", autospec=True, side_effect=flaky_update):
            with self.assertRaises(TransactionError):
                get_student_packages_with_classes_by_rounds(self.student.id)

        c1.refresh_from_db()
        c2.refresh_from_db()
        self.assertIsNone(c1.package_id)
        self.assertIsNone(c2.package_id)


class FixPackageAssignmentsCommandTests(TestCase):
    def setUp(self):
        self.student = make_student()
        teacher = make_teacher()
        self.package = make_package(self.student, round_number=1, total_hours="5")
        self.class_record = make_class(self.student, teacher, 1, status=ATTENDED)

    def test_dry_run_reports_without_saving(self):
        out = StringIO()
        call_command("fix_package_assignments", "--dry-run", stdout=out)
        self.assertIn("would be reassigned", out.getvalue())
        self.class_record.refresh_from_db()
        self.assertIsNone(self.class_record.package_id)

    def test_applies_for_one_student(self):
        out = StringIO()
        call_command("fix_package_assignments", "--student-id", str(self.student.id), stdout=out)
        self.assertIn(f"Student {self.student.id}: 1 class(es) reassigned", out.getvalue())
        self.class_record.refresh_from_db()
        self.assertEqual(self.class_record.package_id, self.package.id)
