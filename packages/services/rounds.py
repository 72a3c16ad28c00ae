"""
Chronological redistribution of a student's classes across package rounds.

Paid rounds are history: their classes keep their package and their hours are
added to the running total once. The remaining classes are walked oldest first
by (class_date, start_time) and fill the mutable rounds in round order, each up
to its total_hours. A round is full when the next hour-counted class would push
it past capacity and it already holds at least one hour-counted class.
Classes left over are unassigned (package cleared, counter 0).

distribute_classes is pure; get_student_packages_with_classes_by_rounds persists
its reassignments under the student ledger in one transaction.
"""
import logging

from core.utils import ZERO, quantize
from lessons.models import ClassRecord
from packages.models import Package
from students.services import get_student, student_ledger

logger = logging.getLogger(__name__)

CANDIDATE_STATUSES = (
    ClassRecord.STATUS_ATTENDED,
    ClassRecord.STATUS_CANCELLED_BY_STUDENT,
    ClassRecord.STATUS_CANCELLED_BY_TEACHER,
)

SECTION_ACTIVE = "active"
SECTION_FINISHED = "finished"
SECTION_UNASSIGNED = "unassigned"
SECTION_WAITING_LIST = "waiting_list"
SECTION_PAID = "paid"


def _entry(class_record, cumulative, counter):
    counts = class_record.counts_towards_limit
    return {
        "class": class_record,
        "duration_hours": class_record.duration_hours,
        "cumulative_hours": quantize(cumulative),
        "counter": quantize(counter) if counts else ZERO,
        "counts_towards_limit": counts,
    }


def _section(name, package, entries, hours_used):
    return {
        "section": name,
        "package": package,
        "classes": entries,
        "total_classes": len(entries),
        "total_hours_used": quantize(hours_used),
    }


def _is_full(package, used_hours, counted, next_hours):
    if counted == 0:
        return False
    if package.total_hours is not None:
        return used_hours + next_hours > package.total_hours
    # DEPRECATED: legacy rounds are sized in classes
    return counted >= package.total_classes


def distribute_classes(packages, classes, waiting=()):
    """
    packages: the student's rounds; classes: candidate classes in chronological
    order; waiting: waiting-list classes in chronological order.
    Returns (sections, reassignments) where reassignments is a list of
    (class_record, new_package_id or None) for classes whose package changes.
    """
    packages = sorted(packages, key=lambda p: p.round_number)
    frozen = [p for p in packages if p.is_frozen]
    mutable = [p for p in packages if not p.is_frozen]
    frozen_ids = {p.id for p in frozen}

    counter = ZERO
    reassignments = []
    frozen_sections = []

    for package in frozen:
        used = ZERO
        entries = []
        for class_record in classes:
            if class_record.package_id != package.id:
                continue
            if class_record.counts_towards_limit:
                used += class_record.duration_hours
                counter += class_record.duration_hours
            entries.append(_entry(class_record, used, counter))
        frozen_sections.append(_section(SECTION_PAID, package, entries, used))

    pool = [c for c in classes if c.package_id not in frozen_ids]
    index = 0
    mutable_sections = []

    for package in mutable:
        used = ZERO
        counted = 0
        entries = []
        while index < len(pool):
            class_record = pool[index]
            counts = class_record.counts_towards_limit
            hours = class_record.duration_hours if counts else ZERO
            if counts and _is_full(package, used, counted, hours):
                break
            if class_record.package_id != package.id:
                reassignments.append((class_record, package.id))
            if counts:
                used += hours
                counter += hours
                counted += 1
            entries.append(_entry(class_record, used, counter))
            index += 1
        name = SECTION_ACTIVE if package.status == Package.STATUS_ACTIVE else SECTION_FINISHED
        mutable_sections.append(_section(name, package, entries, used))

    unassigned = []
    for class_record in pool[index:]:
        if class_record.package_id is not None:
            reassignments.append((class_record, None))
        unassigned.append(_entry(class_record, ZERO, ZERO))

    waiting_entries = [_entry(class_record, ZERO, ZERO) for class_record in waiting]

    sections = [s for s in mutable_sections if s["section"] == SECTION_ACTIVE]
    sections += [s for s in mutable_sections if s["section"] == SECTION_FINISHED]
    if unassigned:
        sections.append(_section(SECTION_UNASSIGNED, None, unassigned, ZERO))
    if waiting_entries:
        sections.append(_section(SECTION_WAITING_LIST, None, waiting_entries, ZERO))
    sections += frozen_sections
    return sections, reassignments


def _load(student_id):
    packages = list(Package.objects.filter(student_id=student_id).order_by("round_number"))
    classes = list(
        ClassRecord.objects.filter(student_id=student_id, status__in=CANDIDATE_STATUSES)
        .select_related("teacher")
        .order_by("class_date", "start_time", "id")
    )
    waiting = list(
        ClassRecord.objects.filter(student_id=student_id, status=ClassRecord.STATUS_WAITING_LIST)
        .select_related("teacher")
        .order_by("class_date", "start_time", "id")
    )
    return packages, classes, waiting


def plan_student_rounds(student_id):
    """Same computation as get_student_packages_with_classes_by_rounds, nothing written."""
    get_student(student_id)
    return distribute_classes(*_load(student_id))


def get_student_packages_with_classes_by_rounds(student_id):
    """
    Recompute class -> round linkage for one student and persist the changes.
    All reassignments commit together or not at all.
    """
    with student_ledger(student_id):
        sections, reassignments = distribute_classes(*_load(student_id))
        for class_record, package_id in reassignments:
            ClassRecord.objects.filter(pk=class_record.pk).update(package_id=package_id)
            class_record.package_id = package_id
    if reassignments:
        logger.info(f"[rounds] student_id={student_id} reassigned={len(reassignments)}")
    return sections
