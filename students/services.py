"""
Student services: the per-student ledger boundary.

Every operation that reads and then rewrites a student's packages, classes or
bills runs inside `student_ledger(student_id)`: one transaction holding a row
lock on the student, so two mutations for the same student never interleave.
"""
import logging
from contextlib import contextmanager

from django.db import DatabaseError, transaction

from core.exceptions import NotFoundError, TransactionError
from .models import Student

logger = logging.getLogger(__name__)


def get_student(student_id):
    try:
        return Student.objects.get(pk=student_id)
    except Student.DoesNotExist:
        raise NotFoundError(f"Student {student_id} not found", student_id=student_id)


@contextmanager
def student_ledger(student_id):
    """
    Transaction + SELECT ... FOR UPDATE on the student row.
    Nested use (e.g. deduct_class inside a status change) becomes a savepoint
    under the lock already held by the outer block.
    Database failures roll back everything done in the block and surface as TransactionError.
    """
    try:
        with transaction.atomic():
            try:
                student = Student.objects.select_for_update().get(pk=student_id)
            except Student.DoesNotExist:
                raise NotFoundError(f"Student {student_id} not found", student_id=student_id)
            yield student
    except DatabaseError as e:
        logger.error(f"[student_ledger] student_id={student_id} rolled back: {e}", exc_info=True)
        raise TransactionError("Ledger update failed and was rolled back", student_id=student_id) from e
