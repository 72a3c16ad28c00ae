"""
Best-effort side effects.

Ledger mutations (hours, class status, package linkage) are fatal on failure and
roll back. Side effects attached to them (payment notifications, bill creation
during a status change) go through `best_effort`: a failure is logged with the
traceback and the wrapped call returns None instead of raising.
"""
import functools
import logging

from django.db import transaction

logger = logging.getLogger(__name__)


def best_effort(label, savepoint=False):
    """
    Decorator for side effects whose failure must not reach the caller.
    savepoint=True runs the call in a nested atomic block so a database error
    inside it rolls back only the side effect, not the enclosing transaction.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                if savepoint:
                    with transaction.atomic():
                        return func(*args, **kwargs)
                return func(*args, **kwargs)
            except Exception as e:
                logger.error(f"[{label}] side effect failed, ignoring: {e}", exc_info=True)
                return None
        return wrapper
    return decorator


def after_commit(func, *args, **kwargs):
    """Run func(*args, **kwargs) once the current transaction commits (immediately in autocommit)."""
    transaction.on_commit(lambda: func(*args, **kwargs))
