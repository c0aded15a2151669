"""
core.domain.transactions — Helpers for safe state transitions.

Provides utilities around ``select_for_update`` and conditional
``UPDATE`` statements so that every service mutating a status field
follows the same concurrency-safe approach.

Design goals
------------
* State-transition reads lock the row first (``select_for_update``) so
  that two requests cannot both observe the same source status.
* The write itself is a compare-and-set: the ``UPDATE`` only matches if
  the row still carries the expected values.  On back-ends where row
  locks are unavailable (SQLite) this alone prevents a double transition.

Usage::

    from core.domain.transactions import compare_and_set, lock_for_update

    with transaction.atomic():
        report = lock_for_update(Report, report_id)
        ...
        compare_and_set(
            report,
            expected={"status": ReportStatus.PENDING_APPROVAL},
            changes={"status": ReportStatus.ASSIGNED, "assignee": staff},
        )
"""

from __future__ import annotations

from typing import Any, TypeVar

from django.db import models
from django.utils import timezone

from core.domain.exceptions import InvalidTransition, NotFound

M = TypeVar("M", bound=models.Model)


def lock_for_update(model_class: type[M], pk: Any, *, label: str | None = None) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Convenience wrapper around ``select_for_update().get(pk=pk)``
    that must be called inside an ``atomic()`` block.

    Args:
        model_class: The Django model class.
        pk:          Primary key value.
        label:       Human name used in the ``NotFound`` message
                     (defaults to the model's class name).

    Returns:
        The locked model instance.

    Raises:
        NotFound: If no row with that PK exists.
    """
    try:
        return model_class.objects.select_for_update().get(pk=pk)
    except (model_class.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"{label or model_class.__name__} not found")


def compare_and_set(
    instance: M,
    *,
    expected: dict[str, Any],
    changes: dict[str, Any],
    touch: bool = True,
) -> M:
    """
    Apply ``changes`` to ``instance`` only if its row still matches
    ``expected``.

    The check and the write happen in a single ``UPDATE ... WHERE``
    statement.  When no row matches, another transaction has moved the
    row on and ``InvalidTransition`` is raised.

    Args:
        instance: Model instance to update (its in-memory attributes are
                  updated on success).
        expected: Field → value pairs that must still hold in the DB.
        changes:  Field → value pairs to write.
        touch:    Also bump ``updated_at`` when the model has one.

    Returns:
        The same instance with ``changes`` applied.

    Raises:
        InvalidTransition: If the row no longer matches ``expected``.
    """
    model_class = type(instance)
    values = dict(changes)
    if touch and any(f.name == "updated_at" for f in model_class._meta.concrete_fields):
        values["updated_at"] = timezone.now()

    matched = (
        model_class.objects
        .filter(pk=instance.pk, **expected)
        .update(**values)
    )
    if matched != 1:
        raise InvalidTransition(
            f"{model_class.__name__} was modified concurrently; "
            f"expected {expected} no longer holds."
        )

    for field, value in values.items():
        setattr(instance, field, value)
    return instance
