"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions     Domain-specific exceptions that map cleanly to HTTP responses.
notifications  Synchronous notification creation helper.
transactions   ``select_for_update`` + compare-and-set helpers.
access         The authorization guard (role names, operations, policy).

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidTransition
    from core.domain.notifications import NotificationService
    from core.domain.transactions import compare_and_set, lock_for_update
    from core.domain.access import Operation, require_operation
"""
