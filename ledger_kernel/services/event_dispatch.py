"""
LedgerEventDispatcher -- in-process, fire-and-forget ledger notifications.

Responsibility:
    Lets outer layers (notification delivery, cache warmers, projections)
    react to ``journal_entry_posted`` and ``fiscal_year_closed`` without the
    kernel knowing who listens.

Architecture position:
    Kernel > Services.  JournalWriter and PeriodService publish; nothing in
    the kernel subscribes.

Invariants enforced:
    - Each handler runs independently; an exception in one handler does not
      prevent the others from running.
    - A handler exception never reaches the publisher.
    - Services publish through publish_on_commit(): subscribers only hear
      about state their transaction actually committed.

Failure modes:
    - Handler exceptions are logged at ERROR with the traceback and
      otherwise dropped.  This is the only place in the kernel where an
      exception is caught without being re-raised.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import event as sa_event
from sqlalchemy.orm import Session, SessionTransaction

from ledger_kernel.logging_config import get_logger

logger = get_logger("services.event_dispatch")

JOURNAL_ENTRY_POSTED = "journal_entry_posted"
FISCAL_YEAR_CLOSED = "fiscal_year_closed"

_PENDING_EVENTS_KEY = "ledger_pending_events"


@dataclass(frozen=True)
class LedgerEvent:
    """A notification about a completed ledger state change."""

    name: str
    tenant_id: str
    payload: dict[str, Any] = field(default_factory=dict)


LedgerEventHandler = Callable[[LedgerEvent], None]


class LedgerEventDispatcher:
    """
    Synchronous publish/subscribe registry keyed by event name.

    Guarantees:
        - Handlers of one event run in subscription order.
        - publish() returns the number of handlers that completed without
          raising.

    Non-goals:
        - Does not persist, retry or deliver across processes.
    """

    def __init__(self) -> None:
        self._registry: dict[str, list[LedgerEventHandler]] = {}

    def subscribe(self, event_name: str, handler: LedgerEventHandler) -> None:
        self._registry.setdefault(event_name, []).append(handler)

    def unsubscribe(self, event_name: str, handler: LedgerEventHandler) -> None:
        handlers = self._registry.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: LedgerEvent) -> int:
        delivered = 0
        for handler in list(self._registry.get(event.name, ())):
            try:
                handler(event)
            except Exception:
                logger.error(
                    "ledger_event_handler_failed",
                    exc_info=True,
                    extra={
                        "event_name": event.name,
                        "handler": getattr(handler, "__qualname__", repr(handler)),
                    },
                )
                continue
            delivered += 1
        logger.debug(
            "ledger_event_published",
            extra={"event_name": event.name, "delivered": delivered},
        )
        return delivered

    def publish_on_commit(self, session: Session, event: LedgerEvent) -> None:
        """
        Deliver ``event`` once the session's outermost transaction commits.

        An outermost rollback drops it.  Handlers run after the commit, when
        the session can no longer emit SQL; they must use their own session.
        """
        session.info.setdefault(_PENDING_EVENTS_KEY, []).append((self, event))
        if not sa_event.contains(session, "after_commit", _deliver_pending_events):
            sa_event.listen(session, "after_commit", _deliver_pending_events)
            sa_event.listen(session, "after_soft_rollback", _drop_pending_events)


def _deliver_pending_events(session: Session) -> None:
    for dispatcher, event in session.info.pop(_PENDING_EVENTS_KEY, []):
        dispatcher.publish(event)


def _drop_pending_events(session: Session, previous_transaction: SessionTransaction) -> None:
    if previous_transaction.parent is not None:
        return
    dropped = session.info.pop(_PENDING_EVENTS_KEY, [])
    if dropped:
        logger.info(
            "ledger_events_dropped_on_rollback",
            extra={"event_names": [event.name for _, event in dropped]},
        )
