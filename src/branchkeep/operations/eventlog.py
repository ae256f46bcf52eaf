"""Event log recording and replay.

Events record what the user did to commits (created, hid, unhid,
rewrote). The EventReplayer folds them in order into a per-commit
visibility state that the visibility graph consumes.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable

from branchkeep.exceptions import EventLogError
from branchkeep.models.events import CommitVisibility, Event, EventType
from branchkeep.storage.schema import EventRow

if TYPE_CHECKING:
    from branchkeep.storage.repositories import EventLogRepository

logger = logging.getLogger(__name__)


def _row_to_event(row: EventRow) -> Event:
    try:
        event_type = EventType(row.event_type)
    except ValueError:
        raise EventLogError(
            f"Unknown event type {row.event_type!r} in event {row.event_id}"
        ) from None
    return Event(
        event_id=row.event_id,
        event_type=event_type,
        timestamp=row.timestamp,
        transaction_id=row.transaction_id,
        commit_oid=row.commit_oid,
        old_oid=row.old_oid,
        new_oid=row.new_oid,
        ref_name=row.ref_name,
    )


class EventLog:
    """Writes events through an EventLogRepository."""

    def __init__(self, event_repo: EventLogRepository) -> None:
        self._repo = event_repo

    def new_transaction(self, message: str | None = None) -> int:
        return self._repo.new_transaction(message)

    def add_event(
        self,
        event_type: EventType,
        transaction_id: int,
        *,
        commit_oid: str | None = None,
        old_oid: str | None = None,
        new_oid: str | None = None,
        ref_name: str | None = None,
    ) -> Event:
        """Append one event and return it."""
        row = EventRow(
            transaction_id=transaction_id,
            event_type=event_type.value,
            commit_oid=commit_oid,
            old_oid=old_oid,
            new_oid=new_oid,
            ref_name=ref_name,
            timestamp=datetime.now(timezone.utc),
        )
        self._repo.add_event(row)
        return _row_to_event(row)

    def get_events(self) -> list[Event]:
        """Read every event in order.

        Raises EventLogError if a row cannot be interpreted.
        """
        return [_row_to_event(row) for row in self._repo.get_events()]


class EventReplayer:
    """Replays events to decide which commits are currently visible.

    Rules, applied in event order:

    - ``commit`` / ``unhide``: the commit becomes visible
    - ``hide``: the commit becomes hidden
    - ``rewrite``: ``old_oid`` becomes hidden, ``new_oid`` visible
    - ``ref_update``: no visibility change

    Commits never mentioned have no state (``None``).
    """

    def __init__(self) -> None:
        self._state: dict[str, CommitVisibility] = {}
        self._event_count = 0

    @classmethod
    def from_events(cls, events: Iterable[Event]) -> EventReplayer:
        replayer = cls()
        for event in events:
            replayer.process_event(event)
        return replayer

    @classmethod
    def from_event_log(cls, event_log: EventLog) -> EventReplayer:
        return cls.from_events(event_log.get_events())

    def process_event(self, event: Event) -> None:
        et = event.event_type
        if et in (EventType.COMMIT, EventType.UNHIDE):
            self._set(event, event.commit_oid, CommitVisibility.VISIBLE)
        elif et == EventType.HIDE:
            self._set(event, event.commit_oid, CommitVisibility.HIDDEN)
        elif et == EventType.REWRITE:
            self._set(event, event.old_oid, CommitVisibility.HIDDEN)
            self._set(event, event.new_oid, CommitVisibility.VISIBLE)
        elif et == EventType.REF_UPDATE:
            pass
        else:
            raise EventLogError(f"Cannot replay event type {et!r}")
        self._event_count += 1

    def _set(self, event: Event, oid: str | None, state: CommitVisibility) -> None:
        if oid is None:
            raise EventLogError(
                f"Event {event.event_id} ({event.event_type}) is missing a commit id"
            )
        self._state[oid] = state

    @property
    def event_count(self) -> int:
        return self._event_count

    def get_commit_visibility(self, oid: str) -> CommitVisibility | None:
        return self._state.get(oid)

    def active_commits(self) -> set[str]:
        """Commits whose latest replayed state is visible."""
        return {
            oid for oid, state in self._state.items()
            if state == CommitVisibility.VISIBLE
        }
