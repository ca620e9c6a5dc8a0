"""Queue Manager and Deferral-Count Bridge.

Both operate directly on the LabyrinthState aggregate they are given;
persisting the aggregate is the caller's job.
"""

import logging
from typing import Optional

from labyrinth.schemas import LabyrinthState, PendingEvent

logger = logging.getLogger(__name__)


class PendingQueue:
    """FIFO of deferred loss logs awaiting reflection.

    Items are addressed by ``pending_id``. Positional removal is kept for
    callers that render the queue as a list, but it is only safe if the
    index was fetched immediately before removing.
    """

    def __init__(self, state: LabyrinthState):
        self.state = state

    def __len__(self) -> int:
        return len(self.state.pending)

    def add_pending_log(self, pending: PendingEvent) -> PendingEvent:
        """Append to the tail of the queue."""
        self.state.pending = [*self.state.pending, pending]
        logger.info(f"Deferred loss log queued: {pending.source_task!r} ({len(self.state.pending)} pending)")
        return pending

    def get_pending_logs(self) -> list[PendingEvent]:
        """Snapshot of the queue, oldest first."""
        return list(self.state.pending)

    def get(self, pending_id: str) -> Optional[PendingEvent]:
        for pending in self.state.pending:
            if pending.pending_id == pending_id:
                return pending
        return None

    def remove_pending_log(self, index: int) -> PendingEvent:
        """Remove the item at ``index``.

        Raises:
            IndexError: No item at that position
        """
        if not 0 <= index < len(self.state.pending):
            raise IndexError(f"No pending log at index {index}")
        updated = list(self.state.pending)
        removed = updated.pop(index)
        self.state.pending = updated
        return removed

    def remove_pending_log_by_id(self, pending_id: str) -> Optional[PendingEvent]:
        """Remove the item with ``pending_id``; None if it was already consumed."""
        for index, pending in enumerate(self.state.pending):
            if pending.pending_id == pending_id:
                return self.remove_pending_log(index)
        return None

    def clear(self) -> int:
        """Drop every pending item, returning how many were dropped."""
        dropped = len(self.state.pending)
        self.state.pending = []
        return dropped


class DeferralCounter:
    """Counts how often each external recurring task was deferred instead of done."""

    def __init__(self, state: LabyrinthState, threshold: int = 2):
        self.state = state
        self.threshold = threshold

    def increment(self, task_id: str) -> int:
        count = self.state.deferral_counts.get(task_id, 0) + 1
        self.state.deferral_counts[task_id] = count
        logger.debug(f"Task {task_id} deferred {count} time(s)")
        return count

    def get(self, task_id: str) -> int:
        return self.state.deferral_counts.get(task_id, 0)

    def reset(self, task_id: str) -> bool:
        """Zero the counter for ``task_id``; unknown ids are left untouched.

        The entry is kept (at 0) rather than deleted. Returns True if a
        counter existed.
        """
        if task_id not in self.state.deferral_counts:
            return False
        self.state.deferral_counts[task_id] = 0
        return True

    def should_prompt(self, task_id: str) -> bool:
        """True once a task has been deferred ``threshold`` times."""
        return self.get(task_id) >= self.threshold

    def clear(self) -> None:
        self.state.deferral_counts = {}
