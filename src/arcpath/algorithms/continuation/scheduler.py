"""FIFO work queue of refinement tasks and the loop that drains it."""

from collections import deque
from typing import Callable, Optional, Tuple

from arcpath.algorithms.continuation.types import RefinementTask
from arcpath.algorithms.types.exceptions import (CancelledError,
                                                 PreconditionError)
from arcpath.utils.log_config import logger


class RefinementScheduler:
    """First-in first-out queue of :class:`RefinementTask` objects.

    Tasks may be enqueued while the queue is being drained. Each task is
    handed out exactly once.
    """

    def __init__(self) -> None:
        self._queue: deque[RefinementTask] = deque()
        self._drained: list[RefinementTask] = []

    def enqueue(self, task: RefinementTask) -> None:
        if task.level <= task.source_level:
            raise PreconditionError(
                f"Task must target a level finer than its source, got {task}"
            )
        self._queue.append(task)

    def enqueue_interval(self, level: int, start: Tuple[int, int], midpoint: Tuple[int, int]) -> None:
        """Enqueue the start-point task before the midpoint task.

        Parameters
        ----------
        level : int
            Target level of both tasks.
        start : tuple of int
            ``(source_level, source_index)`` of the interval start.
        midpoint : tuple of int
            ``(source_level, source_index)`` of the interval midpoint.
        """
        self.enqueue(RefinementTask(level, *start))
        self.enqueue(RefinementTask(level, *midpoint))

    def pop(self) -> RefinementTask:
        """Remove and return the oldest task."""
        if not self._queue:
            raise PreconditionError("Cannot pop from an empty refinement queue")
        task = self._queue.popleft()
        self._drained.append(task)
        return task

    def drain(
        self,
        handler: Callable[[RefinementTask], None],
        *,
        should_stop: Optional[Callable[[], bool]] = None,
        max_tasks: Optional[int] = None,
    ) -> int:
        """Process tasks until the queue is empty.

        Parameters
        ----------
        handler : callable
            Called once per task; may enqueue further tasks.
        should_stop : callable, optional
            Checked before every task; a true value raises
            :class:`~arcpath.algorithms.types.exceptions.CancelledError`.
        max_tasks : int, optional
            Stop after this many tasks, leaving the rest pending.

        Returns
        -------
        int
            Number of tasks processed by this call.
        """
        count = 0
        while self._queue:
            if should_stop is not None and should_stop():
                raise CancelledError(
                    f"Refinement cancelled with {len(self._queue)} task(s) pending"
                )
            if max_tasks is not None and count >= max_tasks:
                logger.warning(
                    "Refinement task budget of %d reached, %d task(s) left pending",
                    max_tasks, len(self._queue),
                )
                break
            task = self.pop()
            logger.debug("Refining %s (%d left in queue)", task, len(self._queue))
            handler(task)
            count += 1
        return count

    @property
    def pending(self) -> Tuple[RefinementTask, ...]:
        return tuple(self._queue)

    @property
    def drained(self) -> Tuple[RefinementTask, ...]:
        return tuple(self._drained)

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)

    def __repr__(self) -> str:
        return f"RefinementScheduler(pending={len(self._queue)}, drained={len(self._drained)})"
