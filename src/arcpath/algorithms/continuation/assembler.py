"""Multi-level adaptive construction of an arc-length continuation path.

The :class:`PathAssembler` owns all mutable state of a single run (level
store, error records, refinement queue and path index) and drives the
corrector through three phases:

1. coarse pass: ``base_steps`` steps of length ``base_length`` from the
   undeformed point (level 0);
2. uniform build: for every level ``l = 1..max_level``, each consecutive
   pair of level ``l - 1`` is bridged by two steps of length
   ``base_length / 2**l``; segments whose error exceeds ``ptol`` enqueue a
   start-point and a midpoint task targeting ``l + 1``;
3. refinement: the queue is drained in FIFO order, each task re-tracing one
   segment into its target level.

Every corrector call is blocking and followed by a convergence check. A
failed step aborts the run with
:class:`~arcpath.algorithms.types.exceptions.ConvergenceError`. The corrector
is stateful and not reentrant: one corrector instance must not be shared by
concurrent runs.
"""

from typing import Callable, Optional

from arcpath.algorithms.continuation.error import ErrorEstimator
from arcpath.algorithms.continuation.scheduler import RefinementScheduler
from arcpath.algorithms.continuation.store import ErrorRecords, LevelStore
from arcpath.algorithms.continuation.types import (ContinuationPoint,
                                                   ContinuationResult,
                                                   PathEntry, RefinementTask)
from arcpath.algorithms.corrector.protocols import ArcLengthCorrectorProtocol
from arcpath.algorithms.types.exceptions import (CancelledError,
                                                 ConvergenceError,
                                                 PreconditionError)
from arcpath.utils.io.pathlog import PathLogWriter
from arcpath.utils.log_config import logger

_BANNER = "-" * 84


class PathAssembler:
    """Build and adaptively refine a continuation path.

    Parameters
    ----------
    corrector : ArcLengthCorrectorProtocol
        Corrector advancing the branch by one arc-length step per call.
    ndof : int
        Number of degrees of freedom of the state vector.
    force_norm : float
        Norm of the reference load vector at lambda = 1.
    base_length : float
        Arc length of level 0.
    base_steps : int
        Number of coarse steps of level 0.
    max_level : int
        Deepest uniformly built level.
    ptol : float, default 0.05
        Tolerance on the error density.
    bridge_steps : int, default 2
        Corrector steps per bridge. Two half-length steps span one parent
        step, so any other value is rejected.
    recursive : bool, default False
        Whether a refined segment still above tolerance enqueues deeper
        refinement of itself.
    max_refinement_level : int, optional
        Deepest level recursive refinement may target.
    max_tasks : int, optional
        Budget on the number of drained tasks.
    should_stop : callable, optional
        Cooperative cancellation probe, checked between coarse and uniform
        steps and before every refinement task.
    log_writer : PathLogWriter, optional
        Receives one row per point produced by the corrector.
    on_point : callable, optional
        ``on_point(entry, point)`` is invoked after every commit.
    """

    def __init__(
        self,
        corrector: ArcLengthCorrectorProtocol,
        *,
        ndof: int,
        force_norm: float,
        base_length: float,
        base_steps: int,
        max_level: int,
        ptol: float = 0.05,
        bridge_steps: int = 2,
        recursive: bool = False,
        max_refinement_level: Optional[int] = None,
        max_tasks: Optional[int] = None,
        should_stop: Optional[Callable[[], bool]] = None,
        log_writer: Optional[PathLogWriter] = None,
        on_point: Optional[Callable[[PathEntry, ContinuationPoint], None]] = None,
    ) -> None:
        if base_length <= 0.0:
            raise ValueError("base_length must be positive")
        if base_steps <= 0:
            raise ValueError("base_steps must be positive")
        if max_level < 0:
            raise ValueError("max_level must be non-negative")
        if ptol <= 0.0:
            raise ValueError("ptol must be positive")
        if bridge_steps != 2:
            raise ValueError(
                f"bridge_steps must be 2 (two half-length steps per parent step), got {bridge_steps}"
            )
        if recursive and max_refinement_level is None:
            raise ValueError("recursive refinement requires max_refinement_level")

        self._corrector = corrector
        self._ndof = int(ndof)
        self._base_length = float(base_length)
        self._base_steps = int(base_steps)
        self._max_level = int(max_level)
        self._bridge_steps = int(bridge_steps)
        self._recursive = bool(recursive)
        self._max_refinement_level = max_refinement_level
        self._max_tasks = max_tasks
        self._should_stop = should_stop
        self._log_writer = log_writer
        self._on_point = on_point

        self._estimator = ErrorEstimator(force_norm, ptol)
        self._store = LevelStore()
        self._errors = ErrorRecords()
        self._scheduler = RefinementScheduler()
        self._path: list[PathEntry] = []
        self._refinement_points: list[PathEntry] = []
        self._calls = 0
        self._zero = ContinuationPoint.zero(self._ndof)

    @property
    def store(self) -> LevelStore:
        return self._store

    @property
    def errors(self) -> ErrorRecords:
        return self._errors

    @property
    def scheduler(self) -> RefinementScheduler:
        return self._scheduler

    @property
    def estimator(self) -> ErrorEstimator:
        return self._estimator

    @property
    def corrector_calls(self) -> int:
        return self._calls

    def arc_length(self, level: int) -> float:
        """Nominal arc length of ``level``: ``base_length / 2**level``."""
        return self._base_length / 2 ** level

    def step_count(self, level: int) -> int:
        """Nominal step count of ``level``: ``base_steps * 2**level``."""
        return self._base_steps * 2 ** level

    def run(self) -> ContinuationResult:
        """Run the coarse pass, the uniform build and the refinement pass."""
        try:
            self.coarse_pass()
            self.uniform_pass()
            self.refine()
        except (ConvergenceError, CancelledError) as exc:
            exc.partial = self.result(completed=False)
            raise
        except Exception as exc:
            exc.partial = self.result(completed=False)
            logger.error("Continuation aborted after %d corrector calls: %s", self._calls, exc)
            raise
        result = self.result()
        logger.info(
            "Continuation finished: %d corrector calls, level sizes %s, %d task(s) refined",
            self._calls, list(self._store.sizes()), len(result.drained),
        )
        return result

    def coarse_pass(self) -> None:
        """Phase 1: level 0 from the undeformed point."""
        level = 0
        length = self.arc_length(level)
        self._banner(level, length, "Coarse grid")

        self._store.ensure_level(level)
        self._commit(level, self._zero)

        self._corrector.set_solution(self._zero)
        self._corrector.reset_step()
        self._corrector.set_length(length)
        for k in range(self.step_count(level)):
            self._check_cancel(f"coarse pass, step {k}")
            logger.info("Load step %d\tdL = %g", k, length)
            point = self._advance(phase="coarse", level=level, step=k)
            self._commit(level, point, logged=True)

    def uniform_pass(self) -> None:
        """Phase 2: levels ``1..max_level`` bridged from the level above."""
        if self._store.n_levels == 0:
            raise PreconditionError("uniform_pass requires the coarse pass to run first")

        for level in range(1, self._max_level + 1):
            length = self.arc_length(level)
            self._banner(level, length, "Fine corrector")

            self._store.ensure_level(level)
            self._errors.ensure_level(level - 1)
            self._commit(level, self._zero)

            self._corrector.set_length(length)
            n_intervals = self._store.size(level - 1) - 1
            for p in range(n_intervals):
                self._check_cancel(f"uniform build of level {level}, interval {p}")
                fine = self._bridge(level - 1, p, level, length, phase="uniform")
                coarse = self._store.at(level - 1, p + 1)
                error = self._estimator.estimate(coarse, fine, length)
                self._errors.set(level - 1, p, error)

                if self._estimator.exceeds(error):
                    start = self._store.at(level - 1, p)
                    logger.info(
                        "(lvl,|U|,L) = (%d,%g,%g) has error %g", level - 1, start.norm, start.load, error
                    )
                    mid_index = self._store.size(level) - 2
                    self._mark(level + 1, (level - 1, p), (level, mid_index))
                logger.debug("Finished interval %d of level %d", p, level)

    def refine(self) -> None:
        """Phase 3: drain the refinement queue."""
        logger.debug("Refinement queue holds %d task(s)", len(self._scheduler))
        self._scheduler.drain(
            self._refine_task,
            should_stop=self._should_stop,
            max_tasks=self._max_tasks,
        )

    def result(self, completed: bool = True) -> ContinuationResult:
        """Snapshot of the current state as a :class:`ContinuationResult`."""
        return ContinuationResult(
            store=self._store,
            errors=self._errors,
            path=tuple(self._path),
            refinement_points=tuple(self._refinement_points),
            pending=self._scheduler.pending,
            drained=self._scheduler.drained,
            base_length=self._base_length,
            base_steps=self._base_steps,
            corrector_calls=self._calls,
            completed=completed,
        )

    def _refine_task(self, task: RefinementTask) -> None:
        level = task.level
        self._store.ensure_level(level)
        self._errors.ensure_level(level - 1)

        length = self.arc_length(level)
        self._corrector.set_length(length)

        seed = self._store.at(task.source_level, task.source_index)
        self._commit(level, seed)
        fine = self._bridge(task.source_level, task.source_index, level, length, phase="refine")

        coarse = self._store.at(task.source_level, task.source_index + 1)
        error = self._estimator.estimate(coarse, fine, length)
        self._errors.set(task.source_level, task.source_index, error)

        if not self._estimator.exceeds(error):
            return
        if not self._recursive:
            logger.debug("%s still has error %g, recursive refinement disabled", task, error)
            return
        if level + 1 > self._max_refinement_level:
            logger.info(
                "%s still has error %g but level %d exceeds the refinement cap %d",
                task, error, level + 1, self._max_refinement_level,
            )
            return
        logger.info("(lvl,idx) = (%d,%d) has error %g after refinement", task.source_level, task.source_index, error)
        mid_index = self._store.size(level) - 2
        self._mark(level + 1, (task.source_level, task.source_index), (level, mid_index))

    def _bridge(self, source_level: int, index: int, target_level: int, length: float, *, phase: str) -> ContinuationPoint:
        """Re-trace ``source[index] -> source[index + 1]`` into ``target_level``."""
        start = self._store.at(source_level, index)
        guess = self._store.at(source_level, index + 1)
        logger.info("Starting from (lvl,|U|,L) = (%d,%g,%g)", source_level, start.norm, start.load)

        self._corrector.set_solution(start)
        self._corrector.reset_step()
        self._corrector.set_initial_guess(guess)

        point = start
        for k in range(self._bridge_steps):
            logger.info("Load step %d\tdL = %g", k, length)
            point = self._advance(phase=phase, level=target_level, step=k)
            self._commit(target_level, point, logged=True)
        return point

    def _advance(self, *, phase: str, level: int, step: int) -> ContinuationPoint:
        self._corrector.step()
        self._calls += 1
        if not self._corrector.converged():
            msg = (
                f"Loop terminated, arc length method did not converge "
                f"({phase} phase, level {level}, step {step}, corrector call {self._calls})."
            )
            logger.error(msg)
            raise ConvergenceError(msg, phase=phase, level=level, step=step)
        return ContinuationPoint(self._corrector.solution_u(), self._corrector.solution_l())

    def _commit(self, level: int, point: ContinuationPoint, *, logged: bool = False) -> PathEntry:
        index = self._store.append(level, point)
        entry = PathEntry(level, index)
        self._path.append(entry)
        if logged and self._log_writer is not None:
            self._log_writer.append(point, self._corrector.indicator())
        if self._on_point is not None:
            self._on_point(entry, point)
        return entry

    def _mark(self, level: int, start: tuple, midpoint: tuple) -> None:
        self._refinement_points.append(PathEntry(*start))
        self._scheduler.enqueue_interval(level, start, midpoint)
        logger.info("point %d of level %d added to refinement queue", start[1], start[0])
        logger.info("point %d of level %d added to refinement queue", midpoint[1], midpoint[0])

    def _check_cancel(self, where: str) -> None:
        if self._should_stop is not None and self._should_stop():
            raise CancelledError(f"Continuation cancelled during {where}")

    def _banner(self, level: int, length: float, label: str) -> None:
        logger.info(_BANNER)
        logger.info("\t\t\tLevel %d (dL = %g) -- %s", level, length, label)
        logger.info(_BANNER)

    def __repr__(self) -> str:
        return (
            f"PathAssembler(base_length={self._base_length}, base_steps={self._base_steps}, "
            f"max_level={self._max_level}, ptol={self._estimator.ptol})"
        )
