import numpy as np
import pytest

from arcpath.algorithms.continuation.assembler import PathAssembler
from arcpath.algorithms.continuation.types import (ContinuationPoint,
                                                   PathEntry, RefinementTask)
from arcpath.algorithms.types.exceptions import (CancelledError,
                                                 ConvergenceError)


class _QuadraticCorrector:
    """Test double advancing the load by ``L + c * L**2`` per step.

    With ``c = 0`` two half steps land exactly on one full step, so every
    segment has zero error. With ``c > 0`` the fine re-trace always falls
    short of the coarse point. The state is ``load * direction``.
    """

    def __init__(self, direction=(1.0, 0.0), c=0.0, fail_at=None):
        self.direction = np.asarray(direction, dtype=float)
        self.c = c
        self.fail_at = fail_at
        self.calls = 0
        self.length = None
        self.load = None
        self.guesses = 0
        self._ok = False

    def set_solution(self, point):
        self.load = point.load
        self._ok = False

    def reset_step(self):
        pass

    def set_initial_guess(self, point):
        self.guesses += 1

    def set_length(self, length):
        self.length = length

    def step(self):
        self.calls += 1
        if self.fail_at is not None and self.calls == self.fail_at:
            self._ok = False
            return
        self.load = self.load + self.length + self.c * self.length ** 2
        self._ok = True

    def converged(self):
        return self._ok

    def solution_u(self):
        return self.load * self.direction

    def solution_l(self):
        return self.load

    def indicator(self):
        return 1.0


def _assembler(corrector, **kwargs):
    params = dict(
        ndof=corrector.direction.size,
        force_norm=1.0,
        base_length=0.5,
        base_steps=10,
        max_level=2,
        ptol=0.05,
    )
    params.update(kwargs)
    return PathAssembler(corrector, **params)


def test_halving_law():
    asm = _assembler(_QuadraticCorrector())
    for level in range(5):
        assert asm.arc_length(level) == pytest.approx(0.5 / 2 ** level)
        assert asm.step_count(level) == 10 * 2 ** level


def test_linear_path_needs_no_refinement():
    corrector = _QuadraticCorrector()
    result = _assembler(corrector).run()

    assert result.completed
    assert result.store.sizes() == (11, 21, 41)
    assert result.pending == ()
    assert result.drained == ()
    assert result.refinement_points == ()
    assert corrector.calls == result.corrector_calls == 10 + 20 + 40

    # Every level starts from the undeformed point
    for level in range(3):
        assert result.store.at(level, 0) == ContinuationPoint.zero(2)

    # Bridge ends coincide with the coarse points, so all errors vanish
    for level in (0, 1):
        errs = result.errors.level(level, size=result.store.size(level) - 1)
        np.testing.assert_allclose(errs, 0.0)

    np.testing.assert_allclose(result.store.loads(0), 0.5 * np.arange(11))
    np.testing.assert_allclose(result.store.loads(2), 0.125 * np.arange(41))
    assert len(result.path) == 11 + 21 + 41


def test_bridge_end_lands_on_coarse_point():
    result = _assembler(_QuadraticCorrector(), max_level=1).run()
    for p in range(10):
        assert result.store.at(1, 2 * (p + 1)) == result.store.at(0, p + 1)


def test_bridges_seed_the_next_coarse_point_as_guess():
    corrector = _QuadraticCorrector()
    _assembler(corrector, max_level=1).run()
    assert corrector.guesses == 10


def test_coarse_failure_keeps_committed_points():
    corrector = _QuadraticCorrector(fail_at=4)
    asm = _assembler(corrector)

    with pytest.raises(ConvergenceError) as excinfo:
        asm.run()

    err = excinfo.value
    assert err.phase == "coarse"
    assert err.level == 0
    assert err.step == 3
    assert "did not converge" in str(err)

    partial = err.partial
    assert partial is not None
    assert not partial.completed
    assert partial.store.sizes() == (4,)
    assert asm.store.size(0) == 4
    # No further corrector call after the failure
    assert corrector.calls == 4


def test_uniform_failure_keeps_committed_points():
    corrector = _QuadraticCorrector(fail_at=12)

    with pytest.raises(ConvergenceError) as excinfo:
        _assembler(corrector).run()

    err = excinfo.value
    assert (err.phase, err.level, err.step) == ("uniform", 1, 1)
    assert err.partial.store.sizes() == (11, 2)
    assert corrector.calls == 12


def test_segments_above_tolerance_are_refined():
    corrector = _QuadraticCorrector(direction=(1.0,), c=1.0)
    result = _assembler(corrector, max_level=1).run()

    assert len(result.refinement_points) == 10
    assert result.refinement_points[0] == PathEntry(0, 0)

    assert len(result.drained) == 20
    assert result.drained[:4] == (
        RefinementTask(2, 0, 0),
        RefinementTask(2, 1, 1),
        RefinementTask(2, 0, 1),
        RefinementTask(2, 1, 3),
    )
    assert result.pending == ()

    # seed + two bridge steps per task, appended to level 2
    assert result.store.sizes() == (11, 21, 60)
    assert result.store.at(2, 0) == result.store.at(0, 0)
    assert result.store.at(2, 3) == result.store.at(1, 1)


def test_uniform_error_values():
    corrector = _QuadraticCorrector(direction=(1.0,), c=1.0)
    asm = _assembler(corrector, max_level=1)
    asm.coarse_pass()
    asm.uniform_pass()

    # coarse step 0.5 + 0.25, bridge 2 * (0.25 + 0.0625): (0.125 + 0.125) / 0.25
    np.testing.assert_allclose(asm.errors.level(0, size=10), 1.0)
    assert len(asm.scheduler) == 20


def test_refinement_overwrites_the_segment_error():
    corrector = _QuadraticCorrector(direction=(1.0,), c=1.0)
    result = _assembler(corrector, max_level=1).run()

    # Start task re-traces half the interval with L = 0.125:
    # 2 * (0.125 + 0.015625) = 0.28125 against 0.75 -> (0.46875 * 2) / 0.125
    assert result.errors.get(0, 0) == pytest.approx(7.5)


def test_recursive_refinement_is_capped():
    corrector = _QuadraticCorrector(direction=(1.0,), c=1.0)
    result = _assembler(corrector, max_level=1, recursive=True, max_refinement_level=3).run()

    levels = [task.level for task in result.drained]
    assert levels.count(2) == 20
    assert levels.count(3) == 40
    assert max(levels) == 3
    assert result.store.sizes() == (11, 21, 60, 120)


def test_task_budget_leaves_tasks_pending():
    corrector = _QuadraticCorrector(direction=(1.0,), c=1.0)
    result = _assembler(corrector, max_level=1, max_tasks=5).run()

    assert result.completed
    assert len(result.drained) == 5
    assert len(result.pending) == 15


def test_cancellation_during_coarse_pass():
    corrector = _QuadraticCorrector()
    asm = _assembler(corrector, should_stop=lambda: corrector.calls >= 5)

    with pytest.raises(CancelledError) as excinfo:
        asm.run()

    assert corrector.calls == 5
    assert excinfo.value.partial.store.sizes() == (6,)


def test_cancellation_before_refinement_task():
    corrector = _QuadraticCorrector(direction=(1.0,), c=1.0)
    # 10 coarse + 20 uniform calls, then 3 tasks of 2 calls each
    asm = _assembler(corrector, max_level=1, should_stop=lambda: corrector.calls >= 36)

    with pytest.raises(CancelledError) as excinfo:
        asm.run()

    partial = excinfo.value.partial
    assert len(partial.drained) == 3
    assert len(partial.pending) == 17


def test_points_are_reported_in_commit_order():
    seen = []
    corrector = _QuadraticCorrector()
    result = _assembler(corrector, max_level=1, on_point=lambda entry, pt: seen.append(entry)).run()
    assert tuple(seen) == result.path
    assert seen[0] == PathEntry(0, 0)
    assert seen[11] == PathEntry(1, 0)


def test_recursive_requires_a_cap():
    with pytest.raises(ValueError):
        _assembler(_QuadraticCorrector(), recursive=True)


@pytest.mark.parametrize("bridge_steps", [1, 3])
def test_bridges_must_take_two_steps(bridge_steps):
    with pytest.raises(ValueError):
        _assembler(_QuadraticCorrector(direction=(1.0,), c=1.0), base_steps=2, max_level=1, bridge_steps=bridge_steps)


@pytest.mark.parametrize("ptol", [0.0, -0.05])
def test_tolerance_must_be_positive(ptol):
    with pytest.raises(ValueError):
        _assembler(_QuadraticCorrector(), ptol=ptol)


def test_corrector_exception_keeps_committed_points():
    corrector = _QuadraticCorrector()

    def _explode():
        corrector.calls += 1
        if corrector.calls == 3:
            raise RuntimeError("assembly failed")
        corrector.load += corrector.length
        corrector._ok = True

    corrector.step = _explode

    with pytest.raises(RuntimeError) as excinfo:
        _assembler(corrector).run()

    partial = excinfo.value.partial
    assert not partial.completed
    assert partial.store.sizes() == (3,)
