import numpy as np
import pandas as pd
import pytest

from arcpath import (AdaptiveArcLength, ConvergenceError, PreconditionError,
                     RefinementConfig, RefinementOptions)
from arcpath.algorithms.continuation.backends.refinement import \
    _AdaptiveRefinementBackend
from arcpath.algorithms.types.exceptions import BackendError, EngineError


class _LineCorrector:
    """Exact corrector for the straight path ``U = lambda * F``."""

    def __init__(self, force, fail_at=None, raise_at=None):
        self.force = np.asarray(force, dtype=float)
        self.fail_at = fail_at
        self.raise_at = raise_at
        self.calls = 0
        self.length = None
        self.load = 0.0
        self._ok = False

    def set_solution(self, point):
        self.load = point.load

    def reset_step(self):
        pass

    def set_initial_guess(self, point):
        pass

    def set_length(self, length):
        self.length = length

    def step(self):
        self.calls += 1
        if self.raise_at == self.calls:
            raise RuntimeError("assembly failed")
        self._ok = self.fail_at != self.calls
        if self._ok:
            self.load += self.length

    def converged(self):
        return self._ok

    def solution_u(self):
        return self.load * self.force

    def solution_l(self):
        return self.load

    def indicator(self):
        return -1.0


def _pipeline(**config):
    return AdaptiveArcLength.with_default_engine(config=RefinementConfig(**config))


def test_generate_end_to_end():
    force = np.array([1.0, 0.0])
    pipeline = _pipeline(max_level=2)
    result = pipeline.generate(_LineCorrector(force), force, base_length=0.5, base_steps=10)

    assert pipeline.results is result
    assert result.completed
    assert result.store.sizes() == (11, 21, 41)
    assert result.pending == ()
    assert result.corrector_calls == 70
    assert result.arc_length(2) == pytest.approx(0.125)


def test_options_object_and_keyword_overrides():
    force = np.array([0.0, 2.0])
    options = RefinementOptions(base_length=0.25, base_steps=4)
    result = _pipeline(max_level=1).generate(_LineCorrector(force), force, options, base_steps=6)

    assert result.store.sizes() == (7, 13)
    assert result.base_length == 0.25
    np.testing.assert_allclose(result.store.loads(0), 0.25 * np.arange(7))


def test_config_override():
    force = np.array([1.0])
    pipeline = _pipeline(max_level=2)

    result = pipeline.generate(_LineCorrector(force), force, override=True, max_level=1)
    assert result.store.sizes() == (11, 21)

    with pytest.raises(ValueError):
        pipeline.generate(_LineCorrector(force), force, ptol=0.1)


def test_convergence_error_propagates_with_partial_result():
    force = np.array([1.0, 0.0])
    pipeline = _pipeline()

    with pytest.raises(ConvergenceError) as excinfo:
        pipeline.generate(_LineCorrector(force, fail_at=15), force)

    assert excinfo.value.partial.store.sizes() == (11, 5)
    assert pipeline.results is None


def test_unexpected_failure_is_wrapped():
    force = np.array([1.0, 0.0])
    with pytest.raises(EngineError) as excinfo:
        _pipeline().generate(_LineCorrector(force, raise_at=3), force)

    # Points from the two successful calls stay available
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert excinfo.value.partial is excinfo.value.__cause__.partial
    assert excinfo.value.partial.store.sizes() == (3,)
    assert not excinfo.value.partial.completed


def test_rejects_objects_without_the_corrector_protocol():
    with pytest.raises(PreconditionError):
        _pipeline().generate(object(), np.array([1.0]))


def test_step_log(tmp_path):
    force = np.array([3.0, 4.0])
    log_path = tmp_path / "results" / "data.csv"
    _pipeline(max_level=1).generate(
        _LineCorrector(force), force, base_steps=4, log_path=log_path, log_precision=20,
    )

    df = pd.read_csv(log_path)
    assert list(df.columns) == ["Deformation norm", "Lambda", "Indicator"]
    # one row per corrector step: 4 coarse + 8 uniform
    assert len(df) == 12
    np.testing.assert_allclose(df["Deformation norm"], 5.0 * df["Lambda"])
    assert (df["Indicator"] == -1.0).all()


def test_result_table():
    force = np.array([1.0, 0.0])
    result = _pipeline(max_level=1).generate(_LineCorrector(force), force, base_steps=2)

    df = result.to_df()
    assert list(df.columns) == ["level", "index", "norm", "load", "error"]
    assert len(df) == len(result.path) == 3 + 5
    assert df["level"].tolist() == [0, 0, 0, 1, 1, 1, 1, 1]


def test_backend_reports_every_commit():
    accepted = []

    class _CountingBackend(_AdaptiveRefinementBackend):
        def on_accept(self, x, *, iterations, residual_norm):
            accepted.append(x)

    from arcpath.algorithms.continuation.engine.engine import \
        _RefinementEngine
    from arcpath.algorithms.continuation.interfaces import \
        _ArcLengthRefinementInterface

    interface = _ArcLengthRefinementInterface()
    engine = _RefinementEngine(backend=_CountingBackend(), interface=interface)
    pipeline = AdaptiveArcLength(RefinementConfig(max_level=1), interface, engine)

    force = np.array([1.0])
    result = pipeline.generate(_LineCorrector(force), force, base_steps=3)
    assert len(accepted) == len(result.path) == 4 + 7


def test_config_validation():
    with pytest.raises(ValueError):
        RefinementConfig(ptol=0.0)
    with pytest.raises(ValueError):
        RefinementConfig(max_level=-1)
    with pytest.raises(ValueError):
        RefinementConfig(bridge_steps=3)
    with pytest.raises(ValueError):
        RefinementConfig(recursive=True)
    with pytest.raises(ValueError):
        RefinementConfig(max_level=2, max_refinement_level=2)
    with pytest.raises(ValueError):
        RefinementConfig().merge(unknown=1)
    with pytest.raises(ValueError):
        RefinementOptions(log_precision=10)
    with pytest.raises(ValueError):
        RefinementOptions(base_steps=0)
    with pytest.raises(TypeError):
        AdaptiveArcLength.with_default_engine(config=RefinementOptions())

    config = RefinementConfig().merge(recursive=True, max_refinement_level=4)
    assert config.recursive and config.max_refinement_level == 4


def test_backend_rejects_objects_without_the_corrector_protocol():
    with pytest.raises(BackendError):
        _AdaptiveRefinementBackend().run(
            corrector=object(), ndof=1, force_norm=1.0, base_length=0.5, base_steps=2, max_level=0, ptol=0.05,
        )
