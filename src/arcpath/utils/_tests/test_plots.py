import matplotlib

matplotlib.use("Agg")  # Non-interactive backend for tests

import matplotlib.pyplot as plt
import numpy as np

from arcpath import (AdaptiveArcLength, RefinementConfig,
                     plot_solution_path, plot_solutions_per_level)


class _BendingCorrector:
    """Advance the load by ``L + L**2`` so that every segment is refined."""

    def __init__(self):
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
        self.load += self.length + self.length ** 2
        self._ok = True

    def converged(self):
        return self._ok

    def solution_u(self):
        return np.array([self.load, 0.5 * self.load])

    def solution_l(self):
        return self.load

    def indicator(self):
        return 1.0


def _result():
    pipeline = AdaptiveArcLength.with_default_engine(config=RefinementConfig(max_level=1))
    return pipeline.generate(_BendingCorrector(), np.array([1.0, 0.0]), base_steps=4)


def test_solutions_per_level():
    result = _result()
    fig, ax = plot_solutions_per_level(result)

    assert ax.get_title() == "Solutions per level"
    assert len(ax.get_lines()) == result.n_levels
    plt.close(fig)


def test_solution_path_marks_refinement_points(tmp_path):
    result = _result()
    filepath = tmp_path / "figures" / "solution_path.png"
    fig, ax = plot_solution_path(result, dark_mode=True, save=True, filepath=str(filepath))

    assert ax.get_title() == "Solution path"
    labels = [line.get_label() for line in ax.get_lines()]
    assert labels == ["solution", "refinement points"]
    assert len(ax.get_lines()[1].get_xdata()) == len(result.refinement_points) == 4
    assert filepath.exists()
    plt.close(fig)
