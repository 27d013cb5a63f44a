"""Example script: adaptive arc-length continuation of a snapping spring.

Run with
    python examples/snap_through.py
"""

import os
import sys

sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

import numpy as np

from arcpath import (AdaptiveArcLength, ArcLengthCorrector,
                     ArcLengthCorrectorConfig, RefinementConfig,
                     RefinementOptions, plot_solution_path,
                     plot_solutions_per_level)


def internal_force(u: np.ndarray) -> np.ndarray:
    # Softening spring in series with a linear one
    return np.array([
        u[0] - 1.5 * u[0] ** 2 + 0.5 * u[0] ** 3 + 0.2 * (u[0] - u[1]),
        0.2 * (u[1] - u[0]) + 2.0 * u[1],
    ])


def jacobian(u: np.ndarray) -> np.ndarray:
    return np.array([
        [1.2 - 3.0 * u[0] + 1.5 * u[0] ** 2, -0.2],
        [-0.2, 2.2],
    ])


def main() -> None:
    """Trace the snap-through of a two-spring chain and refine where the path bends.

    This example demonstrates how to use the AdaptiveArcLength facade with the
    reference Crisfield corrector, write the step log and plot the levels.
    """
    force = np.array([1.0, 0.0])
    corrector = ArcLengthCorrector(
        jacobian,
        lambda u, lam, f: internal_force(u) - lam * f,
        force,
        ArcLengthCorrectorConfig(method="crisfield", tol=1e-8, tol_u=1e-8),
    )

    options = RefinementOptions(
        base_length=0.2,
        base_steps=15,
        log_path=os.path.join("results", "snap_through.csv"),
        tracked_points=lambda u: np.array([[u[0], 0.0, 0.0], [u[1], 0.0, 0.0]]),
    )
    pipeline = AdaptiveArcLength.with_default_engine(config=RefinementConfig(ptol=0.05, max_level=2))
    result = pipeline.generate(corrector, force, options)

    print(result)
    result.to_csv(os.path.join("results", "snap_through_path.csv"))
    plot_solutions_per_level(result, save=True, filepath=os.path.join("results", "solutions_per_level.svg"))
    plot_solution_path(result, save=True, filepath=os.path.join("results", "solution_path.svg"))


if __name__ == "__main__":
    main()
