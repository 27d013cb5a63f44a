"""Matplotlib projections of a continuation result.

Both figures plot the norm of the state vector against the load factor and
only read the result; they have no influence on the algorithm.
"""

import os
from typing import TYPE_CHECKING, Optional

import matplotlib.pyplot as plt
import numpy as np

from arcpath.utils.io.common import _ensure_dir
from arcpath.utils.log_config import logger

if TYPE_CHECKING:
    from arcpath.algorithms.continuation.types import ContinuationResult


def plot_solutions_per_level(
    result: "ContinuationResult",
    *,
    figsize: tuple = (8, 6),
    dark_mode: bool = False,
    save: bool = False,
    filepath: str = "solutions_per_level.svg",
):
    """Scatter the points of every level, one series per level.

    Parameters
    ----------
    result : ContinuationResult
        Result of an adaptive continuation run.
    figsize : tuple, default (8, 6)
        Figure size in inches.
    dark_mode : bool, default False
        Whether to use a dark background.
    save : bool, default False
        Whether to save the figure to ``filepath``.
    filepath : str, default "solutions_per_level.svg"
        Destination of the saved figure.

    Returns
    -------
    tuple
        ``(fig, ax)``.
    """
    fig, ax = plt.subplots(figsize=figsize)
    store = result.store
    for level in range(store.n_levels):
        if store.size(level) == 0:
            continue
        ax.plot(store.norms(level), store.loads(level), "o", label=f"level {level}")

    ax.set_xlabel("|U|")
    ax.set_ylabel(r"$\lambda$")
    ax.legend()
    _finish(fig, ax, "Solutions per level", dark_mode, save, filepath)
    return fig, ax


def plot_solution_path(
    result: "ContinuationResult",
    *,
    figsize: tuple = (8, 6),
    dark_mode: bool = False,
    save: bool = False,
    filepath: str = "solution_path.svg",
):
    """Scatter the global path index and mark the refinement start points.

    Parameters
    ----------
    result : ContinuationResult
        Result of an adaptive continuation run.
    figsize : tuple, default (8, 6)
        Figure size in inches.
    dark_mode : bool, default False
        Whether to use a dark background.
    save : bool, default False
        Whether to save the figure to ``filepath``.
    filepath : str, default "solution_path.svg"
        Destination of the saved figure.

    Returns
    -------
    tuple
        ``(fig, ax)``.
    """
    fig, ax = plt.subplots(figsize=figsize)

    pts = [pt for _, pt in result.points()]
    x = np.array([pt.norm for pt in pts], dtype=float)
    y = np.array([pt.load for pt in pts], dtype=float)
    ax.plot(x, y, "o", label="solution")

    if result.refinement_points:
        marks = [result.point(entry) for entry in result.refinement_points]
        ax.plot(
            [pt.norm for pt in marks],
            [pt.load for pt in marks],
            "x",
            markersize=9,
            label="refinement points",
        )

    ax.set_xlabel("|U|")
    ax.set_ylabel(r"$\lambda$")
    ax.legend()
    _finish(fig, ax, "Solution path", dark_mode, save, filepath)
    return fig, ax


def _finish(fig, ax, title: str, dark_mode: bool, save: bool, filepath: Optional[str]) -> None:
    if dark_mode:
        _set_dark_mode(fig, ax, title=title)
    else:
        ax.set_title(title)
        ax.grid(True, alpha=0.3)
    fig.tight_layout()
    if save and filepath:
        _ensure_dir(os.path.dirname(os.path.abspath(filepath)))
        fig.savefig(filepath)
        logger.info(f"Figure saved to {filepath}")


def _set_dark_mode(fig: plt.Figure, ax: plt.Axes, title: Optional[str] = None):
    """Apply a dark background to ``fig`` and ``ax``."""
    fig.patch.set_facecolor("black")
    ax.set_facecolor("black")
    for spine in ax.spines.values():
        spine.set_color("white")
    ax.tick_params(colors="white")
    ax.xaxis.label.set_color("white")
    ax.yaxis.label.set_color("white")
    ax.grid(True, color="gray", alpha=0.3)
    legend = ax.get_legend()
    if legend is not None:
        legend.get_frame().set_facecolor("black")
        for text in legend.get_texts():
            text.set_color("white")
    if title:
        ax.set_title(title, color="white")
