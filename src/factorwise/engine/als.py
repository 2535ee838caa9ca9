"""
Single-factor alternating least squares (Bell, Koren & Volinsky, KDD'07).

A new latent factor is fitted against shrunken residuals of the current model
by solving one least squares problem with a single variable per user and per
item. Every half-sweep is a map over the ratings followed by a per-entity
reduction, so its cost is O(#ratings).
"""
import sys
from dataclasses import dataclass, field
from typing import Callable

import numpy as np


def compute_residuals(
    values: np.ndarray,
    predictions: np.ndarray,
    support: np.ndarray,
    shrinkage: float,
) -> np.ndarray:
    """Shrinkage-adjusted residuals.

    r[index] = (rating - prediction) * n_ui / (n_ui + shrinkage)

    Parameters
    ----------
    values : np.ndarray
        Observed ratings.
    predictions : np.ndarray
        Current model predictions (baseline + committed factors only).
    support : np.ndarray
        n_ui per rating, see ``RatingCollection.pair_support``.
    shrinkage : float
        alpha; pairs backed by little data are pulled towards zero.
    """
    support = np.asarray(support, dtype=np.float64)
    return (values - predictions) * support / (support + shrinkage)


class ConvergenceMonitor:
    """Relative-improvement stopping test for the ALS sweeps of one factor.

    Seeded with err_old = float max and err = float max / 2, so the loop always
    runs at least one sweep before the test can pass.
    """

    def __init__(self, sensibility: float) -> None:
        self.sensibility = sensibility
        self.err_old = sys.float_info.max
        self.err = sys.float_info.max / 2

    def update(self, fit: float) -> None:
        self.err_old = self.err
        self.err = fit

    @property
    def converged(self) -> bool:
        if self.err_old == 0:
            return True
        return self.err / self.err_old >= 1 - self.sensibility


@dataclass
class FactorFitResult:
    """Outcome of fitting one factor."""
    factor: int
    sweeps: int
    fit: float
    converged: bool
    fit_history: list[float] = field(default_factory=list)


def _half_sweep(
    this_ids: np.ndarray,
    other_ids: np.ndarray,
    residuals: np.ndarray,
    this_column: np.ndarray,
    other_column: np.ndarray,
) -> None:
    """Update ``this_column`` in place holding ``other_column`` fixed."""
    other_values = other_column[other_ids]
    # all contributions are summed per entity before any division happens
    numerator = np.bincount(this_ids, weights=residuals * other_values, minlength=len(this_column))
    denominator = np.bincount(this_ids, weights=other_values * other_values, minlength=len(this_column))

    # entities with a zero numerator keep their current value
    update = numerator != 0
    this_column[update] = numerator[update] / denominator[update]


def fit_single_factor(
    users: np.ndarray,
    items: np.ndarray,
    residuals: np.ndarray,
    user_column: np.ndarray,
    item_column: np.ndarray,
    compute_fit: Callable[[], float],
    *,
    factor: int = 0,
    sensibility: float = 1e-5,
    max_sweeps: int = 1000,
) -> FactorFitResult:
    """
    Fit one user-factor column and one item-factor column to ``residuals``.

    ``user_column`` and ``item_column`` must already hold their initial values
    and are updated in place (typically column views into the factor matrices).
    ``compute_fit`` returns the training RMSE of the model including the
    columns being fitted; it is called once per sweep.

    Returns a :class:`FactorFitResult`; ``converged`` is False when
    ``max_sweeps`` was reached before the relative improvement fell below
    ``sensibility``.
    """
    monitor = ConvergenceMonitor(sensibility)
    history: list[float] = []
    sweeps = 0

    while not monitor.converged:
        if sweeps >= max_sweeps:
            break
        _half_sweep(users, items, residuals, user_column, item_column)
        _half_sweep(items, users, residuals, item_column, user_column)
        sweeps += 1

        fit = compute_fit()
        history.append(fit)
        monitor.update(fit)

    return FactorFitResult(
        factor=factor,
        sweeps=sweeps,
        fit=monitor.err,
        converged=monitor.converged,
        fit_history=history,
    )
