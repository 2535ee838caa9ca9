import sys

import numpy as np
import pytest

from factorwise.engine.als import ConvergenceMonitor, compute_residuals, fit_single_factor


def test_residuals_are_shrunk_by_pair_support():
    values = np.array([4.0, 2.0, 5.0])
    predictions = np.array([3.0, 3.0, 5.0])
    support = np.array([1, 25, 100])

    residuals = compute_residuals(values, predictions, support, shrinkage=25)

    np.testing.assert_allclose(residuals, [1 / 26, -0.5, 0.0])


def test_zero_shrinkage_keeps_raw_residuals():
    residuals = compute_residuals(np.array([4.0]), np.array([3.5]), np.array([1]), shrinkage=0)
    assert residuals[0] == pytest.approx(0.5)


def test_monitor_needs_one_update_before_it_can_stop():
    monitor = ConvergenceMonitor(sensibility=1e-5)
    assert monitor.err_old == sys.float_info.max
    assert not monitor.converged

    monitor.update(1.0)
    assert not monitor.converged
    monitor.update(0.5)
    assert not monitor.converged
    monitor.update(0.5)
    assert monitor.converged


def test_monitor_stops_on_zero_error():
    monitor = ConvergenceMonitor(sensibility=1e-5)
    monitor.update(0.0)
    monitor.update(0.0)
    assert monitor.converged


def _rank_one_problem():
    rng = np.random.default_rng(3)
    true_users = rng.normal(0, 1, 6)
    true_items = rng.normal(0, 1, 5)
    users, items = np.meshgrid(np.arange(6), np.arange(5), indexing="ij")
    users, items = users.ravel(), items.ravel()
    residuals = true_users[users] * true_items[items]
    return users, items, residuals


def test_fit_single_factor_recovers_rank_one_residuals():
    users, items, residuals = _rank_one_problem()
    rng = np.random.default_rng(0)
    user_column = rng.normal(0, 0.1, 6)
    item_column = rng.normal(0, 0.1, 5)

    def fit():
        return float(np.sqrt(np.mean((residuals - user_column[users] * item_column[items]) ** 2)))

    result = fit_single_factor(users, items, residuals, user_column, item_column, fit, sensibility=1e-8)

    assert result.converged
    assert result.sweeps == len(result.fit_history)
    assert result.fit < 1e-6
    np.testing.assert_allclose(user_column[users] * item_column[items], residuals, atol=1e-5)


def test_entities_with_zero_numerator_keep_initial_value():
    users = np.array([0, 1])
    items = np.array([0, 1])
    residuals = np.array([1.0, 0.0])  # nothing to explain for user 1 / item 1
    user_column = np.array([0.2, 0.3])
    item_column = np.array([0.4, 0.7])

    fit_single_factor(users, items, residuals, user_column, item_column, lambda: 0.0)

    assert user_column[1] == 0.3
    assert item_column[1] == 0.7
    assert user_column[0] * item_column[0] == pytest.approx(1.0)


def test_sweep_limit_reports_nonconvergence():
    users, items, residuals = _rank_one_problem()
    user_column = np.full(6, 0.1)
    item_column = np.full(5, 0.1)
    fits = iter([1.0, 0.5, 0.25])

    result = fit_single_factor(
        users, items, residuals, user_column, item_column, lambda: next(fits), factor=4, max_sweeps=2
    )

    assert not result.converged
    assert result.sweeps == 2
    assert result.factor == 4
    assert result.fit_history == [1.0, 0.5]
