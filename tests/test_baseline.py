import numpy as np
import pytest

from factorwise.config import BaselineConfig
from factorwise.data.ratings import RatingCollection
from factorwise.models.baseline import UserItemBaseline


def test_biases_without_regularization_fit_additive_data():
    # ratings = 3 + user effect + item effect, fully observed
    user_effect = np.array([-1.0, 0.0, 1.0])
    item_effect = np.array([0.5, -0.5])
    users, items = np.meshgrid(np.arange(3), np.arange(2), indexing="ij")
    users, items = users.ravel(), items.ravel()
    values = 3 + user_effect[users] + item_effect[items]

    baseline = UserItemBaseline(BaselineConfig(reg_u=0, reg_i=0, num_iter=20))
    baseline.train(RatingCollection(users, items, values, min_rating=1, max_rating=5))

    np.testing.assert_allclose(baseline.predict_many(users, items), values, atol=1e-9)
    assert baseline.predict(2, 0) == pytest.approx(4.5)


def test_unknown_ids_contribute_no_bias(small_ratings):
    baseline = UserItemBaseline()
    baseline.train(small_ratings)

    unknown = baseline.predict(1000, 1000)
    assert unknown == pytest.approx(np.clip(small_ratings.average, 1, 5))
    assert baseline.predict(0, 1000) == pytest.approx(baseline.global_average + baseline.user_biases[0])
    assert baseline.predict_many(np.array([1000]), np.array([-1]))[0] == pytest.approx(unknown)


def test_scalar_and_vectorized_predictions_agree(small_ratings):
    baseline = UserItemBaseline()
    baseline.train(small_ratings)
    vectorized = baseline.predict_many(small_ratings.users, small_ratings.items)
    scalar = [baseline.predict(u, i) for u, i in zip(small_ratings.users, small_ratings.items)]
    np.testing.assert_allclose(vectorized, scalar)
    assert vectorized.min() >= 1 and vectorized.max() <= 5


def test_save_and_load(tmp_path, small_ratings):
    baseline = UserItemBaseline()
    baseline.train(small_ratings)
    baseline.save_model(tmp_path / "baseline")

    loaded = UserItemBaseline()
    loaded.load_model(tmp_path / "baseline")

    assert loaded.global_average == baseline.global_average
    assert (loaded.min_rating, loaded.max_rating) == (1.0, 5.0)
    np.testing.assert_array_equal(loaded.user_biases, baseline.user_biases)
    np.testing.assert_array_equal(loaded.item_biases, baseline.item_biases)
