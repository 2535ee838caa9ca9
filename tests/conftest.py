import numpy as np
import pandas as pd
import pytest

from factorwise.data.ratings import RatingCollection


@pytest.fixture
def small_ratings() -> RatingCollection:
    """Low-rank 1-5 star ratings: 12 users x 8 items, ~70% observed."""
    rng = np.random.default_rng(7)
    user_vec = rng.normal(0, 1, 12)
    item_vec = rng.normal(0, 1, 8)
    users, items, values = [], [], []
    for u in range(12):
        for i in range(8):
            if rng.random() < 0.7:
                users.append(u)
                items.append(i)
                values.append(float(np.clip(np.round(3 + user_vec[u] * item_vec[i] + rng.normal(0, 0.3)), 1, 5)))
    return RatingCollection(users, items, values, min_rating=1, max_rating=5)


@pytest.fixture
def raw_ratings_df() -> pd.DataFrame:
    rng = np.random.default_rng(11)
    rows = [
        {"user_id": f"u{u}", "book_id": 100 + i, "rating": int(rng.integers(1, 6))}
        for u in range(20)
        for i in range(15)
        if rng.random() < 0.6
    ]
    return pd.DataFrame(rows)
