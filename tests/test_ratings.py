import numpy as np
import pandas as pd
import pytest

from factorwise.data.ratings import RatingCollection


def test_indices_and_counts():
    ratings = RatingCollection([0, 2, 0, 1], [1, 1, 0, 1], [4.0, 2.0, 5.0, 3.0])

    assert ratings.max_user_id == 2
    assert ratings.max_item_id == 1
    assert list(ratings.user_counts) == [2, 1, 1]
    assert list(ratings.item_counts) == [1, 3]
    assert [list(ix) for ix in ratings.by_user] == [[0, 2], [3], [1]]
    assert [list(ix) for ix in ratings.by_item] == [[2], [0, 1, 3]]
    assert ratings.min_rating == 2.0 and ratings.max_rating == 5.0


def test_pair_support_is_min_of_user_and_item_counts():
    ratings = RatingCollection([0, 0, 0, 1], [0, 1, 2, 0], [1.0, 2.0, 3.0, 4.0])
    # user 0 has 3 ratings, user 1 has 1; item 0 has 2, items 1 and 2 have 1
    assert list(ratings.pair_support()) == [2, 1, 1, 1]


def test_unrated_ids_get_empty_index():
    ratings = RatingCollection([3], [0], [2.5])
    assert len(ratings.by_user) == 4
    assert all(len(ix) == 0 for ix in ratings.by_user[:3])


def test_from_dataframe_and_validation():
    df = pd.DataFrame({"user": [0, 1], "item": [1, 0], "rating": [3.0, 4.0]})
    ratings = RatingCollection.from_dataframe(df, min_rating=1, max_rating=5)
    assert len(ratings) == 2
    assert ratings.max_rating == 5.0

    with pytest.raises(ValueError):
        RatingCollection.from_dataframe(df.drop(columns="rating"))
    with pytest.raises(ValueError):
        RatingCollection([0, -1], [0, 0], [1.0, 2.0])
    with pytest.raises(ValueError):
        RatingCollection([0], [0, 1], [1.0])
    with pytest.raises(ValueError):
        RatingCollection(np.array([], dtype=int), np.array([], dtype=int), np.array([]))


def test_counts_follow_rating_indices(small_ratings):
    assert list(small_ratings.user_counts) == [len(ix) for ix in small_ratings.by_user]
    assert list(small_ratings.item_counts) == [len(ix) for ix in small_ratings.by_item]
    np.testing.assert_array_equal(small_ratings.user_counts, np.bincount(small_ratings.users))
    for index in small_ratings.by_user[0]:
        assert small_ratings.users[index] == 0
