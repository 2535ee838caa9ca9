"""Rating collection used as training input by the baseline and factor models."""
from functools import cached_property
from typing import Optional

import numpy as np
import pandas as pd


class RatingCollection:
    """
    Ordered (user, item, rating) triples with per-user and per-item indices.

    Rating order is stable: position ``index`` refers to the same rating in
    ``users``, ``items`` and ``values`` and in every array derived from them
    (e.g. the residual vector during training).

    Parameters
    ----------
    users, items : array-like of int
        Dense, non-negative entity ids.
    values : array-like of float
        Observed ratings.
    min_rating, max_rating : float, optional
        Rating scale. Defaults to the observed minimum/maximum.
    """

    def __init__(
        self,
        users,
        items,
        values,
        *,
        min_rating: Optional[float] = None,
        max_rating: Optional[float] = None,
    ) -> None:
        self.users = np.asarray(users, dtype=np.int64)
        self.items = np.asarray(items, dtype=np.int64)
        self.values = np.asarray(values, dtype=np.float64)

        if not (len(self.users) == len(self.items) == len(self.values)):
            raise ValueError(
                f"users, items and values must have equal length: "
                f"{len(self.users)}, {len(self.items)}, {len(self.values)}"
            )
        if len(self.values) == 0:
            raise ValueError("Rating collection must not be empty.")
        if self.users.min() < 0 or self.items.min() < 0:
            raise ValueError("User and item ids must be non-negative.")

        self.min_rating = float(self.values.min()) if min_rating is None else float(min_rating)
        self.max_rating = float(self.values.max()) if max_rating is None else float(max_rating)
        if self.min_rating > self.max_rating:
            raise ValueError(f"min_rating ({self.min_rating}) exceeds max_rating ({self.max_rating})")

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        *,
        user_col: str = "user",
        item_col: str = "item",
        rating_col: str = "rating",
        min_rating: Optional[float] = None,
        max_rating: Optional[float] = None,
    ) -> "RatingCollection":
        """Build a collection from an already encoded DataFrame (see ``RatingsPreprocessor``)."""
        missing = {user_col, item_col, rating_col} - set(df.columns)
        if missing:
            raise ValueError(f"DataFrame is missing columns: {sorted(missing)}")
        return cls(
            df[user_col].to_numpy(),
            df[item_col].to_numpy(),
            df[rating_col].to_numpy(),
            min_rating=min_rating,
            max_rating=max_rating,
        )

    def __len__(self) -> int:
        return len(self.values)

    @property
    def max_user_id(self) -> int:
        return int(self.users.max())

    @property
    def max_item_id(self) -> int:
        return int(self.items.max())

    @property
    def average(self) -> float:
        return float(self.values.mean())

    @cached_property
    def by_user(self) -> list[np.ndarray]:
        """Rating indices per user id (empty array for ids without ratings)."""
        return _group_indices(self.users, self.max_user_id + 1)

    @cached_property
    def by_item(self) -> list[np.ndarray]:
        return _group_indices(self.items, self.max_item_id + 1)

    @cached_property
    def user_counts(self) -> np.ndarray:
        """|ratings by u| for every user id, length ``max_user_id + 1``."""
        return np.array([len(ix) for ix in self.by_user], dtype=np.int64)

    @cached_property
    def item_counts(self) -> np.ndarray:
        return np.array([len(ix) for ix in self.by_item], dtype=np.int64)

    def pair_support(self) -> np.ndarray:
        """n_ui = min(|ratings by u|, |ratings by i|) for every rating index."""
        return np.minimum(self.user_counts[self.users], self.item_counts[self.items])

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame({"user": self.users, "item": self.items, "rating": self.values})


def _group_indices(ids: np.ndarray, size: int) -> list[np.ndarray]:
    order = np.argsort(ids, kind="stable")
    bounds = np.searchsorted(ids[order], np.arange(size + 1))
    return [order[bounds[k] : bounds[k + 1]] for k in range(size)]
