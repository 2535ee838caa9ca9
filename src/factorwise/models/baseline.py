"""Module containing the user-item bias (global effects) rating predictor."""
from pathlib import Path

import numpy as np

from factorwise.config import BaselineConfig
from factorwise.data.ratings import RatingCollection
from factorwise.utils.logger import setup_logger
from factorwise.utils.matrix_io import read_vector, write_vector

logger = setup_logger(__name__)


class UserItemBaseline:
    """
    Baseline predictor: global average plus regularized user and item biases.

    r_hat(u, i) = mu + b_u + b_i, clamped to the rating scale.

    Biases are fitted by alternating closed-form updates, item biases first:

        b_i = sum_{u in R(i)} (r_ui - mu - b_u) / (reg_i + |R(i)|)
        b_u = sum_{i in R(u)} (r_ui - mu - b_i) / (reg_u + |R(u)|)

    Users or items never seen in training contribute a bias of zero.

    Attributes:
        global_average (float): mu.
        user_biases (np.ndarray): b_u indexed by user id.
        item_biases (np.ndarray): b_i indexed by item id.
    """

    def __init__(self, config: BaselineConfig | None = None) -> None:
        self.config = config or BaselineConfig()
        self.global_average = 0.0
        self.user_biases = np.zeros(0)
        self.item_biases = np.zeros(0)
        self.min_rating = -np.inf
        self.max_rating = np.inf

    def train(self, ratings: RatingCollection) -> None:
        self.global_average = ratings.average
        self.min_rating = ratings.min_rating
        self.max_rating = ratings.max_rating
        self.user_biases = np.zeros(ratings.max_user_id + 1)
        self.item_biases = np.zeros(ratings.max_item_id + 1)

        for _ in range(self.config.num_iter):
            self.item_biases = self._optimize_biases(
                ratings.items, ratings.values - self.global_average - self.user_biases[ratings.users],
                ratings.item_counts, self.config.reg_i,
            )
            self.user_biases = self._optimize_biases(
                ratings.users, ratings.values - self.global_average - self.item_biases[ratings.items],
                ratings.user_counts, self.config.reg_u,
            )

        logger.info(
            f"Baseline trained: mu={self.global_average:.4f} | "
            f"{len(self.user_biases)} user biases | {len(self.item_biases)} item biases"
        )

    @staticmethod
    def _optimize_biases(ids: np.ndarray, deviations: np.ndarray, counts: np.ndarray, reg: float) -> np.ndarray:
        sums = np.bincount(ids, weights=deviations, minlength=len(counts))
        denominator = reg + counts
        # reg == 0 and an unrated id would divide 0 by 0
        return np.divide(sums, denominator, out=np.zeros_like(sums), where=denominator > 0)

    def predict(self, user_id: int, item_id: int) -> float:
        result = self.global_average
        if 0 <= user_id < len(self.user_biases):
            result += self.user_biases[user_id]
        if 0 <= item_id < len(self.item_biases):
            result += self.item_biases[item_id]
        return float(min(max(result, self.min_rating), self.max_rating))

    def predict_many(self, users: np.ndarray, items: np.ndarray) -> np.ndarray:
        """Vectorized :meth:`predict` for aligned arrays of ids."""
        users = np.asarray(users, dtype=np.int64)
        items = np.asarray(items, dtype=np.int64)
        result = np.full(users.shape, self.global_average, dtype=np.float64)

        known_users = (users >= 0) & (users < len(self.user_biases))
        known_items = (items >= 0) & (items < len(self.item_biases))
        result[known_users] += self.user_biases[users[known_users]]
        result[known_items] += self.item_biases[items[known_items]]
        return np.clip(result, self.min_rating, self.max_rating)

    def save_model(self, path: str | Path) -> None:
        with open(path, "w", encoding="utf-8") as writer:
            writer.write(f"{format(self.global_average, '.17g')}\n")
            writer.write(f"{format(self.min_rating, '.17g')} {format(self.max_rating, '.17g')}\n")
            write_vector(writer, self.user_biases)
            write_vector(writer, self.item_biases)

    def load_model(self, path: str | Path) -> None:
        with open(path, "r", encoding="utf-8") as reader:
            global_average = float(reader.readline())
            scale = reader.readline().split()
            if len(scale) != 2:
                raise ValueError(f"Malformed rating scale line in {path}: {scale!r}")
            user_biases = read_vector(reader)
            item_biases = read_vector(reader)

        self.global_average = global_average
        self.min_rating, self.max_rating = (float(x) for x in scale)
        self.user_biases = user_biases
        self.item_biases = item_biases
