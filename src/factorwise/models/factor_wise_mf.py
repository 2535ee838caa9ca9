"""Module containing the factor-wise matrix factorization rating predictor."""
from enum import Enum
from pathlib import Path

import numpy as np
from tqdm.auto import tqdm

from factorwise.config import FactorWiseMFConfig
from factorwise.data.ratings import RatingCollection
from factorwise.engine.als import FactorFitResult, compute_residuals, fit_single_factor
from factorwise.models.baseline import UserItemBaseline
from factorwise.utils.logger import setup_logger
from factorwise.utils.matrix_io import read_matrix, write_matrix

logger = setup_logger(__name__)

GLOBAL_EFFECTS_SUFFIX = "-global-effects"


class FactorDimensionMismatchError(ValueError):
    """Raised when stored user and item factor matrices have different column counts."""
    pass


class ConvergenceError(RuntimeError):
    """Raised when a factor does not converge within ``max_sweeps`` (strict mode only)."""
    pass


class ModelState(str, Enum):
    UNTRAINED = "untrained"
    BASELINE_FIT = "baseline_fit"
    TRAINING = "training"
    TRAINED = "trained"
    LOADED = "loaded"


class FactorWiseMatrixFactorization:
    """
    Matrix factorization with factor-wise learning.

    Robert Bell, Yehuda Koren, Chris Volinsky: Modeling Relationships at
    Multiple Scales to Improve Accuracy of Large Recommender Systems, KDD'07.

    Latent factors are learned one at a time on top of a user-item baseline.
    Each factor is fitted by alternating least squares against the shrunken
    residuals of the model built so far, then frozen. The factor matrices are
    allocated with ``num_factors`` columns up front; only the first
    ``num_learned_factors`` columns take part in predictions.

    The model does NOT support incremental updates: new ratings require
    retraining from scratch.

    Attributes:
        ratings (RatingCollection | None): Training data.
        config (FactorWiseMFConfig): Hyperparameters.
        baseline (UserItemBaseline): Bias model the factors are learned on top of.
        user_factors (np.ndarray): (max_user_id + 1) x num_factors.
        item_factors (np.ndarray): (max_item_id + 1) x num_factors.
        fit_history (list[FactorFitResult]): One entry per learned factor.
    """

    def __init__(
        self,
        ratings: RatingCollection | None = None,
        config: FactorWiseMFConfig | None = None,
        baseline: UserItemBaseline | None = None,
    ) -> None:
        self.ratings = ratings
        self.config = config or FactorWiseMFConfig()
        self.baseline = baseline or UserItemBaseline(self.config.baseline)

        self.user_factors = np.zeros((0, self.config.num_factors))
        self.item_factors = np.zeros((0, self.config.num_factors))
        self.fit_history: list[FactorFitResult] = []
        self.state = ModelState.UNTRAINED

        self._num_learned_factors = 0
        self._rng = np.random.default_rng(self.config.seed)

    @property
    def num_learned_factors(self) -> int:
        return self._num_learned_factors

    @property
    def min_rating(self) -> float:
        if self.config.min_rating is not None:
            return self.config.min_rating
        return self.baseline.min_rating

    @property
    def max_rating(self) -> float:
        if self.config.max_rating is not None:
            return self.config.max_rating
        return self.baseline.max_rating

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train(self, show_progress: bool = True) -> None:
        """Train the baseline, then learn ``num_iter`` factors one after another."""
        ratings = self._require_ratings()

        self.user_factors = np.zeros((ratings.max_user_id + 1, self.config.num_factors))
        self.item_factors = np.zeros((ratings.max_item_id + 1, self.config.num_factors))

        self.baseline.train(ratings)
        self.state = ModelState.BASELINE_FIT

        self._num_learned_factors = 0
        self.fit_history = []
        self._rng = np.random.default_rng(self.config.seed)

        for _ in tqdm(range(self.config.num_iter), desc="Factors", unit="factor", disable=not show_progress):
            self.iterate()

        self.state = ModelState.TRAINED
        logger.info(f"Training finished: {self} | learned factors = {self._num_learned_factors}")

    def iterate(self) -> FactorFitResult | None:
        """Learn one more latent factor; does nothing once all factors are learned.

        Needs factor matrices from :meth:`train` or :meth:`load_model` with a
        row for every user and item id in the attached ratings.
        """
        if self.state is ModelState.UNTRAINED:
            raise RuntimeError("Model is untrained: call train() or load_model() before iterate().")
        if self._num_learned_factors >= self.config.num_factors:
            return None

        ratings = self._require_ratings()
        if ratings.max_user_id >= len(self.user_factors) or ratings.max_item_id >= len(self.item_factors):
            raise RuntimeError(
                f"Ratings do not fit the factor matrices: "
                f"users {ratings.max_user_id + 1} vs {len(self.user_factors)} rows, "
                f"items {ratings.max_item_id + 1} vs {len(self.item_factors)} rows"
            )
        k = self._num_learned_factors
        self.state = ModelState.TRAINING

        current = self.predict_many(ratings.users, ratings.items)
        residuals = compute_residuals(ratings.values, current, ratings.pair_support(), self.config.shrinkage)

        user_column = self.user_factors[:, k]
        item_column = self.item_factors[:, k]
        user_column[:] = self._rng.normal(self.config.init_mean, self.config.init_stdev, len(user_column))
        item_column[:] = self._rng.normal(self.config.init_mean, self.config.init_stdev, len(item_column))

        result = fit_single_factor(
            ratings.users,
            ratings.items,
            residuals,
            user_column,
            item_column,
            lambda: self._rmse(ratings, num_columns=k + 1),
            factor=k,
            sensibility=self.config.sensibility,
            max_sweeps=self.config.max_sweeps,
        )

        if not result.converged:
            message = (
                f"Factor {k + 1} did not converge within {self.config.max_sweeps} sweeps "
                f"(last fit RMSE={result.fit:.6f})"
            )
            if self.config.raise_on_nonconvergence:
                raise ConvergenceError(message)
            logger.warning(message)

        self._num_learned_factors += 1
        self.fit_history.append(result)
        logger.info(
            f"Factor {self._num_learned_factors}/{self.config.num_factors} | "
            f"sweeps={result.sweeps} | fit RMSE={result.fit:.4f}"
        )
        return result

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def can_predict(self, user_id: int, item_id: int) -> bool:
        """True when both ids have rows in the factor matrices."""
        return 0 <= user_id < len(self.user_factors) and 0 <= item_id < len(self.item_factors)

    def predict(self, user_id: int, item_id: int) -> float:
        """Predict the rating of a given user for a given item.

        Unknown users or items fall back to the baseline prediction; use
        :meth:`can_predict` to tell the two cases apart.
        """
        if not self.can_predict(user_id, item_id):
            return self.baseline.predict(user_id, item_id)

        k = self._num_learned_factors
        result = self.baseline.predict(user_id, item_id) + float(
            self.user_factors[user_id, :k] @ self.item_factors[item_id, :k]
        )
        return float(min(max(result, self.min_rating), self.max_rating))

    def predict_many(self, users, items, num_columns: int | None = None) -> np.ndarray:
        """Vectorized :meth:`predict`.

        ``num_columns`` overrides how many factor columns are used; training
        passes ``num_learned_factors + 1`` to score the factor in progress.
        """
        users = np.asarray(users, dtype=np.int64)
        items = np.asarray(items, dtype=np.int64)
        k = self._num_learned_factors if num_columns is None else num_columns

        result = self.baseline.predict_many(users, items)
        known = (
            (users >= 0) & (users < len(self.user_factors))
            & (items >= 0) & (items < len(self.item_factors))
        )
        if known.any():
            dot = np.einsum(
                "ij,ij->i",
                self.user_factors[users[known], :k],
                self.item_factors[items[known], :k],
            )
            result[known] = np.clip(result[known] + dot, self.min_rating, self.max_rating)
        return result

    def compute_fit(self) -> float:
        """RMSE of the model on its own training ratings."""
        return self._rmse(self._require_ratings())

    def _rmse(self, ratings: RatingCollection, num_columns: int | None = None) -> float:
        predictions = self.predict_many(ratings.users, ratings.items, num_columns=num_columns)
        return float(np.sqrt(np.mean((predictions - ratings.values) ** 2)))

    def _require_ratings(self) -> RatingCollection:
        if self.ratings is None:
            raise RuntimeError("No training ratings attached to the model.")
        return self.ratings

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save_model(self, path: str | Path) -> None:
        """Write ``<path>-global-effects`` (baseline) and ``<path>`` (factors)."""
        path = Path(path)
        self.baseline.save_model(f"{path}{GLOBAL_EFFECTS_SUFFIX}")

        with open(path, "w", encoding="utf-8") as writer:
            writer.write(f"{self._num_learned_factors}\n")
            write_matrix(writer, self.user_factors)
            write_matrix(writer, self.item_factors)
        logger.info(f"Model saved to {path}")

    def load_model(self, path: str | Path) -> None:
        """Load a model written by :meth:`save_model`.

        Everything is read and validated before the model is touched, so a
        failed load leaves the previous state in place.
        """
        path = Path(path)
        baseline = UserItemBaseline(self.config.baseline)
        baseline.load_model(f"{path}{GLOBAL_EFFECTS_SUFFIX}")

        with open(path, "r", encoding="utf-8") as reader:
            num_learned_factors = int(reader.readline())
            user_factors = read_matrix(reader)
            item_factors = read_matrix(reader)

        if user_factors.shape[1] != item_factors.shape[1]:
            raise FactorDimensionMismatchError(
                f"Number of user and item factors must match: "
                f"{user_factors.shape[1]} != {item_factors.shape[1]}"
            )
        if not 0 <= num_learned_factors <= user_factors.shape[1]:
            raise ValueError(
                f"Stored learned factor count {num_learned_factors} is outside "
                f"[0, {user_factors.shape[1]}]"
            )

        if self.config.num_factors != user_factors.shape[1]:
            logger.warning(f"Set num_factors to {user_factors.shape[1]}")
            self.config = self.config.model_copy(update={"num_factors": user_factors.shape[1]})

        self.baseline = baseline
        self.user_factors = user_factors
        self.item_factors = item_factors
        self._num_learned_factors = num_learned_factors
        self.state = ModelState.LOADED
        logger.info(f"Model loaded from {path} | learned factors = {num_learned_factors}")

    def __str__(self) -> str:
        c = self.config
        return (
            f"{type(self).__name__} num_factors={c.num_factors} shrinkage={c.shrinkage:g} "
            f"sensibility={c.sensibility:g} init_mean={c.init_mean:g} "
            f"init_stdev={c.init_stdev:g} num_iter={c.num_iter}"
        )
