"""Rating-prediction accuracy metrics."""
import numpy as np

from factorwise.data.ratings import RatingCollection
from factorwise.models.factor_wise_mf import FactorWiseMatrixFactorization


def rmse(predictions: np.ndarray, targets: np.ndarray) -> float:
    """Root mean squared error between two aligned arrays."""
    return float(np.sqrt(np.mean((np.asarray(predictions) - np.asarray(targets)) ** 2)))


def mae(predictions: np.ndarray, targets: np.ndarray) -> float:
    return float(np.mean(np.abs(np.asarray(predictions) - np.asarray(targets))))


def evaluate_ratings(
    model: FactorWiseMatrixFactorization,
    ratings: RatingCollection,
) -> dict[str, float]:
    """Compute RMSE, MAE and NMAE of *model* on *ratings*.

    NMAE is MAE normalised by the width of the model's rating scale, so that
    results on 1-5 and 0.5-5 star datasets are comparable. A degenerate scale
    (min == max) leaves it equal to MAE.
    """
    predictions = model.predict_many(ratings.users, ratings.items)
    error_mae = mae(predictions, ratings.values)
    scale = model.max_rating - model.min_rating

    return {
        "RMSE": rmse(predictions, ratings.values),
        "MAE": error_mae,
        "NMAE": error_mae / scale if scale > 0 else error_mae,
    }
