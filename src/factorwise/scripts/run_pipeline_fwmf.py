import pandas as pd

from factorwise.config import FactorWiseMFConfig
from factorwise.data.preprocess import RatingsPreprocessor, train_test_split
from factorwise.data.ratings import RatingCollection
from factorwise.engine.metrics import evaluate_ratings
from factorwise.models.factor_wise_mf import FactorWiseMatrixFactorization
from factorwise.utils.logger import setup_logger


logger = setup_logger(__name__)


def run_pipeline(
    ratings: pd.DataFrame,
    *,
    user_col: str = "user_id",
    item_col: str = "book_id",
    rating_col: str = "rating",
    min_ratings: int = 1,
    test_size: float = 0.2,
    seed: int = 42,
    show_progress: bool = True,
    **model_kwargs,
):
    """End‑to‑end run: preprocess → split → train → evaluate.

    Parameters
    ----------
    ratings : pd.DataFrame
        DataFrame containing raw user ids, item ids and explicit ratings.
    user_col, item_col, rating_col : str, optional
        Column names in `ratings`, goodbooks-10k names by default.
    min_ratings : int, optional
        Minimum number of ratings required for users and items, by default 1 (no filtering).
    test_size : float, optional
        Fraction of ratings held out for evaluation, by default 0.2.
    seed : int, optional
        Random seed for the split and the factor initialization, by default 42.
    **model_kwargs
        Any `FactorWiseMFConfig` field, such as 'num_factors', 'shrinkage' or 'sensibility'.

    Returns
    -------
    model : FactorWiseMatrixFactorization
        Trained model.
    metrics : dict[str, float]
        Test metrics: 'RMSE', 'MAE' and 'NMAE'.
    data_objects : tuple[pd.DataFrame, pd.DataFrame, RatingsPreprocessor]
        (train_df, test_df, preprocessor) for further analysis.
    """
    prep = RatingsPreprocessor(
        ratings, min_ratings=min_ratings, user_col=user_col, item_col=item_col, rating_col=rating_col
    )
    encoded = prep.process()
    train_df, test_df = train_test_split(encoded, test_size=test_size, seed=seed)

    logger.info(
        f"Ratings: {len(encoded):,}  |  train: {len(train_df):,}  |  test: {len(test_df):,}  "
        f"|  users: {prep.num_users():,}  |  items: {prep.num_items():,}"
    )

    model_kwargs.setdefault("num_iter", model_kwargs.get("num_factors", 10))
    config = FactorWiseMFConfig(seed=seed, **model_kwargs)

    train_ratings = RatingCollection.from_dataframe(train_df)
    model = FactorWiseMatrixFactorization(train_ratings, config)
    model.train(show_progress=show_progress)

    metrics_train = evaluate_ratings(model, train_ratings)
    metrics_test = (
        evaluate_ratings(
            model,
            RatingCollection.from_dataframe(
                test_df, min_rating=train_ratings.min_rating, max_rating=train_ratings.max_rating
            ),
        )
        if len(test_df)
        else {}
    )

    logger.info("Train set Evaluation:")
    for k, v in metrics_train.items():
        logger.info(f"  {k}: {v:.4f}")

    logger.info("Test set Evaluation:")
    for k, v in metrics_test.items():
        logger.info(f"  {k}: {v:.4f}")

    return model, metrics_test, (train_df, test_df, prep)
