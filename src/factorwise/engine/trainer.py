from factorwise.config import BaselineConfig, FactorWiseMFConfig
from factorwise.data.ratings import RatingCollection
from factorwise.models.factor_wise_mf import FactorWiseMatrixFactorization
from factorwise.utils.logger import setup_logger

logger = setup_logger(__name__)


def train_factor_wise_mf(
    ratings: RatingCollection,
    *,
    num_factors: int = 10,
    num_iter: int | None = None,
    shrinkage: float = 25.0,
    sensibility: float = 1e-5,
    init_mean: float = 0.0,
    init_stdev: float = 0.1,
    max_sweeps: int = 1000,
    seed: int | None = 42,
    baseline_config: BaselineConfig | None = None,
    show_progress: bool = True,
) -> FactorWiseMatrixFactorization:
    """
    Train a factor-wise MF model on *ratings*.

    ``num_iter`` defaults to ``num_factors`` (one ``iterate()`` call per
    factor). Any extra rounds beyond the factor budget are no-ops.
    """
    config = FactorWiseMFConfig(
        num_factors=num_factors,
        num_iter=num_factors if num_iter is None else num_iter,
        shrinkage=shrinkage,
        sensibility=sensibility,
        init_mean=init_mean,
        init_stdev=init_stdev,
        max_sweeps=max_sweeps,
        seed=seed,
        baseline=baseline_config or BaselineConfig(),
    )
    logger.info(
        f"Training on {len(ratings):,} ratings | users = {ratings.max_user_id + 1:,} "
        f"| items = {ratings.max_item_id + 1:,}"
    )

    model = FactorWiseMatrixFactorization(ratings, config)
    model.train(show_progress=show_progress)

    total_sweeps = sum(result.sweeps for result in model.fit_history)
    not_converged = sum(not result.converged for result in model.fit_history)
    if not_converged:
        logger.warning(f"{not_converged} factor(s) stopped at the sweep limit")
    logger.info(f"Total ALS sweeps = {total_sweeps} | train RMSE = {model.compute_fit():.4f}")

    return model
