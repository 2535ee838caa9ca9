"""Hyperparameters of the factor-wise matrix factorization and its baseline."""
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class BaselineConfig(BaseModel):
    """Regularization of the user-item bias model (MyMediaLite defaults)."""
    reg_u: float = Field(15.0, ge=0)
    reg_i: float = Field(10.0, ge=0)
    num_iter: int = Field(10, ge=1)


class FactorWiseMFConfig(BaseModel):
    """
    Configuration of :class:`FactorWiseMatrixFactorization`.

    Attributes:
        num_factors: Number of latent factors (columns allocated per matrix).
        num_iter: How many times ``iterate()`` is called by ``train()``.
            Meant to be equal to ``num_factors``; extra rounds are no-ops.
        shrinkage: alpha in Bell et al.; discounts residuals of weakly supported pairs.
        sensibility: epsilon in Bell et al.; relative improvement below which a factor stops.
        init_mean: Mean of the normal distribution for new factor columns.
        init_stdev: Standard deviation of that distribution.
        max_sweeps: Hard cap on ALS sweeps per factor.
        raise_on_nonconvergence: Raise instead of warn when ``max_sweeps`` is hit.
        seed: Seed of the generator used for column initialization.
        min_rating: Lower clamp bound, taken from the training data when None.
        max_rating: Upper clamp bound, taken from the training data when None.
    """
    num_factors: int = Field(10, ge=0)
    num_iter: int = Field(10, ge=0)
    shrinkage: float = Field(25.0, ge=0)
    sensibility: float = Field(1e-5, gt=0, lt=1)
    init_mean: float = 0.0
    init_stdev: float = Field(0.1, ge=0)
    max_sweeps: int = Field(1000, ge=1)
    raise_on_nonconvergence: bool = False
    seed: Optional[int] = 42
    min_rating: Optional[float] = None
    max_rating: Optional[float] = None
    baseline: BaselineConfig = Field(default_factory=BaselineConfig)

    @model_validator(mode="after")
    def _check_rating_scale(self) -> "FactorWiseMFConfig":
        if self.min_rating is not None and self.max_rating is not None and self.min_rating > self.max_rating:
            raise ValueError(f"min_rating ({self.min_rating}) must not exceed max_rating ({self.max_rating})")
        return self
