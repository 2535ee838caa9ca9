import pandas as pd
import numpy as np
from sklearn.preprocessing import LabelEncoder


class RatingsPreprocessor:
    """Prepare explicit ratings for factor-wise MF.

    Parameters
    ----------
    ratings : pd.DataFrame
        Must contain the columns named by `user_col`, `item_col`, `rating_col`.
    min_ratings : int, default 1
        Minimum #ratings both for a user and for an item. 1 keeps everything.
    user_col, item_col, rating_col : str
        Raw column names, e.g. `user_id`, `book_id`, `rating` for goodbooks-10k.
    """

    def __init__(
        self,
        ratings: pd.DataFrame,
        *,
        min_ratings: int = 1,
        user_col: str = "user_id",
        item_col: str = "item_id",
        rating_col: str = "rating",
    ):
        missing = {user_col, item_col, rating_col} - set(ratings.columns)
        if missing:
            raise ValueError(f"Ratings are missing columns: {sorted(missing)}")

        self._raw = ratings.copy()
        self.min_ratings = min_ratings
        self.user_col = user_col
        self.item_col = item_col
        self.rating_col = rating_col

        # public artefacts filled by .process()
        self.ratings: pd.DataFrame  # filtered + encoded
        self.user_encoder = LabelEncoder()
        self.item_encoder = LabelEncoder()

    def _iterative_filter(self, df: pd.DataFrame) -> pd.DataFrame:
        """Drop users/items with < min_ratings *recursively* until stable."""
        changed = True
        while changed:
            start_len = len(df)

            user_counts = df[self.user_col].value_counts()
            df = df[df[self.user_col].isin(user_counts[user_counts >= self.min_ratings].index)]

            item_counts = df[self.item_col].value_counts()
            df = df[df[self.item_col].isin(item_counts[item_counts >= self.min_ratings].index)]

            changed = len(df) != start_len
        return df.reset_index(drop=True)

    def process(self) -> pd.DataFrame:
        """Run full pipeline → returns DataFrame with columns [user, item, rating]."""
        df = self._raw.dropna(subset=[self.user_col, self.item_col, self.rating_col])
        if self.min_ratings > 1:
            df = self._iterative_filter(df)
        else:
            df = df.reset_index(drop=True)

        if df.empty:
            raise ValueError("No ratings left after filtering.")

        # encode AFTER filtering so that indices are *dense*
        df = pd.DataFrame({
            "user": self.user_encoder.fit_transform(df[self.user_col]),
            "item": self.item_encoder.fit_transform(df[self.item_col]),
            "rating": df[self.rating_col].astype(np.float64),
        })

        self.ratings = df
        return df

    # helpers
    def num_users(self) -> int:
        return len(self.user_encoder.classes_)

    def num_items(self) -> int:
        return len(self.item_encoder.classes_)


def train_test_split(
    df: pd.DataFrame,
    *,
    test_size: float = 0.2,
    seed: int = 42,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Random holdout split of encoded ratings.

    Test ratings may reference users/items absent from the train part; the
    model falls back to its baseline for those ids beyond its matrices.
    """
    if not 0 < test_size < 1:
        raise ValueError(f"test_size must be in (0, 1), got {test_size}")

    rng = np.random.default_rng(seed)
    mask = rng.random(len(df)) < test_size
    test_df = df[mask].reset_index(drop=True)
    train_df = df[~mask].reset_index(drop=True)
    return train_df, test_df
