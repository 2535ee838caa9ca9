import os

import pandas as pd
from dotenv import load_dotenv

from factorwise.data.download import load_data_from_kagglehub
from factorwise.scripts.run_pipeline_fwmf import run_pipeline

load_dotenv()


if __name__ == "__main__":
    data_path = load_data_from_kagglehub("zygmunt/goodbooks-10k")
    ratings_df = pd.read_csv(data_path.joinpath("ratings.csv"))
    ratings_df_sampled = ratings_df.sample(frac=float(os.getenv("FWMF_SAMPLE_FRAC", "0.25")), random_state=42)

    model, results, _ = run_pipeline(
        ratings=ratings_df_sampled,
        user_col="user_id",
        item_col="book_id",
        min_ratings=5,
        test_size=0.2,
        seed=42,
        num_factors=10,
        shrinkage=25,
        sensibility=1e-5,
    )

    model.save_model(os.getenv("FWMF_MODEL_PATH", "fwmf-goodbooks.model"))
