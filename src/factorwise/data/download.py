from pathlib import Path
import os
import shutil

import kagglehub

from factorwise.utils.logger import setup_logger

logger = setup_logger(__name__)


def load_data_from_kagglehub(dataset: str = "zygmunt/goodbooks-10k", dst_dir: str | None = None) -> Path:
    """Download a Kaggle dataset and copy it under *dst_dir* (cwd by default)."""
    src_path = kagglehub.dataset_download(dataset)
    dst_path = Path(dst_dir or os.getcwd()).joinpath(dataset.split("/")[-1])

    shutil.copytree(src_path, dst_path, dirs_exist_ok=True)
    logger.info(f"Kaggle Dataset: {dataset} was downloaded properly under path: {dst_path}")

    return dst_path
