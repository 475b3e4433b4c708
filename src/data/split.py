"""Train/test partitioning."""

import pandas as pd
from sklearn.model_selection import train_test_split

from src.config.constants import DEFAULT_TEST_FRACTION, LABEL_COLUMN
from src.errors import DataSourceError


def split_train_test(
    df: pd.DataFrame,
    test_fraction: float = DEFAULT_TEST_FRACTION,
    random_seed: int = None,
    stratify: bool = False,
) -> tuple:
    """Partition rows into disjoint train and test sets.

    The test set holds ``ceil(test_fraction * len(df))`` rows.

    Args:
        df: Patient rows
        test_fraction: Share of rows held out, in (0, 1)
        random_seed: Seed for the shuffle; None gives a different split per run
        stratify: Keep the label ratio equal in both sets

    Returns:
        Tuple of (train_df, test_df)
    """
    if not 0.0 < test_fraction < 1.0:
        raise DataSourceError(f"test_fraction must be in (0, 1), got {test_fraction}")

    try:
        train_df, test_df = train_test_split(
            df,
            test_size=test_fraction,
            random_state=random_seed,
            stratify=df[LABEL_COLUMN] if stratify else None,
        )
    except ValueError as e:
        raise DataSourceError(f"Cannot split {len(df)} rows: {e}") from e

    return train_df, test_df
