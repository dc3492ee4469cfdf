"""
Loaders for labelled trial tables.

Expects one row per trial, one label column and one numeric column per
channel (e.g. firing rates per unit).
"""

from typing import Any, List, Optional

import pandas as pd

from ..core.dataset import TrialSet


class TrialTableLoader:
    """
    Load a trial table from CSV or a DataFrame.

    Example:
        >>> loader = TrialTableLoader()
        >>> trials = loader.load(
        ...     csv_path="firing_rates.csv",
        ...     label_column="direction",
        ...     distinguished_class="right"
        ... )
    """

    def load(
        self,
        csv_path: str,
        label_column: str,
        channel_columns: Optional[List[str]] = None,
        distinguished_class: Any = None,
        **kwargs
    ) -> TrialSet:
        """
        Load trials from a CSV file.

        Args:
            csv_path: Path to CSV file
            label_column: Column holding the two-valued class label
            channel_columns: Channel columns (default: every numeric
                column other than the label)
            distinguished_class: Class whose probability is tracked
            **kwargs: Extra metadata

        Returns:
            TrialSet
        """
        df = pd.read_csv(csv_path)
        return self.from_frame(
            df,
            label_column=label_column,
            channel_columns=channel_columns,
            distinguished_class=distinguished_class,
            csv_path=str(csv_path),
            **kwargs
        )

    def from_frame(
        self,
        df: pd.DataFrame,
        label_column: str,
        channel_columns: Optional[List[str]] = None,
        distinguished_class: Any = None,
        **kwargs
    ) -> TrialSet:
        """
        Build trials from an in-memory DataFrame.

        Args:
            df: One row per trial
            label_column: Column holding the class label
            channel_columns: Channel columns (default: numeric columns)
            distinguished_class: Class whose probability is tracked
            **kwargs: Extra metadata

        Returns:
            TrialSet
        """
        if label_column not in df.columns:
            raise ValueError(f"Label column '{label_column}' not found")

        if channel_columns is None:
            numeric = df.select_dtypes(include="number").columns
            channel_columns = [c for c in numeric if c != label_column]
        else:
            missing = [c for c in channel_columns if c not in df.columns]
            if missing:
                raise ValueError(f"Channel columns not found: {missing}")

        if not channel_columns:
            raise ValueError("No channel columns to load")

        df = df.dropna(subset=[label_column])
        labels = df[label_column].values

        metadata = {
            "label_column": label_column,
            "n_channels": len(channel_columns),
            **kwargs
        }

        return TrialSet(
            X=df[channel_columns].to_numpy(dtype=float),
            y=labels,
            channel_names=[str(c) for c in channel_columns],
            distinguished_class=distinguished_class,
            metadata=metadata
        )
