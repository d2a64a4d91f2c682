from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import PropClustConfig
from .normalize import de_normalise

NUMERIC_STATS = ["Min", "Q1", "Median", "Mean", "Q3", "Max"]


def cluster_names(k: int) -> List[str]:
    return [f"Cluster {i}" for i in range(1, k + 1)]


def split_columns(df: pd.DataFrame, exclude: Iterable[str] = ()) -> Tuple[List[str], List[str]]:
    excluded = set(exclude)
    numeric, categorical = [], []
    for col in df.columns:
        if col in excluded:
            continue
        if pd.api.types.is_numeric_dtype(df[col]) and not pd.api.types.is_bool_dtype(df[col]):
            numeric.append(col)
        else:
            categorical.append(col)
    return numeric, categorical


def numeric_summary(
    normalised: pd.DataFrame, labels: np.ndarray, column: str, original: pd.DataFrame, k: int
) -> pd.DataFrame:
    """Per-cluster six-number summary of ``column``, reported on the original scale.

    Statistics are taken on the normalized values and each one is mapped back
    with the min/max of ``original[column]``.
    """
    values = pd.Series(normalised[column].to_numpy(dtype=float), name=column)
    grouped = values.groupby(np.asarray(labels))
    stats = pd.DataFrame(
        {
            "Min": grouped.min(),
            "Q1": grouped.quantile(0.25),
            "Median": grouped.median(),
            "Mean": grouped.mean(),
            "Q3": grouped.quantile(0.75),
            "Max": grouped.max(),
        }
    ).reindex(range(1, k + 1))
    for stat in NUMERIC_STATS:
        stats[stat] = de_normalise(stats[stat], original[column]).to_numpy()
    stats.insert(0, "cluster", cluster_names(k))
    return stats.reset_index(drop=True)


def categorical_summary(
    features: pd.DataFrame, labels: np.ndarray, column: str, k: int
) -> pd.DataFrame:
    values = features[column]
    if isinstance(values.dtype, pd.CategoricalDtype):
        categories = list(values.cat.categories)
    else:
        categories = sorted(values.dropna().astype(str).unique().tolist())
    long = (
        pd.DataFrame({"cluster": np.asarray(labels), column: values.astype(object).to_numpy()})
        .groupby(["cluster", column])
        .size()
        .rename("count")
        .reset_index()
    )
    wide = (
        long.pivot(index="cluster", columns=column, values="count")
        .reindex(index=range(1, k + 1), columns=categories)
        .fillna(0)
        .astype(int)
    )
    wide.columns = [str(c) for c in wide.columns]
    wide.insert(0, "cluster", cluster_names(k))
    return wide.reset_index(drop=True)


def summarise_clusters(
    normalised: pd.DataFrame,
    labels: np.ndarray,
    original: pd.DataFrame,
    numeric: Sequence[str],
    categorical: Sequence[str],
    k: int,
) -> Dict[str, pd.DataFrame]:
    summaries: Dict[str, pd.DataFrame] = {}
    for col in numeric:
        summaries[col] = numeric_summary(normalised, labels, col, original, k)
    for col in categorical:
        summaries[col] = categorical_summary(normalised, labels, col, k)
    logging.info("Built cluster summaries for %d variables", len(summaries))
    return summaries


def format_summaries(summaries: Dict[str, pd.DataFrame]) -> str:
    blocks = []
    for name, table in summaries.items():
        blocks.append(f"== {name} ==")
        blocks.append(table.to_string(index=False))
        blocks.append("")
    return "\n".join(blocks)


def write_summaries(summaries: Dict[str, pd.DataFrame], config: PropClustConfig) -> None:
    lines = ["# Cluster summaries", f"Run: {config.run_id}", ""]
    for name, table in summaries.items():
        csv_path = config.output_path("summaries", f"{name}.csv")
        table.to_csv(csv_path, index=False)
        lines.append(f"## {name}")
        lines.append("```")
        lines.append(table.to_string(index=False))
        lines.append("```")
        lines.append("")
    report_path = config.output_path("propclust_cluster_summaries.md")
    report_path.write_text("\n".join(lines))
    logging.info("Wrote cluster summaries to %s", report_path)
