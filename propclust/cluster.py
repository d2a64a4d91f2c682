from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from kmodes.kprototypes import KPrototypes
from kmodes.util.dissim import euclidean_dissim, matching_dissim
from matplotlib.figure import Figure

from .config import PropClustConfig
from .generate import ID_COLUMN


@dataclass
class ClusteringResult:
    model: KPrototypes
    labels: np.ndarray
    tot_withinss: float
    withinss: np.ndarray
    sizes: np.ndarray
    dists: np.ndarray
    prototypes: pd.DataFrame
    numeric: List[str]
    categorical: List[str]

    @property
    def k(self) -> int:
        return int(self.dists.shape[1])

    @property
    def gamma(self) -> float:
        return float(self.model.gamma)


def _check_features(features: pd.DataFrame, columns: Sequence[str], k: int) -> None:
    if k > len(features):
        raise ValueError(f"Cannot fit {k} clusters to {len(features)} rows")
    missing = features[list(columns)].isna().sum()
    missing = missing[missing > 0]
    if not missing.empty:
        raise ValueError(f"Missing values remain in clustering features: {missing.to_dict()}")


def _prototype_distances(
    xnum: np.ndarray, xcat: np.ndarray, protos_num: np.ndarray, protos_cat: np.ndarray, gamma: float
) -> np.ndarray:
    dists = np.empty((len(xnum), len(protos_num)))
    for i in range(len(xnum)):
        dists[i] = euclidean_dissim(protos_num, xnum[i]) + gamma * matching_dissim(protos_cat, xcat[i])
    return dists


def _prototypes(model: KPrototypes, numeric: List[str], categorical: List[str]) -> pd.DataFrame:
    # cluster_centroids_ stacks the numeric and categorical parts into one string array
    centroids = np.asarray(model.cluster_centroids_)
    protos = pd.DataFrame(centroids[:, : len(numeric)].astype(float), columns=numeric)
    for offset, col in enumerate(categorical):
        protos[col] = centroids[:, len(numeric) + offset].astype(object)
    return protos


def fit_kprototypes(
    features: pd.DataFrame,
    numeric: Sequence[str],
    categorical: Sequence[str],
    k: int,
    n_init: int = 10,
    seed: int = 7,
    max_iter: int = 100,
) -> ClusteringResult:
    """Fit K-Prototypes on normalized numeric plus categorical features.

    Labels are returned 1-based. ``dists`` holds every record's dissimilarity
    to every prototype, using the model's own gamma weighting.
    """
    numeric, categorical = list(numeric), list(categorical)
    columns = numeric + categorical
    _check_features(features, columns, k)
    xnum = features[numeric].to_numpy(dtype=float)
    xcat = features[categorical].astype(object).to_numpy()
    data = features[columns].to_numpy(dtype=object)

    model = KPrototypes(
        n_clusters=k,
        max_iter=max_iter,
        init="Huang",
        n_init=n_init,
        random_state=seed,
        n_jobs=1,
    )
    model.fit(data, categorical=list(range(len(numeric), len(columns))))

    raw_labels = np.asarray(model.labels_, dtype=int)
    prototypes = _prototypes(model, numeric, categorical)
    protos_num = prototypes[numeric].to_numpy(dtype=float)
    protos_cat = prototypes[categorical].astype(object).to_numpy()
    dists = _prototype_distances(xnum, xcat, protos_num, protos_cat, float(model.gamma))

    n_found = len(prototypes)
    withinss = np.array([dists[raw_labels == c, c].sum() for c in range(n_found)])
    sizes = np.bincount(raw_labels, minlength=n_found)
    prototypes.insert(0, "cluster", [f"Cluster {c + 1}" for c in range(n_found)])
    logging.info(
        "K-Prototypes k=%d: cost %.4f, gamma %.4f, sizes %s",
        k,
        float(model.cost_),
        float(model.gamma),
        sizes.tolist(),
    )
    return ClusteringResult(
        model=model,
        labels=raw_labels + 1,
        tot_withinss=float(model.cost_),
        withinss=withinss,
        sizes=sizes,
        dists=dists,
        prototypes=prototypes,
        numeric=numeric,
        categorical=categorical,
    )


def elbow_sweep(
    features: pd.DataFrame,
    numeric: Sequence[str],
    categorical: Sequence[str],
    max_k: int = 10,
    n_init: int = 10,
    seed: int = 7,
    max_iter: int = 100,
) -> pd.DataFrame:
    """Fit k=1..max_k in turn and record the total within-cluster cost."""
    rows = []
    for k in range(1, min(max_k, len(features)) + 1):
        result = fit_kprototypes(features, numeric, categorical, k, n_init=n_init, seed=seed, max_iter=max_iter)
        rows.append({"k": k, "tot_withinss": result.tot_withinss})
    return pd.DataFrame(rows)


def plot_elbow(elbow: pd.DataFrame, path) -> None:
    fig = Figure(figsize=(7, 4))
    ax = fig.add_subplot(1, 1, 1)
    ax.plot(elbow["k"], elbow["tot_withinss"], "o-")
    ax.set_xlabel("Number of clusters (k)")
    ax.set_ylabel("Total within-cluster cost")
    ax.set_title("K-Prototypes elbow")
    ax.set_xticks(elbow["k"].tolist())
    ax.grid(True)
    fig.tight_layout()
    fig.savefig(path)
    logging.info("Wrote elbow plot to %s", path)


def attach_cluster_labels(original: pd.DataFrame, result: ClusteringResult) -> pd.DataFrame:
    """Add the integer cluster label next to the identifier of each row."""
    if len(original) != len(result.labels):
        raise ValueError(
            f"Label count {len(result.labels)} does not match dataset rows {len(original)}"
        )
    labelled = original.copy()
    labelled.insert(labelled.columns.get_loc(ID_COLUMN) + 1, "cluster", result.labels)
    return labelled


def cluster_qa_report(
    result: ClusteringResult, elbow: Optional[pd.DataFrame], config: PropClustConfig
) -> None:
    lines = [
        "# Cluster QA report",
        f"Run: {config.run_id}",
        f"Clusters: {result.k}",
        f"Total within-cluster cost: {result.tot_withinss:.4f}",
        f"Gamma (categorical weight): {result.gamma:.4f}",
        "",
        "## Clusters",
    ]
    for idx, (size, within) in enumerate(zip(result.sizes, result.withinss), start=1):
        lines.append(f"- Cluster {idx}: size {int(size)}, within cost {within:.4f}")
    if (result.sizes == 0).any():
        lines.append("\nEmpty clusters detected.")
    if elbow is not None:
        lines.append("\n## Elbow sweep (diagnostic only)")
        for _, row in elbow.iterrows():
            lines.append(f"- k={int(row['k'])}: {row['tot_withinss']:.4f}")
    report_path = config.output_path("propclust_cluster_qa_report.md")
    report_path.write_text("\n".join(lines))
    logging.info("Wrote cluster QA report to %s", report_path)
