from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Dict, Optional

import pandas as pd

from .cluster import (
    ClusteringResult,
    attach_cluster_labels,
    cluster_qa_report,
    elbow_sweep,
    fit_kprototypes,
    plot_elbow,
)
from .config import PropClustConfig
from .connection import describe_connection
from .generate import ID_COLUMN, generate_properties
from .impute import knn_impute
from .integrity import run_integrity
from .missing import inject_missing, missing_report
from .normalize import normalise_frame
from .summary import format_summaries, split_columns, summarise_clusters, write_summaries


@dataclass
class PipelineResult:
    generated: pd.DataFrame
    observed: pd.DataFrame
    imputed: pd.DataFrame
    normalised: pd.DataFrame
    clustering: ClusteringResult
    elbow: Optional[pd.DataFrame]
    summaries: Dict[str, pd.DataFrame]
    labelled: pd.DataFrame
    run_status: str


def _write_table(df: pd.DataFrame, name: str, config: PropClustConfig) -> None:
    path = config.output_path(name)
    df.to_parquet(path, index=False)
    logging.info("Wrote %d rows to %s", len(df), path)


def run_pipeline(config: PropClustConfig) -> PipelineResult:
    config.validate()
    config.ensure_run_id()
    describe_connection(config.database)

    generated = generate_properties(config)
    observed = inject_missing(generated, config.missing_fraction, config.random_seed + 1)
    logging.info("Missing values per column: %s", missing_report(observed))
    numeric, categorical = split_columns(observed, exclude=[ID_COLUMN])
    imputed = knn_impute(observed, numeric, categorical, n_neighbors=config.knn_neighbors)
    normalised = normalise_frame(imputed, numeric)

    elbow = None
    if config.elbow:
        elbow = elbow_sweep(
            normalised,
            numeric,
            categorical,
            max_k=config.elbow_max_k,
            n_init=config.n_init,
            seed=config.random_seed,
            max_iter=config.max_iter,
        )
    clustering = fit_kprototypes(
        normalised,
        numeric,
        categorical,
        config.n_clusters,
        n_init=config.n_init,
        seed=config.random_seed,
        max_iter=config.max_iter,
    )
    summaries = summarise_clusters(
        normalised, clustering.labels, observed, numeric, categorical, config.n_clusters
    )
    labelled = attach_cluster_labels(observed, clustering)

    if config.write_artifacts:
        _write_table(generated, "propclust_generated.parquet", config)
        _write_table(observed, "propclust_observed.parquet", config)
        _write_table(imputed, "propclust_imputed.parquet", config)
        _write_table(labelled, "propclust_labelled.parquet", config)
        if elbow is not None:
            elbow.to_csv(config.output_path("propclust_elbow.csv"), index=False)
            plot_elbow(elbow, config.output_path("propclust_elbow.png"))
        cluster_qa_report(clustering, elbow, config)
        write_summaries(summaries, config)

    run_status, _ = run_integrity(
        generated, observed, imputed, labelled, summaries, clustering, config
    )
    return PipelineResult(
        generated=generated,
        observed=observed,
        imputed=imputed,
        normalised=normalised,
        clustering=clustering,
        elbow=elbow,
        summaries=summaries,
        labelled=labelled,
        run_status=run_status,
    )


def main(argv=None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    config = PropClustConfig.from_args(argv)
    logging.info("Starting property clustering run with run_id %s", config.ensure_run_id())

    result = run_pipeline(config)
    with pd.option_context("display.max_rows", None, "display.max_columns", None, "display.width", 200):
        print(format_summaries(result.summaries))
    if result.run_status != "VALID":
        logging.warning("Integrity failed; inspect the integrity report before using the clusters.")


if __name__ == "__main__":
    main(sys.argv[1:])
