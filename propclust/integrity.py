from __future__ import annotations

import hashlib
import json
import logging
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd

from .cluster import ClusteringResult
from .config import PropClustConfig, save_config_snapshot
from .generate import ID_COLUMN
from .missing import missing_count, missing_report


def _universe_hash(series: pd.Series) -> str:
    joined = "|".join(sorted(series.astype(str).tolist()))
    return hashlib.md5(joined.encode("utf-8")).hexdigest()


def _gate_generation(generated: pd.DataFrame, config: PropClustConfig) -> List[str]:
    failures = []
    if not (generated["parcel_area"] > 0).all():
        failures.append("Gate1: non-positive parcel area generated")
    water_floor = config.water_floor * config.min_water_multiplier
    if not (generated["avg_daily_water_consumption"] >= water_floor).all():
        failures.append("Gate1: water consumption below floor")
    return failures


def _gate_missing(observed: pd.DataFrame, imputed: pd.DataFrame, config: PropClustConfig) -> List[str]:
    failures = []
    expected = missing_count(len(observed), config.missing_fraction)
    for col, count in missing_report(observed).items():
        if col == ID_COLUMN:
            continue
        if count != expected:
            failures.append(f"Gate2: {col} has {count} missing values, expected {expected}")
    remaining = {c: n for c, n in missing_report(imputed).items() if n}
    if remaining:
        failures.append(f"Gate2: missing values survived imputation {remaining}")
    return failures


def _gate_labels(labelled: pd.DataFrame, result: ClusteringResult) -> List[str]:
    failures = []
    labels = labelled["cluster"].to_numpy()
    if len(labels) != len(result.labels) or labelled["cluster"].isna().any():
        failures.append("Gate3: not every row received a cluster label")
    if len(labels) and (labels.min() < 1 or labels.max() > result.k):
        failures.append(f"Gate3: cluster labels outside 1..{result.k}")
    return failures


def _gate_summaries(summaries: Dict[str, pd.DataFrame], result: ClusteringResult) -> List[str]:
    failures = []
    for name in result.categorical:
        table = summaries.get(name)
        if table is None:
            failures.append(f"Gate4: no summary table for {name}")
            continue
        row_sums = table.drop(columns=["cluster"]).sum(axis=1).to_numpy()
        if not np.array_equal(row_sums, result.sizes[: len(row_sums)]):
            failures.append(f"Gate4: {name} category counts do not match cluster sizes")
    return failures


def run_integrity(
    generated: pd.DataFrame,
    observed: pd.DataFrame,
    imputed: pd.DataFrame,
    labelled: pd.DataFrame,
    summaries: Dict[str, pd.DataFrame],
    result: ClusteringResult,
    config: PropClustConfig,
) -> Tuple[str, Dict[str, object]]:
    generated_hash = _universe_hash(generated[ID_COLUMN])
    hashes_match = all(
        [
            generated[ID_COLUMN].is_unique,
            generated_hash == _universe_hash(imputed[ID_COLUMN]),
            generated_hash == _universe_hash(labelled[ID_COLUMN]),
        ]
    )
    gate_failures = []
    if not hashes_match:
        gate_failures.append("Gate0: property identifiers changed between stages")
    gate_failures.extend(_gate_generation(generated, config))
    gate_failures.extend(_gate_missing(observed, imputed, config))
    gate_failures.extend(_gate_labels(labelled, result))
    gate_failures.extend(_gate_summaries(summaries, result))
    run_status = "INVALID" if gate_failures else "VALID"
    metrics = {
        "universe_hash": generated_hash,
        "hashes_match": hashes_match,
        "missing_counts": missing_report(observed),
        "cluster_sizes": [int(s) for s in result.sizes],
        "tot_withinss": result.tot_withinss,
        "gate_failures": gate_failures,
    }
    if config.write_artifacts:
        _write_reports(run_status, metrics, generated, labelled, config)
    if gate_failures:
        logging.warning("Integrity gates failed: %s", "; ".join(gate_failures))
    return run_status, metrics


def _write_reports(
    run_status: str,
    metrics: Dict[str, object],
    generated: pd.DataFrame,
    labelled: pd.DataFrame,
    config: PropClustConfig,
) -> None:
    save_config_snapshot(config)
    manifest = {
        "run_id": config.run_id,
        "output_dir": config.output_dir,
        "row_counts": {"generated": len(generated), "labelled": len(labelled)},
        "run_status": run_status,
        "metrics": metrics,
        "config": json.loads(config.to_json()),
    }
    manifest_path = config.output_path("propclust_run_manifest.json")
    manifest_path.write_text(json.dumps(manifest, indent=2))
    failures = metrics["gate_failures"]
    lines = [
        "# Integrity report",
        f"Run: {config.run_id}",
        f"Run status: {run_status}",
        f"Universe hash: {metrics['universe_hash']}",
        f"Identifiers consistent: {metrics['hashes_match']}",
        f"Total within-cluster cost: {metrics['tot_withinss']:.4f}",
        "",
        "## Troubleshooting",
        "- missing counts off -> check missing_fraction and that identifiers are excluded from injection",
        "- labels out of range -> check the clusterer was fitted on the same rows as the dataset",
        "- category counts off -> check summaries were built from the final labels, not an elbow fit",
        "",
        "## Gate failures" if failures else "## All gates passed",
    ]
    for failure in failures:
        lines.append(f"- {failure}")
    report_path = config.output_path("propclust_integrity_report.md")
    report_path.write_text("\n".join(lines))
    logging.info("Wrote integrity report to %s", report_path)
