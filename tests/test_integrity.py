import json

import numpy as np

from propclust.cluster import attach_cluster_labels, fit_kprototypes
from propclust.integrity import run_integrity
from propclust.summary import summarise_clusters


def _stage(generated, observed, imputed, normalised, columns, config):
    numeric, categorical = columns
    result = fit_kprototypes(normalised, numeric, categorical, config.n_clusters, n_init=1, seed=2)
    summaries = summarise_clusters(normalised, result.labels, observed, numeric, categorical, config.n_clusters)
    labelled = attach_cluster_labels(observed, result)
    return result, summaries, labelled


def test_clean_run_is_valid(generated, observed, imputed, normalised, columns, small_config):
    result, summaries, labelled = _stage(generated, observed, imputed, normalised, columns, small_config)
    status, metrics = run_integrity(generated, observed, imputed, labelled, summaries, result, small_config)
    assert status == "VALID"
    assert metrics["gate_failures"] == []
    assert metrics["hashes_match"]


def test_leftover_missing_values_invalidate(generated, observed, imputed, normalised, columns, small_config):
    result, summaries, labelled = _stage(generated, observed, imputed, normalised, columns, small_config)
    broken = imputed.copy()
    broken.loc[0, "parcel_area"] = np.nan
    status, metrics = run_integrity(generated, observed, broken, labelled, summaries, result, small_config)
    assert status == "INVALID"
    assert any("survived imputation" in f for f in metrics["gate_failures"])


def test_bad_labels_invalidate(generated, observed, imputed, normalised, columns, small_config):
    result, summaries, labelled = _stage(generated, observed, imputed, normalised, columns, small_config)
    labelled = labelled.copy()
    labelled.loc[0, "cluster"] = small_config.n_clusters + 1
    status, metrics = run_integrity(generated, observed, imputed, labelled, summaries, result, small_config)
    assert status == "INVALID"
    assert any("Gate3" in f for f in metrics["gate_failures"])


def test_reports_written(generated, observed, imputed, normalised, columns, small_config):
    small_config.write_artifacts = True
    small_config.ensure_run_id()
    result, summaries, labelled = _stage(generated, observed, imputed, normalised, columns, small_config)
    run_integrity(generated, observed, imputed, labelled, summaries, result, small_config)
    manifest = json.loads(small_config.output_path("propclust_run_manifest.json").read_text())
    assert manifest["run_status"] == "VALID"
    assert manifest["row_counts"]["labelled"] == small_config.n_properties
    assert small_config.output_path("propclust_config_snapshot.json").exists()
    assert "All gates passed" in small_config.output_path("propclust_integrity_report.md").read_text()
