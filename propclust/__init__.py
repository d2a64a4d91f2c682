"""
Property clustering analysis package.

The modules inside this package implement a linear pipeline: synthesize a
property dataset, blank and re-impute values, cluster mixed numeric and
categorical features with K-Prototypes, and report de-normalized cluster
summaries. The public entrypoint is ``propclust.run.main``.
"""

__all__ = [
    "config",
    "connection",
    "generate",
    "missing",
    "impute",
    "normalize",
    "cluster",
    "summary",
    "integrity",
    "run",
]
