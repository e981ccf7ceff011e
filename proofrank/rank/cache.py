"""
On-disk memoization of Bayesian Bradley-Terry fits.

A fit is stored as a numpy ``.npz`` archive whose file name carries a SHA-256
key over the comparison data and the model specification. Changing either
produces a different key, so an archive is only reused for exactly the
inputs it was fitted from. Deleting the file forces a refit.
"""

import hashlib
import json
import logging
import os
from pathlib import Path

import numpy as np

from ._base import Comparisons
from .bayesian import BayesianBTResult, BayesianBTSpec, fit_bayesian_bt

logger = logging.getLogger(__name__)

CACHE_FORMAT = 1


def cache_key(comparisons: Comparisons, spec: BayesianBTSpec) -> str:
    """Deterministic hex key over comparison data and model specification."""
    digest = hashlib.sha256()
    header = {
        "format": CACHE_FORMAT,
        "items": list(comparisons.items),
        "spec": spec.to_dict(),
    }
    digest.update(json.dumps(header, sort_keys=True).encode())
    digest.update(comparisons.winner.astype("<i8").tobytes())
    digest.update(comparisons.loser.astype("<i8").tobytes())
    digest.update(json.dumps([str(j) for j in comparisons.judge]).encode())
    return digest.hexdigest()


def cache_path(cache_dir: str | Path, tag: str, key: str) -> Path:
    """Archive location for ``tag`` (for example ``study2rigour``) and ``key``."""
    if not tag or any(sep in tag for sep in ("/", "\\")):
        raise ValueError(f"tag must be a non-empty file name component, got {tag!r}")
    return Path(cache_dir) / f"{tag}-{key[:16]}.npz"


def save_result(result: BayesianBTResult, path: str | Path, key: str) -> Path:
    """Write ``result`` to ``path``; the file appears atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    try:
        with open(tmp, "wb") as fh:
            np.savez(
                fh,
                key=np.array(key),
                items=np.array(result.items, dtype=str),
                draws=result.draws,
                acceptance=result.acceptance,
                spec=np.array(json.dumps(result.spec.to_dict(), sort_keys=True)),
            )
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    return path


def load_result(path: str | Path, expected_key: str | None = None) -> BayesianBTResult:
    """
    Read a fit written by :func:`save_result`.

    Raises:
        ValueError: If the archive is missing fields or was written for a
            different key.
    """
    with np.load(Path(path), allow_pickle=False) as archive:
        missing = {"key", "items", "draws", "acceptance", "spec"} - set(archive.files)
        if missing:
            raise ValueError(f"cache archive {path} is missing {sorted(missing)}")
        key = str(archive["key"])
        if expected_key is not None and key != expected_key:
            raise ValueError(
                f"cache archive {path} was written for key {key[:16]}, "
                f"expected {expected_key[:16]}"
            )
        spec = BayesianBTSpec(**json.loads(str(archive["spec"])))
        return BayesianBTResult(
            items=tuple(str(item) for item in archive["items"]),
            draws=np.array(archive["draws"], dtype=float),
            acceptance=np.array(archive["acceptance"], dtype=float),
            spec=spec,
        )


def fit_bayesian_bt_cached(
    comparisons: Comparisons,
    spec: BayesianBTSpec | None = None,
    cache_dir: str | Path = "fittedmodels",
    tag: str = "bpc",
) -> BayesianBTResult:
    """
    Fit a Bayesian Bradley-Terry model unless a matching archive exists.

    Args:
        comparisons: Judgements to fit.
        spec: Model specification; defaults to :class:`BayesianBTSpec()`.
        cache_dir: Directory holding archives.
        tag: Human-readable prefix of the archive name, one per
            (study, dimension) pair.

    Returns:
        The cached result when ``<cache_dir>/<tag>-<key>.npz`` exists,
        otherwise a fresh fit, which is saved before returning.
    """
    spec = BayesianBTSpec() if spec is None else spec
    key = cache_key(comparisons, spec)
    path = cache_path(cache_dir, tag, key)

    if path.exists():
        logger.info("loading cached Bayesian Bradley-Terry fit from %s", path)
        return load_result(path, expected_key=key)

    logger.info("no cached fit at %s, fitting", path)
    result = fit_bayesian_bt(comparisons, spec)
    save_result(result, path, key)
    logger.info("saved Bayesian Bradley-Terry fit to %s", path)
    return result


__all__ = [
    "cache_key",
    "cache_path",
    "save_result",
    "load_result",
    "fit_bayesian_bt_cached",
]
