"""
Adapter for fitted tree ensembles explained with shap.TreeExplainer.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import numpy as np
import pandas as pd
import shap
from numpy.typing import NDArray

from ..config import LOGGER_NAME, RANDOM_STATE, TREE_MAX_ROWS, log_execution_time
from ..errors import FeatureNameError, ShapeMismatchError, UnsupportedInputError
from .base import ShapInput

logger = logging.getLogger(LOGGER_NAME)


def is_tree_model(obj: Any) -> bool:
    """
    Heuristic check for tree ensembles TreeExplainer can handle.

    Covers sklearn forests/boosting (estimators_), xgboost (get_booster) and
    lightgbm (booster_) without importing those libraries.
    """
    return any(hasattr(obj, attr) for attr in ('estimators_', 'tree_', 'get_booster', 'booster_'))


def _select_output(result: Any, output: int | None, n_dims: int) -> NDArray:
    """
    Pick one model output from TreeExplainer results.

    Classifiers yield a list with one array per class (older shap) or an
    array with a trailing class axis (newer shap).

    Args:
        result: Return value of shap_values() or shap_interaction_values()
        output: Class/output index; None selects the last one (positive class
            for binary classifiers)
        n_dims: Dimensions of a single-output result (2 for SHAP values,
            3 for interaction values)
    """
    if isinstance(result, list):
        idx = len(result) - 1 if output is None else output
        return np.asarray(result[idx])

    arr = np.asarray(result)
    if arr.ndim == n_dims:
        return arr
    if arr.ndim == n_dims + 1:
        idx = arr.shape[-1] - 1 if output is None else output
        return arr[..., idx]
    raise ShapeMismatchError(f"Unexpected TreeExplainer output shape {arr.shape}")


def _select_base_value(expected_value: Any, output: int | None) -> float:
    """Extract the baseline for the selected output from expected_value."""
    arr = np.asarray(expected_value, dtype=np.float64).reshape(-1)
    if arr.size == 1:
        return float(arr[0])
    idx = arr.size - 1 if output is None else output
    return float(arr[idx])


def from_tree_model(
    model: Any,
    X: pd.DataFrame | NDArray,
    interactions: bool = False,
    max_rows: int | None = TREE_MAX_ROWS,
    output: int | None = None,
    feature_names: Sequence[str] | None = None,
) -> ShapInput:
    """
    Explain a fitted tree ensemble with TreeSHAP.

    Args:
        model: Fitted tree model supported by shap.TreeExplainer
        X: Rows to explain (DataFrame, or array plus feature_names)
        interactions: Also compute SHAP interaction values (slower)
        max_rows: Subsample X to at most this many rows (None = all)
        output: Output/class index for multi-output models (default: last)
        feature_names: Column names when X is a plain array

    Returns:
        ShapInput of kind 'tree_model'
    """
    if isinstance(X, pd.DataFrame):
        names = list(X.columns)
    elif isinstance(X, np.ndarray):
        if feature_names is None:
            raise FeatureNameError("Pass feature_names when X is a numpy array")
        names = list(feature_names)
        X = pd.DataFrame(X, columns=names)
    else:
        raise UnsupportedInputError(
            f"X must be a pandas DataFrame or numpy array, got {type(X).__name__}"
        )

    if max_rows and len(X) > max_rows:
        # Isolated RNG, global random state stays untouched
        rng = np.random.default_rng(RANDOM_STATE)
        indices = np.sort(rng.choice(len(X), max_rows, replace=False))
        X = X.iloc[indices]
        logger.info(f"Subsampled {max_rows} rows for TreeSHAP")

    explainer = shap.TreeExplainer(model)

    with log_execution_time(
        logger, "tree_shap", level=logging.INFO,
        extra_context={"model": type(model).__name__}
    ) as metrics:
        S = _select_output(explainer.shap_values(X), output, n_dims=2)
        S_inter = None
        if interactions:
            S_inter = _select_output(explainer.shap_interaction_values(X), output, n_dims=3)
        metrics["n_rows"] = len(X)
        metrics["interactions"] = interactions

    return ShapInput(
        values=S,
        features=X,
        baseline=_select_base_value(explainer.expected_value, output),
        interactions=S_inter,
        feature_names=names,
        kind='tree_model',
    )
