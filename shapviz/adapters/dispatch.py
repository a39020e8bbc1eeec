"""
Single entry point mapping any supported input onto a Shapviz object.

Supports four input kinds:
1. 'matrix': DataFrame or 2D array of SHAP values plus a feature table
2. 'explanation': shap.Explanation
3. 'explainer_output': mapping with 'S', 'X' (and optional 'baseline', 'S_inter')
4. 'tree_model': fitted tree ensemble plus the rows to explain

Anything else is rejected; the constructor never sees library-specific objects.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Callable

import numpy as np
import pandas as pd
import shap

from ..core.container import Shapviz
from ..errors import UnsupportedInputError
from .base import INPUT_KINDS, InputKind, ShapInput
from .explainer_output import from_explainer_output, is_explainer_output
from .explanation import from_explanation
from .matrix import from_matrix
from .tree import from_tree_model, is_tree_model


def detect_input_kind(obj: Any) -> InputKind:
    """
    Classify obj into one of INPUT_KINDS.

    Raises:
        UnsupportedInputError: If obj matches none of them
    """
    if isinstance(obj, shap.Explanation):
        return 'explanation'
    if isinstance(obj, (pd.DataFrame, np.ndarray, list)):
        return 'matrix'
    if is_explainer_output(obj):
        return 'explainer_output'
    if is_tree_model(obj):
        return 'tree_model'
    raise UnsupportedInputError(
        f"Cannot build SHAP container from {type(obj).__name__}. "
        f"Supported inputs: {list(INPUT_KINDS)}"
    )


def _adapt_matrix(obj: Any, X: Any, **kwargs: Any) -> ShapInput:
    if X is None:
        raise UnsupportedInputError("SHAP matrix input needs the feature table X")
    return from_matrix(obj, X, **kwargs)


def _adapt_explanation(obj: Any, X: Any, **kwargs: Any) -> ShapInput:
    return from_explanation(obj, features=X, **kwargs)


def _adapt_explainer_output(obj: Any, X: Any, **kwargs: Any) -> ShapInput:
    return from_explainer_output(obj, features=X, **kwargs)


def _adapt_tree_model(obj: Any, X: Any, **kwargs: Any) -> ShapInput:
    if X is None:
        raise UnsupportedInputError("Tree model input needs the rows to explain as X")
    return from_tree_model(obj, X, **kwargs)


ADAPTERS: Mapping[str, Callable[..., ShapInput]] = {
    'matrix': _adapt_matrix,
    'explanation': _adapt_explanation,
    'explainer_output': _adapt_explainer_output,
    'tree_model': _adapt_tree_model,
}


def shapviz(
    obj: Any,
    X: pd.DataFrame | np.ndarray | None = None,
    *,
    baseline: float | None = None,
    collapse: Mapping[str, str] | None = None,
    strict_features: bool = False,
    kind: InputKind | None = None,
    **adapter_kwargs: Any,
) -> Shapviz:
    """
    Build a Shapviz object from any supported input.

    Args:
        obj: SHAP matrix, shap.Explanation, explainer output mapping, or tree model
        X: Feature table (required for matrices and tree models, optional otherwise)
        baseline: Overrides the baseline found by the adapter
        collapse: Mapping expanded column -> parent feature
        strict_features: Reject feature-table columns without SHAP values
        kind: Skip detection and use this input kind
        **adapter_kwargs: Passed to the adapter (e.g. interactions=True for
            tree models, feature_names for plain arrays)

    Returns:
        Validated Shapviz

    Examples:
        # SHAP matrix with feature table:
        sv = shapviz(shap_df, X_df, baseline=0.3)

        # shap.Explanation:
        sv = shapviz(explainer(X_df))

        # Tree model with interactions:
        sv = shapviz(fitted_forest, X_df, interactions=True)
    """
    if kind is None:
        kind = detect_input_kind(obj)
    elif kind not in ADAPTERS:
        raise UnsupportedInputError(f"Unknown input kind '{kind}'. Valid options: {list(INPUT_KINDS)}")

    shap_input = ADAPTERS[kind](obj, X, **adapter_kwargs)
    if baseline is not None:
        shap_input = replace(shap_input, baseline=baseline)
    return shap_input.build(collapse=collapse, strict_features=strict_features)
