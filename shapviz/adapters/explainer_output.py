"""
Adapter for generic explainer output mappings.

Model-agnostic explainers (permutation, kernel, conditional expectation)
commonly return a mapping holding the SHAP matrix under 'S', the explained
data under 'X', the average prediction under 'baseline' and, when computed,
interaction values under 'S_inter'. Wrapping any other explanation library
boils down to producing that mapping.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import numpy as np
import pandas as pd

from ..errors import ShapeMismatchError, UnsupportedInputError
from .base import ShapInput, unique_baseline

# Keys an explainer output mapping must have
REQUIRED_KEYS = frozenset({'S', 'X'})


def is_explainer_output(obj: Any) -> bool:
    """True if obj is a mapping in the explainer output layout."""
    return isinstance(obj, Mapping) and REQUIRED_KEYS <= set(obj.keys())


def from_explainer_output(
    output: Mapping[str, Any],
    features: pd.DataFrame | np.ndarray | None = None,
    which: int | None = None,
) -> ShapInput:
    """
    Normalize an explainer output mapping.

    Args:
        output: Mapping with 'S', 'X', optional 'baseline', 'S_inter', 'feature_names'
        features: Feature table overriding output['X']
        which: For multi-output results where 'S' is a list of matrices (one per
            output), the output to use

    Returns:
        ShapInput of kind 'explainer_output'
    """
    if not is_explainer_output(output):
        raise UnsupportedInputError(
            f"Explainer output must be a mapping with keys {sorted(REQUIRED_KEYS)}"
        )

    S = output['S']
    baseline = output.get('baseline', 0.0)
    S_inter = output.get('S_inter')

    if isinstance(S, (list, tuple)) and S and not np.isscalar(S[0]) and np.ndim(S[0]) == 2:
        if which is None:
            raise ShapeMismatchError(
                f"Explainer output holds {len(S)} SHAP matrices; choose one with which="
            )
        S = S[which]
        if baseline is not None and np.ndim(baseline) == 1 and len(baseline) == len(output['S']):
            baseline = baseline[which]
        if isinstance(S_inter, (list, tuple)):
            S_inter = S_inter[which]

    X = output['X'] if features is None else features
    if not isinstance(X, pd.DataFrame):
        X = np.asarray(X)

    names = output.get('feature_names')
    if names is None and not isinstance(S, pd.DataFrame) and isinstance(X, pd.DataFrame):
        if np.ndim(S) == 2 and np.shape(S)[1] == X.shape[1]:
            # Explainers compute S column by column over X
            names = list(X.columns)

    return ShapInput(
        values=S,
        features=X,
        baseline=unique_baseline(baseline) if np.ndim(baseline) > 0 else baseline,
        interactions=S_inter,
        feature_names=names,
        kind='explainer_output',
    )
